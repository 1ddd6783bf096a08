from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TokenPrice(BaseModel):
    denom: str = Field(description="Denom or symbol the caller asked about")
    coin_id: str = Field(description="CoinGecko coin id")
    price: float = Field(description="USD price")
    formatted_price: str = Field(description="Price rendered for display")
    name: str = Field(description="Token name")
    symbol: str = Field(description="Token ticker")
    currency: str = Field(default="USD", description="Quote currency")
    timestamp: float = Field(description="Unix seconds the price was observed")
    is_estimated: bool = Field(default=False, description="True when served from the static fallback table")


class PriceLookupError(BaseModel):
    denom: str
    error: str


class PriceBatch(BaseModel):
    prices: Dict[str, TokenPrice] = Field(default_factory=dict, description="Resolved prices keyed by requested denom")
    errors: Dict[str, PriceLookupError] = Field(default_factory=dict, description="Denoms that could not be priced")
    timestamp: float = Field(description="Unix seconds the batch was assembled")
    count: int = Field(description="Number of resolved prices")


class ProtocolInfo(BaseModel):
    name: str
    tvl: float = Field(default=0.0, description="Injective TVL in USD")
    formatted_tvl: str = Field(default="", description="TVL rendered for display")
    symbol: str = ""
    category: str = ""
    chains: List[str] = Field(default_factory=list)
    url: str = ""
    slug: Optional[str] = None
    description: str = ""
    change_1d: float = 0.0
    change_7d: float = 0.0
    is_estimated: bool = Field(default=False, description="True when served from the static fallback table")


class InjectiveTVL(BaseModel):
    protocols: List[ProtocolInfo] = Field(description="Injective protocols sorted by TVL descending")
    total_tvl: float
    timestamp: float
    count: int
    note: Optional[str] = Field(default=None, description="Set when static data was used")


class TopProtocols(BaseModel):
    protocols: List[ProtocolInfo]
    total_protocols: int
    total_tvl: float
    formatted_total_tvl: str
    timestamp: float
    note: Optional[str] = None


class YieldPool(BaseModel):
    pool: str
    symbol: str = ""
    project: str = ""
    tvl_usd: float = 0.0
    apy: float = 0.0
    apy_base: Optional[float] = None
    apy_reward: Optional[float] = None
    reward_tokens: List[str] = Field(default_factory=list)


class YieldPools(BaseModel):
    pools: List[YieldPool]
    count: int
    timestamp: float
    note: Optional[str] = None


class TVLPoint(BaseModel):
    date: str = Field(description="ISO date (YYYY-MM-DD)")
    tvl: float


class ChainTVLSummary(BaseModel):
    chain: str
    current_tvl: float
    monthly_change: float = Field(description="Percent change against roughly 30 days earlier")
    max_tvl: float
    min_tvl: float
    avg_tvl: float
    last_12_months: List[TVLPoint]


class ChainShare(BaseModel):
    name: str
    tvl: float
    percentage: float


class GlobalTVLOverview(BaseModel):
    total_tvl: float
    top_chains: List[ChainShare]
