from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class HoldingValue(BaseModel):
    symbol: str = Field(description="Known token symbol")
    display_name: str
    denom: str
    raw_amount: str
    amount: Decimal = Field(description="Balance in display units")
    usd_price: Optional[float] = Field(default=None, description="USD price used for the valuation")
    usd_value: Optional[float] = Field(default=None, description="amount * usd_price")


class SubaccountBalance(BaseModel):
    subaccount_id: Optional[str] = None
    denom: str
    total_balance: str = "0"
    available_balance: str = "0"


class PortfolioSummary(BaseModel):
    address: str
    holdings: List[HoldingValue] = Field(default_factory=list, description="Non-zero holdings, highest USD value first")
    total_value_usd: float = 0.0
    subaccount_balances: List[SubaccountBalance] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class WalletSummary(BaseModel):
    address: str
    inj_balance: Decimal
    inj_price: Optional[float] = None
    inj_value_usd: Optional[float] = None
