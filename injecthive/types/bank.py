from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class TokenBalance(BaseModel):
    denom: str = Field(description="On-chain denom")
    display_denom: str = Field(description="Ticker shown to the user")
    name: str = Field(description="Human readable token name")
    kind: str = Field(description="native, peggy, factory, metadata or unknown")
    decimals: int = Field(description="Decimals used to scale the raw amount")
    raw_amount: str = Field(description="Amount exactly as reported by the chain client")
    amount: Decimal = Field(description="Amount in display units")


class WalletBalances(BaseModel):
    address: Optional[str] = None
    balances: List[TokenBalance] = Field(default_factory=list)
    count: int = 0
