from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TxMessage(BaseModel):
    key: str
    value: str


class TransactionSummary(BaseModel):
    hash: str = "Unknown"
    tx_type: str = "Transaction"
    block_number: Optional[int] = None
    block_timestamp: Optional[str] = None
    messages: List[TxMessage] = Field(default_factory=list)


class BlockSummary(BaseModel):
    height: Optional[int] = None
    hash: str = "Unknown"
    proposer: str = "Unknown"
    tx_count: int = 0
    time: Optional[str] = None


class AccountInfo(BaseModel):
    address: str
    account: Dict[str, Any] = Field(default_factory=dict, description="Raw account details from the chain")
    inj_balance: Decimal = Field(default=Decimal(0), description="INJ balance in display units")
    recent_transactions: List[TransactionSummary] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list, description="Lookups that failed but did not abort")


class NetworkStats(BaseModel):
    assets: int = 0
    addresses: int = 0
    txs_total: int = 0
    inj_supply: Decimal = Field(default=Decimal(0), description="Total INJ supply in display units")
    txs_in_past_30_days: int = 0
    txs_in_past_24_hours: int = 0
    block_count_in_past_24_hours: int = 0
    txs_per_second_in_past_24_hours: float = 0.0
    txs_per_second_in_past_100_blocks: float = 0.0
