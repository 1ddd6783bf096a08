from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TransferReceipt(BaseModel):
    tx_hash: str = Field(description="Hash of the broadcast send")
    sender: str
    recipient: str
    symbol: str = Field(description="Ticker of the token that was sent")
    denom: str
    amount: Decimal = Field(description="Amount sent in display units")
    raw_amount: str = Field(description="Amount sent in base units")


class TradingPair(BaseModel):
    ticker: str = Field(description="BASE/QUOTE")
    market_id: str = Field(description="Helix spot market id")
    base_token: str
    quote_token: str


class SpotMarketOrder(BaseModel):
    sender: str
    market_id: str
    subaccount_id: str
    fee_recipient: str
    price: str = "0"
    quantity: str = Field(description="Order size in base units of the source token")
    order_type: int = Field(default=1, description="1 market, 2 limit")
    order_side: int = Field(description="1 buy, 2 sell")

    def to_params(self) -> Dict[str, Any]:
        """Parameters for ``msg_create_spot_market_order``."""
        return {
            "sender": self.sender,
            "order": {
                "marketId": self.market_id,
                "subaccountId": self.subaccount_id,
                "feeRecipient": self.fee_recipient,
                "price": self.price,
                "quantity": self.quantity,
                "orderType": self.order_type,
                "orderSide": self.order_side,
            },
        }


class SwapReceipt(BaseModel):
    source_token: str
    dest_token: str
    receive_token: str = Field(description="Token the order yields; USDT when routed through the USDT hop")
    amount: Decimal = Field(description="Source amount in display units")
    estimated_receive_amount: float
    pair: TradingPair
    wallet_address: str
    subaccount_id: str
    order: SpotMarketOrder
    simulated: bool = Field(default=False, description="True when the order was built but not broadcast")
    subaccount_created: bool = False
    tx_hash: Optional[str] = None
    attempts: int = 0
