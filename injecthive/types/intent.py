from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class IntentKind(str, Enum):
    BALANCE = "balance"
    PRICE = "price"
    SWAP = "swap"
    TRANSFER = "transfer"
    PROTOCOL_INFO = "protocol_info"


class ExtractedIntent(BaseModel):
    kind: IntentKind = Field(description="What the user is asking for")
    params: Dict[str, str] = Field(default_factory=dict, description="Parameters pulled out of the message")
