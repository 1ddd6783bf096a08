from .base import Action, ActionRegistry, AgentRuntime, Message, ReplyCallback, guarded, respond
from .defillama import defillama_actions
from .explorer import explorer_actions
from .prices import price_actions
from .swap import swap_actions
from .transfer import transfer_actions
from .wallet import wallet_actions

__all__ = [
    "Action",
    "ActionRegistry",
    "AgentRuntime",
    "Message",
    "ReplyCallback",
    "guarded",
    "respond",
    "defillama_actions",
    "explorer_actions",
    "price_actions",
    "swap_actions",
    "transfer_actions",
    "wallet_actions",
]
