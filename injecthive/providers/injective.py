"""
Interface to the Injective chain client.

The concrete client wraps the Injective SDK (gRPC queries plus message
broadcasting) and lives outside this package; the plugin receives a factory for
it. Every call returns a ``{"success": bool, "result": ..., "error": {...}}``
mapping, which the gateways turn into envelopes with ``call_client``.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol

from ..config import ClientConfig
from ..types.envelope import Envelope, failure, from_client_reply

logger = logging.getLogger(__name__)

ClientReply = Mapping[str, Any]


class ChainClient(Protocol):
    """The subset of Injective SDK calls the gateways rely on."""

    # Account and bank queries
    async def get_account_details(self, address: Optional[str] = None) -> ClientReply:
        """``result.account`` holds ``address``, ``accountNumber`` and ``sequence``."""
        ...

    async def get_bank_balance(self, denom: str, address: Optional[str] = None) -> ClientReply:
        """``result`` is ``{"denom", "amount"}``; the amount may be raw or already scaled."""
        ...

    async def get_bank_balances(self, address: Optional[str] = None) -> ClientReply:
        """``result.balances`` is a list of ``{"denom", "amount"}``."""
        ...

    async def get_denoms_metadata(self) -> ClientReply:
        """``result.metadatas`` is a list of bank metadata records."""
        ...

    async def get_total_supply(self) -> ClientReply:
        ...

    async def get_supply_of(self, denom: str) -> ClientReply:
        ...

    # Exchange queries
    async def get_subaccounts_list(self, address: str) -> ClientReply:
        """``result.subaccounts`` is a list of ``{"subaccountId"}``."""
        ...

    async def get_subaccount_balances_list(self, address: str) -> ClientReply:
        """``result.balances`` rows carry ``denom`` and ``deposit.totalBalance/availableBalance``."""
        ...

    # Explorer queries
    async def get_account_tx(self, address: str, limit: int = 5) -> ClientReply:
        ...

    async def get_explorer_stats(self) -> ClientReply:
        ...

    async def get_blocks(self, limit: int = 10, skip: int = 0) -> ClientReply:
        ...

    async def get_txs(self, limit: int = 10, skip: int = 0) -> ClientReply:
        ...

    # Messages
    async def msg_send(self, params: Dict[str, Any]) -> ClientReply:
        """``result.txHash`` is set once the send is broadcast."""
        ...

    async def msg_deposit(self, params: Dict[str, Any]) -> ClientReply:
        ...

    async def msg_create_spot_market_order(self, params: Dict[str, Any]) -> ClientReply:
        ...


ClientFactory = Callable[[ClientConfig], ChainClient]


def reply_tx_hash(reply: Optional[ClientReply]) -> Optional[str]:
    """Transaction hash from a broadcast reply, wherever the client put it."""
    if not reply:
        return None
    result = reply.get("result")
    if isinstance(result, Mapping):
        tx_hash = result.get("txHash") or result.get("tx_hash")
        if tx_hash:
            return str(tx_hash)
    tx_hash = reply.get("txHash") or reply.get("tx_hash")
    return str(tx_hash) if tx_hash else None


def result_list(result: Any, key: str) -> List[Any]:
    """List stored under ``result[key]``, or ``result`` itself when it is already a list."""
    if isinstance(result, list):
        return result
    if isinstance(result, Mapping):
        value = result.get(key)
        if isinstance(value, list):
            return value
    return []


async def call_client(call: Awaitable[ClientReply], error_code: str) -> Envelope:
    """Await a chain client call and convert its reply, or whatever it raised, into an envelope."""
    try:
        reply = await call
    except Exception as e:
        logger.error("Chain client call failed (%s): %s", error_code, e)
        return failure(error_code, str(e) or e.__class__.__name__)
    return from_client_reply(reply, error_code)
