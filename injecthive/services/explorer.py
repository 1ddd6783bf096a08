import logging
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from ..providers.injective import ChainClient, call_client, result_list
from ..types.envelope import Envelope, ErrorCode, failure, success
from ..types.explorer import AccountInfo, BlockSummary, NetworkStats, TransactionSummary, TxMessage
from ..units import InvalidAmountError, to_human
from .tokens import NATIVE_DECIMALS, NATIVE_DENOM

logger = logging.getLogger(__name__)


def _int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return _int(value)


def _transaction(raw: Mapping[str, Any]) -> TransactionSummary:
    messages = []
    for message in raw.get("messages") or []:
        if isinstance(message, Mapping) and message.get("key") and message.get("value") is not None:
            messages.append(TxMessage(key=str(message["key"]), value=str(message["value"])))
    return TransactionSummary(
        hash=str(raw.get("hash") or "Unknown"),
        tx_type=str(raw.get("txType") or "Transaction"),
        block_number=_optional_int(raw.get("blockNumber")),
        block_timestamp=raw.get("blockTimestamp"),
        messages=messages,
    )


def _block(raw: Mapping[str, Any]) -> BlockSummary:
    return BlockSummary(
        height=_optional_int(raw.get("height")),
        hash=str(raw.get("hash") or "Unknown"),
        proposer=str(raw.get("proposer") or "Unknown"),
        tx_count=_int(raw.get("numTxs", raw.get("txCount"))),
        time=raw.get("timestamp") or raw.get("time"),
    )


class ExplorerGateway:
    """Network, block, transaction and account views from the Injective explorer API."""

    def __init__(self, client: ChainClient):
        self.client = client

    async def get_account_info(self, address: str, tx_limit: int = 5) -> Envelope:
        if not address:
            return failure(ErrorCode.MISSING_PARAMETER, "Wallet address is required")

        account = await call_client(self.client.get_account_details(address), "getAccountDetailsError")
        if not account.success:
            return account

        details = account.result.get("account") if isinstance(account.result, Mapping) else None
        info = AccountInfo(address=address, account=dict(details or {}))

        txs = await call_client(self.client.get_account_tx(address, tx_limit), "getAccountTxError")
        if txs.success:
            rows = result_list(txs.result, "txs")[:tx_limit]
            info.recent_transactions = [_transaction(row) for row in rows if isinstance(row, Mapping)]
        else:
            info.warnings.append(f"Transactions unavailable: {txs.message}")

        balance = await call_client(self.client.get_bank_balance(NATIVE_DENOM, address), "getBankBalanceError")
        if balance.success and isinstance(balance.result, Mapping):
            try:
                info.inj_balance = to_human(str(balance.result.get("amount") or "0"), NATIVE_DECIMALS)
            except InvalidAmountError as e:
                info.warnings.append(f"Balance unreadable: {e}")
        elif not balance.success:
            info.warnings.append(f"Balance unavailable: {balance.message}")

        return success(info)

    async def get_network_stats(self) -> Envelope:
        envelope = await call_client(self.client.get_explorer_stats(), "getExplorerStatsError")
        if not envelope.success:
            return envelope

        stats = envelope.result if isinstance(envelope.result, Mapping) else {}
        try:
            # injSupply is reported raw, sometimes with a fractional tail
            inj_supply = to_human(str(stats.get("injSupply") or "0").split(".")[0], NATIVE_DECIMALS)
        except InvalidAmountError:
            inj_supply = Decimal(0)

        return success(
            NetworkStats(
                assets=_int(stats.get("assets")),
                addresses=_int(stats.get("addresses")),
                txs_total=_int(stats.get("txsTotal")),
                inj_supply=inj_supply,
                txs_in_past_30_days=_int(stats.get("txsInPast30Days")),
                txs_in_past_24_hours=_int(stats.get("txsInPast24Hours")),
                block_count_in_past_24_hours=_int(stats.get("blockCountInPast24Hours")),
                txs_per_second_in_past_24_hours=_float(stats.get("txsPerSecondInPast24Hours")),
                txs_per_second_in_past_100_blocks=_float(stats.get("txsPerSecondInPast100Blocks")),
            )
        )

    async def get_latest_blocks(self, limit: int = 10) -> Envelope:
        envelope = await call_client(self.client.get_blocks(limit), "getBlocksError")
        if not envelope.success:
            return envelope

        rows = result_list(envelope.result, "blocks")
        blocks: List[BlockSummary] = [_block(row) for row in rows if isinstance(row, Mapping)]
        return success(blocks[:limit])

    async def get_latest_transactions(self, limit: int = 10) -> Envelope:
        envelope = await call_client(self.client.get_txs(limit), "getTxsError")
        if not envelope.success:
            return envelope

        rows = result_list(envelope.result, "txs")
        txs = [_transaction(row) for row in rows if isinstance(row, Mapping)]
        return success(txs[:limit])
