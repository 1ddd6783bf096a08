import logging
from typing import List, Optional

from ..context import PluginContext
from ..formatting import EXPLORER_URL, MINTSCAN_URL, format_amount
from ..types.explorer import BlockSummary, NetworkStats, TransactionSummary
from .base import Action, AgentRuntime, Message, ReplyCallback, guarded, respond, respond_failure

logger = logging.getLogger(__name__)

LATEST_LIMIT = 10
MAX_MESSAGE_FIELDS = 3
MAX_FIELD_LENGTH = 50


def _truncate(value: str, length: int = MAX_FIELD_LENGTH) -> str:
    return value if len(value) <= length else value[:length] + "..."


def _stats_text(stats: NetworkStats) -> str:
    return "\n".join(
        [
            "## Injective Network Statistics",
            "",
            "### General Statistics",
            "",
            f"- **Total Assets:** {stats.assets:,}",
            f"- **Total Addresses:** {stats.addresses:,}",
            f"- **Total Transactions:** {stats.txs_total:,}",
            f"- **INJ Supply:** {format_amount(stats.inj_supply, 2)} INJ",
            "",
            "### Recent Activity",
            "",
            f"- **Transactions (30 days):** {stats.txs_in_past_30_days:,}",
            f"- **Transactions (24 hours):** {stats.txs_in_past_24_hours:,}",
            f"- **Blocks (24 hours):** {stats.block_count_in_past_24_hours:,}",
            f"- **TPS (24 hours):** {stats.txs_per_second_in_past_24_hours:.2f}",
            f"- **TPS (last 100 blocks):** {stats.txs_per_second_in_past_100_blocks:.2f}",
            "",
            "### Explorer Links",
            "",
            f"- [Injective Explorer]({EXPLORER_URL}/)",
            f"- [Mintscan]({MINTSCAN_URL})",
        ]
    )


def _blocks_text(blocks: List[BlockSummary]) -> str:
    lines = ["## Latest Injective Blocks", ""]
    if not blocks:
        lines.extend(["No blocks available from the API at this time.", ""])
    for block in blocks:
        lines.extend(
            [
                f"### Block {block.height or 'Unknown'}",
                "",
                f"- **Time:** {block.time or 'Unknown'}",
                f"- **Hash:** `{block.hash}`",
                f"- **Proposer:** {block.proposer}",
                f"- **Transactions:** {block.tx_count}",
                "",
            ]
        )
    lines.extend(
        [
            "### Explorer Links",
            "",
            f"- [View Blocks on Injective Explorer]({EXPLORER_URL}/blocks)",
            f"- [View Blocks on Mintscan]({MINTSCAN_URL}/blocks)",
        ]
    )
    return "\n".join(lines)


def _transactions_text(txs: List[TransactionSummary]) -> str:
    lines = ["## Latest Injective Transactions", ""]
    if not txs:
        lines.extend(["No transactions available from the API at this time.", ""])
    for tx in txs:
        lines.extend(
            [
                f"### {tx.tx_type}",
                "",
                f"- **Time:** {tx.block_timestamp or 'Unknown'}",
                f"- **Hash:** `{tx.hash}`",
                f"- **Block:** {tx.block_number or 'Unknown'}",
            ]
        )
        if tx.messages:
            lines.append("- **Details:**")
            for msg in tx.messages[:MAX_MESSAGE_FIELDS]:
                lines.append(f"  - {msg.key}: {_truncate(msg.value)}")
            if len(tx.messages) > MAX_MESSAGE_FIELDS:
                lines.append(f"  - *and {len(tx.messages) - MAX_MESSAGE_FIELDS} more message fields...*")
        lines.append("")
    lines.extend(
        [
            "### Explorer Links",
            "",
            f"- [View Transactions on Injective Explorer]({EXPLORER_URL}/txs)",
            f"- [View Transactions on Mintscan]({MINTSCAN_URL}/transactions)",
        ]
    )
    return "\n".join(lines)


def explorer_actions(ctx: PluginContext) -> List[Action]:

    @guarded("GET_NETWORK_STATS", "retrieving network statistics")
    async def get_network_stats(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        await respond(callback, "Let me fetch the latest Injective network statistics. One moment please...")

        envelope = await ctx.chain(runtime).explorer.get_network_stats()
        if not envelope.success:
            await respond_failure(callback, envelope, "I encountered an error while retrieving network statistics")
            return True

        stats: NetworkStats = envelope.result
        await respond(callback, _stats_text(stats), stats.model_dump())
        return True

    @guarded("GET_LATEST_BLOCKS", "retrieving the latest blocks")
    async def get_latest_blocks(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        await respond(callback, "Let me fetch the latest blocks on Injective. One moment please...")

        envelope = await ctx.chain(runtime).explorer.get_latest_blocks(LATEST_LIMIT)
        if not envelope.success:
            await respond_failure(callback, envelope, "I encountered an error while retrieving the latest blocks")
            return True

        blocks: List[BlockSummary] = envelope.result
        await respond(callback, _blocks_text(blocks), [b.model_dump() for b in blocks])
        return True

    @guarded("GET_LATEST_TRANSACTIONS", "retrieving the latest transactions")
    async def get_latest_transactions(
        runtime: AgentRuntime,
        message: Message,
        callback: Optional[ReplyCallback] = None,
    ) -> bool:
        await respond(callback, "Let me fetch the latest transactions on Injective. One moment please...")

        envelope = await ctx.chain(runtime).explorer.get_latest_transactions(LATEST_LIMIT)
        if not envelope.success:
            await respond_failure(callback, envelope, "I encountered an error while retrieving the latest transactions")
            return True

        txs: List[TransactionSummary] = envelope.result
        await respond(callback, _transactions_text(txs), [t.model_dump() for t in txs])
        return True

    return [
        Action(
            name="GET_NETWORK_STATS",
            description="Get Injective network statistics from the explorer",
            handler=get_network_stats,
            similes=["NETWORK_STATS", "CHAIN_STATS", "INJECTIVE_STATS", "SHOW_NETWORK_STATS"],
            examples=[[{"user": "user", "content": {"text": "Show me Injective network stats"}}]],
        ),
        Action(
            name="GET_LATEST_BLOCKS",
            description="Get the latest blocks on Injective",
            handler=get_latest_blocks,
            similes=["LATEST_BLOCKS", "RECENT_BLOCKS", "SHOW_BLOCKS", "VIEW_BLOCKS"],
            examples=[[{"user": "user", "content": {"text": "Show me the latest blocks"}}]],
        ),
        Action(
            name="GET_LATEST_TRANSACTIONS",
            description="Get the latest transactions on Injective",
            handler=get_latest_transactions,
            similes=["LATEST_TRANSACTIONS", "RECENT_TRANSACTIONS", "SHOW_TRANSACTIONS", "LATEST_TXS"],
            examples=[[{"user": "user", "content": {"text": "Show me the latest transactions"}}]],
        ),
    ]
