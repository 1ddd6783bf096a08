import logging
from typing import List, Optional

from ..context import PluginContext
from ..extractors import extract_limit, extract_protocol_name
from ..formatting import format_compact_usd, format_percent, format_usd
from ..types.market import ChainTVLSummary, GlobalTVLOverview, InjectiveTVL, ProtocolInfo, TopProtocols, YieldPools
from .base import Action, AgentRuntime, Message, ReplyCallback, guarded, respond, respond_failure

logger = logging.getLogger(__name__)

ESTIMATE_NOTE = (
    "*Note: This data is estimated and may not reflect real-time values as I'm currently "
    "unable to connect to the DefiLlama API.*"
)
MAX_YIELD_POOLS = 10


def _protocol_text(protocol: ProtocolInfo) -> str:
    parts = [
        f"Here's what I found about **{protocol.name}**:",
        "",
        f"The current Total Value Locked (TVL) is {format_usd(protocol.tvl)}.",
    ]
    if protocol.category:
        parts.append(f"It's categorized as a {protocol.category} protocol.")
    if len(protocol.chains) == 1:
        parts.append(f"It operates on the {protocol.chains[0]} blockchain.")
    elif protocol.chains:
        parts.append(f"It operates across multiple blockchains including {', '.join(protocol.chains)}.")
    if protocol.symbol and protocol.symbol != "-":
        parts.append(f"The protocol's token symbol is {protocol.symbol}.")
    if protocol.url:
        parts.extend(["", f"You can learn more at their website: {protocol.url}"])
    if protocol.is_estimated:
        parts.extend(["", "*Note: This data is estimated and may not reflect real-time values.*"])
    return "\n".join(parts)


def defillama_actions(ctx: PluginContext) -> List[Action]:

    @guarded("GET_INJECTIVE_TVL", "retrieving the TVL data for Injective")
    async def get_injective_tvl(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        await respond(
            callback,
            "I'll check the current Total Value Locked (TVL) in the Injective ecosystem. One moment please...",
        )

        envelope = await ctx.defillama.get_injective_tvl()
        if not envelope.success:
            await respond_failure(callback, envelope, "I couldn't retrieve the TVL data for Injective")
            return True

        tvl: InjectiveTVL = envelope.result
        lines = [
            f"The total value locked (TVL) in the Injective ecosystem is currently "
            f"{format_usd(tvl.total_tvl)} across {tvl.count} protocols.",
        ]
        if tvl.protocols:
            lines.extend(["", "Top protocols by TVL:"])
            lines.extend(
                f"{i}. **{p.name}**: {format_compact_usd(p.tvl)}" for i, p in enumerate(tvl.protocols[:5], start=1)
            )
        if tvl.note:
            lines.extend(["", ESTIMATE_NOTE])

        await respond(callback, "\n".join(lines), tvl.model_dump())
        return True

    @guarded("GET_PROTOCOL_INFO", "retrieving protocol information")
    async def get_protocol_info(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        name = extract_protocol_name(message.text)
        if not name:
            await respond(
                callback,
                "I'd be happy to provide information about a specific protocol. "
                "Which protocol are you interested in?",
            )
            return True

        await respond(callback, f"I'll look up the information for {name.title()}. One moment please...")

        envelope = await ctx.defillama.get_protocol_by_name(name)
        if not envelope.success:
            if envelope.code == "ProtocolNotFound":
                await respond(
                    callback,
                    f"I couldn't find information about {name}. It might not be tracked by DefiLlama or might be "
                    "spelled differently. Would you like to see the top protocols on Injective instead?",
                    {"error": envelope.error.model_dump()},
                )
            else:
                await respond_failure(callback, envelope, f"I couldn't retrieve information about {name}")
            return True

        protocol: ProtocolInfo = envelope.result
        await respond(callback, _protocol_text(protocol), protocol.model_dump())
        return True

    @guarded("GET_TOP_PROTOCOLS", "retrieving the top protocols on Injective")
    async def get_top_protocols(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        limit = extract_limit(message.text)
        await respond(
            callback,
            f"I'll find the top {limit} protocols on Injective by Total Value Locked (TVL). One moment please...",
        )

        envelope = await ctx.defillama.get_top_injective_protocols(limit)
        if not envelope.success:
            await respond_failure(callback, envelope, "I couldn't retrieve the top protocols on Injective")
            return True

        top: TopProtocols = envelope.result
        if not top.protocols:
            await respond(callback, "I couldn't find any protocols on Injective tracked by DefiLlama.", top.model_dump())
            return True

        lines = [f"Here are the top {len(top.protocols)} protocols on Injective by TVL:", ""]
        for i, protocol in enumerate(top.protocols, start=1):
            category = f" ({protocol.category})" if protocol.category else ""
            lines.append(f"{i}. **{protocol.name}**{category}: {format_compact_usd(protocol.tvl)}")
        lines.extend(
            ["", f"Total TVL across {top.total_protocols} Injective protocols: {top.formatted_total_tvl}"]
        )
        if top.note:
            lines.extend(["", ESTIMATE_NOTE])

        await respond(callback, "\n".join(lines), top.model_dump())
        return True

    @guarded("GET_YIELD_POOLS", "retrieving yield pools on Injective")
    async def get_yield_pools(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        await respond(callback, "I'll look up the highest yielding pools on Injective. One moment please...")

        envelope = await ctx.defillama.get_injective_yield_pools()
        if not envelope.success:
            await respond_failure(callback, envelope, "I couldn't retrieve yield pools on Injective")
            return True

        pools: YieldPools = envelope.result
        if not pools.pools:
            await respond(callback, pools.note or "I couldn't find any yield pools on Injective.", pools.model_dump())
            return True

        limit = extract_limit(message.text, default=5, maximum=MAX_YIELD_POOLS)
        lines = [f"Top {min(limit, pools.count)} yield pools on Injective by APY:", ""]
        for i, pool in enumerate(pools.pools[:limit], start=1):
            project = f" on {pool.project}" if pool.project else ""
            lines.append(
                f"{i}. **{pool.symbol or pool.pool}**{project}: {pool.apy:.2f}% APY, "
                f"TVL {format_compact_usd(pool.tvl_usd)}"
            )

        await respond(callback, "\n".join(lines), pools.model_dump())
        return True

    @guarded("GET_CHAIN_TVL_OVERVIEW", "retrieving chain TVL data")
    async def get_chain_tvl_overview(
        runtime: AgentRuntime,
        message: Message,
        callback: Optional[ReplyCallback] = None,
    ) -> bool:
        await respond(callback, "I'll pull Injective's TVL history and the wider DeFi picture. One moment please...")

        summary_envelope = await ctx.defillama.get_chain_tvl_summary()
        overview_envelope = await ctx.defillama.get_global_tvl_overview()
        if not summary_envelope.success and not overview_envelope.success:
            await respond_failure(callback, summary_envelope, "I couldn't retrieve chain TVL data")
            return True

        lines: List[str] = []
        content = {}
        if summary_envelope.success:
            summary: ChainTVLSummary = summary_envelope.result
            content["chain"] = summary.model_dump()
            lines.extend(
                [
                    f"**{summary.chain} TVL**",
                    f"- Current: {format_compact_usd(summary.current_tvl)}",
                    f"- 30 day change: {format_percent(summary.monthly_change)}",
                    f"- 12 month high: {format_compact_usd(summary.max_tvl)}",
                    f"- 12 month low: {format_compact_usd(summary.min_tvl)}",
                    f"- 12 month average: {format_compact_usd(summary.avg_tvl)}",
                ]
            )
        else:
            lines.append(f"I couldn't load Injective's TVL history: {summary_envelope.message}")

        if overview_envelope.success:
            overview: GlobalTVLOverview = overview_envelope.result
            content["global"] = overview.model_dump()
            lines.extend(["", f"**Total DeFi TVL**: {format_compact_usd(overview.total_tvl)}", ""])
            lines.extend(
                f"{i}. {c.name}: {format_compact_usd(c.tvl)} ({c.percentage:.2f}%)"
                for i, c in enumerate(overview.top_chains, start=1)
            )
        else:
            lines.extend(["", f"I couldn't load the cross-chain overview: {overview_envelope.message}"])

        await respond(callback, "\n".join(lines), content)
        return True

    return [
        Action(
            name="GET_INJECTIVE_TVL",
            description="Get the total value locked across the Injective ecosystem",
            handler=get_injective_tvl,
            similes=["INJECTIVE_TVL", "SHOW_INJECTIVE_TVL", "CHECK_INJECTIVE_TVL", "TVL_ON_INJECTIVE", "ECOSYSTEM_TVL"],
            examples=[[{"user": "user", "content": {"text": "What is the TVL on Injective?"}}]],
        ),
        Action(
            name="GET_PROTOCOL_INFO",
            description="Get TVL and details of a DeFi protocol on Injective",
            handler=get_protocol_info,
            similes=["GET_PROTOCOL_BY_NAME", "PROTOCOL_INFO", "PROTOCOL_TVL", "CHECK_PROTOCOL", "SHOW_PROTOCOL"],
            examples=[[{"user": "user", "content": {"text": "What's the TVL of Helix protocol?"}}]],
        ),
        Action(
            name="GET_TOP_PROTOCOLS",
            description="List the largest protocols on Injective by TVL",
            handler=get_top_protocols,
            similes=["TOP_PROTOCOLS", "LIST_TOP_PROTOCOLS", "BIGGEST_PROTOCOLS", "RANK_PROTOCOLS"],
            examples=[[{"user": "user", "content": {"text": "What are the top 5 protocols on Injective by TVL?"}}]],
        ),
        Action(
            name="GET_YIELD_POOLS",
            description="List the highest APY yield pools on Injective",
            handler=get_yield_pools,
            similes=["YIELD_POOLS", "BEST_YIELDS", "TOP_APY", "FARMING_POOLS"],
            examples=[[{"user": "user", "content": {"text": "Where can I earn yield on Injective?"}}]],
        ),
        Action(
            name="GET_CHAIN_TVL_OVERVIEW",
            description="Injective's 12 month TVL history alongside the total DeFi TVL by chain",
            handler=get_chain_tvl_overview,
            similes=["CHAIN_TVL", "TVL_HISTORY", "GLOBAL_TVL", "DEFI_OVERVIEW"],
            examples=[[{"user": "user", "content": {"text": "How has Injective's TVL changed this year?"}}]],
        ),
    ]
