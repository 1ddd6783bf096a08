import logging
import re
from typing import Any, List, Mapping, Optional

from ..context import PluginContext
from ..extractors import extract_token_denom, extract_wallet_address
from ..formatting import EXPLORER_URL, MINTSCAN_URL, account_links, format_amount, format_usd
from ..providers.injective import result_list
from ..services.tokens import classify_denom, get_token
from ..types.bank import WalletBalances
from ..types.explorer import AccountInfo
from ..types.portfolio import PortfolioSummary, WalletSummary
from ..units import InvalidAmountError, to_human
from .base import Action, AgentRuntime, Message, ReplyCallback, guarded, respond, respond_failure

logger = logging.getLogger(__name__)

MAX_SUPPLY_ROWS = 10

_RAW_DENOM_RE = re.compile(r"\b(peggy0x[0-9a-fA-F]{40}|factory/\S+|ibc/[0-9A-Fa-f]+)")


def _supply_denom(text: str) -> Optional[str]:
    """Bank denom named in the message, either spelled out or as a known symbol."""
    match = _RAW_DENOM_RE.search(text)
    if match:
        return match.group(1).rstrip("?.,!")
    token = get_token(extract_token_denom(text))
    return token.denom if token else None


def _supply_line(row: Mapping[str, Any]) -> Optional[str]:
    denom = str(row.get("denom") or "")
    if not denom:
        return None
    classification = classify_denom(denom)
    try:
        amount = to_human(str(row.get("amount") or "0"), classification.decimals)
    except InvalidAmountError as e:
        logger.warning("Skipping supply row for %s: %s", denom, e)
        return None
    return f"- **{classification.display_denom}**: {format_amount(amount)}"


def _portfolio_text(portfolio: PortfolioSummary) -> str:
    lines = ["## Your Injective Portfolio", "", f"**Wallet Address:** `{portfolio.address}`", ""]

    if not portfolio.holdings:
        lines.append("No token balances found in your wallet.")
    else:
        lines.extend(["### Token Balances", ""])
        for holding in portfolio.holdings:
            line = f"- **{holding.display_name}**: {format_amount(holding.amount)} {holding.display_name}"
            if holding.usd_value is not None and holding.usd_price is not None:
                line += f" ({format_usd(holding.usd_value)} @ {format_usd(holding.usd_price)} per token)"
            lines.append(line)
        lines.extend(["", f"**Total Portfolio Value:** {format_usd(portfolio.total_value_usd)}"])

    if portfolio.subaccount_balances:
        lines.extend(["", "### Subaccount Balances", ""])
        for balance in portfolio.subaccount_balances:
            lines.append(f"- **{balance.denom}**:")
            lines.append(f"  - Total: {balance.total_balance}")
            lines.append(f"  - Available: {balance.available_balance}")

    if portfolio.warnings:
        lines.extend(["", "*Some balances could not be loaded: " + "; ".join(portfolio.warnings) + "*"])

    lines.extend(
        [
            "",
            f"For a more detailed view of your portfolio, you can check the [Injective Explorer]({EXPLORER_URL}/) "
            f"or [Mintscan]({MINTSCAN_URL}/).",
        ]
    )
    return "\n".join(lines)


def _account_text(info: AccountInfo) -> str:
    account = info.account
    lines = [
        "## Wallet Information",
        "",
        f"**Address:** `{info.address}`",
        f"**Account Type:** {account.get('type') or 'Standard'}",
        f"**Account Number:** {account.get('accountNumber') or 'N/A'}",
        f"**Sequence:** {account.get('sequence') or 'N/A'}",
        "",
        f"**INJ Balance:** {format_amount(info.inj_balance)} INJ",
        "",
        "### Recent Transactions",
        "",
    ]
    if not info.recent_transactions:
        lines.append("No recent transactions found.")
    for tx in info.recent_transactions:
        lines.append(f"- **{tx.tx_type}** ({tx.block_timestamp or 'Unknown time'})")
        lines.append(f"  Hash: `{tx.hash}`")
        lines.append(f"  Block: {tx.block_number or 'Unknown'}")
    lines.extend(["", "### Explorer Links", "", account_links(info.address)])
    return "\n".join(lines)


def wallet_actions(ctx: PluginContext) -> List[Action]:

    @guarded("GET_BANK_BALANCES", "retrieving bank balances")
    async def get_bank_balances(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        chain = ctx.chain(runtime)
        address = extract_wallet_address(message.text)
        if address is None:
            address_envelope = await chain.bank.get_wallet_address()
            if not address_envelope.success:
                await respond_failure(callback, address_envelope, "I couldn't determine your wallet address")
                return True
            address = address_envelope.result

        envelope = await chain.bank.get_balances(address)
        if not envelope.success:
            await respond_failure(callback, envelope, "Failed to get bank balances")
            return True

        balances: WalletBalances = envelope.result
        if not balances.balances:
            await respond(callback, f"No balances found for `{address}`.", balances.model_dump())
            return True

        lines = [f"Bank balances for `{address}`:", ""]
        for balance in balances.balances:
            lines.append(f"- **{balance.display_denom}** ({balance.name}): {format_amount(balance.amount)}")
        await respond(callback, "\n".join(lines), balances.model_dump())
        return True

    @guarded("SHOW_PORTFOLIO", "retrieving your portfolio information")
    async def show_portfolio(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        await respond(callback, "Let me retrieve your Injective portfolio information. One moment please...")

        chain = ctx.chain(runtime)
        envelope = await chain.portfolio.get_portfolio()
        if not envelope.success:
            await respond_failure(callback, envelope, "I encountered an error while retrieving your portfolio")
            return True

        portfolio: PortfolioSummary = envelope.result
        await respond(callback, _portfolio_text(portfolio), portfolio.model_dump())
        return True

    @guarded("SHOW_WALLET_ADDRESS", "retrieving your wallet address")
    async def show_wallet_address(
        runtime: AgentRuntime,
        message: Message,
        callback: Optional[ReplyCallback] = None,
    ) -> bool:
        await respond(callback, "Let me retrieve your Injective wallet address and INJ balance. One moment please...")

        chain = ctx.chain(runtime)
        envelope = await chain.portfolio.get_wallet_summary()
        if not envelope.success:
            await respond_failure(callback, envelope, "I encountered an error while retrieving your wallet")
            return True

        summary: WalletSummary = envelope.result
        lines = [
            f"**Wallet Address:** `{summary.address}`",
            "",
            f"**INJ Balance:** {format_amount(summary.inj_balance)} INJ",
        ]
        if summary.inj_value_usd is not None and summary.inj_price is not None:
            lines[-1] += f" ({format_usd(summary.inj_value_usd)} @ {format_usd(summary.inj_price)} per INJ)"
        lines.extend(["", account_links(summary.address)])
        await respond(callback, "\n".join(lines), summary.model_dump())
        return True

    @guarded("GET_WALLET_INFO", "retrieving wallet information")
    async def get_wallet_info(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        chain = ctx.chain(runtime)
        address = extract_wallet_address(message.text)
        if address is None:
            address_envelope = await chain.bank.get_wallet_address()
            if not address_envelope.success:
                await respond(
                    callback,
                    "I couldn't find a valid Injective wallet address in your message. "
                    "Please provide an address in the format 'inj1...'.",
                )
                return True
            address = address_envelope.result

        await respond(callback, f"Looking up wallet `{address}`. One moment please...")

        envelope = await chain.explorer.get_account_info(address)
        if not envelope.success:
            await respond_failure(
                callback, envelope, f"I encountered an error while retrieving information for wallet {address}"
            )
            return True

        info: AccountInfo = envelope.result
        await respond(callback, _account_text(info), info.model_dump())
        return True

    @guarded("GET_TOTAL_SUPPLY", "retrieving the total token supply")
    async def get_total_supply(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        chain = ctx.chain(runtime)
        envelope = await chain.bank.get_total_supply()
        if not envelope.success:
            await respond_failure(callback, envelope, "Failed to get the total supply")
            return True

        rows = [row for row in result_list(envelope.result, "supply") if isinstance(row, Mapping)]
        if not rows:
            await respond(callback, "No supply information is available right now.", {"supply": []})
            return True

        lines = [f"Total supply on Injective ({len(rows)} denoms):", ""]
        for row in rows[:MAX_SUPPLY_ROWS]:
            line = _supply_line(row)
            if line:
                lines.append(line)
        if len(rows) > MAX_SUPPLY_ROWS:
            lines.append(f"*and {len(rows) - MAX_SUPPLY_ROWS} more...*")
        await respond(callback, "\n".join(lines), {"supply": rows})
        return True

    @guarded("GET_SUPPLY_OF", "retrieving the token supply")
    async def get_supply_of(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        denom = _supply_denom(message.text)
        if denom is None:
            await respond(
                callback,
                "Which token's supply would you like to check? Name a token like INJ or USDT, or give its denom.",
            )
            return True

        chain = ctx.chain(runtime)
        envelope = await chain.bank.get_supply_of(denom)
        if not envelope.success:
            await respond_failure(callback, envelope, f"Failed to get the supply of {denom}")
            return True

        result = envelope.result
        display = classify_denom(denom).display_denom
        if isinstance(result, Mapping) and "human_amount" in result:
            text = f"Total supply of {display}: {format_amount(result['human_amount'])} {display}"
        else:
            text = f"No supply reported for {display}."
        await respond(callback, text, dict(result) if isinstance(result, Mapping) else {"denom": denom})
        return True

    return [
        Action(
            name="GET_BANK_BALANCES",
            description="Get all bank balances for the current wallet or a given inj1 address",
            handler=get_bank_balances,
            similes=["GET_ALL_BALANCES", "SHOW_BALANCES", "CHECK_BALANCES", "FETCH_BALANCES", "MY_BALANCES"],
            examples=[[{"user": "user", "content": {"text": "Show me all my balances"}}]],
        ),
        Action(
            name="SHOW_PORTFOLIO",
            description="Show the wallet's token holdings with USD values and subaccount balances",
            handler=show_portfolio,
            similes=["GET_PORTFOLIO", "VIEW_PORTFOLIO", "CHECK_PORTFOLIO", "MY_PORTFOLIO", "PORTFOLIO_VALUE"],
            examples=[[{"user": "user", "content": {"text": "Show me my portfolio"}}]],
        ),
        Action(
            name="SHOW_WALLET_ADDRESS",
            description="Show the wallet address with its INJ balance and USD value",
            handler=show_wallet_address,
            similes=["GET_WALLET_ADDRESS", "MY_ADDRESS", "WALLET_ADDRESS", "WHAT_IS_MY_ADDRESS"],
            examples=[[{"user": "user", "content": {"text": "What's my wallet address?"}}]],
        ),
        Action(
            name="GET_WALLET_INFO",
            description="Account details, INJ balance and recent transactions for an address",
            handler=get_wallet_info,
            similes=["WALLET_INFO", "ADDRESS_INFO", "ACCOUNT_INFO", "VIEW_ADDRESS_INFO", "CHECK_ADDRESS_INFO"],
            examples=[
                [{"user": "user", "content": {"text": "Show me info for inj1cml96vmptgw99syqrrz8az79xer2pcgp0a885r"}}]
            ],
        ),
        Action(
            name="GET_TOTAL_SUPPLY",
            description="Total supply of every denom on the Injective bank module",
            handler=get_total_supply,
            similes=["TOTAL_SUPPLY", "ALL_SUPPLY", "CHAIN_SUPPLY", "SHOW_TOTAL_SUPPLY"],
            examples=[[{"user": "user", "content": {"text": "What's the total supply on Injective?"}}]],
        ),
        Action(
            name="GET_SUPPLY_OF",
            description="Total supply of a single token or denom",
            handler=get_supply_of,
            similes=["SUPPLY_OF", "TOKEN_SUPPLY", "CHECK_SUPPLY", "CIRCULATING_SUPPLY"],
            examples=[[{"user": "user", "content": {"text": "What's the supply of INJ?"}}]],
        ),
    ]
