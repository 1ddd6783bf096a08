import json
import logging
from typing import List, Optional

from ..context import PluginContext
from ..extractors import detect_swap_mode, extract_swap_details
from ..formatting import format_amount, tx_links
from ..services.tokens import KNOWN_TOKENS, get_token
from ..types.envelope import ErrorCode
from ..types.trade import SwapReceipt
from .base import Action, AgentRuntime, Message, ReplyCallback, guarded, respond, respond_failure

logger = logging.getLogger(__name__)

SUPPORTED_TOKENS = ", ".join(t.display_name for t in KNOWN_TOKENS.values())


def _display(symbol: str) -> str:
    token = get_token(symbol)
    return token.display_name if token else symbol.upper()


def _simulation_text(receipt: SwapReceipt, debug: bool, evm_public_key: Optional[str]) -> str:
    lines = [
        "This is a simulation of the swap. No actual swap was executed.",
        "",
        f"I would swap {format_amount(receipt.amount)} {_display(receipt.source_token)} for approximately "
        f"{receipt.estimated_receive_amount:.6f} {_display(receipt.receive_token)} on market {receipt.pair.market_id} "
        f"({receipt.pair.ticker}).",
        "",
        f"Wallet Address: {receipt.wallet_address}",
        f"Subaccount ID: {receipt.subaccount_id}",
    ]
    if debug:
        lines.extend(
            [
                "",
                "Debug Information:",
                f"- Ethereum Address: {evm_public_key or 'Not provided'}",
                f"- Raw Amount: {receipt.order.quantity}",
                "- Market Order Parameters:",
                "```json",
                json.dumps(receipt.order.to_params(), indent=2),
                "```",
            ]
        )
    return "\n".join(lines)


def _success_text(receipt: SwapReceipt) -> str:
    lines = [
        f"Successfully swapped {format_amount(receipt.amount)} {_display(receipt.source_token)} for approximately "
        f"{receipt.estimated_receive_amount:.6f} {_display(receipt.receive_token)} on Helix DEX!",
        "",
        f"Market ID: {receipt.pair.market_id}",
        f"Wallet Address: {receipt.wallet_address}",
        f"Transaction Hash: {receipt.tx_hash}",
    ]
    if receipt.receive_token != receipt.dest_token:
        lines.extend(
            [
                "",
                f"There is no direct {_display(receipt.source_token)}/{_display(receipt.dest_token)} market, so this "
                f"order converted into {_display(receipt.receive_token)}. Swap that into "
                f"{_display(receipt.dest_token)} to finish the route.",
            ]
        )
    lines.extend(["", "View transaction:", tx_links(receipt.tx_hash)])
    return "\n".join(lines)


def swap_actions(ctx: PluginContext) -> List[Action]:

    @guarded("SWAP_TOKENS", "processing your token swap")
    async def swap_tokens(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        mode = detect_swap_mode(message.text)
        prefix = "[SIMULATION MODE] " if mode.simulate else ""
        await respond(callback, f"{prefix}Processing your token swap request. One moment please...")

        details = extract_swap_details(message.text)
        if details is None:
            await respond(
                callback,
                "I couldn't understand your swap request. Please use the format "
                "'Swap [amount] [source token] for [destination token]', for example 'Swap 0.01 INJ for USDT'.\n\n"
                f"Supported tokens: {SUPPORTED_TOKENS}",
            )
            return False

        chain = ctx.chain(runtime)
        logger.info("Swapping %s %s for %s", details.amount, details.source_token, details.dest_token)
        envelope = await chain.swap.swap(
            details.source_token,
            details.dest_token,
            details.amount,
            simulate=mode.simulate,
        )

        if not envelope.success:
            code = envelope.code
            if code == ErrorCode.PROTOCOL_NOT_FOUND.value:
                text = (
                    f"I couldn't find a trading pair for {_display(details.source_token)}/"
                    f"{_display(details.dest_token)} on Helix DEX. Please try a different token pair."
                )
                await respond(callback, text, {"error": envelope.error.model_dump()})
            elif code == ErrorCode.TRANSACTION_FAILED.value and isinstance(envelope.error.details, dict):
                await respond(
                    callback,
                    f"I couldn't execute the swap after {envelope.error.details.get('attempts')} attempts. "
                    f"The most recent error was: {envelope.message}. "
                    "Please make sure your subaccount has sufficient funds and try again.",
                    {"error": envelope.error.model_dump()},
                )
            else:
                await respond_failure(callback, envelope, "I couldn't complete the swap")
            return True

        receipt: SwapReceipt = envelope.result
        if receipt.subaccount_created:
            await respond(callback, "Created a trading subaccount for you with a 0.001 INJ deposit.")

        if receipt.simulated:
            text = _simulation_text(receipt, mode.debug, chain.config.evm_public_key)
        else:
            text = _success_text(receipt)
        await respond(callback, text, receipt.model_dump())
        return True

    return [
        Action(
            name="SWAP_TOKENS",
            description="Swap tokens on Helix DEX with a market order",
            handler=swap_tokens,
            similes=[
                "SWAP_TOKEN",
                "EXCHANGE_TOKEN",
                "EXCHANGE_TOKENS",
                "TRADE_TOKEN",
                "TRADE_TOKENS",
                "CONVERT_TOKEN",
                "CONVERT_TOKENS",
                "HELIX_SWAP",
                "DEX_SWAP",
            ],
            examples=[[{"user": "user", "content": {"text": "Swap 0.01 INJ for USDT"}}]],
        ),
    ]
