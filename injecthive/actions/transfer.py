import logging
from typing import List, Optional

from ..context import PluginContext
from ..extractors import extract_inj_amount, extract_token_amount, extract_wallet_address
from ..formatting import format_amount, tx_links
from ..services.tokens import KNOWN_TOKENS, NATIVE_DENOM, get_token
from ..types.envelope import ErrorCode, Failure
from ..types.trade import TransferReceipt
from .base import Action, AgentRuntime, Message, ReplyCallback, guarded, respond, respond_failure

logger = logging.getLogger(__name__)

SUPPORTED_TOKENS = ", ".join(t.display_name for t in KNOWN_TOKENS.values() if t.denom != NATIVE_DENOM)


def _receipt_text(receipt: TransferReceipt) -> str:
    amount = f"{format_amount(receipt.amount)} {receipt.symbol}"
    return "\n".join(
        [
            f"## {receipt.symbol} Transfer Successful",
            "",
            f"I've successfully sent **{amount}** from your wallet to `{receipt.recipient}`.",
            "",
            "**Transaction Details:**",
            f"- **Amount:** {amount}",
            f"- **From:** `{receipt.sender}`",
            f"- **To:** `{receipt.recipient}`",
            f"- **Transaction Hash:** `{receipt.tx_hash}`",
            "",
            "### Explorer Links",
            "",
            tx_links(receipt.tx_hash),
        ]
    )


async def _report_failure(callback: Optional[ReplyCallback], failure: Failure, symbol: str) -> None:
    if failure.code == ErrorCode.INSUFFICIENT_BALANCE.value and isinstance(failure.error.details, dict):
        details = failure.error.details
        await respond(
            callback,
            f"You don't have enough {details.get('symbol', symbol)} to complete this transfer. "
            f"Your current balance is {details.get('balance')} and you need at least {details.get('required')}.",
            {"error": failure.error.model_dump()},
        )
        return
    await respond_failure(callback, failure, f"I encountered an error while sending {symbol}")


def transfer_actions(ctx: PluginContext) -> List[Action]:

    @guarded("SEND_INJ", "processing your INJ transfer")
    async def send_inj(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        await respond(callback, "Processing your INJ transfer request. One moment please...")

        recipient = extract_wallet_address(message.text)
        if recipient is None:
            await respond(
                callback,
                "I couldn't find a valid Injective wallet address in your message. "
                "Please provide a destination address in the format 'inj1...'.",
            )
            return False

        amount = extract_inj_amount(message.text.replace(recipient, " "))
        if amount is None or amount <= 0:
            await respond(callback, "Please specify a positive amount of INJ to send, for example 'Send 0.01 INJ to inj1...'.")
            return False

        envelope = await ctx.chain(runtime).transfer.send_inj(amount, recipient)
        if not envelope.success:
            await _report_failure(callback, envelope, "INJ")
            return True

        receipt: TransferReceipt = envelope.result
        await respond(callback, _receipt_text(receipt), receipt.model_dump())
        return True

    @guarded("SEND_TOKEN", "processing your token transfer")
    async def send_token(runtime: AgentRuntime, message: Message, callback: Optional[ReplyCallback] = None) -> bool:
        await respond(callback, "Processing your token transfer request. One moment please...")

        recipient = extract_wallet_address(message.text)
        if recipient is None:
            await respond(
                callback,
                "I couldn't find a valid Injective wallet address in your message. "
                "Please provide a destination address in the format 'inj1...'.",
            )
            return False

        token_amount = extract_token_amount(message.text.replace(recipient, " "))
        token = get_token(token_amount[1]) if token_amount else None
        if token_amount is None or token is None or token.denom == NATIVE_DENOM:
            await respond(
                callback,
                "I couldn't determine the token and amount to send. Please specify them like '0.01 USDT'. "
                f"Supported tokens: {SUPPORTED_TOKENS}",
            )
            return False

        amount = token_amount[0]
        if amount <= 0:
            await respond(callback, "The amount to transfer must be greater than zero.")
            return False

        envelope = await ctx.chain(runtime).transfer.send(token.symbol, amount, recipient)
        if not envelope.success:
            await _report_failure(callback, envelope, token.display_name)
            return True

        receipt: TransferReceipt = envelope.result
        await respond(callback, _receipt_text(receipt), receipt.model_dump())
        return True

    return [
        Action(
            name="SEND_INJ",
            description="Send INJ from the agent's wallet to another Injective address",
            handler=send_inj,
            similes=["TRANSFER_INJ", "SEND_INJECTIVE", "PAY_INJ", "TRANSFER_INJECTIVE"],
            examples=[[{"user": "user", "content": {"text": "Send 0.01 INJ to inj1cml96vmptgw99syqrrz8az79xer2pcgp0a885r"}}]],
        ),
        Action(
            name="SEND_TOKEN",
            description="Send a supported non-INJ token to another Injective address",
            handler=send_token,
            similes=["TRANSFER_TOKEN", "SEND_TOKENS", "TRANSFER_TOKENS", "SEND_USDT", "SEND_USDC"],
            examples=[[{"user": "user", "content": {"text": "Send 1 USDT to inj1cml96vmptgw99syqrrz8az79xer2pcgp0a885r"}}]],
        ),
    ]
