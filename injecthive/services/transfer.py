import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from ..config import ClientConfig
from ..providers.injective import ChainClient, reply_tx_hash
from ..types.envelope import Envelope, ErrorCode, failure, reply_error, success
from ..types.trade import TransferReceipt
from ..units import InvalidAmountError, to_raw
from .bank import BankGateway
from .tokens import NATIVE_DENOM, TokenDescriptor, get_token

logger = logging.getLogger(__name__)

# INJ kept back for the transaction fee
TRANSFER_GAS_BUFFER = Decimal("0.001")


class TransferGateway:
    """Single bank sends of INJ or a known token. Sends are never retried."""

    def __init__(self, client: ChainClient, bank: BankGateway, config: ClientConfig):
        self.client = client
        self.bank = bank
        self.config = config

    async def _check_funds(self, token: TokenDescriptor, amount: Decimal, address: str) -> Optional[Envelope]:
        balance = await self.bank.get_balance(token.denom, address)
        if not balance.success:
            return balance
        held: Decimal = balance.result.amount

        if token.denom == NATIVE_DENOM:
            required = amount + TRANSFER_GAS_BUFFER
            if held < required:
                return failure(
                    ErrorCode.INSUFFICIENT_BALANCE,
                    f"Insufficient INJ balance: have {held}, need {required} including gas",
                    {"symbol": token.display_name, "balance": str(held), "required": str(required)},
                )
            return None

        if held < amount:
            return failure(
                ErrorCode.INSUFFICIENT_BALANCE,
                f"Insufficient {token.display_name} balance: have {held}, need {amount}",
                {"symbol": token.display_name, "balance": str(held), "required": str(amount)},
            )

        gas = await self.bank.get_balance(NATIVE_DENOM, address)
        if not gas.success:
            return gas
        if gas.result.amount < TRANSFER_GAS_BUFFER:
            return failure(
                ErrorCode.INSUFFICIENT_BALANCE,
                f"Not enough INJ for gas: have {gas.result.amount}, need {TRANSFER_GAS_BUFFER}",
                {"symbol": "INJ", "balance": str(gas.result.amount), "required": str(TRANSFER_GAS_BUFFER)},
            )
        return None

    async def send(self, symbol: str, amount: Decimal, recipient: str) -> Envelope:
        """Send ``amount`` (display units) of a known token to ``recipient``."""
        token = get_token(symbol)
        if token is None:
            return failure(ErrorCode.INVALID_PARAMETER, f"Unsupported token: {symbol}")
        if not recipient:
            return failure(ErrorCode.MISSING_PARAMETER, "Destination address is required")
        if amount <= 0:
            return failure(ErrorCode.INVALID_PARAMETER, "The amount to transfer must be greater than zero")

        address_envelope = await self.bank.get_wallet_address()
        if not address_envelope.success:
            return address_envelope
        sender: str = address_envelope.result

        if recipient.lower() == sender.lower():
            return failure(
                ErrorCode.INVALID_PARAMETER,
                f"Refusing to send {token.display_name} to the sending wallet itself",
            )

        problem = await self._check_funds(token, amount, sender)
        if problem is not None:
            return problem

        try:
            raw_amount = to_raw(amount, token.decimals)
        except InvalidAmountError as e:
            return failure(ErrorCode.INVALID_PARAMETER, str(e))

        params: Dict[str, Any] = {
            "amount": {"denom": token.denom, "amount": raw_amount},
            "srcInjectiveAddress": sender,
            "dstInjectiveAddress": recipient,
        }
        logger.info("Sending %s %s from %s to %s", amount, token.display_name, sender, recipient)

        try:
            reply = await self.client.msg_send(params)
        except Exception as e:
            logger.error("Transfer of %s failed: %s", token.display_name, e)
            return failure(ErrorCode.TRANSACTION_FAILED, str(e) or e.__class__.__name__)

        tx_hash = reply_tx_hash(reply)
        if not reply or not reply.get("success", bool(tx_hash)) or not tx_hash:
            error = reply_error(reply)
            return failure(
                ErrorCode.TRANSACTION_FAILED,
                str(error.get("message") or "Transfer was not broadcast"),
                error.get("details"),
            )

        logger.info("Transfer broadcast: %s", tx_hash)
        return success(
            TransferReceipt(
                tx_hash=tx_hash,
                sender=sender,
                recipient=recipient,
                symbol=token.display_name,
                denom=token.denom,
                amount=amount,
                raw_amount=raw_amount,
            )
        )

    async def send_inj(self, amount: Decimal, recipient: str) -> Envelope:
        return await self.send(NATIVE_DENOM, amount, recipient)
