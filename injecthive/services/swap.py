"""
Token swaps through Helix spot market orders.

A swap is a single market order on the pair that connects the two tokens. The
wallet needs a trading subaccount first; when it has none, a small INJ deposit
creates one and the gateway polls until the chain lists it. Order submission
is the only retried chain write.
"""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Awaitable, Callable, List, Mapping, Optional, Tuple

from ..config import ClientConfig
from ..providers.coingecko import CoingeckoProvider
from ..providers.injective import ChainClient, call_client, reply_tx_hash, result_list
from ..types.envelope import Envelope, ErrorCode, failure, reply_error, success
from ..types.trade import SpotMarketOrder, SwapReceipt, TradingPair
from ..units import InvalidAmountError, to_raw
from .bank import BankGateway
from .tokens import NATIVE_DECIMALS, NATIVE_DENOM, get_token

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


# =============================================================================
# Markets
# =============================================================================

HELIX_TRADING_PAIRS: Mapping[str, TradingPair] = {
    pair.ticker: pair
    for pair in (
        TradingPair(
            ticker="INJ/USDT",
            market_id="0xa508cb32923323679f29a032c70342c147c17d0145625922b0ef22e955c844c0",
            base_token="inj",
            quote_token="usdt",
        ),
        TradingPair(
            ticker="WETH/USDT",
            market_id="0x64ee22a39a8d333d1a9b0c8c28c9635a2cac37cd73ed99c0b8bfe7630a24a8f2",
            base_token="weth",
            quote_token="usdt",
        ),
        TradingPair(
            ticker="WBTC/USDT",
            market_id="0x979731deaaf17d26b2e256ad18fecd0f7fd45d4b1c8c5f6b4dfc07d4a23faefd",
            base_token="wbtc",
            quote_token="usdt",
        ),
        TradingPair(
            ticker="ATOM/USDT",
            market_id="0x0f1f224b911da353807af9a3812c9af9adcbc3f63b0847d6a69e2b01aca3d9c1",
            base_token="atom",
            quote_token="usdt",
        ),
        TradingPair(
            ticker="USDT/USDC",
            market_id="0x8b1a4d3e8f6b559e30e40922ee3662dd78edf7042330d4d620d188699d1a9715",
            base_token="usdt",
            quote_token="usdc",
        ),
    )
}

HOP_TOKEN = "usdt"

SWAP_GAS_RESERVE = Decimal("0.002")
SUBACCOUNT_DEPOSIT = Decimal("0.001")

ORDER_TYPE_MARKET = 1
ORDER_SIDE_BUY = 1
ORDER_SIDE_SELL = 2


def _pair(base: str, quote: str) -> Optional[TradingPair]:
    return HELIX_TRADING_PAIRS.get(f"{base.upper()}/{quote.upper()}")


def find_trading_pair(source: str, dest: str) -> Optional[Tuple[TradingPair, str]]:
    """Market to trade on and the token that order yields.

    Tries the direct pair, then the reverse pair. Otherwise the source is routed
    into USDT, which is the token the first hop yields.
    """
    source, dest = source.lower(), dest.lower()

    pair = _pair(source, dest) or _pair(dest, source)
    if pair is not None:
        return pair, dest

    if HOP_TOKEN in (source, dest):
        return None
    pair = _pair(source, HOP_TOKEN) or _pair(HOP_TOKEN, source)
    if pair is not None:
        return pair, HOP_TOKEN
    return None


def default_subaccount_id(evm_public_key: Optional[str]) -> str:
    """Subaccount id for nonce 0: the wallet's hex address padded with 24 zeros."""
    if evm_public_key:
        address_hex = evm_public_key.lower()
        if address_hex.startswith("0x"):
            address_hex = address_hex[2:]
        return f"{address_hex}{'0' * 24}"
    return "0" * 64


class SwapGateway:
    def __init__(
        self,
        client: ChainClient,
        bank: BankGateway,
        prices: CoingeckoProvider,
        config: ClientConfig,
        max_attempts: int = 3,
        retry_delay_s: float = 2,
        poll_timeout_s: float = 30,
        poll_interval_s: float = 2,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ):
        self.client = client
        self.bank = bank
        self.prices = prices
        self.config = config
        self.max_attempts = max(1, max_attempts)
        self.retry_delay_s = retry_delay_s
        self.poll_timeout_s = poll_timeout_s
        self.poll_interval_s = poll_interval_s
        self.sleep = sleep
        self.clock = clock

    # =========================================================================
    # Quotes
    # =========================================================================

    async def _usd_rate(self, symbol: str) -> Optional[float]:
        token = get_token(symbol)
        if token is None or not token.coingecko_id:
            return None
        return await self.prices.get_usd_price(token.coingecko_id)

    async def estimate_swap_amount(self, source: str, dest: str, amount: Decimal) -> float:
        """Expected destination amount from the ratio of the two USD prices, 0 when either is unknown."""
        source_rate, dest_rate = await asyncio.gather(self._usd_rate(source), self._usd_rate(dest))
        if not source_rate or not dest_rate:
            logger.warning("No USD rate for %s/%s, swap estimate unavailable", source, dest)
            return 0.0
        return float(amount) * source_rate / dest_rate

    # =========================================================================
    # Subaccounts
    # =========================================================================

    async def list_subaccounts(self, address: str) -> Envelope:
        envelope = await call_client(self.client.get_subaccounts_list(address), "getSubaccountsListError")
        if not envelope.success:
            return envelope

        ids: List[str] = []
        for row in result_list(envelope.result, "subaccounts"):
            subaccount_id = row.get("subaccountId") if isinstance(row, Mapping) else row
            if subaccount_id:
                ids.append(str(subaccount_id))
        return success(ids)

    async def _wait_for_subaccount(self, address: str) -> Envelope:
        deadline = self.clock() + self.poll_timeout_s
        while True:
            await self.sleep(self.poll_interval_s)
            listed = await self.list_subaccounts(address)
            if listed.success and listed.result:
                return success(listed.result[0])
            if self.clock() >= deadline:
                return failure(
                    ErrorCode.TRANSACTION_FAILED,
                    f"Trading subaccount did not appear within {self.poll_timeout_s:g}s of the deposit",
                )

    async def ensure_subaccount(self, address: str, simulate: bool = False) -> Envelope:
        """First trading subaccount of ``address``, funding a new one when there is none.

        Result is ``(subaccount_id, created)``. In simulation nothing is deposited
        and the default subaccount id is reported instead.
        """
        listed = await self.list_subaccounts(address)
        if not listed.success:
            return listed
        if listed.result:
            logger.info("Using existing subaccount %s", listed.result[0])
            return success((listed.result[0], False))

        subaccount_id = default_subaccount_id(self.config.evm_public_key)
        if simulate:
            return success((subaccount_id, False))

        logger.info("No subaccount for %s, depositing %s INJ into %s", address, SUBACCOUNT_DEPOSIT, subaccount_id)
        deposit = await call_client(
            self.client.msg_deposit(
                {
                    "sender": address,
                    "subaccountId": subaccount_id,
                    "amount": {"amount": to_raw(SUBACCOUNT_DEPOSIT, NATIVE_DECIMALS), "denom": NATIVE_DENOM},
                }
            ),
            ErrorCode.TRANSACTION_FAILED.value,
        )
        if not deposit.success:
            logger.error("Subaccount deposit failed: %s", deposit.message)
            return deposit

        ready = await self._wait_for_subaccount(address)
        if not ready.success:
            return ready
        return success((ready.result, True))

    # =========================================================================
    # Orders
    # =========================================================================

    async def submit_order(self, order: SpotMarketOrder) -> Envelope:
        """Broadcast a market order, retrying sequentially until a tx hash comes back.

        Result is ``(tx_hash, attempts)``; the failure carries every attempt's error.
        """
        errors: List[str] = []
        params = order.to_params()

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                await self.sleep(self.retry_delay_s)

            logger.info("Submitting market order on %s (attempt %d/%d)", order.market_id, attempt, self.max_attempts)
            try:
                reply = await self.client.msg_create_spot_market_order(params)
            except Exception as e:
                logger.error("Market order attempt %d raised: %s", attempt, e)
                errors.append(str(e) or e.__class__.__name__)
                continue

            tx_hash = reply_tx_hash(reply)
            if tx_hash:
                logger.info("Market order broadcast: %s", tx_hash)
                return success((tx_hash, attempt))

            message = reply_error(reply).get("message")
            errors.append(str(message or f"No transaction hash in reply: {reply}"))
            logger.error("Market order attempt %d failed: %s", attempt, errors[-1])

        return failure(
            ErrorCode.TRANSACTION_FAILED,
            errors[-1] if errors else "Market order was not submitted",
            {"attempts": len(errors), "errors": errors},
        )

    async def swap(self, source: str, dest: str, amount: Decimal, simulate: bool = False) -> Envelope:
        """Swap ``amount`` of ``source`` into ``dest`` with a market order."""
        source_token, dest_token = get_token(source), get_token(dest)
        if source_token is None or dest_token is None:
            return failure(ErrorCode.INVALID_PARAMETER, f"Unsupported token pair: {source}/{dest}")
        if source_token.symbol == dest_token.symbol:
            return failure(ErrorCode.INVALID_PARAMETER, "Source and destination tokens must differ")
        if amount <= 0:
            return failure(ErrorCode.INVALID_PARAMETER, "The amount to swap must be greater than zero")

        route = find_trading_pair(source_token.symbol, dest_token.symbol)
        if route is None:
            return failure(
                ErrorCode.PROTOCOL_NOT_FOUND,
                f"No Helix trading pair for {source_token.display_name}/{dest_token.display_name}",
            )
        pair, receive_symbol = route

        address_envelope = await self.bank.get_wallet_address()
        if not address_envelope.success:
            return address_envelope
        address: str = address_envelope.result

        balance = await self.bank.get_balance(source_token.denom, address)
        if not balance.success:
            return balance
        if balance.result.amount < amount:
            return failure(
                ErrorCode.INSUFFICIENT_BALANCE,
                f"Insufficient {source_token.display_name} balance: have {balance.result.amount}, need {amount}",
                {"symbol": source_token.display_name, "balance": str(balance.result.amount), "required": str(amount)},
            )

        if source_token.denom != NATIVE_DENOM:
            gas = await self.bank.get_balance(NATIVE_DENOM, address)
            if not gas.success:
                return gas
            if gas.result.amount < SWAP_GAS_RESERVE:
                return failure(
                    ErrorCode.INSUFFICIENT_BALANCE,
                    f"Not enough INJ for gas: have {gas.result.amount}, need {SWAP_GAS_RESERVE}",
                    {"symbol": "INJ", "balance": str(gas.result.amount), "required": str(SWAP_GAS_RESERVE)},
                )

        subaccount = await self.ensure_subaccount(address, simulate=simulate)
        if not subaccount.success:
            return subaccount
        subaccount_id, created = subaccount.result

        try:
            quantity = to_raw(amount, source_token.decimals)
        except InvalidAmountError as e:
            return failure(ErrorCode.INVALID_PARAMETER, str(e))

        order = SpotMarketOrder(
            sender=address,
            market_id=pair.market_id,
            subaccount_id=subaccount_id,
            fee_recipient=address,
            quantity=quantity,
            order_type=ORDER_TYPE_MARKET,
            order_side=ORDER_SIDE_BUY if receive_symbol == pair.base_token else ORDER_SIDE_SELL,
        )
        estimate = await self.estimate_swap_amount(source_token.symbol, receive_symbol, amount)

        receipt = SwapReceipt(
            source_token=source_token.symbol,
            dest_token=dest_token.symbol,
            receive_token=receive_symbol,
            amount=amount,
            estimated_receive_amount=estimate,
            pair=pair,
            wallet_address=address,
            subaccount_id=subaccount_id,
            order=order,
            simulated=simulate,
            subaccount_created=created,
        )
        if simulate:
            logger.info("Simulated swap of %s %s on %s", amount, source_token.display_name, pair.ticker)
            return success(receipt)

        submitted = await self.submit_order(order)
        if not submitted.success:
            return submitted
        receipt.tx_hash, receipt.attempts = submitted.result
        return success(receipt)
