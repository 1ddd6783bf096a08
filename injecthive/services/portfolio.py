import asyncio
import logging
from typing import List, Mapping, Optional, Tuple

from ..providers.coingecko import CoingeckoProvider
from ..providers.injective import ChainClient, call_client, result_list
from ..types.bank import TokenBalance
from ..types.envelope import Envelope, success
from ..types.portfolio import HoldingValue, PortfolioSummary, SubaccountBalance, WalletSummary
from .bank import BankGateway
from .tokens import KNOWN_TOKENS, NATIVE_DENOM, TokenDescriptor

logger = logging.getLogger(__name__)


class PortfolioService:
    """Values the wallet's known-token holdings in USD.

    Balance and price reads are independent, so each stage fans out with
    ``asyncio.gather``; nothing here writes to the chain.
    """

    def __init__(self, client: ChainClient, bank: BankGateway, prices: CoingeckoProvider):
        self.client = client
        self.bank = bank
        self.prices = prices

    async def _price(self, token: TokenDescriptor) -> Optional[float]:
        if not token.coingecko_id:
            return None
        return await self.prices.get_usd_price(token.coingecko_id)

    async def _subaccount_balances(self, address: str) -> List[SubaccountBalance]:
        envelope = await call_client(self.client.get_subaccount_balances_list(address), "getSubaccountBalancesError")
        if not envelope.success:
            logger.warning("Subaccount balances unavailable for %s: %s", address, envelope.message)
            return []

        balances = []
        for row in result_list(envelope.result, "balances"):
            if not isinstance(row, Mapping):
                continue
            deposit = row.get("deposit") or {}
            balances.append(
                SubaccountBalance(
                    subaccount_id=row.get("subaccountId"),
                    denom=str(row.get("denom") or "Unknown"),
                    total_balance=str(deposit.get("totalBalance") or "0"),
                    available_balance=str(deposit.get("availableBalance") or "0"),
                )
            )
        return balances

    async def get_portfolio(self) -> Envelope:
        address_envelope = await self.bank.get_wallet_address()
        if not address_envelope.success:
            return address_envelope
        address: str = address_envelope.result

        tokens = list(KNOWN_TOKENS.values())
        balance_results = await asyncio.gather(*(self.bank.get_balance(t.denom, address) for t in tokens))

        summary = PortfolioSummary(address=address)
        held: List[Tuple[TokenDescriptor, TokenBalance]] = []
        for token, envelope in zip(tokens, balance_results):
            if not envelope.success:
                logger.warning("Failed to fetch balance for %s: %s", token.display_name, envelope.message)
                summary.warnings.append(f"{token.display_name}: {envelope.message}")
                continue
            balance: TokenBalance = envelope.result
            if balance.amount > 0:
                held.append((token, balance))

        prices = await asyncio.gather(*(self._price(token) for token, _ in held))

        for (token, balance), price in zip(held, prices):
            value = float(balance.amount) * price if price is not None else None
            summary.holdings.append(
                HoldingValue(
                    symbol=token.symbol,
                    display_name=token.display_name,
                    denom=token.denom,
                    raw_amount=balance.raw_amount,
                    amount=balance.amount,
                    usd_price=price,
                    usd_value=value,
                )
            )

        summary.holdings.sort(key=lambda h: h.usd_value or 0.0, reverse=True)
        summary.total_value_usd = sum(h.usd_value or 0.0 for h in summary.holdings)
        summary.subaccount_balances = await self._subaccount_balances(address)
        return success(summary)

    async def get_wallet_summary(self) -> Envelope:
        """Wallet address with its INJ balance and that balance's USD value."""
        address_envelope = await self.bank.get_wallet_address()
        if not address_envelope.success:
            return address_envelope
        address: str = address_envelope.result

        balance = await self.bank.get_balance(NATIVE_DENOM, address)
        if not balance.success:
            return balance

        inj_balance = balance.result.amount
        price = await self._price(KNOWN_TOKENS[NATIVE_DENOM])
        value = float(inj_balance) * price if price is not None else None
        return success(WalletSummary(address=address, inj_balance=inj_balance, inj_price=price, inj_value_usd=value))
