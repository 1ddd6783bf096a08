from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from fakes import USDT_DENOM, WALLET, balances_by_denom, err, ok
from injecthive.services.bank import BankGateway
from injecthive.services.portfolio import PortfolioService

WETH_DENOM = "peggy0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


@pytest.fixture
def prices():
    provider = MagicMock()
    quotes = {"injective-protocol": 20.0, "tether": 1.0, "ethereum": 3000.0}

    async def get_usd_price(coin_id):
        return quotes.get(coin_id)

    provider.get_usd_price = AsyncMock(side_effect=get_usd_price)
    return provider


@pytest.fixture
def portfolio(chain, client_config, prices):
    return PortfolioService(chain, BankGateway(chain, client_config), prices)


class TestPortfolio:
    @pytest.mark.asyncio
    async def test_values_and_orders_holdings(self, portfolio, chain):
        chain.get_bank_balance.side_effect = balances_by_denom(
            {
                "inj": "2000000000000000000",
                USDT_DENOM: "50000000",
                WETH_DENOM: "100000000000000000",
            }
        )

        envelope = await portfolio.get_portfolio()

        summary = envelope.result
        assert summary.address == WALLET
        assert [h.symbol for h in summary.holdings] == ["weth", "usdt", "inj"]
        assert summary.holdings[0].amount == Decimal("0.1")
        assert summary.holdings[0].usd_value == pytest.approx(300.0)
        assert summary.total_value_usd == pytest.approx(300.0 + 50.0 + 40.0)

    @pytest.mark.asyncio
    async def test_zero_balances_are_omitted(self, portfolio):
        envelope = await portfolio.get_portfolio()

        assert envelope.result.holdings == []
        assert envelope.result.total_value_usd == 0.0

    @pytest.mark.asyncio
    async def test_unpriced_holding_is_listed_without_value(self, portfolio, chain):
        chain.get_bank_balance.side_effect = balances_by_denom(
            {
                "inj": "1000000000000000000",
                "factory/inj1hdvy6tl89llr69r9pecgz2nkthyregm3u9leh5/atom": "2000000",
            }
        )

        envelope = await portfolio.get_portfolio()

        holdings = {h.symbol: h for h in envelope.result.holdings}
        assert holdings["atom"].amount == Decimal("2")
        assert holdings["atom"].usd_price is None
        assert holdings["atom"].usd_value is None
        assert envelope.result.total_value_usd == pytest.approx(20.0)

    @pytest.mark.asyncio
    async def test_failed_balance_becomes_warning(self, portfolio, chain):
        async def get_bank_balance(denom, address=None):
            if denom == "inj":
                return err("rate limited")
            return ok({"denom": denom, "amount": "0"})

        chain.get_bank_balance.side_effect = get_bank_balance

        envelope = await portfolio.get_portfolio()

        assert envelope.success is True
        assert envelope.result.warnings == ["INJ: rate limited"]

    @pytest.mark.asyncio
    async def test_includes_subaccount_balances(self, portfolio, chain):
        chain.get_subaccount_balances_list.return_value = ok(
            {
                "balances": [
                    {
                        "subaccountId": "0xsub",
                        "denom": "inj",
                        "deposit": {"totalBalance": "1000", "availableBalance": "400"},
                    }
                ]
            }
        )

        envelope = await portfolio.get_portfolio()

        sub = envelope.result.subaccount_balances[0]
        assert sub.subaccount_id == "0xsub"
        assert sub.total_balance == "1000"
        assert sub.available_balance == "400"
        chain.get_subaccount_balances_list.assert_awaited_once_with(WALLET)


class TestWalletSummary:
    @pytest.mark.asyncio
    async def test_inj_value(self, portfolio, chain):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1500000000000000000"})

        envelope = await portfolio.get_wallet_summary()

        summary = envelope.result
        assert summary.address == WALLET
        assert summary.inj_balance == Decimal("1.5")
        assert summary.inj_price == 20.0
        assert summary.inj_value_usd == pytest.approx(30.0)

    @pytest.mark.asyncio
    async def test_balance_failure(self, portfolio, chain):
        chain.get_bank_balance.return_value = err("node down")

        envelope = await portfolio.get_wallet_summary()

        assert envelope.success is False
        assert envelope.message == "node down"
