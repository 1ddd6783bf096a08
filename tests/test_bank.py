from dataclasses import replace
from decimal import Decimal

import pytest

from fakes import USDT_DENOM, WALLET, err, ok
from injecthive.cache import TTLCache
from injecthive.services.bank import BankGateway


@pytest.fixture
def bank(chain, client_config):
    return BankGateway(chain, client_config, metadata_cache=TTLCache(ttl=3600))


class TestWalletAddress:
    @pytest.mark.asyncio
    async def test_from_account_details(self, bank, chain):
        envelope = await bank.get_wallet_address()

        assert envelope.result == WALLET
        chain.get_account_details.assert_awaited_once_with(WALLET)

    @pytest.mark.asyncio
    async def test_falls_back_to_configured_key(self, bank, chain):
        chain.get_account_details.return_value = err("account not found")

        envelope = await bank.get_wallet_address()

        assert envelope.success is True
        assert envelope.result == WALLET

    @pytest.mark.asyncio
    async def test_no_address_anywhere(self, chain, client_config):
        chain.get_account_details.side_effect = RuntimeError("grpc unavailable")
        config = replace(client_config, injective_public_key=None)

        envelope = await BankGateway(chain, config).get_wallet_address()

        assert envelope.success is False
        assert envelope.code == "getAccountDetailsError"
        assert envelope.message == "grpc unavailable"


class TestBalance:
    @pytest.mark.asyncio
    async def test_scales_raw_inj(self, bank, chain):
        chain.get_bank_balance.return_value = ok({"denom": "inj", "amount": "1500000000000000000"})

        envelope = await bank.get_balance("inj")

        balance = envelope.result
        assert balance.amount == Decimal("1.5")
        assert balance.raw_amount == "1500000000000000000"
        assert balance.display_denom == "INJ"
        assert balance.kind == "native"

    @pytest.mark.asyncio
    async def test_keeps_prescaled_amount(self, bank, chain):
        chain.get_bank_balance.return_value = ok({"denom": USDT_DENOM, "amount": "12.5"})

        envelope = await bank.get_balance(USDT_DENOM)

        assert envelope.result.amount == Decimal("12.5")
        assert envelope.result.display_denom == "USDT"

    @pytest.mark.asyncio
    async def test_missing_amount_is_zero(self, bank, chain):
        chain.get_bank_balance.return_value = ok({"denom": "inj"})

        envelope = await bank.get_balance("inj")

        assert envelope.result.amount == Decimal(0)

    @pytest.mark.asyncio
    async def test_client_failure_passes_through(self, bank, chain):
        chain.get_bank_balance.return_value = err("node down", "Unavailable")

        envelope = await bank.get_balance("inj")

        assert envelope.code == "Unavailable"
        assert envelope.message == "node down"

    @pytest.mark.asyncio
    async def test_plain_string_error(self, bank, chain):
        chain.get_bank_balance.return_value = {"success": False, "error": "node down"}

        envelope = await bank.get_balance("inj")

        assert envelope.code == "getBankBalanceError"
        assert envelope.message == "node down"

    @pytest.mark.asyncio
    async def test_unparseable_amount(self, bank, chain):
        chain.get_bank_balance.return_value = ok({"denom": "inj", "amount": "lots"})

        envelope = await bank.get_balance("inj")

        assert envelope.code == "InvalidParameter"

    @pytest.mark.asyncio
    async def test_missing_denom(self, bank):
        envelope = await bank.get_balance("")
        assert envelope.code == "MissingParameter"


class TestBalances:
    @pytest.mark.asyncio
    async def test_classifies_and_uses_metadata(self, bank, chain):
        chain.get_bank_balances.return_value = ok(
            {
                "balances": [
                    {"denom": "inj", "amount": "2000000000000000000"},
                    {"denom": USDT_DENOM, "amount": "3000000"},
                    {"denom": "factory/inj1xyz/mytoken", "amount": "100000000"},
                    {"denom": "ibc/ABCDEF", "amount": "42"},
                ]
            }
        )
        chain.get_denoms_metadata.return_value = ok(
            {
                "metadatas": [
                    {
                        "base": "ibc/ABCDEF",
                        "display": "atom",
                        "name": "Cosmos Hub Atom",
                        "denom_units": [{"denom": "uatom", "exponent": 0}, {"denom": "atom", "exponent": 1}],
                    }
                ]
            }
        )

        envelope = await bank.get_balances(WALLET)

        by_denom = {b.denom: b for b in envelope.result.balances}
        assert envelope.result.count == 4
        assert envelope.result.address == WALLET
        assert by_denom["inj"].amount == Decimal(2)
        assert by_denom[USDT_DENOM].amount == Decimal(3)
        assert by_denom["factory/inj1xyz/mytoken"].display_denom == "MYTOKEN"
        assert by_denom["factory/inj1xyz/mytoken"].amount == Decimal(100)
        assert by_denom["ibc/ABCDEF"].kind == "metadata"
        assert by_denom["ibc/ABCDEF"].display_denom == "ATOM"
        assert by_denom["ibc/ABCDEF"].amount == Decimal("4.2")

    @pytest.mark.asyncio
    async def test_metadata_is_cached(self, bank, chain):
        chain.get_bank_balances.return_value = ok({"balances": [{"denom": "inj", "amount": "1"}]})

        await bank.get_balances()
        await bank.get_balances()

        assert chain.get_denoms_metadata.await_count == 1

    @pytest.mark.asyncio
    async def test_balances_are_not_cached(self, bank, chain):
        await bank.get_balances()
        await bank.get_balances()

        assert chain.get_bank_balances.await_count == 2

    @pytest.mark.asyncio
    async def test_metadata_failure_is_tolerated(self, bank, chain):
        chain.get_bank_balances.return_value = ok({"balances": [{"denom": "inj", "amount": "1000000000000000000"}]})
        chain.get_denoms_metadata.side_effect = RuntimeError("metadata query failed")

        envelope = await bank.get_balances()

        assert envelope.result.balances[0].amount == Decimal(1)


class TestSupply:
    @pytest.mark.asyncio
    async def test_supply_of_adds_human_amount(self, bank, chain):
        chain.get_supply_of.return_value = ok({"denom": "inj", "amount": "100000000000000000000000000"})

        envelope = await bank.get_supply_of("inj")

        assert envelope.result["human_amount"] == Decimal(100_000_000)
        assert envelope.result["decimals"] == 18

    @pytest.mark.asyncio
    async def test_total_supply_passes_through(self, bank, chain):
        chain.get_total_supply.return_value = ok({"supply": [{"denom": "inj", "amount": "1"}]})

        envelope = await bank.get_total_supply()

        assert envelope.result == {"supply": [{"denom": "inj", "amount": "1"}]}
