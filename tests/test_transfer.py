from decimal import Decimal

import pytest

from fakes import OTHER_WALLET, USDT_DENOM, WALLET, balances_by_denom, err
from injecthive.services.bank import BankGateway
from injecthive.services.transfer import TransferGateway


@pytest.fixture
def transfer(chain, client_config):
    return TransferGateway(chain, BankGateway(chain, client_config), client_config)


class TestSendInj:
    @pytest.mark.asyncio
    async def test_broadcasts_raw_amount(self, transfer, chain):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})

        envelope = await transfer.send_inj(Decimal("0.01"), OTHER_WALLET)

        receipt = envelope.result
        assert receipt.tx_hash == "0xsendhash"
        assert receipt.sender == WALLET
        assert receipt.raw_amount == "10000000000000000"
        assert receipt.symbol == "INJ"
        chain.msg_send.assert_awaited_once_with(
            {
                "amount": {"denom": "inj", "amount": "10000000000000000"},
                "srcInjectiveAddress": WALLET,
                "dstInjectiveAddress": OTHER_WALLET,
            }
        )

    @pytest.mark.asyncio
    async def test_balance_must_cover_gas_buffer(self, transfer, chain):
        # Exactly the amount, nothing left for the fee
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "10000000000000000"})

        envelope = await transfer.send_inj(Decimal("0.01"), OTHER_WALLET)

        assert envelope.code == "InsufficientBalance"
        assert envelope.error.details == {"symbol": "INJ", "balance": "0.01", "required": "0.011"}
        chain.msg_send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refuses_self_send(self, transfer, chain):
        envelope = await transfer.send_inj(Decimal("0.01"), WALLET.upper())

        assert envelope.code == "InvalidParameter"
        chain.msg_send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_positive_amount(self, transfer, chain):
        envelope = await transfer.send_inj(Decimal(0), OTHER_WALLET)

        assert envelope.code == "InvalidParameter"
        chain.get_bank_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_recipient(self, transfer):
        envelope = await transfer.send_inj(Decimal(1), "")
        assert envelope.code == "MissingParameter"

    @pytest.mark.asyncio
    async def test_broadcast_exception(self, transfer, chain):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})
        chain.msg_send.side_effect = RuntimeError("account sequence mismatch")

        envelope = await transfer.send_inj(Decimal("0.01"), OTHER_WALLET)

        assert envelope.code == "TransactionFailed"
        assert envelope.message == "account sequence mismatch"
        assert chain.msg_send.await_count == 1

    @pytest.mark.asyncio
    async def test_broadcast_error_reply(self, transfer, chain):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})
        chain.msg_send.return_value = err("out of gas")

        envelope = await transfer.send_inj(Decimal("0.01"), OTHER_WALLET)

        assert envelope.code == "TransactionFailed"
        assert envelope.message == "out of gas"

    @pytest.mark.asyncio
    async def test_plain_string_error_reply(self, transfer, chain):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})
        chain.msg_send.return_value = {"success": False, "error": "insufficient fees"}

        envelope = await transfer.send_inj(Decimal("0.01"), OTHER_WALLET)

        assert envelope.code == "TransactionFailed"
        assert envelope.message == "insufficient fees"


class TestSendToken:
    @pytest.mark.asyncio
    async def test_usdt_uses_six_decimals(self, transfer, chain):
        chain.get_bank_balance.side_effect = balances_by_denom(
            {USDT_DENOM: "5000000", "inj": "1000000000000000000"}
        )

        envelope = await transfer.send("USDT", Decimal("1.5"), OTHER_WALLET)

        assert envelope.result.raw_amount == "1500000"
        assert envelope.result.symbol == "USDT"
        params = chain.msg_send.await_args.args[0]
        assert params["amount"] == {"denom": USDT_DENOM, "amount": "1500000"}

    @pytest.mark.asyncio
    async def test_insufficient_token_balance(self, transfer, chain):
        chain.get_bank_balance.side_effect = balances_by_denom({USDT_DENOM: "1000000"})

        envelope = await transfer.send("usdt", Decimal(2), OTHER_WALLET)

        assert envelope.code == "InsufficientBalance"
        assert envelope.error.details["symbol"] == "USDT"

    @pytest.mark.asyncio
    async def test_needs_inj_for_gas(self, transfer, chain):
        chain.get_bank_balance.side_effect = balances_by_denom({USDT_DENOM: "5000000", "inj": "0"})

        envelope = await transfer.send("usdt", Decimal(1), OTHER_WALLET)

        assert envelope.code == "InsufficientBalance"
        assert envelope.error.details["symbol"] == "INJ"
        chain.msg_send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_token(self, transfer):
        envelope = await transfer.send("doge", Decimal(1), OTHER_WALLET)
        assert envelope.code == "InvalidParameter"
