from unittest.mock import AsyncMock

import pytest

from fakes import EVM_ADDRESS, WALLET, ok
from injecthive.config import ClientConfig


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        network="Testnet",
        private_key="0x" + "1" * 64,
        evm_public_key=EVM_ADDRESS,
        injective_public_key=WALLET,
    )


@pytest.fixture
def chain() -> AsyncMock:
    """Chain client stub for a wallet with no balances and one existing subaccount."""
    client = AsyncMock()
    client.get_account_details.return_value = ok({"account": {"address": WALLET, "accountNumber": 7, "sequence": 3}})
    client.get_bank_balance.return_value = ok({"denom": "inj", "amount": "0"})
    client.get_bank_balances.return_value = ok({"balances": []})
    client.get_denoms_metadata.return_value = ok({"metadatas": []})
    client.get_subaccounts_list.return_value = ok({"subaccounts": [{"subaccountId": "0xsub"}]})
    client.get_subaccount_balances_list.return_value = ok({"balances": []})
    client.get_account_tx.return_value = ok({"txs": []})
    client.msg_send.return_value = ok({"txHash": "0xsendhash"})
    client.msg_deposit.return_value = ok({"txHash": "0xdeposithash"})
    client.msg_create_spot_market_order.return_value = ok({"txHash": "0xorderhash"})
    return client
