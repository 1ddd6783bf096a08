from unittest.mock import MagicMock

import httpx
import pytest

from fakes import EVM_ADDRESS, OTHER_WALLET, USDT_DENOM, WALLET, StaticRuntime, balances_by_denom, ok
from injecthive.actions import Message
from injecthive.config import Settings
from injecthive.plugin import build_plugin

COINGECKO_PRICES = {"injective-protocol": 13.16, "tether": 1.0, "ethereum": 3000.0}

LLAMA_PROTOCOLS = [
    {"name": "Helix", "category": "Dexes", "chains": ["Injective"], "chainTvls": {"Injective": 20_000_000.0}},
    {"name": "Mito", "category": "Yield", "chains": ["Injective"], "chainTvls": {"Injective": 5_000_000.0}},
    {"name": "Hydro", "category": "Liquid Staking", "chains": ["Injective"], "chainTvls": {"Injective": 1_000_000.0}},
]


class ApiTransport:
    """CoinGecko and DefiLlama stand-in keyed by host."""

    def __init__(self):
        self.down = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            return httpx.Response(500, json={"error": "unavailable"})
        if request.url.host == "api.coingecko.com":
            ids = request.url.params.get("ids", "").split(",")
            return httpx.Response(
                200, json={coin_id: {"usd": COINGECKO_PRICES[coin_id]} for coin_id in ids if coin_id in COINGECKO_PRICES}
            )
        if request.url.path == "/protocols":
            return httpx.Response(200, json=LLAMA_PROTOCOLS)
        return httpx.Response(404, json={"message": "not found"})


class ReplyLog:
    def __init__(self):
        self.replies = []

    async def __call__(self, reply) -> None:
        self.replies.append(reply)

    @property
    def texts(self):
        return [r.text for r in self.replies]

    @property
    def last(self):
        return self.replies[-1]


def make_settings(**overrides) -> Settings:
    values = {
        "injective_network": "Testnet",
        "injective_private_key": "0x" + "1" * 64,
        "evm_public_key": EVM_ADDRESS,
        "injective_public_key": WALLET,
        "coingecko_api_key": "",
        "defillama_api_key": "",
        "swap_retry_delay_seconds": 0,
        "subaccount_poll_interval_seconds": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def api():
    return ApiTransport()


@pytest.fixture
def factory(chain):
    return MagicMock(return_value=chain)


@pytest.fixture
def plugin(factory, api):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(api))
    return build_plugin(factory, settings=make_settings(), http_client=http_client)


@pytest.fixture
def runtime():
    return StaticRuntime()


@pytest.fixture
def log():
    return ReplyLog()


class TestRegistry:
    def test_every_action_registered(self, plugin):
        names = {action.name for action in plugin.actions}
        assert names == {
            "GET_TOKEN_PRICE",
            "GET_MULTIPLE_TOKEN_PRICES",
            "GET_INJECTIVE_TVL",
            "GET_PROTOCOL_INFO",
            "GET_TOP_PROTOCOLS",
            "GET_YIELD_POOLS",
            "GET_CHAIN_TVL_OVERVIEW",
            "GET_BANK_BALANCES",
            "SHOW_PORTFOLIO",
            "SHOW_WALLET_ADDRESS",
            "GET_WALLET_INFO",
            "GET_TOTAL_SUPPLY",
            "GET_SUPPLY_OF",
            "GET_NETWORK_STATS",
            "GET_LATEST_BLOCKS",
            "GET_LATEST_TRANSACTIONS",
            "SEND_INJ",
            "SEND_TOKEN",
            "SWAP_TOKENS",
        }

    def test_lookup_by_simile(self, plugin):
        assert plugin.registry.get("check_price").name == "GET_TOKEN_PRICE"
        assert plugin.registry.get("TRADE_TOKENS").name == "SWAP_TOKENS"
        assert plugin.registry.has("NOPE") is False

    @pytest.mark.asyncio
    async def test_unknown_action_is_not_handled(self, plugin, runtime, log):
        assert await plugin.handle("DO_SOMETHING", runtime, Message("hi"), log) is False
        assert log.replies == []


class TestRoute:
    def test_routes_free_text(self, plugin):
        assert plugin.route("Swap 1 INJ for USDT") == "SWAP_TOKENS"
        assert plugin.route(f"send 1 inj to {OTHER_WALLET}") == "SEND_INJ"
        assert plugin.route(f"send 2 usdt to {OTHER_WALLET}") == "SEND_TOKEN"
        assert plugin.route(f"send to {OTHER_WALLET} 5 usdt") == "SEND_TOKEN"
        assert plugin.route(f"transfer to {OTHER_WALLET} 0.5 inj") == "SEND_INJ"
        assert plugin.route("what is the price of INJ") == "GET_TOKEN_PRICE"
        assert plugin.route("what's the tvl of helix") == "GET_PROTOCOL_INFO"
        assert plugin.route("show my balance") == "GET_BANK_BALANCES"
        assert plugin.route("hello there") is None


class TestErrorHandling:
    @pytest.mark.asyncio
    async def test_missing_configuration(self, api, runtime, log):
        settings = make_settings(injective_network="", injective_private_key="")
        plugin = build_plugin(MagicMock(), settings=settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(api)))

        handled = await plugin.handle("GET_NETWORK_STATS", runtime, Message("network stats"), log)

        assert handled is True
        assert log.last.text.startswith("I couldn't complete this because the Injective client is not configured.")
        assert "INJECTIVE_NETWORK" in log.last.text
        assert log.last.content["error"]["code"] == "ConfigurationError"

    @pytest.mark.asyncio
    async def test_runtime_settings_configure_the_client(self, api, chain, log):
        factory = MagicMock(return_value=chain)
        settings = make_settings(injective_network="", injective_private_key="")
        plugin = build_plugin(factory, settings=settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(api)))
        runtime = StaticRuntime({"INJECTIVE_NETWORK": "Mainnet", "INJECTIVE_PRIVATE_KEY": "0xabc"})

        await plugin.handle("SHOW_WALLET_ADDRESS", runtime, Message("what's my address"), log)

        config = factory.call_args.args[0]
        assert config.network == "Mainnet"
        assert config.private_key == "0xabc"

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_apology(self, api, runtime, log):
        factory = MagicMock(side_effect=RuntimeError("sdk exploded"))
        plugin = build_plugin(factory, settings=make_settings(), http_client=httpx.AsyncClient(transport=httpx.MockTransport(api)))

        handled = await plugin.handle("GET_NETWORK_STATS", runtime, Message("network stats"), log)

        assert handled is True
        assert log.last.text == (
            "I'm sorry, I encountered an error while retrieving network statistics. Please try again later."
        )
        assert log.last.content["error"]["message"] == "sdk exploded"

    @pytest.mark.asyncio
    async def test_works_without_callback(self, plugin, runtime):
        assert await plugin.handle("GET_TOKEN_PRICE", runtime, Message("price of INJ?")) is True


class TestPriceActions:
    @pytest.mark.asyncio
    async def test_token_price(self, plugin, runtime, log):
        handled = await plugin.handle("GET_TOKEN_PRICE", runtime, Message("What's the price of INJ?"), log)

        assert handled is True
        assert log.texts == [
            "I'll check the current price of INJ. One moment please...",
            "The current price of INJ is $13.16.",
        ]
        assert log.last.content["price"] == 13.16

    @pytest.mark.asyncio
    async def test_estimated_price_is_flagged(self, plugin, api, runtime, log):
        api.down = True

        await plugin.handle("GET_TOKEN_PRICE", runtime, Message("What's the price of INJ?"), log)

        assert log.last.text.startswith("The current price of INJ is $13.16.")
        assert "estimate" in log.last.text
        assert log.last.content["is_estimated"] is True

    @pytest.mark.asyncio
    async def test_asks_for_token(self, plugin, runtime, log):
        handled = await plugin.handle("GET_TOKEN_PRICE", runtime, Message("hello there"), log)

        assert handled is True
        assert len(log.replies) == 1
        assert "Which token" in log.last.text

    @pytest.mark.asyncio
    async def test_multiple_prices(self, plugin, runtime, log):
        await plugin.handle("GET_MULTIPLE_TOKEN_PRICES", runtime, Message("prices of INJ and USDT"), log)

        assert "- INJ: $13.16" in log.last.text
        assert "- USDT: $1.00" in log.last.text


class TestDefiLlamaActions:
    @pytest.mark.asyncio
    async def test_injective_tvl(self, plugin, runtime, log):
        await plugin.handle("GET_INJECTIVE_TVL", runtime, Message("What is the TVL on Injective?"), log)

        assert "$26,000,000.00 across 3 protocols" in log.last.text
        assert "1. **Helix**: $20.00M" in log.last.text

    @pytest.mark.asyncio
    async def test_estimated_tvl_note(self, plugin, api, runtime, log):
        api.down = True

        await plugin.handle("GET_INJECTIVE_TVL", runtime, Message("What is the TVL on Injective?"), log)

        assert "estimated" in log.last.text

    @pytest.mark.asyncio
    async def test_protocol_not_found(self, plugin, runtime, log):
        await plugin.handle("GET_PROTOCOL_INFO", runtime, Message("What's the TVL of zzz?"), log)

        assert log.last.text.startswith("I couldn't find information about zzz.")
        assert log.last.content["error"]["code"] == "ProtocolNotFound"

    @pytest.mark.asyncio
    async def test_top_protocols_limit(self, plugin, runtime, log):
        await plugin.handle("GET_TOP_PROTOCOLS", runtime, Message("top 2 protocols on Injective"), log)

        assert "Here are the top 2 protocols on Injective by TVL:" in log.last.text
        assert "Hydro" not in log.last.text


class TestWalletActions:
    @pytest.mark.asyncio
    async def test_balances_for_given_address(self, plugin, chain, runtime, log):
        chain.get_bank_balances.return_value = ok({"balances": [{"denom": "inj", "amount": "1500000000000000000"}]})

        await plugin.handle("GET_BANK_BALANCES", runtime, Message(f"balances of {OTHER_WALLET}"), log)

        chain.get_bank_balances.assert_awaited_once_with(OTHER_WALLET)
        assert "- **INJ** (Injective): 1.5" in log.last.text

    @pytest.mark.asyncio
    async def test_portfolio(self, plugin, chain, runtime, log):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "2000000000000000000"})

        await plugin.handle("SHOW_PORTFOLIO", runtime, Message("show my portfolio"), log)

        assert "**Total Portfolio Value:** $26.32" in log.last.text

    @pytest.mark.asyncio
    async def test_wallet_info_defaults_to_own_wallet(self, plugin, chain, runtime, log):
        await plugin.handle("GET_WALLET_INFO", runtime, Message("show my wallet info"), log)

        chain.get_account_tx.assert_awaited_once_with(WALLET, 5)
        assert f"**Address:** `{WALLET}`" in log.last.text

    @pytest.mark.asyncio
    async def test_supply_of_named_token(self, plugin, chain, runtime, log):
        chain.get_supply_of.return_value = ok({"denom": USDT_DENOM, "amount": "5000000000000"})

        await plugin.handle("GET_SUPPLY_OF", runtime, Message("What's the supply of USDT?"), log)

        chain.get_supply_of.assert_awaited_once_with(USDT_DENOM)
        assert log.last.text == "Total supply of USDT: 5,000,000 USDT"
        assert log.last.content["decimals"] == 6

    @pytest.mark.asyncio
    async def test_supply_of_asks_for_a_token(self, plugin, chain, runtime, log):
        await plugin.handle("GET_SUPPLY_OF", runtime, Message("how big is the supply?"), log)

        chain.get_supply_of.assert_not_awaited()
        assert log.last.text.startswith("Which token's supply")

    @pytest.mark.asyncio
    async def test_total_supply_lists_denoms(self, plugin, chain, runtime, log):
        supply = [{"denom": "inj", "amount": "100000000000000000000000000"}] + [
            {"denom": f"factory/inj1abc/t{i}", "amount": "1000000"} for i in range(11)
        ]
        chain.get_total_supply.return_value = ok({"supply": supply})

        await plugin.handle("GET_TOTAL_SUPPLY", runtime, Message("total supply"), log)

        assert log.last.text.startswith("Total supply on Injective (12 denoms):")
        assert "- **INJ**: 100,000,000" in log.last.text
        assert "- **T0**: 1" in log.last.text
        assert "*and 2 more...*" in log.last.text

    @pytest.mark.asyncio
    async def test_total_supply_failure(self, plugin, chain, runtime, log):
        chain.get_total_supply.return_value = {"success": False, "error": "node down"}

        await plugin.handle("GET_TOTAL_SUPPLY", runtime, Message("total supply"), log)

        assert log.last.text == "Failed to get the total supply: node down"


class TestExplorerActions:
    @pytest.mark.asyncio
    async def test_latest_transactions_truncate_message_fields(self, plugin, chain, runtime, log):
        messages = [{"key": "memo", "value": "x" * 60}] + [{"key": f"k{i}", "value": "v"} for i in range(3)]
        chain.get_txs.return_value = ok({"txs": [{"hash": "0xabc", "txType": "MsgSend", "messages": messages}]})

        await plugin.handle("GET_LATEST_TRANSACTIONS", runtime, Message("latest transactions"), log)

        assert f"  - memo: {'x' * 50}..." in log.last.text
        assert "*and 1 more message fields...*" in log.last.text

    @pytest.mark.asyncio
    async def test_failure_is_relayed(self, plugin, chain, runtime, log):
        chain.get_blocks.side_effect = RuntimeError("explorer offline")

        handled = await plugin.handle("GET_LATEST_BLOCKS", runtime, Message("latest blocks"), log)

        assert handled is True
        assert log.last.text == "I encountered an error while retrieving the latest blocks: explorer offline"


class TestTransferActions:
    @pytest.mark.asyncio
    async def test_send_inj(self, plugin, chain, runtime, log):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})

        handled = await plugin.handle("SEND_INJ", runtime, Message(f"Send 0.01 INJ to {OTHER_WALLET}"), log)

        assert handled is True
        assert log.last.text.startswith("## INJ Transfer Successful")
        assert "https://explorer.injective.network/transaction/0xsendhash" in log.last.text
        assert log.last.content["tx_hash"] == "0xsendhash"

    @pytest.mark.asyncio
    async def test_send_inj_without_address(self, plugin, chain, runtime, log):
        handled = await plugin.handle("SEND_INJ", runtime, Message("Send 0.01 INJ to my friend"), log)

        assert handled is False
        chain.msg_send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insufficient_balance_message(self, plugin, runtime, log):
        await plugin.handle("SEND_INJ", runtime, Message(f"Send 5 INJ to {OTHER_WALLET}"), log)

        assert log.last.text.startswith("You don't have enough INJ to complete this transfer.")

    @pytest.mark.asyncio
    async def test_send_token_rejects_inj(self, plugin, chain, runtime, log):
        handled = await plugin.handle("SEND_TOKEN", runtime, Message(f"Send 1 INJ to {OTHER_WALLET}"), log)

        assert handled is False
        chain.msg_send.assert_not_awaited()


class TestSwapActions:
    @pytest.mark.asyncio
    async def test_simulation_with_debug(self, plugin, chain, runtime, log):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})

        handled = await plugin.handle("SWAP_TOKENS", runtime, Message("simulate swap 0.5 INJ for USDT with debug"), log)

        assert handled is True
        assert log.texts[0].startswith("[SIMULATION MODE]")
        assert "This is a simulation of the swap." in log.last.text
        assert '"marketId"' in log.last.text
        chain.msg_create_spot_market_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_swap(self, plugin, chain, runtime, log):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})

        await plugin.handle("SWAP_TOKENS", runtime, Message("Swap 0.5 INJ for USDT"), log)

        assert log.last.text.startswith("Successfully swapped 0.5 INJ for approximately 6.580000 USDT")
        assert "Transaction Hash: 0xorderhash" in log.last.text

    @pytest.mark.asyncio
    async def test_two_hop_note(self, plugin, chain, runtime, log):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})

        await plugin.handle("SWAP_TOKENS", runtime, Message("Swap 0.5 INJ for WETH"), log)

        assert "Swap that into WETH to finish the route." in log.last.text

    @pytest.mark.asyncio
    async def test_reports_attempts(self, plugin, chain, runtime, log):
        chain.get_bank_balance.side_effect = balances_by_denom({"inj": "1000000000000000000"})
        chain.msg_create_spot_market_order.side_effect = RuntimeError("market paused")

        await plugin.handle("SWAP_TOKENS", runtime, Message("Swap 0.5 INJ for USDT"), log)

        assert log.last.text.startswith("I couldn't execute the swap after 3 attempts.")
        assert "market paused" in log.last.text
        assert chain.msg_create_spot_market_order.await_count == 3

    @pytest.mark.asyncio
    async def test_unparseable_request(self, plugin, runtime, log):
        handled = await plugin.handle("SWAP_TOKENS", runtime, Message("swap some tokens please"), log)

        assert handled is False
        assert "Swap [amount] [source token] for [destination token]" in log.last.text

    @pytest.mark.asyncio
    async def test_unknown_pair(self, plugin, chain, runtime, log):
        await plugin.handle("SWAP_TOKENS", runtime, Message("Swap 1 OSMO for WETH"), log)

        assert log.last.text.startswith("I couldn't find a trading pair for OSMO/WETH on Helix DEX.")
