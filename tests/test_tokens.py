from fakes import USDT_DENOM
from injecthive.providers.coingecko import COMMON_TOKEN_PRICES
from injecthive.services.tokens import KNOWN_TOKENS, classify_denom, get_token, resolve_decimals


class TestKnownTokens:
    def test_lookup_is_case_insensitive(self):
        token = get_token("USDT")
        assert token.denom == USDT_DENOM
        assert token.decimals == 6

    def test_unknown(self):
        assert get_token("doge") is None

    def test_every_token_has_a_static_quote(self):
        for token in KNOWN_TOKENS.values():
            assert token.coingecko_id in COMMON_TOKEN_PRICES


class TestClassifyDenom:
    def test_native(self):
        result = classify_denom("inj")
        assert (result.kind, result.display_denom, result.decimals) == ("native", "INJ", 18)

    def test_known_peggy(self):
        result = classify_denom(USDT_DENOM)
        assert result.kind == "peggy"
        assert result.display_denom == "USDT"
        assert result.decimals == 6

    def test_unknown_peggy_is_shortened(self):
        denom = "peggy0x1234567890abcdef1234567890abcdef12345678"
        result = classify_denom(denom)
        assert result.kind == "peggy"
        assert result.display_denom == "X1234567..."
        assert result.decimals == 6

    def test_factory(self):
        result = classify_denom("factory/inj1abc/mytoken")
        assert (result.kind, result.display_denom) == ("factory", "MYTOKEN")

    def test_metadata_wins(self):
        metadata = {
            "base": "ibc/ABC",
            "display": "atom",
            "name": "Cosmos Hub Atom",
            "denom_units": [{"denom": "uatom", "exponent": 0}, {"denom": "atom", "exponent": 6}],
        }
        result = classify_denom("ibc/ABC", metadata)
        assert (result.kind, result.display_denom, result.name, result.decimals) == (
            "metadata",
            "ATOM",
            "Cosmos Hub Atom",
            6,
        )


def test_resolve_decimals_defaults_to_six():
    assert resolve_decimals("ibc/unknown") == 6
    assert resolve_decimals("inj") == 18
