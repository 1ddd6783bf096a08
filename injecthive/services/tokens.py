"""
Static token tables for the Injective assets the plugin knows how to move and price.

Decimals published here must never change while the process runs; every
raw/human conversion for transfers, swaps and balances depends on them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

NATIVE_DENOM = "inj"
NATIVE_DECIMALS = 18
DEFAULT_DECIMALS = 6

PEGGY_PREFIX = "peggy0x"
FACTORY_PREFIX = "factory/"

_FACTORY_ISSUER = "factory/inj1hdvy6tl89llr69r9pecgz2nkthyregm3u9leh5"


@dataclass(frozen=True)
class TokenDescriptor:
    """A token the plugin can transfer, swap and price."""

    symbol: str
    denom: str
    display_name: str
    decimals: int
    coingecko_id: Optional[str] = None


KNOWN_TOKENS: Mapping[str, TokenDescriptor] = {
    "inj": TokenDescriptor("inj", "inj", "INJ", 18, "injective-protocol"),
    "usdt": TokenDescriptor("usdt", "peggy0xdAC17F958D2ee523a2206206994597C13D831ec7", "USDT", 6, "tether"),
    "usdc": TokenDescriptor("usdc", "peggy0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", 6, "usd-coin"),
    "wbtc": TokenDescriptor("wbtc", "peggy0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", "WBTC", 8, "wrapped-bitcoin"),
    "weth": TokenDescriptor("weth", "peggy0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "WETH", 18, "ethereum"),
    "atom": TokenDescriptor("atom", f"{_FACTORY_ISSUER}/atom", "ATOM", 6, "cosmos"),
    "osmo": TokenDescriptor("osmo", f"{_FACTORY_ISSUER}/osmo", "OSMO", 6, "osmosis"),
    "sei": TokenDescriptor("sei", f"{_FACTORY_ISSUER}/sei", "SEI", 6, "sei-network"),
    "astro": TokenDescriptor("astro", f"{_FACTORY_ISSUER}/astro", "ASTRO", 6, "astroport"),
}


# Decimals for denoms that commonly show up without on-chain metadata
KNOWN_DECIMALS: Mapping[str, int] = {
    "inj": 18,
    "peggy0xdAC17F958D2ee523a2206206994597C13D831ec7": 6,
    "peggy0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48": 6,
    "factory/inj14ejqjyq8um4p3xfqj74yld5waqljf88f9eneuk/inj": 6,
    "factory/inj1hdvy6tl89llr69r9pecgz2nkthyregm3u9qm5x/usdt": 6,
    **{token.denom: token.decimals for token in KNOWN_TOKENS.values()},
}


def get_token(symbol: Optional[str]) -> Optional[TokenDescriptor]:
    """Look up a known token by symbol, case-insensitively."""
    if not symbol:
        return None
    return KNOWN_TOKENS.get(symbol.strip().lower())


def is_known_token(symbol: Optional[str]) -> bool:
    return get_token(symbol) is not None


def get_token_by_denom(denom: str) -> Optional[TokenDescriptor]:
    for token in KNOWN_TOKENS.values():
        if token.denom == denom:
            return token
    return None


@dataclass(frozen=True)
class DenomClassification:
    """How a bank denom is presented to the user."""

    kind: str  # native | peggy | factory | metadata | unknown
    display_denom: str
    name: str
    decimals: int


def _metadata_decimals(metadata: Mapping[str, Any]) -> Optional[int]:
    units: Iterable[Mapping[str, Any]] = metadata.get("denom_units") or metadata.get("denomUnits") or []
    exponents = [int(unit.get("exponent") or 0) for unit in units]
    if not exponents:
        return None
    return max(exponents)


def resolve_decimals(denom: str, metadata: Optional[Mapping[str, Any]] = None) -> int:
    """Decimals for ``denom``: metadata's highest-exponent unit, then the known table, then 6."""
    if metadata:
        decimals = _metadata_decimals(metadata)
        if decimals is not None:
            return decimals
    return KNOWN_DECIMALS.get(denom, DEFAULT_DECIMALS)


def classify_denom(denom: str, metadata: Optional[Mapping[str, Any]] = None) -> DenomClassification:
    """Bucket a denom into native, bridged peggy or token-factory and pick its display name."""
    decimals = resolve_decimals(denom, metadata)

    if metadata:
        display = metadata.get("display") or denom
        name = metadata.get("name") or display
        return DenomClassification("metadata", str(display).upper(), str(name), decimals)

    if denom == NATIVE_DENOM:
        return DenomClassification("native", "INJ", "Injective", decimals)

    if denom.startswith(PEGGY_PREFIX):
        known = get_token_by_denom(denom)
        if known is not None:
            return DenomClassification("peggy", known.display_name, f"Peggy Token ({known.display_name})", decimals)
        symbol = denom[6:14] + "..."
        return DenomClassification("peggy", symbol.upper(), f"Peggy Token ({symbol})", decimals)

    if denom.startswith(FACTORY_PREFIX):
        display = denom.split("/")[-1].upper()
        return DenomClassification("factory", display, f"Factory Token ({display})", decimals)

    return DenomClassification("unknown", denom.upper(), denom, decimals)


__all__ = [
    "TokenDescriptor",
    "KNOWN_TOKENS",
    "KNOWN_DECIMALS",
    "DenomClassification",
    "get_token",
    "is_known_token",
    "get_token_by_denom",
    "resolve_decimals",
    "classify_denom",
]
