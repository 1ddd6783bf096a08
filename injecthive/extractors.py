"""
Best-effort extraction of tokens, protocols, addresses and amounts from chat text.

Every helper is a pure function that returns ``None`` (or an empty list) when it
cannot find what it is looking for; the calling action then asks the user to
rephrase. Name lists are scanned in order and the first substring hit wins, so
their ordering is significant.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Protocol, Tuple

from .services.tokens import get_token, is_known_token
from .types.intent import ExtractedIntent, IntentKind


# =============================================================================
# Name Tables
# =============================================================================

# (needle, canonical symbol)
COMMON_TOKEN_NAMES: Tuple[Tuple[str, str], ...] = (
    ("inj", "inj"),
    ("injective", "inj"),
    ("usdt", "usdt"),
    ("tether", "usdt"),
    ("usdc", "usdc"),
    ("usd coin", "usdc"),
    ("btc", "btc"),
    ("bitcoin", "btc"),
    ("eth", "eth"),
    ("ethereum", "eth"),
    ("atom", "atom"),
    ("cosmos", "atom"),
    ("osmo", "osmo"),
    ("osmosis", "osmo"),
    ("sei", "sei"),
    ("astro", "astro"),
    ("astroport", "astro"),
)

COMMON_PROTOCOL_NAMES: Tuple[str, ...] = (
    "helix",
    "astroport",
    "hydro",
    "gate.io",
    "portal",
    "axelar",
    "trustake",
    "stride",
    "wormhole",
    "neutron",
    "kado money",
    "kado",
    "white whale",
    "whitewhale",
    "levana",
    "sei",
    "osmosis",
    "cosmos",
    "injective",
    "inj",
)

# =============================================================================
# Patterns
# =============================================================================

_TOKEN_OF_RE = re.compile(r"(?:of|about|for)\s+(?:the\s+)?([a-z0-9\s.]+?)(?:\s+token|\s+coin|\s+price|\s*\?|$)", re.I)
_TOKEN_PRICE_RE = re.compile(r"([a-z0-9\s.]+?)(?:'s|\s+token)?\s+(?:price|value|cost)", re.I)
_TOKEN_WHAT_IS_RE = re.compile(r"what(?:'s| is) (?:the )?(?:price of )?([a-z0-9\s.]+?)(?:\?|$)", re.I)
_TOKEN_LIST_RE = re.compile(r"(?:price of|prices for|compare)\s+([a-z0-9\s,.&and]+)(?:\?|$)", re.I)

_PROTOCOL_OF_RE = re.compile(
    r"(?:of|about|for)\s+(?:the\s+)?([a-z0-9\s.]+?)(?:\s+protocol|\s+on\s+injective|\s+in\s+injective|\s*\?|$)",
    re.I,
)
_PROTOCOL_TVL_RE = re.compile(r"([a-z0-9\s.]+?)(?:'s|\s+protocol)?\s+(?:tvl|total value locked)", re.I)
_PROTOCOL_WHAT_IS_RE = re.compile(r"what(?:'s| is) (?:the )?([a-z0-9\s.]+?)(?:\?|$)", re.I)
_PROTOCOL_SHOW_ME_RE = re.compile(r"(?:show|tell) (?:me|us) (?:about )?(?:the )?([a-z0-9\s.]+?)(?:\?|$)", re.I)

_WALLET_ADDRESS_RE = re.compile(r"inj1[a-zA-Z0-9]{38,}")
_INJ_AMOUNT_RE = re.compile(r"(\d+(\.\d+)?)\s*INJ", re.I)
_TOKEN_AMOUNT_RE = re.compile(r"(\d+(\.\d+)?)\s*([A-Za-z]+)", re.I)
_SWAP_RE = re.compile(r"swap\s+(\d+(\.\d+)?)\s+([a-zA-Z]+)\s+(?:for|to)\s+([a-zA-Z]+)", re.I)
_NUMBER_RE = re.compile(r"\b(\d+)\b")

DEFAULT_PROTOCOL_LIMIT = 5
MAX_PROTOCOL_LIMIT = 20


# =============================================================================
# Tokens
# =============================================================================

def extract_token_denom(text: str) -> Optional[str]:
    """Pull a single token symbol out of a price question."""
    lower = text.lower()

    for needle, symbol in COMMON_TOKEN_NAMES:
        if needle in lower:
            return symbol

    match = _TOKEN_OF_RE.search(lower)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _TOKEN_PRICE_RE.search(lower)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _TOKEN_WHAT_IS_RE.search(lower)
    if match and match.group(1).strip() and "price" not in match.group(1):
        return match.group(1).strip()

    return None


def extract_multiple_token_denoms(text: str) -> List[str]:
    """Every token mentioned in the message, in table order, without duplicates."""
    lower = text.lower()
    tokens: List[str] = []

    for needle, symbol in COMMON_TOKEN_NAMES:
        if needle in lower and symbol not in tokens:
            tokens.append(symbol)

    if tokens:
        return tokens

    match = _TOKEN_LIST_RE.search(lower)
    if match:
        listed = re.sub(r"\s+and\s+", ",", match.group(1))
        for part in re.split(r"[,\s]+", listed):
            part = part.strip()
            if part and part not in tokens:
                tokens.append(part)

    return tokens


# =============================================================================
# Protocols
# =============================================================================

def extract_protocol_name(text: str) -> Optional[str]:
    """Pull a DeFi protocol name out of a TVL or protocol question."""
    lower = text.lower()

    for protocol in COMMON_PROTOCOL_NAMES:
        if protocol in lower:
            return protocol

    match = _PROTOCOL_OF_RE.search(lower)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _PROTOCOL_TVL_RE.search(lower)
    if match and match.group(1).strip():
        return match.group(1).strip()

    for pattern in (_PROTOCOL_WHAT_IS_RE, _PROTOCOL_SHOW_ME_RE):
        match = pattern.search(lower)
        if match and match.group(1).strip() and "tvl" not in match.group(1):
            return match.group(1).strip()

    return None


def extract_limit(
    text: str,
    default: int = DEFAULT_PROTOCOL_LIMIT,
    maximum: int = MAX_PROTOCOL_LIMIT,
) -> int:
    """First bare integer in the message when it falls in ``1..maximum``."""
    match = _NUMBER_RE.search(text)
    if match:
        value = int(match.group(1))
        if 1 <= value <= maximum:
            return value
    return default


# =============================================================================
# Addresses and Amounts
# =============================================================================

def _to_decimal(value: str) -> Optional[Decimal]:
    try:
        return Decimal(value)
    except InvalidOperation:
        return None


def extract_wallet_address(text: str) -> Optional[str]:
    """First ``inj1...`` address in the message. No checksum validation."""
    match = _WALLET_ADDRESS_RE.search(text)
    return match.group(0) if match else None


def extract_inj_amount(text: str) -> Optional[Decimal]:
    match = _INJ_AMOUNT_RE.search(text)
    if not match:
        return None
    return _to_decimal(match.group(1))


def extract_token_amount(text: str) -> Optional[Tuple[Decimal, str]]:
    """First ``<number> <symbol>`` pair, with the symbol lowercased."""
    match = _TOKEN_AMOUNT_RE.search(text)
    if not match:
        return None
    amount = _to_decimal(match.group(1))
    if amount is None:
        return None
    return amount, match.group(3).lower()


@dataclass(frozen=True)
class SwapDetails:
    source_token: str
    dest_token: str
    amount: Decimal


def extract_swap_details(text: str) -> Optional[SwapDetails]:
    """Parse ``swap <amount> <token> for|to <token>``; both tokens must be known."""
    match = _SWAP_RE.search(text)
    if not match:
        return None

    amount = _to_decimal(match.group(1))
    source_token = match.group(3).lower()
    dest_token = match.group(4).lower()
    if amount is None or not is_known_token(source_token) or not is_known_token(dest_token):
        return None

    return SwapDetails(source_token=source_token, dest_token=dest_token, amount=amount)


@dataclass(frozen=True)
class SwapMode:
    simulate: bool = False
    debug: bool = False


def detect_swap_mode(text: str) -> SwapMode:
    lower = text.lower()
    simulate = "simulate" in lower or "test" in lower or "dry run" in lower
    return SwapMode(simulate=simulate, debug="debug" in lower)


# =============================================================================
# Pluggable Intent Extraction
# =============================================================================

class IntentExtractor(Protocol):
    """Turns a chat message into a structured intent, or ``None`` when unsure."""

    def extract(self, text: str) -> Optional[ExtractedIntent]:
        ...


class RegexIntentExtractor:
    """Keyword routing on top of the regex helpers above."""

    def extract(self, text: str) -> Optional[ExtractedIntent]:
        lower = text.lower()

        if "swap" in lower:
            details = extract_swap_details(text)
            if details is None:
                return None
            return ExtractedIntent(
                kind=IntentKind.SWAP,
                params={
                    "source_token": details.source_token,
                    "dest_token": details.dest_token,
                    "amount": str(details.amount),
                },
            )

        if "send" in lower or "transfer" in lower:
            address = extract_wallet_address(text)
            if address is None:
                return None
            # the bech32 body would otherwise read as "<digits><symbol>"
            token_amount = extract_token_amount(text.replace(address, " "))
            if token_amount is None:
                return None
            amount, symbol = token_amount
            if get_token(symbol) is None:
                return None
            return ExtractedIntent(
                kind=IntentKind.TRANSFER,
                params={"recipient": address, "amount": str(amount), "token": symbol},
            )

        if "tvl" in lower or "total value locked" in lower or "protocol" in lower:
            name = extract_protocol_name(text)
            if name is None:
                return None
            return ExtractedIntent(kind=IntentKind.PROTOCOL_INFO, params={"protocol": name})

        if "price" in lower or "worth" in lower or "cost" in lower:
            denom = extract_token_denom(text)
            if denom is None:
                return None
            return ExtractedIntent(kind=IntentKind.PRICE, params={"denom": denom})

        if "balance" in lower:
            params = {}
            address = extract_wallet_address(text)
            if address:
                params["address"] = address
            return ExtractedIntent(kind=IntentKind.BALANCE, params=params)

        return None


__all__ = [
    "COMMON_TOKEN_NAMES",
    "COMMON_PROTOCOL_NAMES",
    "extract_token_denom",
    "extract_multiple_token_denoms",
    "extract_protocol_name",
    "extract_limit",
    "extract_wallet_address",
    "extract_inj_amount",
    "extract_token_amount",
    "SwapDetails",
    "extract_swap_details",
    "SwapMode",
    "detect_swap_mode",
    "IntentExtractor",
    "RegexIntentExtractor",
]
