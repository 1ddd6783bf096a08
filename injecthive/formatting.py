"""Number formatting shared by the chat replies."""

from decimal import Decimal
from typing import Union

Number = Union[int, float, Decimal]

EXPLORER_URL = "https://explorer.injective.network"
MINTSCAN_URL = "https://www.mintscan.io/injective"


def format_usd(value: Number) -> str:
    """``$1,234.56``"""
    return f"${float(value):,.2f}"


def format_price(value: Number) -> str:
    """Prices keep more precision below a dollar so small caps don't render as $0.00."""
    value = float(value)
    if value >= 1:
        return f"${value:,.2f}"
    if value >= 0.01:
        return f"${value:,.4f}"
    return f"${value:,.8f}"


def format_compact_usd(value: Number) -> str:
    """Large TVL-style figures: ``$1.23B``, ``$45.60M``, otherwise full dollars."""
    value = float(value)
    if abs(value) >= 1e9:
        return f"${value / 1e9:.2f}B"
    if abs(value) >= 1e6:
        return f"${value / 1e6:.2f}M"
    if abs(value) >= 1e3:
        return f"${value / 1e3:.2f}K"
    return f"${value:,.2f}"


def format_amount(value: Number, max_decimals: int = 6) -> str:
    """Token amount with thousands separators and trailing zeros removed."""
    text = f"{Decimal(str(value)):,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_percent(value: Number) -> str:
    value = float(value)
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"


def tx_links(tx_hash: str) -> str:
    return (
        f"- [Injective Explorer]({EXPLORER_URL}/transaction/{tx_hash})\n"
        f"- [Mintscan]({MINTSCAN_URL}/txs/{tx_hash})"
    )


def account_links(address: str) -> str:
    return (
        f"- [View on Injective Explorer]({EXPLORER_URL}/account/{address})\n"
        f"- [View on Mintscan]({MINTSCAN_URL}/address/{address})"
    )
