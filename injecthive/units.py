"""
Conversion between raw on-chain integer amounts and human-readable decimals.

Raw amounts are strings in the token's smallest unit. Values routinely exceed
2**53 for 18-decimal tokens, so everything here stays in ``Decimal``; floats
are only acceptable downstream for USD estimates.
"""

from decimal import Context, Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

# Enough digits for 18-decimal tokens with very large supplies
_CONTEXT = Context(prec=78)

Amount = Union[str, int, Decimal]


class InvalidAmountError(ValueError):
    """Raised when an amount cannot be parsed as a number."""


def _parse(value: Amount) -> Decimal:
    if isinstance(value, bool):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if isinstance(value, float):
        value = repr(value)
    try:
        parsed = _CONTEXT.create_decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(f"Invalid amount: {value!r}") from exc
    if not parsed.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    return parsed


def is_human_readable(raw: Amount) -> bool:
    """Whether ``raw`` already looks scaled to display units.

    Some upstream calls return pre-scaled amounts ("5.0") while others return
    smallest-unit integers ("5000000000000000000"); a decimal point is the only
    signal available to tell them apart.
    """
    return isinstance(raw, str) and "." in raw


def to_human(raw: Amount, decimals: int) -> Decimal:
    """Scale a raw integer amount down to display units.

    Strings that already contain a decimal point are returned as parsed.
    """
    if decimals < 0:
        raise InvalidAmountError(f"Invalid decimals: {decimals}")

    value = _parse(raw)
    if is_human_readable(raw):
        return value
    if value == 0:
        return Decimal(0)
    return _CONTEXT.divide(value, Decimal(10) ** decimals)


def to_raw(human: Amount, decimals: int) -> str:
    """Scale a display amount up to a plain integer string in the smallest unit.

    Anything below one smallest unit is truncated.
    """
    if decimals < 0:
        raise InvalidAmountError(f"Invalid decimals: {decimals}")

    value = _parse(human)
    if value < 0:
        raise InvalidAmountError(f"Amount must not be negative: {human!r}")

    scaled = _CONTEXT.multiply(value, Decimal(10) ** decimals)
    integral = scaled.quantize(Decimal(1), rounding=ROUND_DOWN, context=_CONTEXT)
    return format(integral, "f")


def to_float(raw: Amount, decimals: int) -> float:
    """Display amount as a float, for USD estimates only."""
    return float(to_human(raw, decimals))


__all__ = [
    "InvalidAmountError",
    "is_human_readable",
    "to_human",
    "to_raw",
    "to_float",
]
