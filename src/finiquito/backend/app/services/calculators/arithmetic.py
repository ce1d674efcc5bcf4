"""Fixed-point arithmetic shared by every settlement calculation.

Values are carried at a *working precision* (five fractional digits unless a
caller asks for more) and reported at a *result precision* of two digits.
Both roundings use banker's rounding (``ROUND_HALF_EVEN``); amounts such as
``0.125`` therefore report as ``0.12`` rather than ``0.13``.

Addition, subtraction and multiplication are exact. Division and percentages
round to the working precision at each step, so chained operations reproduce
the published reference figures cent for cent.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Context, Decimal
from typing import Union

Number = Union["Amount", Decimal, int, float, str]

DEFAULT_WORKING_PLACES = 5
RESULT_PLACES = 2

# Large enough that add/subtract/multiply never round.
_EXACT = Context(prec=60, rounding=ROUND_HALF_EVEN)


def to_decimal(value: Number) -> Decimal:
    """Convert ``value`` into a :class:`~decimal.Decimal` without float noise."""

    if isinstance(value, Amount):
        return value.raw
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize(value: Decimal, places: int) -> Decimal:
    """Round ``value`` to ``places`` fractional digits using banker's rounding."""

    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_EVEN, context=_EXACT)


def round_currency(value: Number) -> Decimal:
    """Round monetary amounts to two decimals."""

    return quantize(to_decimal(value), RESULT_PLACES)


class Amount:
    """Immutable decimal value with explicit working precision."""

    __slots__ = ("_raw", "_places")

    def __init__(self, value: Number = 0, working_places: int = DEFAULT_WORKING_PLACES) -> None:
        if working_places < 0:
            raise ValueError("Working precision cannot be negative")
        self._raw = to_decimal(value)
        self._places = working_places

    @property
    def raw(self) -> Decimal:
        return self._raw

    @property
    def working_places(self) -> int:
        return self._places

    @property
    def value(self) -> Decimal:
        """Value rounded to the working precision."""

        return quantize(self._raw, self._places)

    @property
    def result(self) -> Decimal:
        """Value rounded to the two-digit result precision."""

        return quantize(self._raw, RESULT_PLACES)

    def _derive(self, raw: Decimal) -> Amount:
        return Amount(raw, self._places)

    def add(self, other: Number) -> Amount:
        return self._derive(_EXACT.add(self._raw, to_decimal(other)))

    def subtract(self, other: Number) -> Amount:
        return self._derive(_EXACT.subtract(self._raw, to_decimal(other)))

    def multiply(self, other: Number) -> Amount:
        return self._derive(_EXACT.multiply(self._raw, to_decimal(other)))

    def divide(self, other: Number) -> Amount:
        """Divide by ``other``; an exact zero is returned unchanged."""

        if self._raw == 0:
            return self
        quotient = _EXACT.divide(self._raw, to_decimal(other))
        return self._derive(quantize(quotient, self._places))

    def percentage(self, percent: Number) -> Amount:
        """Return ``percent`` per cent of this value."""

        scaled = _EXACT.multiply(self._raw, to_decimal(percent))
        return self._derive(quantize(_EXACT.divide(scaled, Decimal(100)), self._places))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Amount):
            return self._raw == other._raw
        if isinstance(other, (Decimal, int)):
            return self._raw == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        return f"Amount({str(self._raw)!r}, working_places={self._places})"


def sum_amounts(*values: Number, working_places: int = DEFAULT_WORKING_PLACES) -> Amount:
    """Add ``values`` exactly, starting from zero."""

    total = Amount(0, working_places)
    for value in values:
        total = total.add(value)
    return total


__all__ = [
    "Amount",
    "DEFAULT_WORKING_PLACES",
    "Number",
    "RESULT_PLACES",
    "quantize",
    "round_currency",
    "sum_amounts",
    "to_decimal",
]
