"""Unit tests for the fixed-point arithmetic helpers."""

from __future__ import annotations

from decimal import Decimal

import pytest

from finiquito.backend.app.services.calculators.arithmetic import (
    Amount,
    quantize,
    round_currency,
    sum_amounts,
    to_decimal,
)


def test_result_uses_bankers_rounding() -> None:
    assert Amount("0.125").result == Decimal("0.12")
    assert Amount("0.135").result == Decimal("0.14")
    assert round_currency("2.675") == Decimal("2.68")


def test_floats_convert_through_their_shortest_representation() -> None:
    assert to_decimal(0.1) == Decimal("0.1")
    assert Amount(12999.90).divide(30).result == Decimal("433.33")


def test_division_rounds_to_working_precision() -> None:
    amount = Amount(1).divide(3)

    assert amount.value == Decimal("0.33333")
    assert Amount(1, 12).divide(3).value == Decimal("0.333333333333")


def test_division_of_zero_returns_the_same_amount() -> None:
    zero = Amount(0)

    assert zero.divide(0) is zero
    assert zero.divide(7).result == Decimal("0.00")


def test_multiplication_and_addition_are_exact() -> None:
    amount = Amount("278.80").multiply("0.95").add("0.004")

    assert amount.raw == Decimal("264.864")
    assert amount.result == Decimal("264.86")


def test_percentage_rounds_half_even_at_working_precision() -> None:
    assert Amount("0.95").percentage(25).value == Decimal("0.23750")
    assert Amount("0.95").percentage(25).result == Decimal("0.24")


def test_amount_is_immutable() -> None:
    original = Amount(10)
    original.add(5)

    assert original == Decimal(10)


def test_sum_amounts_starts_from_zero() -> None:
    assert sum_amounts().result == Decimal("0.00")
    assert sum_amounts("1.10", Amount("2.20"), 3).result == Decimal("6.30")


def test_negative_working_precision_is_rejected() -> None:
    with pytest.raises(ValueError):
        Amount(1, -1)


def test_quantize_accepts_places() -> None:
    assert quantize(Decimal("1.23456"), 3) == Decimal("1.235")
