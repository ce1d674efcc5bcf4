"""Unit tests for the INFONAVIT housing-credit deduction."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from finiquito.backend.app.models import (
    HousingCredit,
    HousingCreditDay,
    HousingCreditSettings,
)
from finiquito.backend.app.services.calculators import (
    HousingCreditCalculator,
    bimester_days,
    housing_credit_deduction,
)

MINIMUM_WAGE = Decimal("278.80")


def pending(
    discount_type: str,
    discount_value: str,
    days: int,
    *,
    on: date = date(2025, 6, 30),
    daily_salary: Decimal = MINIMUM_WAGE,
    integrated: str = "300",
    variable_salary: str = "0",
) -> tuple[HousingCreditDay, ...]:
    credit = HousingCredit(
        discount_type=discount_type,  # type: ignore[arg-type]
        discount_value=Decimal(discount_value),
        pending_days=days,
    )
    return HousingCreditCalculator.pending_days(
        credit,
        on,
        daily_salary=daily_salary,
        integrated_daily_salary=Decimal(integrated),
        minimum_wage=MINIMUM_WAGE,
        umi=Decimal("100.81"),
        variable_salary=Decimal(variable_salary),
    )


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2025, 1, 15), 59),
        (date(2025, 2, 28), 59),
        (date(2025, 3, 1), 61),
        (date(2025, 7, 31), 62),
        (date(2025, 8, 1), 62),
        (date(2025, 12, 31), 61),
    ],
)
def test_bimester_days(day: date, expected: int) -> None:
    assert bimester_days(day) == expected


def test_percentage_discount_is_capped_at_twenty_percent_of_sdi() -> None:
    values = pending("percentage", "25", 3)

    # 25% of 300 is 75 a day; the cap allows 60
    assert housing_credit_deduction(values) == Decimal("180.00")


def test_cap_does_not_apply_when_disabled() -> None:
    values = pending("percentage", "25", 3)

    total = housing_credit_deduction(values, HousingCreditSettings(cap_disabled=True))

    assert total == Decimal("225.00")


@pytest.mark.parametrize(
    ("daily_salary", "variable_salary"),
    [(Decimal("310.00"), "0"), (MINIMUM_WAGE, "15.50")],
)
def test_cap_only_applies_at_minimum_wage_without_variable_salary(
    daily_salary: Decimal, variable_salary: str
) -> None:
    values = pending(
        "percentage", "25", 3, daily_salary=daily_salary, variable_salary=variable_salary
    )

    assert housing_credit_deduction(values) == Decimal("225.00")


def test_fixed_amount_default_method_spreads_over_the_bimester() -> None:
    values = pending("fixed_amount", "1220", 4, integrated="1000")

    # 1220 * 2 / 61 = 40 a day in June
    assert housing_credit_deduction(values) == Decimal("160.00")


def test_fixed_amount_simplified_method_spreads_over_pending_days() -> None:
    values = pending("fixed_amount", "1220", 10, integrated="1000")
    settings = HousingCreditSettings(fixed_amount_method="simplified")

    assert housing_credit_deduction(values, settings) == Decimal("610.00")


def test_umi_factor_discount_uses_the_january_bimester() -> None:
    values = pending("umi_factor", "5", 2, on=date(2025, 1, 29), integrated="1000")

    # 5 * 2 * 100.81 / 59 = 17.08644 a day
    assert housing_credit_deduction(values) == Decimal("34.17")


def test_separation_days_carry_no_discount() -> None:
    values = pending("percentage", "10", 2)
    values = (values[0], replace(values[1], separation_day=True))

    assert housing_credit_deduction(values) == Decimal("30.00")


def test_no_pending_days_means_no_deduction() -> None:
    assert housing_credit_deduction(pending("percentage", "25", 0)) == Decimal("0.00")


def test_unknown_discount_type_is_rejected() -> None:
    values = pending("percentage", "25", 1)
    broken = (replace(values[0], discount_type="weekly"),)  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="Unsupported"):
        housing_credit_deduction(broken)
