"""Unit tests for the quick two-column estimate."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from finiquito.backend.app.models import Perception, SettlementPerceptions, SeverancePerceptions
from finiquito.backend.app.services.calculators import IncomeTaxCalculator
from finiquito.backend.app.services.estimate_service import (
    calculate_estimate,
    daily_salary_from,
    estimate_withholding,
)
from finiquito.backend.app.services.settlement_service import (
    load_configuration,
    resolve_constants,
)

GOLDEN_PAYLOAD: dict[str, Any] = {
    "hire_date": "2025-01-01",
    "termination_date": "2025-01-29",
    "salary": 12999.90,
    "salary_frequency": "monthly",
    "days_factor": 30,
    "fiscal_daily_salary": 278.80,
}


@pytest.mark.parametrize(
    ("salary", "frequency", "expected"),
    [
        ("650", "daily", Decimal("650.00")),
        ("7000", "weekly", Decimal("1000.00")),
        ("4500", "biweekly", Decimal("300.00")),
        ("12999.90", "monthly", Decimal("427.63")),
    ],
)
def test_daily_salary_from_frequency(salary: str, frequency: str, expected: Decimal) -> None:
    assert daily_salary_from(Decimal(salary), frequency, Decimal("30.4")) == expected


def test_golden_estimate() -> None:
    result = calculate_estimate(GOLDEN_PAYLOAD)

    fiscal = result["fiscal"]
    real = result["real"]
    assert fiscal["daily_salary"] == pytest.approx(278.80)
    assert fiscal["lines"]["vacation"] == pytest.approx(264.86)
    assert fiscal["lines"]["vacation_premium"] == pytest.approx(66.91)
    assert fiscal["lines"]["christmas_bonus"] == pytest.approx(331.77)
    assert fiscal["withholding"] == pytest.approx(0.50)
    assert fiscal["net"] == pytest.approx(663.04, abs=0.5)
    assert real["daily_salary"] == pytest.approx(433.33)
    assert real["deductions"] == 0
    assert real["net"] == pytest.approx(1031.33, abs=0.5)
    assert result["total"] == pytest.approx(1694.37, abs=0.5)
    assert result["total"] == pytest.approx(fiscal["net"] + real["net"])


def test_estimate_reports_the_integrated_daily_salary() -> None:
    result = calculate_estimate(GOLDEN_PAYLOAD)

    assert result["integrated_daily_salary"] == pytest.approx(292.55)
    assert result["meta"]["vacation_entitlement_days"] == 12


def test_fiscal_column_defaults_to_the_zone_minimum_wage() -> None:
    payload = {key: value for key, value in GOLDEN_PAYLOAD.items() if key != "fiscal_daily_salary"}

    general = calculate_estimate(payload)
    border = calculate_estimate({**payload, "border_zone": True})

    assert general["fiscal"]["daily_salary"] == pytest.approx(278.80)
    assert border["fiscal"]["daily_salary"] == pytest.approx(419.88)


def test_explicit_withholding_and_manual_deductions() -> None:
    result = calculate_estimate(
        {
            **GOLDEN_PAYLOAD,
            "withholding_amount": 12.5,
            "manual_deductions": {"consumer_credit": 100, "subsidy": 20},
        }
    )

    fiscal = result["fiscal"]
    assert fiscal["withholding"] == pytest.approx(12.50)
    assert fiscal["manual_deductions"] == pytest.approx(120.00)
    assert fiscal["net"] == pytest.approx(663.54 - 132.50)


def test_large_fiscal_columns_withhold_income_tax() -> None:
    result = calculate_estimate(
        {
            "hire_date": "2022-01-10",
            "termination_date": "2025-06-30",
            "salary": 60000,
            "fiscal_daily_salary": 1500,
        }
    )

    fiscal = result["fiscal"]
    assert fiscal["perceptions"] > 1000
    assert fiscal["withholding"] > 0.50


def test_gratification_is_paid_on_the_real_column() -> None:
    result = calculate_estimate({**GOLDEN_PAYLOAD, "gratification_days": 10})

    assert result["real"]["lines"]["gratification"] == pytest.approx(4333.30)
    assert "gratification" not in result["fiscal"]["lines"]


def test_real_hire_date_recomputes_the_real_column() -> None:
    result = calculate_estimate({**GOLDEN_PAYLOAD, "real_hire_date": "2024-01-01"})

    assert result["real_concepts"]["vacation_days"] == pytest.approx(1.11)
    assert result["concepts"]["vacation_days"] == pytest.approx(0.95)


def test_gratification_days_and_amount_are_exclusive() -> None:
    with pytest.raises(ValueError, match="gratification"):
        calculate_estimate(
            {**GOLDEN_PAYLOAD, "gratification_days": 5, "gratification_amount": 100}
        )


def test_worked_and_severance_days_are_priced_in_both_columns() -> None:
    result = calculate_estimate(
        {
            **GOLDEN_PAYLOAD,
            "worked_days": 5,
            "severance_days": 90,
            "seniority_premium_days": 12,
            "withholding_amount": 0.50,
        }
    )

    fiscal = result["fiscal"]
    assert fiscal["lines"]["worked_days"] == pytest.approx(1394.00)
    assert fiscal["lines"]["severance"] == pytest.approx(25092.00)
    assert fiscal["lines"]["seniority_premium"] == pytest.approx(3345.60)
    assert fiscal["perceptions"] == pytest.approx(30495.14)
    assert fiscal["net"] == pytest.approx(30494.64)

    real = result["real"]
    assert real["lines"]["worked_days"] == pytest.approx(2166.65)
    assert real["lines"]["severance"] == pytest.approx(38999.70)
    assert real["lines"]["seniority_premium"] == pytest.approx(5199.96)
    assert real["perceptions"] == pytest.approx(47397.63)
    assert real["net"] == pytest.approx(real["perceptions"])


def test_severance_days_raise_the_income_tax_withheld() -> None:
    payload = {
        "hire_date": "2022-01-10",
        "termination_date": "2025-06-30",
        "salary": 60000,
        "fiscal_daily_salary": 1500,
    }

    without = calculate_estimate(payload)["fiscal"]["withholding"]
    with_severance = calculate_estimate({**payload, "severance_days": 90})["fiscal"]["withholding"]

    assert with_severance > without


@pytest.fixture()
def june_constants():
    on = date(2025, 6, 30)
    configuration = load_configuration(on)
    return resolve_constants(configuration, on), configuration.settlement.estimate_withholding


def _vacation_pay(total: str) -> SettlementPerceptions:
    amount = Decimal(total)
    return SettlementPerceptions(
        vacation=Perception(quantity=Decimal("3"), taxable_base=amount, total_amount=amount)
    )


def test_withholding_threshold_boundary(june_constants) -> None:
    constants, settings = june_constants
    daily = Decimal("333.33")

    below = estimate_withholding(
        _vacation_pay("999.99"), SeverancePerceptions(), daily, constants, settings
    )
    at = estimate_withholding(
        _vacation_pay("1000.00"), SeverancePerceptions(), daily, constants, settings
    )
    empty = estimate_withholding(
        SettlementPerceptions(), SeverancePerceptions(), daily, constants, settings
    )

    expected = IncomeTaxCalculator(
        constants.tax_table, constants.reference_days_per_month
    ).settlement_tax(_vacation_pay("1000.00"))
    assert below == Decimal("0.50")
    assert at == expected.total
    assert at > Decimal("0.50")
    assert empty == Decimal("0")


def test_gratification_amount_reports_its_days() -> None:
    result = calculate_estimate({**GOLDEN_PAYLOAD, "gratification_amount": 1000})

    assert result["real"]["lines"]["gratification"] == pytest.approx(1000.00)
    # 1000 / 433.33
    assert result["meta"]["gratification_days"] == pytest.approx(2.3077)
    assert result["meta"]["gratification_amount"] == pytest.approx(1000.00)


def test_gratification_days_report_their_amount() -> None:
    result = calculate_estimate({**GOLDEN_PAYLOAD, "gratification_days": 10})

    assert result["meta"]["gratification_days"] == pytest.approx(10)
    assert result["meta"]["gratification_amount"] == pytest.approx(4333.30)
