"""Quick two-column estimate comparing the declared and the actual salary."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from finiquito.backend.app.models import (
    ZERO,
    EstimateColumn,
    EstimateRequest,
    EstimateResult,
    ManualDeductions,
    PayrollConstants,
    ProportionalSettlementConcepts,
    Seniority,
    SettlementConcepts,
    SettlementPerceptions,
    SeverancePerceptions,
    as_payload,
)
from finiquito.backend.config.year_config import EstimateWithholding, load_benefit_tables

from .calculators import (
    SEVERANCE_EXEMPTION_PRIORITY,
    Amount,
    IncomeTaxCalculator,
    PerceptionCalculator,
    ProportionalCalculator,
    ProportionalOverrides,
    consume_exemption,
    sum_amounts,
)
from .settlement_service import (
    integrated_daily_salary,
    load_configuration,
    resolve_constants,
    resolve_date_operations,
    validate_request,
)

_LOGGER = logging.getLogger(__name__)

SALARY_DIVISORS: Mapping[str, Decimal] = {
    "daily": Decimal("1"),
    "weekly": Decimal("7"),
    "biweekly": Decimal("15"),
}

SETTLEMENT_LINES = (
    "worked_days",
    "vacation",
    "vacation_premium",
    "christmas_bonus",
    "pending_vacation",
    "pending_vacation_premium",
)

# Estimate line -> severance perception carrying it.
SEVERANCE_LINES: Mapping[str, str] = {
    "severance": "ninety_day_indemnity",
    "seniority_premium": "seniority_bonus",
}

ESTIMATE_LINES = SETTLEMENT_LINES + tuple(SEVERANCE_LINES)

GRATIFICATION_DAY_PLACES = 4


def daily_salary_from(salary: Decimal, frequency: str, days_factor: Decimal) -> Decimal:
    """Convert a periodic salary into a daily salary rounded to cents."""

    divisor = days_factor if frequency == "monthly" else SALARY_DIVISORS[frequency]
    return Amount(salary).divide(divisor).result


def _concepts(
    accrued: ProportionalSettlementConcepts, request: EstimateRequest
) -> SettlementConcepts:
    return SettlementConcepts(
        worked_days=request.worked_days,
        vacation_days=accrued.vacation_days,
        premium_vacation_days=accrued.vacation_days,
        pending_vacation_days=request.pending_vacation_days,
        pending_premium_vacation_days=request.pending_vacation_days,
        christmas_bonus_days=accrued.christmas_bonus_days,
    )


def severance_perceptions(
    pricing: PerceptionCalculator,
    daily_salary: Decimal,
    request: EstimateRequest,
    seniority: Seniority,
) -> SeverancePerceptions:
    """Severance and seniority-premium days at ``daily_salary`` with the exempt pool applied."""

    perceptions = {
        SEVERANCE_LINES["severance"]: pricing.concept(daily_salary, request.severance_days),
        SEVERANCE_LINES["seniority_premium"]: pricing.concept(
            daily_salary, request.seniority_premium_days
        ),
    }
    pool = pricing.exempt_pool(seniority)
    for name in SEVERANCE_EXEMPTION_PRIORITY:
        if name in perceptions:
            perceptions[name], pool = consume_exemption(perceptions[name], pool)
    return SeverancePerceptions(**perceptions)


def _lines(
    perceptions: SettlementPerceptions, severance: SeverancePerceptions
) -> dict[str, Decimal]:
    lines = {name: getattr(perceptions, name).total_amount for name in SETTLEMENT_LINES}
    for line, name in SEVERANCE_LINES.items():
        lines[line] = getattr(severance, name).total_amount
    return lines


def estimate_withholding(
    perceptions: SettlementPerceptions,
    severance: SeverancePerceptions,
    daily_salary: Decimal,
    constants: PayrollConstants,
    settings: EstimateWithholding,
) -> Decimal:
    """Withholding of the fiscal column.

    Below ``settings.threshold`` the column withholds the nominal
    ``settings.amount`` (nothing when there are no perceptions). From the
    threshold upwards it withholds the table tax of a full settlement,
    severance included, so crossing the threshold jumps from the nominal
    amount to that tax.
    """

    total = sum_amounts(*_lines(perceptions, severance).values())
    if total.result < settings.threshold:
        return settings.amount if total.result > 0 else ZERO

    taxes = IncomeTaxCalculator(constants.tax_table, constants.reference_days_per_month)
    settlement_tax = taxes.settlement_tax(perceptions)
    bonus_tax = taxes.bonus_tax(perceptions, daily_salary)
    severance_tax = taxes.severance_tax(severance, daily_salary)
    return sum_amounts(
        settlement_tax.total,
        bonus_tax.total if bonus_tax is not None else ZERO,
        severance_tax.total,
    ).result


def gratification_days_from(amount: Decimal, real_daily_salary: Decimal) -> Decimal:
    """Days of real salary a gratification amount is worth."""

    if real_daily_salary <= 0:
        return ZERO
    return Amount(amount, GRATIFICATION_DAY_PLACES).divide(real_daily_salary).value


def _column(
    daily_salary: Decimal,
    lines: dict[str, Decimal],
    withholding: Decimal = ZERO,
    manual_deductions: Decimal = ZERO,
) -> EstimateColumn:
    total = sum_amounts(*lines.values())
    deductions = sum_amounts(withholding, manual_deductions)
    return EstimateColumn(
        daily_salary=daily_salary,
        lines=lines,
        perceptions=total.result,
        withholding=withholding,
        manual_deductions=manual_deductions,
        deductions=deductions.result,
        net=Amount(total.result).subtract(deductions.result).result,
    )


def calculate_estimate(payload: Mapping[str, Any] | EstimateRequest) -> dict[str, Any]:
    """Price the fiscal and real columns of a quick settlement estimate."""

    request = validate_request(EstimateRequest, payload)
    termination = request.termination_date
    year_configuration = load_configuration(termination)
    constants = resolve_constants(year_configuration, termination, request.border_zone)

    benefits = request.benefits
    settings = ProportionalOverrides(
        vacation_premium_percent=benefits.vacation_premium_percent,
        christmas_bonus_days=benefits.christmas_bonus_days,
    )
    proportional = ProportionalCalculator(
        load_benefit_tables(), resolve_date_operations(request.timezone)
    )
    pricing = PerceptionCalculator.from_constants(constants)
    premium_percent = benefits.vacation_premium_percent

    seniority = proportional.seniority(request.hire_date, termination)
    accrued = proportional.proportional_benefits(request.hire_date, termination, settings)
    real_seniority = seniority
    real_accrued: ProportionalSettlementConcepts | None = None
    if request.real_hire_date is not None and request.real_hire_date != request.hire_date:
        real_seniority = proportional.seniority(request.real_hire_date, termination)
        real_accrued = proportional.proportional_benefits(
            request.real_hire_date, termination, settings
        )

    fiscal_daily = request.fiscal_daily_salary or constants.minimum_wage
    real_daily = daily_salary_from(request.salary, request.salary_frequency, request.days_factor)
    _LOGGER.debug("Estimate daily salaries: fiscal=%s real=%s", fiscal_daily, real_daily)

    fiscal_perceptions = pricing.settlement_perceptions(
        fiscal_daily, _concepts(accrued, request), premium_percent=premium_percent
    )
    fiscal_severance = severance_perceptions(pricing, fiscal_daily, request, seniority)
    if request.withholding_amount is not None:
        withholding = Amount(request.withholding_amount).result
    else:
        withholding = estimate_withholding(
            fiscal_perceptions,
            fiscal_severance,
            fiscal_daily,
            constants,
            year_configuration.settlement.estimate_withholding,
        )
    manual = request.manual_deductions
    manual_total = sum_amounts(
        *(
            line.amount
            for line in ManualDeductions(
                housing_credit=manual.housing_credit,
                consumer_credit=manual.consumer_credit,
                other=manual.other,
                subsidy=manual.subsidy,
            ).as_lines()
        )
    )
    fiscal = _column(
        fiscal_daily,
        _lines(fiscal_perceptions, fiscal_severance),
        withholding=withholding,
        manual_deductions=manual_total.result,
    )

    real_perceptions = pricing.settlement_perceptions(
        real_daily, _concepts(real_accrued or accrued, request), premium_percent=premium_percent
    )
    real_severance = severance_perceptions(pricing, real_daily, request, real_seniority)
    gratification_days = request.gratification_days
    gratification = Amount(request.gratification_amount).result
    if gratification_days > 0:
        gratification = pricing.concept(real_daily, gratification_days).total_amount
    elif gratification > 0:
        gratification_days = gratification_days_from(gratification, real_daily)
    real_lines = _lines(real_perceptions, real_severance)
    real_lines["gratification"] = gratification
    real = _column(real_daily, real_lines)

    entitlement = proportional.vacation_entitlement(termination, seniority.factor)
    result = EstimateResult(
        seniority=seniority,
        concepts=accrued,
        real_concepts=real_accrued,
        fiscal=fiscal,
        real=real,
        integrated_daily_salary=integrated_daily_salary(
            fiscal_daily, benefits.christmas_bonus_days, entitlement, premium_percent
        ),
        total=sum_amounts(fiscal.net, real.net).result,
    )

    response = as_payload(result)
    response["meta"] = {
        "year": termination.year,
        "salary_frequency": request.salary_frequency,
        "days_factor": float(request.days_factor),
        "vacation_entitlement_days": entitlement,
        "gratification_days": float(gratification_days),
        "gratification_amount": float(gratification),
    }
    return response


__all__ = [
    "ESTIMATE_LINES",
    "SEVERANCE_LINES",
    "calculate_estimate",
    "daily_salary_from",
    "estimate_withholding",
    "gratification_days_from",
    "severance_perceptions",
]
