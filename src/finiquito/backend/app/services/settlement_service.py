"""Settlement orchestration composing the proportional, perception, tax and credit calculators."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from time import perf_counter
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from finiquito.backend.app.models import (
    ZERO,
    AccumulatedHistory,
    ConceptLine,
    ConceptLineInput,
    DeductionSummary,
    HousingCredit,
    HousingCreditSettings,
    ManualDeductions,
    PayrollConstants,
    ProportionalSeveranceConcepts,
    ScenarioTotals,
    SettlementConcepts,
    SettlementConfiguration,
    SettlementFactors,
    SettlementPerceptions,
    SettlementRequest,
    SettlementResult,
    SettlementTaxes,
    SettlementTotals,
    SeverancePerceptions,
    TaxResult,
    as_payload,
    format_validation_error,
)
from finiquito.backend.config.year_config import (
    YearConfiguration,
    configuration_for_date,
    load_benefit_tables,
)

from .calculators import (
    DEFAULT_TIMEZONE,
    Amount,
    DateOperations,
    HousingCreditCalculator,
    IncomeTaxCalculator,
    PerceptionCalculator,
    ProportionalCalculator,
    ProportionalOverrides,
    sum_amounts,
    table_rows,
)

_LOGGER = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("FINIQUITO_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def validate_request(model: type[RequestT], payload: Mapping[str, Any] | RequestT) -> RequestT:
    """Validate ``payload`` against ``model``, raising ``ValueError`` on failure."""

    if isinstance(payload, model):
        data: Any = payload.model_dump(mode="python")
    elif isinstance(payload, Mapping):
        data = payload
    else:
        raise ValueError("Payload must be a mapping")

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def load_configuration(on: date) -> YearConfiguration:
    """Return the payroll constants file covering ``on``."""

    try:
        return configuration_for_date(on)
    except FileNotFoundError as exc:
        raise ValueError(f"No payroll constants configured for {on.year}") from exc


def resolve_constants(
    configuration: YearConfiguration, on: date, border_zone: bool = False
) -> PayrollConstants:
    """Pick the values in force on ``on`` for the requested wage zone."""

    return PayrollConstants(
        uma=configuration.uma_for(on),
        umi=configuration.umi_for(on),
        minimum_wage=configuration.minimum_wage_for(on, border_zone),
        general_minimum_wage=configuration.minimum_wage_for(on),
        tax_table=table_rows(configuration.tax_table_for(on)),
        reference_days_per_month=configuration.settlement.reference_days_per_month,
    )


def resolve_date_operations(timezone: str | None = None) -> DateOperations:
    return DateOperations(timezone or os.getenv("FINIQUITO_TIMEZONE") or DEFAULT_TIMEZONE)


def integrated_daily_salary(
    daily_salary: Decimal,
    christmas_bonus_days: int,
    vacation_entitlement_days: int,
    vacation_premium_percent: Decimal,
) -> Decimal:
    """Daily salary integrated with the annual Christmas bonus and vacation premium."""

    factor = (
        Amount(1)
        .add(Amount(christmas_bonus_days).divide(365).value)
        .add(
            Amount(vacation_entitlement_days)
            .percentage(vacation_premium_percent)
            .divide(365)
            .value
        )
    )
    return Amount(daily_salary).multiply(factor.value).result


def _lines(items: Iterable[ConceptLineInput]) -> tuple[ConceptLine, ...]:
    return tuple(
        ConceptLine(concept=item.concept, amount=item.amount, tax_treatment=item.tax_treatment)
        for item in items
    )


def _line_total(lines: Iterable[ConceptLine]) -> Amount:
    return sum_amounts(*(line.amount for line in lines))


def _difference(complement: Any, fiscal: Any | None) -> Amount:
    """Per-concept ``complement - fiscal`` summed over a perception group."""

    total = Amount(0)
    for name, perception in complement.items():
        fiscal_amount = getattr(fiscal, name).total_amount if fiscal is not None else ZERO
        total = total.add(perception.total_amount).subtract(fiscal_amount)
    return total


def _scenario(perceptions: Amount, deductions: Amount) -> ScenarioTotals:
    return ScenarioTotals(
        perceptions=perceptions.result,
        deductions=deductions.result,
        net=Amount(perceptions.result).subtract(deductions.result).result,
    )


def _housing_credit_total(
    configuration: SettlementConfiguration, calculator: HousingCreditCalculator
) -> Amount:
    fiscal = configuration.fiscal_factors
    constants = configuration.constants
    total = Amount(0)
    for credit in configuration.housing_credits:
        days = calculator.pending_days(
            credit,
            configuration.calculation_date,
            daily_salary=fiscal.daily_salary,
            integrated_daily_salary=fiscal.integrated_daily_salary,
            minimum_wage=constants.general_wage,
            umi=constants.umi,
            variable_salary=configuration.variable_salary,
        )
        total = (
            total.add(calculator.deduction(days))
            .add(credit.adjustment_amount)
            .add(credit.housing_insurance)
        )
    return total


def calculate_settlement(
    configuration: SettlementConfiguration,
    *,
    tax_calculator: IncomeTaxCalculator | None = None,
    perception_calculator: PerceptionCalculator | None = None,
    housing_credit_calculator: HousingCreditCalculator | None = None,
) -> SettlementResult:
    """Price the fiscal, severance and complement scenarios of a termination."""

    constants = configuration.constants
    taxes = tax_calculator or IncomeTaxCalculator(
        constants.tax_table, constants.reference_days_per_month
    )
    pricing = perception_calculator or PerceptionCalculator.from_constants(constants)
    housing = housing_credit_calculator or HousingCreditCalculator(
        configuration.housing_credit_settings
    )
    fiscal = configuration.fiscal_factors
    history = configuration.accumulated_history
    premium_percent = configuration.vacation_premium_percent

    perceptions = pricing.settlement_perceptions(
        fiscal.daily_salary, fiscal.settlement_concepts, history, premium_percent
    )
    settlement_tax = taxes.settlement_tax(perceptions, fiscal.other_perceptions)
    bonus_tax = taxes.bonus_tax(perceptions, fiscal.daily_salary)
    bonus_tax_total = bonus_tax.total if bonus_tax is not None else ZERO

    housing_credit = _housing_credit_total(configuration, housing)
    manual = _line_total(configuration.manual_deductions.as_lines())
    other = _line_total(fiscal.other_deductions)
    income_tax = sum_amounts(settlement_tax.total, bonus_tax_total)
    deductions = DeductionSummary(
        income_tax=income_tax.result,
        housing_credit=housing_credit.result,
        manual=manual.result,
        other=other.result,
        total=sum_amounts(
            income_tax.value, housing_credit.value, manual.value, other.value
        ).result,
    )
    settlement_totals = _scenario(
        Amount(perceptions.total_amount).add(_line_total(fiscal.other_perceptions).value),
        Amount(deductions.total),
    )

    severance_perceptions: SeverancePerceptions | None = None
    severance_tax = TaxResult()
    severance_totals: ScenarioTotals | None = None
    if configuration.severance_enabled:
        severance_perceptions = pricing.severance_perceptions(
            fiscal.daily_salary, fiscal.severance_concepts, fiscal.seniority
        )
        severance_tax = taxes.severance_tax(severance_perceptions, fiscal.daily_salary)
        severance_totals = _scenario(
            Amount(severance_perceptions.total_amount), Amount(severance_tax.total)
        )

    complement = configuration.complement_factors
    complement_perceptions: SettlementPerceptions | None = None
    complement_severance: SeverancePerceptions | None = None
    complement_totals: ScenarioTotals | None = None
    severance_complement_totals: ScenarioTotals | None = None
    if complement is not None:
        complement_perceptions = pricing.settlement_perceptions(
            complement.daily_salary, complement.settlement_concepts, history, premium_percent
        )
        complement_amount = _difference(complement_perceptions, perceptions).add(
            _line_total(complement.other_perceptions).value
        )
        severance_complement_amount = Amount(0)
        if configuration.severance_enabled:
            complement_severance = pricing.severance_perceptions(
                complement.daily_salary, complement.severance_concepts, complement.seniority
            )
            severance_complement_amount = _difference(complement_severance, severance_perceptions)

        # Deductions beyond the complement perceptions move to the severance complement.
        complement_deductions = _line_total(complement.other_deductions)
        available = max(complement_amount.result, ZERO)
        applied = min(complement_deductions.result, available)
        excess = complement_deductions.subtract(applied)
        if excess.result > 0:
            _LOGGER.debug("Shifting %s of complement deductions to severance", excess.result)

        complement_totals = _scenario(complement_amount, Amount(applied))
        severance_complement_totals = _scenario(severance_complement_amount, excess)

    total_payable = sum_amounts(
        *(
            totals.net
            for totals in (
                settlement_totals,
                severance_totals,
                complement_totals,
                severance_complement_totals,
            )
            if totals is not None
        )
    )

    return SettlementResult(
        fiscal_factors=fiscal,
        perceptions=perceptions,
        severance_perceptions=severance_perceptions,
        complement_factors=complement,
        complement_perceptions=complement_perceptions,
        complement_severance_perceptions=complement_severance,
        taxes=SettlementTaxes(
            settlement_tax=settlement_tax,
            bonus_tax=bonus_tax,
            severance_tax=severance_tax,
        ),
        deductions=deductions,
        totals=SettlementTotals(
            settlement=settlement_totals,
            severance=severance_totals,
            complement=complement_totals,
            severance_complement=severance_complement_totals,
            total_payable=total_payable.result,
        ),
        metadata={
            "calculation_date": configuration.calculation_date,
            "severance_enabled": configuration.severance_enabled,
            "has_complement": complement is not None,
            "uma": constants.uma,
            "minimum_wage": constants.minimum_wage,
        },
    )


def build_factors(
    request: SettlementRequest,
    proportional: ProportionalCalculator,
    *,
    hire_date: date,
    daily_salary: Decimal,
    integrated_salary: Decimal | None,
    other_perceptions: tuple[ConceptLine, ...] = (),
    other_deductions: tuple[ConceptLine, ...] = (),
    apply_overrides: bool = True,
) -> SettlementFactors:
    """Build one scenario's factors from dates, salary and manual overrides."""

    termination = request.termination_date
    benefits = request.benefits
    settings = ProportionalOverrides(
        vacation_premium_percent=benefits.vacation_premium_percent,
        christmas_bonus_days=benefits.christmas_bonus_days,
    )
    seniority = proportional.seniority(hire_date, termination)
    accrued = proportional.proportional_benefits(hire_date, termination, settings)
    severance = (
        proportional.proportional_severance(hire_date, termination)
        if request.severance_enabled
        else ProportionalSeveranceConcepts()
    )

    vacation_days = accrued.vacation_days
    premium_vacation_days = accrued.vacation_days
    christmas_bonus_days = accrued.christmas_bonus_days
    overrides = request.overrides
    if apply_overrides:
        if overrides.vacation_days is not None:
            vacation_days = overrides.vacation_days
            premium_vacation_days = overrides.vacation_days
        if overrides.premium_vacation_days is not None:
            premium_vacation_days = overrides.premium_vacation_days
        if overrides.christmas_bonus_days is not None:
            christmas_bonus_days = overrides.christmas_bonus_days
        if request.severance_enabled:
            severance = ProportionalSeveranceConcepts(
                ninety_day_indemnity=_override(
                    overrides.ninety_day_indemnity, severance.ninety_day_indemnity
                ),
                twenty_day_indemnity=_override(
                    overrides.twenty_day_indemnity, severance.twenty_day_indemnity
                ),
                seniority_bonus=_override(overrides.seniority_bonus, severance.seniority_bonus),
            )

    if integrated_salary is None:
        entitlement = proportional.vacation_entitlement(termination, seniority.factor)
        integrated_salary = integrated_daily_salary(
            daily_salary,
            benefits.christmas_bonus_days,
            entitlement,
            benefits.vacation_premium_percent,
        )

    return SettlementFactors(
        daily_salary=daily_salary,
        integrated_daily_salary=integrated_salary,
        seniority=seniority,
        settlement_concepts=SettlementConcepts(
            worked_days=request.worked_days,
            seventh_day=request.seventh_day,
            vacation_days=vacation_days,
            pending_vacation_days=request.pending_vacation_days,
            premium_vacation_days=premium_vacation_days,
            pending_premium_vacation_days=request.pending_premium_vacation_days,
            christmas_bonus_days=christmas_bonus_days,
            retroactive_salary_days=request.retroactive_salary_days,
        ),
        severance_concepts=severance,
        other_perceptions=other_perceptions,
        other_deductions=other_deductions,
    )


def _override(value: Decimal | None, calculated: Decimal) -> Decimal:
    return calculated if value is None else value


def build_configuration(
    request: SettlementRequest, year_configuration: YearConfiguration
) -> SettlementConfiguration:
    """Translate a validated request into a calculator configuration."""

    termination = request.termination_date
    proportional = ProportionalCalculator(
        load_benefit_tables(), resolve_date_operations(request.timezone)
    )
    fiscal = build_factors(
        request,
        proportional,
        hire_date=request.hire_date,
        daily_salary=request.daily_salary,
        integrated_salary=request.integrated_daily_salary,
        other_perceptions=_lines(request.other_perceptions),
        other_deductions=_lines(request.other_deductions),
    )

    complement: SettlementFactors | None = None
    if request.complement is not None:
        complement = build_factors(
            request,
            proportional,
            hire_date=request.complement.real_hire_date,
            daily_salary=request.complement.real_daily_salary,
            integrated_salary=None,
            other_perceptions=_lines(request.complement.other_perceptions),
            other_deductions=_lines(request.complement.other_deductions),
            apply_overrides=False,
        )

    manual = request.manual_deductions
    credit_settings = request.housing_credit_settings
    return SettlementConfiguration(
        calculation_date=termination,
        fiscal_factors=fiscal,
        complement_factors=complement,
        constants=resolve_constants(year_configuration, termination, request.border_zone),
        severance_enabled=request.severance_enabled,
        manual_deductions=ManualDeductions(
            housing_credit=manual.housing_credit,
            consumer_credit=manual.consumer_credit,
            other=manual.other,
            subsidy=manual.subsidy,
        ),
        housing_credits=tuple(
            HousingCredit(
                discount_type=credit.discount_type,
                discount_value=credit.discount_value,
                pending_days=credit.pending_days,
                adjustment_amount=credit.adjustment_amount,
                housing_insurance=credit.housing_insurance,
            )
            for credit in request.housing_credits
        ),
        housing_credit_settings=HousingCreditSettings(
            cap_disabled=credit_settings.cap_disabled,
            fixed_amount_method=credit_settings.fixed_amount_method,
        ),
        accumulated_history=AccumulatedHistory(
            vacation_premium_exempt=tuple(request.accumulated_history.vacation_premium_exempt)
        ),
        vacation_premium_percent=request.benefits.vacation_premium_percent,
        variable_salary=request.variable_salary,
    )


def calculate_termination(
    payload: Mapping[str, Any] | SettlementRequest,
) -> dict[str, Any]:
    """Compute the settlement for the provided payload and return a JSON-ready mapping."""

    request = validate_request(SettlementRequest, payload)

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    year_configuration = load_configuration(request.termination_date)

    with _profile_section("build_configuration", timings):
        configuration = build_configuration(request, year_configuration)

    with _profile_section("calculate_settlement", timings):
        result = calculate_settlement(configuration)

    response = as_payload(result)
    response["meta"] = {
        "year": request.termination_date.year,
        "seniority": as_payload(configuration.fiscal_factors.seniority),
    }

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_termination timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    return response


__all__ = [
    "build_configuration",
    "build_factors",
    "calculate_settlement",
    "calculate_termination",
    "integrated_daily_salary",
    "load_configuration",
    "resolve_constants",
    "resolve_date_operations",
    "validate_request",
]
