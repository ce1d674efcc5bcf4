"""Typed records shared across the settlement services.

Requests arrive as Pydantic models (see :mod:`.api`); everything the
calculators exchange is a frozen dataclass holding :class:`~decimal.Decimal`
values. Records are built fresh for each calculation and never mutated, which
keeps the calculators safe to call from any number of threads.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from typing import Any, Literal

from .api import (
    AccumulatedHistoryInput,
    BenefitSettingsInput,
    ComplementInput,
    ConceptLineInput,
    EstimateRequest,
    FactorOverridesInput,
    HousingCreditInput,
    HousingCreditSettingsInput,
    ManualDeductionsInput,
    SettlementRequest,
    format_validation_error,
)

ZERO = Decimal("0.00")

TaxTreatment = Literal["taxable", "exempt"]
DiscountType = Literal["percentage", "fixed_amount", "umi_factor"]

__all__ = [
    "AccumulatedHistory",
    "AccumulatedHistoryInput",
    "BenefitSettingsInput",
    "BonusTaxBase",
    "BonusTaxResult",
    "ComplementInput",
    "ConceptLine",
    "ConceptLineInput",
    "DeductionSummary",
    "DiscountType",
    "EstimateColumn",
    "EstimateRequest",
    "EstimateResult",
    "FactorOverridesInput",
    "HousingCredit",
    "HousingCreditDay",
    "HousingCreditInput",
    "HousingCreditSettings",
    "HousingCreditSettingsInput",
    "ManualDeductions",
    "ManualDeductionsInput",
    "PayrollConstants",
    "Perception",
    "ProportionalSettlementConcepts",
    "ProportionalSeveranceConcepts",
    "ScenarioTotals",
    "Seniority",
    "SettlementConcepts",
    "SettlementConfiguration",
    "SettlementFactors",
    "SettlementPerceptions",
    "SettlementRequest",
    "SettlementResult",
    "SettlementTaxes",
    "SettlementTotals",
    "SeverancePerceptions",
    "TaxBracketRow",
    "TaxDetail",
    "TaxResult",
    "TaxTreatment",
    "ZERO",
    "as_payload",
    "format_validation_error",
]


@dataclass(frozen=True, slots=True)
class Seniority:
    """Tenure expressed as completed years, remainder days and a factor."""

    years: int
    days: int
    factor: Decimal


@dataclass(frozen=True, slots=True)
class ProportionalSettlementConcepts:
    """Day factors accrued between one entry date and one calculation date."""

    vacation_days: Decimal
    vacation_premium_days: Decimal
    christmas_bonus_days: Decimal


@dataclass(frozen=True, slots=True)
class ProportionalSeveranceConcepts:
    """Severance day factors; all zero when severance does not apply."""

    ninety_day_indemnity: Decimal = ZERO
    twenty_day_indemnity: Decimal = ZERO
    seniority_bonus: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class SettlementConcepts:
    """Day factors converted into settlement perceptions.

    The two premium fields hold vacation *days*; the premium percentage is
    applied when the perception is calculated.
    """

    worked_days: Decimal = ZERO
    seventh_day: Decimal = ZERO
    vacation_days: Decimal = ZERO
    pending_vacation_days: Decimal = ZERO
    premium_vacation_days: Decimal = ZERO
    pending_premium_vacation_days: Decimal = ZERO
    christmas_bonus_days: Decimal = ZERO
    retroactive_salary_days: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class Perception:
    """Monetary perception split into taxable and exempt bases."""

    quantity: Decimal = ZERO
    taxable_base: Decimal = ZERO
    exempt_base: Decimal = ZERO
    total_amount: Decimal = ZERO
    detail: tuple[Mapping[str, Any], ...] = ()


class _PerceptionGroup:
    __slots__ = ()

    def items(self) -> tuple[tuple[str, Perception], ...]:
        names = (item.name for item in fields(self))  # type: ignore[arg-type]
        return tuple((name, getattr(self, name)) for name in names)

    @property
    def total_amount(self) -> Decimal:
        return sum((perception.total_amount for _, perception in self.items()), ZERO)

    @property
    def taxable_base(self) -> Decimal:
        return sum((perception.taxable_base for _, perception in self.items()), ZERO)

    @property
    def exempt_base(self) -> Decimal:
        return sum((perception.exempt_base for _, perception in self.items()), ZERO)


@dataclass(frozen=True, slots=True)
class SettlementPerceptions(_PerceptionGroup):
    """Perceptions of the base settlement (finiquito)."""

    worked_days: Perception = field(default_factory=Perception)
    seventh_day: Perception = field(default_factory=Perception)
    vacation: Perception = field(default_factory=Perception)
    pending_vacation: Perception = field(default_factory=Perception)
    vacation_premium: Perception = field(default_factory=Perception)
    pending_vacation_premium: Perception = field(default_factory=Perception)
    christmas_bonus: Perception = field(default_factory=Perception)
    retroactive_salary: Perception = field(default_factory=Perception)


@dataclass(frozen=True, slots=True)
class SeverancePerceptions(_PerceptionGroup):
    """Perceptions of the severance package (liquidación)."""

    ninety_day_indemnity: Perception = field(default_factory=Perception)
    twenty_day_indemnity: Perception = field(default_factory=Perception)
    seniority_bonus: Perception = field(default_factory=Perception)


@dataclass(frozen=True, slots=True)
class ConceptLine:
    """Free-form perception or deduction line supplied by the caller."""

    concept: str
    amount: Decimal
    tax_treatment: TaxTreatment = "taxable"

    @property
    def is_taxable(self) -> bool:
        return self.tax_treatment == "taxable"


@dataclass(frozen=True, slots=True)
class AccumulatedHistory:
    """Exemptions already consumed earlier in the calendar year."""

    vacation_premium_exempt: tuple[Decimal, ...] = ()

    @property
    def vacation_premium_consumed(self) -> Decimal:
        return sum(self.vacation_premium_exempt, ZERO)


@dataclass(frozen=True, slots=True)
class TaxBracketRow:
    """Bracket values used during lookup; an upper limit of zero is open."""

    lower_limit: Decimal
    upper_limit: Decimal
    fixed_fee: Decimal
    marginal_percent: Decimal

    @property
    def is_open(self) -> bool:
        return self.upper_limit == 0


@dataclass(frozen=True, slots=True)
class TaxDetail:
    taxable_base: Decimal
    bracket_base: Decimal
    marginal_tax: Decimal
    subsidy: Decimal
    tax_before_subsidy: Decimal
    tax: Decimal
    bracket: TaxBracketRow


@dataclass(frozen=True, slots=True)
class TaxResult:
    total: Decimal = ZERO
    detail: tuple[TaxDetail, ...] = ()


@dataclass(frozen=True, slots=True)
class BonusTaxBase:
    christmas_bonus: Decimal
    vacation_premium: Decimal
    pending_vacation_premium: Decimal
    total: Decimal


@dataclass(frozen=True, slots=True)
class BonusTaxResult:
    """Withholding on annual bonuses following the monthly-equivalent method."""

    daily_salary: Decimal
    monthly_salary: Decimal
    taxable_base: BonusTaxBase
    fraction_one: Decimal
    fraction_two: Decimal
    fraction_three: Decimal
    factor: Decimal
    tax_on_fraction_two: TaxDetail
    tax_on_monthly_salary: TaxDetail
    total: Decimal


@dataclass(frozen=True, slots=True)
class HousingCreditDay:
    """Values in force on one pending day of a housing credit."""

    day: date
    daily_salary: Decimal
    integrated_daily_salary: Decimal
    minimum_wage: Decimal
    umi: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    variable_salary: Decimal = ZERO
    separation_day: bool = False


@dataclass(frozen=True, slots=True)
class HousingCredit:
    discount_type: DiscountType
    discount_value: Decimal
    pending_days: int = 0
    adjustment_amount: Decimal = ZERO
    housing_insurance: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class HousingCreditSettings:
    cap_disabled: bool = False
    fixed_amount_method: Literal["default", "simplified"] = "default"


@dataclass(frozen=True, slots=True)
class ManualDeductions:
    """Deductions captured by hand for the fiscal settlement."""

    housing_credit: Decimal = ZERO
    consumer_credit: Decimal = ZERO
    other: Decimal = ZERO
    subsidy: Decimal = ZERO

    def as_lines(self) -> tuple[ConceptLine, ...]:
        return tuple(
            ConceptLine(concept=name, amount=getattr(self, name))
            for name in ("housing_credit", "consumer_credit", "other", "subsidy")
            if getattr(self, name) > 0
        )


@dataclass(frozen=True, slots=True)
class PayrollConstants:
    """Published values in force on the calculation date."""

    uma: Decimal
    umi: Decimal
    minimum_wage: Decimal
    tax_table: tuple[TaxBracketRow, ...]
    reference_days_per_month: Decimal = Decimal("30.4")
    general_minimum_wage: Decimal | None = None

    @property
    def general_wage(self) -> Decimal:
        """General zone wage; caps the seniority bonus rate and gates the housing-credit cap."""

        return self.general_minimum_wage or self.minimum_wage


@dataclass(frozen=True, slots=True)
class SettlementFactors:
    """Everything needed to price one scenario (fiscal or complement)."""

    daily_salary: Decimal
    integrated_daily_salary: Decimal
    seniority: Seniority
    settlement_concepts: SettlementConcepts
    severance_concepts: ProportionalSeveranceConcepts = field(
        default_factory=ProportionalSeveranceConcepts
    )
    other_perceptions: tuple[ConceptLine, ...] = ()
    other_deductions: tuple[ConceptLine, ...] = ()


@dataclass(frozen=True, slots=True)
class SettlementConfiguration:
    calculation_date: date
    fiscal_factors: SettlementFactors
    constants: PayrollConstants
    complement_factors: SettlementFactors | None = None
    severance_enabled: bool = False
    manual_deductions: ManualDeductions = field(default_factory=ManualDeductions)
    housing_credits: tuple[HousingCredit, ...] = ()
    housing_credit_settings: HousingCreditSettings = field(
        default_factory=HousingCreditSettings
    )
    accumulated_history: AccumulatedHistory = field(default_factory=AccumulatedHistory)
    vacation_premium_percent: Decimal = Decimal("25")
    variable_salary: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class ScenarioTotals:
    perceptions: Decimal = ZERO
    deductions: Decimal = ZERO
    net: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class SettlementTaxes:
    settlement_tax: TaxResult = field(default_factory=TaxResult)
    bonus_tax: BonusTaxResult | None = None
    severance_tax: TaxResult = field(default_factory=TaxResult)

    @property
    def bonus_tax_total(self) -> Decimal:
        return self.bonus_tax.total if self.bonus_tax is not None else ZERO

    @property
    def total(self) -> Decimal:
        return self.settlement_tax.total + self.bonus_tax_total + self.severance_tax.total


@dataclass(frozen=True, slots=True)
class DeductionSummary:
    income_tax: Decimal = ZERO
    housing_credit: Decimal = ZERO
    manual: Decimal = ZERO
    other: Decimal = ZERO
    total: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class SettlementTotals:
    settlement: ScenarioTotals
    total_payable: Decimal
    severance: ScenarioTotals | None = None
    complement: ScenarioTotals | None = None
    severance_complement: ScenarioTotals | None = None


@dataclass(frozen=True, slots=True)
class SettlementResult:
    """Full outcome of one settlement calculation."""

    fiscal_factors: SettlementFactors
    perceptions: SettlementPerceptions
    taxes: SettlementTaxes
    deductions: DeductionSummary
    totals: SettlementTotals
    severance_perceptions: SeverancePerceptions | None = None
    complement_factors: SettlementFactors | None = None
    complement_perceptions: SettlementPerceptions | None = None
    complement_severance_perceptions: SeverancePerceptions | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class EstimateColumn:
    """One column of the quick estimate priced at a single daily salary."""

    daily_salary: Decimal
    lines: Mapping[str, Decimal]
    perceptions: Decimal
    withholding: Decimal = ZERO
    manual_deductions: Decimal = ZERO
    deductions: Decimal = ZERO
    net: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class EstimateResult:
    seniority: Seniority
    concepts: ProportionalSettlementConcepts
    fiscal: EstimateColumn
    real: EstimateColumn
    integrated_daily_salary: Decimal
    total: Decimal
    real_concepts: ProportionalSettlementConcepts | None = None


def as_payload(value: Any) -> Any:
    """Convert records into JSON-ready structures (decimals become floats)."""

    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if hasattr(value, "__dataclass_fields__"):
        return {item.name: as_payload(getattr(value, item.name)) for item in fields(value)}
    if isinstance(value, Mapping):
        return {str(key): as_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [as_payload(item) for item in value]
    return value
