"""Pydantic models describing the public API surface."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)

__all__ = [
    "AccumulatedHistoryInput",
    "BenefitSettingsInput",
    "ComplementInput",
    "ConceptLineInput",
    "EstimateRequest",
    "FactorOverridesInput",
    "HousingCreditInput",
    "HousingCreditSettingsInput",
    "ManualDeductionsInput",
    "SettlementRequest",
    "format_validation_error",
]


def _non_negative() -> Any:
    return Field(default=Decimal("0"), ge=0)


class RequestModel(BaseModel):
    """Base for request sections; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _floats_as_text(cls, data: Any) -> Any:
        # JSON floats map onto decimals through their shortest representation
        if isinstance(data, Mapping):
            return {
                key: str(value) if isinstance(value, float) else value
                for key, value in data.items()
            }
        return data


class ConceptLineInput(RequestModel):
    """Additional perception or deduction captured by the user."""

    concept: str = Field(..., min_length=1, max_length=120)
    amount: Decimal = Field(..., ge=0)
    tax_treatment: Literal["taxable", "exempt"] = "taxable"


class BenefitSettingsInput(RequestModel):
    """Contractual benefits; statutory minimums are enforced."""

    christmas_bonus_days: int = Field(default=15, ge=15, le=365)
    vacation_premium_percent: Decimal = Field(default=Decimal("25"), ge=25, le=100)


class FactorOverridesInput(RequestModel):
    """Manual day factors replacing the calculated proportional values."""

    vacation_days: Decimal | None = Field(default=None, ge=0)
    premium_vacation_days: Decimal | None = Field(default=None, ge=0)
    christmas_bonus_days: Decimal | None = Field(default=None, ge=0)
    ninety_day_indemnity: Decimal | None = Field(default=None, ge=0)
    twenty_day_indemnity: Decimal | None = Field(default=None, ge=0)
    seniority_bonus: Decimal | None = Field(default=None, ge=0)


class ManualDeductionsInput(RequestModel):
    housing_credit: Decimal = _non_negative()
    consumer_credit: Decimal = _non_negative()
    other: Decimal = _non_negative()
    subsidy: Decimal = _non_negative()


class HousingCreditInput(RequestModel):
    """Active INFONAVIT credit of the employee."""

    discount_type: Literal["percentage", "fixed_amount", "umi_factor"]
    discount_value: Decimal = Field(..., ge=0)
    pending_days: int = Field(default=0, ge=0, le=62)
    adjustment_amount: Decimal = _non_negative()
    housing_insurance: Decimal = _non_negative()


class HousingCreditSettingsInput(RequestModel):
    cap_disabled: bool = False
    fixed_amount_method: Literal["default", "simplified"] = "default"


class AccumulatedHistoryInput(RequestModel):
    vacation_premium_exempt: list[Decimal] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_amounts(self) -> "AccumulatedHistoryInput":
        if any(amount < 0 for amount in self.vacation_premium_exempt):
            raise ValueError("accumulated exempt amounts cannot be negative")
        return self


class ComplementInput(RequestModel):
    """Actual employment conditions compared against the declared ones."""

    real_hire_date: date
    real_daily_salary: Decimal = Field(..., gt=0)
    other_perceptions: list[ConceptLineInput] = Field(default_factory=list)
    other_deductions: list[ConceptLineInput] = Field(default_factory=list)


class SettlementRequest(RequestModel):
    """Payload accepted by the settlement endpoint."""

    hire_date: date
    termination_date: date
    daily_salary: Decimal = Field(..., gt=0)
    integrated_daily_salary: Decimal | None = Field(default=None, gt=0)
    variable_salary: Decimal = _non_negative()
    border_zone: bool = False
    severance_enabled: bool = False
    benefits: BenefitSettingsInput = Field(default_factory=BenefitSettingsInput)
    worked_days: Decimal = _non_negative()
    seventh_day: Decimal = _non_negative()
    retroactive_salary_days: Decimal = _non_negative()
    pending_vacation_days: Decimal = _non_negative()
    pending_premium_vacation_days: Decimal = _non_negative()
    overrides: FactorOverridesInput = Field(default_factory=FactorOverridesInput)
    other_perceptions: list[ConceptLineInput] = Field(default_factory=list)
    other_deductions: list[ConceptLineInput] = Field(default_factory=list)
    manual_deductions: ManualDeductionsInput = Field(default_factory=ManualDeductionsInput)
    housing_credits: list[HousingCreditInput] = Field(default_factory=list)
    housing_credit_settings: HousingCreditSettingsInput = Field(
        default_factory=HousingCreditSettingsInput
    )
    accumulated_history: AccumulatedHistoryInput = Field(
        default_factory=AccumulatedHistoryInput
    )
    complement: ComplementInput | None = None
    timezone: str | None = None

    @model_validator(mode="after")
    def _validate_dates(self) -> "SettlementRequest":
        if self.termination_date < self.hire_date:
            raise ValueError("termination_date must be on or after hire_date")
        if self.complement is not None and self.complement.real_hire_date > self.termination_date:
            raise ValueError("complement.real_hire_date cannot be after termination_date")
        return self


class EstimateRequest(RequestModel):
    """Payload accepted by the quick two-column estimate."""

    hire_date: date
    termination_date: date
    salary: Decimal = Field(..., gt=0)
    salary_frequency: Literal["daily", "weekly", "biweekly", "monthly"] = "monthly"
    days_factor: Decimal = Field(default=Decimal("30.4"), gt=0, le=31)
    fiscal_daily_salary: Decimal | None = Field(default=None, gt=0)
    border_zone: bool = False
    benefits: BenefitSettingsInput = Field(default_factory=BenefitSettingsInput)
    worked_days: Decimal = _non_negative()
    pending_vacation_days: Decimal = _non_negative()
    severance_days: Decimal = _non_negative()
    seniority_premium_days: Decimal = _non_negative()
    real_hire_date: date | None = None
    gratification_days: Decimal = _non_negative()
    gratification_amount: Decimal = _non_negative()
    withholding_amount: Decimal | None = Field(default=None, ge=0)
    manual_deductions: ManualDeductionsInput = Field(default_factory=ManualDeductionsInput)
    timezone: str | None = None

    @model_validator(mode="after")
    def _validate_dates(self) -> "EstimateRequest":
        if self.termination_date < self.hire_date:
            raise ValueError("termination_date must be on or after hire_date")
        if self.real_hire_date is not None and self.real_hire_date > self.termination_date:
            raise ValueError("real_hire_date cannot be after termination_date")
        if self.gratification_days > 0 and self.gratification_amount > 0:
            raise ValueError("provide gratification_days or gratification_amount, not both")
        return self


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if "greater than or equal to 0" in message.lower():
            message = "value cannot be negative"
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid calculation payload: {details}"
