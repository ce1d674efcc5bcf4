"""Pydantic models describing the payroll constants configuration schema."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)
from typing_extensions import Self

CENT = Decimal("0.01")


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _floats_as_text(cls, data: Any) -> Any:
        # YAML floats map onto decimals through their shortest representation
        if isinstance(data, Mapping):
            return {
                key: str(value) if isinstance(value, float) else value
                for key, value in data.items()
            }
        return data


class EffectiveValue(ImmutableModel):
    """A published reference value (UMA, UMI) and the date it takes effect."""

    effective_date: date = Field(alias="effective")
    value: Decimal

    @model_validator(mode="after")
    def _validate_value(self) -> Self:
        if self.value <= 0:
            raise ConfigurationError("Reference values must be positive")
        return self


class MinimumWage(ImmutableModel):
    """Daily minimum wages for the general and northern border zones."""

    effective_date: date = Field(alias="effective")
    general: Decimal
    border: Decimal

    @model_validator(mode="after")
    def _validate_wages(self) -> Self:
        if self.general <= 0 or self.border <= 0:
            raise ConfigurationError("Minimum wages must be positive")
        return self

    def for_zone(self, border_zone: bool = False) -> Decimal:
        return self.border if border_zone else self.general


class TaxBracket(ImmutableModel):
    """Single row of a monthly income tax table."""

    lower_limit: Decimal = Field(alias="lower")
    upper_limit: Decimal | None = Field(default=None, alias="upper")
    fixed_fee: Decimal = Field(alias="fee")
    marginal_percent: Decimal = Field(alias="percent")

    @model_validator(mode="after")
    def _validate_values(self) -> Self:
        if self.lower_limit < 0:
            raise ConfigurationError("Bracket lower limits must be non-negative")
        if self.fixed_fee < 0:
            raise ConfigurationError("Bracket fixed fees must be non-negative")
        if self.marginal_percent < 0 or self.marginal_percent > 100:
            raise ConfigurationError("Marginal percentages must be between 0 and 100")
        if self.upper_limit is not None and self.upper_limit < self.lower_limit:
            raise ConfigurationError("Bracket upper limits cannot be below the lower limit")
        return self

    @property
    def is_open(self) -> bool:
        """Open brackets have no upper limit; zero is the published open marker."""

        return self.upper_limit is None or self.upper_limit == 0


class TaxBracketTable(ImmutableModel):
    """Monthly income tax table keyed by the date it takes effect."""

    effective_date: date = Field(alias="effective")
    brackets: tuple[TaxBracket, ...]

    @model_validator(mode="after")
    def _validate_sequence(self) -> Self:
        if not self.brackets:
            raise ConfigurationError("At least one tax bracket must be defined")
        previous: TaxBracket | None = None
        for bracket in self.brackets:
            if previous is not None:
                if previous.is_open:
                    raise ConfigurationError("Only the final tax bracket may be open")
                if bracket.lower_limit != previous.upper_limit + CENT:
                    raise ConfigurationError(
                        "Tax brackets must be ascending and contiguous "
                        f"(expected lower limit {previous.upper_limit + CENT}, "
                        f"found {bracket.lower_limit})"
                    )
            previous = bracket
        if not self.brackets[-1].is_open:
            raise ConfigurationError("Final tax bracket must have an open upper limit")
        return self


class EstimateWithholding(ImmutableModel):
    """Nominal withholding applied by the quick two-column estimate."""

    threshold: Decimal = Decimal("1000")
    amount: Decimal = Decimal("0.50")

    @model_validator(mode="after")
    def _validate_amounts(self) -> Self:
        if self.threshold < 0 or self.amount < 0:
            raise ConfigurationError("Estimate withholding values must be non-negative")
        return self


class SettlementDefaults(ImmutableModel):
    """Statutory defaults used when a request omits benefit settings."""

    reference_days_per_month: Decimal = Decimal("30.4")
    christmas_bonus_days: int = 15
    vacation_premium_percent: Decimal = Decimal("25")
    estimate_withholding: EstimateWithholding = Field(default_factory=EstimateWithholding)

    @model_validator(mode="after")
    def _validate_defaults(self) -> Self:
        if self.reference_days_per_month <= 0:
            raise ConfigurationError("Reference days per month must be positive")
        if self.christmas_bonus_days < 15:
            raise ConfigurationError("Christmas bonus days cannot be below 15")
        if not 25 <= self.vacation_premium_percent <= 100:
            raise ConfigurationError("Vacation premium percent must be between 25 and 100")
        return self


def _effective_entry(entries: Sequence[Any], on: date) -> Any:
    selected = entries[0]
    for entry in entries:
        if entry.effective_date <= on:
            selected = entry
        else:
            break
    return selected


def _validate_effective_sequence(name: str, year: int, entries: Sequence[Any]) -> None:
    if not entries:
        raise ConfigurationError(f"'{name}' requires at least one effective entry")
    if entries[0].effective_date > date(year, 1, 1):
        raise ConfigurationError(f"'{name}' must cover January 1st of {year}")
    previous: date | None = None
    for entry in entries:
        if entry.effective_date.year > year:
            raise ConfigurationError(f"'{name}' entries cannot take effect after {year}")
        if previous is not None and entry.effective_date <= previous:
            raise ConfigurationError(f"'{name}' entries must be in ascending date order")
        previous = entry.effective_date


class YearConfiguration(ImmutableModel):
    """Complete payroll constants for a calendar year."""

    year: int
    meta: Mapping[str, Any] = Field(default_factory=dict)
    uma: tuple[EffectiveValue, ...]
    umi: tuple[EffectiveValue, ...]
    minimum_wages: tuple[MinimumWage, ...]
    tax_tables: tuple[TaxBracketTable, ...]
    settlement: SettlementDefaults = Field(default_factory=SettlementDefaults)

    @model_validator(mode="before")
    @classmethod
    def _prepare(cls, data: Any) -> Mapping[str, Any]:
        if not isinstance(data, Mapping):
            raise ConfigurationError("Configuration file must define a mapping at the top level")
        prepared = dict(data)
        meta = prepared.get("meta")
        if meta is None:
            prepared["meta"] = {}
        elif not isinstance(meta, Mapping):
            raise ConfigurationError("'meta' section must be a mapping if provided")
        income_tax = prepared.pop("income_tax", None)
        if income_tax is not None:
            if not isinstance(income_tax, Mapping):
                raise ConfigurationError("'income_tax' section must be a mapping")
            prepared.setdefault("tax_tables", income_tax.get("tables", ()))
        return prepared

    @model_validator(mode="after")
    def _validate_year(self) -> Self:
        _validate_effective_sequence("uma", self.year, self.uma)
        _validate_effective_sequence("umi", self.year, self.umi)
        _validate_effective_sequence("minimum_wages", self.year, self.minimum_wages)
        _validate_effective_sequence("income_tax.tables", self.year, self.tax_tables)
        return self

    def uma_for(self, on: date) -> Decimal:
        return _effective_entry(self.uma, on).value

    def umi_for(self, on: date) -> Decimal:
        return _effective_entry(self.umi, on).value

    def minimum_wage_for(self, on: date, border_zone: bool = False) -> Decimal:
        return _effective_entry(self.minimum_wages, on).for_zone(border_zone)

    def tax_table_for(self, on: date) -> TaxBracketTable:
        return _effective_entry(self.tax_tables, on)


class VacationEntitlement(ImmutableModel):
    """Vacation days granted for a given completed year of service."""

    years: int
    days: int

    @model_validator(mode="after")
    def _validate_entry(self) -> Self:
        if self.years < 1:
            raise ConfigurationError("Vacation entitlements start at one year of service")
        if self.days <= 0:
            raise ConfigurationError("Vacation entitlement days must be positive")
        return self


class VacationTable(ImmutableModel):
    """Seniority to vacation days table in force from ``effective_date``."""

    effective_date: date = Field(alias="effective")
    entries: tuple[VacationEntitlement, ...]

    @field_validator("entries", mode="before")
    @classmethod
    def _expand_mapping(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return tuple({"years": int(key), "days": days} for key, days in value.items())
        return value

    @model_validator(mode="after")
    def _validate_entries(self) -> Self:
        if not self.entries:
            raise ConfigurationError("Vacation tables require at least one entry")
        years = [entry.years for entry in self.entries]
        if years != sorted(set(years)):
            raise ConfigurationError("Vacation table years must be unique and ascending")
        return self

    def days_for(self, years: int) -> int:
        """Return the entitlement for ``years``, clamping to the table endpoints."""

        first, last = self.entries[0], self.entries[-1]
        if years < first.years:
            return first.days
        if years > last.years:
            return last.days
        for entry in self.entries:
            if entry.years == years:
                return entry.days
        raise ConfigurationError(f"Vacation table has no entry for {years} years")


class BenefitTables(ImmutableModel):
    """Benefit tables shared by every configured year."""

    vacation_tables: tuple[VacationTable, ...]

    @model_validator(mode="after")
    def _validate_tables(self) -> Self:
        if not self.vacation_tables:
            raise ConfigurationError("At least one vacation table must be defined")
        dates = [table.effective_date for table in self.vacation_tables]
        if dates != sorted(set(dates)):
            raise ConfigurationError("Vacation tables must be in ascending date order")
        return self

    def vacation_table_for(self, on: date) -> VacationTable:
        return _effective_entry(self.vacation_tables, on)


class YearManifestEntry(ImmutableModel):
    """Entry describing a supported year in the manifest."""

    year: int
    filename: str | None = None
    status: str = "active"
    notes_url: str | None = None

    @computed_field
    @property
    def resolved_filename(self) -> str:
        return self.filename or f"{self.year}.yaml"


class ConfigurationManifest(ImmutableModel):
    """Manifest describing the available configuration files."""

    years: Sequence[YearManifestEntry]
    benefits: str = "benefits.yaml"

    @model_validator(mode="after")
    def _validate_years(self) -> Self:
        seen: set[int] = set()
        for entry in self.years:
            if entry.year in seen:
                raise ConfigurationError(
                    f"Duplicate year {entry.year} declared in the configuration manifest"
                )
            seen.add(entry.year)
        return self

    def get_entry(self, year: int) -> YearManifestEntry:
        for entry in self.years:
            if entry.year == year:
                return entry
        raise KeyError(year)

    @computed_field
    @property
    def supported_years(self) -> tuple[int, ...]:
        return tuple(sorted(entry.year for entry in self.years))


__all__ = [
    "BenefitTables",
    "ConfigurationError",
    "ConfigurationManifest",
    "EffectiveValue",
    "EstimateWithholding",
    "ImmutableModel",
    "MinimumWage",
    "SettlementDefaults",
    "TaxBracket",
    "TaxBracketTable",
    "VacationEntitlement",
    "VacationTable",
    "ValidationError",
    "YearConfiguration",
    "YearManifestEntry",
]
