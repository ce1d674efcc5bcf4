"""Proportional benefit accrual between an entry date and a calculation date."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal

from finiquito.backend.app.models import (
    ProportionalSettlementConcepts,
    ProportionalSeveranceConcepts,
    Seniority,
)
from finiquito.backend.config.year_config import BenefitTables

from .arithmetic import Amount, Number
from .dates import DateLike, DateOperations, seniority_of

VACATION_PREMIUM_PERCENT = Decimal("25")
CHRISTMAS_BONUS_DAYS = 15
NINETY_DAY_INDEMNITY = Decimal("90")
INDEMNITY_DAYS_PER_YEAR = 20
SENIORITY_BONUS_DAYS_PER_YEAR = 12


class InvalidPeriodError(ValueError):
    """Raised when a calculation date precedes the start of its accrual period."""


@dataclass(frozen=True, slots=True)
class ProportionalOverrides:
    """Contractual settings that replace the statutory defaults."""

    vacation_premium_percent: Decimal = VACATION_PREMIUM_PERCENT
    christmas_bonus_days: int = CHRISTMAS_BONUS_DAYS
    vacation_entitlement_days: int | None = None


class ProportionalCalculator:
    """Convert tenure into proportional vacation, premium and bonus day factors."""

    def __init__(
        self,
        benefit_tables: BenefitTables,
        date_operations: DateOperations | None = None,
    ) -> None:
        self._tables = benefit_tables
        self._dates = date_operations or DateOperations()

    @property
    def date_operations(self) -> DateOperations:
        return self._dates

    def seniority(self, entry: DateLike, calculation: DateLike) -> Seniority:
        return seniority_of(entry, calculation, self._dates)

    def vacation_entitlement(self, calculation: DateLike, seniority_factor: Decimal) -> int:
        """Annual vacation days for the service year containing ``seniority_factor``."""

        table = self._tables.vacation_table_for(self._dates.local_date(calculation))
        return table.days_for(math.ceil(seniority_factor))

    def vacation_days(
        self,
        entry: DateLike,
        calculation: DateLike,
        entitlement_days: int | None = None,
    ) -> Decimal:
        worked_days = self._dates.days_excluding_full_years(entry, calculation)
        if entitlement_days is None:
            entitlement_days = self.vacation_entitlement(
                calculation, self.seniority(entry, calculation).factor
            )
        return (
            Amount(worked_days)
            .multiply(entitlement_days)
            .divide(self._dates.total_days_of_year(calculation))
            .result
        )

    def vacation_premium(
        self, vacation_days: Number, percent: Number = VACATION_PREMIUM_PERCENT
    ) -> Decimal:
        return Amount(vacation_days).percentage(percent).result

    def christmas_bonus(
        self,
        entry: DateLike,
        calculation: DateLike,
        bonus_days: int = CHRISTMAS_BONUS_DAYS,
    ) -> Decimal:
        """Christmas bonus days accrued since January 1st or the entry date."""

        first_day = self._dates.first_day_of_year(calculation)
        if self._dates.is_same_or_after(entry, first_day):
            start = self._dates.local_date(entry)
        else:
            start = first_day

        if not self._dates.is_same_or_after(calculation, start):
            raise InvalidPeriodError(
                "Calculation date must be on or after the Christmas bonus accrual start "
                f"({start.isoformat()})"
            )

        worked_days = self._dates.days_excluding_full_years(start, calculation)
        return (
            Amount(worked_days)
            .multiply(bonus_days)
            .divide(self._dates.total_days_of_year(calculation))
            .result
        )

    def proportional_benefits(
        self,
        entry: DateLike,
        calculation: DateLike,
        overrides: ProportionalOverrides | None = None,
    ) -> ProportionalSettlementConcepts:
        settings = overrides or ProportionalOverrides()
        vacation_days = self.vacation_days(
            entry, calculation, settings.vacation_entitlement_days
        )
        return ProportionalSettlementConcepts(
            vacation_days=vacation_days,
            vacation_premium_days=self.vacation_premium(
                vacation_days, settings.vacation_premium_percent
            ),
            christmas_bonus_days=self.christmas_bonus(
                entry, calculation, settings.christmas_bonus_days
            ),
        )

    def proportional_severance(
        self, entry: DateLike, calculation: DateLike
    ) -> ProportionalSeveranceConcepts:
        factor = self.seniority(entry, calculation).factor
        return ProportionalSeveranceConcepts(
            ninety_day_indemnity=NINETY_DAY_INDEMNITY,
            twenty_day_indemnity=Amount(INDEMNITY_DAYS_PER_YEAR).multiply(factor).result,
            seniority_bonus=Amount(SENIORITY_BONUS_DAYS_PER_YEAR).multiply(factor).result,
        )


__all__ = [
    "CHRISTMAS_BONUS_DAYS",
    "InvalidPeriodError",
    "NINETY_DAY_INDEMNITY",
    "ProportionalCalculator",
    "ProportionalOverrides",
    "VACATION_PREMIUM_PERCENT",
]
