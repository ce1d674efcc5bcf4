"""INFONAVIT housing-credit discount for the days pending at termination."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from finiquito.backend.app.models import (
    HousingCredit,
    HousingCreditDay,
    HousingCreditSettings,
)

from .arithmetic import Amount, Number, to_decimal

CAP_PERCENT = 20


def bimester_days(day: date) -> int:
    """Days in the payment bimester containing ``day``."""

    if day.month in (1, 2):
        return 59
    if day.month in (7, 8):
        return 62
    return 61


class HousingCreditCalculator:
    """Sum the daily housing-credit discounts for a run of pending days."""

    def __init__(self, settings: HousingCreditSettings | None = None) -> None:
        self.settings = settings or HousingCreditSettings()

    def daily_discount(self, values: HousingCreditDay, day_count: int) -> Amount:
        if values.discount_type == "percentage":
            return Amount(values.integrated_daily_salary).percentage(values.discount_value)
        if values.discount_type == "fixed_amount":
            if self.settings.fixed_amount_method == "simplified":
                return Amount(values.discount_value).divide(2).divide(day_count)
            return Amount(values.discount_value).multiply(2).divide(bimester_days(values.day))
        if values.discount_type == "umi_factor":
            return (
                Amount(values.discount_value)
                .multiply(2)
                .multiply(values.umi)
                .divide(bimester_days(values.day))
            )
        raise ValueError(f"Unsupported housing credit discount type '{values.discount_type}'")

    def _cap_applies(self, values: HousingCreditDay) -> bool:
        return (
            not self.settings.cap_disabled
            and values.daily_salary == values.minimum_wage
            and values.variable_salary == 0
        )

    def deduction(self, values: Sequence[HousingCreditDay]) -> Decimal:
        """Total discount over ``values``; separation days carry no discount."""

        total = Amount(0)
        for day_values in values:
            if day_values.separation_day:
                continue
            limit = Amount(day_values.integrated_daily_salary).percentage(CAP_PERCENT)
            discount = self.daily_discount(day_values, len(values))
            if self._cap_applies(day_values) and discount.value > limit.value:
                discount = limit
            total = total.add(discount.value)
        return total.result

    @staticmethod
    def pending_days(
        credit: HousingCredit,
        on: date,
        *,
        daily_salary: Number,
        integrated_daily_salary: Number,
        minimum_wage: Number,
        umi: Number,
        variable_salary: Number = 0,
    ) -> tuple[HousingCreditDay, ...]:
        """Daily values for the pending days of ``credit`` as of ``on``."""

        day = HousingCreditDay(
            day=on,
            daily_salary=to_decimal(daily_salary),
            integrated_daily_salary=to_decimal(integrated_daily_salary),
            minimum_wage=to_decimal(minimum_wage),
            umi=to_decimal(umi),
            discount_type=credit.discount_type,
            discount_value=credit.discount_value,
            variable_salary=to_decimal(variable_salary),
        )
        return (day,) * credit.pending_days


def housing_credit_deduction(
    values: Sequence[HousingCreditDay],
    settings: HousingCreditSettings | None = None,
) -> Decimal:
    return HousingCreditCalculator(settings).deduction(values)


__all__ = [
    "CAP_PERCENT",
    "HousingCreditCalculator",
    "bimester_days",
    "housing_credit_deduction",
]
