"""Conversion of day factors into perceptions with taxable and exempt bases."""

from __future__ import annotations

import math
from dataclasses import replace
from decimal import Decimal
from typing import Final

from finiquito.backend.app.models import (
    ZERO,
    AccumulatedHistory,
    PayrollConstants,
    Perception,
    ProportionalSeveranceConcepts,
    Seniority,
    SettlementConcepts,
    SettlementPerceptions,
    SeverancePerceptions,
)

from .arithmetic import Amount, Number, to_decimal

PERCEPTION_PLACES = 12
CHRISTMAS_BONUS_EXEMPT_UMAS = 30
VACATION_PREMIUM_EXEMPT_UMAS = 15
SEVERANCE_EXEMPT_UMAS_PER_YEAR = 90
SENIORITY_BONUS_WAGE_MULTIPLE = 2

# Order in which severance concepts draw on the shared exempt pool.
SEVERANCE_EXEMPTION_PRIORITY: Final[tuple[str, ...]] = (
    "ninety_day_indemnity",
    "twenty_day_indemnity",
    "seniority_bonus",
)


def _split(perception: Perception, exempt: Decimal) -> Perception:
    taxable = Amount(perception.total_amount).subtract(exempt).result
    return replace(perception, exempt_base=exempt, taxable_base=taxable)


def consume_exemption(perception: Perception, pool: Amount) -> tuple[Perception, Amount]:
    """Exempt as much of ``perception`` as ``pool`` allows and return the remainder."""

    available = pool.result
    if perception.total_amount <= 0 or available <= 0:
        return perception, pool
    exempt = min(available, perception.total_amount)
    return _split(perception, exempt), pool.subtract(exempt)


class PerceptionCalculator:
    """Price settlement and severance day factors at a daily salary."""

    def __init__(self, uma: Number, minimum_wage: Number) -> None:
        self.uma = to_decimal(uma)
        self.minimum_wage = to_decimal(minimum_wage)

    @classmethod
    def from_constants(cls, constants: PayrollConstants) -> PerceptionCalculator:
        return cls(uma=constants.uma, minimum_wage=constants.general_wage)

    def concept(self, daily_salary: Number, factor: Number) -> Perception:
        """Fully taxable perception worth ``daily_salary`` times ``factor``."""

        amount = Amount(daily_salary, PERCEPTION_PLACES).multiply(factor).result
        return Perception(
            quantity=to_decimal(factor),
            taxable_base=amount,
            exempt_base=ZERO,
            total_amount=amount,
        )

    def christmas_bonus(self, daily_salary: Number, days: Number) -> Perception:
        perception = self.concept(daily_salary, days)
        exempt = Amount(self.uma).multiply(CHRISTMAS_BONUS_EXEMPT_UMAS).result
        return _split(perception, min(exempt, perception.total_amount))

    def vacation_premium(
        self,
        daily_salary: Number,
        vacation_days: Number,
        percent: Number,
        consumed_exemption: Number = ZERO,
    ) -> Perception:
        """Premium on ``vacation_days``; the exemption is reduced by ``consumed_exemption``."""

        factor = Amount(vacation_days).percentage(percent).result
        perception = self.concept(daily_salary, factor)
        if factor <= 0:
            return perception

        exempt = (
            Amount(self.uma)
            .multiply(VACATION_PREMIUM_EXEMPT_UMAS)
            .subtract(consumed_exemption)
            .result
        )
        exempt = max(ZERO, min(exempt, perception.total_amount))
        return _split(perception, exempt)

    def settlement_perceptions(
        self,
        daily_salary: Number,
        concepts: SettlementConcepts,
        history: AccumulatedHistory | None = None,
        premium_percent: Number = Decimal("25"),
    ) -> SettlementPerceptions:
        consumed = (history or AccumulatedHistory()).vacation_premium_consumed
        return SettlementPerceptions(
            worked_days=self.concept(daily_salary, concepts.worked_days),
            seventh_day=self.concept(daily_salary, concepts.seventh_day),
            vacation=self.concept(daily_salary, concepts.vacation_days),
            pending_vacation=self.concept(daily_salary, concepts.pending_vacation_days),
            vacation_premium=self.vacation_premium(
                daily_salary, concepts.premium_vacation_days, premium_percent, consumed
            ),
            pending_vacation_premium=self.vacation_premium(
                daily_salary, concepts.pending_premium_vacation_days, premium_percent, consumed
            ),
            christmas_bonus=self.christmas_bonus(daily_salary, concepts.christmas_bonus_days),
            retroactive_salary=self.concept(daily_salary, concepts.retroactive_salary_days),
        )

    def seniority_bonus_rate(self, daily_salary: Number) -> Decimal:
        """Daily rate for the seniority bonus, capped at twice the minimum wage."""

        cap = Amount(self.minimum_wage).multiply(SENIORITY_BONUS_WAGE_MULTIPLE).result
        salary = to_decimal(daily_salary)
        return salary if salary <= cap else cap

    def exempt_pool(self, seniority: Seniority) -> Amount:
        years = math.ceil(seniority.factor)
        return Amount(years).multiply(SEVERANCE_EXEMPT_UMAS_PER_YEAR).multiply(self.uma)

    def severance_perceptions(
        self,
        daily_salary: Number,
        concepts: ProportionalSeveranceConcepts,
        seniority: Seniority,
    ) -> SeverancePerceptions:
        rate = self.seniority_bonus_rate(daily_salary)
        seniority_bonus = replace(
            self.concept(rate, concepts.seniority_bonus),
            detail=({"daily_rate": rate, "capped": rate < to_decimal(daily_salary)},),
        )
        perceptions = {
            "ninety_day_indemnity": self.concept(daily_salary, concepts.ninety_day_indemnity),
            "twenty_day_indemnity": self.concept(daily_salary, concepts.twenty_day_indemnity),
            "seniority_bonus": seniority_bonus,
        }

        pool = self.exempt_pool(seniority)
        for name in SEVERANCE_EXEMPTION_PRIORITY:
            perceptions[name], pool = consume_exemption(perceptions[name], pool)

        return SeverancePerceptions(**perceptions)


__all__ = [
    "PERCEPTION_PLACES",
    "PerceptionCalculator",
    "SEVERANCE_EXEMPTION_PRIORITY",
    "consume_exemption",
]
