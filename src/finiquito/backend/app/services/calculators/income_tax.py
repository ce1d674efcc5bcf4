"""Income tax (ISR) withholding on settlement perceptions.

Three computations share one bracket lookup:

* ordinary settlement tax, using the monthly table rescaled to the number of
  days being paid;
* annual bonus tax (Christmas bonus and vacation premiums), using the
  monthly-equivalent method of the income tax regulations;
* severance tax, applying the effective rate of the ordinary monthly salary
  to the taxable severance base.

A zero taxable base or a base that no bracket covers yields a zero result
with no detail; lookups never raise.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from decimal import Decimal

from finiquito.backend.app.models import (
    ZERO,
    BonusTaxBase,
    BonusTaxResult,
    ConceptLine,
    SettlementPerceptions,
    SeverancePerceptions,
    TaxBracketRow,
    TaxDetail,
    TaxResult,
)
from finiquito.backend.config.year_config import TaxBracketTable

from .arithmetic import Amount, Number, sum_amounts, to_decimal

_LOGGER = logging.getLogger(__name__)

REFERENCE_DAYS_PER_MONTH = Decimal("30.4")
DAYS_PER_YEAR = 365
RATE_PLACES = 4
CENT = Decimal("0.01")


def table_rows(table: TaxBracketTable) -> tuple[TaxBracketRow, ...]:
    """Flatten a configured table into lookup rows (open limit becomes zero)."""

    return tuple(
        TaxBracketRow(
            lower_limit=bracket.lower_limit,
            upper_limit=bracket.upper_limit if bracket.upper_limit is not None else Decimal(0),
            fixed_fee=bracket.fixed_fee,
            marginal_percent=bracket.marginal_percent,
        )
        for bracket in table.brackets
    )


def find_bracket(value: Number, rows: Iterable[TaxBracketRow]) -> TaxBracketRow | None:
    """Return the first bracket whose limits include ``value`` (both ends inclusive)."""

    amount = to_decimal(value)
    for row in rows:
        if amount >= row.lower_limit and (row.is_open or amount <= row.upper_limit):
            return row
    return None


class IncomeTaxCalculator:
    """Withholding calculator bound to one monthly bracket table."""

    def __init__(
        self,
        tax_table: Sequence[TaxBracketRow],
        reference_days_per_month: Number = REFERENCE_DAYS_PER_MONTH,
    ) -> None:
        if not tax_table:
            raise ValueError("A tax table requires at least one bracket")
        self.tax_table = tuple(tax_table)
        self.reference_days_per_month = to_decimal(reference_days_per_month)

    def tax_detail(
        self, base: Number, bracket: TaxBracketRow, subsidy: Number = ZERO
    ) -> TaxDetail:
        bracket_base = Amount(base).subtract(bracket.lower_limit)
        marginal_tax = Amount(bracket_base.value).percentage(bracket.marginal_percent)
        before_subsidy = Amount(marginal_tax.value).add(bracket.fixed_fee)
        tax = Amount(before_subsidy.value).subtract(subsidy)
        return TaxDetail(
            taxable_base=Amount(base).result,
            bracket_base=bracket_base.result,
            marginal_tax=marginal_tax.result,
            subsidy=Amount(subsidy).result,
            tax_before_subsidy=before_subsidy.result,
            tax=tax.result,
            bracket=bracket,
        )

    def rescale_table(self, days: Number) -> tuple[TaxBracketRow, ...]:
        """Scale limits and fees of the monthly table to ``days`` of income."""

        rows: list[TaxBracketRow] = []
        last_index = len(self.tax_table) - 1
        for index, row in enumerate(self.tax_table):
            if index == 0:
                lower = CENT
                fee = ZERO
            else:
                lower = Amount(rows[-1].upper_limit).add(CENT).result
                fee = self._scale(row.fixed_fee, days)
            upper = ZERO if index == last_index else self._scale(row.upper_limit, days)
            rows.append(
                TaxBracketRow(
                    lower_limit=lower,
                    upper_limit=upper,
                    fixed_fee=fee,
                    marginal_percent=row.marginal_percent,
                )
            )
        return tuple(rows)

    def _scale(self, value: Number, days: Number) -> Decimal:
        return Amount(value).divide(self.reference_days_per_month).multiply(days).result

    def settlement_tax(
        self,
        perceptions: SettlementPerceptions,
        other_perceptions: Iterable[ConceptLine] = (),
    ) -> TaxResult:
        """Tax on worked days, seventh day and vacation pay over the days paid."""

        taxable = sum_amounts(
            perceptions.worked_days.taxable_base,
            perceptions.vacation.taxable_base,
            perceptions.pending_vacation.taxable_base,
            perceptions.seventh_day.taxable_base,
            *(line.amount for line in other_perceptions if line.is_taxable),
        )
        days = sum_amounts(
            perceptions.worked_days.quantity,
            math.ceil(perceptions.seventh_day.quantity),
            perceptions.vacation.quantity,
            perceptions.pending_vacation.quantity,
        )
        if taxable.value == 0:
            return TaxResult()

        bracket = find_bracket(taxable.value, self.rescale_table(days.result))
        if bracket is None:
            _LOGGER.debug(
                "No bracket covers settlement base %s over %s days", taxable.value, days.result
            )
            return TaxResult()

        detail = self.tax_detail(taxable.value, bracket)
        return TaxResult(total=detail.tax, detail=(detail,))

    def bonus_tax(
        self, perceptions: SettlementPerceptions, daily_salary: Number
    ) -> BonusTaxResult | None:
        """Tax on the Christmas bonus and vacation premiums; ``None`` when not computable."""

        taxable = sum_amounts(
            perceptions.christmas_bonus.taxable_base,
            perceptions.vacation_premium.taxable_base,
            perceptions.pending_vacation_premium.taxable_base,
        )
        fraction_one = (
            Amount(taxable.result).divide(DAYS_PER_YEAR).multiply(self.reference_days_per_month)
        )
        monthly_salary = Amount(daily_salary).multiply(self.reference_days_per_month)
        fraction_two = Amount(fraction_one.value).add(monthly_salary.value)

        if fraction_one.result == 0:
            return None

        bracket_two = find_bracket(fraction_two.result, self.tax_table)
        bracket_monthly = find_bracket(monthly_salary.result, self.tax_table)
        if bracket_two is None or bracket_monthly is None:
            _LOGGER.debug(
                "Bonus tax not computable for monthly salary %s", monthly_salary.result
            )
            return None

        tax_on_fraction_two = self.tax_detail(fraction_two.result, bracket_two)
        tax_on_monthly_salary = self.tax_detail(monthly_salary.result, bracket_monthly)
        fraction_three = Amount(tax_on_fraction_two.tax).subtract(tax_on_monthly_salary.tax)
        factor = (
            Amount(fraction_three.result, RATE_PLACES)
            .divide(fraction_one.result)
            .multiply(100)
        )
        total = Amount(taxable.result).percentage(factor.value)

        return BonusTaxResult(
            daily_salary=to_decimal(daily_salary),
            monthly_salary=monthly_salary.result,
            taxable_base=BonusTaxBase(
                christmas_bonus=perceptions.christmas_bonus.taxable_base,
                vacation_premium=perceptions.vacation_premium.taxable_base,
                pending_vacation_premium=perceptions.pending_vacation_premium.taxable_base,
                total=taxable.result,
            ),
            fraction_one=fraction_one.result,
            fraction_two=fraction_two.result,
            fraction_three=fraction_three.result,
            factor=factor.value,
            tax_on_fraction_two=tax_on_fraction_two,
            tax_on_monthly_salary=tax_on_monthly_salary,
            total=total.result,
        )

    def severance_tax(
        self, perceptions: SeverancePerceptions, daily_salary: Number
    ) -> TaxResult:
        """Apply the effective rate of the ordinary monthly salary to severance."""

        taxable = sum_amounts(
            perceptions.twenty_day_indemnity.taxable_base,
            perceptions.ninety_day_indemnity.taxable_base,
            perceptions.seniority_bonus.taxable_base,
        )
        monthly_salary = Amount(daily_salary).multiply(self.reference_days_per_month)
        if taxable.value == 0:
            return TaxResult()

        bracket = find_bracket(monthly_salary.result, self.tax_table)
        if bracket is None:
            _LOGGER.debug("No bracket covers monthly salary %s", monthly_salary.result)
            return TaxResult()

        detail = self.tax_detail(monthly_salary.result, bracket)
        rate = Amount(detail.tax).divide(monthly_salary.result)
        total = Amount(rate.value).multiply(taxable.value)
        return TaxResult(total=total.result, detail=(detail,))


__all__ = [
    "DAYS_PER_YEAR",
    "IncomeTaxCalculator",
    "REFERENCE_DAYS_PER_MONTH",
    "find_bracket",
    "table_rows",
]
