"""Domain-specific calculation helpers."""

from .arithmetic import Amount, quantize, round_currency, sum_amounts, to_decimal
from .dates import DEFAULT_TIMEZONE, DateOperations, resolve_timezone, seniority_of
from .housing_credit import HousingCreditCalculator, bimester_days, housing_credit_deduction
from .income_tax import IncomeTaxCalculator, find_bracket, table_rows
from .perceptions import SEVERANCE_EXEMPTION_PRIORITY, PerceptionCalculator, consume_exemption
from .proportional import InvalidPeriodError, ProportionalCalculator, ProportionalOverrides

__all__ = [
    "Amount",
    "DEFAULT_TIMEZONE",
    "DateOperations",
    "HousingCreditCalculator",
    "IncomeTaxCalculator",
    "InvalidPeriodError",
    "PerceptionCalculator",
    "ProportionalCalculator",
    "ProportionalOverrides",
    "SEVERANCE_EXEMPTION_PRIORITY",
    "bimester_days",
    "consume_exemption",
    "find_bracket",
    "housing_credit_deduction",
    "quantize",
    "resolve_timezone",
    "round_currency",
    "seniority_of",
    "sum_amounts",
    "table_rows",
    "to_decimal",
]
