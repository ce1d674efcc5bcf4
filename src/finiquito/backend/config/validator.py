"""Utilities for validating payroll constants and surfacing issues."""

from __future__ import annotations

import argparse
from typing import Iterable, Sequence

from .year_config import (
    BenefitTables,
    EffectiveValue,
    MinimumWage,
    TaxBracketTable,
    VacationTable,
    YearConfiguration,
    available_years,
    load_benefit_tables,
    load_year_configuration,
)


def _format_scope(scope: str, message: str) -> str:
    return f"{scope}: {message}"


def _validate_reference_values(scope: str, entries: Sequence[EffectiveValue]) -> list[str]:
    errors: list[str] = []
    previous: EffectiveValue | None = None

    for entry in entries:
        label = f"{scope}[{entry.effective_date.isoformat()}]"
        if entry.value <= 0:
            errors.append(_format_scope(label, "value must be positive"))
        if previous is not None and entry.value < previous.value:
            errors.append(
                _format_scope(
                    label,
                    f"value {entry.value} decreases from {previous.value}",
                )
            )
        previous = entry

    return errors


def _validate_minimum_wages(entries: Iterable[MinimumWage]) -> list[str]:
    errors: list[str] = []

    for wage in entries:
        label = f"minimum_wages[{wage.effective_date.isoformat()}]"
        if wage.general <= 0 or wage.border <= 0:
            errors.append(_format_scope(label, "wages must be positive"))
        if wage.border < wage.general:
            errors.append(
                _format_scope(label, "border zone wage should not be below the general wage")
            )

    return errors


def _validate_tax_table(table: TaxBracketTable) -> list[str]:
    errors: list[str] = []
    scope = f"income_tax.tables[{table.effective_date.isoformat()}]"
    brackets = list(table.brackets)

    if not brackets:
        return [_format_scope(scope, "no brackets defined")]

    if brackets[0].fixed_fee != 0:
        errors.append(_format_scope(scope, "first bracket should carry no fixed fee"))

    for index, (previous, current) in enumerate(zip(brackets, brackets[1:]), start=1):
        if current.marginal_percent < previous.marginal_percent:
            errors.append(
                _format_scope(
                    f"{scope}.brackets[{index}]",
                    "marginal percentages must not decrease",
                )
            )
        if current.fixed_fee < previous.fixed_fee:
            errors.append(
                _format_scope(
                    f"{scope}.brackets[{index}]",
                    "fixed fees must not decrease",
                )
            )

    if not brackets[-1].is_open:
        errors.append(_format_scope(scope, "final bracket must be open"))

    return errors


def _validate_vacation_table(table: VacationTable) -> list[str]:
    errors: list[str] = []
    scope = f"vacation_tables[{table.effective_date.isoformat()}]"
    entries = list(table.entries)

    if entries and entries[0].years != 1:
        errors.append(_format_scope(scope, "table must start at one year of service"))

    for previous, current in zip(entries, entries[1:]):
        if current.years != previous.years + 1:
            errors.append(
                _format_scope(scope, f"missing entry between {previous.years} and {current.years}")
            )
        if current.days < previous.days:
            errors.append(
                _format_scope(
                    scope,
                    f"entitlement for {current.years} years decreases to {current.days} days",
                )
            )

    return errors


def validate_benefit_tables(tables: BenefitTables) -> list[str]:
    """Return a list of validation issues for the shared benefit tables."""

    errors: list[str] = []
    for table in tables.vacation_tables:
        errors.extend(_validate_vacation_table(table))
    return errors


def validate_year_configuration(config: YearConfiguration) -> list[str]:
    """Return a list of validation issues for the provided configuration."""

    errors: list[str] = []

    errors.extend(_validate_reference_values("uma", config.uma))
    errors.extend(_validate_reference_values("umi", config.umi))
    errors.extend(_validate_minimum_wages(config.minimum_wages))
    for table in config.tax_tables:
        errors.extend(_validate_tax_table(table))

    withholding = config.settlement.estimate_withholding
    if withholding.amount > withholding.threshold:
        errors.append(
            _format_scope(
                "settlement.estimate_withholding",
                "nominal amount cannot exceed the threshold",
            )
        )

    return errors


def validate_all_years(years: Sequence[int] | None = None) -> dict[int, list[str]]:
    """Validate all configured years and return issues keyed by year."""

    targets = years or available_years()
    results: dict[int, list[str]] = {}

    for year in targets:
        config = load_year_configuration(year)
        results[int(year)] = validate_year_configuration(config)

    return results


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Validate configured payroll years and benefit tables, reporting issues "
            "helpful to contributors."
        )
    )
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Specific years to validate (defaults to all configured years)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for running validations from the command line."""

    parser = _build_argument_parser()
    args = parser.parse_args(argv)
    years = args.years or available_years()

    if not years:
        parser.print_help()
        return 1

    exit_code = 0

    benefit_issues = validate_benefit_tables(load_benefit_tables())
    if benefit_issues:
        exit_code = 1
        print(f"[benefits] {len(benefit_issues)} issue(s) detected:")
        for issue in benefit_issues:
            print(f"  - {issue}")
    else:
        print("[benefits] OK")

    for year in years:
        try:
            config = load_year_configuration(year)
        except FileNotFoundError as error:
            print(f"[{year}] failed to load configuration: {error}")
            exit_code = 1
            continue

        issues = validate_year_configuration(config)
        if issues:
            exit_code = 1
            print(f"[{year}] {len(issues)} issue(s) detected:")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print(f"[{year}] OK")

    return exit_code


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    raise SystemExit(main())
