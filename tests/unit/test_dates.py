"""Unit tests for timezone-anchored calendar arithmetic."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from finiquito.backend.app.services.calculators.dates import (
    DateOperations,
    resolve_timezone,
    seniority_of,
)


def test_seniority_of_same_day_has_zero_factor(date_operations: DateOperations) -> None:
    seniority = seniority_of(date(2025, 3, 10), date(2025, 3, 10), date_operations)

    assert seniority.years == 0
    assert seniority.days == 1
    assert seniority.factor == Decimal("0.00")


def test_seniority_counts_days_inclusively_after_the_last_anniversary(
    date_operations: DateOperations,
) -> None:
    seniority = seniority_of(date(2019, 3, 15), date(2025, 6, 30), date_operations)

    assert seniority.years == 6
    # March 15 through June 30, both ends included
    assert seniority.days == 108
    assert seniority.factor == Decimal("6.30")


def test_seniority_follows_the_timezone_it_is_given() -> None:
    calculation = datetime(2025, 1, 30, 3, 0, tzinfo=timezone.utc)

    mexico_city = seniority_of(date(2025, 1, 1), calculation, DateOperations("Etc/GMT+6"))
    utc = seniority_of(date(2025, 1, 1), calculation, DateOperations("UTC"))

    assert mexico_city.days == 29
    assert utc.days == 30


def test_seniority_requires_date_operations() -> None:
    with pytest.raises(TypeError):
        seniority_of(date(2025, 1, 1), date(2025, 1, 29))  # type: ignore[call-arg]


def test_golden_period_counts_twenty_nine_days(date_operations: DateOperations) -> None:
    days = date_operations.days_excluding_full_years(date(2025, 1, 1), date(2025, 1, 29))

    assert days == 29


def test_full_years_difference_waits_for_the_anniversary(
    date_operations: DateOperations,
) -> None:
    entry = date(2020, 5, 20)

    assert date_operations.full_years_difference(entry, date(2025, 5, 19)) == 4
    assert date_operations.full_years_difference(entry, date(2025, 5, 20)) == 5


def test_total_days_of_year_handles_leap_years(date_operations: DateOperations) -> None:
    assert date_operations.total_days_of_year(date(2024, 7, 1)) == 366
    assert date_operations.total_days_of_year(date(2025, 7, 1)) == 365


def test_aware_datetimes_are_read_in_the_configured_zone() -> None:
    operations = DateOperations("Etc/GMT+6")
    # 03:00 UTC on January 2nd is still January 1st at UTC-6
    moment = datetime(2025, 1, 2, 3, 0, tzinfo=timezone.utc)

    assert operations.local_date(moment) == date(2025, 1, 1)
    assert DateOperations("UTC").local_date(moment) == date(2025, 1, 2)


def test_naive_datetimes_keep_their_calendar_date(date_operations: DateOperations) -> None:
    assert date_operations.local_date(datetime(2025, 1, 2, 3, 0)) == date(2025, 1, 2)


def test_first_day_and_ordering_helpers(date_operations: DateOperations) -> None:
    assert date_operations.first_day_of_year(date(2025, 8, 9)) == date(2025, 1, 1)
    assert date_operations.is_same_or_after(date(2025, 1, 1), date(2025, 1, 1))
    assert not date_operations.is_same_or_after(date(2024, 12, 31), date(2025, 1, 1))


def test_unknown_timezone_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown timezone"):
        resolve_timezone("Mars/Olympus_Mons")
