"""Timezone-anchored calendar arithmetic for seniority and accrual periods."""

from __future__ import annotations

import calendar
from datetime import date, datetime, tzinfo

from dateutil import tz
from dateutil.relativedelta import relativedelta

from finiquito.backend.app.models import Seniority

from .arithmetic import Amount

# UTC-6; POSIX-style zone names invert the sign.
DEFAULT_TIMEZONE = "Etc/GMT+6"

DateLike = date | datetime


def resolve_timezone(zone: str | tzinfo | None) -> tzinfo:
    """Return a ``tzinfo`` for ``zone``, defaulting to UTC-6."""

    if isinstance(zone, tzinfo):
        return zone
    name = zone or DEFAULT_TIMEZONE
    resolved = tz.gettz(name)
    if resolved is None:
        raise ValueError(f"Unknown timezone '{name}'")
    return resolved


class DateOperations:
    """Calendar primitives evaluated in a single, explicit timezone.

    Aware datetimes are converted into the configured zone before their
    calendar date is taken; naive datetimes and plain dates are read as local
    calendar dates in that zone.
    """

    def __init__(self, timezone: str | tzinfo | None = DEFAULT_TIMEZONE) -> None:
        self.timezone = resolve_timezone(timezone)

    def local_date(self, value: DateLike) -> date:
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                return value.astimezone(self.timezone).date()
            return value.date()
        return value

    def full_years_difference(self, start: DateLike, end: DateLike) -> int:
        """Whole years between the start of ``start`` and the end of ``end``."""

        return relativedelta(self.local_date(end), self.local_date(start)).years

    def days_excluding_full_years(self, start: DateLike, end: DateLike) -> int:
        """Days from the last anniversary of ``start`` through ``end``, inclusive."""

        start_day = self.local_date(start)
        anniversary = start_day + relativedelta(years=self.full_years_difference(start, end))
        return (self.local_date(end) - anniversary).days + 1

    def total_days_of_year(self, value: DateLike) -> int:
        return 366 if calendar.isleap(self.local_date(value).year) else 365

    def first_day_of_year(self, value: DateLike) -> date:
        return date(self.local_date(value).year, 1, 1)

    def is_same_or_after(self, value: DateLike, reference: DateLike) -> bool:
        return self.local_date(value) >= self.local_date(reference)


def seniority_of(
    entry: DateLike,
    calculation: DateLike,
    operations: DateOperations,
) -> Seniority:
    """Return completed years, remainder days and the fractional seniority factor."""

    years = operations.full_years_difference(entry, calculation)
    days = operations.days_excluding_full_years(entry, calculation)
    factor = (
        Amount(days)
        .divide(operations.total_days_of_year(calculation))
        .add(years)
        .result
    )
    return Seniority(years=years, days=days, factor=factor)


__all__ = [
    "DEFAULT_TIMEZONE",
    "DateLike",
    "DateOperations",
    "resolve_timezone",
    "seniority_of",
]
