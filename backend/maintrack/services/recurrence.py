"""Next-occurrence date arithmetic for recurring maintenance."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import TypeVar

from dateutil.relativedelta import relativedelta

DateLike = TypeVar("DateLike", date, datetime)

# Fortnight is a fixed 14-day step; recurrence_interval does not multiply it.
FORTNIGHT_DAYS = 14


def normalize_interval(interval: int | None) -> int:
    if not interval or interval < 1:
        return 1
    return int(interval)


def _add_months(reference: DateLike, months: int) -> DateLike:
    # Day-of-month overflow rolls into the following month.
    return reference.replace(day=1) + relativedelta(months=months) + timedelta(days=reference.day - 1)


def _advance(pattern: str, interval: int, reference: DateLike) -> DateLike | None:
    if pattern == "daily":
        return reference + timedelta(days=interval)
    if pattern == "weekly":
        return reference + timedelta(days=7 * interval)
    if pattern == "fortnight":
        return reference + timedelta(days=FORTNIGHT_DAYS)
    if pattern == "monthly":
        return _add_months(reference, interval)
    if pattern == "quarterly":
        return _add_months(reference, 3 * interval)
    if pattern == "yearly":
        return _add_months(reference, 12 * interval)
    return None


def _past_end(candidate: date | datetime, end_date: date | datetime) -> bool:
    if isinstance(end_date, datetime):
        if not isinstance(candidate, datetime):
            candidate = datetime.combine(candidate, datetime.min.time())
        return candidate > end_date
    # Date-only end bound covers the whole day.
    if isinstance(candidate, datetime):
        candidate = candidate.date()
    return candidate > end_date


def next_occurrence(
    pattern: str | None,
    interval: int | None,
    reference: DateLike,
    end_date: date | datetime | None = None,
) -> DateLike | None:
    """
    Return the occurrence following ``reference`` or None when the chain is finished.

    Month-based patterns keep the day-of-month; a day that does not exist in
    the target month overflows into the next one (Jan 31 2024 + 1 month is
    Mar 2, Feb 29 2024 + 1 year is Mar 1 2025). Unknown patterns yield None.
    """
    if not pattern:
        return None

    candidate = _advance(pattern.strip().lower(), normalize_interval(interval), reference)
    if candidate is None:
        return None
    if end_date is not None and _past_end(candidate, end_date):
        return None
    return candidate
