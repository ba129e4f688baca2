"""Date manipulation and period-bucketing utilities"""

from datetime import date, timedelta
from typing import Iterator, List

from dateutil.relativedelta import relativedelta

from finance_core.domain.exceptions import InvalidPeriodRange
from finance_core.domain.models import Period

PERIOD_KINDS = ("daily", "weekly", "biweekly", "monthly", "quarterly", "annual")


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    if end < start:
        raise InvalidPeriodRange(f"End date {end} is before start date {start}")
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]


def add_months(day: date, months: int) -> date:
    """Calendar month arithmetic; the 31st falls back to the last day of a shorter month"""
    return day + relativedelta(months=months)


def period_label(day: date, kind: str) -> str:
    """
    Canonical label used to deduplicate one posting or alert per period.

    daily → 2026-02-03, weekly/biweekly → 2026-W06 (ISO year-week),
    monthly → 2026-02, quarterly → 2026-Q1, annual → 2026
    """
    if kind == "daily":
        return day.isoformat()
    if kind in ("weekly", "biweekly"):
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if kind == "monthly":
        return f"{day.year}-{day.month:02d}"
    if kind == "quarterly":
        return f"{day.year}-Q{(day.month - 1) // 3 + 1}"
    if kind == "annual":
        return str(day.year)
    raise InvalidPeriodRange(f"Unsupported period kind: {kind}")


def current_period(kind: str, reference: date) -> Period:
    """Period of the given kind containing the reference date"""
    if kind == "daily":
        start = end = reference
    elif kind == "weekly":
        start = reference - timedelta(days=reference.weekday())
        end = start + timedelta(days=6)
    elif kind == "biweekly":
        # Two ISO weeks, starting on odd week numbers
        start = reference - timedelta(days=reference.weekday())
        if start.isocalendar()[1] % 2 == 0:
            start -= timedelta(days=7)
        end = start + timedelta(days=13)
    elif kind == "monthly":
        start = reference.replace(day=1)
        end = add_months(start, 1) - timedelta(days=1)
    elif kind == "quarterly":
        start = date(reference.year, 3 * ((reference.month - 1) // 3) + 1, 1)
        end = add_months(start, 3) - timedelta(days=1)
    elif kind == "annual":
        start = date(reference.year, 1, 1)
        end = date(reference.year, 12, 31)
    else:
        raise InvalidPeriodRange(f"Unsupported period kind: {kind}")

    return Period(kind=kind, start=start, end=end, label=period_label(start, kind))


def previous_period(kind: str, reference: date) -> Period:
    """Period immediately before the one containing the reference date"""
    return current_period(kind, current_period(kind, reference).start - timedelta(days=1))


def iter_periods(start: date, end: date, kind: str) -> Iterator[Period]:
    """Yield every period touching [start, end], clipped to the range"""
    if end < start:
        raise InvalidPeriodRange(f"End date {end} is before start date {start}")

    cursor = start
    while cursor <= end:
        period = current_period(kind, cursor)
        yield Period(
            kind=kind,
            start=max(period.start, start),
            end=min(period.end, end),
            label=period.label,
        )
        cursor = period.end + timedelta(days=1)


def monthly_due_date(first_due: date, offset: int, anchor_day: int) -> date:
    """Due date offset months after first_due, kept on anchor_day where the month allows"""
    return first_due + relativedelta(months=offset, day=anchor_day)
