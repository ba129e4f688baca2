"""Analytics aggregator - time series and category/entity breakdowns"""

from bisect import bisect_right
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from finance_core.domain.exceptions import InvalidPeriodRange
from finance_core.domain.models import (
    EXPENSE,
    INCOME,
    AnalyticsReport,
    BreakdownItem,
    Movement,
    TimeSeriesPoint,
)
from finance_core.utils.date_utils import iter_periods
from finance_core.utils.money import signed_amount

GRANULARITIES = ("daily", "weekly", "monthly")

UNASSIGNED = "unassigned"


def recommended_granularity(start_date: date, end_date: date) -> str:
    """
    Granularity callers should request for a range.

    Under 30 days → daily, 30-90 days → weekly, over 90 days → monthly.
    build_report never overrides the granularity it is given.
    """
    if end_date < start_date:
        raise InvalidPeriodRange(f"End date {end_date} is before start date {start_date}")
    days = (end_date - start_date).days + 1
    if days < 30:
        return "daily"
    if days <= 90:
        return "weekly"
    return "monthly"


def percentage_of(amount: int, total: int) -> int:
    """Rounded share of total in percent, 0 when the total is 0"""
    if total == 0:
        return 0
    ratio = Decimal(amount) * 100 / Decimal(total)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_time_series(
    movements: Iterable[Movement],
    start_date: date,
    end_date: date,
    granularity: str,
) -> List[TimeSeriesPoint]:
    """One point per bucket in range; empty buckets are explicit zero points"""
    if granularity not in GRANULARITIES:
        raise InvalidPeriodRange(f"Unsupported granularity: {granularity}")

    points = [
        TimeSeriesPoint(label=p.label, start=p.start, end=p.end)
        for p in iter_periods(start_date, end_date, granularity)
    ]

    starts = [p.start for p in points]
    for movement in movements:
        if not start_date <= movement.date <= end_date:
            continue
        point = points[bisect_right(starts, movement.date) - 1]
        if movement.direction == INCOME:
            point.income_cents += movement.amount_cents
        else:
            point.expense_cents += movement.amount_cents

    return points


def _breakdown(
    movements: List[Movement],
    key_of,
    labels: Dict[str, str],
    amount_of,
    total: int,
) -> List[BreakdownItem]:
    amounts: Dict[str, int] = defaultdict(int)
    counts: Dict[str, int] = defaultdict(int)
    for movement in movements:
        key = key_of(movement) or UNASSIGNED
        amounts[key] += amount_of(movement)
        counts[key] += 1

    items = [
        BreakdownItem(
            key=key,
            label=labels.get(key, key),
            amount_cents=amount,
            percentage=percentage_of(abs(amount), total),
            count=counts[key],
        )
        for key, amount in amounts.items()
    ]
    items.sort(key=lambda item: (-abs(item.amount_cents), item.key))
    return items


def build_report(
    movements: Iterable[Movement],
    start_date: date,
    end_date: date,
    granularity: str,
    category_labels: Optional[Dict[str, str]] = None,
    entity_names: Optional[Dict[str, str]] = None,
    generated_at: Optional[datetime] = None,
) -> AnalyticsReport:
    """
    Aggregate movements in [start_date, end_date] into a report.

    Breakdowns:
    - expense_by_category: share of total expense
    - income_by_category: share of total income
    - net_by_entity: signed net per entity, share of the sum of absolute nets

    Raises:
        InvalidPeriodRange: end_date before start_date or unknown granularity
    """
    if end_date < start_date:
        raise InvalidPeriodRange(f"End date {end_date} is before start date {start_date}")

    category_labels = category_labels or {}
    entity_names = entity_names or {}
    in_range = [m for m in movements if start_date <= m.date <= end_date]

    expenses = [m for m in in_range if m.direction == EXPENSE]
    incomes = [m for m in in_range if m.direction == INCOME]
    total_expense = sum(m.amount_cents for m in expenses)
    total_income = sum(m.amount_cents for m in incomes)

    net_by_entity: Dict[str, int] = defaultdict(int)
    for movement in in_range:
        net_by_entity[movement.entity_id or UNASSIGNED] += signed_amount(movement)
    entity_volume = sum(abs(v) for v in net_by_entity.values())

    return AnalyticsReport(
        start_date=start_date,
        end_date=end_date,
        granularity=granularity,
        generated_at=generated_at or datetime.now(timezone.utc),
        total_income_cents=total_income,
        total_expense_cents=total_expense,
        time_series=build_time_series(in_range, start_date, end_date, granularity),
        expense_by_category=_breakdown(
            expenses, lambda m: m.category, category_labels, lambda m: m.amount_cents, total_expense
        ),
        income_by_category=_breakdown(
            incomes, lambda m: m.category, category_labels, lambda m: m.amount_cents, total_income
        ),
        net_by_entity=_breakdown(in_range, lambda m: m.entity_id, entity_names, signed_amount, entity_volume),
    )
