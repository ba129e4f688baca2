"""Cash-flow forecast engine - projected balances from scheduled obligations"""

from datetime import date, datetime, timedelta, timezone
from itertools import groupby
from typing import Iterable, List, Optional

from finance_core.domain.exceptions import InvalidPeriodRange
from finance_core.domain.models import (
    INCOME,
    PAID,
    CashFlowForecast,
    Contribution,
    ForecastEvent,
    ForecastPeriod,
    LongTermDebt,
    RecurringRule,
)
from finance_core.domain.recurring import is_expired, occurrences_between
from finance_core.utils.date_utils import add_months, iter_periods

FORECAST_PERIOD_TYPES = ("weekly", "monthly")


def recurring_events(rules: Iterable[RecurringRule], start: date, end: date) -> List[ForecastEvent]:
    """
    Occurrences of active rules inside [start, end].

    Every active rule counts regardless of auto_post; rules that are estimated
    or wait for confirmation are flagged is_estimated.
    """
    events = []
    for rule in rules:
        if not rule.active or is_expired(rule, start):
            continue
        sign = 1 if rule.direction == INCOME else -1
        for due_date in occurrences_between(rule, start, end, limit=10_000):
            events.append(
                ForecastEvent(
                    date=due_date,
                    amount_cents=sign * rule.amount_cents,
                    source="recurring",
                    reference_id=rule.id,
                    description=rule.description,
                    is_estimated=rule.is_estimated or not rule.auto_post,
                )
            )
    return events


def debt_events(debts: Iterable[LongTermDebt], start: date, end: date) -> List[ForecastEvent]:
    """Outstanding amount of every unpaid amortization entry due in range"""
    events = []
    for debt in debts:
        if not debt.active:
            continue
        for entry in debt.schedule:
            if entry.status == PAID or not start <= entry.due_date <= end:
                continue
            events.append(
                ForecastEvent(
                    date=entry.due_date,
                    amount_cents=-entry.outstanding_cents,
                    source="debt",
                    reference_id=f"{debt.id}#{entry.period}",
                    description=debt.name,
                )
            )
    return events


def goal_events(contributions: Iterable[Contribution], start: date, end: date) -> List[ForecastEvent]:
    """Planned goal contributions leave the spendable balance"""
    return [
        ForecastEvent(
            date=c.date,
            amount_cents=-c.amount_cents,
            source="goal",
            reference_id=c.goal_id,
            description="Goal contribution",
        )
        for c in contributions
        if start <= c.date <= end
    ]


def generate_forecast(
    initial_balance_cents: int,
    recurring_rules: Iterable[RecurringRule],
    long_term_debts: Iterable[LongTermDebt],
    goal_contributions: Iterable[Contribution],
    start_date: date,
    horizon_months: int,
    period_type: str = "monthly",
    generated_at: Optional[datetime] = None,
) -> CashFlowForecast:
    """
    Project balances across the horizon, one entry per period bucket.

    Periods run strictly chronologically and chain: each opening balance is the
    previous closing balance. Reports the lowest closing balance with its
    period end date, and first_negative_date: the day of the first event after
    which the running balance drops below zero (start_date when the initial
    balance is already negative, None when it never happens).

    Raises:
        InvalidPeriodRange: Non-positive horizon or unsupported period type
    """
    if horizon_months <= 0:
        raise InvalidPeriodRange(f"Forecast horizon must be positive, got {horizon_months}")
    if period_type not in FORECAST_PERIOD_TYPES:
        raise InvalidPeriodRange(f"Unsupported forecast period type: {period_type}")

    end_date = add_months(start_date, horizon_months) - timedelta(days=1)
    events = (
        recurring_events(recurring_rules, start_date, end_date)
        + debt_events(long_term_debts, start_date, end_date)
        + goal_events(goal_contributions, start_date, end_date)
    )
    events.sort(key=lambda e: (e.date, -e.amount_cents))

    entries: List[ForecastPeriod] = []
    balance = initial_balance_cents
    first_negative = start_date if balance < 0 else None
    cursor = 0

    for period in iter_periods(start_date, end_date, period_type):
        opening = balance
        period_events = []
        while cursor < len(events) and events[cursor].date <= period.end:
            period_events.append(events[cursor])
            cursor += 1

        # Same-day events settle together before checking the sign
        for day, day_events in groupby(period_events, key=lambda e: e.date):
            balance += sum(e.amount_cents for e in day_events)
            if first_negative is None and balance < 0:
                first_negative = day

        entries.append(
            ForecastPeriod(
                label=period.label,
                start=period.start,
                end=period.end,
                opening_balance_cents=opening,
                projected_income_cents=sum(e.amount_cents for e in period_events if e.amount_cents > 0),
                projected_expenses_cents=-sum(e.amount_cents for e in period_events if e.amount_cents < 0),
                closing_balance_cents=balance,
                events=period_events,
            )
        )

    lowest = min(entries, key=lambda p: p.closing_balance_cents)
    return CashFlowForecast(
        start_date=start_date,
        end_date=end_date,
        period_type=period_type,
        generated_at=generated_at or datetime.now(timezone.utc),
        initial_balance_cents=initial_balance_cents,
        entries=entries,
        lowest_balance_cents=lowest.closing_balance_cents,
        lowest_balance_date=lowest.end,
        first_negative_date=first_negative,
    )
