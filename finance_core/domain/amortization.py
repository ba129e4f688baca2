"""Fixed-payment (French method) amortization schedules for long-term debts"""

from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from finance_core.domain.exceptions import InvalidLoanParameters, InvalidScheduleTransition
from finance_core.domain.models import (
    OVERDUE,
    PAID,
    PARTIAL,
    PENDING,
    AmortizationEntry,
    LongTermDebt,
    RateChange,
)
from finance_core.utils.date_utils import add_months, monthly_due_date

REDUCE_PAYMENT = "reduce_payment"
REDUCE_TERM = "reduce_term"

# Allowed forward moves of an entry status
_TRANSITIONS = {
    PENDING: {PAID, PARTIAL, OVERDUE},
    OVERDUE: {PAID, PARTIAL},
    PARTIAL: {PAID, PARTIAL},
    PAID: set(),
}


def _to_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _monthly_rate(annual_rate) -> Decimal:
    return Decimal(str(annual_rate)) / 12


def _validate(principal_cents: int, annual_rate, term_periods: int) -> None:
    if principal_cents <= 0:
        raise InvalidLoanParameters(f"Principal must be positive, got {principal_cents}")
    if annual_rate is None or Decimal(str(annual_rate)) <= 0:
        raise InvalidLoanParameters(f"Annual rate must be positive, got {annual_rate}")
    if term_periods <= 0:
        raise InvalidLoanParameters(f"Term must be positive, got {term_periods}")


def fixed_payment(principal_cents: int, annual_rate, term_periods: int) -> int:
    """
    Equal payment for the French method, rounded to the nearest cent.

    payment = P·r·(1+r)^n / ((1+r)^n − 1), r = annual_rate / 12
    """
    _validate(principal_cents, annual_rate, term_periods)
    r = _monthly_rate(annual_rate)
    growth = (1 + r) ** term_periods
    return _to_cents(Decimal(principal_cents) * r * growth / (growth - 1))


def _build_entries(
    principal_cents: int,
    r: Decimal,
    payment: int,
    term_periods: int,
    first_due: date,
    anchor_day: int,
    first_period: int,
) -> List[AmortizationEntry]:
    """
    Generate entries from a remaining principal; the last entry absorbs rounding drift.

    Stops as soon as the balance reaches zero. When the rounded payment exceeds
    the exact one (tiny principals, near-zero rates) the loan is settled before
    term_periods and fewer entries are returned.
    """
    entries = []
    remaining = principal_cents
    for i in range(term_periods):
        interest = _to_cents(Decimal(remaining) * r)
        is_final = i == term_periods - 1
        principal_part = payment - interest

        if is_final or principal_part >= remaining:
            # Force the balance to exactly zero
            principal_part = remaining
            amount = principal_part + interest
        else:
            amount = payment

        remaining -= principal_part
        entries.append(
            AmortizationEntry(
                period=first_period + i,
                due_date=monthly_due_date(first_due, first_period - 1 + i, anchor_day),
                payment_cents=amount,
                principal_cents=principal_part,
                interest_cents=interest,
                remaining_principal_cents=remaining,
            )
        )
        if remaining == 0:
            break

    return entries


def compute_fixed_payment_schedule(
    principal_cents: int,
    annual_rate,
    term_periods: int,
    start_date: date,
) -> List[AmortizationEntry]:
    """
    Build a French-method amortization schedule.

    Period k falls due k months after start_date. The final period's principal
    portion is the exact remaining balance, so the schedule always ends at zero
    and the principal portions sum to the original principal. A payment rounded
    up to the cent can settle the balance early, in which case the schedule has
    fewer than term_periods entries (1 cent over 2 months is a single entry).

    Raises:
        InvalidLoanParameters: Non-positive principal, rate or term
    """
    payment = fixed_payment(principal_cents, annual_rate, term_periods)
    return _build_entries(
        principal_cents,
        _monthly_rate(annual_rate),
        payment,
        term_periods,
        first_due=add_months(start_date, 1),
        anchor_day=start_date.day,
        first_period=1,
    )


def _reduce_term_entries(
    principal_cents: int,
    r: Decimal,
    payment: int,
    first_due: date,
    anchor_day: int,
    first_period: int,
) -> List[AmortizationEntry]:
    """Keep the payment amount and pay the balance off in as many periods as needed"""
    if payment <= _to_cents(Decimal(principal_cents) * r):
        raise InvalidLoanParameters("Payment does not cover the interest of the remaining principal")

    entries = []
    remaining = principal_cents
    period = first_period
    while remaining > 0:
        interest = _to_cents(Decimal(remaining) * r)
        principal_part = min(payment - interest, remaining)
        remaining -= principal_part
        entries.append(
            AmortizationEntry(
                period=period,
                due_date=monthly_due_date(first_due, period - 1, anchor_day),
                payment_cents=principal_part + interest,
                principal_cents=principal_part,
                interest_cents=interest,
                remaining_principal_cents=remaining,
            )
        )
        period += 1

    return entries


def recompute_from_period(
    schedule: List[AmortizationEntry],
    from_period: int,
    new_principal_cents: int,
    annual_rate,
    remaining_periods: Optional[int] = None,
    strategy: str = REDUCE_PAYMENT,
) -> List[AmortizationEntry]:
    """
    Regenerate a schedule from from_period after an extra payment or a rate change.

    Entries before from_period are kept unchanged. The remainder is rebuilt from
    new_principal_cents with due dates continuing on the original monthly day.
    reduce_payment re-amortizes over the remaining term; reduce_term keeps the
    previous payment amount and shortens the term.
    """
    if not schedule:
        raise InvalidLoanParameters("Cannot recompute an empty schedule")
    if from_period < 1 or from_period > len(schedule):
        raise InvalidLoanParameters(f"Period {from_period} is outside the schedule")
    if new_principal_cents < 0:
        raise InvalidLoanParameters("Principal cannot be negative")

    kept = [replace(e) for e in schedule if e.period < from_period]
    if new_principal_cents == 0:
        return kept

    first_due = schedule[0].due_date
    # Clamped months hide the original day; the longest month still shows it
    anchor_day = max(e.due_date.day for e in schedule)

    r = _monthly_rate(annual_rate)
    if strategy == REDUCE_TERM:
        _validate(new_principal_cents, annual_rate, 1)
        payment = schedule[from_period - 1].payment_cents
        rebuilt = _reduce_term_entries(new_principal_cents, r, payment, first_due, anchor_day, from_period)
    elif strategy == REDUCE_PAYMENT:
        term = remaining_periods if remaining_periods is not None else len(schedule) - from_period + 1
        payment = fixed_payment(new_principal_cents, annual_rate, term)
        rebuilt = _build_entries(new_principal_cents, r, payment, term, first_due, anchor_day, from_period)
    else:
        raise InvalidLoanParameters(f"Unknown recompute strategy: {strategy}")

    return kept + rebuilt


def record_payment(
    schedule: List[AmortizationEntry],
    period: int,
    amount_cents: int,
    movement_id: Optional[str] = None,
) -> List[AmortizationEntry]:
    """
    Apply a payment to one entry and return the updated schedule.

    The entry becomes paid when the cumulative amount covers the payment,
    partial otherwise. Status only moves forward.
    """
    if amount_cents <= 0:
        raise InvalidScheduleTransition("Payment amount must be positive")

    updated = []
    found = False
    for entry in schedule:
        if entry.period != period:
            updated.append(replace(entry))
            continue

        found = True
        paid_so_far = (entry.partial_paid_cents or 0) + amount_cents
        new_status = PAID if paid_so_far >= entry.payment_cents else PARTIAL
        if new_status not in _TRANSITIONS[entry.status]:
            raise InvalidScheduleTransition(f"Period {period} cannot move from {entry.status} to {new_status}")

        updated.append(
            replace(
                entry,
                status=new_status,
                movement_id=movement_id or entry.movement_id,
                partial_paid_cents=None if new_status == PAID else paid_so_far,
            )
        )

    if not found:
        raise InvalidScheduleTransition(f"Period {period} is not in the schedule")
    return updated


def mark_overdue(schedule: List[AmortizationEntry], today: date) -> List[AmortizationEntry]:
    """Move pending entries whose due date has passed to overdue"""
    return [
        replace(e, status=OVERDUE) if e.status == PENDING and e.due_date < today else replace(e)
        for e in schedule
    ]


def total_interest_cost(schedule: List[AmortizationEntry]) -> int:
    """Sum of interest portions across the schedule"""
    return sum(e.interest_cents for e in schedule)


def first_overdue_entry(schedule: List[AmortizationEntry], today: date) -> Optional[AmortizationEntry]:
    """Earliest entry past its due date that is neither paid nor partially paid"""
    for entry in sorted(schedule, key=lambda e: e.due_date):
        if entry.due_date < today and entry.status not in (PAID, PARTIAL):
            return entry
    return None


def outstanding_principal(schedule: List[AmortizationEntry]) -> int:
    """Principal still owed: the principal portions of every entry not yet paid"""
    return sum(e.principal_cents for e in schedule if e.status != PAID)


def build_debt(
    debt_id: str,
    name: str,
    principal_cents: int,
    annual_rate,
    term_months: int,
    start_date: date,
) -> LongTermDebt:
    """Create a LongTermDebt with a freshly computed French schedule"""
    schedule = compute_fixed_payment_schedule(principal_cents, annual_rate, term_months, start_date)
    return LongTermDebt(
        id=debt_id,
        name=name,
        original_principal_cents=principal_cents,
        current_principal_cents=principal_cents,
        annual_rate=float(annual_rate),
        monthly_payment_cents=schedule[0].payment_cents,
        term_months=term_months,
        start_date=start_date,
        schedule=schedule,
    )


def record_debt_payment(
    debt: LongTermDebt,
    period: int,
    amount_cents: int,
    movement_id: Optional[str] = None,
) -> LongTermDebt:
    """Record a scheduled payment and refresh the debt's current principal"""
    schedule = record_payment(debt.schedule, period, amount_cents, movement_id)
    return replace(debt, schedule=schedule, current_principal_cents=outstanding_principal(schedule))


def apply_extra_payment(
    debt: LongTermDebt,
    amount_cents: int,
    from_period: int,
    strategy: str = REDUCE_PAYMENT,
) -> LongTermDebt:
    """Pay down principal ahead of schedule and regenerate the remaining periods"""
    if amount_cents <= 0:
        raise InvalidLoanParameters("Extra payment must be positive")

    owed = sum(e.principal_cents for e in debt.schedule if e.period >= from_period)
    new_principal = max(owed - amount_cents, 0)
    schedule = recompute_from_period(debt.schedule, from_period, new_principal, debt.annual_rate, strategy=strategy)
    remaining = [e for e in schedule if e.period >= from_period]
    return replace(
        debt,
        schedule=schedule,
        current_principal_cents=outstanding_principal(schedule),
        monthly_payment_cents=remaining[0].payment_cents if remaining else 0,
        active=bool(remaining) or any(e.status != PAID for e in schedule),
    )


def apply_rate_change(debt: LongTermDebt, change: RateChange) -> LongTermDebt:
    """
    Recompute from the first unpaid period due on or after the change's effective date.

    The preceding entry's remaining principal becomes the new starting balance.
    The change is appended to the debt's rate history.
    """
    history = sorted(debt.rate_history + [change], key=lambda c: c.effective_date)
    for entry in debt.schedule:
        if entry.due_date < change.effective_date or entry.status == PAID:
            continue

        if entry.period > 1:
            balance = debt.schedule[entry.period - 2].remaining_principal_cents
        else:
            balance = debt.original_principal_cents
        schedule = recompute_from_period(debt.schedule, entry.period, balance, change.annual_rate)
        return replace(
            debt,
            schedule=schedule,
            annual_rate=float(change.annual_rate),
            monthly_payment_cents=schedule[entry.period - 1].payment_cents,
            rate_history=history,
        )

    return replace(debt, rate_history=history)
