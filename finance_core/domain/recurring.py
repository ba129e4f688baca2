"""Recurring rule scheduler - which obligations are due and how their schedule advances"""

from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, List, Optional, Set, Tuple

from finance_core.domain.exceptions import InvalidPeriodRange
from finance_core.domain.models import (
    FREQUENCIES,
    Movement,
    PendingOccurrence,
    RecurringPosting,
    RecurringRule,
    SchedulePlan,
)
from finance_core.utils.date_utils import add_months, monthly_due_date, period_label

# Most recent occurrences per rule handled normally in one sweep; older ones queue
MAX_BACKFILL = 120

_MONTH_STEPS = {"monthly": 1, "quarterly": 3, "annual": 12}
_DAY_STEPS = {"weekly": 7, "biweekly": 14}


def advance(due_date: date, frequency: str, anchor_day: Optional[int] = None) -> date:
    """
    Next due date after due_date for the given frequency.

    Month-based steps clamp to the last day of a shorter month and return to
    anchor_day when the month allows it:
    2026-01-31 monthly → 2026-02-28 → (anchor 31) 2026-03-31
    """
    if frequency in _DAY_STEPS:
        return due_date + timedelta(days=_DAY_STEPS[frequency])
    if frequency in _MONTH_STEPS:
        if anchor_day is None:
            return add_months(due_date, _MONTH_STEPS[frequency])
        return monthly_due_date(due_date, _MONTH_STEPS[frequency], anchor_day)
    raise InvalidPeriodRange(f"Unsupported frequency: {frequency}")


def rule_period_label(rule: RecurringRule, due_date: date) -> str:
    """Deduplication key for one occurrence"""
    if rule.frequency not in FREQUENCIES:
        raise InvalidPeriodRange(f"Unsupported frequency: {rule.frequency}")
    return period_label(due_date, rule.frequency)


def _posted_keys(postings: Iterable[RecurringPosting]) -> Set[Tuple[str, str]]:
    return {(p.rule_id, p.period_label) for p in postings}


def is_expired(rule: RecurringRule, today: date) -> bool:
    return rule.end_date is not None and today > rule.end_date


def pause_rule(rule: RecurringRule) -> RecurringRule:
    return replace(rule, active=False)


def resume_rule(rule: RecurringRule, today: date) -> RecurringRule:
    """Reactivate a paused rule; an expired rule stays inactive"""
    if is_expired(rule, today):
        return replace(rule)
    return replace(rule, active=True)


def expire_rules(rules: Iterable[RecurringRule], today: date) -> List[RecurringRule]:
    """Deactivate rules whose end date has passed"""
    return [replace(r, active=False) if r.active and is_expired(r, today) else replace(r) for r in rules]


def due_rules(
    rules: Iterable[RecurringRule],
    existing_postings: Iterable[RecurringPosting],
    today: date,
) -> List[RecurringRule]:
    """
    Rules due on or before today that have not posted for their current period.

    The period label of (next_due_date, frequency) is the sole deduplication key,
    so repeated due-checks within one period never double-post.
    """
    posted = _posted_keys(existing_postings)
    due = []
    for rule in rules:
        if not rule.active or is_expired(rule, today):
            continue
        if rule.next_due_date > today:
            continue
        if (rule.id, rule_period_label(rule, rule.next_due_date)) in posted:
            continue
        due.append(rule)
    return due


def occurrences_between(
    rule: RecurringRule,
    start: date,
    end: date,
    limit: Optional[int] = None,
) -> List[date]:
    """Occurrence dates of a rule in [start, end], walking from next_due_date; the first limit when given"""
    dates = []
    current = rule.next_due_date
    while current <= end and (limit is None or len(dates) < limit):
        if rule.end_date is not None and current > rule.end_date:
            break
        if current >= start:
            dates.append(current)
        current = advance(current, rule.frequency, rule.start_date.day)
    return dates


def missed_occurrences(
    rule: RecurringRule,
    existing_postings: Iterable[RecurringPosting],
    today: date,
) -> List[date]:
    """Every occurrence from next_due_date through today without a posting, oldest first"""
    posted = _posted_keys(existing_postings)
    return [
        d
        for d in occurrences_between(rule, rule.next_due_date, today)
        if (rule.id, rule_period_label(rule, d)) not in posted
    ]


def _movement_for(rule: RecurringRule, due_date: date, label: str) -> Movement:
    return Movement(
        id=f"{rule.id}:{label}",
        description=rule.description,
        amount_cents=rule.amount_cents,
        direction=rule.direction,
        category=rule.category,
        date=due_date,
        entity_id=rule.entity_id,
    )


def confirm_occurrence(
    rule: RecurringRule,
    occurrence: PendingOccurrence,
    amount_cents: Optional[int] = None,
) -> Tuple[Movement, RecurringPosting]:
    """Turn a queued occurrence into a movement and its posting record; estimates may be overridden"""
    movement = _movement_for(rule, occurrence.due_date, occurrence.period_label)
    if amount_cents is not None:
        movement = replace(movement, amount_cents=amount_cents)
    posting = RecurringPosting(
        rule_id=rule.id,
        period_label=occurrence.period_label,
        due_date=occurrence.due_date,
        movement_id=movement.id,
    )
    return movement, posting


def plan_postings(
    rules: Iterable[RecurringRule],
    existing_postings: Iterable[RecurringPosting],
    today: date,
    max_backfill: int = MAX_BACKFILL,
) -> SchedulePlan:
    """
    Compute the due-check sweep as a pure transition rules × today → rules'.

    For each active rule the latest missed occurrence posts when auto_post is set.
    Older missed occurrences post only with backfill_missed; otherwise they are
    queued for confirmation. Only the newest max_backfill occurrences can post;
    anything older is queued, so every skipped period is either posted or queued.
    Rules advance past today, expired rules are deactivated. The caller persists
    the returned plan as one atomic write.
    """
    if max_backfill < 1:
        raise InvalidPeriodRange(f"max_backfill must be at least 1, got {max_backfill}")
    existing = list(existing_postings)
    plan = SchedulePlan()

    for rule in rules:
        if rule.active and is_expired(rule, today):
            # Occurrences up to the end date still count before expiry
            missed = missed_occurrences(rule, existing, min(today, rule.end_date))
        elif rule.active:
            missed = missed_occurrences(rule, existing, today)
        else:
            plan.rules.append(replace(rule))
            continue

        overflow = len(missed) - max_backfill
        for index, due_date in enumerate(missed):
            label = rule_period_label(rule, due_date)
            is_latest = index == len(missed) - 1
            postable = index >= overflow and (is_latest or rule.backfill_missed)
            if rule.auto_post and postable:
                movement, posting = confirm_occurrence(
                    rule,
                    PendingOccurrence(rule.id, due_date, label, rule.amount_cents, rule.is_estimated),
                )
                plan.movements.append(movement)
                plan.postings.append(posting)
            else:
                plan.queued.append(
                    PendingOccurrence(
                        rule_id=rule.id,
                        due_date=due_date,
                        period_label=label,
                        amount_cents=rule.amount_cents,
                        is_estimated=rule.is_estimated,
                    )
                )

        next_due = rule.next_due_date
        while next_due <= today:
            next_due = advance(next_due, rule.frequency, rule.start_date.day)
        plan.rules.append(
            replace(rule, next_due_date=next_due, active=not is_expired(rule, today))
        )

    return plan
