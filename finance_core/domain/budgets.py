"""Budget evaluator - spend vs limit per period with rollover and alert thresholds"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Set, Tuple

from finance_core.domain.models import (
    EXPENSE,
    Budget,
    BudgetAlert,
    BudgetStatus,
    Movement,
    Period,
)
from finance_core.utils.date_utils import current_period, previous_period

WARNING_PERCENTAGE = 75
EXCEEDED_PERCENTAGE = 100


def _matches(budget: Budget, movement: Movement, period: Period) -> bool:
    if movement.direction != EXPENSE or not period.contains(movement.date):
        return False
    if budget.categories and movement.category not in budget.categories:
        return False
    if budget.entity_ids and movement.entity_id not in budget.entity_ids:
        return False
    return True


def spent_in_period(budget: Budget, movements: Iterable[Movement], period: Period) -> Tuple[int, int]:
    """Return (spent_cents, movement_count) of matching expenses inside the period"""
    matched = [m for m in movements if _matches(budget, m, period)]
    return sum(m.amount_cents for m in matched), len(matched)


def rollover_amount(budget: Budget, prior_period_remaining: int) -> int:
    """
    Unused limit carried into the current period.

    Disabled rollover carries nothing; an overspent prior period carries nothing;
    a configured cap bounds the carried amount.
    """
    if not budget.rollover_enabled or prior_period_remaining <= 0:
        return 0
    if budget.rollover_cap_cents is not None:
        return min(prior_period_remaining, budget.rollover_cap_cents)
    return prior_period_remaining


def usage_percentage(spent_cents: int, effective_limit_cents: int) -> int:
    """round(spent / limit * 100), half-up; 0 for a zero limit"""
    if effective_limit_cents <= 0:
        return 0
    ratio = Decimal(spent_cents) * 100 / Decimal(effective_limit_cents)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def budget_state(usage: int) -> str:
    if usage >= EXCEEDED_PERCENTAGE:
        return "exceeded"
    if usage >= WARNING_PERCENTAGE:
        return "warning"
    return "ok"


def _fired_keys(alerts: Iterable[BudgetAlert]) -> Set[Tuple[str, Decimal, str]]:
    return {(a.budget_id, Decimal(str(a.threshold)), a.period_label) for a in alerts}


def evaluate_budget(
    budget: Budget,
    movements: Iterable[Movement],
    fired_alerts: Iterable[BudgetAlert],
    prior_period_remaining: int,
    today: date,
) -> BudgetStatus:
    """
    Derive the budget status for the period containing today.

    Pending alerts are the configured thresholds crossed by spent/effective_limit
    that have no alert already fired for (budget_id, threshold, period_label).
    Re-evaluating with the same fired alerts never re-adds a threshold.
    """
    period = current_period(budget.period, today)
    spent, count = spent_in_period(budget, movements, period)

    rollover = rollover_amount(budget, prior_period_remaining)
    effective_limit = budget.limit_cents + rollover
    usage = usage_percentage(spent, effective_limit)

    fired = _fired_keys(fired_alerts)
    pending = []
    for threshold in budget.alert_thresholds:
        key = (budget.id, Decimal(str(threshold)), period.label)
        crossed = Decimal(spent) >= Decimal(str(threshold)) * effective_limit
        if crossed and key not in fired:
            pending.append(BudgetAlert(budget_id=budget.id, threshold=threshold, period_label=period.label))

    return BudgetStatus(
        budget_id=budget.id,
        period=period,
        spent_cents=spent,
        rollover_cents=rollover,
        effective_limit_cents=effective_limit,
        remaining_cents=effective_limit - spent,
        usage_percentage=usage,
        status=budget_state(usage),
        pending_alerts=pending,
        movement_count=count,
    )


def prior_period_remaining(budget: Budget, movements: Iterable[Movement], today: date) -> int:
    """Unspent limit of the previous period, floored at zero (no chained rollover)"""
    spent, _ = spent_in_period(budget, movements, previous_period(budget.period, today))
    return max(budget.limit_cents - spent, 0)


def evaluate_budgets(
    budgets: Iterable[Budget],
    movements: Iterable[Movement],
    fired_alerts: Iterable[BudgetAlert],
    today: date,
    prior_remaining: Optional[Dict[str, int]] = None,
) -> List[BudgetStatus]:
    """
    Evaluate every budget against the same ledger snapshot.

    prior_remaining overrides the carried-over amount per budget id; budgets
    missing from it derive theirs from the previous period's movements.
    """
    movements = list(movements)
    fired_alerts = list(fired_alerts)
    prior_remaining = prior_remaining or {}

    statuses = []
    for budget in budgets:
        prior = prior_remaining.get(budget.id)
        if prior is None:
            prior = prior_period_remaining(budget, movements, today) if budget.rollover_enabled else 0
        statuses.append(evaluate_budget(budget, movements, fired_alerts, prior, today))
    return statuses
