"""Unit tests for the budget evaluator"""

import pytest
from datetime import date
from finance_core.domain.budgets import evaluate_budget, evaluate_budgets, rollover_amount, usage_percentage
from finance_core.domain.exceptions import InvalidBudgetDefinition
from finance_core.domain.models import EXPENSE, INCOME, Budget, Movement

TODAY = date(2026, 3, 20)


@pytest.fixture
def groceries_budget() -> Budget:
    return Budget(id="food", name="Mercado", limit_cents=500000, period="monthly", categories=("groceries",))


def _expense(amount: int, day: date = date(2026, 3, 10), category: str = "groceries", movement_id: str = "e1"):
    return Movement(movement_id, "Compra", amount, EXPENSE, category, day)


def test_budget_within_limit(groceries_budget):
    status = evaluate_budget(groceries_budget, [_expense(300000)], [], 0, TODAY)

    assert status.spent_cents == 300000
    assert status.usage_percentage == 60
    assert status.status == "ok"
    assert status.pending_alerts == []
    assert status.remaining_cents == 200000
    assert status.period.label == "2026-03"


def test_budget_exceeded_fires_all_crossed_thresholds(groceries_budget):
    status = evaluate_budget(groceries_budget, [_expense(600000)], [], 0, TODAY)

    assert status.usage_percentage == 120
    assert status.status == "exceeded"
    assert [a.threshold for a in status.pending_alerts] == [0.8, 1.0]
    assert all(a.period_label == "2026-03" for a in status.pending_alerts)


def test_budget_warning(groceries_budget):
    status = evaluate_budget(groceries_budget, [_expense(400000)], [], 0, TODAY)

    assert status.status == "warning"
    assert [a.threshold for a in status.pending_alerts] == [0.8]


def test_fired_alerts_are_not_repeated(groceries_budget):
    movements = [_expense(600000)]
    first = evaluate_budget(groceries_budget, movements, [], 0, TODAY)
    second = evaluate_budget(groceries_budget, movements, first.pending_alerts, 0, TODAY)

    assert second.pending_alerts == []
    assert second.status == "exceeded"


def test_alerts_from_previous_period_do_not_suppress(groceries_budget):
    february = evaluate_budget(groceries_budget, [_expense(600000, date(2026, 2, 10))], [], 0, date(2026, 2, 20))
    march = evaluate_budget(groceries_budget, [_expense(600000)], february.pending_alerts, 0, TODAY)

    assert [a.threshold for a in march.pending_alerts] == [0.8, 1.0]


def test_only_matching_expenses_in_period_count(groceries_budget):
    movements = [
        _expense(100000, movement_id="a"),
        _expense(100000, category="transport", movement_id="b"),
        _expense(100000, day=date(2026, 2, 28), movement_id="c"),
        Movement("d", "Reembolso", 100000, INCOME, "groceries", date(2026, 3, 11)),
    ]
    status = evaluate_budget(groceries_budget, movements, [], 0, TODAY)

    assert status.spent_cents == 100000
    assert status.movement_count == 1


def test_empty_categories_match_everything():
    budget = Budget(id="all", name="Todo", limit_cents=1000000, period="monthly")
    movements = [_expense(100000, movement_id="a"), _expense(200000, category="transport", movement_id="b")]

    assert evaluate_budget(budget, movements, [], 0, TODAY).spent_cents == 300000


def test_rollover_is_capped():
    budget = Budget(
        id="food",
        name="Mercado",
        limit_cents=500000,
        period="monthly",
        rollover_enabled=True,
        rollover_cap_cents=50000,
    )
    assert rollover_amount(budget, 400000) == 50000
    assert rollover_amount(budget, -20000) == 0

    movements = [_expense(100000, date(2026, 2, 10), movement_id="feb"), _expense(500000)]
    [status] = evaluate_budgets([budget], movements, [], TODAY)

    assert status.rollover_cents == 50000
    assert status.effective_limit_cents == 550000
    assert status.usage_percentage == 91


def test_prior_remaining_override(groceries_budget):
    budget = Budget(id="food", name="Mercado", limit_cents=500000, period="monthly", rollover_enabled=True)
    [status] = evaluate_budgets([budget], [_expense(500000)], [], TODAY, prior_remaining={"food": 500000})

    assert status.effective_limit_cents == 1000000
    assert status.status == "ok"


def test_rollover_disabled_ignores_prior_remaining(groceries_budget):
    [status] = evaluate_budgets([groceries_budget], [], [], TODAY, prior_remaining={"food": 300000})
    assert status.rollover_cents == 0


def test_usage_percentage_rounds_half_up():
    assert usage_percentage(1, 200) == 1
    assert usage_percentage(0, 0) == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit_cents": 0},
        {"limit_cents": -100},
        {"period": "daily"},
        {"alert_thresholds": (0.0, 1.0)},
        {"rollover_cap_cents": -1},
    ],
)
def test_invalid_budget_definition(kwargs):
    params = {"id": "b", "name": "Broken", "limit_cents": 500000, "period": "monthly", **kwargs}
    with pytest.raises(InvalidBudgetDefinition):
        Budget(**params)
