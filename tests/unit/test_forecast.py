"""Unit tests for the cash-flow forecast engine"""

import pytest
from dataclasses import replace
from datetime import date
from finance_core.domain.amortization import build_debt, record_payment
from finance_core.domain.exceptions import InvalidPeriodRange
from finance_core.domain.forecast import generate_forecast
from finance_core.domain.models import INCOME, Contribution, RecurringRule


@pytest.fixture
def rent_rule() -> RecurringRule:
    return RecurringRule(
        id="rent",
        description="Arriendo",
        amount_cents=50000,
        category="housing",
        frequency="monthly",
        start_date=date(2026, 1, 15),
        next_due_date=date(2026, 1, 15),
    )


def test_first_negative_date_is_first_expense(rent_rule):
    forecast = generate_forecast(0, [rent_rule], [], [], date(2026, 1, 1), 3)

    assert forecast.first_negative_date == date(2026, 1, 15)
    assert forecast.end_date == date(2026, 3, 31)
    assert [p.closing_balance_cents for p in forecast.entries] == [-50000, -100000, -150000]
    assert forecast.lowest_balance_cents == -150000
    assert forecast.lowest_balance_date == date(2026, 3, 31)
    assert forecast.ending_balance_cents == -150000


def test_periods_chain_balances(rent_rule):
    salary = replace(rent_rule, id="salary", description="Salario", amount_cents=80000, direction=INCOME)
    forecast = generate_forecast(10000, [rent_rule, salary], [], [], date(2026, 1, 1), 4)

    assert forecast.entries[0].opening_balance_cents == 10000
    for previous, current in zip(forecast.entries, forecast.entries[1:]):
        assert current.opening_balance_cents == previous.closing_balance_cents
    for period in forecast.entries:
        assert period.closing_balance_cents == period.opening_balance_cents + period.net_cash_flow_cents
        assert period.projected_income_cents == 80000
        assert period.projected_expenses_cents == 50000


def test_same_day_income_covers_expense(rent_rule):
    """Events on one day settle together before checking for a negative balance"""
    salary = replace(rent_rule, id="salary", amount_cents=60000, direction=INCOME)
    forecast = generate_forecast(0, [rent_rule, salary], [], [], date(2026, 1, 1), 2)

    assert forecast.first_negative_date is None
    assert forecast.lowest_balance_cents == 10000


def test_negative_initial_balance(rent_rule):
    forecast = generate_forecast(-1, [], [], [], date(2026, 1, 1), 1)

    assert forecast.first_negative_date == date(2026, 1, 1)
    assert forecast.entries[0].events == []


def test_debt_and_goal_events():
    debt = build_debt("car", "Carro", 10_000_000, 0.12, 12, date(2025, 12, 15))
    debt.schedule = record_payment(debt.schedule, 1, 888488)
    goals = [Contribution(goal_id="trip", amount_cents=100000, date=date(2026, 2, 1))]

    forecast = generate_forecast(5_000_000, [], [debt], goals, date(2026, 1, 1), 2)
    events = [e for p in forecast.entries for e in p.events]

    # The January installment is already paid
    assert [(e.date, e.source) for e in events] == [
        (date(2026, 2, 1), "goal"),
        (date(2026, 2, 15), "debt"),
    ]
    assert forecast.ending_balance_cents == 5_000_000 - 100000 - 888488


def test_manual_rules_are_estimated(rent_rule):
    manual = replace(rent_rule, auto_post=False)
    forecast = generate_forecast(0, [manual], [], [], date(2026, 1, 1), 1)

    assert forecast.entries[0].events[0].is_estimated is True


def test_inactive_rules_are_skipped(rent_rule):
    forecast = generate_forecast(0, [replace(rent_rule, active=False)], [], [], date(2026, 1, 1), 2)
    assert forecast.first_negative_date is None


def test_weekly_periods(rent_rule):
    forecast = generate_forecast(0, [rent_rule], [], [], date(2026, 1, 5), 1, period_type="weekly")

    assert [p.label for p in forecast.entries] == ["2026-W02", "2026-W03", "2026-W04", "2026-W05", "2026-W06"]
    assert forecast.entries[1].projected_expenses_cents == 50000


def test_invalid_forecast_parameters(rent_rule):
    with pytest.raises(InvalidPeriodRange):
        generate_forecast(0, [rent_rule], [], [], date(2026, 1, 1), 0)
    with pytest.raises(InvalidPeriodRange):
        generate_forecast(0, [rent_rule], [], [], date(2026, 1, 1), 3, period_type="daily")
