"""Financial health calculator - scored snapshot of assets, liabilities and cash flow"""

from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Tuple

from finance_core.domain.models import (
    EXPENSE,
    INCOME,
    UNDEFINED_RATIO,
    HealthRatio,
    HealthSnapshot,
    LongTermDebt,
    Movement,
)
from finance_core.utils.date_utils import add_months

TRAILING_MONTHS = 3

# (weight, good benchmark, warning benchmark)
SAVINGS_RATE = (0.30, 0.20, 0.10)  # higher is better
DEBT_TO_INCOME = (0.30, 0.35, 0.43)  # lower is better
EMERGENCY_FUND = (0.25, 6.0, 3.0)  # months, higher is better
NET_WORTH_WEIGHT = 0.15

STATUS_SCORES = {"good": 100, "warning": 50, "critical": 0}


def _average(total_cents: int, months: int) -> int:
    return int((Decimal(total_cents) / months).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _ratio(numerator: int, denominator: int) -> float:
    return round(numerator / denominator, 4)


def trailing_averages(movements: Iterable[Movement], today: date) -> Tuple[int, int]:
    """
    Average monthly income and expense over the trailing window.

    Movements dated in (today - 3 months, today] count; totals are divided by 3
    regardless of how much history exists.
    """
    window_start = add_months(today, -TRAILING_MONTHS)
    income = expense = 0
    for movement in movements:
        if not window_start < movement.date <= today:
            continue
        if movement.direction == INCOME:
            income += movement.amount_cents
        elif movement.direction == EXPENSE:
            expense += movement.amount_cents
    return _average(income, TRAILING_MONTHS), _average(expense, TRAILING_MONTHS)


def _score_higher_is_better(value, good: float, warning: float) -> str:
    if value >= good:
        return "good"
    if value >= warning:
        return "warning"
    return "critical"


def _score_lower_is_better(value, good: float, warning: float) -> str:
    if value <= good:
        return "good"
    if value <= warning:
        return "warning"
    return "critical"


def _score_ratios(
    savings_rate: float,
    debt_to_income,
    debt_payments: int,
    emergency_months,
    assets: int,
    net_worth: int,
) -> List[HealthRatio]:
    """
    Score each component against its benchmark.

    Undefined ratios score by what they mean: no income with no debt payments
    carries no debt burden; no expenses with positive assets is fully covered.
    """
    weight, good, warning = SAVINGS_RATE
    savings_status = _score_higher_is_better(savings_rate, good, warning)
    ratios = [HealthRatio("savings_rate", savings_rate, savings_status, weight, STATUS_SCORES[savings_status])]

    weight, good, warning = DEBT_TO_INCOME
    if debt_to_income is UNDEFINED_RATIO:
        dti_status = "good" if debt_payments == 0 else "critical"
    else:
        dti_status = _score_lower_is_better(debt_to_income, good, warning)
    ratios.append(HealthRatio("debt_to_income", debt_to_income, dti_status, weight, STATUS_SCORES[dti_status]))

    weight, good, warning = EMERGENCY_FUND
    if emergency_months is UNDEFINED_RATIO:
        fund_status = "good" if assets > 0 else "critical"
    else:
        fund_status = _score_higher_is_better(emergency_months, good, warning)
    ratios.append(HealthRatio("emergency_fund", emergency_months, fund_status, weight, STATUS_SCORES[fund_status]))

    if net_worth >= 0:
        worth_status = "good"
    elif assets > 0:
        worth_status = "warning"
    else:
        worth_status = "critical"
    ratios.append(
        HealthRatio("net_worth", float(net_worth), worth_status, NET_WORTH_WEIGHT, STATUS_SCORES[worth_status])
    )
    return ratios


def compute_snapshot(
    movements: Iterable[Movement],
    long_term_debts: Iterable[LongTermDebt],
    entity_totals: Dict[str, int],
    today: date,
    generated_at: Optional[datetime] = None,
) -> HealthSnapshot:
    """
    Combine balances, debts and trailing cash flow into a scored snapshot.

    Zero income yields savings_rate 0 and an undefined debt-to-income ratio;
    zero expenses yields an undefined emergency-fund ratio. Neither raises.
    """
    debts = [d for d in long_term_debts if d.active]

    total_assets = sum(entity_totals.values())
    total_liabilities = sum(d.current_principal_cents for d in debts)
    net_worth = total_assets - total_liabilities

    income, expense = trailing_averages(movements, today)
    debt_payments = sum(d.monthly_payment_cents for d in debts)

    if income == 0:
        savings_rate = 0.0
        debt_to_income = UNDEFINED_RATIO
    else:
        savings_rate = _ratio(income - expense - debt_payments, income)
        debt_to_income = _ratio(debt_payments, income)

    emergency_months = UNDEFINED_RATIO if expense == 0 else _ratio(total_assets, expense)

    ratios = _score_ratios(savings_rate, debt_to_income, debt_payments, emergency_months, total_assets, net_worth)
    weighted = sum(Decimal(str(r.weight)) * r.score for r in ratios)
    score = int(weighted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    return HealthSnapshot(
        generated_at=generated_at or datetime.now(timezone.utc),
        total_assets_cents=total_assets,
        total_liabilities_cents=total_liabilities,
        net_worth_cents=net_worth,
        avg_monthly_income_cents=income,
        avg_monthly_expense_cents=expense,
        monthly_debt_payments_cents=debt_payments,
        savings_rate=savings_rate,
        debt_to_income_ratio=debt_to_income,
        emergency_fund_months=emergency_months,
        ratios=ratios,
        score=max(0, min(100, score)),
    )
