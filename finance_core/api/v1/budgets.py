"""POST /v1/budgets/evaluate - spend vs limit status and pending alerts"""

from typing import List

from fastapi import APIRouter, Request

from finance_core.api.dependencies import track_computation
from finance_core.api.v1.schemas import BudgetEvaluateRequest, BudgetStatusSchema
from finance_core.domain.budgets import evaluate_budgets
from finance_core.infrastructure.observability.metrics import budget_status_counter

router = APIRouter()


@router.post("/budgets/evaluate", response_model=List[BudgetStatusSchema])
def evaluate(request_body: BudgetEvaluateRequest, request: Request):
    """
    Evaluate every budget for the period containing today.

    Thresholds already present in fired_alerts for the current period are
    never returned again as pending alerts.
    """
    with track_computation("budgets", request):
        statuses = evaluate_budgets(
            [b.to_domain() for b in request_body.budgets],
            [m.to_domain() for m in request_body.movements],
            [a.to_domain() for a in request_body.fired_alerts],
            request_body.today,
            prior_remaining=request_body.prior_remaining,
        )

    for status in statuses:
        budget_status_counter.labels(status=status.status).inc()

    return [BudgetStatusSchema.model_validate(s) for s in statuses]
