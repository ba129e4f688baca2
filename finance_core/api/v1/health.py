"""POST /v1/health/snapshot - scored financial health"""

from fastapi import APIRouter, Request

from finance_core.api.dependencies import track_computation
from finance_core.api.v1.schemas import HealthRequest, HealthSnapshotSchema
from finance_core.domain.health import compute_snapshot
from finance_core.domain.ledger import entity_balances

router = APIRouter()


@router.post("/health/snapshot", response_model=HealthSnapshotSchema)
def create_snapshot(request_body: HealthRequest, request: Request):
    """
    Score savings rate, debt-to-income, emergency fund and net worth.

    Entity balances are recomputed from movements; cached totals are ignored.
    Undefined ratios are returned as "undefined".
    """
    with track_computation("health", request):
        movements = [m.to_domain() for m in request_body.movements]
        balances = entity_balances([e.to_domain() for e in request_body.entities], movements)
        snapshot = compute_snapshot(
            movements,
            [d.to_domain() for d in request_body.debts],
            balances,
            request_body.today,
        )
    return HealthSnapshotSchema.model_validate(snapshot)
