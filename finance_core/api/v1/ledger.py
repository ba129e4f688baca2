"""POST /v1/movements/search, /v1/entities/balances, /v1/entities/transfer, /v1/goals/progress - ledger helpers"""

from datetime import date
from typing import List

from fastapi import APIRouter, Request

from finance_core.api.dependencies import track_computation
from finance_core.api.v1.schemas import (
    BalancesRequest,
    BalancesResponse,
    GoalProgressRequest,
    GoalProgressSchema,
    MovementSchema,
    MovementSearchRequest,
    TransferRequest,
    TransferResponse,
)
from finance_core.domain.filters import MovementFilter, filter_by_period, filter_movements
from finance_core.domain.ledger import entity_balances, goal_progress, transfer

router = APIRouter()


@router.post("/movements/search", response_model=List[MovementSchema])
def search_movements(request_body: MovementSearchRequest, request: Request):
    """Filter movements by text, categories, payment methods, entities, direction and dates"""
    with track_computation("movements", request):
        movements = [m.to_domain() for m in request_body.movements]
        if request_body.period:
            movements = filter_by_period(movements, request_body.period, request_body.today or date.today())
        criteria = MovementFilter(
            search=request_body.search,
            categories=tuple(request_body.categories),
            payment_methods=tuple(request_body.payment_methods),
            entity_ids=tuple(request_body.entity_ids),
            directions=tuple(request_body.directions),
            start_date=request_body.start_date,
            end_date=request_body.end_date,
        )
        matched = filter_movements(movements, criteria)
    return [MovementSchema.model_validate(m) for m in matched]


@router.post("/entities/balances", response_model=BalancesResponse)
def balances(request_body: BalancesRequest, request: Request):
    """Entity balances derived from the ledger"""
    with track_computation("balances", request):
        result = entity_balances(
            [e.to_domain() for e in request_body.entities],
            [m.to_domain() for m in request_body.movements],
        )
    return BalancesResponse(balances=result, total_cents=sum(result.values()))


@router.post("/entities/transfer", response_model=TransferResponse)
def transfer_between_entities(request_body: TransferRequest, request: Request):
    """Paired expense and income moving money between two entities"""
    with track_computation("transfer", request):
        source = request_body.from_entity.to_domain()
        destination = request_body.to_entity.to_domain()
        movements = [m.to_domain() for m in request_body.movements]
        outgoing, incoming = transfer(
            source,
            destination,
            request_body.amount_cents,
            movements,
            request_body.today,
            transfer_id=request_body.transfer_id,
        )
        result = entity_balances([source, destination], movements + [outgoing, incoming])
    return TransferResponse(
        outgoing=MovementSchema.model_validate(outgoing),
        incoming=MovementSchema.model_validate(incoming),
        balances=result,
    )


@router.post("/goals/progress", response_model=List[GoalProgressSchema])
def goals_progress(request_body: GoalProgressRequest, request: Request):
    """Current amount, completion percentage and projected completion per goal"""
    with track_computation("goals", request):
        contributions = [c.to_domain() for c in request_body.contributions]
        progress = [goal_progress(g.to_domain(), contributions, request_body.today) for g in request_body.goals]
    return [GoalProgressSchema.model_validate(p) for p in progress]
