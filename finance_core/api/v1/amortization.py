"""POST /v1/amortization/* - loan schedule generation and recomputation"""

from fastapi import APIRouter, Request

from finance_core.api.dependencies import track_computation
from finance_core.api.v1.schemas import (
    AmortizationEntrySchema,
    RecomputeRequest,
    ScheduleRequest,
    ScheduleResponse,
)
from finance_core.domain.amortization import (
    compute_fixed_payment_schedule,
    recompute_from_period,
    total_interest_cost,
)

router = APIRouter()


def _schedule_response(entries) -> ScheduleResponse:
    return ScheduleResponse(
        entries=[AmortizationEntrySchema.model_validate(e) for e in entries],
        total_interest_cents=total_interest_cost(entries),
        total_paid_cents=sum(e.payment_cents for e in entries),
    )


@router.post("/amortization/schedule", response_model=ScheduleResponse)
def create_schedule(request_body: ScheduleRequest, request: Request):
    """
    Build a French-method schedule.

    Returns:
        Entries with principal/interest split, total interest and total paid
    """
    with track_computation("amortization", request):
        entries = compute_fixed_payment_schedule(
            request_body.principal_cents,
            request_body.annual_rate,
            request_body.term_months,
            request_body.start_date,
        )
    return _schedule_response(entries)


@router.post("/amortization/recompute", response_model=ScheduleResponse)
def recompute_schedule(request_body: RecomputeRequest, request: Request):
    """Regenerate a schedule from a period after an extra payment or a rate change"""
    with track_computation("amortization", request):
        entries = recompute_from_period(
            [e.to_domain() for e in request_body.schedule],
            request_body.from_period,
            request_body.new_principal_cents,
            request_body.annual_rate,
            remaining_periods=request_body.remaining_periods,
            strategy=request_body.strategy,
        )
    return _schedule_response(entries)
