"""POST /v1/forecast - projected cash flow across a horizon"""

import logging

from fastapi import APIRouter, Request

from finance_core.api.dependencies import get_request_id, track_computation
from finance_core.api.v1.schemas import CashFlowForecastSchema, ForecastRequest
from finance_core.config import settings
from finance_core.domain.forecast import generate_forecast
from finance_core.infrastructure.observability.metrics import forecast_negative_counter

router = APIRouter()


@router.post("/forecast", response_model=CashFlowForecastSchema)
def create_forecast(request_body: ForecastRequest, request: Request):
    """
    Project opening/closing balances per period.

    Returns:
        Chained periods plus the lowest balance and the first date the
        projected balance goes negative (null if it never does)
    """
    horizon = request_body.horizon_months
    if horizon is None:
        horizon = settings.forecast_default_horizon_months
    with track_computation("forecast", request):
        forecast = generate_forecast(
            request_body.initial_balance_cents,
            [r.to_domain() for r in request_body.rules],
            [d.to_domain() for d in request_body.debts],
            [c.to_domain() for c in request_body.goal_contributions],
            request_body.start_date,
            horizon,
            request_body.period_type,
        )

    if forecast.first_negative_date is not None:
        forecast_negative_counter.inc()
        logging.warning(
            "Forecast projects a negative balance",
            extra={
                "request_id": get_request_id(request),
                "first_negative_date": forecast.first_negative_date.isoformat(),
                "lowest_balance_cents": forecast.lowest_balance_cents,
            },
        )

    return CashFlowForecastSchema.model_validate(forecast)
