"""POST /v1/analytics/report - time series and breakdowns"""

from fastapi import APIRouter, Request

from finance_core.api.dependencies import track_computation
from finance_core.api.v1.schemas import AnalyticsReportSchema, AnalyticsRequest
from finance_core.domain.analytics import build_report, recommended_granularity

router = APIRouter()


@router.post("/analytics/report", response_model=AnalyticsReportSchema)
def create_report(request_body: AnalyticsRequest, request: Request):
    """Aggregate movements in range; granularity falls back to the recommended one for the range"""
    with track_computation("analytics", request):
        granularity = request_body.granularity or recommended_granularity(
            request_body.start_date, request_body.end_date
        )
        report = build_report(
            [m.to_domain() for m in request_body.movements],
            request_body.start_date,
            request_body.end_date,
            granularity,
            category_labels=request_body.category_labels,
            entity_names=request_body.entity_names,
        )
    return AnalyticsReportSchema.model_validate(report)
