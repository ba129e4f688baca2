"""POST /v1/amounts/* - locale-aware amount parsing and formatting"""

from fastapi import APIRouter, Request

from finance_core.api.dependencies import track_computation
from finance_core.api.v1.schemas import AmountFormatRequest, AmountParseRequest, AmountResponse
from finance_core.config import settings
from finance_core.utils.money import format_amount, parse_amount

router = APIRouter()


@router.post("/amounts/parse", response_model=AmountResponse)
def parse(request_body: AmountParseRequest, request: Request):
    """Parse user input into integer cents and echo its canonical spelling"""
    locale = request_body.locale or settings.default_locale
    with track_computation("amounts", request):
        cents = parse_amount(request_body.text, locale)
        formatted = format_amount(cents, locale)
    return AmountResponse(cents=cents, formatted=formatted, locale=locale)


@router.post("/amounts/format", response_model=AmountResponse)
def format_cents(request_body: AmountFormatRequest, request: Request):
    """Format integer cents for display"""
    locale = request_body.locale or settings.default_locale
    with track_computation("amounts", request):
        formatted = format_amount(request_body.cents, locale)
    return AmountResponse(cents=request_body.cents, formatted=formatted, locale=locale)
