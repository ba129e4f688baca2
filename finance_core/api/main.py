"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finance_core.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finance_core.api.v1 import amortization, amounts, analytics, budgets, forecast, health, ledger, recurring
from finance_core.infrastructure.observability.logging import setup_logging
from finance_core.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finance Core",
        description="Personal finance calculation engines over a movement ledger",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(amounts.router, prefix="/v1", tags=["amounts"])
    app.include_router(amortization.router, prefix="/v1", tags=["amortization"])
    app.include_router(recurring.router, prefix="/v1", tags=["recurring"])
    app.include_router(budgets.router, prefix="/v1", tags=["budgets"])
    app.include_router(analytics.router, prefix="/v1", tags=["analytics"])
    app.include_router(health.router, prefix="/v1", tags=["health"])
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(ledger.router, prefix="/v1", tags=["ledger"])

    return app


app = create_app()
