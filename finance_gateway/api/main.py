"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finance_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finance_gateway.api.v1 import budgets, cards, imports, transactions
from finance_gateway.infrastructure.observability.logging import setup_logging
from finance_gateway.config import settings

setup_logging(settings.log_level)

V1_ROUTERS = (
    (cards.router, "cards"),
    (transactions.router, "transactions"),
    (budgets.router, "budgets"),
    (imports.router, "imports"),
)


def create_app() -> FastAPI:
    """Build the service: v1 routers plus health and Prometheus endpoints"""
    app = FastAPI(
        title="Finance Gateway",
        description="Card statement cycles, installments, recurring rules and monthly budgets",
        version="0.1.0",
    )

    # Last added runs first, so the request ID exists before timing starts
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in V1_ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
