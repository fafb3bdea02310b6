"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from pocket_ledger.api.middleware import MetricsMiddleware, RequestIDMiddleware
from pocket_ledger.api.v1 import aggregates, cards, goals, installments, payments, projection, snapshot, transactions
from pocket_ledger.config import settings
from pocket_ledger.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Pocket Ledger",
        description="Stateless personal ledger engine: card cycles, installments, payments and cash projections",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(snapshot.router, prefix="/v1", tags=["snapshot"])
    app.include_router(projection.router, prefix="/v1", tags=["projection"])
    app.include_router(aggregates.router, prefix="/v1", tags=["aggregates"])
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(installments.router, prefix="/v1", tags=["installments"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(goals.router, prefix="/v1", tags=["goals"])

    return app


app = create_app()
