"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from cardcycle.api.middleware import RequestIDMiddleware, MetricsMiddleware
from cardcycle.api.v1 import cards, cycles, sync
from cardcycle.infrastructure.observability.logging import setup_logging
from cardcycle.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Card Cycle Service",
        description="Billing cycle reconstruction for aggregator-linked credit cards",
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
    app.include_router(cycles.router, prefix="/v1", tags=["billing-cycles"])
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(sync.router, prefix="/v1", tags=["sync"])

    return app


app = create_app()
