"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from underwriting_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from underwriting_gateway.api.v1 import decision, evaluations, history
from underwriting_gateway.infrastructure.observability.logging import setup_logging
from underwriting_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Underwriting Gateway",
        description="Underwriting exception classification and approval-authority routing service",
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
    app.include_router(decision.router, prefix="/v1", tags=["decisions"])
    app.include_router(evaluations.router, prefix="/v1", tags=["evaluations"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
