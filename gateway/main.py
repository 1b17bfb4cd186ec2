"""
gateway/main.py

FastAPI application entry point for the alerting gateway.
Creates the notification broadcaster, maps alerting errors to HTTP
responses and registers routers.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import settings
from gateway.errors import AlertingError
from gateway.routers.alerts import router as alerts_router
from gateway.routers.metrics import router as metrics_router
from gateway.routers.realtime import router as realtime_router
from gateway.services.notification import NotificationBroadcaster

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle: startup and shutdown."""
    logger.info("gateway_starting", broadcast_mode=settings.broadcast_mode)
    yield
    logger.info("gateway_shutting_down", **app.state.broadcaster.stats())


async def alerting_error_handler(request: Request, exc: AlertingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Chronicare Alerting Gateway",
        description="Vital-sign threshold alerts with real-time delivery",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.broadcaster = NotificationBroadcaster(
        mode=settings.broadcast_mode,
        queue_size=settings.channel_queue_size,
    )
    app.add_exception_handler(AlertingError, alerting_error_handler)

    app.include_router(alerts_router)
    app.include_router(metrics_router)
    app.include_router(realtime_router)

    @app.get("/health")
    async def health_check() -> dict:
        """Liveness probe with real-time channel statistics."""
        return {
            "status": "healthy",
            "service": "alerting-gateway",
            "realtime": app.state.broadcaster.stats(),
        }

    return app


app = create_app()
