"""Router wiring for the HTTP API."""

from fastapi import FastAPI

from closer.api.routes.broadcasts import router as broadcasts_router
from closer.api.routes.conversations import router as conversations_router
from closer.api.routes.health import metrics_router
from closer.api.routes.health import router as health_router
from closer.api.routes.leads import router as leads_router
from closer.api.routes.messages import router as messages_router
from closer.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI, expose_metrics: bool = True) -> None:
    app.include_router(messages_router, tags=["Messages"])
    app.include_router(conversations_router, tags=["Conversations"])
    app.include_router(broadcasts_router, tags=["Broadcasts"])
    app.include_router(leads_router, tags=["Leads"])
    app.include_router(health_router, tags=["Health"])
    if expose_metrics:
        app.include_router(metrics_router, tags=["Health"])

    logger.info("routes_registered", metrics=expose_metrics)
