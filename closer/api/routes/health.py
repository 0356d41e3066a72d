"""Liveness and Prometheus exposition."""

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from closer import __version__
from closer.api.dependencies import CacheStoreDep, DurableStoreDep
from closer.api.models.health import ComponentHealth, HealthResponse, HealthStatus
from closer.db.errors import StoreError
from closer.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()
metrics_router = APIRouter()

# Worst status wins.
_SEVERITY: dict[HealthStatus, int] = {"healthy": 0, "degraded": 1, "unhealthy": 2}


async def _probe(name: str, check: Callable[[], Awaitable[HealthStatus]]) -> ComponentHealth:
    started = time.perf_counter()
    message = None
    try:
        status = await check()
    except StoreError as e:
        status, message = "degraded", str(e)
    elapsed_ms = (time.perf_counter() - started) * 1000
    if status == "unhealthy" and message is None:
        message = f"{name} did not answer"
    return ComponentHealth(name=name, status=status, latency_ms=elapsed_ms, message=message)


@router.get("/health", response_model=HealthResponse)
async def health_check(cache: CacheStoreDep, durable: DurableStoreDep) -> HealthResponse:
    """Report component status.

    Control checks cannot run without the fast store, so a failed ping is
    unhealthy. A durable store error only degrades: the bridge keeps
    serving flags from the fast store.
    """

    async def cache_check() -> HealthStatus:
        return "healthy" if await cache.ping() else "unhealthy"

    async def durable_check() -> HealthStatus:
        await durable.get("health:probe")
        return "healthy"

    components = [
        await _probe("cache_store", cache_check),
        await _probe("durable_store", durable_check),
    ]
    overall = max((c.status for c in components), key=_SEVERITY.__getitem__)

    logger.debug("health_checked", status=overall)
    return HealthResponse(status=overall, version=__version__, components=components)


@metrics_router.get("/metrics")
async def get_metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
