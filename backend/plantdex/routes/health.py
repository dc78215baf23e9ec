"""
PlantDex Backend — Health Check Route
======================================

What:  Liveness/readiness probe for Docker and load balancers.

Status levels:
    - healthy:   store reachable, Plant.id key configured
    - degraded:  store reachable, no Plant.id key (manual entries still work)
    - unhealthy: store unreachable
"""

import logging
import time

from fastapi import APIRouter, Depends

from plantdex import __version__
from plantdex.dependencies import get_identifier, get_store
from plantdex.schemas.common import HealthResponse
from plantdex.services.identification import IdentificationClient
from plantdex.stores.base import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(
    store: RecordStore = Depends(get_store),
    identifier: IdentificationClient = Depends(get_identifier),
) -> HealthResponse:
    overall = "healthy"

    store_ok = await store.ping()
    store_status = f"{store.backend_name}:{'connected' if store_ok else 'disconnected'}"
    if not store_ok:
        overall = "unhealthy"
        logger.warning("Health check: %s store unreachable", store.backend_name)

    # Clients without the attribute (test fakes) count as configured
    configured = getattr(identifier, "configured", True)
    if not configured and overall == "healthy":
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        store=store_status,
        identification="configured" if configured else "not_configured",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
