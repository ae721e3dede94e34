"""
DroneSpot Backend: Health Check Routes
========================================

What:  GET /health (dependency readiness) and GET /api/test (plain liveness).
Who:   Load balancer probes, monitoring, and the front end's "is the API up" check.

Status levels:
    - healthy:   vision provider usable and Maps key configured
    - degraded:  the process is up but a provider is unusable; requests
                 touching it will fail with configuration or upstream errors
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from dronespot import __version__
from dronespot.config import settings
from dronespot.schemas.api import HealthResponse, StatusResponse
from dronespot.services.vision_base import VisionService, get_vision_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    vision: VisionService = Depends(get_vision_service),
) -> HealthResponse:
    overall = "healthy"

    try:
        vision_ok = await vision.health_check()
    except Exception as e:
        logger.warning("Health check: vision provider check raised: %s", str(e))
        vision_ok = False
    if not vision_ok:
        overall = "degraded"

    geocoding_status = "configured" if settings.google_maps_api_key else "not_configured"
    if not settings.google_maps_api_key:
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        vision_provider=vision.name,
        vision="available" if vision_ok else "unavailable",
        geocoding=geocoding_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get(
    "/api/test",
    response_model=StatusResponse,
    summary="API liveness probe",
)
async def api_test() -> StatusResponse:
    return StatusResponse(
        status="ok",
        message="API is working correctly",
        timestamp=datetime.now(timezone.utc),
    )
