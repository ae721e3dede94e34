"""
DroneSpot Backend: Map Data Routes
====================================

What:  Data the map front end loads on startup.
    - GET /api/maps-api-key   browser key for the Maps JavaScript API
    - GET /api/911-calls      recent emergency-call incidents (map overlay)
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from dronespot.config import settings
from dronespot.exceptions import ConfigurationError
from dronespot.schemas.api import ErrorResponse, MapsKeyResponse
from dronespot.services.incident_service import IncidentService, get_incident_service

router = APIRouter(prefix="/api", tags=["Map data"])


@router.get(
    "/maps-api-key",
    response_model=MapsKeyResponse,
    responses={500: {"description": "Maps key not configured", "model": ErrorResponse}},
    summary="Google Maps browser key",
)
async def maps_api_key() -> MapsKeyResponse:
    if not settings.google_maps_api_key:
        raise ConfigurationError(message="Google Maps API key is not configured")
    return MapsKeyResponse(key=settings.google_maps_api_key)


@router.get(
    "/911-calls",
    responses={503: {"description": "Incident feed unreachable", "model": ErrorResponse}},
    summary="Recent emergency calls",
)
async def recent_calls(
    limit: Optional[int] = Query(default=None, ge=1, le=1000, description="Number of incidents"),
    incidents: IncidentService = Depends(get_incident_service),
) -> List[Dict[str, Any]]:
    return await incidents.recent_incidents(limit or settings.incidents_default_limit)
