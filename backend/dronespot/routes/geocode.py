"""
DroneSpot Backend: Geocoding Route
====================================

What:  POST /api/geocode, address search for the map.
"""

import logging

from fastapi import APIRouter, Depends

from dronespot.exceptions import ValidationError
from dronespot.schemas.api import ErrorResponse, GeocodeRequest, GeocodeResponse
from dronespot.services.geocoding_service import GeocodingService, get_geocoding_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Geocoding"])


@router.post(
    "/geocode",
    response_model=GeocodeResponse,
    responses={
        400: {"description": "Missing address or geocoder rejected it", "model": ErrorResponse},
        500: {"description": "Maps key not configured", "model": ErrorResponse},
        503: {"description": "Geocoding service unreachable", "model": ErrorResponse},
    },
    summary="Resolve an address to coordinates",
)
async def geocode(
    body: GeocodeRequest,
    geocoder: GeocodingService = Depends(get_geocoding_service),
) -> GeocodeResponse:
    address = (body.address or "").strip()
    if not address:
        raise ValidationError(message="Address is required", field="address")
    return await geocoder.geocode(address)
