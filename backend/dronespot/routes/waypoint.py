"""
DroneSpot Backend: Waypoint Route
===================================

What:  POST /api/waypoint, sends the drone to a chosen location (simulated).
"""

from fastapi import APIRouter, Depends

from dronespot.exceptions import ValidationError
from dronespot.schemas.api import ErrorResponse, WaypointRequest, WaypointResponse
from dronespot.services.waypoint_service import WaypointService, get_waypoint_service

router = APIRouter(prefix="/api", tags=["Waypoints"])


@router.post(
    "/waypoint",
    response_model=WaypointResponse,
    responses={
        400: {"description": "Latitude or longitude missing", "model": ErrorResponse},
        500: {"description": "Drone API credentials not configured", "model": ErrorResponse},
    },
    summary="Create a drone waypoint",
)
async def create_waypoint(
    body: WaypointRequest,
    waypoints: WaypointService = Depends(get_waypoint_service),
) -> WaypointResponse:
    if body.lat is None or body.lng is None:
        raise ValidationError(message="Latitude and longitude are required", field="lat/lng")
    return waypoints.create_waypoint(
        lat=body.lat,
        lng=body.lng,
        name=body.name,
        address=body.address,
    )
