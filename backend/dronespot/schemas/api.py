"""
DroneSpot Backend: Request/Response Schemas
=============================================

What:  Pydantic models for the geocoding, waypoint, maps-key, and health
       endpoints, plus the shared error format.
How:   FastAPI validates request bodies against these models, serializes
       responses through them, and publishes them in the OpenAPI docs.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Geocoding
# ══════════════════════════════════════════════════════════════════════════


class GeocodeRequest(BaseModel):
    # Optional so a missing address produces our 400 instead of FastAPI's 422
    address: Optional[str] = Field(default=None, description="Free-form address to geocode")


class GeocodeResponse(BaseModel):
    address: str = Field(description="Formatted address returned by the geocoder")
    lat: float
    lng: float


# ══════════════════════════════════════════════════════════════════════════
# Waypoints
# ══════════════════════════════════════════════════════════════════════════


class WaypointRequest(BaseModel):
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    name: Optional[str] = Field(default=None, description="Waypoint label")
    address: Optional[str] = Field(
        default=None, description="Address used to build a label when name is absent"
    )


class Waypoint(BaseModel):
    """A waypoint as the drone API would return it."""
    id: str
    lat: float
    lng: float
    name: str
    altitude: int = Field(description="Altitude in meters")
    created_at: datetime = Field(serialization_alias="createdAt")


class WaypointResponse(BaseModel):
    success: bool = True
    simulation: bool = Field(description="True when no real drone API call was made")
    waypoint: Waypoint
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Misc
# ══════════════════════════════════════════════════════════════════════════


class MapsKeyResponse(BaseModel):
    key: str = Field(description="Browser key for the Google Maps JavaScript API")


class StatusResponse(BaseModel):
    status: str
    message: str
    timestamp: datetime


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and provider status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """
    status: str = Field(description="Overall service status: healthy or degraded")
    version: str = Field(description="Application version")
    vision_provider: str = Field(description="Configured image-understanding provider")
    vision: str = Field(description="Vision provider status: available, unavailable")
    geocoding: str = Field(description="Geocoding status: configured, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "geocoding_failed",
            "message": "Failed to geocode address",
            "details": {"status": "ZERO_RESULTS"},
            "request_id": "1f3a9c0e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
