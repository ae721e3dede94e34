"""
DroneSpot Backend: Waypoint Service (simulated)
=================================================

What:  Creates drone waypoints at chosen coordinates.
How:   No drone API call is made. With Skydio credentials configured, a
       waypoint object is fabricated the way the Skydio API would return it
       and flagged `simulation: true`. Without credentials the request fails
       with a ConfigurationError that still tells the client it is a
       simulation.
Who:   Called by POST /api/waypoint when the user picks a candidate location.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from dronespot.config import settings
from dronespot.exceptions import ConfigurationError
from dronespot.schemas.api import Waypoint, WaypointResponse

logger = logging.getLogger(__name__)


class WaypointService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        altitude: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.api_key = settings.skydio_api_key if api_key is None else api_key
        self.api_secret = settings.skydio_api_secret if api_secret is None else api_secret
        self.altitude = altitude or settings.waypoint_altitude
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    @staticmethod
    def default_name(address: Optional[str]) -> str:
        return f"Waypoint at {address or 'specified coordinates'}"

    def create_waypoint(
        self,
        lat: float,
        lng: float,
        name: Optional[str] = None,
        address: Optional[str] = None,
    ) -> WaypointResponse:
        """
        Raises:
            ConfigurationError: Skydio credentials are missing.
        """
        if not self.configured:
            raise ConfigurationError(
                message="Skydio API credentials are not configured",
                context={
                    "simulation": True,
                    "message": (
                        "Running in simulation mode. Would create a waypoint "
                        "at the specified coordinates."
                    ),
                },
            )

        now = self._clock()
        waypoint = Waypoint(
            id=f"waypoint-{int(now * 1000)}",
            lat=lat,
            lng=lng,
            name=name or self.default_name(address),
            altitude=self.altitude,
            created_at=datetime.fromtimestamp(now, tz=timezone.utc),
        )
        logger.info("Simulated waypoint %s at (%.6f, %.6f)", waypoint.id, lat, lng)
        return WaypointResponse(
            success=True,
            simulation=True,
            waypoint=waypoint,
            message="Waypoint created successfully (simulation)",
        )


def get_waypoint_service() -> WaypointService:
    return WaypointService()
