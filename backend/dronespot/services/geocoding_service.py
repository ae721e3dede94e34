"""
DroneSpot Backend: Geocoding Service
======================================

What:  Resolves a free-form address to coordinates with the Google Maps
       Geocoding API.
Who:   Called by POST /api/geocode when the user searches the map.

Upstream response (abridged):
    {"status": "OK",
     "results": [{"formatted_address": "...",
                  "geometry": {"location": {"lat": 37.77, "lng": -122.41}}}]}

Only the first result is used. Any status other than OK (ZERO_RESULTS,
REQUEST_DENIED, ...) becomes a GeocodingError carrying that status.
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from dronespot.config import settings
from dronespot.exceptions import ConfigurationError, GeocodingError, UpstreamServiceError
from dronespot.schemas.api import GeocodeResponse

logger = logging.getLogger(__name__)


class GeocodingService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.google_maps_api_key if api_key is None else api_key
        self.api_url = api_url or settings.geocoding_api_url
        self.timeout = timeout or settings.http_timeout
        self._transport = transport

    async def geocode(self, address: str) -> GeocodeResponse:
        """
        Raises:
            ConfigurationError: no Maps key configured.
            GeocodingError: the geocoder answered with a non-OK status.
            UpstreamServiceError: network failure or HTTP error.
        """
        if not self.api_key:
            raise ConfigurationError(message="Google Maps API key is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    self.api_url,
                    params={"address": address, "key": self.api_key},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.error("Geocoding request failed: %s", e)
            raise UpstreamServiceError(service="geocoding", context={"error_type": type(e).__name__})
        except ValueError:
            raise UpstreamServiceError(
                service="geocoding",
                message="The geocoding service returned an unreadable response",
            )

        status = data.get("status", "UNKNOWN")
        results = data.get("results") or []
        if status != "OK" or not results:
            logger.info("Geocoding %r returned status %s", address, status)
            raise GeocodingError(status=status if status != "OK" else "ZERO_RESULTS")

        try:
            first = results[0]
            location = first["geometry"]["location"]
            return GeocodeResponse(
                address=first.get("formatted_address", address),
                lat=location["lat"],
                lng=location["lng"],
            )
        except (KeyError, TypeError, AttributeError, PydanticValidationError):
            logger.error("Geocoding returned an unexpected result shape for %r", address)
            raise UpstreamServiceError(
                service="geocoding",
                message="The geocoding service returned an unexpected response",
            )


def get_geocoding_service() -> GeocodingService:
    return GeocodingService()
