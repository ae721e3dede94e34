"""
DroneSpot Backend: Incident Feed Service
==========================================

What:  Fetches recent emergency-call incidents from the DataSF Socrata API
       for the map overlay.
How:   GET on the dataset with `$limit` and `$order=incident_datetime DESC`;
       the JSON rows are passed through unchanged.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from dronespot.config import settings
from dronespot.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)


class IncidentService:
    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url or settings.incidents_api_url
        self.timeout = timeout or settings.http_timeout
        self._transport = transport

    async def recent_incidents(self, limit: int) -> List[Dict[str, Any]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    self.api_url,
                    params={"$limit": limit, "$order": "incident_datetime DESC"},
                )
                response.raise_for_status()
                rows = response.json()
        except httpx.HTTPError as e:
            logger.error("Incident feed request failed: %s", e)
            raise UpstreamServiceError(service="incident feed", context={"error_type": type(e).__name__})
        except ValueError:
            raise UpstreamServiceError(
                service="incident feed",
                message="The incident feed returned an unreadable response",
            )

        if not isinstance(rows, list):
            raise UpstreamServiceError(
                service="incident feed",
                message="The incident feed returned an unexpected response",
            )
        logger.debug("Fetched %d incidents", len(rows))
        return rows


def get_incident_service() -> IncidentService:
    return IncidentService()
