"""
DroneSpot Backend: Geocoding Service Unit Tests
=================================================
"""

import httpx
import pytest

from dronespot.exceptions import ConfigurationError, GeocodingError, UpstreamServiceError
from dronespot.services.geocoding_service import GeocodingService

GEOCODE_OK = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "1 Ferry Building, San Francisco, CA 94111, USA",
            "geometry": {"location": {"lat": 37.7955, "lng": -122.3937}},
        }
    ],
}


def make_service(handler, api_key="maps-key"):
    return GeocodingService(
        api_key=api_key,
        api_url="https://maps.test/geocode/json",
        transport=httpx.MockTransport(handler),
    )


class TestGeocodingService:
    @pytest.mark.asyncio
    async def test_first_result_is_returned(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=GEOCODE_OK)

        result = await make_service(handler).geocode("Ferry Building")

        assert seen["params"] == {"address": "Ferry Building", "key": "maps-key"}
        assert result.address == "1 Ferry Building, San Francisco, CA 94111, USA"
        assert result.lat == 37.7955
        assert result.lng == -122.3937

    @pytest.mark.asyncio
    async def test_non_ok_status(self):
        service = make_service(lambda r: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}))

        with pytest.raises(GeocodingError) as exc_info:
            await service.geocode("nowhere at all")
        assert exc_info.value.status == "ZERO_RESULTS"
        assert exc_info.value.message == "Failed to geocode address"

    @pytest.mark.asyncio
    async def test_ok_without_results(self):
        service = make_service(lambda r: httpx.Response(200, json={"status": "OK", "results": []}))
        with pytest.raises(GeocodingError):
            await service.geocode("Ferry Building")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "result",
        [{"formatted_address": "Pier 39"}, {"geometry": {}}, {"geometry": {"location": {"lat": 1}}}, "Pier 39"],
    )
    async def test_malformed_result(self, result):
        service = make_service(lambda r: httpx.Response(200, json={"status": "OK", "results": [result]}))

        with pytest.raises(UpstreamServiceError, match="unexpected response"):
            await service.geocode("Pier 39")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(ConfigurationError, match="Google Maps API key is not configured"):
            await make_service(handler, api_key="").geocode("Ferry Building")

    @pytest.mark.asyncio
    async def test_upstream_failure(self):
        service = make_service(lambda r: httpx.Response(502, text="bad gateway"))
        with pytest.raises(UpstreamServiceError):
            await service.geocode("Ferry Building")
