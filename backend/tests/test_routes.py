"""
DroneSpot Backend: API Route Tests
====================================

What:  End-to-end tests through the FastAPI app (ASGI transport, no server).
How:   Provider dependencies are replaced through app.dependency_overrides;
       outbound HTTP goes to httpx.MockTransport.

What we test:
    ✅ Analyze: normalized candidates, temp file removed, city default
    ✅ Analyze: missing image, bad extension, unusable answer, provider down
    ✅ Geocode, waypoint, maps key, incident feed
    ✅ Health, /api/test and the X-Request-ID header
"""

import json

import httpx
import pytest

from dronespot.exceptions import UpstreamServiceError
from dronespot.services.geocoding_service import GeocodingService, get_geocoding_service
from dronespot.services.incident_service import IncidentService, get_incident_service
from dronespot.services.upload_service import get_upload_service
from dronespot.services.vision_base import get_vision_service
from dronespot.services.waypoint_service import WaypointService, get_waypoint_service

MODEL_ANSWER = json.dumps(
    {
        "locations": [
            {"lat": 37.8199, "lng": -122.4783, "location_description": "Golden Gate Bridge", "confidence": 0.6},
            {"lat": 37.8270, "lng": -122.4230, "location_description": "Alcatraz Island", "confidence": 0.3},
            {"lat": 37.8080, "lng": -122.4177, "location_description": "Pier 39", "confidence": 0.1},
            {"lat": 37.7694, "lng": -122.4862, "location_description": "Golden Gate Park", "confidence": 0.05},
        ]
    }
)


@pytest.fixture
def analyze_app(app, fake_vision, upload_service):
    app.dependency_overrides[get_vision_service] = lambda: fake_vision
    app.dependency_overrides[get_upload_service] = lambda: upload_service
    return app


def image_part(sample_image_bytes, filename="bridge.jpg", content_type="image/jpeg"):
    return {"image": (filename, sample_image_bytes, content_type)}


class TestAnalyzeImage:
    @pytest.mark.asyncio
    async def test_success(self, analyze_app, test_client, fake_vision, upload_dir, sample_image_bytes):
        fake_vision.answer = MODEL_ANSWER

        response = await test_client.post(
            "/api/analyze-image",
            files=image_part(sample_image_bytes),
            data={"city": "San Francisco"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["image_filename"] == "bridge.jpg"
        assert body["extraction_method"] == "json"
        assert [loc["location_description"] for loc in body["locations"]] == [
            "Golden Gate Bridge",
            "Alcatraz Island",
            "Pier 39",
        ]
        assert [loc["confidence"] for loc in body["locations"]] == [60, 30, 10]

        call = fake_vision.calls[0]
        assert call["exists"] is True
        assert call["city"] == "San Francisco"
        assert call["count"] == 3
        assert not call["path"].exists()
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_city_defaults(self, analyze_app, test_client, fake_vision, sample_image_bytes):
        fake_vision.answer = "Latitude: 37.7749, Longitude: -122.4194"

        response = await test_client.post("/api/analyze-image", files=image_part(sample_image_bytes))

        assert response.status_code == 200
        body = response.json()
        assert body["extraction_method"] == "regex"
        assert body["locations"][0]["confidence"] == 100
        assert fake_vision.calls[0]["city"] == "San Francisco"

    @pytest.mark.asyncio
    async def test_missing_image(self, analyze_app, test_client, fake_vision):
        response = await test_client.post("/api/analyze-image", data={"city": "Oakland"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["message"] == "Image file is required"
        assert fake_vision.calls == []

    @pytest.mark.asyncio
    async def test_rejects_non_image(self, analyze_app, test_client, fake_vision, upload_dir):
        response = await test_client.post(
            "/api/analyze-image",
            files={"image": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 400
        assert "Only image files are allowed" in response.json()["message"]
        assert fake_vision.calls == []
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_unusable_answer(self, analyze_app, test_client, fake_vision, upload_dir, sample_image_bytes):
        fake_vision.answer = "I am not sure where this is."

        response = await test_client.post("/api/analyze-image", files=image_part(sample_image_bytes))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "analysis_failed"
        assert body["message"] == "Failed to analyze image"
        assert body["details"]["reason"] == "no recoverable location data"
        assert list(upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_provider_unavailable(self, analyze_app, test_client, fake_vision, upload_dir, sample_image_bytes):
        fake_vision.error = UpstreamServiceError(service="OpenAI")

        response = await test_client.post("/api/analyze-image", files=image_part(sample_image_bytes))

        assert response.status_code == 503
        assert response.json()["error"] == "upstream_unavailable"
        assert response.json()["details"] == {"service": "OpenAI"}
        assert list(upload_dir.iterdir()) == []


class TestGeocode:
    @pytest.mark.asyncio
    async def test_success(self, app, test_client):
        payload = {
            "status": "OK",
            "results": [
                {
                    "formatted_address": "Pier 39, San Francisco, CA 94133, USA",
                    "geometry": {"location": {"lat": 37.8087, "lng": -122.4098}},
                }
            ],
        }
        service = GeocodingService(
            api_key="maps-key",
            api_url="https://maps.test/geocode/json",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload)),
        )
        app.dependency_overrides[get_geocoding_service] = lambda: service

        response = await test_client.post("/api/geocode", json={"address": "Pier 39"})

        assert response.status_code == 200
        assert response.json() == {
            "address": "Pier 39, San Francisco, CA 94133, USA",
            "lat": 37.8087,
            "lng": -122.4098,
        }

    @pytest.mark.asyncio
    async def test_not_found(self, app, test_client):
        service = GeocodingService(
            api_key="maps-key",
            api_url="https://maps.test/geocode/json",
            transport=httpx.MockTransport(
                lambda r: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
            ),
        )
        app.dependency_overrides[get_geocoding_service] = lambda: service

        response = await test_client.post("/api/geocode", json={"address": "zzzz"})

        assert response.status_code == 400
        assert response.json()["error"] == "geocoding_failed"
        assert response.json()["details"] == {"status": "ZERO_RESULTS"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"address": ""}, {"address": "   "}])
    async def test_address_required(self, test_client, body):
        response = await test_client.post("/api/geocode", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Address is required"


class TestWaypoint:
    @pytest.mark.asyncio
    async def test_simulated_waypoint(self, app, test_client):
        service = WaypointService(api_key="key", api_secret="secret", clock=lambda: 1_700_000_000.0)
        app.dependency_overrides[get_waypoint_service] = lambda: service

        response = await test_client.post(
            "/api/waypoint", json={"lat": 37.8199, "lng": -122.4783, "address": "Golden Gate Bridge"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["simulation"] is True
        assert body["waypoint"]["id"] == "waypoint-1700000000000"
        assert body["waypoint"]["name"] == "Waypoint at Golden Gate Bridge"
        assert body["waypoint"]["altitude"] == 50
        assert "createdAt" in body["waypoint"]

    @pytest.mark.asyncio
    async def test_coordinates_required(self, test_client):
        response = await test_client.post("/api/waypoint", json={"lat": 37.8})

        assert response.status_code == 400
        assert response.json()["message"] == "Latitude and longitude are required"

    @pytest.mark.asyncio
    async def test_missing_credentials(self, test_client):
        # conftest leaves the Skydio credentials empty
        response = await test_client.post("/api/waypoint", json={"lat": 37.8, "lng": -122.4})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "configuration_error"
        assert body["details"]["simulation"] is True


class TestMapData:
    @pytest.mark.asyncio
    async def test_maps_api_key(self, test_client):
        response = await test_client.get("/api/maps-api-key")

        assert response.status_code == 200
        assert response.json() == {"key": "test-maps-key"}

    @pytest.mark.asyncio
    async def test_incidents_default_limit(self, app, test_client):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"incident_number": "1"}])

        service = IncidentService(api_url="https://data.test/feed.json", transport=httpx.MockTransport(handler))
        app.dependency_overrides[get_incident_service] = lambda: service

        response = await test_client.get("/api/911-calls")

        assert response.status_code == 200
        assert response.json() == [{"incident_number": "1"}]
        assert seen["params"]["$limit"] == "50"

    @pytest.mark.asyncio
    async def test_incident_feed_down(self, app, test_client):
        service = IncidentService(
            api_url="https://data.test/feed.json",
            transport=httpx.MockTransport(lambda r: httpx.Response(503)),
        )
        app.dependency_overrides[get_incident_service] = lambda: service

        response = await test_client.get("/api/911-calls", params={"limit": 5})

        assert response.status_code == 503
        assert response.json()["details"] == {"service": "incident feed"}


class TestHealth:
    @pytest.mark.asyncio
    async def test_api_test(self, test_client):
        response = await test_client.get("/api/test")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["message"] == "API is working correctly"

    @pytest.mark.asyncio
    async def test_health(self, app, test_client, fake_vision):
        app.dependency_overrides[get_vision_service] = lambda: fake_vision

        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["vision_provider"] == "fake"
        assert body["geocoding"] == "configured"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/api/test", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_request_id_in_error_body(self, test_client):
        response = await test_client.post("/api/geocode", json={}, headers={"X-Request-ID": "req-42"})
        assert response.json()["request_id"] == "req-42"
