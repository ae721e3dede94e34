"""
DroneSpot Backend: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the test suite.
How:   Environment variables are set before any dronespot import so the
       settings singleton never sees real keys or a real .env.

Fixtures:
    ├── upload_dir: Temporary directory for stored uploads
    ├── sample_image_bytes: Minimal JPEG bytes for upload tests
    ├── fake_vision: VisionService double returning canned model text
    ├── app: FastAPI app with dependency overrides cleared after each test
    └── test_client: HTTPX AsyncClient bound to the app through ASGITransport
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
os.environ["OPENAI_API_KEY"] = "test-openai-key"
os.environ["GEMINI_API_KEY"] = ""
os.environ["GOOGLE_MAPS_API_KEY"] = "test-maps-key"
os.environ["SKYDIO_API_KEY"] = ""
os.environ["SKYDIO_API_SECRET"] = ""
os.environ["VISION_PROVIDER"] = "openai"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="dronespot_test_")
os.environ["STATIC_DIR"] = os.path.join(tempfile.gettempdir(), "dronespot_no_static")
os.environ["LOG_LEVEL"] = "WARNING"

from typing import List, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from dronespot.services.upload_service import StoredUpload, UploadService  # noqa: E402
from dronespot.services.vision_base import VisionService  # noqa: E402


class FakeVisionService(VisionService):
    """Returns a canned answer and records what it was asked."""

    name = "fake"

    def __init__(self, answer: str = "", error: Optional[Exception] = None):
        self.answer = answer
        self.error = error
        self.calls: List[dict] = []

    async def locate_image(self, upload: StoredUpload, city: str, count: int) -> str:
        self.calls.append(
            {"path": upload.path, "exists": upload.path.exists(), "city": city, "count": count}
        )
        if self.error:
            raise self.error
        return self.answer

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def upload_dir(tmp_path):
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    return storage_dir


@pytest.fixture
def upload_service(upload_dir):
    return UploadService(upload_dir=str(upload_dir))


@pytest.fixture
def sample_image_bytes():
    """
    Minimal JPEG: Start of Image (FFD8) + JFIF marker + End of Image (FFD9).

    Not a real photograph; enough for upload validation and fake providers.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def fake_vision():
    return FakeVisionService()


@pytest.fixture
def app():
    from dronespot.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app without a running server.

    Usage:
        async def test_status(test_client):
            response = await test_client.get("/api/test")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
