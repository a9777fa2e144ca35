"""
Shared fixtures: a fresh hub application per test, with images written to a
temporary directory.
"""

import base64

import pytest
from fastapi.testclient import TestClient

from roadwatch.config import HubSettings
from roadwatch.main import create_app


# 1x1 red pixel
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="
)
PNG_DATA_URI = f"data:image/png;base64,{PNG_BASE64}"
PNG_BYTES = base64.b64decode(PNG_BASE64)


class FakeClock:
    """Settable time source for stores and registries"""

    def __init__(self, now: float = 1718000000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return HubSettings(
        image_dir=tmp_path / "incident-images",
        sweep_interval_seconds=3600,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def incident_payload():
    return {
        "incidentId": "INC-TEST-1",
        "type": "accident",
        "message": "Collision detected ahead",
        "location": {"latitude": 24.7136, "longitude": 46.6753},
        "timestamp": "2024-06-10T08:00:00.000Z",
        "severity": "critical",
    }
