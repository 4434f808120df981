"""
Shared pytest fixtures for the telemetry gate test suite.

Strategy:
- Domain/application tests: pure in-memory, injected fakes for clock and HTTP.
- API tests: FastAPI TestClient against a freshly built app per test, with a
  seeded dataset and the local bridge (MCP_URL is cleared).
"""
import os
import random

import pytest

# ---------------------------------------------------------------------------
# Never reach a real bridge endpoint during the test run
# ---------------------------------------------------------------------------
os.environ.pop("MCP_URL", None)
os.environ.pop("MCP_API_KEY", None)
os.environ.setdefault("SESSION_SECRET", "test-session-secret-not-for-production")

from telemetry_gate.config import Settings
from telemetry_gate.domain.dataset import Dataset
from telemetry_gate.infrastructure.seed import generate_records

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "demo123"
DEMO_API_KEY = "test-demo-api-key"


class FakeClock:
    """Monotonic clock the tests can move forward by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_settings(**overrides) -> Settings:
    values = {
        "session_secret": "test-session-secret-not-for-production",
        "demo_username": DEMO_USERNAME,
        "demo_password": DEMO_PASSWORD,
        "demo_api_key": DEMO_API_KEY,
        "stream_interval": 0.01,
    }
    values.update(overrides)
    return Settings(**values)


def make_dataset(size: int = 500, seed: int = 1234) -> Dataset:
    return Dataset(generate_records(size, random.Random(seed)))


def login(client, identity: str = "10.0.0.1", username: str = DEMO_USERNAME, password: str = DEMO_PASSWORD):
    return client.post(
        "/api/login",
        json={"username": username, "password": password},
        headers={"X-Forwarded-For": identity},
    )


# ---------------------------------------------------------------------------
# pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def dataset():
    return make_dataset()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def test_app(settings, dataset):
    """Application wired with the local bridge and a seeded dataset."""
    from telemetry_gate.main import create_app
    return create_app(settings, dataset=dataset)


@pytest.fixture
def client(test_app):
    from fastapi.testclient import TestClient
    return TestClient(test_app)


@pytest.fixture
def auth_client(client):
    """TestClient holding a valid session cookie."""
    resp = login(client, identity="10.9.9.9")
    assert resp.status_code == 200, f"Login failed: {resp.text}"
    return client
