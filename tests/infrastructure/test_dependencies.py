"""Tests for FastAPI auth dependencies -- identity extraction and guards."""
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from telemetry_gate.infrastructure.auth.dependencies import client_identity
from telemetry_gate.main import create_app
from tests.conftest import DEMO_API_KEY, login, make_dataset, make_settings


def _identity_client():
    app = FastAPI()

    @app.get("/whoami")
    def whoami(request: Request):
        return {"identity": client_identity(request)}

    return TestClient(app)


class TestClientIdentity:
    def test_uses_first_forwarded_hop(self):
        resp = _identity_client().get("/whoami", headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert resp.json()["identity"] == "203.0.113.5"

    def test_falls_back_to_peer_address(self):
        resp = _identity_client().get("/whoami")
        assert resp.json()["identity"] == "testclient"

    def test_blank_forwarded_header_ignored(self):
        resp = _identity_client().get("/whoami", headers={"X-Forwarded-For": "  "})
        assert resp.json()["identity"] == "testclient"


class TestGuards:
    def _client(self, **overrides):
        app = create_app(make_settings(**overrides), dataset=make_dataset(20))
        return TestClient(app)

    def test_api_key_accepted_on_data_route(self):
        resp = self._client().get("/api/sms", headers={"X-API-Key": DEMO_API_KEY})
        assert resp.status_code == 200

    def test_wrong_api_key_rejected(self):
        resp = self._client().get("/api/sms", headers={"X-API-Key": "nope"})
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    def test_api_key_ignored_when_not_configured(self):
        resp = self._client(demo_api_key=None).get("/api/sms", headers={"X-API-Key": DEMO_API_KEY})
        assert resp.status_code == 401

    def test_api_key_not_accepted_on_bridge_route(self):
        resp = self._client().post("/api/mcp/query", json={}, headers={"X-API-Key": DEMO_API_KEY})
        assert resp.status_code == 401

    def test_session_cookie_accepted(self):
        client = self._client()
        assert login(client).status_code == 200
        assert client.get("/api/sms").status_code == 200
