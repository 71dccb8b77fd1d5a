"""HTTP API tests through the FastAPI test client."""

from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from movecar.app import App
from movecar.config import Config
from movecar.core.kv import KVStore
from movecar.errors import StorageUnavailableError
from movecar.web.deps import SESSION_COOKIE
from movecar.web.server import create_fastapi_app


class UnreachableKVStore(KVStore):
    async def get(self, key: str) -> str | None:
        raise StorageUnavailableError

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        raise StorageUnavailableError

    async def delete(self, key: str) -> None:
        raise StorageUnavailableError

    async def ping(self) -> None:
        raise StorageUnavailableError


@pytest.fixture
def client(app, config):
    with TestClient(create_fastapi_app(app, config)) as test_client:
        yield test_client


def pushed_owner_token(sent_requests) -> str:
    """Owner token as it arrived in the link pushed through Bark."""
    confirm_url = sent_requests[-1].url.params["url"]
    return parse_qs(urlparse(confirm_url).query)["token"][0]


class TestHealth:
    def test_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_store_unreachable(self, config, clock):
        with TestClient(create_fastapi_app(App(config, clock, UnreachableKVStore()), config)) as client:
            response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["type"] == "storage_unavailable"


class TestRequesterFlow:
    """Requester endpoints authenticated by the session cookie."""

    def test_notify_sets_session_cookie(self, client):
        response = client.post("/api/notify", json={"message": "Blocking the gate", "location": {"lat": 31.23, "lng": 121.47}})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["reused"] is False
        assert body["status"] == "waiting"
        assert client.cookies[SESSION_COOKIE] == body["session_id"]
        assert "httponly" in response.headers["set-cookie"].lower()

    def test_check_status_waiting(self, client):
        session_id = client.post("/api/notify", json={}).json()["session_id"]

        body = client.get("/api/check-status").json()
        assert body["status"] == "waiting"
        assert body["session_id"] == session_id
        assert body["owner_location"] is None

    def test_check_status_without_cookie(self, client):
        response = client.get("/api/check-status")
        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    def test_second_notify_reuses_session(self, client):
        first = client.post("/api/notify", json={}).json()
        second = client.post("/api/notify", json={"message": "still waiting"}).json()
        assert second["reused"] is True
        assert second["session_id"] == first["session_id"]

    def test_owner_location_not_shared_yet(self, client):
        client.post("/api/notify", json={})
        assert client.get("/api/owner-location").status_code == 404

    def test_invalid_coordinates(self, client):
        response = client.post("/api/notify", json={"location": {"lat": 123.0, "lng": 0.0}})
        assert response.status_code == 422

    def test_plate_mismatch(self, client, app):
        app.config.plate_number = "AB1234"
        response = client.post("/api/notify", json={"plate": "9999"})
        assert response.status_code == 403
        assert response.json()["type"] == "access_denied"

    def test_no_channel_configured(self, clock, kv):
        config = Config(_env_file=None)
        with TestClient(create_fastapi_app(App(config, clock, kv), config)) as client:
            response = client.post("/api/notify", json={})
        assert response.status_code == 503
        assert response.json()["type"] == "notification_not_configured"


class TestOwnerFlow:
    """Owner endpoints authenticated by the token in the pushed link."""

    def test_confirm_by_path_token(self, client, sent_requests):
        client.post("/api/notify", json={"location": {"lat": 31.23, "lng": 121.47}})
        token = pushed_owner_token(sent_requests)

        response = client.post(f"/api/owner-confirm/{token}", json={"location": {"lat": 48.85, "lng": 2.35}, "message": "5 min"})

        assert response.status_code == 200
        assert response.json()["status"] == "arriving"
        assert response.json()["session_id"] is None
        status = client.get("/api/check-status").json()
        assert status["status"] == "arriving"
        assert status["owner_message"] == "5 min"
        assert client.get("/api/owner-location").json()["lat"] == 48.85

    def test_confirm_by_query_token_without_body(self, client, sent_requests):
        client.post("/api/notify", json={})
        token = pushed_owner_token(sent_requests)

        response = client.post("/api/owner-confirm", params={"token": token})

        assert response.status_code == 200
        assert client.get("/api/check-status").json()["status"] == "arriving"

    def test_requester_location(self, client, sent_requests):
        client.post("/api/notify", json={"location": {"lat": 31.23, "lng": 121.47}})
        token = pushed_owner_token(sent_requests)

        body = client.get("/api/get-location", params={"token": token}).json()
        assert body["lat"] == 31.23
        assert body["apple_url"].startswith("https://maps.apple.com/?ll=")

    def test_wrong_token(self, client):
        client.post("/api/notify", json={})
        response = client.post("/api/owner-confirm/abcdef-0101-00-00-owner")
        assert response.status_code == 404
        assert response.json() == {"message": "Session not found", "type": "not_found"}

    def test_session_cookie_is_not_an_owner_token(self, client):
        session_id = client.post("/api/notify", json={}).json()["session_id"]
        assert client.post(f"/api/terminate/{session_id}").status_code == 404

    def test_clear_owner_location(self, client, sent_requests):
        client.post("/api/notify", json={})
        token = pushed_owner_token(sent_requests)
        client.post(f"/api/owner-confirm/{token}", json={"location": {"lat": 48.85, "lng": 2.35}})

        response = client.post(f"/api/owner-location/clear/{token}")

        assert response.status_code == 200
        assert response.json()["status"] == "arriving"
        assert client.get("/api/owner-location").status_code == 404

    def test_terminate(self, client, sent_requests):
        client.post("/api/notify", json={})
        token = pushed_owner_token(sent_requests)

        assert client.post(f"/api/terminate/{token}").json()["status"] == "closed"
        assert client.post(f"/api/terminate/{token}").status_code == 200
        assert client.get("/api/check-status").json()["status"] == "closed"

        response = client.post(f"/api/owner-confirm/{token}")
        assert response.status_code == 409
        assert response.json()["type"] == "session_closed"

    def test_closed_session_gone_after_display_window(self, client, sent_requests, clock):
        client.post("/api/notify", json={})
        token = pushed_owner_token(sent_requests)
        client.post(f"/api/terminate/{token}")

        clock.advance(601)

        assert client.post(f"/api/terminate/{token}").status_code == 404
        status = client.get("/api/check-status").json()
        assert status["status"] == "closed"
        assert status["session_id"] is None


class TestSessionEndpoints:
    def test_session_for_each_role(self, client, sent_requests):
        session_id = client.post("/api/notify", json={}).json()["session_id"]
        token = pushed_owner_token(sent_requests)

        requester = client.get("/api/session").json()
        owner = client.get("/api/session", params={"role": "owner", "token": token}).json()

        assert (requester["session_id"], requester["owner_token"]) == (session_id, None)
        assert (owner["session_id"], owner["owner_token"]) == (None, token)

    def test_history_requires_admin_token(self, client, sent_requests):
        client.post("/api/notify", json={})
        token = pushed_owner_token(sent_requests)
        client.post(f"/api/terminate/{token}")

        assert client.get("/api/history").status_code == 403
        assert client.get("/api/history", headers={"Authorization": "Bearer wrong"}).status_code == 403

        response = client.get("/api/history", headers={"Authorization": "Bearer admin-secret"})
        assert response.status_code == 200
        assert [(entry["owner_token"], entry["reason"]) for entry in response.json()] == [(token, "terminated")]


class TestOpenAPI:
    def test_security_references_named_schemes(self, client):
        """Test that every operation only references schemes declared in components."""
        schema = client.get("/openapi.json").json()
        declared = set(schema["components"]["securitySchemes"])

        referenced = {
            name
            for path_item in schema["paths"].values()
            for operation in path_item.values()
            for requirement in operation["security"]
            for name in requirement
        }
        assert referenced <= declared

    def test_operation_security(self, client):
        paths = client.get("/openapi.json").json()["paths"]
        assert paths["/api/history"]["get"]["security"] == [{"AdminBearer": []}]
        assert paths["/api/terminate/{token}"]["post"]["security"] == [{"OwnerToken": []}]
        assert paths["/api/check-status"]["get"]["security"] == [{"RequesterCookie": []}]
        assert paths["/health"]["get"]["security"] == []


class TestAppState:
    def test_state_holds_only_the_app(self, client, app):
        """Test that routes reach settings through the App facade."""
        assert client.app.state.app is app
        assert not hasattr(client.app.state, "config")
