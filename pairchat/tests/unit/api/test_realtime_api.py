"""
Endpoint tests for the WebSocket chat flow and the health endpoint.

These run the real application, lifespan included, through FastAPI's
TestClient.
"""

import pytest
from fastapi import FastAPI, WebSocketDisconnect
from fastapi.testclient import TestClient

from pairchat.app.factory import create_app
from pairchat.app.lifespan import initialize_session_services
from pairchat.config import AppConfig
from pairchat.config.models import MatchmakingConfig
from pairchat.exceptions import ConfigurationError


def _register(ws, identity, attribute):
    ws.send_json({"type": "register", "data": {"identity": identity, "attribute": attribute}})


@pytest.fixture
def app():
    return create_app(AppConfig())


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


class TestChatFlow:
    """End-to-end chat flow over the WebSocket endpoint."""

    def test_pair_chat_and_leave(self, client):
        """Test two participants are paired, exchange a message and see the departure."""
        with client.websocket_connect("/ws") as alice:
            _register(alice, "alice@mit.edu", "male")
            assert alice.receive_json()["event_type"] == "waiting"

            with client.websocket_connect("/ws") as bob:
                _register(bob, "bob@iitb.ac.in", "female")
                bob_start = bob.receive_json()
                alice_start = alice.receive_json()
                assert bob_start["event_type"] == "chatStart"
                assert alice_start["event_type"] == "chatStart"
                assert bob_start["data"]["partnerRef"] != alice_start["data"]["partnerRef"]

                alice.send_json({"type": "message", "data": "hello"})
                relayed = bob.receive_json()
                assert relayed["event_type"] == "message"
                assert relayed["data"] == {"payload": "hello"}

                health = client.get("/health").json()
                assert health["pairs"] == 1
                assert health["participants"] == 2

            left = alice.receive_json()
            assert left["event_type"] == "partnerLeft"

    def test_invalid_identity(self, client):
        """Test a non-institutional email gets an error event."""
        with client.websocket_connect("/ws") as ws:
            _register(ws, "someone@gmail.com", "male")
            event = ws.receive_json()

            assert event["event_type"] == "error"
            assert event["data"]["error_type"] == "invalid_identity"
            assert event["data"]["user_friendly"].startswith("Please use a valid college email")

    def test_legacy_field_names(self, client):
        """Test register frames using email/gender are accepted."""
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "register", "data": {"email": "carol@du.edu.in", "gender": "female"}})

            assert ws.receive_json()["event_type"] == "waiting"

    def test_malformed_frame(self, client):
        """Test invalid JSON is reported without closing the connection."""
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            error = ws.receive_json()
            _register(ws, "dave@stanford.edu", "male")

            assert error["data"]["error_type"] == "invalid_format"
            assert ws.receive_json()["event_type"] == "waiting"

    def test_duplicate_identity_closes_old_connection(self, client):
        """Test registering an identity again force-closes the earlier socket."""
        with client.websocket_connect("/ws") as first:
            _register(first, "erin@mit.edu", "female")
            assert first.receive_json()["event_type"] == "waiting"

            with client.websocket_connect("/ws") as second:
                _register(second, "erin@mit.edu", "female")
                assert second.receive_json()["event_type"] == "waiting"

                with pytest.raises(WebSocketDisconnect) as exc_info:
                    first.receive_json()
                assert exc_info.value.code == 1000

    def test_envelope_shape(self, client):
        """Test every outbound event carries the envelope fields."""
        with client.websocket_connect("/ws") as ws:
            _register(ws, "frank@mit.edu", "male")
            event = ws.receive_json()

            assert set(event) == {"event_type", "timestamp", "sequence_number", "data"}
            assert event["timestamp"].endswith("Z")


class TestHealth:
    """Test cases for the health endpoint."""

    def test_health_when_idle(self, client):
        """Test the snapshot of an empty server."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["connections"] == 0
        assert body["participants"] == 0
        assert body["waiting"] == {"male": 0, "female": 0}
        assert body["pairs"] == 0
        assert body["timestamp"].endswith("Z")

    def test_health_counts_waiting(self, client):
        """Test waiting participants show up per pool."""
        with client.websocket_connect("/ws") as ws:
            _register(ws, "gina@mit.edu", "female")
            ws.receive_json()

            body = client.get("/health").json()

        assert body["waiting"] == {"male": 0, "female": 1}
        assert body["connections"] == 1


class TestServiceUnavailable:
    """Behavior before the lifespan has built the session services."""

    def test_websocket_refused(self, app):
        """Test the socket is told the service is unavailable and closed with 1013."""
        client = TestClient(app)

        with client.websocket_connect("/ws") as ws:
            event = ws.receive_json()
            assert event["event_type"] == "error"
            assert event["data"]["error_type"] == "service_unavailable"

            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()
            assert exc_info.value.code == 1013

    def test_health_unavailable(self, app):
        """Test health reports 503 without a coordinator."""
        client = TestClient(app)

        assert client.get("/health").status_code == 503


class TestAppFactory:
    """Test cases for create_app and the lifespan helpers."""

    def test_cors_middleware_installed(self, app):
        """Test CORS is configured from CORSConfig."""
        middleware = [m for m in app.user_middleware if m.cls.__name__ == "CORSMiddleware"]

        assert len(middleware) == 1
        assert middleware[0].kwargs["allow_origins"] == ["http://localhost:3000"]

    def test_cors_preflight(self, client):
        """Test a preflight from the configured origin is allowed."""
        response = client.options(
            "/health",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
        )

        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_bad_suffix_configuration(self):
        """Test an empty suffix list surfaces as a ConfigurationError."""
        config = AppConfig().model_copy(
            update={"matchmaking": MatchmakingConfig.model_construct(accepted_identity_suffixes=[])}
        )

        with pytest.raises(ConfigurationError) as exc_info:
            initialize_session_services(FastAPI(), config)

        assert exc_info.value.details["config_key"] == "matchmaking.accepted_identity_suffixes"
