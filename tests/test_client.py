"""Tests for the HTTP client."""

import json
from unittest.mock import Mock

import pytest
import requests

from greenhub.client import http_client
from greenhub.client.http_client import GreenHubClient, fetch_remote_url
from greenhub.errors import AuthError, TransportError


def make_response(status: int = 200, body=None, text: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = (json.dumps(body) if body is not None else text).encode()
    response.encoding = "utf-8"
    return response


@pytest.fixture
def session() -> Mock:
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session: Mock) -> GreenHubClient:
    return GreenHubClient("https://greenhub.test/", "secret", session=session)


class TestGreenHubClient:
    def test_get_builds_request(self, client: GreenHubClient, session: Mock):
        """Requests go to /api/v1 with the bearer token."""
        session.request.return_value = make_response(body={"data": []})

        body = client.get("devices", params={"page": "1"}, timeout=5)

        assert body == {"data": []}
        session.request.assert_called_once_with(
            "GET",
            "https://greenhub.test/api/v1/devices",
            params={"page": "1"},
            headers={"Authorization": "Bearer secret"},
            timeout=5,
        )

    def test_no_token_no_header(self, session: Mock):
        session.request.return_value = make_response(body={})
        GreenHubClient("https://greenhub.test", session=session).get("models")
        assert session.request.call_args.kwargs["headers"] == {}

    def test_post(self, client: GreenHubClient, session: Mock):
        session.request.return_value = make_response(body={"data": {"token": "new"}})
        assert client.post("token") == {"data": {"token": "new"}}
        assert session.request.call_args.args == ("POST", "https://greenhub.test/api/v1/token")

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_error(self, client: GreenHubClient, session: Mock, status: int):
        session.request.return_value = make_response(status, body={"message": "Unauthenticated."})
        with pytest.raises(AuthError):
            client.get("user")

    def test_server_error_keeps_status(self, client: GreenHubClient, session: Mock):
        session.request.return_value = make_response(500, body={"message": "boom"})
        with pytest.raises(TransportError) as exc_info:
            client.get("devices")
        assert exc_info.value.status_code == 500
        assert "boom" in str(exc_info.value)

    def test_timeout(self, client: GreenHubClient, session: Mock):
        session.request.side_effect = requests.Timeout()
        with pytest.raises(TransportError, match="timed out after 3s"):
            client.get("devices", timeout=3)

    def test_connection_error(self, client: GreenHubClient, session: Mock):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(TransportError, match="refused"):
            client.get("devices")

    def test_invalid_json(self, client: GreenHubClient, session: Mock):
        session.request.return_value = make_response(text="<html>not json</html>")
        with pytest.raises(TransportError, match="invalid JSON"):
            client.get("devices")

    def test_ping_reports_status(self, client: GreenHubClient, session: Mock):
        """A non-2xx status is returned, not raised."""
        session.request.return_value = make_response(503, text="down")
        status, elapsed_ms = client.ping(timeout=5)
        assert status == 503
        assert elapsed_ms >= 0
        assert session.request.call_args.kwargs == {"timeout": 5}

    def test_ping_unreachable(self, client: GreenHubClient, session: Mock):
        session.request.side_effect = requests.ConnectionError("no route")
        with pytest.raises(TransportError, match="Could not reach"):
            client.ping()

    def test_context_manager_closes_session(self, session: Mock):
        with GreenHubClient("https://greenhub.test", session=session):
            pass
        session.close.assert_called_once()


class TestFetchRemoteUrl:
    def test_returns_trimmed_url(self, monkeypatch: pytest.MonkeyPatch):
        get = Mock(return_value=make_response(text="https://farmer.greenhub.test/\n"))
        monkeypatch.setattr(http_client.requests, "get", get)

        assert fetch_remote_url("https://discovery.test/remote", timeout=4) == (
            "https://farmer.greenhub.test"
        )
        get.assert_called_once_with("https://discovery.test/remote", timeout=4)

    def test_rejects_non_url(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            http_client.requests, "get", Mock(return_value=make_response(text="<html>"))
        )
        with pytest.raises(TransportError):
            fetch_remote_url("https://discovery.test/remote")

    def test_http_error(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            http_client.requests, "get", Mock(return_value=make_response(404, text="missing"))
        )
        with pytest.raises(TransportError, match="Could not fetch"):
            fetch_remote_url("https://discovery.test/remote")
