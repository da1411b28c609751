"""Pytest fixtures for GreenHub tests."""

from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from greenhub.cli import main
from greenhub.config import Settings
from greenhub.hub import GreenHub
from greenhub.models.credentials import Credentials
from greenhub.store import CredentialStore

SERVER = "https://greenhub.test"
TOKEN = "secret-token"


class FakeClient:
    """Stands in for GreenHubClient.

    Responses are keyed by path. A value can be a payload, an exception
    to raise, or a callable taking the params.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, str, dict | None, int]] = []
        self.server: str | None = None
        self.token: str | None = None

    def get(self, path: str, params: dict | None = None, timeout: int = 10) -> Any:
        self.calls.append(("GET", path, params, timeout))
        return self._respond(path, params)

    def post(self, path: str, timeout: int = 10) -> Any:
        self.calls.append(("POST", path, None, timeout))
        return self._respond(path, None)

    def ping(self, timeout: int = 10) -> tuple[int, float]:
        self.calls.append(("PING", "status", None, timeout))
        return self._respond("status", None)

    def _respond(self, key: str, params: dict | None) -> Any:
        value = self.responses[key]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(params)
        return value


def laravel_page(
    records: list[dict],
    current_page: int = 1,
    last_page: int = 1,
    per_page: int = 10,
    total: int | None = None,
    next_page_url: str | None = None,
) -> dict:
    """Paginated body the way the GreenHub server sends it."""
    return {
        "data": records,
        "current_page": current_page,
        "last_page": last_page,
        "per_page": per_page,
        "total": len(records) if total is None else total,
        "next_page_url": next_page_url,
    }


@pytest.fixture
def now() -> datetime:
    return datetime(2017, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "greenhub"


@pytest.fixture
def settings(config_dir: Path) -> Settings:
    return Settings(config_dir=config_dir, server_url=None)


@pytest.fixture
def store(settings: Settings) -> CredentialStore:
    return CredentialStore(settings.credentials_path)


@pytest.fixture
def logged_in_store(store: CredentialStore) -> CredentialStore:
    store.save(
        Credentials(
            server=SERVER,
            token=TOKEN,
            user={"name": "Ada", "email": "ada@example.com"},
        )
    )
    return store


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def client_factory(fake_client: FakeClient) -> Callable[[str, str | None], FakeClient]:
    """Factory that records which server/token the client was built with."""

    def factory(server: str, token: str | None) -> FakeClient:
        fake_client.server = server
        fake_client.token = token
        return fake_client

    return factory


@pytest.fixture
def hub(logged_in_store: CredentialStore, settings: Settings, client_factory) -> GreenHub:
    return GreenHub(logged_in_store, settings, client_factory=client_factory)


@pytest.fixture
def cli_env(config_dir: Path, monkeypatch: pytest.MonkeyPatch, client_factory) -> Path:
    """Point the cli at a temp config dir and the fake client."""
    monkeypatch.setenv("GREENHUB_CONFIG_DIR", str(config_dir))
    monkeypatch.delenv("GREENHUB_SERVER_URL", raising=False)
    monkeypatch.setattr(main, "get_client", client_factory)
    return config_dir
