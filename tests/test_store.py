"""Tests for the credential store."""

from pathlib import Path

import pytest

from greenhub.errors import ConfigError
from greenhub.models.credentials import Credentials
from greenhub.store import CredentialStore


class TestCredentialStore:
    def test_missing_file_is_logged_out(self, store: CredentialStore):
        assert store.load() == Credentials()
        assert not store.load().is_logged_in

    def test_save_and_load(self, store: CredentialStore):
        credentials = Credentials(
            server="https://greenhub.test", token="abc", user={"name": "Ada"}
        )
        store.save(credentials)
        assert store.load() == credentials

    def test_creates_parent_directory(self, tmp_path: Path):
        store = CredentialStore(tmp_path / "nested" / "dir" / "credentials.yaml")
        store.save(Credentials(token="abc"))
        assert store.path.exists()

    def test_file_is_private(self, store: CredentialStore):
        """The token file is only readable by its owner."""
        store.save(Credentials(token="abc"))
        assert store.path.stat().st_mode & 0o777 == 0o600

    def test_update(self, logged_in_store: CredentialStore):
        updated = logged_in_store.update(token="new-token")
        assert updated.token == "new-token"
        assert logged_in_store.load().token == "new-token"
        assert logged_in_store.load().user == {"name": "Ada", "email": "ada@example.com"}

    def test_clear_keeps_server(self, logged_in_store: CredentialStore):
        assert logged_in_store.clear() is True
        credentials = logged_in_store.load()
        assert not credentials.is_logged_in
        assert credentials.user is None
        assert credentials.server == "https://greenhub.test"

    def test_clear_when_logged_out(self, store: CredentialStore):
        assert store.clear() is False

    def test_empty_file(self, store: CredentialStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("")
        assert store.load() == Credentials()

    def test_not_a_mapping(self, store: CredentialStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="not a mapping"):
            store.load()

    def test_broken_yaml(self, store: CredentialStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("token: [unclosed\n")
        with pytest.raises(ConfigError, match="not valid yaml"):
            store.load()

    def test_wrong_shape(self, store: CredentialStore):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("token:\n  - a\n  - b\n")
        with pytest.raises(ConfigError) as exc_info:
            store.load()
        assert str(store.path) in str(exc_info.value)
