"""Credential store for the GreenHub CLI.

A single yaml file holding the server url, the api token and the cached
user profile. It is handed to the commands explicitly - nothing reads the
file behind their back.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from greenhub.errors import ConfigError
from greenhub.models.credentials import Credentials

logger = logging.getLogger(__name__)


class CredentialStore:
    """Loads and saves Credentials to a yaml file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Credentials:
        """Read stored credentials. A missing or empty file means logged out."""
        if not self.path.exists():
            return Credentials()

        try:
            with open(self.path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Credential file {self.path} is not valid yaml: {e}") from e

        if not data:
            return Credentials()
        if not isinstance(data, dict):
            raise ConfigError(f"Credential file {self.path} is not a mapping")
        try:
            return Credentials.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Credential file {self.path} is invalid: {e}") from e

    def save(self, credentials: Credentials) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(credentials.model_dump(exclude_none=True), f, sort_keys=True)
        # holds an api token
        os.chmod(self.path, 0o600)
        logger.debug("Saved credentials to %s", self.path)

    def update(self, **changes) -> Credentials:
        """Load, apply changes, save and return the result."""
        credentials = self.load().model_copy(update=changes)
        self.save(credentials)
        return credentials

    def clear(self) -> bool:
        """Forget the token and user but keep the server url.

        Returns False when there was nobody logged in.
        """
        credentials = self.load()
        if not credentials.is_logged_in:
            return False
        self.save(Credentials(server=credentials.server))
        return True
