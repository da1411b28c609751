"""Runtime settings for the GreenHub CLI.

Read from GREENHUB_* environment variables, e.g. GREENHUB_CONFIG_DIR or
GREENHUB_SERVER_URL. Nothing here is secret - the token lives in the
credential store under config_dir.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GREENHUB_")

    config_dir: Path = Field(default_factory=lambda: Path.home() / ".greenhub")
    server_url: str | None = None  # takes priority over the stored server
    discovery_url: str = "https://greenhubproject.github.io/greenhub-cli/remote"
    docs_url: str = "https://greenhubproject.github.io/docs"
    timeout: int = 10
    status_timeout: int = 5
    log_level: str = "WARNING"

    @property
    def credentials_path(self) -> Path:
        return self.config_dir.expanduser() / "credentials.yaml"
