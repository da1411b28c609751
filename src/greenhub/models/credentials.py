"""Credentials kept between invocations."""

from typing import Any

from pydantic import BaseModel


class Credentials(BaseModel):
    server: str | None = None
    token: str | None = None
    user: dict[str, Any] | None = None

    @property
    def is_logged_in(self) -> bool:
        return bool(self.token)
