"""HTTP client for the GreenHub api.

A thin wrapper around a requests session: it knows the base url, the auth
header and how to turn failures into our own exception types. Everything
about *what* to ask for lives in the assembler and the GreenHub facade.
"""

import logging
import time
from typing import Any

import requests

from greenhub.errors import AuthError, TransportError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT = 10


class GreenHubClient:
    """Talks to a single GreenHub server.

    The session is created lazily and can be injected, which is how the
    tests swap in a mock.
    """

    def __init__(
        self,
        server: str,
        token: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.server = server.rstrip("/")
        self.token = token
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"Accept": "application/json"})
        return self._session

    def url(self, path: str) -> str:
        return f"{self.server}{API_PREFIX}/{path.lstrip('/')}"

    def get(
        self,
        path: str,
        params: dict[str, str] | None = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> Any:
        return self._request("GET", self.url(path), params=params, timeout=timeout)

    def post(self, path: str, timeout: int = DEFAULT_TIMEOUT) -> Any:
        return self._request("POST", self.url(path), timeout=timeout)

    def ping(self, timeout: int = DEFAULT_TIMEOUT) -> tuple[int, float]:
        """Hit the status endpoint without auth.

        Returns the http status and the round trip in ms. A non-2xx answer
        is still an answer, so only connection problems raise here.
        """
        start = time.perf_counter()
        try:
            response = self.session.request("GET", self.url("status"), timeout=timeout)
        except requests.Timeout as e:
            raise TransportError(f"Server did not answer within {timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"Could not reach {self.server}: {e}") from e
        elapsed_ms = (time.perf_counter() - start) * 1000
        return response.status_code, round(elapsed_ms, 2)

    def _request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> Any:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.debug("%s %s params=%s timeout=%ss", method, url, params, timeout)
        try:
            response = self.session.request(
                method, url, params=params, headers=headers, timeout=timeout
            )
        except requests.Timeout as e:
            raise TransportError(f"Request timed out after {timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthError(f"Server rejected the API token (HTTP {response.status_code})")
        if not response.ok:
            raise TransportError(
                f"Server returned HTTP {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Server sent invalid JSON from {url}") from e

    def close(self) -> None:
        if self._session is not None:
            self._session.close()

    def __enter__(self) -> "GreenHubClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _error_detail(response: requests.Response) -> str:
    # laravel puts a human readable reason under "message"
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason or "no details"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason or "no details"


def fetch_remote_url(discovery_url: str, timeout: int = DEFAULT_TIMEOUT) -> str:
    """Ask the discovery endpoint which server to use.

    The endpoint serves the url as plain text.
    """
    try:
        response = requests.get(discovery_url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise TransportError(f"Could not fetch the server url: {e}") from e

    server = response.text.strip()
    if not server.startswith(("http://", "https://")):
        raise TransportError(f"Discovery endpoint returned an invalid url: {server[:100]!r}")
    return server.rstrip("/")
