"""Main GreenHub interface.

Ties the pieces together: credentials from the store, parameters from the
assembler, requests through the client. The cli is a thin layer on top of
this class.
"""

import logging
from collections.abc import Callable
from typing import Any

from greenhub.client.http_client import GreenHubClient, fetch_remote_url
from greenhub.compiler.query_builder import QueryAssembler
from greenhub.config import Settings
from greenhub.errors import NotLoggedIn, TransportError
from greenhub.models.credentials import Credentials
from greenhub.models.options import CountOptions, ExportOptions, LumberjackOptions
from greenhub.models.query import Page, QueryParams
from greenhub.store import CredentialStore

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str | None], GreenHubClient]


class GreenHub:
    """Everything a command can ask the GreenHub service to do."""

    # upper bound for the load-all loop, in case a server keeps handing out pages
    MAX_PAGES = 500

    def __init__(
        self,
        store: CredentialStore,
        settings: Settings | None = None,
        client_factory: ClientFactory = GreenHubClient,
        assembler: QueryAssembler | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self.client_factory = client_factory
        self.assembler = assembler or QueryAssembler()

    # --- credentials ---

    @property
    def credentials(self) -> Credentials:
        return self.store.load()

    @property
    def server(self) -> str | None:
        """Server in use: the settings override, else whatever was stored."""
        return self.settings.server_url or self.credentials.server

    def _client(self, authenticated: bool = True) -> GreenHubClient:
        credentials = self.credentials
        if authenticated and not credentials.is_logged_in:
            raise NotLoggedIn()
        server = self.server
        if not server:
            raise TransportError("No server configured. Run `greenhub remote --fetch`.")
        return self.client_factory(server, credentials.token if authenticated else None)

    def fetch_remote(self, timeout: int | None = None) -> str:
        """Look up the server url and remember it."""
        server = fetch_remote_url(self.settings.discovery_url, timeout or self.settings.timeout)
        self.store.update(server=server)
        logger.info("Using server %s", server)
        return server

    def login(self, token: str) -> dict[str, Any]:
        """Validate a token against the server and store it with the profile."""
        if not self.server:
            self.fetch_remote()
        client = self.client_factory(self.server, token)
        user = _unwrap(client.get("user", timeout=self.settings.timeout))
        # the settings override is left out of the file, only the stored server stays
        self.store.update(token=token, user=user)
        return user

    def reload(self) -> dict[str, Any]:
        """Refresh the cached user profile with the stored token."""
        user = self.whoami()
        self.store.update(user=user)
        return user

    def logout(self) -> bool:
        return self.store.clear()

    def token(self) -> str:
        credentials = self.credentials
        if not credentials.is_logged_in:
            raise NotLoggedIn()
        return credentials.token

    def new_token(self) -> str:
        """Ask the server for a fresh token; the old one stops working."""
        body = _unwrap(self._client().post("token", timeout=self.settings.timeout))
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise TransportError("Server did not return a new token")
        self.store.update(token=token)
        return token

    # --- account & server ---

    def whoami(self) -> dict[str, Any]:
        user = _unwrap(self._client().get("user", timeout=self.settings.timeout))
        if not isinstance(user, dict):
            raise TransportError("Unexpected user profile format")
        return user

    def list_models(self) -> list[dict[str, Any]]:
        """Models the server exposes, normalized to name/description dicts."""
        items = _unwrap(self._client().get("models", timeout=self.settings.timeout))
        models = []
        for item in items or []:
            if isinstance(item, str):
                models.append({"name": item, "description": None})
            else:
                models.append({"name": item.get("name"), "description": item.get("description")})
        return models

    def status(self, timeout: int | None = None) -> tuple[int, float]:
        if timeout is None:
            timeout = self.settings.status_timeout
        timeout = self.assembler.clamp_timeout(timeout)
        return self._client(authenticated=False).ping(timeout=timeout)

    # --- queries ---

    def count(self, model: str, options: CountOptions) -> int:
        params = self.assembler.assemble(options)
        body = _unwrap(
            self._client().get(
                f"{model}/count", params=params.to_request_params(), timeout=params.timeout
            )
        )
        count = body.get("count") if isinstance(body, dict) else body
        if not isinstance(count, int):
            raise TransportError(f"Unexpected count response: {body!r}")
        return count

    def lumberjack(self, model: str, options: LumberjackOptions) -> Page:
        """Run a flexible query. With --all the pages are merged into one."""
        params = self.assembler.assemble(options)
        if params.bulk:
            records = self.fetch_all(model, params)
            return Page(records=records, total=len(records))
        return self._fetch_page(self._client(), model, params)

    def export(self, model: str, options: ExportOptions) -> list[dict[str, Any]]:
        params = self.assembler.assemble(options)
        return self.fetch_all(model, params)

    def fetch_all(self, model: str, params: QueryParams) -> list[dict[str, Any]]:
        """Load the full result set.

        The bulk flag normally gets everything in one response, but if the
        server still paginates we keep asking for the next page number with
        the same parameters until it runs out, capped at MAX_PAGES.
        """
        client = self._client()
        page = self._fetch_page(client, model, params)
        records = list(page.records)
        fetched = 1

        while page.has_more:
            if fetched >= self.MAX_PAGES:
                logger.warning("Stopped after %d pages, results are incomplete", fetched)
                break
            # next_page_url only carries ?page=N, so rebuild the full query instead
            next_params = params.model_copy(update={"page": page.current_page + 1})
            page = self._fetch_page(client, model, next_params)
            records.extend(page.records)
            fetched += 1
            logger.debug("Fetched page %d, %d records so far", page.current_page, len(records))

        return records

    @staticmethod
    def _fetch_page(client: GreenHubClient, model: str, params: QueryParams) -> Page:
        body = client.get(model, params=params.to_request_params(), timeout=params.timeout)
        return _parse_page(body)


def _parse_page(body: Any) -> Page:
    try:
        return Page.from_payload(body)
    except ValueError as e:
        raise TransportError(str(e)) from e


def _unwrap(body: Any) -> Any:
    # most endpoints wrap their payload in {"data": ...}
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body
