"""Exception types for the GreenHub CLI.

Parse and validation errors subclass ValueError too, so callers that only care
about "bad input" can catch that and move on.
"""


class GreenHubError(Exception):
    """Base class for every error the CLI reports to the user."""


class QueryError(GreenHubError, ValueError):
    """Raised when user input can't be turned into a query.

    Always raised before any request goes out. Keeps the offending token
    around so the message can point at it.
    """

    label = "query value"

    def __init__(self, token: object, reason: str | None = None) -> None:
        self.token = token
        self.reason = reason
        message = f"Invalid {self.label}: {token!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidIntervalFormat(QueryError):
    label = "interval"


class InvalidDateFormat(QueryError):
    label = "date"


class InvalidFilterToken(QueryError):
    label = "filter"


class InvalidRelationPath(QueryError):
    label = "relationship"


class InvalidTimeout(QueryError):
    label = "timeout"


class InvalidPagination(QueryError):
    label = "pagination value"


class TransportError(GreenHubError):
    """Raised when the server can't be reached or answers with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AuthError(GreenHubError):
    """Raised when the server rejects the API token."""


class NotLoggedIn(AuthError):
    def __init__(self) -> None:
        super().__init__("Not logged in. Run `greenhub login` first.")


class ConfigError(GreenHubError):
    """Raised when the stored credentials file can't be read."""
