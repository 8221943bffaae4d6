"""μlogger exception hierarchy.

Shared across the decoder, binder, router, middleware and controllers so
every module raises and catches the same types. The ASGI boundary turns
``HTTPError`` subclasses into JSON error responses.
"""

from dataclasses import dataclass


class UloggerError(Exception):
    """Base for all μlogger-specific errors."""


@dataclass(frozen=True, slots=True)
class HTTPError(UloggerError):
    """An error that maps directly to an HTTP status code.

    Raised by the decoder, the argument binder, collaborators and handlers.
    Nothing below the router catches these; the server boundary converts
    them with ``Response.from_exception``.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched, or a looked-up entity does not exist."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class InvalidInput(HTTPError):  # noqa: N818
    """422 — malformed body, missing parameter or failed type coercion."""

    def __init__(self, detail: str = "Unprocessable data error") -> None:
        super().__init__(status=422, detail=detail)


class Unauthorized(HTTPError):  # noqa: N818
    """401 — the session does not satisfy the route's access policies."""

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status=401, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403 — authenticated, but not allowed to perform the operation."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class Conflict(HTTPError):  # noqa: N818
    """409 — the request collides with existing data (e.g. duplicate login)."""

    def __init__(self, detail: str = "Conflict") -> None:
        super().__init__(status=409, detail=detail)


class PayloadTooLarge(HTTPError):  # noqa: N818
    """413 — request body exceeds ``AppConfig.max_content_length``."""

    def __init__(self, detail: str = "Payload too large") -> None:
        super().__init__(status=413, detail=detail)


class ServerError(HTTPError):
    """500 — a programmer error surfaced while serving a request."""

    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(status=500, detail=detail)


class ConfigurationError(ServerError):
    """Raised when routes or the app are misconfigured.

    Typically raised while controllers are registered, before the first
    request is served: an untyped handler parameter, a template repeating
    a placeholder name.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(detail)


class DatabaseError(ServerError):
    """500 — a persistence collaborator failed; the message is passed through."""

    def __init__(self, detail: str = "Database error") -> None:
        super().__init__(detail)
