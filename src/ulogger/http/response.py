"""HTTP response value with named constructors and a chainable .with_*() API.

A Response is a pure value: status, payload, content type, extra headers
and cookies. Serialization to bytes happens once, at the server boundary.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from ulogger.errors import HTTPError
from ulogger.http.cookies import SetCookie

TYPE_JSON = "application/json"

CODE_OK = 200
CODE_CREATED = 201
CODE_NO_CONTENT = 204
CODE_UNAUTHORIZED = 401
CODE_NOT_FOUND = 404
CODE_CONFLICT = 409
CODE_UNPROCESSABLE = 422
CODE_INTERNAL = 500


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    ``payload`` may be a mapping, a list, a string, bytes or ``None``.
    JSON payloads are serialized by ``body_bytes``; strings and bytes are
    sent as they are.
    """

    payload: Any = None
    status: int = CODE_OK
    content_type: str | None = TYPE_JSON
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    # -- Named constructors --

    @classmethod
    def success(cls, payload: Any = None, status: int = CODE_OK) -> Response:
        """Successful response; ``None`` payload turns into 204 No Content."""
        if payload is None:
            return cls(None, CODE_NO_CONTENT, None)
        return cls(payload, status, TYPE_JSON)

    @classmethod
    def created(cls, payload: Any = None) -> Response:
        return cls.success(payload, CODE_CREATED)

    @classmethod
    def error(cls, message: str, status: int) -> Response:
        """JSON error body ``{"error": true, "message": ...}``."""
        return cls({"error": True, "message": message}, status, TYPE_JSON)

    @classmethod
    def not_found(cls) -> Response:
        return cls(None, CODE_NOT_FOUND)

    @classmethod
    def not_authorized(cls) -> Response:
        return cls(None, CODE_UNAUTHORIZED)

    @classmethod
    def unprocessable(cls, message: str = "Unprocessable data error") -> Response:
        return cls.error(message, CODE_UNPROCESSABLE)

    @classmethod
    def conflict(cls, message: str) -> Response:
        return cls.error(message, CODE_CONFLICT)

    @classmethod
    def internal_server_error(cls, message: str) -> Response:
        return cls.error(message, CODE_INTERNAL)

    @classmethod
    def file(cls, content: bytes | str, content_type: str) -> Response:
        return cls(content, CODE_OK, content_type)

    @classmethod
    def file_attachment(cls, content: bytes | str, filename: str, content_type: str) -> Response:
        """File download with ``Content-Disposition: attachment``."""
        return cls.file(content, content_type).with_header(
            "Content-Disposition", f'attachment; filename="{filename}"'
        )

    @classmethod
    def from_exception(cls, exc: HTTPError) -> Response:
        """Map an ``HTTPError`` onto the wire shape for its status.

        404 carries no body detail; every other status carries the
        exception detail as the error message.
        """
        if exc.status == CODE_NOT_FOUND:
            return cls.not_found()
        if exc.status == CODE_UNAUTHORIZED:
            return cls.not_authorized()
        return cls.error(exc.detail or f"Error {exc.status}", exc.status)

    # -- Chainable transformations --

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_cookie(self, cookie: SetCookie) -> Response:
        """Return a new Response with an additional Set-Cookie."""
        return replace(self, cookies=(*self.cookies, cookie))

    # -- Body helpers --

    @property
    def is_error(self) -> bool:
        return self.status >= 400

    @property
    def body_bytes(self) -> bytes:
        """Serialized body."""
        if self.payload is None:
            return b""
        if isinstance(self.payload, bytes):
            return self.payload
        if isinstance(self.payload, str):
            return self.payload.encode("utf-8")
        if self.content_type is not None and self.content_type.startswith(TYPE_JSON):
            return json_module.dumps(self.payload, default=_json_default).encode("utf-8")
        return str(self.payload).encode("utf-8")

    @property
    def text(self) -> str:
        """Body as string."""
        return self.body_bytes.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON (for responses read back by the test client)."""
        body = self.body_bytes
        return json_module.loads(body) if body else None

    def header(self, name: str) -> str | None:
        """Return the first extra header named *name* (case-insensitive)."""
        name_lower = name.lower()
        for key, value in self.headers:
            if key.lower() == name_lower:
                return value
        return None


def _json_default(value: Any) -> Any:
    """Serialize entities (anything with ``to_payload``) inside JSON payloads."""
    to_payload = getattr(value, "to_payload", None)
    if to_payload is not None:
        return to_payload()
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)
