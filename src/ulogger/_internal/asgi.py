"""ASGI type aliases and body reading.

The rest of the package never sees raw ASGI messages; the server handler
reads the body once, here, and passes bytes on.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

from ulogger.errors import PayloadTooLarge

# Raw ASGI types
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]


async def read_body(receive: Receive, limit: int | None = None) -> bytes:
    """Read the full request body from ``http.request`` messages.

    Raises:
        PayloadTooLarge: If more than *limit* bytes arrive.
    """
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        body = message.get("body", b"")
        if body:
            size += len(body)
            if limit is not None and size > limit:
                raise PayloadTooLarge(f"Request body exceeds {limit} bytes")
            chunks.append(body)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)
