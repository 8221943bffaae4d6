"""Error handling for ulogger requests.

Maps HTTPError exceptions and unexpected failures to JSON error
responses. Nothing below the router catches errors; this is where they
become wire responses.
"""

import logging

from ulogger.errors import HTTPError
from ulogger.http.response import Response

logger = logging.getLogger("ulogger.server")

UNEXPECTED_ERROR = "An unexpected error occurred."


def handle_http_error(exc: HTTPError, method: str, path: str) -> Response:
    """Map an HTTPError to its response; server-side statuses are logged as errors."""
    if exc.status >= 500:
        logger.error("%d %s %s — %s", exc.status, method, path, exc.detail)
    else:
        logger.debug("%d %s %s — %s", exc.status, method, path, exc.detail)
    return Response.from_exception(exc)


def handle_internal_error(exc: Exception, method: str, path: str, *, debug: bool) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", method, path)
    message = f"{type(exc).__name__}: {exc}" if debug else UNEXPECTED_ERROR
    return Response.internal_server_error(message)
