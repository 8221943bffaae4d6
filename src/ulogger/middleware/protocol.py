"""Middleware protocol and the Continue / Final result type.

A middleware is any object with a ``run`` method matching::

    def run(self, request: Request, route: Route) -> Continue | Final: ...

No base class required. The router checks the shape, not the lineage.

Middlewares run after argument binding, so ``request.arguments`` is
available. Returning ``Final(response)`` short-circuits the pipeline: no
later middleware runs and the handler is never called. Exceptions are not
caught here; they propagate to the server boundary. Any other result is
a programming error and raises ``ServerError``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, final

from ulogger.errors import ServerError
from ulogger.http.request import Request
from ulogger.http.response import Response

if TYPE_CHECKING:
    from ulogger.routing.route import Route


@final
class Continue:
    """Proceed to the next middleware, then the handler. Use ``CONTINUE``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "CONTINUE"


CONTINUE = Continue()


@dataclass(frozen=True, slots=True)
class Final:
    """Stop the pipeline and send ``response`` as it is."""

    response: Response


type MiddlewareResult = Continue | Final


class Middleware(Protocol):
    """Protocol for request interceptors.

    Class middleware::

        class RequireJson:
            def run(self, request: Request, route: Route) -> Continue | Final:
                if request.content_type != "application/json":
                    return Final(Response.unprocessable("JSON expected"))
                return CONTINUE
    """

    def run(self, request: Request, route: Route) -> MiddlewareResult: ...


def run_pipeline(
    middlewares: Iterable[Middleware],
    request: Request,
    route: Route,
) -> Final | None:
    """Run *middlewares* in order; return the first ``Final``, or ``None``.

    Raises:
        ServerError: A middleware returned something other than
            ``CONTINUE`` or a ``Final``.
    """
    for middleware in middlewares:
        result = middleware.run(request, route)
        if result is CONTINUE:
            continue
        if isinstance(result, Final):
            return result
        msg = (
            f"Middleware {type(middleware).__name__} returned "
            f"{type(result).__name__}, not CONTINUE or Final"
        )
        raise ServerError(msg)
    return None
