"""Route table and request dispatch.

Routes are registered during setup and compiled into an immutable lookup
structure when the app freezes. Templates are matched in registration
order; the first one that matches the whole path wins.
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from ulogger.errors import ConfigurationError, NotFound, ServerError
from ulogger.http.request import Request
from ulogger.http.response import Response
from ulogger.middleware.protocol import Middleware, run_pipeline
from ulogger.routing.binding import bind_arguments
from ulogger.routing.route import ROUTES_ATTR, Route, RouteMatch, RouteSpec

logger = logging.getLogger("ulogger.routing")

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z0-9_]+)\}")
_PARAM_PATTERN = "([A-Za-z0-9_]+)"


def compile_template(path: str) -> tuple[re.Pattern[str], tuple[str, ...]]:
    """Compile a ``{name}`` path template into a regex anchored at both ends.

    Literal text is escaped; each placeholder becomes ``([A-Za-z0-9_]+)``.
    Returns the pattern and the placeholder names in template order::

        compile_template("/api/users/{userId}/tracks")
        # (re.compile(r"\\A/api/users/([A-Za-z0-9_]+)/tracks\\Z"), ("userId",))

    Raises:
        ConfigurationError: If a placeholder name is repeated.
    """
    names: list[str] = []
    pieces: list[str] = []
    position = 0
    for match in _PLACEHOLDER_RE.finditer(path):
        name = match.group(1)
        if name in names:
            msg = f"Duplicate placeholder {{{name}}} in route {path!r}"
            raise ConfigurationError(msg)
        names.append(name)
        pieces.append(re.escape(path[position : match.start()]))
        pieces.append(_PARAM_PATTERN)
        position = match.end()
    pieces.append(re.escape(path[position:]))
    return re.compile(rf"\A{''.join(pieces)}\Z"), tuple(names)


@dataclass(frozen=True, slots=True)
class _CompiledRoute:
    route: Route
    pattern: re.Pattern[str]
    names: tuple[str, ...]


class RouteTable:
    """Per-method ordered route table.

    Usage::

        table = RouteTable()
        table.add(Route.for_handler("GET", "/api/tracks/{trackId}", handler))
        table.compile()
        match = table.match("GET", "/api/tracks/42")
    """

    __slots__ = ("_compiled", "_routes")

    def __init__(self) -> None:
        # method -> template -> compiled route, in registration order
        self._routes: dict[str, dict[str, _CompiledRoute]] = {}
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route. Must be called before compile().

        A template already registered for the same method keeps its first
        handler; the later registration is ignored.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        pattern, names = compile_template(route.path)
        by_template = self._routes.setdefault(route.method, {})
        if route.path in by_template:
            logger.warning(
                "Route %s %s already registered, ignoring %s",
                route.method,
                route.path,
                route.name,
            )
            return
        by_template[route.path] = _CompiledRoute(route, pattern, names)

    def compile(self) -> None:
        """Freeze the table. No more routes can be added."""
        self._compiled = True

    def has_method(self, method: str) -> bool:
        return bool(self._routes.get(method))

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return [
            compiled.route
            for by_template in self._routes.values()
            for compiled in by_template.values()
        ]

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Match *path* against the templates registered for *method*.

        Returns ``None`` when nothing matches; never raises.
        """
        for compiled in self._routes.get(method, {}).values():
            found = compiled.pattern.fullmatch(path)
            if found is not None:
                return RouteMatch(compiled.route, dict(zip(compiled.names, found.groups())))
        return None


class Router:
    """Owns the route table and the middleware list; dispatches requests.

    Request lifecycle::

        namespace check -> match -> bind -> middlewares -> handler -> Response

    Usage::

        router = Router(namespaces=("api", "client"))
        router.setup_routes([SessionController(...), TrackController(...)])
        router.add_middleware(AccessControl(...))
        router.compile()
        response = router.dispatch(request)
    """

    __slots__ = ("_middlewares", "_namespaces", "_table")

    def __init__(self, namespaces: Iterable[str] = ("api", "client")) -> None:
        self._namespaces = frozenset(namespaces)
        self._table = RouteTable()
        self._middlewares: list[Middleware] = []

    @property
    def routes(self) -> list[Route]:
        return self._table.routes

    def add_route(
        self,
        method: str,
        path: str,
        handler: Callable[..., Any],
        access: Any = None,
    ) -> Route:
        """Register a single handler.

        Raises:
            ConfigurationError: If the handler signature cannot be bound.
            RuntimeError: If the table is already compiled.
        """
        route = Route.for_handler(method, path, handler, access)
        self._table.add(route)
        logger.debug("Registered %s %s -> %s", route.method, route.path, route.name)
        return route

    def add_middleware(self, middleware: Middleware) -> None:
        self._middlewares.append(middleware)

    def setup_routes(self, controllers: Iterable[object]) -> None:
        """Register every ``@route``-decorated method of each controller.

        Controllers are registered in the order given; methods in
        class-definition order, base classes first.
        """
        for controller in controllers:
            for attr_name, specs in _route_specs(type(controller)):
                handler = getattr(controller, attr_name)
                for spec in specs:
                    self.add_route(spec.method, spec.path, handler, spec.access)

    def compile(self) -> None:
        self._table.compile()

    def match(self, method: str, path: str) -> RouteMatch | None:
        return self._table.match(method, path)

    def dispatch(self, request: Request) -> Response:
        """Serve one request.

        Raises:
            NotFound: Unknown namespace, missing resource segment, or no
                matching route.
            InvalidInput: Argument binding failed.
            ServerError: The handler did not return a Response.
        """
        segments = request.uri_segments
        if (
            len(segments) < 3
            or segments[1] not in self._namespaces
            or not segments[2]
        ):
            raise NotFound(f"Unknown resource {request.path!r}")

        if not self._table.has_method(request.method):
            raise NotFound(f"No routes for method {request.method}")

        match = self._table.match(request.method, request.path)
        if match is None:
            raise NotFound(f"No route matches {request.method} {request.path!r}")

        route = match.route
        request = request.with_path_params(match.path_params)
        request = request.with_arguments(bind_arguments(route.params, request))

        final = run_pipeline(self._middlewares, request, route)
        if final is not None:
            return final.response

        response = route.handler(*request.arguments)
        if not isinstance(response, Response):
            msg = f"Handler {route.name} returned {type(response).__name__}, not Response"
            raise ServerError(msg)
        return response


def _route_specs(cls: type) -> list[tuple[str, tuple[RouteSpec, ...]]]:
    """Collect ``(attribute name, route specs)`` over the MRO, base classes first."""
    seen: dict[str, tuple[RouteSpec, ...]] = {}
    for klass in reversed(cls.__mro__):
        for attr_name, value in vars(klass).items():
            specs = getattr(value, ROUTES_ATTR, None)
            if specs:
                seen[attr_name] = specs
    return list(seen.items())
