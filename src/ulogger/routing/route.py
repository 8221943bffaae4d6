"""Route, Param and RouteMatch frozen dataclasses, plus the ``@route`` marker."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from ulogger.errors import ConfigurationError

# Attribute set on controller methods by ``@route``
ROUTES_ATTR = "__ulogger_routes__"

METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})

# Placeholder for "no default value"
EMPTY = inspect.Parameter.empty


@dataclass(frozen=True, slots=True)
class Param:
    """A handler parameter as declared at registration time.

    ``annotation`` is the resolved type; ``default`` is ``EMPTY`` for
    required parameters.
    """

    name: str
    annotation: Any
    default: Any = EMPTY

    @property
    def is_optional(self) -> bool:
        return self.default is not EMPTY


@dataclass(frozen=True, slots=True)
class RouteSpec:
    """Method, path and access requirement attached by ``@route``."""

    method: str
    path: str
    access: Mapping[Any, tuple[Any, ...]]


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created when controllers are registered; the parameter schema is read
    from the handler signature once, here, and never again per request.
    """

    method: str
    path: str
    handler: Callable[..., Any]
    access: Mapping[Any, tuple[Any, ...]]
    params: tuple[Param, ...] = ()

    @classmethod
    def for_handler(
        cls,
        method: str,
        path: str,
        handler: Callable[..., Any],
        access: Mapping[Any, tuple[Any, ...]] | None = None,
    ) -> Route:
        """Build a Route, deriving the parameter schema from *handler*.

        Raises:
            ConfigurationError: If the method is unsupported or a handler
                parameter has no type annotation.
        """
        method = method.upper()
        if method not in METHODS:
            msg = f"Unsupported method {method!r} for route {path!r}"
            raise ConfigurationError(msg)
        return cls(
            method=method,
            path=path,
            handler=handler,
            access=dict(access or {}),
            params=declared_params(handler),
        )

    @property
    def name(self) -> str:
        """Qualified handler name, for logs."""
        return getattr(self.handler, "__qualname__", repr(self.handler))


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]


def declared_params(handler: Callable[..., Any]) -> tuple[Param, ...]:
    """Read the parameter schema of *handler*.

    Raises:
        ConfigurationError: If any parameter lacks a type annotation.
    """
    sig = inspect.signature(handler, eval_str=True)
    params: list[Param] = []
    for name, parameter in sig.parameters.items():
        if parameter.annotation is inspect.Parameter.empty:
            msg = f"Parameter {name!r} of {getattr(handler, '__qualname__', handler)} missing type"
            raise ConfigurationError(msg)
        params.append(Param(name, parameter.annotation, parameter.default))
    return tuple(params)


def route(
    method: str,
    path: str,
    access: Mapping[Any, tuple[Any, ...]] | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a controller method as a route handler.

    Stackable: a method may answer on several routes::

        class Tracks(Controller):
            @route("POST", "/api/tracks", {Access.ALL: (Allow.OWNER, Allow.ADMIN)})
            @route("POST", "/client/tracks", {Access.ALL: (Allow.OWNER,)})
            def add(self, track: Track) -> Response: ...
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        specs: list[RouteSpec] = list(getattr(func, ROUTES_ATTR, ()))
        # Decorators apply bottom-up; keep the order they are written in
        specs.insert(0, RouteSpec(method.upper(), path, dict(access or {})))
        setattr(func, ROUTES_ATTR, tuple(specs))
        return func

    return decorator
