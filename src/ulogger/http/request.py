"""Immutable HTTP request.

Built once per inbound call by the request decoder. The matcher and the
argument binder do not mutate it; they derive a new Request carrying the
captured path parameters and the prepared arguments.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from ulogger.http.headers import Headers

if TYPE_CHECKING:
    from ulogger.http.uploads import FileUpload


@dataclass(frozen=True, slots=True)
class Request:
    """A decoded HTTP request.

    ``payload`` and ``uploads`` are populated by the decoder according to the
    body's content type. ``path_params`` is set after a successful route
    match and ``arguments`` after binding; both start empty.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: Mapping[str, str] = field(default_factory=dict)
    payload: Mapping[str, Any] = field(default_factory=dict)
    uploads: Mapping[str, FileUpload] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    path_params: Mapping[str, str] = field(default_factory=dict)
    arguments: tuple[Any, ...] = ()

    # -- Computed properties --

    @property
    def uri_segments(self) -> list[str]:
        """Path components split on ``/``; index 0 is ``""`` for the leading slash."""
        return self.path.split("/")

    @property
    def content_type(self) -> str:
        """The Content-Type header value; ``""`` if absent."""
        return self.headers.content_type

    @property
    def has_payload(self) -> bool:
        """True if the body decoded to a non-empty mapping."""
        return bool(self.payload)

    def argument_of_type[T](self, cls: type[T]) -> T | None:
        """Return the first prepared argument that is an instance of *cls*."""
        for argument in self.arguments:
            if isinstance(argument, cls):
                return argument
        return None

    # -- Derivation --

    def with_path_params(self, params: Mapping[str, str]) -> Request:
        """Return a copy carrying the path parameters captured by the matcher."""
        return replace(self, path_params=dict(params))

    def with_arguments(self, arguments: tuple[Any, ...]) -> Request:
        """Return a copy carrying the arguments prepared by the binder."""
        return replace(self, arguments=arguments)
