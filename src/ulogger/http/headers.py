"""Request headers, looked up by lowercased name.

The request core only reads two headers: ``Content-Type`` to pick a body
decoder and ``Cookie`` for the session. Repeated ``Cookie`` lines are
joined with ``"; "`` as a single cookie string; for any other repeated
header the first line wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable header mapping with case-insensitive lookup.

    Build from a plain mapping in tests and sub-requests, or from the raw
    byte pairs of an ASGI scope with ``from_asgi``.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = {name.lower(): value for name, value in (values or {}).items()}

    @classmethod
    def from_asgi(cls, raw: Iterable[tuple[bytes, bytes]]) -> Headers:
        values: dict[str, str] = {}
        for raw_name, raw_value in raw:
            name = raw_name.decode("latin-1").lower()
            value = raw_value.decode("latin-1")
            if name not in values:
                values[name] = value
            elif name == "cookie":
                values[name] = f"{values[name]}; {value}"
        return cls(values)

    def __getitem__(self, key: str) -> str:
        return self._values[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"

    @property
    def content_type(self) -> str:
        """The Content-Type value as sent, parameters included; ``""`` if absent."""
        return self._values.get("content-type", "")
