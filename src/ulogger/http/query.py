"""Query string filters.

Handlers receive filters such as ``afterId`` through the argument binder,
which looks up one string per name. A repeated name keeps its first value.
"""

from collections.abc import Mapping
from types import MappingProxyType
from urllib.parse import parse_qsl


def parse_query(query_string: bytes | str = b"") -> Mapping[str, str]:
    """Decode *query_string* into a read-only ``{name: first value}`` mapping.

    Blank values are kept, so ``?comment=`` binds an empty string::

        parse_query(b"afterId=5&afterId=9&comment=")
        # {"afterId": "5", "comment": ""}
    """
    if isinstance(query_string, bytes):
        query_string = query_string.decode("latin-1")
    filters: dict[str, str] = {}
    for name, value in parse_qsl(query_string, keep_blank_values=True):
        filters.setdefault(name, value)
    return MappingProxyType(filters)
