"""Strict value coercion for handler parameters and entity fields.

Values arrive either as strings (path parameters, query filters, form
fields) or as decoded JSON values. Coercion never guesses: anything outside
the rules below raises ``InvalidInput``.

=========  ==============================================================
``int``    ints, and strings matching ``[+-]?\\d+``, within signed 64 bits
``float``  ints, floats and numeric strings; NaN and infinity rejected
``bool``   JSON booleans and the strings ``"true"`` / ``"false"``
``str``    strings, and numbers (stringified)
``dict``   JSON objects
``list``   JSON arrays
=========  ==============================================================

Booleans are never accepted as numbers. ``X | None`` also accepts ``None``.
"""

import math
import re
import types
import typing
from typing import Any

from ulogger.errors import InvalidInput

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

_INT_RE = re.compile(r"[+-]?\d+")


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``X | None`` into ``(X, True)``; other annotations give ``(annotation, False)``."""
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0], True
    return annotation, False


def type_name(annotation: Any) -> str:
    """Readable name of an annotation, for error messages."""
    if isinstance(annotation, type):
        return annotation.__name__
    return str(annotation)


def coerce(value: Any, annotation: Any, name: str) -> Any:
    """Coerce *value* to *annotation*.

    Raises:
        InvalidInput: If the value cannot be represented as the declared type.
    """
    target, nullable = unwrap_optional(annotation)
    if value is None:
        if nullable:
            return None
        raise _invalid(name, target)
    if target is Any:
        return value

    converter = _CONVERTERS.get(target)
    if converter is None:
        raise _invalid(name, target)
    result = converter(value)
    if result is _INVALID:
        raise _invalid(name, target)
    return result


# Sentinel returned by converters on failure
_INVALID = object()


def _to_int(value: Any) -> Any:
    if isinstance(value, bool):
        return _INVALID
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _INT_RE.fullmatch(value):
        number = int(value)
    else:
        return _INVALID
    if not INT_MIN <= number <= INT_MAX:
        return _INVALID
    return number


def _to_float(value: Any) -> Any:
    if isinstance(value, bool):
        return _INVALID
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return _INVALID
    else:
        return _INVALID
    if math.isnan(number) or math.isinf(number):
        return _INVALID
    return number


def _to_bool(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return _INVALID


def _to_str(value: Any) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return _INVALID


def _to_dict(value: Any) -> Any:
    return value if isinstance(value, dict) else _INVALID


def _to_list(value: Any) -> Any:
    return value if isinstance(value, list) else _INVALID


_CONVERTERS: dict[Any, Any] = {
    int: _to_int,
    float: _to_float,
    bool: _to_bool,
    str: _to_str,
    dict: _to_dict,
    list: _to_list,
}


def _invalid(name: str, target: Any) -> InvalidInput:
    return InvalidInput(f"Invalid value for {name}, expected {type_name(target)}")
