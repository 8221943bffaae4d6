"""Argument binder — handler parameter schema + Request → argument tuple.

For each declared parameter, in order, the first rule that applies wins:

1. the parameter is a ``FileUpload`` and an upload of that name exists
2. the name is a path parameter or query filter (path wins); the string
   value is coerced to the declared type
3. the payload is non-empty and the parameter is an entity type; the
   entity is built from the whole payload
4. the payload is non-empty and contains the name; the value is coerced
5. the parameter has a default
6. otherwise ``InvalidInput("Missing parameter <name> of type <type>")``
"""

import dataclasses
from typing import Any

from ulogger.errors import InvalidInput
from ulogger.http.request import Request
from ulogger.http.uploads import FileUpload
from ulogger.routing.params import coerce, type_name, unwrap_optional
from ulogger.routing.route import Param


def is_entity_type(annotation: Any) -> bool:
    """True for dataclass types that can build themselves from a payload."""
    return (
        isinstance(annotation, type)
        and dataclasses.is_dataclass(annotation)
        and callable(getattr(annotation, "from_payload", None))
    )


def bind_arguments(params: tuple[Param, ...], request: Request) -> tuple[Any, ...]:
    """Prepare the positional arguments for a handler call.

    Raises:
        InvalidInput: If a required parameter is missing or a value cannot be
            coerced to its declared type.
    """
    return tuple(_bind_one(param, request) for param in params)


def _bind_one(param: Param, request: Request) -> Any:
    target, _ = unwrap_optional(param.annotation)
    name = param.name

    if target is FileUpload and name in request.uploads:
        return request.uploads[name]

    if name in request.path_params:
        return coerce(request.path_params[name], param.annotation, name)
    if name in request.query:
        return coerce(request.query[name], param.annotation, name)

    if request.has_payload:
        if is_entity_type(target):
            return target.from_payload(request.payload)
        if name in request.payload:
            return coerce(request.payload[name], param.annotation, name)

    if param.is_optional:
        return param.default

    msg = f"Missing parameter {name} of type {type_name(target)}"
    raise InvalidInput(msg)
