"""Host environment — form submissions decoded at the server boundary.

The request decoder never parses standard form submissions itself: for
``application/x-www-form-urlencoded`` and ``multipart/form-data`` it takes
fields and files from a ``HostEnvironment`` handed to it explicitly. This
module builds that environment from the raw body.

URL-encoded forms use stdlib ``urllib.parse``. ``multipart/form-data`` is
parsed with ``python-multipart``; each submitted file is buffered to a
temporary file and exposed as a ``FileUpload`` handle.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from ulogger.errors import InvalidInput
from ulogger.http.uploads import FileUpload, discard_all

FORM_URLENCODED = "application/x-www-form-urlencoded"
FORM_MULTIPART = "multipart/form-data"


@dataclass(frozen=True, slots=True)
class HostEnvironment:
    """Already-decoded form fields and uploaded-file table for one request."""

    form: Mapping[str, str] = field(default_factory=dict)
    files: Mapping[str, FileUpload] = field(default_factory=dict)


EMPTY_ENVIRONMENT = HostEnvironment()


def is_form_content_type(content_type: str) -> bool:
    """True for the content types a host environment decodes."""
    return content_type == FORM_URLENCODED or content_type.startswith(FORM_MULTIPART)


def parse_form_data(body: bytes, content_type: str) -> HostEnvironment:
    """Decode a form body into a ``HostEnvironment``.

    Any other content type yields an empty environment.

    Raises:
        InvalidInput: If a multipart body has no boundary parameter or is
            malformed, or a URL-encoded body is not UTF-8. Files buffered
            before the failure are removed.
    """
    if not body:
        return EMPTY_ENVIRONMENT

    ct_lower = content_type.lower().split(";")[0].strip()
    if ct_lower == FORM_URLENCODED:
        return _parse_urlencoded(body)
    if ct_lower == FORM_MULTIPART:
        return _parse_multipart(body, content_type)
    return EMPTY_ENVIRONMENT


def _parse_urlencoded(body: bytes) -> HostEnvironment:
    """Parse URL-encoded form data; the first value of a repeated key wins."""
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidInput("Form data is not valid UTF-8") from exc
    parsed = parse_qs(text, keep_blank_values=True)
    return HostEnvironment(form={key: values[0] for key, values in parsed.items()})


def _parse_multipart(body: bytes, content_type: str) -> HostEnvironment:
    """Parse multipart form data using python-multipart."""
    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        raise InvalidInput("Multipart form data missing boundary parameter")

    form: dict[str, str] = {}
    files: dict[str, FileUpload] = {}

    # Current part state
    headers: dict[str, str] = {}
    header_field = bytearray()
    header_value = bytearray()
    data = bytearray()

    def on_part_begin() -> None:
        headers.clear()
        data.clear()

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        headers[header_field.decode("latin-1").lower()] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        data.extend(chunk[start:end])

    def on_part_end() -> None:
        _, params = parse_options_header(headers.get("content-disposition", ""))
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is not None:
            part_type = headers.get("content-type", "application/octet-stream")
            files[field_name] = FileUpload.from_buffer(
                bytes(data), filename.decode("utf-8"), part_type
            )
        else:
            form.setdefault(field_name, data.decode("utf-8", errors="replace"))

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
    }

    parser = MultipartParser(boundary, callbacks)
    try:
        parser.write(body)
        parser.finalize()
    except MultipartParseError as exc:
        discard_all(files.values())
        raise InvalidInput(f"Malformed multipart form data: {exc}") from exc

    return HostEnvironment(form=form, files=files)
