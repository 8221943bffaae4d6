"""Request decoder — raw inbound data to a normalized ``Request``.

The decoder is pure: everything it needs (headers, query string, body and
the host environment holding already-decoded form submissions) is passed
in. Body handling is driven by the Content-Type header, in priority order:

1. non-empty body, ``application/json`` — parsed as JSON
2. ``application/x-www-form-urlencoded`` / ``multipart/form-data`` — taken
   from the host environment
3. ``multipart/related`` — parsed here, part by part
4. anything else — empty payload, not an error

``multipart/related`` is not a form-submission type, so no host decodes it
for us; ``parse_multipart_related`` splits the body on its boundary and
dispatches each part on its own Content-Type, recursing into
``parse_body`` for JSON parts and buffering image parts to temp files.
"""

import json
import logging
import re
from collections.abc import Mapping
from typing import Any

from ulogger.errors import InvalidInput
from ulogger.http.cookies import parse_cookies
from ulogger.http.forms import EMPTY_ENVIRONMENT, HostEnvironment, is_form_content_type
from ulogger.http.headers import Headers
from ulogger.http.query import parse_query
from ulogger.http.request import Request
from ulogger.http.uploads import FileUpload, discard_all

logger = logging.getLogger("ulogger.http")

TYPE_JSON = "application/json"
TYPE_MULTIPART_RELATED = "multipart/related"

_BOUNDARY_RE = re.compile(r"boundary=(.*)$")
_NAME_RE = re.compile(r'\bname="([^"]*)"')
_FILENAME_RE = re.compile(r'\bfilename="([^"]*)"')

# Longest body excerpt quoted back in a JSON parse error
_EXCERPT_LENGTH = 200

_CRLF = b"\r\n"
_HEADER_SEPARATOR = b"\r\n\r\n"


def decode_request(
    method: str,
    path: str,
    *,
    headers: Headers | None = None,
    query_string: bytes | str = b"",
    body: bytes = b"",
    environment: HostEnvironment = EMPTY_ENVIRONMENT,
) -> Request:
    """Build a ``Request`` with query filters, payload and uploads populated.

    Raises:
        InvalidInput: If a JSON body is malformed or a ``multipart/related``
            body is structurally broken. Parts buffered to temp files
            before the failure are removed.
    """
    headers = headers or Headers()
    payload: dict[str, Any] = {}
    uploads: dict[str, FileUpload] = {}
    try:
        parse_body(body, headers.content_type, payload, uploads, environment)
    except Exception:
        discard_all(uploads.values())
        raise
    return Request(
        method=method.upper(),
        path=path if path.startswith("/") else f"/{path}",
        headers=headers,
        query=parse_query(query_string),
        payload=payload,
        uploads=uploads,
        cookies=parse_cookies(headers.get("cookie", "")),
    )


def parse_body(
    body: bytes,
    content_type: str,
    payload: dict[str, Any],
    uploads: dict[str, FileUpload],
    environment: HostEnvironment = EMPTY_ENVIRONMENT,
) -> None:
    """Decode *body* according to *content_type*, merging into *payload* / *uploads*."""
    ct_lower = content_type.lower()
    if body and ct_lower.startswith(TYPE_JSON):
        payload.update(_parse_json(body))
    elif is_form_content_type(ct_lower):
        payload.update(environment.form)
        uploads.update(environment.files)
    elif ct_lower.startswith(TYPE_MULTIPART_RELATED):
        parse_multipart_related(body, content_type, payload, uploads, environment)


def _parse_json(body: bytes) -> Mapping[str, Any]:
    """Parse a JSON body; objects and arrays become the payload mapping."""
    try:
        decoded = json.loads(body)
    except ValueError as exc:
        excerpt = body[:_EXCERPT_LENGTH].decode("utf-8", errors="replace")
        logger.warning("Payload parsing failed: %r [%s]", excerpt, exc)
        raise InvalidInput(f'Payload parsing failed: "{excerpt}" [{exc}]') from exc
    if isinstance(decoded, dict):
        return decoded
    if isinstance(decoded, list):
        return {str(index): value for index, value in enumerate(decoded)}
    return {}


def parse_multipart_related(
    body: bytes,
    content_type: str,
    payload: dict[str, Any],
    uploads: dict[str, FileUpload],
    environment: HostEnvironment = EMPTY_ENVIRONMENT,
) -> None:
    """Parse a ``multipart/related`` body into *payload* and *uploads*.

    Parts are framed by exactly one CRLF on each side of the body; bare-LF
    framing is not recognized.

    Raises:
        InvalidInput: If the boundary is missing or a part has no blank line
            between its headers and its body.
    """
    match = _BOUNDARY_RE.search(content_type)
    if match is None or not match.group(1):
        raise InvalidInput("Multipart body missing boundary parameter")
    delimiter = b"--" + match.group(1).encode("latin-1")

    # First element is the preamble, last one the closing "--" epilogue
    for part in body.split(delimiter)[1:-1]:
        part = part[len(_CRLF) : -len(_CRLF)]
        raw_headers, separator, part_body = part.partition(_HEADER_SEPARATOR)
        if not separator:
            raise InvalidInput("Malformed multipart part: missing header separator")
        part_headers = _parse_part_headers(raw_headers)
        part_type = part_headers.get("content-type", "")
        part_type_lower = part_type.lower()

        if part_type_lower.startswith(TYPE_JSON):
            parse_body(part_body, part_type, payload, uploads, environment)
        elif part_type_lower.startswith("image/"):
            disposition = part_headers.get("content-disposition", "")
            name = _disposition_param(_NAME_RE, disposition, "image")
            filename = _disposition_param(_FILENAME_RE, disposition, "upload")
            uploads[name] = FileUpload.from_buffer(part_body, filename, part_type)


def _parse_part_headers(raw: bytes) -> dict[str, str]:
    """Split ``Name: value`` lines on the first ``": "``; names are lowercased."""
    headers: dict[str, str] = {}
    for line in raw.decode("latin-1").split("\r\n"):
        name, separator, value = line.partition(": ")
        if separator:
            headers[name.lower()] = value
    return headers


def _disposition_param(pattern: re.Pattern[str], disposition: str, default: str) -> str:
    match = pattern.search(disposition)
    return match.group(1) if match else default
