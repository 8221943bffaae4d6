"""ASGI handler — translates ASGI scope/messages to ulogger types.

The only component that touches raw ASGI directly. Reads the body, builds
the host environment for form submissions, decodes the request, dispatches
it through the router and sends the Response back through ASGI send().

Everything after the body read is synchronous: the decoder, the router,
the middlewares and the handlers never suspend.
"""

from contextvars import Token

from ulogger._internal.asgi import Receive, Scope, Send, read_body
from ulogger.context import request_var, session_var
from ulogger.errors import HTTPError
from ulogger.http.decoding import decode_request
from ulogger.http.forms import EMPTY_ENVIRONMENT, is_form_content_type, parse_form_data
from ulogger.http.headers import Headers
from ulogger.http.request import Request
from ulogger.http.response import Response
from ulogger.http.uploads import discard_all
from ulogger.routing.router import Router
from ulogger.security.session import ANONYMOUS
from ulogger.server.errors import handle_http_error, handle_internal_error
from ulogger.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    max_content_length: int | None,
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    method = scope["method"].upper()
    path = scope["path"]
    session_token = session_var.set(ANONYMOUS)
    token: Token[Request] | None = None
    environment = EMPTY_ENVIRONMENT
    request: Request | None = None

    try:
        headers = Headers.from_asgi(scope.get("headers", ()))
        body = await read_body(receive, max_content_length)

        if is_form_content_type(headers.content_type.lower()):
            environment = parse_form_data(body, headers.content_type)

        request = decode_request(
            method,
            path,
            headers=headers,
            query_string=scope.get("query_string", b""),
            body=body,
            environment=environment,
        )
        token = request_var.set(request)
        response: Response = router.dispatch(request)

    except HTTPError as exc:
        response = handle_http_error(exc, method, path)
    except Exception as exc:
        response = handle_internal_error(exc, method, path, debug=debug)
    finally:
        if token is not None:
            request_var.reset(token)
        session_var.reset(session_token)
        # Uploads still in the temp dir were not stored by any handler
        discard_all(environment.files.values())
        if request is not None:
            discard_all(request.uploads.values())

    await send_response(response, send)
