"""μlogger — API core of a personal GPS-track logging service.

Clients push position samples, a browser UI renders tracks on a map and
administrators manage users and settings. This package is the HTTP side:
route registration, request decoding, access control and the JSON API.

Basic usage::

    from ulogger import App, AppConfig

    app = App(AppConfig(secret_key="s3cr3t"))
    # serve with any ASGI server, e.g. ``uvicorn module:app``
"""

__version__ = "1.0.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "InvalidInput",
    "NotFound",
    "Request",
    "Response",
    "Router",
    "UloggerError",
    "decode_request",
    "get_request",
    "get_session",
    "route",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import ulogger`` fast while providing a clean top-level API.
    """
    if name == "App":
        from ulogger.app import App

        return App

    if name == "AppConfig":
        from ulogger.config import AppConfig

        return AppConfig

    if name == "Request":
        from ulogger.http.request import Request

        return Request

    if name == "Response":
        from ulogger.http.response import Response

        return Response

    if name == "decode_request":
        from ulogger.http.decoding import decode_request

        return decode_request

    if name == "Router":
        from ulogger.routing.router import Router

        return Router

    if name == "route":
        from ulogger.routing.route import route

        return route

    if name in ("get_request", "get_session"):
        from ulogger import context as _ctx

        return getattr(_ctx, name)

    if name in ("ConfigurationError", "HTTPError", "InvalidInput", "NotFound", "UloggerError"):
        from ulogger import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
