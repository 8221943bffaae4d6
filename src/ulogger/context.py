"""Request-scoped state via ContextVar.

- ``request_var``: the ``Request`` being served.
- ``session_var``: the caller's ``Session``, loaded by the access-control
  middleware. Anonymous until then.

The server boundary sets both at the start of a request and resets them
when it ends, so nothing leaks into the next request served by the same
task or thread.
"""

from contextvars import ContextVar

from ulogger.http.request import Request
from ulogger.security.session import ANONYMOUS, Session

request_var: ContextVar[Request] = ContextVar("ulogger_request")
session_var: ContextVar[Session] = ContextVar("ulogger_session", default=ANONYMOUS)


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def get_session() -> Session:
    """Return the caller's session; ``ANONYMOUS`` before access control ran."""
    return session_var.get()
