"""Middleware — Protocol-based, no inheritance required.

A middleware is any object with a method matching:
    def run(self, request: Request, route: Route) -> Continue | Final

Built-in middleware:
    AccessControl -- Session loading and per-route access policies
"""

from ulogger.middleware.access import AccessControl
from ulogger.middleware.protocol import CONTINUE, Continue, Final, Middleware, run_pipeline

__all__ = [
    "CONTINUE",
    "AccessControl",
    "Continue",
    "Final",
    "Middleware",
    "run_pipeline",
]
