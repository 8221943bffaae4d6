"""Test utilities for ulogger applications::

    from ulogger.testing import TestClient
"""

from ulogger.testing.client import TestClient

__all__ = ["TestClient"]
