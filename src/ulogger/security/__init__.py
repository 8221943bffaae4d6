"""Security — password hashing and signed cookie sessions.

Password hashing::

    from ulogger.security import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)

Sessions::

    from ulogger.security import SessionManager

    session = SessionManager(users, config).load(request)
    session.is_admin
"""

from ulogger.security.passwords import hash_password, verify_password
from ulogger.security.session import ANONYMOUS, Access, Allow, Session, SessionManager

__all__ = [
    "ANONYMOUS",
    "Access",
    "Allow",
    "Session",
    "SessionManager",
    "hash_password",
    "verify_password",
]
