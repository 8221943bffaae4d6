"""Signed cookie sessions.

The session cookie holds nothing but the authenticated user's id, signed
with ``itsdangerous``. On each request ``SessionManager.load`` verifies the
cookie and re-fetches the user, so demoted or deleted users lose their
rights immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from itsdangerous import BadSignature, URLSafeTimedSerializer

from ulogger.errors import ConfigurationError, NotFound
from ulogger.http.cookies import SetCookie
from ulogger.security.passwords import verify_password

if TYPE_CHECKING:
    from ulogger.config import AppConfig
    from ulogger.data.protocols import UserMapper
    from ulogger.entities import Config, User
    from ulogger.http.request import Request

logger = logging.getLogger("ulogger.security")

_SALT = "ulogger-session"


class Access(StrEnum):
    """How the service is exposed, derived from its settings."""

    OPEN = "access open"
    PUBLIC = "access public"
    PRIVATE = "access private"
    # Route access key that applies whatever the access type is
    ALL = "access all"


class Allow(StrEnum):
    """Who may call a route."""

    ALL = "allow all"
    AUTHORIZED = "allow authorized"
    OWNER = "allow owner"
    ADMIN = "allow admin"


@dataclass(frozen=True, slots=True)
class Session:
    """The caller's authentication state for one request."""

    user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    def is_session_user(self, user_id: int | None) -> bool:
        return self.user is not None and user_id is not None and self.user.id == user_id

    @staticmethod
    def access_type(config: Config) -> Access:
        """OPEN without authentication, PUBLIC with public tracks, else PRIVATE."""
        if not config.require_authentication:
            return Access.OPEN
        if config.public_tracks:
            return Access.PUBLIC
        return Access.PRIVATE


ANONYMOUS = Session()


class SessionManager:
    """Issues and verifies session cookies.

    Usage::

        sessions = SessionManager(store.users, app_config)
        session = sessions.load(request)
        if (user := sessions.check_login(login, password)) is not None:
            response = response.with_cookie(sessions.login_cookie(user))
    """

    __slots__ = ("_config", "_serializer", "_users")

    def __init__(self, users: UserMapper, config: AppConfig) -> None:
        if not config.secret_key:
            msg = "AppConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._users = users
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt=_SALT)

    def load(self, request: Request) -> Session:
        """Return the session for *request*; anonymous if the cookie is absent or invalid."""
        value = request.cookies.get(self._config.session_cookie)
        if not value:
            return ANONYMOUS
        try:
            data = self._serializer.loads(value, max_age=self._config.session_max_age)
        except BadSignature:
            logger.debug("Rejected session cookie with bad or expired signature")
            return ANONYMOUS
        user_id = data.get("userId") if isinstance(data, dict) else None
        if not isinstance(user_id, int):
            return ANONYMOUS
        try:
            return Session(self._users.fetch(user_id))
        except NotFound:
            return ANONYMOUS

    def check_login(self, login: str, password: str) -> User | None:
        """Return the user if *password* matches, else ``None``."""
        try:
            user = self._users.fetch_by_login(login)
        except NotFound:
            logger.info("Login failed for unknown user %r", login)
            return None
        if not verify_password(password, user.hash):
            logger.info("Login failed for user %r", login)
            return None
        return user

    def login_cookie(self, user: User) -> SetCookie:
        return SetCookie(
            name=self._config.session_cookie,
            value=self._serializer.dumps({"userId": user.id}),
            max_age=self._config.session_max_age,
            secure=self._config.secure_cookies,
        )

    def logout_cookie(self) -> SetCookie:
        return SetCookie.expired(self._config.session_cookie, secure=self._config.secure_cookies)
