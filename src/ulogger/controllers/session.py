"""Login, logout and session status."""

from typing import Any

from ulogger.controllers.base import ANYONE, AUTHORIZED, Controller
from ulogger.entities import User
from ulogger.http.response import Response
from ulogger.routing.route import route


class SessionController(Controller):
    __slots__ = ()

    @route("POST", "/api/session", ANYONE)
    @route("POST", "/client/session", ANYONE)
    def log_in(self, login: str, password: str) -> Response:
        user = self.services.sessions.check_login(login, password)
        if user is None:
            return Response.not_authorized()
        return Response.success(_session_data(user)).with_cookie(
            self.services.sessions.login_cookie(user)
        )

    @route("GET", "/api/session", AUTHORIZED)
    def check(self) -> Response:
        user = self.session.user
        if self.services.settings.require_authentication and user is None:
            return Response.not_authorized()
        return Response.success(_session_data(user))

    @route("DELETE", "/api/session", AUTHORIZED)
    def log_out(self) -> Response:
        return Response.success().with_cookie(self.services.sessions.logout_cookie())


def _session_data(user: User | None) -> dict[str, Any]:
    if user is None:
        return {"isAuthenticated": False}
    return {
        "isAuthenticated": True,
        "isAdmin": user.is_admin,
        "userId": user.id,
        "userLogin": user.login,
    }
