"""User administration, per-user tracks and last positions."""

from ulogger.controllers.base import ADMIN, OWNER, READ_ALL_USERS, READ_OWNED, Controller
from ulogger.entities import User
from ulogger.errors import NotFound
from ulogger.http.response import Response
from ulogger.routing.route import route
from ulogger.security.passwords import verify_password


class UserController(Controller):
    __slots__ = ()

    @route("GET", "/api/users", READ_ALL_USERS)
    def get_all(self) -> Response:
        return Response.success(self.services.users.fetch_all())

    @route("GET", "/api/users/{userId}/tracks", READ_OWNED)
    def get_tracks(self, userId: int) -> Response:  # noqa: N803
        return Response.success(self.services.tracks.fetch_by_user(userId))

    @route("GET", "/api/users/{userId}/position", READ_OWNED)
    def get_position(self, userId: int) -> Response:  # noqa: N803
        return Response.success(self.services.positions.fetch_last(userId))

    @route("GET", "/api/users/position", READ_ALL_USERS)
    def get_all_positions(self) -> Response:
        return Response.success(self.services.positions.fetch_last_all_users())

    @route("POST", "/api/users", ADMIN)
    def add(self, user: User) -> Response:
        users = self.services.users
        try:
            users.fetch_by_login(user.login)
        except NotFound:
            pass
        else:
            return Response.conflict("userexists")
        if not user.password or not self.services.settings.valid_pass_strength(user.password):
            return Response.unprocessable("passstrengthwarn")
        return Response.created(users.create(user))

    @route("PUT", "/api/users/{userId}", ADMIN)
    def update(self, userId: int, user: User) -> Response:  # noqa: N803
        if user.id != userId:
            return Response.unprocessable("Wrong user id")
        users = self.services.users
        current = users.fetch(userId)
        if self.session.is_session_user(userId):
            return Response.unprocessable("selfeditwarn")
        current.is_admin = user.is_admin
        users.update_is_admin(current)

        if user.password:
            if not self.services.settings.valid_pass_strength(user.password):
                return Response.internal_server_error("Setting pass failed")
            current.password = user.password
            users.update_password(current)
        return Response.success()

    @route("PUT", "/api/users/{userId}/password", OWNER)
    def update_password(self, userId: int, password: str, oldPassword: str) -> Response:  # noqa: N803
        user = self.session.user
        if user is None or user.id != userId:
            return Response.not_authorized()
        if not self.services.settings.valid_pass_strength(password):
            return Response.unprocessable("passstrengthwarn")
        if not verify_password(oldPassword, user.hash):
            return Response.unprocessable("oldpassinvalid")
        user.password = password
        self.services.users.update_password(user)
        return Response.success()

    @route("DELETE", "/api/users/{userId}", ADMIN)
    def delete(self, userId: int) -> Response:  # noqa: N803
        if self.session.is_session_user(userId):
            return Response.unprocessable("selfeditwarn")
        services = self.services
        services.users.fetch(userId)
        for track in services.tracks.fetch_by_user(userId):
            if track.id is not None:
                self.remove_images(services.positions.find_all(track.id))
        services.positions.delete_all(userId)
        services.tracks.delete_all(userId)
        services.users.delete(userId)
        return Response.success()
