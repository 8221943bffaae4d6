"""Service settings."""

from ulogger.controllers.base import ADMIN, ANYONE, Controller
from ulogger.entities import Config
from ulogger.http.response import Response
from ulogger.routing.route import route


class ConfigController(Controller):
    __slots__ = ()

    @route("GET", "/api/config", ANYONE)
    def get(self) -> Response:
        return Response.success(self.services.settings)

    @route("PUT", "/api/config", ADMIN)
    def update(self, config: Config) -> Response:
        if not config.require_authentication:
            # Without authentication every track is visible anyway
            config.public_tracks = True
        self.services.config.update(config)
        self.services.settings.update_from(config)
        return Response.success()
