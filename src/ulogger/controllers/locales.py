"""User-interface strings for the browser client."""

from ulogger.controllers.base import ANYONE, Controller
from ulogger.http.response import Response
from ulogger.routing.route import route


class LocaleController(Controller):
    __slots__ = ()

    @route("GET", "/api/locales", ANYONE)
    def get(self) -> Response:
        """The configured language's strings, plus ``langArr`` of all languages."""
        catalog = self.services.catalog
        strings = catalog.strings(self.services.settings.lang)
        return Response.success({"langArr": dict(catalog.languages()), **strings})
