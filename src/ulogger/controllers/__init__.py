"""Controllers — the μlogger HTTP API as route-decorated methods.

``create_controllers`` returns them in registration order::

    router.setup_routes(create_controllers(services))
"""

from ulogger.controllers.base import Controller, Services
from ulogger.controllers.config import ConfigController
from ulogger.controllers.legacy import LegacyController
from ulogger.controllers.locales import LocaleController
from ulogger.controllers.positions import PositionController
from ulogger.controllers.session import SessionController
from ulogger.controllers.tracks import TrackController
from ulogger.controllers.users import UserController


def create_controllers(services: Services) -> list[Controller]:
    return [
        SessionController(services),
        ConfigController(services),
        UserController(services),
        TrackController(services),
        PositionController(services),
        LocaleController(services),
        LegacyController(services),
    ]


__all__ = [
    "ConfigController",
    "Controller",
    "LegacyController",
    "LocaleController",
    "PositionController",
    "Services",
    "SessionController",
    "TrackController",
    "UserController",
    "create_controllers",
]
