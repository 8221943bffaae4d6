"""Controller base class and the collaborators every controller shares."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ulogger.context import get_session
from ulogger.data.protocols import (
    ConfigMapper,
    FileStorage,
    PositionMapper,
    StringCatalog,
    TrackCodec,
    TrackMapper,
    UserMapper,
)
from ulogger.entities import Config, Position
from ulogger.security.session import Access, Allow, Session, SessionManager

type AccessRules = Mapping[Access, tuple[Allow, ...]]

# Reading other users' data: anyone when open, any user when tracks are
# public, otherwise only the owner or an administrator
READ_OWNED: AccessRules = {
    Access.OPEN: (Allow.ALL,),
    Access.PUBLIC: (Allow.AUTHORIZED,),
    Access.PRIVATE: (Allow.OWNER, Allow.ADMIN),
}
READ_ALL_USERS: AccessRules = {
    Access.OPEN: (Allow.ALL,),
    Access.PUBLIC: (Allow.AUTHORIZED,),
    Access.PRIVATE: (Allow.ADMIN,),
}
ANYONE: AccessRules = {Access.ALL: (Allow.ALL,)}
AUTHORIZED: AccessRules = {Access.ALL: (Allow.AUTHORIZED,)}
OWNER: AccessRules = {Access.ALL: (Allow.OWNER,)}
OWNER_OR_ADMIN: AccessRules = {Access.ALL: (Allow.OWNER, Allow.ADMIN)}
ADMIN: AccessRules = {Access.ALL: (Allow.ADMIN,)}


@dataclass(frozen=True, slots=True)
class Services:
    """Collaborators handed to every controller.

    ``settings`` is the live service configuration; updating it through
    ``/api/config`` changes it in place for all controllers and the
    access-control middleware.
    """

    users: UserMapper
    tracks: TrackMapper
    positions: PositionMapper
    config: ConfigMapper
    settings: Config
    sessions: SessionManager
    storage: FileStorage
    catalog: StringCatalog
    # Track file formats by name, e.g. ``"gpx"``
    codecs: Mapping[str, TrackCodec] = field(default_factory=dict)


class Controller:
    """Base for route-decorated controllers."""

    __slots__ = ("services",)

    def __init__(self, services: Services) -> None:
        self.services = services

    @property
    def session(self) -> Session:
        """The caller's session, as loaded by the access-control middleware."""
        return get_session()

    def remove_images(self, positions: Iterable[Position]) -> None:
        for position in positions:
            if position.image:
                self.services.storage.delete(position.image)
