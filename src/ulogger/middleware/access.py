"""Access control middleware.

Each route declares which policies apply under which access type::

    @route("GET", "/api/tracks/{trackId}", {
        Access.OPEN: (Allow.ALL,),
        Access.PUBLIC: (Allow.AUTHORIZED,),
        Access.PRIVATE: (Allow.OWNER, Allow.ADMIN),
    })

The access type comes from the live service settings. Policies for that
type are used, falling back to ``Access.ALL``. The request continues if
any policy is satisfied; otherwise it ends with 401.

``Allow.OWNER`` checks every owned resource the request touches: bound
``Track`` / ``Position`` arguments and the ``{userId}``, ``{trackId}`` and
``{positionId}`` path parameters. A route granting owner access but
touching no owned resource is misconfigured and answers 500.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ulogger.context import session_var
from ulogger.entities import Position, Track
from ulogger.errors import NotFound, ServerError
from ulogger.http.response import Response
from ulogger.middleware.protocol import CONTINUE, Final, MiddlewareResult
from ulogger.security.session import Access, Allow, Session, SessionManager

if TYPE_CHECKING:
    from ulogger.data.protocols import PositionMapper, TrackMapper
    from ulogger.entities import Config
    from ulogger.http.request import Request
    from ulogger.routing.route import Route

logger = logging.getLogger("ulogger.security")


class AccessControl:
    """Loads the caller's session into ``session_var`` and enforces route policies.

    Usage::

        router.add_middleware(AccessControl(sessions, settings, store.tracks, store.positions))
    """

    __slots__ = ("_positions", "_sessions", "_settings", "_tracks")

    def __init__(
        self,
        sessions: SessionManager,
        settings: Config,
        tracks: TrackMapper,
        positions: PositionMapper,
    ) -> None:
        self._sessions = sessions
        self._settings = settings
        self._tracks = tracks
        self._positions = positions

    def run(self, request: Request, route: Route) -> MiddlewareResult:
        session = self._sessions.load(request)
        session_var.set(session)

        access_type = Session.access_type(self._settings)
        policies = route.access.get(access_type)
        if policies is None:
            policies = route.access.get(Access.ALL)
        if policies is None:
            return Final(Response.internal_server_error("No policies found for route"))

        for policy in policies:
            if policy == Allow.ALL:
                return CONTINUE
            if policy == Allow.AUTHORIZED and session.is_authenticated:
                return CONTINUE
            if policy == Allow.ADMIN and session.is_admin:
                return CONTINUE
            if policy == Allow.OWNER:
                try:
                    if self._is_resource_owner(session, request, route):
                        return CONTINUE
                except ServerError as exc:
                    return Final(Response.internal_server_error(exc.detail))

        logger.debug("Access denied to %s %s (%s)", route.method, route.path, access_type)
        return Final(Response.not_authorized())

    def _is_resource_owner(self, session: Session, request: Request, route: Route) -> bool:
        if not session.is_authenticated:
            return False
        checks = 0

        if request.has_payload:
            track = request.argument_of_type(Track)
            if track is not None:
                checks += 1
                if not _claims(session, track.user_id):
                    return False
            position = request.argument_of_type(Position)
            if position is not None:
                checks += 1
                if not _claims(session, position.user_id):
                    return False
                if not self._owns_track(session, position.track_id):
                    return False

        params = request.path_params
        if "userId" in params:
            checks += 1
            if not session.is_session_user(_as_id(params["userId"])):
                return False
        if "trackId" in params:
            checks += 1
            if not self._owns_track(session, _as_id(params["trackId"])):
                return False
        if "positionId" in params:
            checks += 1
            if not self._owns_position(session, _as_id(params["positionId"])):
                return False

        if checks == 0:
            msg = "Route misconfigured: no private resource found"
            raise ServerError(msg)
        return True

    def _owns_track(self, session: Session, track_id: int | None) -> bool:
        if track_id is None:
            return False
        try:
            return session.is_session_user(self._tracks.fetch(track_id).user_id)
        except NotFound:
            return False

    def _owns_position(self, session: Session, position_id: int | None) -> bool:
        if position_id is None:
            return False
        try:
            return session.is_session_user(self._positions.fetch(position_id).user_id)
        except NotFound:
            return False


def _as_id(value: str) -> int | None:
    return int(value) if value.isdigit() else None


def _claims(session: Session, user_id: int | None) -> bool:
    """True if a submitted entity belongs to the session user.

    Entities submitted without an owner are created for the session user.
    """
    return user_id is None or session.is_session_user(user_id)
