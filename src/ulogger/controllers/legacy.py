"""The form-posting endpoint of older mobile clients.

Older Android clients post ``application/x-www-form-urlencoded`` or
``multipart/form-data`` to ``/client/index.php`` with an ``action`` field.
Every answer except a failed login is 200 with ``{"error": false, ...}``
or ``{"error": true, "message": ...}``.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ulogger.context import get_request
from ulogger.controllers.base import ANYONE, Controller
from ulogger.entities import Position, Track
from ulogger.errors import HTTPError, NotFound
from ulogger.http.response import Response
from ulogger.routing.route import route

logger = logging.getLogger("ulogger.http")


class LegacyController(Controller):
    __slots__ = ()

    @route("POST", "/client/index.php", ANYONE)
    def client(self, action: str | None = None) -> Response:
        request = get_request()
        form = request.payload
        if action == "auth":
            return self._auth(form)
        if self.session.user is None:
            return Response.not_authorized()
        if action == "addtrack":
            return self._add_track(form)
        if action == "addpos":
            return self._add_position(form)
        return _failure("Unknown command")

    def _auth(self, form: Mapping[str, Any]) -> Response:
        sessions = self.services.sessions
        user = sessions.check_login(_text(form, "user") or "", _text(form, "pass") or "")
        if user is None:
            return Response.not_authorized()
        return _success().with_cookie(sessions.login_cookie(user))

    def _add_track(self, form: Mapping[str, Any]) -> Response:
        name = _text(form, "track")
        if not name:
            return _failure("Missing required parameter")
        user = self.session.user
        assert user is not None
        track = self.services.tracks.create(Track(user_id=user.id, name=name))
        return _success(trackid=track.id)

    def _add_position(self, form: Mapping[str, Any]) -> Response:
        latitude = _number(form, "lat", float)
        longitude = _number(form, "lon", float)
        timestamp = _number(form, "time", int)
        track_id = _number(form, "trackid", int)
        if latitude is None or longitude is None or timestamp is None or track_id is None:
            return _failure("Missing required parameter")

        user = self.session.user
        assert user is not None
        try:
            track = self.services.tracks.fetch(track_id)
        except NotFound:
            return _failure("Unknown track")
        if track.user_id != user.id:
            return Response.not_authorized()

        image = None
        upload = get_request().uploads.get("image")
        if upload is not None:
            try:
                image = self.services.storage.store(upload, track_id)
            except HTTPError as exc:
                # The position is kept without its image
                logger.warning("Dropping image for track %d: %s", track_id, exc.detail)

        self.services.positions.create(
            Position(
                user_id=user.id,
                track_id=track_id,
                timestamp=timestamp,
                latitude=latitude,
                longitude=longitude,
                altitude=_number(form, "altitude", float),
                speed=_number(form, "speed", float),
                bearing=_number(form, "bearing", float),
                accuracy=_number(form, "accuracy", int),
                provider=_text(form, "provider"),
                comment=_text(form, "comment"),
                image=image,
            )
        )
        return _success()


def _success(**extra: Any) -> Response:
    return Response.success({"error": False, **extra})


def _failure(message: str) -> Response:
    return Response.success({"error": True, "message": message})


def _text(form: Mapping[str, Any], name: str) -> str | None:
    value = form.get(name)
    if value is None:
        return None
    return str(value)


def _number[N: (int, float)](form: Mapping[str, Any], name: str, kind: type[N]) -> N | None:
    """Parse a numeric form field; ``None`` if missing or not a number."""
    value = form.get(name)
    if value is None or value == "":
        return None
    try:
        return kind(value)
    except (TypeError, ValueError):
        return None
