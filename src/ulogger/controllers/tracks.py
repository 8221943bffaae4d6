"""Tracks, their positions, and track file import and export."""

from ulogger.controllers.base import AUTHORIZED, OWNER, OWNER_OR_ADMIN, READ_OWNED, Controller
from ulogger.data.protocols import TrackCodec
from ulogger.entities import Position, Track
from ulogger.errors import InvalidInput, NotFound
from ulogger.http.response import Response
from ulogger.http.uploads import FileUpload
from ulogger.routing.route import route

# Uploaded track files are always read as GPX
IMPORT_FORMAT = "gpx"


class TrackController(Controller):
    __slots__ = ()

    @route("GET", "/api/tracks/{trackId}", READ_OWNED)
    def get(self, trackId: int) -> Response:  # noqa: N803
        return Response.success(self.services.tracks.fetch(trackId))

    @route("PUT", "/api/tracks/{trackId}", OWNER_OR_ADMIN)
    def update(self, trackId: int, track: Track) -> Response:  # noqa: N803
        if track.id != trackId:
            return Response.unprocessable("Wrong track id")
        self.services.tracks.update(track)
        return Response.success()

    @route("POST", "/api/tracks", OWNER_OR_ADMIN)
    @route("POST", "/client/tracks", OWNER)
    def add(self, track: Track) -> Response:
        if track.user_id is None and self.session.user is not None:
            track.user_id = self.session.user.id
        return Response.created(self.services.tracks.create(track))

    @route("DELETE", "/api/tracks/{trackId}", OWNER_OR_ADMIN)
    def delete(self, trackId: int) -> Response:  # noqa: N803
        services = self.services
        track = services.tracks.fetch(trackId)
        self.remove_images(services.positions.find_all(trackId))
        if track.user_id is not None:
            services.positions.delete_all(track.user_id, trackId)
        services.tracks.delete(trackId)
        return Response.success()

    @route("GET", "/api/tracks/{trackId}/positions", READ_OWNED)
    def get_positions(self, trackId: int, afterId: int | None = None) -> Response:  # noqa: N803
        """Positions in time order, each with distance and time since the previous one.

        With ``afterId`` only later positions are listed, measured from
        position ``afterId``.
        """
        positions = self.services.positions.find_all(trackId, afterId)
        previous: Position | None = None
        if afterId is not None:
            try:
                previous = self.services.positions.fetch(afterId)
            except NotFound:
                previous = None
        for position in positions:
            if previous is not None:
                position.meters = position.distance_to(previous)
                position.seconds = position.seconds_to(previous)
            previous = position
        return Response.success(positions)

    @route("POST", "/api/tracks/import", AUTHORIZED)
    def import_file(self, gpx: FileUpload) -> Response:
        """Store every track found in an uploaded GPX file for the caller.

        Answers 201 with the list of created tracks.
        """
        user = self.session.user
        if user is None or user.id is None:
            return Response.not_authorized()
        codec = self._codec(IMPORT_FORMAT)
        gpx.sanitize(max_size=self.services.settings.upload_max_size)
        decoded = codec.decode(gpx.read())
        if not decoded:
            return Response.unprocessable("No track data in imported file")

        created: list[Track] = []
        for track, positions in decoded:
            track.id = None
            track.user_id = user.id
            stored = self.services.tracks.create(track)
            for position in positions:
                position.id = None
                position.user_id = user.id
                position.track_id = stored.id  # type: ignore[assignment]
                self.services.positions.create(position)
            created.append(stored)
        return Response.created(created)

    @route("GET", "/api/tracks/{trackId}/export", READ_OWNED)
    def export(self, trackId: int, format: str) -> Response:  # noqa: A002, N803
        """Download a track as a GPX or KML file; 404 for a track without positions."""
        track = self.services.tracks.fetch(trackId)
        positions = self.services.positions.find_all(trackId)
        if not positions:
            return Response.not_found()
        codec = self._codec(format)
        name = track.name.replace('"', "")
        filename = f"{name}.{codec.extension}"
        return Response.file_attachment(codec.encode(track, positions), filename, codec.mime_type)

    def _codec(self, name: str) -> TrackCodec:
        codec = self.services.codecs.get(name)
        if codec is None:
            raise InvalidInput(f"Unsupported format: {name}")
        return codec
