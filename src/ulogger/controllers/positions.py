"""Single positions, their images, and uploads from the mobile client."""

from ulogger.controllers.base import OWNER, OWNER_OR_ADMIN, Controller
from ulogger.entities import Position
from ulogger.http.response import Response
from ulogger.http.uploads import FileUpload
from ulogger.routing.route import route


class PositionController(Controller):
    __slots__ = ()

    @route("PUT", "/api/positions/{positionId}", OWNER_OR_ADMIN)
    def update(self, positionId: int, position: Position) -> Response:  # noqa: N803
        if position.id != positionId:
            return Response.unprocessable("Wrong position id")
        current = self.services.positions.fetch(positionId)
        # Only the comment is editable
        current.comment = position.comment
        self.services.positions.update(current)
        return Response.success()

    @route("DELETE", "/api/positions/{positionId}", OWNER_OR_ADMIN)
    def delete(self, positionId: int) -> Response:  # noqa: N803
        position = self.services.positions.fetch(positionId)
        self.remove_images([position])
        self.services.positions.delete(positionId)
        return Response.success()

    @route("POST", "/api/positions/{positionId}/image", OWNER_OR_ADMIN)
    def add_image(self, positionId: int, image: FileUpload) -> Response:  # noqa: N803
        position = self.services.positions.fetch(positionId)
        stored = self.services.storage.store(image, position.track_id)
        self.remove_images([position])
        position.image = stored
        self.services.positions.update(position)
        return Response.success({"image": stored})

    @route("DELETE", "/api/positions/{positionId}/image", OWNER_OR_ADMIN)
    def delete_image(self, positionId: int) -> Response:  # noqa: N803
        position = self.services.positions.fetch(positionId)
        if position.has_image:
            self.remove_images([position])
            position.image = None
            self.services.positions.update(position)
        return Response.success()

    @route("POST", "/client/positions", OWNER)
    def add_from_client(self, position: Position, image: FileUpload | None = None) -> Response:
        """Store a position sent by the mobile client, with an optional photo.

        The client posts ``multipart/related``: a JSON part with the position
        and an optional image part.
        """
        if position.user_id is None and self.session.user is not None:
            position.user_id = self.session.user.id
        if image is not None:
            position.image = self.services.storage.store(image, position.track_id)
        return Response.created(self.services.positions.create(position))
