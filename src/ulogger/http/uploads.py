"""Uploaded file handles.

A ``FileUpload`` is a reference to a received file — metadata plus the
path of a temporary file — never the raw bytes held in memory. Handles
come from two places: form uploads decoded at the server boundary, and
binary parts of a ``multipart/related`` body (``FileUpload.from_buffer``).
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from ulogger.errors import InvalidInput

logger = logging.getLogger("ulogger.http")

SELF_UPLOADED_PREFIX = "self_uploaded"


class UploadError(IntEnum):
    """Per-file upload status codes.

    The numeric values follow the classic web upload error codes so that
    clients reporting them keep their meaning.
    """

    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8


_ERROR_MESSAGES: dict[UploadError, str] = {
    UploadError.INI_SIZE: "Uploaded file exceeds the server size limit",
    UploadError.FORM_SIZE: "Uploaded file exceeds the size limit specified in the form",
    UploadError.PARTIAL: "File was only partially uploaded",
    UploadError.NO_FILE: "No file was uploaded",
    UploadError.NO_TMP_DIR: "Missing a temporary folder",
    UploadError.CANT_WRITE: "Failed to write file to disk",
    UploadError.EXTENSION: "An extension stopped file upload",
}


@dataclass(frozen=True, slots=True)
class FileUpload:
    """An uploaded file: name, temp location, declared MIME type, size, error."""

    name: str
    tmp_name: str
    type: str
    size: int
    error: UploadError = UploadError.OK

    @classmethod
    def from_buffer(cls, data: bytes, name: str, content_type: str) -> FileUpload:
        """Buffer *data* into a new temporary file and return its handle."""
        fd, path = tempfile.mkstemp(prefix=SELF_UPLOADED_PREFIX)
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        logger.debug("Buffered upload %r (%d bytes) to %s", name, len(data), path)
        return cls(name=name, tmp_name=path, type=content_type, size=len(data))

    @property
    def path(self) -> Path:
        """The temporary file as a ``Path``."""
        return Path(self.tmp_name)

    @property
    def is_self_uploaded(self) -> bool:
        """True if the temp file was written by ``from_buffer``."""
        try:
            real = self.path.resolve()
        except OSError:
            return False
        return (
            real.parent == Path(tempfile.gettempdir()).resolve()
            and real.name.startswith(SELF_UPLOADED_PREFIX)
        )

    def read(self) -> bytes:
        """Return the file content."""
        return self.path.read_bytes()

    def sanitize(self, *, max_size: int | None = None) -> None:
        """Check that the upload completed and its temp file exists.

        Raises ``InvalidInput`` describing the first problem found.
        """
        error = UploadError(self.error)
        if error is UploadError.OK and max_size is not None and self.size > max_size:
            error = UploadError.FORM_SIZE
        if error is not UploadError.OK:
            message = _ERROR_MESSAGES.get(error, "Unknown error")
            raise InvalidInput(f"{message} ({int(error)})")
        if not self.tmp_name or not self.path.is_file():
            raise InvalidInput("File not found")

    def discard(self) -> None:
        """Remove the temporary file if it still exists."""
        self.path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"FileUpload({self.name!r}, {self.type!r}, {self.size} bytes)"


def discard_all(uploads: Iterable[FileUpload]) -> None:
    """Remove the temporary files of every handle in *uploads*."""
    for upload in uploads:
        upload.discard()
