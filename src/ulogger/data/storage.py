"""Position image storage in a local directory.

Stored files are named ``{trackId}_{random hex}.{ext}``; only a few known
image types are accepted, and names read back from clients are checked
against that shape before touching the filesystem.
"""

import logging
import re
import secrets
import shutil
from pathlib import Path

from ulogger.errors import InvalidInput, NotFound
from ulogger.http.uploads import FileUpload

logger = logging.getLogger("ulogger.http")

MIME_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/x-ms-bmp": "bmp",
    "image/gif": "gif",
    "image/png": "png",
}

_STORED_NAME_RE = re.compile(r"[0-9]+_[a-f0-9]{16}\.[a-z]+")


class DirectoryStorage:
    """``FileStorage`` over a directory, created on first use."""

    __slots__ = ("_max_size", "_root")

    def __init__(self, root: str | Path, *, max_size: int | None = None) -> None:
        self._root = Path(root)
        self._max_size = max_size

    @property
    def root(self) -> Path:
        return self._root

    def store(self, upload: FileUpload, track_id: int) -> str:
        """Move *upload* into the directory and return its new name.

        Raises:
            InvalidInput: The upload failed, is too large, or is not a known
                image type.
        """
        upload.sanitize(max_size=self._max_size)
        extension = MIME_EXTENSIONS.get(upload.type.lower())
        if extension is None:
            raise InvalidInput(f"Unsupported file type {upload.type!r}")

        self._root.mkdir(parents=True, exist_ok=True)
        while True:
            name = f"{track_id}_{secrets.token_hex(8)}.{extension}"
            target = self._root / name
            if not target.exists():
                break
        shutil.move(upload.tmp_name, target)
        logger.debug("Stored upload %r as %s", upload.name, name)
        return name

    def read(self, name: str) -> bytes:
        path = self._path(name)
        if path is None or not path.is_file():
            raise NotFound(f"File {name!r} not found")
        return path.read_bytes()

    def delete(self, name: str) -> None:
        """Remove a stored file; unknown names are ignored."""
        path = self._path(name)
        if path is not None:
            path.unlink(missing_ok=True)

    def _path(self, name: str) -> Path | None:
        if not _STORED_NAME_RE.fullmatch(name):
            return None
        return self._root / name
