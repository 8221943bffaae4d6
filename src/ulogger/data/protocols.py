"""Persistence collaborator protocols.

Controllers, the session manager and the access-control middleware talk
to storage only through these shapes. Lookups of a missing id raise
``NotFound``; storage failures raise ``DatabaseError``.
"""

from collections.abc import Mapping, Sequence
from typing import Protocol

from ulogger.entities import Config, Position, Track, User
from ulogger.http.uploads import FileUpload


class UserMapper(Protocol):
    def fetch(self, user_id: int) -> User: ...

    def fetch_by_login(self, login: str) -> User: ...

    def fetch_all(self) -> Sequence[User]: ...

    def create(self, user: User) -> User:
        """Store a new user, hashing ``user.password``; sets ``user.id``."""
        ...

    def update_is_admin(self, user: User) -> None: ...

    def update_password(self, user: User) -> None:
        """Re-hash and store ``user.password``."""
        ...

    def delete(self, user_id: int) -> None: ...


class TrackMapper(Protocol):
    def fetch(self, track_id: int) -> Track: ...

    def fetch_by_user(self, user_id: int) -> Sequence[Track]:
        """Tracks of *user_id*, newest first."""
        ...

    def create(self, track: Track) -> Track: ...

    def update(self, track: Track) -> None: ...

    def delete(self, track_id: int) -> None: ...

    def delete_all(self, user_id: int) -> None: ...


class PositionMapper(Protocol):
    def fetch(self, position_id: int) -> Position: ...

    def find_all(self, track_id: int, after_id: int | None = None) -> Sequence[Position]:
        """Positions of a track in time order, optionally only those after *after_id*."""
        ...

    def fetch_last(self, user_id: int) -> Position: ...

    def fetch_last_all_users(self) -> Sequence[Position]: ...

    def create(self, position: Position) -> Position: ...

    def update(self, position: Position) -> None: ...

    def delete(self, position_id: int) -> None: ...

    def delete_all(self, user_id: int, track_id: int | None = None) -> None: ...


class ConfigMapper(Protocol):
    def fetch(self) -> Config: ...

    def update(self, config: Config) -> None: ...


class FileStorage(Protocol):
    """Storage for position images."""

    def store(self, upload: FileUpload, track_id: int) -> str:
        """Move *upload* into storage and return its stored name."""
        ...

    def read(self, name: str) -> bytes: ...

    def delete(self, name: str) -> None: ...


class TrackCodec(Protocol):
    """A track file format such as GPX or KML.

    ``decode`` raises ``InvalidInput`` for files it cannot parse. The
    caller assigns ids, owners and the positions' track ids when storing
    what was decoded.
    """

    extension: str
    mime_type: str

    def decode(self, data: bytes) -> Sequence[tuple[Track, Sequence[Position]]]: ...

    def encode(self, track: Track, positions: Sequence[Position]) -> bytes: ...


class StringCatalog(Protocol):
    """Translated user-interface strings."""

    def languages(self) -> Mapping[str, str]:
        """Supported language codes mapped to their native names."""
        ...

    def strings(self, lang: str) -> Mapping[str, str]:
        """Strings for *lang*; keys it does not translate fall back to English."""
        ...


class Store(Protocol):
    """A complete persistence backend: one mapper per entity."""

    users: UserMapper
    tracks: TrackMapper
    positions: PositionMapper
    config: ConfigMapper
