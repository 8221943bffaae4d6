"""In-memory mappers.

A complete, thread-safe implementation of the mapper protocols backed by
plain dicts. Used by the test suite and the demo application; a SQL-backed
store plugs in through the same protocols.

Usage::

    store = MemoryStore()
    admin = store.users.create(User(login="admin", password="Secret123", is_admin=True))
    track = store.tracks.create(Track(user_id=admin.id, name="Morning run"))
"""

import copy
import itertools
import threading
from dataclasses import replace

from ulogger.entities import Config, Position, Track, User
from ulogger.errors import DatabaseError, NotFound
from ulogger.security.passwords import hash_password


class _Table[T]:
    """Id-keyed rows with an auto-increment counter."""

    __slots__ = ("_ids", "name", "rows")

    def __init__(self, name: str) -> None:
        self.name = name
        self.rows: dict[int, T] = {}
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)

    def get(self, row_id: int) -> T:
        try:
            return copy.copy(self.rows[row_id])
        except KeyError:
            raise NotFound(f"{self.name} {row_id} not found") from None

    def require(self, row_id: int | None) -> int:
        if row_id is None or row_id not in self.rows:
            raise NotFound(f"{self.name} {row_id} not found")
        return row_id


class MemoryStore:
    """All four mappers over shared in-memory tables."""

    __slots__ = ("_lock", "config", "positions", "tracks", "users")

    def __init__(self, settings: Config | None = None) -> None:
        self._lock = threading.Lock()
        users: _Table[User] = _Table("User")
        tracks: _Table[Track] = _Table("Track")
        positions: _Table[Position] = _Table("Position")
        self.users = MemoryUserMapper(self._lock, users)
        self.tracks = MemoryTrackMapper(self._lock, tracks, users)
        self.positions = MemoryPositionMapper(self._lock, positions, tracks, users)
        self.config = MemoryConfigMapper(self._lock, settings or Config())


class MemoryUserMapper:
    __slots__ = ("_lock", "_users")

    def __init__(self, lock: threading.Lock, users: _Table[User]) -> None:
        self._lock = lock
        self._users = users

    def fetch(self, user_id: int) -> User:
        with self._lock:
            return self._users.get(user_id)

    def fetch_by_login(self, login: str) -> User:
        with self._lock:
            for user in self._users.rows.values():
                if user.login == login:
                    return copy.copy(user)
        raise NotFound(f"User {login!r} not found")

    def fetch_all(self) -> list[User]:
        with self._lock:
            return sorted((copy.copy(u) for u in self._users.rows.values()), key=lambda u: u.login)

    def create(self, user: User) -> User:
        if not user.login or not user.password:
            raise DatabaseError("Empty login or password")
        user.hash = hash_password(user.password)
        user.password = None
        with self._lock:
            if any(u.login == user.login for u in self._users.rows.values()):
                raise DatabaseError(f"Duplicate login {user.login!r}")
            user.id = self._users.next_id()
            self._users.rows[user.id] = copy.copy(user)
        return user

    def update_is_admin(self, user: User) -> None:
        with self._lock:
            row_id = self._users.require(user.id)
            self._users.rows[row_id].is_admin = user.is_admin

    def update_password(self, user: User) -> None:
        if not user.password:
            raise DatabaseError("Empty password")
        hashed = hash_password(user.password)
        with self._lock:
            row_id = self._users.require(user.id)
            self._users.rows[row_id].hash = hashed
        user.hash = hashed
        user.password = None

    def delete(self, user_id: int) -> None:
        with self._lock:
            self._users.require(user_id)
            del self._users.rows[user_id]


class MemoryTrackMapper:
    __slots__ = ("_lock", "_tracks", "_users")

    def __init__(self, lock: threading.Lock, tracks: _Table[Track], users: _Table[User]) -> None:
        self._lock = lock
        self._tracks = tracks
        self._users = users

    def fetch(self, track_id: int) -> Track:
        with self._lock:
            return self._tracks.get(track_id)

    def fetch_by_user(self, user_id: int) -> list[Track]:
        with self._lock:
            tracks = [copy.copy(t) for t in self._tracks.rows.values() if t.user_id == user_id]
        return sorted(tracks, key=lambda t: t.id or 0, reverse=True)

    def create(self, track: Track) -> Track:
        if not track.name:
            raise DatabaseError("Empty track name")
        with self._lock:
            self._users.require(track.user_id)
            track.id = self._tracks.next_id()
            self._tracks.rows[track.id] = copy.copy(track)
        return track

    def update(self, track: Track) -> None:
        if not track.name:
            raise DatabaseError("Empty track name")
        with self._lock:
            row_id = self._tracks.require(track.id)
            current = self._tracks.rows[row_id]
            self._tracks.rows[row_id] = replace(
                current, name=track.name, comment=track.comment or None
            )

    def delete(self, track_id: int) -> None:
        with self._lock:
            self._tracks.require(track_id)
            del self._tracks.rows[track_id]

    def delete_all(self, user_id: int) -> None:
        with self._lock:
            for track_id in [i for i, t in self._tracks.rows.items() if t.user_id == user_id]:
                del self._tracks.rows[track_id]


class MemoryPositionMapper:
    __slots__ = ("_lock", "_positions", "_tracks", "_users")

    def __init__(
        self,
        lock: threading.Lock,
        positions: _Table[Position],
        tracks: _Table[Track],
        users: _Table[User],
    ) -> None:
        self._lock = lock
        self._positions = positions
        self._tracks = tracks
        self._users = users

    def _joined(self, position: Position) -> Position:
        """Copy of *position* with the user login and track name filled in."""
        user = self._users.rows.get(position.user_id or 0)
        track = self._tracks.rows.get(position.track_id)
        return replace(
            position,
            user_login=user.login if user else None,
            track_name=track.name if track else None,
        )

    def _ordered(self, positions: list[Position]) -> list[Position]:
        return sorted(positions, key=lambda p: (p.timestamp, p.id or 0))

    def fetch(self, position_id: int) -> Position:
        with self._lock:
            return self._joined(self._positions.get(position_id))

    def find_all(self, track_id: int, after_id: int | None = None) -> list[Position]:
        with self._lock:
            found = [
                self._joined(p)
                for p in self._positions.rows.values()
                if p.track_id == track_id and (after_id is None or (p.id or 0) > after_id)
            ]
        return self._ordered(found)

    def fetch_last(self, user_id: int) -> Position:
        with self._lock:
            found = [p for p in self._positions.rows.values() if p.user_id == user_id]
            if not found:
                raise NotFound(f"No positions for user {user_id}")
            return self._joined(self._ordered(found)[-1])

    def fetch_last_all_users(self) -> list[Position]:
        with self._lock:
            last: dict[int, Position] = {}
            for position in self._ordered(list(self._positions.rows.values())):
                if position.user_id is not None:
                    last[position.user_id] = position
            return [self._joined(p) for p in last.values()]

    def create(self, position: Position) -> Position:
        with self._lock:
            track_id = self._tracks.require(position.track_id)
            if self._tracks.rows[track_id].user_id != position.user_id:
                raise DatabaseError("Position user does not own the track")
            position.id = self._positions.next_id()
            self._positions.rows[position.id] = copy.copy(position)
        return position

    def update(self, position: Position) -> None:
        with self._lock:
            row_id = self._positions.require(position.id)
            self._positions.rows[row_id] = replace(position, user_login=None, track_name=None)

    def delete(self, position_id: int) -> None:
        with self._lock:
            self._positions.require(position_id)
            del self._positions.rows[position_id]

    def delete_all(self, user_id: int, track_id: int | None = None) -> None:
        with self._lock:
            doomed = [
                i
                for i, p in self._positions.rows.items()
                if p.user_id == user_id and (track_id is None or p.track_id == track_id)
            ]
            for position_id in doomed:
                del self._positions.rows[position_id]


class MemoryConfigMapper:
    __slots__ = ("_lock", "_settings")

    def __init__(self, lock: threading.Lock, settings: Config) -> None:
        self._lock = lock
        self._settings = settings

    def fetch(self) -> Config:
        with self._lock:
            return copy.deepcopy(self._settings)

    def update(self, config: Config) -> None:
        with self._lock:
            self._settings = copy.deepcopy(config)
