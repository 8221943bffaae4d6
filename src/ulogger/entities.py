"""Domain entities — users, tracks, positions and service settings.

Entities are plain dataclasses with snake_case attributes. Their wire
names (camelCase, as the browser UI and the mobile client send them) are
declared with ``json_field``::

    @dataclass(slots=True, kw_only=True)
    class Track(Entity):
        id: int | None = None
        user_id: int | None = json_field("userId", default=None)
        name: str

``Entity.from_payload`` builds an instance from a decoded request payload,
coercing each value with the same strict rules the argument binder uses.
``Entity.to_payload`` is the inverse, used when entities are returned in
a JSON response.
"""

import dataclasses
import math
import re
from collections.abc import Mapping
from dataclasses import MISSING, dataclass
from typing import Any, Self

from ulogger.errors import InvalidInput
from ulogger.routing.params import coerce

_JSON_NAME = "json"
_LOAD = "load"
_DUMP = "dump"

# Mean Earth radius in meters, for distances between positions
EARTH_RADIUS = 6371000


def json_field(
    name: str | None = None,
    *,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    load: bool = True,
    dump: bool = True,
) -> Any:
    """Declare an entity attribute with a wire name.

    ``load=False`` ignores the key in incoming payloads; ``dump=False``
    keeps the attribute out of serialized output (password hashes).
    """
    metadata = {_JSON_NAME: name, _LOAD: load, _DUMP: dump}
    if default_factory is not MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def _wire_name(f: dataclasses.Field[Any]) -> str:
    return f.metadata.get(_JSON_NAME) or f.name


class Entity:
    """Base for payload-mapped dataclass entities."""

    __slots__ = ()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Self:
        """Build an entity from a decoded payload.

        Missing keys take the attribute default.

        Raises:
            InvalidInput: A required key is missing or a value has the
                wrong type.
        """
        kwargs: dict[str, Any] = {}
        for f in dataclasses.fields(cls):  # type: ignore[arg-type]
            if not f.init or not f.metadata.get(_LOAD, True):
                continue
            key = _wire_name(f)
            if key in payload:
                kwargs[f.name] = coerce(payload[key], f.type, key)
            elif f.default is MISSING and f.default_factory is MISSING:
                raise InvalidInput(f"Missing value for field {key}")
        return cls(**kwargs)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a JSON-ready mapping keyed by wire names."""
        return {
            _wire_name(f): getattr(self, f.name)
            for f in dataclasses.fields(self)  # type: ignore[arg-type]
            if f.metadata.get(_DUMP, True)
        }


@dataclass(slots=True, kw_only=True)
class User(Entity):
    id: int | None = None
    login: str
    is_admin: bool = json_field("isAdmin", default=False)
    # Plain-text password, only ever present on incoming payloads
    password: str | None = json_field(default=None, dump=False)
    hash: str | None = json_field(default=None, load=False, dump=False)


@dataclass(slots=True, kw_only=True)
class Track(Entity):
    id: int | None = None
    user_id: int | None = json_field("userId", default=None)
    name: str
    comment: str | None = None


@dataclass(slots=True, kw_only=True)
class Position(Entity):
    """A single GPS sample on a track.

    ``meters`` and ``seconds`` are the distance and time elapsed since the
    previous position when a track is listed; they are never stored.
    """

    id: int | None = None
    timestamp: int
    user_id: int | None = json_field("userId", default=None)
    user_login: str | None = json_field("userLogin", default=None)
    track_id: int = json_field("trackId")
    track_name: str | None = json_field("trackName", default=None)
    latitude: float
    longitude: float
    altitude: float | None = None
    speed: float | None = None
    bearing: float | None = None
    accuracy: int | None = None
    provider: str | None = None
    comment: str | None = None
    image: str | None = None
    meters: int = json_field(default=0, load=False)
    seconds: int = json_field(default=0, load=False)

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    def distance_to(self, target: "Position") -> int:
        """Great-circle distance to *target*, in whole meters (haversine)."""
        lat1 = math.radians(self.latitude)
        lon1 = math.radians(self.longitude)
        lat2 = math.radians(target.latitude)
        lon2 = math.radians(target.longitude)
        lat_d = lat2 - lat1
        lon_d = lon2 - lon1
        angle = 2 * math.asin(
            math.sqrt(math.sin(lat_d / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(lon_d / 2) ** 2)
        )
        return round(angle * EARTH_RADIUS)

    def seconds_to(self, target: "Position") -> int:
        return self.timestamp - target.timestamp


@dataclass(slots=True, kw_only=True)
class Config(Entity):
    """Service-wide settings, editable by administrators through ``/api/config``."""

    map_api: str = json_field("mapApi", default="openlayers")
    google_key: str | None = json_field("googleKey", default=None)
    ol_layers: list = json_field("olLayers", default_factory=list)
    init_latitude: float = json_field("initLatitude", default=52.23)
    init_longitude: float = json_field("initLongitude", default=21.01)
    require_authentication: bool = json_field("requireAuthentication", default=True)
    public_tracks: bool = json_field("publicTracks", default=False)
    pass_len_min: int = json_field("passLenMin", default=10)
    pass_strength: int = json_field("passStrength", default=2)
    interval: int = 10
    lang: str = "en"
    units: str = "metric"
    stroke_weight: int = json_field("strokeWeight", default=2)
    stroke_color: str = json_field("strokeColor", default="#ff0000")
    stroke_opacity: float = json_field("strokeOpacity", default=1.0)
    color_normal: str = json_field("colorNormal", default="#ffffff")
    color_start: str = json_field("colorStart", default="#55b500")
    color_stop: str = json_field("colorStop", default="#ff6a00")
    color_extra: str = json_field("colorExtra", default="#cccccc")
    color_hilite: str = json_field("colorHilite", default="#feff6a")
    upload_max_size: int = json_field("uploadMaxSize", default=5242880)

    def pass_regex(self) -> str:
        """Regex a password must match for the configured strength and length.

        Strength 1 needs lower and upper case letters, 2 adds digits, 3 adds
        a character that is neither a latin letter nor a digit.
        """
        regex = ""
        if self.pass_strength > 0:
            regex += "(?=.*[a-z])(?=.*[A-Z])"
        if self.pass_strength > 1:
            regex += "(?=.*[0-9])"
        if self.pass_strength > 2:
            regex += "(?=.*[^a-zA-Z0-9])"
        if self.pass_len_min > 0:
            regex += f"(?=.{{{self.pass_len_min},}})"
        return f"^{regex}.*$" if regex else ".*"

    def valid_pass_strength(self, password: str) -> bool:
        return re.match(self.pass_regex(), password) is not None

    def update_from(self, other: "Config") -> None:
        """Copy every setting from *other* into this instance."""
        for f in dataclasses.fields(self):
            setattr(self, f.name, getattr(other, f.name))
