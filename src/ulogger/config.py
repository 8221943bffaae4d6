"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups. It covers deployment settings only; user-facing
service settings live in ``ulogger.entities.Config`` and are edited through
the API.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, secret_key="s3cr3t", upload_dir="/var/lib/ulogger")
    """

    debug: bool = False

    # First path segment a request must carry: /api/... or /client/...
    namespaces: tuple[str, ...] = ("api", "client")

    # Sessions
    secret_key: str = ""
    session_cookie: str = "ulogger"
    session_max_age: int = 14 * 24 * 3600  # 2 weeks
    secure_cookies: bool = False

    # Position images
    upload_dir: str | Path = "uploads"

    # Directory of <lang>.json string tables; English only when unset
    locale_dir: str | Path | None = None

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Initial service settings, used until an administrator saves new ones
    require_authentication: bool = True
    public_tracks: bool = False
