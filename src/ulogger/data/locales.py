"""User-interface strings for the browser client.

English is the base table. A translation only needs the keys it changes;
``strings`` overlays it on the English table, so untranslated keys still
show up in English. Extra tables are read from ``<lang>.json`` files::

    catalog = LocaleCatalog.from_directory("/usr/share/ulogger/lang")
    catalog.strings("pl")["track"]
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger("ulogger.http")

LANGUAGES: Mapping[str, str] = MappingProxyType(
    {
        "ca": "Català",
        "cs": "Čeština",
        "de": "Deutsch",
        "el": "Ελληνικά",
        "en": "English",
        "es": "Español",
        "eu": "Euskera",
        "fi": "Suomi",
        "fr": "Français",
        "gl": "Galego",
        "it": "Italiano",
        "pl": "Polski",
        "pt-br": "Português (Br)",
        "ru": "Русский",
        "sk": "Slovenčina",
    }
)

BASE_LANGUAGE = "en"

ENGLISH: Mapping[str, str] = MappingProxyType(
    {
        "title": "• μlogger •",
        "private": "You need login and password to access this page",
        "authfail": "Wrong username or password",
        "user": "User",
        "track": "Track",
        "latest": "Latest position",
        "autoreload": "Autoreload",
        "reload": "Reload now",
        "export": "Download data",
        "time": "Time",
        "speed": "Speed",
        "accuracy": "Accuracy",
        "position": "Position",
        "altitude": "Altitude",
        "bearing": "Bearing",
        "login": "Log in",
        "logout": "Log out",
        "username": "Username",
        "password": "Password",
        "language": "Language",
        "units": "Units",
        "metric": "Metric",
        "imperial": "Imperial/US",
        "nautical": "Nautical",
        "admin": "Administrator",
        "userexists": "User exists",
        "servererror": "Server error",
        "oldpassinvalid": "Wrong old password",
        "passstrengthwarn": "Invalid password strength",
        "actionsuccess": "Action completed successfully",
        "actionfailure": "Something went wrong",
        "notauthorized": "User not authorized",
        "selfeditwarn": "Your can't edit your own user with this tool",
        "import": "Import track",
        "iuploadfailure": "Uploading failed",
        "iparsefailure": "Parsing failed",
        "idatafailure": "No track data in imported file",
        "isizefailure": "The uploaded file size should not exceed %d bytes",
        "imultiple": "Notice, multiple tracks imported (%d)",
        "config": "Settings",
    }
)


class LocaleCatalog:
    """``StringCatalog`` over in-memory tables keyed by language code."""

    __slots__ = ("_tables",)

    def __init__(self, tables: Mapping[str, Mapping[str, str]] | None = None) -> None:
        self._tables: dict[str, Mapping[str, str]] = {BASE_LANGUAGE: ENGLISH}
        for lang, table in (tables or {}).items():
            if lang == BASE_LANGUAGE:
                self._tables[lang] = {**ENGLISH, **table}
            else:
                self._tables[lang] = dict(table)

    @classmethod
    def from_directory(cls, directory: str | Path) -> "LocaleCatalog":
        """Load ``<lang>.json`` tables for the supported languages found in *directory*."""
        tables: dict[str, Mapping[str, str]] = {}
        for path in sorted(Path(directory).glob("*.json")):
            if path.stem not in LANGUAGES:
                logger.warning("Ignoring strings for unsupported language %r", path.stem)
                continue
            tables[path.stem] = json.loads(path.read_text(encoding="utf-8"))
        return cls(tables)

    def languages(self) -> Mapping[str, str]:
        return LANGUAGES

    def strings(self, lang: str) -> Mapping[str, str]:
        base = self._tables[BASE_LANGUAGE]
        if lang == BASE_LANGUAGE or lang not in LANGUAGES:
            return base
        return {**base, **self._tables.get(lang, {})}
