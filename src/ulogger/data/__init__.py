"""Data access — mapper protocols and reference implementations.

Controllers depend on the protocols only::

    from ulogger.data import MemoryStore, DirectoryStorage

    store = MemoryStore()
    storage = DirectoryStorage("uploads")
"""

from ulogger.data.memory import MemoryStore
from ulogger.data.protocols import (
    ConfigMapper,
    FileStorage,
    PositionMapper,
    Store,
    TrackMapper,
    UserMapper,
)
from ulogger.data.storage import DirectoryStorage

__all__ = [
    "ConfigMapper",
    "DirectoryStorage",
    "FileStorage",
    "MemoryStore",
    "PositionMapper",
    "Store",
    "TrackMapper",
    "UserMapper",
]
