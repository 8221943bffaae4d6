"""Shared fixtures: an app over an in-memory store holding an admin and a user."""

from pathlib import Path

import pytest

from ulogger.app import App
from ulogger.config import AppConfig
from ulogger.data.memory import MemoryStore
from ulogger.entities import User

ADMIN_PASSWORD = "AdminPass123"
USER_PASSWORD = "UserPass1234"


@pytest.fixture
def store() -> MemoryStore:
    """Users: ``admin`` (id 1, administrator) and ``alice`` (id 2)."""
    store = MemoryStore()
    store.users.create(User(login="admin", password=ADMIN_PASSWORD, is_admin=True))
    store.users.create(User(login="alice", password=USER_PASSWORD))
    return store


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(secret_key="test-secret", upload_dir=tmp_path / "uploads")


@pytest.fixture
def app(config: AppConfig, store: MemoryStore) -> App:
    return App(config, store=store)
