"""Shared fixtures for store, session and sync tests."""
from pathlib import Path
from typing import Optional, Sequence
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from src.chat import FilterResolver, FormField, RoomResolver, Session, SessionManager, SyncLoop
from src.client import MatrixApi
from src.state import ConfigStore, DatabaseManager


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> DatabaseManager:
    """Create and initialize a temp database."""
    manager = DatabaseManager(tmp_path / "test.db")
    await manager.initialize()
    return manager


@pytest_asyncio.fixture
async def store(db: DatabaseManager) -> ConfigStore:
    config_store = ConfigStore(db, "mtxchat")
    await config_store.open()
    return config_store


@pytest.fixture
def api() -> AsyncMock:
    """Transport collaborator whose every call fails until a test says otherwise."""
    mock = AsyncMock(spec=MatrixApi)
    mock.whoami.return_value = None
    mock.get_login_type.return_value = True
    mock.authenticate_user.return_value = None
    mock.get_room_id.return_value = None
    mock.create_filter.return_value = None
    mock.sync.return_value = None
    mock.logout.return_value = True
    return mock


@pytest.fixture
def sessions(store: ConfigStore, api: AsyncMock) -> SessionManager:
    return SessionManager(store, api, Session())


@pytest.fixture
def rooms(sessions: SessionManager) -> RoomResolver:
    return RoomResolver(sessions)


@pytest.fixture
def filters(sessions: SessionManager) -> FilterResolver:
    return FilterResolver(sessions)


@pytest.fixture
def sync_loop(sessions: SessionManager, rooms: RoomResolver, filters: FilterResolver) -> SyncLoop:
    return SyncLoop(sessions, rooms, filters, timeout_ms=1000)


class FakePrompt:
    """Returns canned answers and records the fields it was shown."""

    def __init__(self, answers: Optional[dict[str, Optional[str]]]) -> None:
        self.answers = answers
        self.fields: list[FormField] = []

    def ask(self, title: str, fields: Sequence[FormField]) -> Optional[dict[str, Optional[str]]]:
        self.fields = list(fields)
        return self.answers


@pytest.fixture
def make_prompt() -> type[FakePrompt]:
    return FakePrompt
