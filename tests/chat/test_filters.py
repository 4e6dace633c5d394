"""Tests for sync filter creation."""
from unittest.mock import AsyncMock

import pytest

from src.chat import FilterResolver, SessionManager
from src.state import ConfigStore


@pytest.mark.asyncio
async def test_creates_and_persists(
    filters: FilterResolver, sessions: SessionManager, store: ConfigStore, api: AsyncMock
) -> None:
    await store.set("_token", "tok1")
    await store.set("_user_id", "@alice:example.org")
    await store.set("_room_id", "!abc123")
    api.create_filter.return_value = "f1"

    assert await filters.get_filter() is True

    api.create_filter.assert_awaited_once_with("https://matrix.org", "@alice:example.org", "!abc123", "tok1")
    assert await store.get("_filter") == "f1"
    assert sessions.session.filter_id == "f1"


@pytest.mark.asyncio
async def test_cached_filter_skips_network(filters: FilterResolver, store: ConfigStore, api: AsyncMock) -> None:
    await store.set("_filter", "f0")
    assert await filters.get_filter() is True
    api.create_filter.assert_not_awaited()


@pytest.mark.asyncio
async def test_requires_room(filters: FilterResolver, store: ConfigStore, api: AsyncMock) -> None:
    await store.set("_user_id", "@alice:example.org")
    assert await filters.get_filter() is False
    api.create_filter.assert_not_awaited()


@pytest.mark.asyncio
async def test_requires_user(filters: FilterResolver, store: ConfigStore, api: AsyncMock) -> None:
    await store.set("_room_id", "!abc123")
    assert await filters.get_filter() is False
    api.create_filter.assert_not_awaited()


@pytest.mark.asyncio
async def test_server_failure(filters: FilterResolver, store: ConfigStore) -> None:
    await store.set("_user_id", "@alice:example.org")
    await store.set("_room_id", "!abc123")
    assert await filters.get_filter() is False
    assert await store.get("_filter") is None
