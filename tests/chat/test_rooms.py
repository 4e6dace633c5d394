"""Tests for room alias resolution and room changes."""
from unittest.mock import AsyncMock

import pytest

from src.chat import RoomResolver, SessionManager, room_alias
from src.state import ConfigStore


async def configure_room(store: ConfigStore, name: str = "general", domain: str = "example.org") -> None:
    await store.set("room_name", name)
    await store.set("room_domain", domain)


class TestGetRoomId:
    @pytest.mark.asyncio
    async def test_resolves_and_persists(
        self, rooms: RoomResolver, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await store.set("_token", "tok1")
        await configure_room(store)
        api.get_room_id.return_value = "!abc123"

        assert await rooms.get_room_id() is True

        api.get_room_id.assert_awaited_once_with("https://matrix.org", "#general:example.org", "tok1")
        assert await store.get("_room_id") == "!abc123"
        assert sessions.session.room_id == "!abc123"

    @pytest.mark.asyncio
    async def test_second_call_uses_cache(
        self, rooms: RoomResolver, store: ConfigStore, api: AsyncMock
    ) -> None:
        await configure_room(store)
        api.get_room_id.return_value = "!abc123"

        await rooms.get_room_id()
        assert await rooms.get_room_id() is True
        assert api.get_room_id.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_name_fails_without_network(
        self, rooms: RoomResolver, store: ConfigStore, api: AsyncMock
    ) -> None:
        await store.set("room_domain", "example.org")
        assert await rooms.get_room_id() is False
        api.get_room_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_domain_fails_without_network(
        self, rooms: RoomResolver, store: ConfigStore, api: AsyncMock
    ) -> None:
        await store.set("room_name", "general")
        assert await rooms.get_room_id() is False
        api.get_room_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_alias(self, rooms: RoomResolver, store: ConfigStore) -> None:
        await configure_room(store)
        assert await rooms.get_room_id() is False
        assert await store.get("_room_id") is None


class TestSetRoom:
    @pytest.mark.asyncio
    async def test_clears_derived_state(
        self, rooms: RoomResolver, sessions: SessionManager, store: ConfigStore
    ) -> None:
        """Changing the room drops the room id, cursor and filter together."""
        await configure_room(store)
        await store.set("_room_id", "!old")
        await store.set("_since", "s42")
        await store.set("_filter", "f7")

        assert await rooms.set_room("random", "example.net") is True

        for key in ("_room_id", "_since", "_filter"):
            assert await store.get(key) is None
        assert await store.get("room_name") == "random"
        assert await store.get("room_domain") == "example.net"
        s = sessions.session
        assert (s.room_id, s.since, s.filter_id) == ("", "", "")
        assert (s.room_name, s.room_domain) == ("random", "example.net")

    @pytest.mark.asyncio
    async def test_empty_values_rejected(self, rooms: RoomResolver, store: ConfigStore) -> None:
        await store.set("_room_id", "!old")
        with pytest.raises(ValueError):
            await rooms.set_room("  ", "example.org")
        assert await store.get("_room_id") == "!old"


class TestEditRoom:
    @pytest.mark.asyncio
    async def test_confirmed_edit(self, rooms: RoomResolver, store: ConfigStore, make_prompt) -> None:
        await store.set("_since", "s1")
        prompt = make_prompt({"room_name": "general", "room_domain": "example.org"})

        assert await rooms.edit_room(prompt) is True
        assert await store.get("room_name") == "general"
        assert await store.get("_since") is None

    @pytest.mark.asyncio
    async def test_prefills_current_room(self, rooms: RoomResolver, store: ConfigStore, make_prompt) -> None:
        await configure_room(store)
        prompt = make_prompt(None)

        assert await rooms.edit_room(prompt) is False
        assert [f.value for f in prompt.fields] == ["general", "example.org"]

    @pytest.mark.asyncio
    async def test_kept_values_still_invalidate(self, rooms: RoomResolver, store: ConfigStore, make_prompt) -> None:
        await configure_room(store)
        await store.set("_room_id", "!old")

        assert await rooms.edit_room(make_prompt({"room_name": None, "room_domain": None})) is True
        assert await store.get("_room_id") is None
        assert await store.get("room_name") == "general"

    @pytest.mark.asyncio
    async def test_missing_domain_is_refused(self, rooms: RoomResolver, store: ConfigStore, make_prompt) -> None:
        await store.set("_room_id", "!old")
        assert await rooms.edit_room(make_prompt({"room_name": "general", "room_domain": ""})) is False
        assert await store.get("_room_id") == "!old"


def test_room_alias() -> None:
    assert room_alias("general", "example.org") == "#general:example.org"
