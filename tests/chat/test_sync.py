"""Tests for the long-poll sync loop."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from src.chat import FilterResolver, RoomResolver, SessionManager, SessionState, SyncLoop, SyncResult
from src.client import ChatMessage
from src.state import ConfigStore

HELLO = ChatMessage(event_id="$e1", sender="@bob:example.org", body="hi", timestamp_ms=1)


async def log_in(sessions: SessionManager, store: ConfigStore, resolved: bool = True) -> None:
    await store.set("_token", "tok1")
    await store.set("_user_id", "@alice:example.org")
    await store.set("room_name", "general")
    await store.set("room_domain", "example.org")
    if resolved:
        await store.set("_room_id", "!abc123")
        await store.set("_filter", "f1")
    sessions.session.state = SessionState.LOGGED_IN


def replay(api: AsyncMock, *replies) -> asyncio.Event:
    """Serve ``replies`` in order, then block until the returned event is set."""
    pending = list(replies)
    started = asyncio.Event()
    release = asyncio.Event()

    async def fake_sync(*args):
        if pending:
            return pending.pop(0)
        started.set()
        await release.wait()
        return None

    api.sync.side_effect = fake_sync
    return started


class TestListen:
    """Starting cycles."""

    @pytest.mark.asyncio
    async def test_not_logged_in(self, sync_loop: SyncLoop, api: AsyncMock) -> None:
        assert await sync_loop.listen() is False
        assert sync_loop.listening is False
        api.sync.assert_not_awaited()
        api.get_room_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_listener(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        replay(api)

        assert await sync_loop.listen() is True
        assert await sync_loop.listen() is False
        assert sync_loop.cycles_started == 1

        await sync_loop.stop()

    @pytest.mark.asyncio
    async def test_concurrent_listen_starts_one_cycle(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        replay(api)

        started = await asyncio.gather(*(sync_loop.listen() for _ in range(5)))

        assert started.count(True) == 1
        assert sync_loop.cycles_started == 1
        await sync_loop.stop()

    @pytest.mark.asyncio
    async def test_cycle_uses_room_server_and_snapshot(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        await store.set("user_domain", "home.example")
        replay(api, ("s1", []))

        await sync_loop.listen()
        result = await sync_loop.next_result()

        assert result == SyncResult(since="s1")
        api.sync.assert_awaited_once_with("https://example.org", "f1", "", 1000, "!abc123", "tok1")

    @pytest.mark.asyncio
    async def test_resolves_room_and_filter_first(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store, resolved=False)
        api.get_room_id.return_value = "!abc123"
        api.create_filter.return_value = "f1"
        replay(api)

        assert await sync_loop.listen() is True
        assert await store.get("_room_id") == "!abc123"
        assert await store.get("_filter") == "f1"
        await sync_loop.stop()

    @pytest.mark.asyncio
    async def test_unresolvable_room(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store, resolved=False)

        assert await sync_loop.listen() is False
        assert sync_loop.listening is False
        api.create_filter.assert_not_awaited()
        api.sync.assert_not_awaited()


class TestListenOver:
    """Finishing cycles and restarting."""

    @pytest.mark.asyncio
    async def test_cursor_persisted_and_restarted(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        replay(api, ("s1", []))
        await sync_loop.listen()
        result = await sync_loop.next_result()

        assert await sync_loop.listen_over(result.since) is True

        assert await store.get("_since") == "s1"
        assert sync_loop.listening is True
        assert sync_loop.cycles_started == 2
        await sync_loop.stop()
        assert api.sync.await_args.args[2] == "s1"

    @pytest.mark.asyncio
    async def test_empty_cursor_stops(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        await store.set("_since", "s0")
        await sync_loop.listen()
        result = await sync_loop.next_result()

        assert result.ok is False
        assert await sync_loop.listen_over(result.since) is False
        assert sync_loop.listening is False
        assert sync_loop.cycles_started == 1
        assert await store.get("_since") == "s0"

    @pytest.mark.asyncio
    async def test_no_restart_without_network(
        self, sessions: SessionManager, rooms: RoomResolver, filters: FilterResolver,
        store: ConfigStore, api: AsyncMock
    ) -> None:
        loop = SyncLoop(sessions, rooms, filters, timeout_ms=1000, network_available=lambda: False)
        await log_in(sessions, store)
        replay(api, ("s1", []))
        await loop.listen()

        assert await loop.listen_over((await loop.next_result()).since) is False
        assert await store.get("_since") == "s1"
        assert loop.listening is False

    @pytest.mark.asyncio
    async def test_no_restart_after_logout(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        replay(api, ("s1", []))
        await sync_loop.listen()
        result = await sync_loop.next_result()
        sessions.session.state = SessionState.LOGGED_OUT

        assert await sync_loop.listen_over(result.since) is False
        assert sync_loop.cycles_started == 1

    @pytest.mark.asyncio
    async def test_no_restart_after_stop(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        replay(api, ("s1", []))
        await sync_loop.listen()
        result = await sync_loop.next_result()
        await sync_loop.stop()

        assert await sync_loop.listen_over(result.since) is False
        assert await store.get("_since") == "s1"
        assert sync_loop.cycles_started == 1

    @pytest.mark.asyncio
    async def test_listening_until_result_consumed(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        """Without run(), a finished cycle keeps the flag until its result is passed on."""
        await log_in(sessions, store)
        replay(api, ("s1", []))
        await sync_loop.listen()
        result = await sync_loop.next_result()

        assert sync_loop.listening is True
        sessions.session.state = SessionState.LOGGED_OUT
        await sync_loop.listen_over(result.since)
        assert sync_loop.listening is False

    @pytest.mark.asyncio
    async def test_failed_cycle_yields_empty_result(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        api.sync.side_effect = RuntimeError("boom")
        await sync_loop.listen()
        assert await sync_loop.next_result() == SyncResult()


class TestRun:
    """Driving cycles until one fails."""

    @pytest.mark.asyncio
    async def test_runs_until_failure(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        replies = [("s1", [HELLO]), ("s2", []), None]

        async def fake_sync(*args):
            return replies.pop(0)

        api.sync.side_effect = fake_sync
        received: list[tuple[ChatMessage, ...]] = []

        async def collect(messages: tuple[ChatMessage, ...]) -> None:
            received.append(messages)

        sync_loop.add_callback(collect)
        await sync_loop.run()

        assert received == [(HELLO,)]
        assert sync_loop.cycles_started == 3
        assert sync_loop.listening is False
        assert await store.get("_since") == "s2"
        assert [c.args[2] for c in api.sync.await_args_list] == ["", "s1", "s2"]

    @pytest.mark.asyncio
    async def test_callback_error_does_not_stop_loop(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        replies = [("s1", [HELLO]), ("s2", [HELLO]), None]

        async def fake_sync(*args):
            return replies.pop(0)

        async def broken(messages: tuple[ChatMessage, ...]) -> None:
            raise ValueError("bad handler")

        api.sync.side_effect = fake_sync
        sync_loop.add_callback(broken)
        await sync_loop.run()

        assert await store.get("_since") == "s2"

    @pytest.mark.asyncio
    async def test_returns_when_listen_fails(self, sync_loop: SyncLoop, api: AsyncMock) -> None:
        await sync_loop.run()
        assert sync_loop.cycles_started == 0

    @pytest.mark.asyncio
    async def test_stop_ends_run(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        started = replay(api, ("s1", []))
        runner = asyncio.create_task(sync_loop.run())
        await started.wait()

        await sync_loop.stop()
        await asyncio.wait_for(runner, timeout=5)

        assert sync_loop.listening is False
        assert sync_loop.cycles_started == 2
        assert await store.get("_since") == "s1"


class TestStop:
    @pytest.mark.asyncio
    async def test_cancels_in_flight_cycle(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        started = replay(api)
        await sync_loop.listen()
        await started.wait()

        await sync_loop.stop()

        assert sync_loop.listening is False
        assert await store.get("_since") is None

    @pytest.mark.asyncio
    async def test_stop_when_idle(self, sync_loop: SyncLoop) -> None:
        await sync_loop.stop()
        assert sync_loop.listening is False

    @pytest.mark.asyncio
    async def test_listen_after_stop(
        self, sync_loop: SyncLoop, sessions: SessionManager, store: ConfigStore, api: AsyncMock
    ) -> None:
        await log_in(sessions, store)
        replay(api)
        await sync_loop.listen()
        await sync_loop.stop()

        assert await sync_loop.listen() is True
        assert sync_loop.cycles_started == 2
        await sync_loop.stop()
