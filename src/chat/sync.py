"""Background long-poll loop that advances the sync cursor.

Each cycle runs as one asyncio task working on an immutable
:class:`SyncRequest` snapshot. The task never touches the session; its
:class:`SyncResult` is queued and consumed by :meth:`SyncLoop.run`, which
is the only place cursor and listening state change.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from src.client import LONG_POLL_TIMEOUT_MS, ChatMessage
from src.chat.filters import FilterResolver
from src.chat.keys import SINCE_KEY
from src.chat.rooms import RoomResolver
from src.chat.session import SessionManager

logger = logging.getLogger(__name__)

MessageCallback = Callable[[tuple[ChatMessage, ...]], Awaitable[None]]


@dataclass(frozen=True)
class SyncRequest:
    """Everything a cycle needs, copied at spawn time."""
    server: str
    filter_id: str
    since: str
    timeout_ms: int
    room_id: str
    token: str


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one cycle. An empty ``since`` means the cycle failed or was cancelled."""
    since: str = ""
    messages: tuple[ChatMessage, ...] = ()

    @property
    def ok(self) -> bool:
        return bool(self.since)


class SyncLoop:
    """Runs at most one long-poll cycle at a time and restarts after each success."""

    def __init__(self, sessions: SessionManager, rooms: RoomResolver, filters: FilterResolver,
                 timeout_ms: int = LONG_POLL_TIMEOUT_MS,
                 network_available: Optional[Callable[[], bool]] = None) -> None:
        self._sessions = sessions
        self._rooms = rooms
        self._filters = filters
        self._timeout_ms = timeout_ms
        self._network_available = network_available or (lambda: True)
        self._results: asyncio.Queue[SyncResult] = asyncio.Queue()
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._callbacks: list[MessageCallback] = []
        self._running = False
        self._stopping = False
        self._cycles = 0

    @property
    def listening(self) -> bool:
        return self._sessions.session.listening

    @property
    def cycles_started(self) -> int:
        return self._cycles

    def add_callback(self, callback: MessageCallback) -> None:
        """Register a coroutine receiving the messages of every successful cycle."""
        self._callbacks.append(callback)

    async def listen(self) -> bool:
        """Resolve room and filter if needed and start one cycle.

        The cycle result is only consumed by :meth:`run` (or drained by
        :meth:`stop`), so the listening flag stays set until one of them
        processes it. Callers that do not use :meth:`run` must pass
        :meth:`next_result` to :meth:`listen_over` themselves.

        Returns:
            True if a cycle was started. False when already listening, not
            logged in, or room/filter resolution failed.
        """
        self._stopping = False
        return await self._start()

    async def _start(self) -> bool:
        async with self._lock:
            s = self._sessions.session
            if s.listening:
                logger.info("Already listening")
                return False
            if not s.logged_in:
                logger.info("Not logged in")
                return False
            if not s.room_id and not await self._rooms.get_room_id():
                return False
            if not s.filter_id and not await self._filters.get_filter():
                return False
            request = SyncRequest(
                server=self._sessions.server_url(s.room_domain),
                filter_id=s.filter_id,
                since=s.since,
                timeout_ms=self._timeout_ms,
                room_id=s.room_id,
                token=s.token,
            )
            s.listening = True
            self._cycles += 1
            logger.info("Started listening")
            self._task = asyncio.create_task(self._cycle(request), name="mtxchat-sync")
            self._task.add_done_callback(self._on_cycle_done)
            return True

    async def _cycle(self, request: SyncRequest) -> SyncResult:
        reply = await self._sessions.api.sync(
            request.server, request.filter_id, request.since, request.timeout_ms, request.room_id, request.token,
        )
        if reply is None:
            return SyncResult()
        since, messages = reply
        return SyncResult(since=since, messages=tuple(messages))

    def _on_cycle_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.info("sync cycle cancelled")
            result = SyncResult()
        elif task.exception() is not None:
            logger.warning("sync cycle failed: %r", task.exception())
            result = SyncResult()
        else:
            result = task.result()
        self._results.put_nowait(result)

    async def listen_over(self, since: str) -> bool:
        """Finish a cycle: persist a non-empty cursor and restart if still possible.

        An empty cursor means the cycle failed and never restarts the loop.

        Returns:
            True if a new cycle was started.
        """
        s = self._sessions.session
        s.listening = False
        logger.info("Stopped listening")
        if not since:
            return False
        await self._sessions.store.set_logged(SINCE_KEY, since)
        if self._stopping:
            return False
        if s.logged_in and self._network_available():
            return await self._start()
        return False

    async def next_result(self) -> SyncResult:
        """Wait for the next completed cycle."""
        return await self._results.get()

    async def run(self) -> None:
        """Drive cycles until one ends without restarting.

        Starts listening first when no cycle is in flight.
        """
        if not self.listening and not await self.listen():
            return
        self._running = True
        try:
            while self.listening:
                result = await self._results.get()
                if result.messages:
                    await self._dispatch(result.messages)
                await self.listen_over(result.since)
        finally:
            self._running = False

    async def stop(self) -> None:
        """Cancel the in-flight cycle. The loop ends instead of restarting."""
        self._stopping = True
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if not self._running:
            while not self._results.empty():
                await self.listen_over(self._results.get_nowait().since)

    async def _dispatch(self, messages: tuple[ChatMessage, ...]) -> None:
        for callback in self._callbacks:
            try:
                await callback(messages)
            except Exception:
                logger.exception("message callback failed")
