"""ChatClient wires the store, session, resolvers and sync loop together."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from src.client import DEFAULT_DOMAIN, DEFAULT_SCHEME, LONG_POLL_TIMEOUT_MS, MatrixApi, Transport
from src.chat.filters import FilterResolver
from src.chat.prompt import FormPrompt
from src.chat.rooms import RoomResolver
from src.chat.session import Session, SessionManager
from src.chat.sync import MessageCallback, SyncLoop
from src.state import DEFAULT_NAMESPACE, ConfigStore, DatabaseManager

logger = logging.getLogger(__name__)


class ChatClient:
    """Session and incremental-sync engine for one account and one room.

    Must be used as an async context manager: entering initializes the
    database, creates the store namespace, loads the cached session and
    opens the HTTP transport.
    """

    def __init__(self, db: DatabaseManager, transport: Transport, namespace: str = DEFAULT_NAMESPACE,
                 default_domain: str = DEFAULT_DOMAIN, scheme: str = DEFAULT_SCHEME,
                 sync_timeout_ms: int = LONG_POLL_TIMEOUT_MS,
                 network_available: Optional[Callable[[], bool]] = None) -> None:
        self._db = db
        self._transport = transport
        self._store = ConfigStore(db, namespace)
        self._sessions = SessionManager(self._store, MatrixApi(transport), Session(default_domain=default_domain),
                                        scheme=scheme)
        self._rooms = RoomResolver(self._sessions)
        self._filters = FilterResolver(self._sessions)
        self._sync = SyncLoop(self._sessions, self._rooms, self._filters, sync_timeout_ms, network_available)

    @property
    def store(self) -> ConfigStore:
        return self._store

    @property
    def session(self) -> Session:
        return self._sessions.session

    @property
    def sessions(self) -> SessionManager:
        return self._sessions

    @property
    def rooms(self) -> RoomResolver:
        return self._rooms

    @property
    def filters(self) -> FilterResolver:
        return self._filters

    @property
    def sync(self) -> SyncLoop:
        return self._sync

    async def __aenter__(self) -> "ChatClient":
        await self._db.initialize()
        await self._store.open()
        await self._sessions.reload()
        await self._transport.__aenter__()
        return self

    async def __aexit__(self, *args) -> None:
        await self._sync.stop()
        await self._transport.__aexit__(*args)

    async def login(self) -> bool:
        return await self._sessions.login()

    async def logout(self) -> bool:
        return await self._sessions.logout()

    async def edit_credentials(self, prompt: FormPrompt) -> bool:
        return await self._sessions.edit_credentials(prompt)

    async def edit_room(self, prompt: FormPrompt) -> bool:
        return await self._rooms.edit_room(prompt)

    async def set_room(self, name: str, domain: str) -> bool:
        return await self._rooms.set_room(name, domain)

    async def listen(self) -> bool:
        return await self._sync.listen()

    async def run(self, on_messages: Optional[MessageCallback] = None) -> None:
        """Sync until a cycle ends without restarting or :meth:`SyncLoop.stop` is called."""
        if on_messages is not None:
            self._sync.add_callback(on_messages)
        await self._sync.run()
