"""Namespaced configuration store with a reserved-key policy.

Values are written durably through :class:`SettingsRepository` before any
registered change listener runs, so in-memory caches built on top of the
store may lag behind it after a crash but never get ahead of it.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Mapping, Optional, Union

import aiosqlite

from src.state.database import DatabaseError, DatabaseManager, DatabaseNotInitializedError
from src.state.repositories.settings import SettingsRepository

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "__"
DEFAULT_NAMESPACE = "mtxchat"

SENSITIVE_KEYS = frozenset(("password", "_token"))

Value = Union[str, bytes]
ChangeListener = Callable[[str, Optional[str]], None]


class ConfigStoreError(DatabaseError):
    """Error reading or writing the configuration store."""


class PermissionDeniedError(ConfigStoreError):
    """Attempted to change a key in the reserved namespace."""

    def __init__(self, key: str, action: str = "set") -> None:
        super().__init__(f"may not {action} a variable beginning with {RESERVED_PREFIX}: {key!r}")
        self.key = key
        self.action = action


def is_reserved(key: str) -> bool:
    return key.startswith(RESERVED_PREFIX)


def redact(key: str, value: Optional[str]) -> Optional[str]:
    """Mask values of secret keys for logging."""
    if value is None or key.lower() not in SENSITIVE_KEYS:
        return value
    return "[REDACTED]"


class ConfigStore:
    """Persistent key/value accessor scoped to one namespace."""

    def __init__(self, db: DatabaseManager, namespace: str = DEFAULT_NAMESPACE) -> None:
        if not namespace:
            raise ConfigStoreError("namespace cannot be empty")
        self._db = db
        self._namespace = namespace
        self._listeners: list[ChangeListener] = []
        self._lock = asyncio.Lock()
        self._opened = False

    @property
    def namespace(self) -> str:
        return self._namespace

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a callback run with ``(key, value)`` after every durable change.

        ``value`` is None when the key was removed.
        """
        self._listeners.append(listener)

    async def open(self) -> None:
        """Create the backing namespace if it does not exist yet."""
        async with self._repository():
            pass

    async def set(self, key: str, value: Value) -> None:
        """Store ``value`` under ``key``.

        Raises:
            PermissionDeniedError: If ``key`` starts with the reserved prefix.
        """
        if is_reserved(key):
            raise PermissionDeniedError(key, "set")
        raw = _to_bytes(value)
        text = _to_text(raw)
        logger.info("set '%s' = '%s'", key, redact(key, text))
        async with self._lock:
            async with self._repository() as repo:
                await repo.write(key, raw)
            self._notify(key, text)

    async def unset(self, key: str) -> None:
        """Remove ``key``. Removing a missing key is not an error.

        Raises:
            PermissionDeniedError: If ``key`` starts with the reserved prefix.
        """
        if is_reserved(key):
            raise PermissionDeniedError(key, "unset")
        logger.info("unset '%s'", key)
        async with self._lock:
            async with self._repository() as repo:
                if await repo.delete(key):
                    logger.info("%s:%s existed, deleted it", self._namespace, key)
            self._notify(key, None)

    async def update(self, values: Mapping[str, Optional[Value]]) -> None:
        """Apply several sets and unsets in one transaction.

        Either every change is stored or none is. ``None`` removes a key.

        Raises:
            PermissionDeniedError: If any key starts with the reserved prefix.
        """
        for key, value in values.items():
            if is_reserved(key):
                raise PermissionDeniedError(key, "unset" if value is None else "set")
        changes = {k: (None if v is None else _to_bytes(v)) for k, v in values.items()}
        logger.info(
            "update %s",
            {k: redact(k, None if v is None else _to_text(v)) for k, v in changes.items()},
        )
        async with self._lock:
            async with self._repository() as repo:
                await repo.apply(changes)
            for key, raw in changes.items():
                self._notify(key, None if raw is None else _to_text(raw))

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        raw = await self.get_bytes(key)
        return _to_text(raw) if raw is not None else None

    async def get_bytes(self, key: str) -> Optional[bytes]:
        async with self._repository() as repo:
            return await repo.read(key)

    async def get_or(self, key: str, default: str) -> str:
        """Return the stored value or ``default``. Read errors are logged, not raised."""
        try:
            value = await self.get(key)
        except (DatabaseError, OSError) as e:
            logger.info("error getting key %s: %s", key, e)
            return default
        return default if value is None else value

    async def set_logged(self, key: str, value: Value) -> bool:
        """Like :meth:`set` but logs failures and returns False instead of raising."""
        try:
            await self.set(key, value)
        except (DatabaseError, OSError) as e:
            logger.info("error setting key %s: %s", key, e)
            return False
        return True

    async def unset_logged(self, key: str) -> bool:
        """Like :meth:`unset` but logs failures and returns False instead of raising."""
        try:
            await self.unset(key)
        except (DatabaseError, OSError) as e:
            logger.info("error unsetting key %s: %s", key, e)
            return False
        return True

    async def items(self) -> dict[str, str]:
        """Return every stored key and value in the namespace."""
        async with self._repository() as repo:
            return {e.key: e.text for e in await repo.list_entries()}

    @asynccontextmanager
    async def _repository(self) -> AsyncIterator[SettingsRepository]:
        if not self._db.is_initialized:
            raise DatabaseNotInitializedError("Database not initialized")
        try:
            async with self._db.connection() as conn:
                repo = SettingsRepository(conn, self._namespace)
                if not self._opened:
                    if await repo.ensure_namespace():
                        logger.info("namespace '%s' did not exist, created it", self._namespace)
                    self._opened = True
                yield repo
        except aiosqlite.Error as e:
            raise ConfigStoreError(f"{self._namespace}: {e}") from e

    def _notify(self, key: str, value: Optional[str]) -> None:
        for listener in self._listeners:
            listener(key, value)


def _to_bytes(value: Value) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


# Values are stored as raw bytes; text views replace undecodable bytes.
def _to_text(raw: bytes) -> str:
    return raw.decode("utf-8", "replace")
