"""Namespaced key/value settings repository."""
import aiosqlite
from datetime import datetime, timezone
from typing import Mapping, Optional

from src.state.models.entry import ConfigEntry


class SettingsRepository:
    """Reads and writes raw setting values inside one namespace.

    Every mutating call commits before returning, so a value reported
    as written is durable. ``apply`` groups several writes and deletes
    into a single transaction.
    """

    def __init__(self, conn: aiosqlite.Connection, namespace: str) -> None:
        if not namespace:
            raise ValueError("namespace cannot be empty")
        self._conn = conn
        self._namespace = namespace

    @property
    def namespace(self) -> str:
        return self._namespace

    async def namespace_exists(self) -> bool:
        cursor = await self._conn.execute(
            "SELECT 1 FROM namespaces WHERE name = ?", (self._namespace,)
        )
        return await cursor.fetchone() is not None

    async def ensure_namespace(self) -> bool:
        """Create the namespace if it is missing.

        Returns:
            True if the namespace was created by this call.
        """
        if await self.namespace_exists():
            return False
        await self._conn.execute(
            "INSERT OR IGNORE INTO namespaces (name, created_at) VALUES (?, ?)",
            (self._namespace, _now()),
        )
        await self._conn.commit()
        return True

    async def write(self, key: str, value: bytes) -> None:
        await self._write(key, value)
        await self._conn.commit()

    async def read(self, key: str) -> Optional[bytes]:
        entry = await self.get_entry(key)
        return entry.value if entry is not None else None

    async def get_entry(self, key: str) -> Optional[ConfigEntry]:
        cursor = await self._conn.execute(
            "SELECT * FROM settings WHERE namespace = ? AND key = ?",
            (self._namespace, key),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    async def exists(self, key: str) -> bool:
        cursor = await self._conn.execute(
            "SELECT 1 FROM settings WHERE namespace = ? AND key = ?",
            (self._namespace, key),
        )
        return await cursor.fetchone() is not None

    async def delete(self, key: str) -> bool:
        """Remove a key.

        Returns:
            True if a value was deleted.
        """
        deleted = await self._delete(key)
        await self._conn.commit()
        return deleted

    async def apply(self, changes: Mapping[str, Optional[bytes]]) -> None:
        """Write and delete several keys in one transaction.

        Args:
            changes: Key to new value; ``None`` deletes the key.
        """
        try:
            for key, value in changes.items():
                if value is None:
                    await self._delete(key)
                else:
                    await self._write(key, value)
        except Exception:
            await self._conn.rollback()
            raise
        await self._conn.commit()

    async def list_entries(self) -> list[ConfigEntry]:
        cursor = await self._conn.execute(
            "SELECT * FROM settings WHERE namespace = ? ORDER BY key",
            (self._namespace,),
        )
        return [self._row_to_entry(r) for r in await cursor.fetchall()]

    async def _write(self, key: str, value: bytes) -> None:
        await self._conn.execute(
            "INSERT OR REPLACE INTO settings (namespace, key, value, updated_at) "
            "VALUES (?, ?, ?, ?)",
            (self._namespace, key, value, _now()),
        )

    async def _delete(self, key: str) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM settings WHERE namespace = ? AND key = ?",
            (self._namespace, key),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> ConfigEntry:
        return ConfigEntry(
            namespace=row["namespace"],
            key=row["key"],
            value=bytes(row["value"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
