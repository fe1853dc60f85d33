"""SQLite storage adapter for value lists."""

import json
import sqlite3
from collections.abc import AsyncIterable
from typing import Any

import aiosqlite

from ratepipe.adapters.storage.sqlite_base import (
    MEMORY_DB,
    AsyncConnectionManager,
    SyncConnectionManager,
    shared_memory_uri,
)
from ratepipe.core.models import ValueList

_VALUES_SCHEMA = """
CREATE TABLE IF NOT EXISTS value_lists (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    host TEXT NOT NULL,
    plugin TEXT NOT NULL,
    plugin_instance TEXT NOT NULL DEFAULT '',
    type TEXT NOT NULL,
    type_instance TEXT NOT NULL DEFAULT '',
    timestamp REAL NOT NULL,
    interval_seconds REAL NOT NULL,
    vals TEXT NOT NULL,
    meta TEXT
);
CREATE INDEX IF NOT EXISTS idx_value_lists_timestamp ON value_lists(timestamp);
"""

_INSERT_VALUES = """
INSERT INTO value_lists (
    host, plugin, plugin_instance, type, type_instance,
    timestamp, interval_seconds, vals, meta
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_VALUES_SINCE = """
SELECT host, plugin, plugin_instance, type, type_instance,
       timestamp, interval_seconds, vals, meta
FROM value_lists
WHERE timestamp > ?
ORDER BY timestamp ASC, id ASC
"""

_COUNT_VALUES = "SELECT COUNT(*) FROM value_lists"

_DELETE_VALUES_BEFORE = "DELETE FROM value_lists WHERE timestamp < ?"

_CLEAR_VALUES = "DELETE FROM value_lists"


def _to_row(value_list: ValueList) -> tuple[Any, ...]:
    return (
        value_list.host,
        value_list.plugin,
        value_list.plugin_instance,
        value_list.type,
        value_list.type_instance,
        value_list.time,
        value_list.interval,
        json.dumps(value_list.values),
        json.dumps(value_list.meta) if value_list.meta is not None else None,
    )


def _from_row(row: sqlite3.Row | aiosqlite.Row | tuple[Any, ...]) -> ValueList:
    return ValueList(
        host=row[0],
        plugin=row[1],
        plugin_instance=row[2],
        type=row[3],
        type_instance=row[4],
        time=row[5],
        interval=row[6],
        values=json.loads(row[7]),
        meta=json.loads(row[8]) if row[8] is not None else None,
    )


# @tra: Adapter.SQLiteStorage.ImplementsValueStoragePort
class SQLiteValueStorage:
    """SQLite implementation of ValueStoragePort.

    Async methods use aiosqlite; the ``*_sync`` methods use the standard
    sqlite3 module for host threads without an event loop. File databases
    run in WAL mode. Both sides always see the same rows; a :memory:
    storage is private to its instance and lives until ``close``.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        database = shared_memory_uri() if db_path == MEMORY_DB else db_path
        self._async_manager = AsyncConnectionManager(database, _VALUES_SCHEMA)
        self._sync_manager = SyncConnectionManager(database, _VALUES_SCHEMA)

    async def write(self, value_list: ValueList) -> None:
        """Write a value list to storage."""
        async with self._async_manager.connection() as db:
            await db.execute(_INSERT_VALUES, _to_row(value_list))
            await db.commit()

    async def read(self, since: float = 0) -> AsyncIterable[ValueList]:
        """Read value lists with time > since, ordered by time ascending."""
        async with self._async_manager.connection() as db:
            async with db.execute(_SELECT_VALUES_SINCE, (since,)) as cursor:
                async for row in cursor:
                    yield _from_row(row)

    async def count(self) -> int:
        """Return total number of value lists in storage."""
        async with self._async_manager.connection() as db:
            async with db.execute(_COUNT_VALUES) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def delete_before(self, timestamp: float) -> int:
        """Delete value lists with time < given value; returns how many."""
        async with self._async_manager.connection() as db:
            cursor = await db.execute(_DELETE_VALUES_BEFORE, (timestamp,))
            deleted = cursor.rowcount
            await db.commit()
            return deleted

    async def clear(self) -> None:
        """Clear all value lists from storage."""
        async with self._async_manager.connection() as db:
            await db.execute(_CLEAR_VALUES)
            await db.commit()

    async def close(self) -> None:
        """Close persistent connections; a :memory: database is discarded."""
        await self._async_manager.close()
        self._sync_manager.close()

    # --- Sync methods using standard sqlite3 module ---

    def write_sync(self, value_list: ValueList) -> None:
        """Synchronous write for host threads."""
        with self._sync_manager.connection() as conn:
            conn.execute(_INSERT_VALUES, _to_row(value_list))
            conn.commit()

    def read_sync(self, since: float = 0) -> list[ValueList]:
        """Synchronous read for host threads and tests."""
        with self._sync_manager.connection() as conn:
            cursor = conn.execute(_SELECT_VALUES_SINCE, (since,))
            return [_from_row(row) for row in cursor]

    def clear_sync(self) -> None:
        """Synchronous clear for host threads and tests."""
        with self._sync_manager.connection() as conn:
            conn.execute(_CLEAR_VALUES)
            conn.commit()
