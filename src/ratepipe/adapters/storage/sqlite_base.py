"""SQLite connection managers shared by the storage adapters.

File databases are opened per operation and run in WAL mode, so host threads
(sqlite3) and the event loop (aiosqlite) can use one file side by side. An
in-memory database only lives as long as its connections, so each manager
keeps a single shared connection for it. Managers given the same
``shared_memory_uri()`` see one in-memory database.
"""

import asyncio
import sqlite3
import threading
import uuid
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager

import aiosqlite

MEMORY_DB = ":memory:"


def shared_memory_uri() -> str:
    """Name a new in-memory database open to every connection of the process."""
    return f"file:ratepipe-{uuid.uuid4().hex}?mode=memory&cache=shared"


def is_memory(db_path: str) -> bool:
    return db_path == MEMORY_DB or "mode=memory" in db_path


def _setup_script(db_path: str, schema: str) -> str:
    if is_memory(db_path):
        # Shared-cache readers take no table locks
        return "PRAGMA read_uncommitted = 1;\n" + schema
    return "PRAGMA journal_mode=WAL;\n" + schema


class AsyncConnectionManager:
    """aiosqlite connections with the schema created on first use."""

    def __init__(self, db_path: str, schema: str) -> None:
        self.db_path = db_path
        self._script = _setup_script(db_path, schema)
        self._uri = db_path.startswith("file:")
        self._ready = False
        # Created lazily: it must belong to the loop that first uses it
        self._setup_lock: asyncio.Lock | None = None
        self._shared: aiosqlite.Connection | None = None

    async def _setup(self) -> None:
        if self._ready:
            return
        if self._setup_lock is None:
            self._setup_lock = asyncio.Lock()
        async with self._setup_lock:
            if self._ready:
                return
            db = await aiosqlite.connect(self.db_path, uri=self._uri)
            try:
                await db.executescript(self._script)
            except BaseException:
                await db.close()
                raise
            if is_memory(self.db_path):
                self._shared = db
            else:
                await db.close()
            self._ready = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a ready connection; per-operation connections are closed after."""
        await self._setup()
        if self._shared is not None:
            yield self._shared
            return
        db = await aiosqlite.connect(self.db_path, uri=self._uri)
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        """Close the shared in-memory connection."""
        shared, self._shared = self._shared, None
        if shared is not None:
            self._ready = False
            await shared.close()


class SyncConnectionManager:
    """sqlite3 connections with the schema created on first use.

    The shared in-memory connection is used by one thread at a time.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self.db_path = db_path
        self._script = _setup_script(db_path, schema)
        self._uri = db_path.startswith("file:")
        self._ready = False
        self._lock = threading.RLock()
        self._shared: sqlite3.Connection | None = None

    def _setup(self) -> None:
        with self._lock:
            if self._ready:
                return
            if is_memory(self.db_path):
                self._shared = sqlite3.connect(
                    self.db_path, check_same_thread=False, uri=self._uri
                )
                self._shared.executescript(self._script)
            else:
                conn = sqlite3.connect(self.db_path, uri=self._uri)
                try:
                    conn.executescript(self._script)
                finally:
                    conn.close()
            self._ready = True

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a ready connection; per-operation connections are closed after."""
        self._setup()
        if self._shared is not None:
            with self._lock:
                yield self._shared
            return
        conn = sqlite3.connect(self.db_path, uri=self._uri)
        try:
            yield conn
        finally:
            conn.close()

    def close(self) -> None:
        """Close the shared in-memory connection."""
        with self._lock:
            shared, self._shared = self._shared, None
            self._ready = False
        if shared is not None:
            shared.close()
