"""In-memory storage adapters for value lists and logs."""

import threading
from collections import deque
from collections.abc import AsyncIterable

from ratepipe.core.models import LogEntry, ValueList


class InMemoryValueStorage:
    """In-memory implementation of ValueStoragePort.

    Stores value lists in a buffer guarded by a lock, so host threads can
    write while an event loop reads. With ``max_size`` set, the buffer is a
    ring: the oldest value list is evicted when a new one arrives.

    Args:
        max_size: Maximum number of value lists to keep; None is unbounded.
    """

    def __init__(self, max_size: int | None = None) -> None:
        self._buffer: deque[ValueList] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    def _since(self, since: float) -> list[ValueList]:
        with self._lock:
            filtered = [v for v in self._buffer if v.time > since]
        return sorted(filtered, key=lambda v: v.time)

    async def write(self, value_list: ValueList) -> None:
        """Write a value list to storage."""
        self.write_sync(value_list)

    async def read(self, since: float = 0) -> AsyncIterable[ValueList]:
        """Read value lists with time > since, ordered by time ascending."""
        for value_list in self._since(since):
            yield value_list

    def write_sync(self, value_list: ValueList) -> None:
        with self._lock:
            self._buffer.append(value_list)

    def read_sync(self, since: float = 0) -> list[ValueList]:
        return self._since(since)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)


class InMemoryLogStorage:
    """In-memory implementation of LogStoragePort.

    Stores log entries in a list. Suitable for testing and
    low-volume applications where persistence is not required.
    """

    def __init__(self, max_size: int | None = None) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=max_size)
        self._lock = threading.Lock()

    async def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        self.write_sync(entry)

    def write_sync(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    async def read(
        self, since: float = 0, level: str | None = None
    ) -> AsyncIterable[LogEntry]:
        """Read log entries since the given timestamp.

        Returns entries with timestamp > since, ordered by timestamp ascending,
        optionally restricted to one level.
        """
        with self._lock:
            filtered = [
                e
                for e in self._entries
                if e.timestamp > since and (level is None or e.level == level)
            ]
        for entry in sorted(filtered, key=lambda e: e.timestamp):
            yield entry
