"""Port interfaces for the rate pipeline.

These protocols define the contracts the core depends on. The transform and
the plugins only talk to these interfaces, never to concrete adapters.
"""

from collections.abc import AsyncIterable
from typing import Protocol, runtime_checkable

from ratepipe.core.models import DataSet, LogEntry, ValueList


@runtime_checkable
class RateSourcePort(Protocol):
    """Port for history-based rate lookups.

    Examples: InMemorySeriesHistory.
    """

    def rate_of(self, data_set: DataSet, value_list: ValueList) -> list[float] | None:
        """Return one rate per slot for the value list's series.

        Returns:
            Per-slot rates aligned with ``data_set``, or None when the series
            has no history. Individual slots may be NaN.
        """
        ...


@runtime_checkable
class DispatchPort(Protocol):
    """Port for forwarding finished value lists to the output layer."""

    def dispatch(self, value_list: ValueList, data_set: DataSet | None = None) -> None:
        """Forward a value list.

        Args:
            value_list: The observation to forward.
            data_set: Schema to use instead of the one registered for
                ``value_list.type``.
        """
        ...


@runtime_checkable
class ValueStoragePort(Protocol):
    """Port for value list storage operations.

    Examples: InMemoryValueStorage, SQLiteValueStorage.
    """

    async def write(self, value_list: ValueList) -> None:
        """Write a value list to storage."""
        ...

    def read(self, since: float = 0) -> AsyncIterable[ValueList]:
        """Read value lists with time > since, ordered by time ascending."""
        ...

    def write_sync(self, value_list: ValueList) -> None:
        """Synchronous write for threads without an event loop."""
        ...

    def read_sync(self, since: float = 0) -> list[ValueList]:
        """Synchronous read for threads without an event loop."""
        ...


@runtime_checkable
class LogStoragePort(Protocol):
    """Port for log storage operations.

    Examples: InMemoryLogStorage.
    """

    async def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        ...

    def write_sync(self, entry: LogEntry) -> None:
        """Synchronous write for logging handlers and host threads."""
        ...

    def read(
        self, since: float = 0, level: str | None = None
    ) -> AsyncIterable[LogEntry]:
        """Read log entries since the given timestamp.

        Args:
            since: Unix timestamp. Returns entries with timestamp > since.
            level: Optional level filter (e.g., "ERROR").

        Returns:
            Async iterable of LogEntry objects, ordered by timestamp ascending.
        """
        ...
