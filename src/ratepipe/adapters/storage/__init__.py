"""Storage adapters implementing core ports."""

from ratepipe.adapters.storage.in_memory import (
    InMemoryLogStorage,
    InMemoryValueStorage,
)
from ratepipe.adapters.storage.sqlite import SQLiteValueStorage
from ratepipe.adapters.storage.writer import storage_writer

__all__ = [
    "InMemoryLogStorage",
    "InMemoryValueStorage",
    "SQLiteValueStorage",
    "storage_writer",
]
