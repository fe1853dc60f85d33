"""Unit tests for the RatePipeHandler logging adapter."""

import logging
import sys

import pytest

from ratepipe.adapters.logging import RatePipeHandler
from ratepipe.adapters.storage.in_memory import InMemoryLogStorage
from ratepipe.core.models import LogEntry

pytestmark = pytest.mark.tier(1)


async def _collect_entries(storage: InMemoryLogStorage) -> list[LogEntry]:
    """Collect all entries from storage."""
    return [e async for e in storage.read()]


def _record(**overrides: object) -> logging.LogRecord:
    params: dict = {
        "name": "ratepipe.plugins.rate_writer",
        "level": logging.WARNING,
        "pathname": "/app/rate_writer.py",
        "lineno": 42,
        "msg": "Dropping rate for %s",
        "args": ("host1/cpuX/counter",),
        "exc_info": None,
        "func": "write",
    }
    params.update(overrides)
    return logging.LogRecord(**params)


@pytest.mark.core
class TestRatePipeHandler:
    """Tests for RatePipeHandler."""

    def test_handler_is_logging_handler(self) -> None:
        """Handler extends logging.Handler."""
        assert isinstance(RatePipeHandler(InMemoryLogStorage()), logging.Handler)

    async def test_emit_writes_log_entry(self) -> None:
        """emit() writes a formatted LogEntry to storage."""
        storage = InMemoryLogStorage()

        RatePipeHandler(storage).emit(_record())

        entries = await _collect_entries(storage)
        assert len(entries) == 1
        assert entries[0].message == "Dropping rate for host1/cpuX/counter"
        assert entries[0].level == "WARNING"

    async def test_default_attributes(self) -> None:
        """logger, funcName and lineno are extracted by default."""
        storage = InMemoryLogStorage()

        RatePipeHandler(storage).emit(_record())

        attributes = (await _collect_entries(storage))[0].attributes
        assert attributes["logger"] == "ratepipe.plugins.rate_writer"
        assert attributes["funcName"] == "write"
        assert attributes["lineno"] == 42
        assert "pathname" not in attributes

    async def test_custom_include_attrs(self) -> None:
        """include_attrs selects the extracted attributes."""
        storage = InMemoryLogStorage()

        RatePipeHandler(storage, include_attrs=["pathname"]).emit(_record())

        attributes = (await _collect_entries(storage))[0].attributes
        assert attributes == {"pathname": "/app/rate_writer.py"}

    async def test_includes_extra_attributes(self) -> None:
        """Fields passed through extra= become attributes."""
        storage = InMemoryLogStorage()
        logger = logging.getLogger("test.ratepipe.extra")
        logger.addHandler(RatePipeHandler(storage))
        logger.propagate = False
        try:
            logger.error(
                "rejected", extra={"plugin": "rate", "error_code": "unknown_key"}
            )
        finally:
            logger.handlers.clear()

        attributes = (await _collect_entries(storage))[0].attributes
        assert attributes["plugin"] == "rate"
        assert attributes["error_code"] == "unknown_key"

    async def test_exception_info(self) -> None:
        """Exception type, message and traceback are recorded."""
        storage = InMemoryLogStorage()
        handler = RatePipeHandler(storage)
        try:
            raise RuntimeError("downstream unavailable")
        except RuntimeError:
            handler.emit(_record(level=logging.ERROR, exc_info=sys.exc_info()))

        attributes = (await _collect_entries(storage))[0].attributes
        assert attributes["exc_type"] == "RuntimeError"
        assert attributes["exc_message"] == "downstream unavailable"
        assert "Traceback" in attributes["exc_traceback"]

    def test_storage_failure_is_handled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A failing storage is reported through handleError, not raised."""

        class BrokenStorage(InMemoryLogStorage):
            def write_sync(self, entry: LogEntry) -> None:
                raise OSError("disk full")

        handled: list[logging.LogRecord] = []
        handler = RatePipeHandler(BrokenStorage())
        monkeypatch.setattr(handler, "handleError", handled.append)

        handler.emit(_record())

        assert len(handled) == 1
