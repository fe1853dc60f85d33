"""Bridge from the standard logging module to a LogStoragePort.

Pipeline health (rejected config keys, failed reads, dropped rates) is logged
through ``logging``; attaching a RatePipeHandler to the ``ratepipe`` logger
makes it readable from the /logs endpoint.
"""

import logging
import traceback

from ratepipe.core.models import LogEntry
from ratepipe.core.ports import LogStoragePort

AttributeValue = str | int | float | bool

# Everything a bare LogRecord carries; anything else came in through extra=
_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

_DEFAULT_INCLUDE_ATTRS = ("logger", "funcName", "lineno")


def _record_attribute(record: logging.LogRecord, name: str) -> AttributeValue | None:
    if name == "logger":
        return record.name
    if name == "funcName":
        return record.funcName or ""
    if name in ("lineno", "pathname", "module", "threadName"):
        return getattr(record, name)
    return None


def _exception_attributes(record: logging.LogRecord) -> dict[str, AttributeValue]:
    if not record.exc_info:
        return {}
    exc_type, exc_value, exc_tb = record.exc_info
    attributes: dict[str, AttributeValue] = {}
    if exc_type is not None:
        attributes["exc_type"] = exc_type.__name__
    if exc_value is not None:
        attributes["exc_message"] = str(exc_value)
    if exc_tb is not None:
        attributes["exc_traceback"] = "".join(
            traceback.format_exception(exc_type, exc_value, exc_tb)
        )
    return attributes


class RatePipeHandler(logging.Handler):
    """Logging handler that stores records as LogEntry objects.

    Writes go through ``write_sync``, so the handler can be used from the
    daemon's read thread, from producer threads and from a running event
    loop alike.

    Args:
        storage: Storage adapter implementing LogStoragePort.
        include_attrs: Record attributes copied into every entry, among
            "logger", "funcName", "lineno", "pathname", "module" and
            "threadName". Defaults to logger, funcName and lineno.
        level: Minimum level handled.

    Example:
        ```python
        storage = InMemoryLogStorage()
        logging.getLogger("ratepipe").addHandler(RatePipeHandler(storage))
        ```
    """

    def __init__(
        self,
        storage: LogStoragePort,
        include_attrs: list[str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self._storage = storage
        self._include_attrs = tuple(include_attrs or _DEFAULT_INCLUDE_ATTRS)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._storage.write_sync(self.to_entry(record))
        except Exception:
            self.handleError(record)

    def to_entry(self, record: logging.LogRecord) -> LogEntry:
        """Convert a record, with its extra= fields and exception info."""
        attributes: dict[str, AttributeValue] = {}
        for name in self._include_attrs:
            value = _record_attribute(record, name)
            if value is not None:
                attributes[name] = value
        # e.g. extra={"plugin": "rate", "error_code": "unknown_key"}
        attributes.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS and isinstance(value, (str, int, float, bool))
        )
        attributes.update(_exception_attributes(record))
        return LogEntry(
            timestamp=record.created,
            level=record.levelname,
            message=record.getMessage(),
            attributes=attributes,
        )
