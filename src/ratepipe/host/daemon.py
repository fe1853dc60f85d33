"""In-process collection host driving the rate plugins.

The daemon owns the series history, the data set registry, the filter chain
and the registered plugin callbacks. Producers call ``dispatch`` from any
thread; a background thread calls every read callback once per interval.
"""

import dataclasses
import logging
import threading
import time
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any, Protocol

from ratepipe.adapters.history import InMemorySeriesHistory
from ratepipe.core.errors import (
    RatePipeError,
    UnknownConfigKeyError,
    UnknownTypeError,
    UnsupportedSlotKindError,
)
from ratepipe.core.models import DataSet, ValueList
from ratepipe.host.registry import DataSetRegistry
from ratepipe.plugins.rate_target import TargetResult

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 10.0

timer = time.monotonic

ConfigCallback = Callable[[str, str], int]
ReadCallback = Callable[[], int]
WriteCallback = Callable[[DataSet, ValueList, Any], int]
LifecycleCallback = Callable[[], int]
SourceTag = Callable[[], str]


class Target(Protocol):
    """Filter chain target contract."""

    def create(self, config: Mapping[str, str] | None = None) -> Any: ...

    def invoke(
        self, data_set: DataSet, value_list: ValueList, handle: Any
    ) -> TargetResult: ...

    def destroy(self, handle: Any) -> None: ...


@dataclasses.dataclass
class _ChainLink:
    name: str
    target: Target
    handle: Any


class Daemon:
    """Collection host: routes dispatched value lists and schedules reads.

    Args:
        registry: Data sets by type name; defaults to DataSetRegistry().
        history: Series history fed by every dispatch.
        interval: Seconds between read ticks of the background thread.
        history_max_age: Forget series silent for this many seconds
            (checked once per tick). None keeps them forever.
    """

    def __init__(
        self,
        registry: DataSetRegistry | None = None,
        history: InMemorySeriesHistory | None = None,
        interval: float = DEFAULT_INTERVAL,
        history_max_age: float | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Invalid interval={interval!r}")
        self.registry = registry if registry is not None else DataSetRegistry()
        self.history = history if history is not None else InMemorySeriesHistory()
        self.interval = interval
        self.history_max_age = history_max_age
        self._config: dict[str, ConfigCallback] = {}
        self._init: dict[str, LifecycleCallback] = {}
        self._read: dict[str, ReadCallback] = {}
        self._write: dict[str, tuple[WriteCallback, Any]] = {}
        self._shutdown: dict[str, LifecycleCallback] = {}
        self._targets: dict[str, Target] = {}
        self._chain: list[_ChainLink] = []
        self._chain_bypass: dict[str, SourceTag] = {}
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # --- Registration ---

    def register_config(self, name: str, callback: ConfigCallback) -> None:
        self._config[name] = callback

    def register_init(self, name: str, callback: LifecycleCallback) -> None:
        self._init[name] = callback

    def register_read(self, name: str, callback: ReadCallback) -> None:
        self._read[name] = callback

    def register_write(
        self, name: str, callback: WriteCallback, user_data: Any = None
    ) -> None:
        self._write[name] = (callback, user_data)

    def register_shutdown(self, name: str, callback: LifecycleCallback) -> None:
        self._shutdown[name] = callback

    def register_target(self, name: str, target: Target) -> None:
        self._targets[name] = target

    def chain_append(self, name: str, config: Mapping[str, str] | None = None) -> None:
        """Append an instance of the registered target ``name`` to the filter chain.

        Raises:
            KeyError: No target of that name is registered.
        """
        target = self._targets[name]
        handle = target.create(config)
        self._chain.append(_ChainLink(name=name, target=target, handle=handle))

    def register_chain_bypass(self, name: str, tag: SourceTag) -> None:
        """Send value lists tagged ``tag()`` straight to the writers.

        ``tag`` is called on every dispatch, so a plugin may rename its
        namespace after registering.
        """
        self._chain_bypass[name] = tag

    # --- Configuration ---

    def configure(self, plugin: str, key: str, value: str) -> int:
        """Pass one key/value pair to a plugin's config callback.

        Raises:
            KeyError: ``plugin`` registered no config callback.
            UnknownConfigKeyError: The plugin does not recognise ``key``.
        """
        return self._config[plugin](key, value)

    def load_config(self, options: Mapping[str, Mapping[str, str]]) -> int:
        """Configure several plugins, logging every rejected key.

        Args:
            options: Key/value pairs by plugin name.

        Returns:
            Number of keys that were rejected.
        """
        rejected = 0
        for plugin, pairs in options.items():
            for key, value in pairs.items():
                try:
                    self.configure(plugin, key, value)
                except UnknownConfigKeyError as exc:
                    logger.warning(
                        "Plugin %s: %s",
                        plugin,
                        exc.message,
                        extra={"plugin": plugin, "error_code": exc.error_code},
                    )
                    rejected += 1
                except (KeyError, ValueError) as exc:
                    logger.warning("Plugin %s: cannot apply %s: %s", plugin, key, exc)
                    rejected += 1
        return rejected

    # --- Data path ---

    def dispatch(self, value_list: ValueList, data_set: DataSet | None = None) -> None:
        """Route one value list through history, filter chain and writers.

        The caller's value list is not modified. A value list without a
        timestamp (``time`` 0) is stamped with the current time.

        Raises:
            UnknownTypeError: No data set is registered for ``value_list.type``
                and none was given.
            ValueError: The number of values does not match the data set.
        """
        if data_set is None:
            data_set = self.registry.get(value_list.type)
            if data_set is None:
                raise UnknownTypeError(
                    f"No data set registered for type {value_list.type!r}",
                    details={"series": str(value_list.identity)},
                )
        if len(value_list.values) != len(data_set):
            raise ValueError(
                f"{value_list.identity}: {len(value_list.values)} values for "
                f"{len(data_set)} data sources"
            )
        value_list = dataclasses.replace(
            value_list,
            values=list(value_list.values),
            time=value_list.time or time.time(),
        )
        try:
            self.history.observe(data_set, value_list)
        except UnsupportedSlotKindError as exc:
            logger.error(
                "Bad data source for %s: %s",
                value_list.identity,
                exc.message,
                extra={
                    "series": str(value_list.identity),
                    "error_code": exc.error_code,
                },
            )

        chain = [] if self._bypasses_chain(value_list) else list(self._chain)
        for link in chain:
            try:
                result = link.target.invoke(data_set, value_list, link.handle)
            except Exception:
                logger.exception(
                    "Target %s failed on %s", link.name, value_list.identity
                )
                return
            if result is TargetResult.STOP:
                return

        for name, (callback, user_data) in list(self._write.items()):
            try:
                callback(data_set, value_list, user_data)
            except RatePipeError as exc:
                logger.error(
                    "Write callback %s failed: %s",
                    name,
                    exc.message,
                    extra={"plugin": name, "error_code": exc.error_code},
                )
            except Exception:
                logger.exception("Write callback %s failed", name)

    def _bypasses_chain(self, value_list: ValueList) -> bool:
        return any(tag() == value_list.plugin for tag in self._chain_bypass.values())

    def read_all(self) -> dict[str, int | Exception]:
        """Call every read callback once.

        Returns:
            Result of each callback by plugin name; the exception raised
            instead of a result for callbacks that failed.
        """
        results: dict[str, int | Exception] = {}
        for name, callback in list(self._read.items()):
            try:
                results[name] = callback()
            except RatePipeError as exc:
                logger.error(
                    "Read callback %s failed: %s",
                    name,
                    exc.message,
                    extra={"plugin": name, "error_code": exc.error_code},
                )
                results[name] = exc
            except Exception as exc:
                logger.exception("Read callback %s failed", name)
                results[name] = exc
        return results

    # --- Lifecycle ---

    def init(self) -> None:
        """Run every init callback."""
        for name, callback in list(self._init.items()):
            try:
                callback()
            except Exception:
                logger.exception("Init callback %s failed", name)

    def start(self) -> None:
        """Run init callbacks and start the background read thread."""
        if self._thread is not None:
            return
        self.init()
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="ratepipe-read", daemon=True
        )
        self._thread.start()
        logger.info("Daemon started with interval %.1fs", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        """Stop the read thread, destroy chain targets and run shutdown callbacks."""
        thread, self._thread = self._thread, None
        self._stop.set()
        if thread is not None:
            thread.join(timeout)
        for link in self._chain:
            link.target.destroy(link.handle)
        self._chain.clear()
        for name, callback in list(self._shutdown.items()):
            try:
                callback()
            except Exception:
                logger.exception("Shutdown callback %s failed", name)
        logger.info("Daemon stopped")

    def _run(self) -> None:
        next_tick = timer() + self.interval
        while not self._stop.is_set():
            self.read_all()
            if self.history_max_age is not None:
                self.history.expire(self.history_max_age)
            self._stop.wait(max(0.0, next_tick - timer()))
            next_tick += self.interval

    def __enter__(self) -> "Daemon":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.stop()
