"""Rate writer: buffers rates of written value lists until the next read.

The host calls ``write`` for every dispatched value list and ``read`` on its
read interval, from independent threads. ``write`` computes the rate and
queues a private copy of it; ``read`` detaches everything queued so far and
dispatches it back to the host under the rate namespace.
"""

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ratepipe.core.errors import (
    NeverRegisteredError,
    NoRateAvailableError,
    ResourceExhaustedError,
)
from ratepipe.core.models import DataSet, ValueList
from ratepipe.core.ports import DispatchPort, RateSourcePort
from ratepipe.core.transform import RateTransform
from ratepipe.plugins.config import RateConfig

if TYPE_CHECKING:
    from ratepipe.host.daemon import Daemon

logger = logging.getLogger(__name__)


@dataclass
class PendingRate:
    """A rate value list waiting for the next read, with its gauge schema."""

    data_set: DataSet
    value_list: ValueList


class PendingRateQueue:
    """Lock-protected list of pending rates.

    Both operations hold the lock for O(1) work only; nothing is forwarded
    or logged while it is held.

    Args:
        max_pending: Maximum number of queued entries; 0 means unbounded.
    """

    def __init__(self, max_pending: int = 0) -> None:
        self.max_pending = max_pending
        self._entries: list[PendingRate] = []
        self._lock = threading.Lock()

    def push(self, entry: PendingRate) -> None:
        """Queue an entry.

        Raises:
            ResourceExhaustedError: The queue already holds ``max_pending``
                entries.
        """
        with self._lock:
            full = 0 < self.max_pending <= len(self._entries)
            if not full:
                self._entries.append(entry)
        if full:
            raise ResourceExhaustedError(
                "Pending rate queue is full",
                details={"max_pending": self.max_pending},
            )

    def detach(self) -> list[PendingRate]:
        """Take every queued entry, most recent first, leaving the queue empty."""
        with self._lock:
            entries, self._entries = self._entries, []
        entries.reverse()
        return entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RateWriter:
    """Push variant of the rate pipeline.

    Args:
        rate_source: Source of per-slot rates (usually the host's history).
        dispatcher: Where drained rates are sent.
        config: Plugin options; defaults to RateConfig().
    """

    name = "rate"

    def __init__(
        self,
        rate_source: RateSourcePort,
        dispatcher: DispatchPort,
        config: RateConfig | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.settings = config or RateConfig()
        self.transform = RateTransform(rate_source, namespace=self.settings.namespace)
        self._queue: PendingRateQueue | None = None

    @property
    def registered(self) -> bool:
        return self._queue is not None

    @property
    def pending(self) -> int:
        """Number of rates waiting for the next read."""
        queue = self._queue
        return len(queue) if queue is not None else 0

    def config(self, key: str, value: str) -> int:
        """Apply one configuration pair (see RateConfig.apply).

        Takes effect immediately, including on a running writer.
        """
        status = self.settings.apply(key, value)
        self.transform.namespace = self.settings.namespace
        queue = self._queue
        if queue is not None:
            queue.max_pending = self.settings.max_pending
        return status

    def init(self) -> int:
        """Create the pending queue; the writer accepts and drains from now on."""
        if self._queue is None:
            self._queue = PendingRateQueue(self.settings.max_pending)
        return 0

    def shutdown(self) -> int:
        """Drop the pending queue and any rates still waiting in it."""
        queue, self._queue = self._queue, None
        if queue is not None:
            dropped = len(queue.detach())
            if dropped:
                logger.info(
                    "Rate writer shut down with %d pending rates dropped", dropped
                )
        return 0

    def write(
        self, data_set: DataSet, value_list: ValueList, user_data: Any = None
    ) -> int:
        """Compute the rate of ``value_list`` and queue it.

        Returns:
            0, including when no rate is available yet.

        Raises:
            NeverRegisteredError: ``init`` was never called.
            UnsupportedSlotKindError: A slot kind cannot be converted.
            ResourceExhaustedError: The rate could not be built or queued.
        """
        queue = self._queue
        if queue is None:
            raise NeverRegisteredError(
                "Rate writer was never initialised", details={"plugin": self.name}
            )
        if value_list.plugin == self.transform.namespace:
            return 0
        try:
            rate = self.transform.convert(data_set, value_list)
        except NoRateAvailableError:
            return 0
        try:
            queue.push(PendingRate(data_set=data_set.as_gauges(), value_list=rate))
        except ResourceExhaustedError:
            logger.warning(
                "Dropping rate for %s: %d rates already pending",
                value_list.identity,
                queue.max_pending,
            )
            raise
        return 0

    def read(self) -> int:
        """Dispatch every pending rate, most recent first.

        A rate whose dispatch fails is logged and dropped.

        Returns:
            Number of rates dispatched successfully (0 when none were pending).

        Raises:
            NeverRegisteredError: ``init`` was never called.
        """
        queue = self._queue
        if queue is None:
            raise NeverRegisteredError(
                "Rate writer was never initialised", details={"plugin": self.name}
            )
        forwarded = 0
        for entry in queue.detach():
            try:
                self.dispatcher.dispatch(entry.value_list, entry.data_set)
            except Exception:
                logger.exception(
                    "Dropping rate for %s: dispatch failed", entry.value_list.identity
                )
                continue
            forwarded += 1
        return forwarded

    def register(self, daemon: "Daemon") -> None:
        """Register config, init, read, write and shutdown callbacks with a host.

        Rates dispatched by ``read`` bypass the host's filter chain.
        """
        daemon.register_config(self.name, self.config)
        daemon.register_init(self.name, self.init)
        daemon.register_read(self.name, self.read)
        daemon.register_write(self.name, self.write)
        daemon.register_shutdown(self.name, self.shutdown)
        daemon.register_chain_bypass(self.name, lambda: self.transform.namespace)
