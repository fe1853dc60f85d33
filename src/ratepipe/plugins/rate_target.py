"""Rate target: rewrites value lists to their rates inside a filter chain."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ratepipe.core.errors import (
    InvalidTargetStateError,
    NoRateAvailableError,
    UnknownConfigKeyError,
    UnsupportedSlotKindError,
)
from ratepipe.core.models import DataSet, ValueList
from ratepipe.core.ports import RateSourcePort
from ratepipe.core.transform import RateTransform

if TYPE_CHECKING:
    from ratepipe.host.daemon import Daemon

logger = logging.getLogger(__name__)


class TargetResult(str, Enum):
    """Whether a filter chain proceeds past a target."""

    CONTINUE = "continue"
    STOP = "stop"


@dataclass
class TargetHandle:
    """Per-instance state returned by RateTarget.create."""

    destroyed: bool = False


class RateTarget:
    """Filter variant of the rate pipeline.

    Stateless apart from its rate source: every invocation works only on the
    value list and handle it is given. The rewritten value list keeps its
    identity, including its source tag.
    """

    name = "rate"

    def __init__(self, rate_source: RateSourcePort) -> None:
        self.transform = RateTransform(rate_source)

    def create(self, config: Mapping[str, str] | None = None) -> TargetHandle:
        """Return a fresh, independent handle.

        The target takes no options.

        Raises:
            UnknownConfigKeyError: ``config`` contains any key.
        """
        for key in config or {}:
            raise UnknownConfigKeyError(
                f"Unknown configuration key {key!r}", details={"key": key, "known": []}
            )
        return TargetHandle()

    def invoke(
        self, data_set: DataSet, value_list: ValueList, handle: TargetHandle | None
    ) -> TargetResult:
        """Replace the values of ``value_list`` with their rates.

        Returns:
            CONTINUE when the values were rewritten, STOP when no rate is
            available or a slot kind cannot be converted.

        Raises:
            InvalidTargetStateError: ``handle`` is missing or destroyed.
        """
        if handle is None:
            raise InvalidTargetStateError("Rate target invoked without a handle")
        if handle.destroyed:
            raise InvalidTargetStateError("Rate target invoked after destroy")
        try:
            self.transform.convert_in_place(data_set, value_list)
        except (NoRateAvailableError, UnsupportedSlotKindError):
            return TargetResult.STOP
        return TargetResult.CONTINUE

    def destroy(self, handle: TargetHandle | None) -> None:
        """Release a handle. Destroying None or a destroyed handle is a no-op."""
        if handle is None or handle.destroyed:
            return
        handle.destroyed = True
        logger.info("Rate target exiting")

    def register(self, daemon: "Daemon") -> None:
        """Make this target available to the host's filter chain."""
        daemon.register_target(self.name, self)
