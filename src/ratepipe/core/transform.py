"""Rate transform: turn an observation into its per-second rate."""

import copy
import dataclasses
import logging
import math

from ratepipe.core.errors import (
    NoRateAvailableError,
    ResourceExhaustedError,
    UnsupportedSlotKindError,
)
from ratepipe.core.models import DataSet, ValueList
from ratepipe.core.ports import RateSourcePort
from ratepipe.core.rates import cast_rate

logger = logging.getLogger(__name__)

RATE_NAMESPACE = "rate"


class RateTransform:
    """Applies a rate source to value lists.

    The transform holds no state of its own; it can be shared between
    threads as long as the rate source can.

    Args:
        rate_source: Where per-slot rates come from.
        namespace: Source tag given to the value lists built by ``convert``.
    """

    def __init__(
        self, rate_source: RateSourcePort, namespace: str = RATE_NAMESPACE
    ) -> None:
        self.rate_source = rate_source
        self.namespace = namespace

    def rate_values(
        self, data_set: DataSet, value_list: ValueList
    ) -> list[float | int]:
        """Return the rate of every slot, cast to the slot's original kind.

        Raises:
            NoRateAvailableError: No history, or the first slot is NaN.
            UnsupportedSlotKindError: A slot's kind cannot be converted.
        """
        rates = self.rate_source.rate_of(data_set, value_list)
        if not rates or math.isnan(rates[0]):
            raise NoRateAvailableError(
                "No rate available", details={"series": str(value_list.identity)}
            )
        try:
            return [
                cast_rate(source.kind, rate)
                for source, rate in zip(data_set.sources, rates, strict=True)
            ]
        except UnsupportedSlotKindError as exc:
            exc.details["series"] = str(value_list.identity)
            logger.error("Bad data source for %s: %s", value_list.identity, exc.message)
            raise

    def convert(self, data_set: DataSet, value_list: ValueList) -> ValueList:
        """Build a new value list holding the rate of ``value_list``.

        The result shares no mutable state with the input: values are a new
        list and metadata is deep-copied. Only the source tag changes.

        Raises:
            NoRateAvailableError: See ``rate_values``.
            UnsupportedSlotKindError: See ``rate_values``.
            ResourceExhaustedError: The copy could not be allocated.
        """
        values = self.rate_values(data_set, value_list)
        try:
            meta = copy.deepcopy(value_list.meta) if value_list.meta else None
            return dataclasses.replace(
                value_list, plugin=self.namespace, values=values, meta=meta
            )
        except MemoryError as exc:
            logger.error("Out of memory copying value list %s", value_list.identity)
            raise ResourceExhaustedError(
                "Could not allocate rate value list",
                details={"series": str(value_list.identity)},
            ) from exc

    def convert_in_place(self, data_set: DataSet, value_list: ValueList) -> None:
        """Overwrite the values of ``value_list`` with their rates.

        Nothing is modified when an error is raised.
        """
        value_list.values = self.rate_values(data_set, value_list)
