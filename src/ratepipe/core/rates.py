"""Per-slot rate arithmetic.

Pure functions turning two consecutive samples of a series into per-second
rates, plus the cast applied when a rate is written back into a slot.
"""

import math
from collections.abc import Callable, Sequence

from ratepipe.core.errors import NoRateAvailableError, UnsupportedSlotKindError
from ratepipe.core.models import DataSet, DataSourceType

NAN = float("nan")


def resolve_kind(kind: object) -> DataSourceType:
    """Return ``kind`` as a DataSourceType.

    Raises:
        UnsupportedSlotKindError: ``kind`` names no known slot kind.
    """
    try:
        return DataSourceType(kind)
    except ValueError:
        raise UnsupportedSlotKindError(
            f"Unsupported slot kind {kind!r}", details={"kind": repr(kind)}
        ) from None


def slot_rate(
    kind: DataSourceType, previous: float, current: float, elapsed: float
) -> float:
    """Compute the per-second rate of one slot.

    Args:
        kind: The slot's kind.
        previous: Value of the previous sample.
        current: Value of the current sample.
        elapsed: Seconds between the two samples; must be positive.

    Returns:
        The rate, or NaN when the kind forbids a rate for these values
        (a counter that went backwards).
    """
    kind = resolve_kind(kind)
    if kind is DataSourceType.ABSOLUTE:
        # Absolute values are reset on every read
        return current / elapsed
    if kind is DataSourceType.COUNTER and current < previous:
        return NAN
    return (current - previous) / elapsed


def compute_rates(
    data_set: DataSet,
    previous: Sequence[float],
    previous_time: float,
    current: Sequence[float],
    current_time: float,
) -> list[float]:
    """Compute one rate per slot of ``data_set``.

    Returns all-NaN when the time delta is not positive.
    """
    elapsed = current_time - previous_time
    if elapsed <= 0:
        return [NAN] * len(data_set)
    return [
        slot_rate(source.kind, float(prev), float(cur), elapsed)
        for source, prev, cur in zip(data_set.sources, previous, current, strict=True)
    ]


def _to_unsigned(rate: float) -> int:
    return max(0, int(rate))


_RATE_CASTS: dict[DataSourceType, Callable[[float], float | int]] = {
    DataSourceType.GAUGE: float,
    DataSourceType.COUNTER: _to_unsigned,
    DataSourceType.DERIVE: int,
    DataSourceType.ABSOLUTE: _to_unsigned,
}


def cast_rate(kind: DataSourceType, rate: float) -> float | int:
    """Cast a rate into the representation of a slot of the given kind.

    Gauges keep the float. Integer kinds truncate toward zero; counters and
    absolutes are unsigned.

    Raises:
        UnsupportedSlotKindError: The kind has no known representation.
        NoRateAvailableError: An integer slot would have to hold NaN.
    """
    kind = resolve_kind(kind)
    if math.isnan(rate) and kind is not DataSourceType.GAUGE:
        raise NoRateAvailableError(
            "Rate is NaN for an integer slot", details={"kind": kind.value}
        )
    return _RATE_CASTS[kind](rate)
