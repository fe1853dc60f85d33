"""Rate plugins: the buffering writer and the inline filter target."""

from ratepipe.plugins.config import RateConfig
from ratepipe.plugins.rate_target import RateTarget, TargetHandle, TargetResult
from ratepipe.plugins.rate_writer import PendingRate, PendingRateQueue, RateWriter

__all__ = [
    "PendingRate",
    "PendingRateQueue",
    "RateConfig",
    "RateTarget",
    "RateWriter",
    "TargetHandle",
    "TargetResult",
]
