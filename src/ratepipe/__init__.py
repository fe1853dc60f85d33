"""ratepipe - convert sampled metric observations into per-second rates."""

from ratepipe.adapters.history import InMemorySeriesHistory
from ratepipe.adapters.logging import RatePipeHandler
from ratepipe.adapters.storage import (
    InMemoryLogStorage,
    InMemoryValueStorage,
    SQLiteValueStorage,
    storage_writer,
)
from ratepipe.core.errors import (
    InvalidTargetStateError,
    NeverRegisteredError,
    NoRateAvailableError,
    RatePipeError,
    ResourceExhaustedError,
    UnknownConfigKeyError,
    UnknownTypeError,
    UnsupportedSlotKindError,
)
from ratepipe.core.models import (
    DataSet,
    DataSource,
    DataSourceType,
    LogEntry,
    SeriesIdentity,
    ValueList,
)
from ratepipe.core.transform import RATE_NAMESPACE, RateTransform
from ratepipe.host import Daemon, DataSetRegistry
from ratepipe.plugins import RateConfig, RateTarget, RateWriter, TargetResult

__all__ = [
    "RATE_NAMESPACE",
    "Daemon",
    "DataSet",
    "DataSetRegistry",
    "DataSource",
    "DataSourceType",
    "InMemoryLogStorage",
    "InMemorySeriesHistory",
    "InMemoryValueStorage",
    "InvalidTargetStateError",
    "LogEntry",
    "NeverRegisteredError",
    "NoRateAvailableError",
    "RateConfig",
    "RatePipeError",
    "RatePipeHandler",
    "RateTarget",
    "RateTransform",
    "RateWriter",
    "ResourceExhaustedError",
    "SQLiteValueStorage",
    "SeriesIdentity",
    "TargetResult",
    "UnknownConfigKeyError",
    "UnknownTypeError",
    "UnsupportedSlotKindError",
    "ValueList",
    "storage_writer",
]
