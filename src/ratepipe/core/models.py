"""Core domain models for metric observations and rates."""

from dataclasses import dataclass, field
from enum import Enum

MetaValue = str | int | float | bool


class DataSourceType(str, Enum):
    """Kind of a single value slot.

    The kind governs the arithmetic used to turn two consecutive samples
    into a rate, and the numeric representation of the slot.
    """

    GAUGE = "gauge"
    COUNTER = "counter"
    DERIVE = "derive"
    ABSOLUTE = "absolute"


@dataclass(frozen=True)
class DataSource:
    """One value slot of a data set.

    Attributes:
        name: Slot name (e.g., "rx", "value").
        kind: The slot's DataSourceType.
    """

    name: str
    kind: DataSourceType


@dataclass(frozen=True)
class DataSet:
    """The schema shared by every value list of one type.

    Attributes:
        type: Type name (e.g., "if_octets").
        sources: One DataSource per value slot, in slot order.
    """

    type: str
    sources: tuple[DataSource, ...]

    def __len__(self) -> int:
        return len(self.sources)

    def as_gauges(self) -> "DataSet":
        """Return the same schema with every slot re-typed as a gauge."""
        return DataSet(
            type=self.type,
            sources=tuple(
                DataSource(name=s.name, kind=DataSourceType.GAUGE)
                for s in self.sources
            ),
        )


@dataclass(frozen=True)
class SeriesIdentity:
    """Composite key naming one time series across ticks."""

    host: str
    plugin: str
    plugin_instance: str
    type: str
    type_instance: str

    def __str__(self) -> str:
        plugin = self.plugin
        if self.plugin_instance:
            plugin = f"{plugin}-{self.plugin_instance}"
        type_ = self.type
        if self.type_instance:
            type_ = f"{type_}-{self.type_instance}"
        return f"{self.host}/{plugin}/{type_}"


@dataclass
class ValueList:
    """A timestamped, multi-slot metric observation.

    Mutable on purpose: inline targets rewrite ``values`` in place.

    Attributes:
        values: Slot values, parallel to the data set's sources.
        host: Host the observation belongs to.
        plugin: Source tag of the collector that produced it.
        plugin_instance: Qualifier of the collected object.
        type: Metric category; selects the DataSet.
        type_instance: Qualifier of the category.
        time: Unix timestamp in seconds.
        interval: Collection interval in seconds.
        meta: Optional metadata attached to the observation.
    """

    values: list[float | int]
    host: str
    plugin: str
    type: str
    plugin_instance: str = ""
    type_instance: str = ""
    time: float = 0.0
    interval: float = 10.0
    meta: dict[str, MetaValue] | None = None

    @property
    def identity(self) -> SeriesIdentity:
        return SeriesIdentity(
            host=self.host,
            plugin=self.plugin,
            plugin_instance=self.plugin_instance,
            type=self.type,
            type_instance=self.type_instance,
        )


@dataclass(frozen=True)
class LogEntry:
    """A structured log entry.

    Attributes:
        timestamp: Unix timestamp in seconds.
        level: Log level (e.g., INFO, ERROR, DEBUG).
        message: The log message.
        attributes: Additional structured fields.
    """

    timestamp: float
    level: str
    message: str
    attributes: dict[str, str | int | float | bool] = field(default_factory=dict)
