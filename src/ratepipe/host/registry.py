"""Registry of data sets, keyed by type name.

Data sets can be declared in the types.db line format::

    if_octets  rx:DERIVE:0:U, tx:DERIVE:0:U

Each source is ``name:KIND:min:max``. The bounds are accepted for
compatibility and ignored.
"""

import threading

from ratepipe.core.models import DataSet, DataSource, DataSourceType

DEFAULT_TYPES = """
# type        sources
absolute      value:ABSOLUTE:0:U
counter       value:COUNTER:U:U
derive        value:DERIVE:0:U
gauge         value:GAUGE:U:U
cpu           value:DERIVE:0:U
memory        value:GAUGE:0:281474976710656
percent       value:GAUGE:0:100.1
power         value:GAUGE:0:U
temperature   value:GAUGE:U:U
if_octets     rx:DERIVE:0:U, tx:DERIVE:0:U
if_packets    rx:DERIVE:0:U, tx:DERIVE:0:U
disk_octets   read:DERIVE:0:U, write:DERIVE:0:U
disk_ops      read:DERIVE:0:U, write:DERIVE:0:U
"""


def _parse_source(entry: str, lineno: int) -> DataSource:
    parts = entry.strip().split(":")
    if len(parts) != 4:
        raise ValueError(f"line {lineno}: malformed data source {entry.strip()!r}")
    name, kind = parts[0], parts[1].lower()
    try:
        return DataSource(name=name, kind=DataSourceType(kind))
    except ValueError:
        raise ValueError(
            f"line {lineno}: unknown data source type {parts[1]!r}"
        ) from None


def parse_types_db(text: str) -> list[DataSet]:
    """Parse types.db formatted text into data sets.

    Blank lines and lines starting with ``#`` are skipped.

    Raises:
        ValueError: A line is malformed; the message names the line.
    """
    data_sets = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split(None, 1)
        if len(fields) != 2:
            raise ValueError(f"line {lineno}: type {fields[0]!r} has no data sources")
        type_name, sources = fields
        data_sets.append(
            DataSet(
                type=type_name,
                sources=tuple(_parse_source(s, lineno) for s in sources.split(",")),
            )
        )
    return data_sets


class DataSetRegistry:
    """Thread-safe mapping from type name to DataSet.

    Args:
        types: types.db text loaded on construction; defaults to
            DEFAULT_TYPES. Pass "" for an empty registry.
    """

    def __init__(self, types: str | None = None) -> None:
        self._data_sets: dict[str, DataSet] = {}
        self._lock = threading.Lock()
        self.load(DEFAULT_TYPES if types is None else types)

    def register(self, data_set: DataSet) -> None:
        """Add or replace the data set of ``data_set.type``."""
        with self._lock:
            self._data_sets[data_set.type] = data_set

    def load(self, text: str) -> int:
        """Register every data set in types.db text; returns how many."""
        data_sets = parse_types_db(text)
        for data_set in data_sets:
            self.register(data_set)
        return len(data_sets)

    def get(self, type_name: str) -> DataSet | None:
        with self._lock:
            return self._data_sets.get(type_name)

    def __contains__(self, type_name: object) -> bool:
        with self._lock:
            return type_name in self._data_sets

    def __len__(self) -> int:
        with self._lock:
            return len(self._data_sets)
