"""In-process collection host."""

from ratepipe.host.daemon import Daemon
from ratepipe.host.registry import DEFAULT_TYPES, DataSetRegistry, parse_types_db

__all__ = [
    "DEFAULT_TYPES",
    "Daemon",
    "DataSetRegistry",
    "parse_types_db",
]
