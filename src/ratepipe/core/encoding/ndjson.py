"""NDJSON encoders for value lists and log entries."""

import json
import math
from collections.abc import AsyncIterable
from typing import Any

from ratepipe.core.models import LogEntry, ValueList


def _json_number(value: float | int) -> float | int | None:
    # NaN and infinities are not valid JSON
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def value_list_to_dict(value_list: ValueList) -> dict[str, Any]:
    """Convert a value list to a JSON-serializable dict."""
    return {
        "host": value_list.host,
        "plugin": value_list.plugin,
        "plugin_instance": value_list.plugin_instance,
        "type": value_list.type,
        "type_instance": value_list.type_instance,
        "time": value_list.time,
        "interval": value_list.interval,
        "values": [_json_number(v) for v in value_list.values],
        "meta": value_list.meta or {},
    }


def _join(lines: list[str]) -> str:
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


async def encode_values(value_lists: AsyncIterable[ValueList]) -> str:
    """Encode value lists to newline-delimited JSON.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no value lists.
    """
    return _join([json.dumps(value_list_to_dict(v)) async for v in value_lists])


async def encode_logs(entries: AsyncIterable[LogEntry]) -> str:
    """Encode log entries to newline-delimited JSON.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no entries.
    """
    lines = []
    async for entry in entries:
        obj = {
            "timestamp": entry.timestamp,
            "level": entry.level,
            "message": entry.message,
            "attributes": entry.attributes,
        }
        lines.append(json.dumps(obj))
    return _join(lines)
