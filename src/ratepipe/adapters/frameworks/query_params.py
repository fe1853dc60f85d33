"""Query string helpers for the ASGI adapter.

Every helper takes the mapping returned by ``urllib.parse.parse_qs`` and falls
back to "no filter" on a missing or malformed value instead of failing the
request.
"""

import logging
import math

LEVEL_NAMES = frozenset(
    logging.getLevelName(level)
    for level in (
        logging.DEBUG,
        logging.INFO,
        logging.WARNING,
        logging.ERROR,
        logging.CRITICAL,
    )
)


def _first(params: dict[str, list[str]], name: str) -> str:
    values = params.get(name)
    return values[0] if values else ""


def _parse_since_param(params: dict[str, list[str]]) -> float:
    """Return ``since`` as a finite, non-negative timestamp, or 0.0."""
    try:
        since = float(_first(params, "since") or 0)
    except ValueError:
        return 0.0
    return since if math.isfinite(since) and since >= 0 else 0.0


def _parse_level_param(params: dict[str, list[str]]) -> str | None:
    """Return ``level`` upper-cased if it names a standard level."""
    level = _first(params, "level").upper()
    return level if level in LEVEL_NAMES else None


def _parse_plugin_param(params: dict[str, list[str]]) -> str | None:
    """Return ``plugin``, or None if missing or empty."""
    return _first(params, "plugin") or None
