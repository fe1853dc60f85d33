"""Key/value configuration of the rate writer.

Hosts hand plugins their configuration as string pairs. Keys are matched
case-insensitively; a key no plugin option recognises raises
UnknownConfigKeyError so hosts can report it separately from bad values.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from ratepipe.core.errors import UnknownConfigKeyError
from ratepipe.core.transform import RATE_NAMESPACE

logger = logging.getLogger(__name__)

CONFIG_KEYS = ("Namespace", "MaxPending")


def _parse_namespace(value: str) -> str:
    namespace = value.strip()
    if not namespace:
        raise ValueError("Namespace must not be empty")
    return namespace


def _parse_max_pending(value: str) -> int:
    """Parse a non-negative queue bound; 0 means unbounded."""
    try:
        bound = int(value)
    except ValueError:
        raise ValueError(f"MaxPending must be an integer, got {value!r}") from None
    if bound < 0:
        raise ValueError(f"MaxPending must not be negative, got {bound}")
    return bound


@dataclass
class RateConfig:
    """Options of the rate writer.

    Attributes:
        namespace: Source tag given to emitted rate value lists.
        max_pending: Bound of the rate writer's pending queue (0: unbounded).
    """

    namespace: str = RATE_NAMESPACE
    max_pending: int = 0

    def apply(self, key: str, value: str) -> int:
        """Apply one configuration pair.

        Returns:
            0 once the key has been applied.

        Raises:
            UnknownConfigKeyError: ``key`` is not a recognised option.
            ValueError: ``value`` is not valid for ``key``.
        """
        logger.info("rate config: %s=%s", key, value)
        normalized = key.lower()
        if normalized == "namespace":
            self.namespace = _parse_namespace(value)
        elif normalized == "maxpending":
            self.max_pending = _parse_max_pending(value)
        else:
            raise UnknownConfigKeyError(
                f"Unknown configuration key {key!r}",
                details={"key": key, "known": list(CONFIG_KEYS)},
            )
        return 0

    @classmethod
    def from_mapping(cls, options: Mapping[str, str] | None) -> "RateConfig":
        """Build a configuration from key/value pairs."""
        config = cls()
        for key, value in (options or {}).items():
            config.apply(key, value)
        return config
