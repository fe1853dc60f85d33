"""Error types raised by the rate pipeline.

Every error carries an ``error_code`` so hosts can tell the categories apart
without matching on class names. Errors are scoped to one operation; none of
them leaves shared state (history, pending queues) half-updated.
"""

from typing import Any


class RatePipeError(Exception):
    """Base class for rate pipeline errors.

    Attributes:
        error_code: Short machine-readable category (e.g., "no_rate").
        message: Human-readable error message.
        details: Optional structured details (series, slot, key...).
    """

    error_code = "internal"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a dictionary for serialization."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class NoRateAvailableError(RatePipeError):
    """No usable rate exists yet for a series.

    Raised for the first sample of a series, a rejected time delta or a
    counter that went backwards. Expected and frequent; not an operator error.
    """

    error_code = "no_rate"


class UnsupportedSlotKindError(RatePipeError):
    """A value slot declares a kind the rate transform cannot convert."""

    error_code = "unsupported_kind"


class ResourceExhaustedError(RatePipeError):
    """Building an output batch or queueing it ran out of resources."""

    error_code = "resource_exhausted"


class NeverRegisteredError(RatePipeError):
    """A rate writer was drained before it was ever initialised."""

    error_code = "never_registered"


class InvalidTargetStateError(RatePipeError):
    """A rate target was invoked without a live handle."""

    error_code = "invalid_argument"


class UnknownConfigKeyError(RatePipeError):
    """A plugin received a configuration key it does not recognise."""

    error_code = "unknown_key"


class UnknownTypeError(RatePipeError):
    """The host has no data set registered for a value list's type."""

    error_code = "unknown_type"
