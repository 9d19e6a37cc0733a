"""Error taxonomy for HydroProp.

Load-time errors (InvalidConfiguration, UpstreamUnavailable) abort startup.
Per-tick errors (OutOfDomainInput, NumericalAnomaly) are recovered inside the
engine and surface as flags on the emitted frame.
"""


class HydroPropError(Exception):
    """Base class for all HydroProp errors."""


class InvalidConfiguration(HydroPropError):
    """Raised when geometry, curves or settings are malformed.

    Attributes:
        field: Dotted name of the failing configuration field, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        if field:
            message = f"{field}: {message}"
        super().__init__(message)


class OutOfDomainInput(HydroPropError):
    """Raised in strict mode when a property model input is out of range."""

    def __init__(self, name: str, value: float, low: float, high: float) -> None:
        self.name = name
        self.value = value
        self.low = low
        self.high = high
        super().__init__(f"{name}={value!r} outside validity domain [{low}, {high}]")


class NumericalAnomaly(HydroPropError):
    """Raised when a frame computation produces NaN or infinite values."""


class UpstreamUnavailable(HydroPropError):
    """Raised when a coefficient table or property grid is missing."""
