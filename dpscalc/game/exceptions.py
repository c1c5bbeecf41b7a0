"""Custom exceptions for calculator errors."""

from enum import Enum


class ErrorKind(Enum):
    """Error tags carried by ERROR responses."""

    VALIDATION_ERROR = "ValidationError"
    ENGINE_FAULT = "EngineFault"
    CHANNEL_CLOSED = "ChannelClosed"


class CalculatorError(Exception):
    """Base class for errors that are reported back to the editing surface.

    Attributes:
        kind: The ErrorKind delivered in the ERROR response
        detail: Human readable description of what went wrong
    """

    kind: ErrorKind = ErrorKind.ENGINE_FAULT

    def __init__(self, detail: str):
        """Initialize the error.

        Args:
            detail: Human readable description of what went wrong
        """
        self.detail = detail
        super().__init__(f"{self.kind.value}: {detail}")


class ValidationError(CalculatorError):
    """Raised when raw player or monster state cannot become a snapshot.

    The computation is not attempted and previously computed values are kept.
    """

    kind = ErrorKind.VALIDATION_ERROR


class EngineFault(CalculatorError):
    """Raised when the engine hits an unsupported combination of attributes."""

    kind = ErrorKind.ENGINE_FAULT


class ChannelClosed(CalculatorError):
    """Raised (or reported) when a request is submitted after teardown."""

    kind = ErrorKind.CHANNEL_CLOSED


_ERRORS_BY_KIND = {
    ErrorKind.VALIDATION_ERROR: ValidationError,
    ErrorKind.ENGINE_FAULT: EngineFault,
    ErrorKind.CHANNEL_CLOSED: ChannelClosed,
}


def error_from_kind(kind: ErrorKind, detail: str) -> CalculatorError:
    """Rebuild the exception for an error tag received over the wire."""
    return _ERRORS_BY_KIND[kind](detail)
