"""Shared exception base and error codes.

Every confhelm exception inherits from ConfhelmError, which carries a
machine-readable error_code so callers can branch without string matching.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for confhelm exceptions."""

    NOT_INITIALIZED = "NOT_INITIALIZED"
    """A store was read before it was loaded, or after it was disposed."""

    WRITE_NOT_ALLOWED = "WRITE_NOT_ALLOWED"
    """A mutation was attempted on a store without a backing file."""

    CONVERSION_FAILED = "CONVERSION_FAILED"
    """A raw property value could not be coerced to the requested kind."""

    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    """No coercion exists for the requested type."""

    LOOKUP_CLOSED = "LOOKUP_CLOSED"
    """A service lookup was used after close()."""

    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    """No live service matched the request."""

    SERVICE_TIMEOUT = "SERVICE_TIMEOUT"
    """No live service matched the request before the deadline."""

    REGISTRY_FAILURE = "REGISTRY_FAILURE"
    """The underlying registry raised while being queried."""

    INVALID_FILTER = "INVALID_FILTER"
    """A registry filter expression could not be parsed."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""


class ConfhelmError(Exception):
    """Base exception for all confhelm errors.

    Subclasses set error_code to identify the failure category.
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
