"""Service lookup exception hierarchy.

"Not available" failures (ServiceUnavailableError and its subclasses) are
kept apart from RegistryQueryError so callers can tell a service that has
not appeared yet from a registry that is broken.
"""

from confhelm.errors import ConfhelmError, ErrorCode


def type_name(service_type: type) -> str:
    """Qualified name of a service type for messages and logs."""
    module = getattr(service_type, "__module__", None)
    qualname = getattr(service_type, "__qualname__", repr(service_type))
    if module and module != "builtins":
        return f"{module}.{qualname}"
    return qualname


class ServiceLookupError(ConfhelmError):
    """Base exception for service lookup failures."""


class LookupClosedError(ServiceLookupError):
    """Raised when a lookup is used after close()."""

    error_code = ErrorCode.LOOKUP_CLOSED

    def __init__(self, message: str = "Service lookup is closed.") -> None:
        super().__init__(message)


class ServiceUnavailableError(ServiceLookupError):
    """Raised when no live service matches a request."""

    error_code = ErrorCode.SERVICE_NOT_FOUND

    def __init__(self, message: str, service_type: type, filter_expr: str | None = None) -> None:
        super().__init__(message)
        self.service_type = service_type
        self.filter_expr = filter_expr


class ServiceNotFoundError(ServiceUnavailableError):
    """Raised by a one-shot lookup that found nothing."""

    def __init__(self, service_type: type) -> None:
        super().__init__(f"Service [{type_name(service_type)}] is not available.", service_type)


class ServiceTimeoutError(ServiceUnavailableError):
    """Raised when a wait reaches its deadline without finding a service."""

    error_code = ErrorCode.SERVICE_TIMEOUT

    def __init__(self, service_type: type, timeout_ms: int, filter_expr: str | None = None) -> None:
        label = f"[{type_name(service_type)}]"
        if filter_expr is not None:
            label += f"[{filter_expr}]"
        super().__init__(
            f"Service {label} is not available after {timeout_ms} ms.",
            service_type,
            filter_expr,
        )
        self.timeout_ms = timeout_ms


class RegistryQueryError(ServiceLookupError):
    """Raised when the registry itself fails while being queried."""

    error_code = ErrorCode.REGISTRY_FAILURE

    def __init__(self, service_type: type, filter_expr: str | None = None) -> None:
        super().__init__(
            f"Failed accessing service reference [{type_name(service_type)}][{filter_expr}]"
        )
        self.service_type = service_type
        self.filter_expr = filter_expr


class InvalidFilterError(ConfhelmError):
    """Raised when a filter expression cannot be parsed."""

    error_code = ErrorCode.INVALID_FILTER

    def __init__(self, expression: str, position: int, reason: str) -> None:
        super().__init__(f"Invalid filter [{expression}] at position {position}: {reason}")
        self.expression = expression
        self.position = position
        self.reason = reason
