"""Property store exception hierarchy."""

from confhelm.errors import ConfhelmError, ErrorCode


class PropertyStoreError(ConfhelmError):
    """Base exception for property store failures."""


class NotInitializedError(PropertyStoreError):
    """Raised when the store is used before loading or after disposal."""

    error_code = ErrorCode.NOT_INITIALIZED


class WriteNotAllowedError(PropertyStoreError):
    """Raised when mutating a store that has no backing file."""

    error_code = ErrorCode.WRITE_NOT_ALLOWED


class ConversionError(PropertyStoreError):
    """Raised when a raw value cannot be coerced to the requested kind."""

    error_code = ErrorCode.CONVERSION_FAILED

    def __init__(self, name: str, raw: str, kind: str, reason: str) -> None:
        super().__init__(
            f"Failed converting property [{name}] value [{raw}] to {kind}: {reason}"
        )
        self.name = name
        self.raw = raw
        self.kind = kind
        self.reason = reason


class UnsupportedTypeError(PropertyStoreError):
    """Raised when no coercion exists for the requested type."""

    error_code = ErrorCode.UNSUPPORTED_TYPE

    def __init__(self, requested: object) -> None:
        type_name = getattr(requested, "__qualname__", None) or repr(requested)
        module = getattr(requested, "__module__", None)
        if module and module != "builtins":
            type_name = f"{module}.{type_name}"
        super().__init__(f"Unhandled type: {type_name}")
        self.requested = requested
