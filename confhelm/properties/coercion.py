"""Coercion of raw property strings into typed values.

The set of supported targets is closed: each TargetKind has exactly one
coercion function, and every function returns a tagged Coercion instead of
raising. Callers ask for a kind (or one of the Python types mapped to a kind
in resolve_kind); the raw string itself is never sniffed, so the same value
coerces differently depending on what was requested.

Ladder order: identity, numeric, boolean, path, URI.
"""

import math
import re
import struct
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath
from typing import Any
from urllib.parse import SplitResult, urlsplit

from confhelm.properties.exceptions import ConversionError, UnsupportedTypeError


class TargetKind(str, Enum):
    """Closed set of types a property can be coerced to."""

    STRING = "string"
    BYTE = "byte"
    SHORT = "short"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOL = "bool"
    PATH = "path"
    URI = "uri"


INTEGER_KINDS: frozenset[TargetKind] = frozenset(
    {TargetKind.BYTE, TargetKind.SHORT, TargetKind.INT, TargetKind.LONG}
)
FLOATING_KINDS: frozenset[TargetKind] = frozenset({TargetKind.FLOAT, TargetKind.DOUBLE})
NUMERIC_KINDS: frozenset[TargetKind] = INTEGER_KINDS | FLOATING_KINDS

_INTEGER_BITS: dict[TargetKind, int] = {
    TargetKind.BYTE: 8,
    TargetKind.SHORT: 16,
    TargetKind.INT: 32,
    TargetKind.LONG: 64,
}

# Python types accepted in place of a TargetKind
_TYPE_KINDS: dict[type, TargetKind] = {
    str: TargetKind.STRING,
    object: TargetKind.STRING,
    int: TargetKind.INT,
    float: TargetKind.DOUBLE,
    bool: TargetKind.BOOL,
    Path: TargetKind.PATH,
    PurePath: TargetKind.PATH,
    SplitResult: TargetKind.URI,
}

_INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+")
_FLOAT_LITERAL = re.compile(
    r"[+-]?(?:NaN|Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)[fFdD]?"
)
# Whitespace, controls and characters RFC 3986 never allows unescaped
_URI_ILLEGAL = re.compile(r'[\x00-\x20\x7f"<>\\^`{|}]')
_BAD_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class Coercion:
    """Tagged result of a coercion attempt."""

    ok: bool
    value: Any = None
    reason: str | None = None

    @classmethod
    def success(cls, value: Any) -> "Coercion":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, reason: str) -> "Coercion":
        return cls(ok=False, reason=reason)


Coercer = Callable[[str], Coercion]


def _integer(kind: TargetKind) -> Coercer:
    bits = _INTEGER_BITS[kind]
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1

    def coerce(raw: str) -> Coercion:
        if not _INTEGER_LITERAL.fullmatch(raw):
            return Coercion.failure(f"not a {kind.value} literal")
        value = int(raw)
        if not low <= value <= high:
            return Coercion.failure(f"value out of range for {kind.value} [{low}, {high}]")
        return Coercion.success(value)

    return coerce


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _floating(kind: TargetKind) -> Coercer:
    def coerce(raw: str) -> Coercion:
        literal = raw.strip()
        if not _FLOAT_LITERAL.fullmatch(literal):
            return Coercion.failure(f"not a {kind.value} literal")
        if literal[-1] in "fFdD":
            literal = literal[:-1]
        value = float(literal)
        if kind is TargetKind.FLOAT:
            value = _to_float32(value)
        return Coercion.success(value)

    return coerce


def _identity(raw: str) -> Coercion:
    return Coercion.success(raw)


def _boolean(raw: str) -> Coercion:
    # Anything other than a case-insensitive "true" is False, never an error.
    return Coercion.success(raw.lower() == "true")


def _path(raw: str) -> Coercion:
    if "\x00" in raw:
        return Coercion.failure("path contains a NUL character")
    return Coercion.success(Path(raw))


def _uri(raw: str) -> Coercion:
    illegal = _URI_ILLEGAL.search(raw)
    if illegal:
        return Coercion.failure(f"illegal character at index {illegal.start()}")
    if _BAD_PERCENT.search(raw):
        return Coercion.failure("malformed percent escape")
    try:
        parts = urlsplit(raw)
    except ValueError as e:
        return Coercion.failure(str(e))
    if "#" in parts.fragment:
        return Coercion.failure("more than one fragment separator")
    outside_host = parts.path + parts.query + parts.fragment
    if "[" in outside_host or "]" in outside_host:
        return Coercion.failure("brackets outside the authority")
    return Coercion.success(parts)


COERCERS: dict[TargetKind, Coercer] = {
    TargetKind.STRING: _identity,
    **{kind: _integer(kind) for kind in INTEGER_KINDS},
    **{kind: _floating(kind) for kind in FLOATING_KINDS},
    TargetKind.BOOL: _boolean,
    TargetKind.PATH: _path,
    TargetKind.URI: _uri,
}


def resolve_kind(requested: TargetKind | type) -> TargetKind:
    """Map a requested kind or Python type onto a TargetKind.

    Raises:
        UnsupportedTypeError: If the type has no coercion
    """
    if isinstance(requested, TargetKind):
        return requested
    try:
        return _TYPE_KINDS[requested]
    except (KeyError, TypeError):
        raise UnsupportedTypeError(requested) from None


def coerce(name: str, raw: str, requested: TargetKind | type) -> Any:
    """Coerce a raw property value to the requested kind.

    Args:
        name: Property name, used in error messages
        raw: Raw string value
        requested: TargetKind or a mapped Python type

    Returns:
        The typed value

    Raises:
        UnsupportedTypeError: If no coercion exists for the requested type
        ConversionError: If the raw value is malformed for the kind
    """
    kind = resolve_kind(requested)
    result = COERCERS[kind](raw)
    if not result.ok:
        raise ConversionError(name, raw, kind.value, result.reason or "invalid value")
    return result.value
