"""Typed, file-backed configuration properties."""

from confhelm.properties.coercion import Coercion, TargetKind, coerce, resolve_kind
from confhelm.properties.exceptions import (
    ConversionError,
    NotInitializedError,
    PropertyStoreError,
    UnsupportedTypeError,
    WriteNotAllowedError,
)
from confhelm.properties.factory import create_property_source, create_property_store
from confhelm.properties.source import (
    ChainedPropertySource,
    EnvironmentPropertySource,
    MappingPropertySource,
    PropertySource,
    get_property_or_default,
)
from confhelm.properties.store import PropertyStore

__all__ = [
    "ChainedPropertySource",
    "Coercion",
    "ConversionError",
    "EnvironmentPropertySource",
    "MappingPropertySource",
    "NotInitializedError",
    "PropertySource",
    "PropertyStore",
    "PropertyStoreError",
    "TargetKind",
    "UnsupportedTypeError",
    "WriteNotAllowedError",
    "coerce",
    "create_property_source",
    "create_property_store",
    "get_property_or_default",
    "resolve_kind",
]
