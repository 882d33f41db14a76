"""Sources for indirection property lookups.

A PropertyStore is given the *name* of a property at construction. At load
time it asks a PropertySource for that name's value, which is the path of
the backing file. Sources are passed in explicitly by the host.
"""

import os
from collections.abc import Mapping
from typing import Protocol, runtime_checkable


@runtime_checkable
class PropertySource(Protocol):
    """Read-only, process or framework wide property table."""

    def get_property(self, name: str) -> str | None:
        """Return the value for name, or None if it is not defined."""
        ...


class MappingPropertySource:
    """Property source over a fixed mapping, such as framework properties."""

    def __init__(self, properties: Mapping[str, str]) -> None:
        self._properties = dict(properties)

    def get_property(self, name: str) -> str | None:
        return self._properties.get(name)


class EnvironmentPropertySource:
    """Property source backed by the process environment.

    The environment is read on every lookup so that reloads observe changes.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def get_property(self, name: str) -> str | None:
        return self._environ.get(name)


class ChainedPropertySource:
    """Consults several sources in order; the first defined value wins."""

    def __init__(self, *sources: PropertySource) -> None:
        if not sources:
            raise ValueError("At least one property source is required")
        self._sources = sources

    def get_property(self, name: str) -> str | None:
        for source in self._sources:
            value = source.get_property(name)
            if value is not None:
                return value
        return None


def get_property_or_default(source: PropertySource, name: str, default: str | None) -> str | None:
    """Look up name in source, returning default when it is undefined."""
    value = source.get_property(name)
    return value if value is not None else default
