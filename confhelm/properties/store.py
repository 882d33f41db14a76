"""File-backed store of typed configuration properties.

The store never hard-codes the location of its file. It is built with the
*name* of an indirection property and a PropertySource; loading looks that
name up in the source and treats the value as the backing file path.

Example:

    source = MappingPropertySource({"myapp.config.file": "/etc/myapp.properties"})
    store = PropertyStore(source, "myapp.config.file")
    store.activate()

    port = store.get_or_default("http.port", int, 8080)
"""

import threading
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from confhelm.observability.logging import get_logger
from confhelm.observability.metrics import (
    CONVERSION_ERRORS,
    PROPERTY_LOADS,
    PROPERTY_WRITES,
)
from confhelm.properties import fileformat
from confhelm.properties.coercion import TargetKind, coerce
from confhelm.properties.exceptions import (
    ConversionError,
    NotInitializedError,
    PropertyStoreError,
    WriteNotAllowedError,
)
from confhelm.properties.source import PropertySource

logger = get_logger(__name__)


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class PropertyStore:
    """String-keyed property table with typed reads and file persistence.

    All access to the table and backing path is serialized behind one
    re-entrant lock. A load parses the file outside the lock and installs
    the result with a single assignment, so concurrent readers observe the
    old table or the new one and never a mix.

    Load failures never propagate: the store logs the failure and continues
    with an empty table. Write failures are logged and the in-memory change
    is kept, so memory and disk may diverge until the next successful write.
    """

    def __init__(self, source: PropertySource, file_property_name: str) -> None:
        """Initialize an empty, unloaded store.

        Args:
            source: Property table consulted for the indirection lookup
            file_property_name: Name of the property whose value is the file path
        """
        if not file_property_name or not file_property_name.strip():
            raise ValueError("file_property_name must not be blank")

        self._source = source
        self._file_property_name = file_property_name
        self._lock = threading.RLock()
        self._properties: dict[str, str] | None = None
        self._backing_path: Path | None = None
        self._initialized = False

    @property
    def file_property_name(self) -> str:
        return self._file_property_name

    @property
    def backing_path(self) -> Path | None:
        """Path the store persists to, or None before the first successful load."""
        with self._lock:
            return self._backing_path

    @property
    def is_loaded(self) -> bool:
        with self._lock:
            return self._properties is not None

    def activate(self) -> None:
        """Resolve the indirection property and load the backing file."""
        with self._lock:
            self._initialized = True
        self._load_from_source()

    def reload(self) -> None:
        """Re-resolve the indirection property and load the file again.

        Used when the file was edited outside the application.

        Raises:
            NotInitializedError: If the store was never activated or loaded
        """
        with self._lock:
            initialized = self._initialized
        if not initialized:
            raise NotInitializedError("No initialization parameters available")
        self._load_from_source()

    def load(self, path: Path | str) -> None:
        """Replace the table with the contents of a properties file.

        On failure the table becomes empty and the backing path is left as
        it was; nothing is raised.
        """
        path = Path(path)
        logger.debug("properties_loading", path=str(path))
        with self._lock:
            self._initialized = True

        try:
            table = fileformat.load(path)
        except (OSError, ValueError) as e:
            self._fail_open(path=str(path), error=str(e), error_type=type(e).__name__)
            return

        with self._lock:
            self._properties = table
            self._backing_path = path
        PROPERTY_LOADS.labels(outcome="success").inc()
        logger.info("properties_loaded", path=str(path), count=len(table))

    def _load_from_source(self) -> None:
        value = self._source.get_property(self._file_property_name)
        if value is None:
            self._fail_open(
                file_property_name=self._file_property_name,
                error="indirection property is not defined",
            )
            return
        self.load(value)

    def _fail_open(self, **context: Any) -> None:
        with self._lock:
            self._properties = {}
        PROPERTY_LOADS.labels(outcome="failure").inc()
        logger.error("properties_load_failed", **context)

    def dispose(self) -> None:
        """Drop the table. Reads fail until the store is loaded again."""
        with self._lock:
            self._properties = None
        logger.debug("properties_disposed", file_property_name=self._file_property_name)

    def _raw(self, name: str) -> str | None:
        with self._lock:
            if self._properties is None:
                raise NotInitializedError("Not initialized")
            return self._properties.get(name)

    def get(self, name: str, requested: TargetKind | type = str) -> Any:
        """Return a property coerced to the requested kind.

        Args:
            name: Property name
            requested: TargetKind, or one of str, int, float, bool, Path,
                PurePath, SplitResult

        Returns:
            The typed value, or None if the property is not defined

        Raises:
            NotInitializedError: If the store is not loaded
            ConversionError: If the value is malformed for the kind
            UnsupportedTypeError: If no coercion exists for the requested type
        """
        raw = self._raw(name)
        if raw is None:
            return None
        try:
            return coerce(name, raw, requested)
        except ConversionError as e:
            CONVERSION_ERRORS.labels(kind=e.kind).inc()
            raise

    def get_or_default(self, name: str, requested: TargetKind | type, default: Any) -> Any:
        """Return a property coerced to the requested kind, or default.

        Never raises for store errors: a missing property or any failure
        to resolve it yields default.
        """
        try:
            value = self.get(name, requested)
        except PropertyStoreError as e:
            logger.warning(
                "property_default_returned",
                property=name,
                error=str(e),
                error_code=e.error_code.value,
            )
            return default
        return default if value is None else value

    def _writable_table(self) -> tuple[Path, dict[str, str]]:
        if self._backing_path is None:
            raise WriteNotAllowedError("Properties not specified by file, write is not allowed")
        if self._properties is None:
            raise NotInitializedError("Not initialized")
        return self._backing_path, self._properties

    def set_one(self, key: str, value: str | None) -> None:
        """Set or delete one property and rewrite the backing file.

        A None or blank value deletes the key.

        Raises:
            ValueError: If key is blank
            WriteNotAllowedError: If no file has been loaded
            NotInitializedError: If the store is not loaded
        """
        if _is_blank(key):
            raise ValueError("key is not valid")
        with self._lock:
            path, table = self._writable_table()
            self._apply(table, key, value)
            self._persist(path, table)

    def set_many(self, values: Mapping[str, str | None]) -> None:
        """Set or delete several properties with a single file rewrite."""
        if any(_is_blank(key) for key in values):
            raise ValueError("key is not valid")
        with self._lock:
            path, table = self._writable_table()
            for key, value in values.items():
                self._apply(table, key, value)
            self._persist(path, table)

    def replace_all(self, values: Mapping[str, str | None]) -> None:
        """Replace the whole table and rewrite the backing file.

        Entries with blank values are dropped.
        """
        if any(_is_blank(key) for key in values):
            raise ValueError("key is not valid")
        with self._lock:
            path, _ = self._writable_table()
            table = {k: v for k, v in values.items() if not _is_blank(v)}
            self._properties = table
            self._persist(path, table)

    @staticmethod
    def _apply(table: dict[str, str], key: str, value: str | None) -> None:
        if _is_blank(value):
            table.pop(key, None)
        else:
            table[key] = value

    def _persist(self, path: Path, table: dict[str, str]) -> None:
        # Caller holds the lock.
        logger.info("properties_writing", path=str(path), count=len(table))
        try:
            fileformat.store(path, table)
        except (OSError, ValueError) as e:
            PROPERTY_WRITES.labels(outcome="failure").inc()
            logger.error(
                "properties_write_failed",
                path=str(path),
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        PROPERTY_WRITES.labels(outcome="success").inc()

    def snapshot(self) -> Mapping[str, str]:
        """Return a read-only copy of all current properties."""
        with self._lock:
            if self._properties is None:
                raise NotInitializedError("Not initialized")
            return MappingProxyType(dict(self._properties))
