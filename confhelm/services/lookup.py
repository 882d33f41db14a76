"""Bounded-wait service lookup with reference tracking.

A ServiceLookup resolves services from a registry and remembers every
reference it resolved so that close() can release them together. Objects
obtained through a lookup may stop working once it is closed.

Instances are not meant to be shared across threads. Closing a lookup while
another thread is inside a lookup call may raise LookupClosedError in that
thread, or let it add a reference after the set was cleared.

Example:

    with ServiceLookup(registry) as lookup:
        repo = lookup.wait_for_service(Repository, timeout_ms=2000)
        repo.save(item)
"""

import time
from collections.abc import Sequence
from types import TracebackType
from typing import Any, TypeVar

from confhelm.config.models.lookup import LookupConfig
from confhelm.observability.logging import get_logger
from confhelm.observability.metrics import (
    SERVICE_LOOKUPS,
    SERVICE_RELEASE_FAILURES,
    SERVICE_WAIT_SECONDS,
)
from confhelm.services.exceptions import (
    LookupClosedError,
    RegistryQueryError,
    ServiceNotFoundError,
    ServiceTimeoutError,
    type_name,
)
from confhelm.services.registry import ServiceReference, ServiceRegistry

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_POLL_INTERVAL_MS = 20
DEFAULT_TIMEOUT_MS = 5000


class ServiceLookup:
    """Resolves services from a registry and releases them on close."""

    def __init__(
        self,
        registry: ServiceRegistry,
        *,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        """Initialize a lookup bound to one registry.

        Args:
            registry: Registry to query for the lifetime of this lookup
            poll_interval_ms: Delay between polls in wait_for_service
            default_timeout_ms: Timeout used when wait_for_service gets none
        """
        if registry is None:
            raise ValueError("registry is required")
        if poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
        if default_timeout_ms < 0:
            raise ValueError("default_timeout_ms must not be negative")

        self._registry = registry
        self._poll_interval_ms = poll_interval_ms
        self._default_timeout_ms = default_timeout_ms
        self._references: set[ServiceReference] | None = set()

    @property
    def registry(self) -> ServiceRegistry:
        return self._registry

    @property
    def closed(self) -> bool:
        return self._references is None

    @property
    def held_references(self) -> frozenset[ServiceReference]:
        """References resolved and not yet released; empty once closed."""
        return frozenset(self._references or ())

    def _held(self) -> set[ServiceReference]:
        if self._references is None:
            raise LookupClosedError()
        return self._references

    def _query(
        self,
        service_type: type,
        filter_expr: str | None,
        filtered: bool,
    ) -> tuple[ServiceReference, Any] | None:
        try:
            references: Sequence[ServiceReference]
            if filtered:
                references = self._registry.get_references(service_type, filter_expr)
            else:
                reference = self._registry.get_reference(service_type)
                references = [reference] if reference is not None else []

            for reference in references:
                service = self._registry.get_service(reference)
                if service is not None:
                    return reference, service
        except Exception as e:
            SERVICE_LOOKUPS.labels(mode="query", outcome="registry_error").inc()
            logger.error(
                "service_registry_query_failed",
                service_type=type_name(service_type),
                filter=filter_expr,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RegistryQueryError(service_type, filter_expr) from e
        return None

    def get_service(self, service_type: type[T]) -> T:
        """Get a service registered under service_type, without waiting.

        If several are registered, the registry's preferred one is returned.

        Raises:
            LookupClosedError: If the lookup was closed
            ServiceNotFoundError: If no live service is registered
            RegistryQueryError: If the registry failed
        """
        self._held()
        found = self._query(service_type, None, filtered=False)
        if found is None:
            SERVICE_LOOKUPS.labels(mode="get", outcome="not_found").inc()
            raise ServiceNotFoundError(service_type)

        reference, service = found
        self._held().add(reference)
        SERVICE_LOOKUPS.labels(mode="get", outcome="found").inc()
        return service

    def wait_for_service(
        self,
        service_type: type[T],
        timeout_ms: int | None = None,
        filter_expr: str | None = None,
    ) -> T:
        """Get a service, polling the registry until one appears.

        The registry is polled every poll_interval_ms. Elapsed time is
        checked after each sleep, so the call may block up to one interval
        longer than timeout_ms. KeyboardInterrupt during a sleep propagates.

        Args:
            service_type: Type the service is registered under
            timeout_ms: How long to wait; defaults to default_timeout_ms
            filter_expr: Registry filter expression, passed through verbatim

        Raises:
            LookupClosedError: If the lookup was closed
            ServiceTimeoutError: If nothing matched before the deadline
            RegistryQueryError: If the registry failed
        """
        self._held()
        if timeout_ms is None:
            timeout_ms = self._default_timeout_ms
        if timeout_ms < 0:
            raise ValueError("timeout_ms must not be negative")

        filtered = filter_expr is not None
        started = time.monotonic()
        while True:
            found = self._query(service_type, filter_expr, filtered=filtered)
            if found is not None:
                reference, service = found
                self._held().add(reference)
                SERVICE_WAIT_SECONDS.observe(time.monotonic() - started)
                SERVICE_LOOKUPS.labels(mode="wait", outcome="found").inc()
                return service

            time.sleep(self._poll_interval_ms / 1000)
            if (time.monotonic() - started) * 1000 > timeout_ms:
                break

        SERVICE_LOOKUPS.labels(mode="wait", outcome="timeout").inc()
        logger.warning(
            "service_wait_timeout",
            service_type=type_name(service_type),
            filter=filter_expr,
            timeout_ms=timeout_ms,
        )
        raise ServiceTimeoutError(service_type, timeout_ms, filter_expr)

    def close(self) -> None:
        """Release every held reference and mark the lookup closed.

        Releases are best effort: a failure is logged and the remaining
        references are still released. Closing twice is a no-op.

        Each reference is released once, however many times it was resolved,
        so a registry that counts uses per get_service call (such as
        InMemoryServiceRegistry) keeps a nonzero count for a service resolved
        more than once through this lookup.
        """
        references = self._references
        self._references = None
        if references is None:
            return

        failed = 0
        for reference in references:
            try:
                self._registry.unget_service(reference)
            except Exception as e:
                failed += 1
                SERVICE_RELEASE_FAILURES.inc()
                logger.warning(
                    "service_release_failed",
                    service_type=type_name(reference.service_type),
                    service_id=reference.service_id,
                    error=str(e),
                )

        logger.debug(
            "service_lookup_closed",
            released=len(references) - failed,
            failed=failed,
        )

    def __enter__(self) -> "ServiceLookup":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


def create_service_lookup(registry: ServiceRegistry, config: LookupConfig) -> ServiceLookup:
    """Create a ServiceLookup using the lookup section of Settings."""
    return ServiceLookup(
        registry,
        poll_interval_ms=config.poll_interval_ms,
        default_timeout_ms=config.default_timeout_ms,
    )
