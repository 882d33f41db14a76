"""In-memory implementation of ServiceRegistry."""

import itertools
import threading
from types import MappingProxyType
from typing import Any

from confhelm.observability.logging import get_logger
from confhelm.services.exceptions import type_name
from confhelm.services.filters import parse_filter
from confhelm.services.registry import ServiceReference, ServiceRegistry

logger = get_logger(__name__)

SERVICE_ID = "service.id"
SERVICE_RANKING = "service.ranking"
OBJECT_CLASS = "objectClass"


class ServiceRegistration:
    """Handle returned by register(); used to withdraw the service."""

    def __init__(self, registry: "InMemoryServiceRegistry", reference: ServiceReference) -> None:
        self._registry = registry
        self._reference = reference

    @property
    def reference(self) -> ServiceReference:
        return self._reference

    def unregister(self) -> None:
        """Withdraw the service.

        Raises:
            ValueError: If it was already unregistered
        """
        self._registry._unregister(self._reference)


class InMemoryServiceRegistry(ServiceRegistry):
    """Thread-safe in-memory service registry.

    Services are registered under an exact type. When several match, the
    highest ranking wins and ties go to the earliest registration. Each
    reference keeps a use count incremented by get_service and decremented
    by unget_service.
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._services: dict[ServiceReference, Any] = {}
        self._use_counts: dict[ServiceReference, int] = {}

    def register(
        self,
        service_type: type,
        instance: Any,
        properties: dict[str, Any] | None = None,
        *,
        ranking: int = 0,
    ) -> ServiceRegistration:
        """Register instance under service_type.

        The standard properties ``service.id``, ``service.ranking`` and
        ``objectClass`` are added and can be used in filters.

        Raises:
            TypeError: If instance is not an instance of service_type
        """
        if not isinstance(instance, service_type):
            raise TypeError(f"Service is not an instance of {type_name(service_type)}")

        with self._lock:
            service_id = next(self._ids)
            props = dict(properties or {})
            props[SERVICE_ID] = service_id
            props[SERVICE_RANKING] = ranking
            props[OBJECT_CLASS] = type_name(service_type)
            reference = ServiceReference(
                service_id=service_id,
                service_type=service_type,
                ranking=ranking,
                properties=MappingProxyType(props),
            )
            self._services[reference] = instance
            self._use_counts[reference] = 0

        logger.debug(
            "service_registered",
            service_type=type_name(service_type),
            service_id=service_id,
            ranking=ranking,
        )
        return ServiceRegistration(self, reference)

    def _unregister(self, reference: ServiceReference) -> None:
        with self._lock:
            if reference not in self._services:
                raise ValueError("Service already unregistered")
            del self._services[reference]
            del self._use_counts[reference]
        logger.debug(
            "service_unregistered",
            service_type=type_name(reference.service_type),
            service_id=reference.service_id,
        )

    def _matching(self, service_type: type) -> list[ServiceReference]:
        with self._lock:
            candidates = [ref for ref in self._services if ref.service_type is service_type]
        candidates.sort(key=lambda ref: (-ref.ranking, ref.service_id))
        return candidates

    def get_reference(self, service_type: type) -> ServiceReference | None:
        """Get the preferred reference registered under service_type."""
        candidates = self._matching(service_type)
        return candidates[0] if candidates else None

    def get_references(
        self,
        service_type: type,
        filter_expr: str | None = None,
    ) -> list[ServiceReference]:
        """Get all references under service_type matching filter_expr, best first.

        Raises:
            InvalidFilterError: If filter_expr is malformed
        """
        service_filter = parse_filter(filter_expr) if filter_expr is not None else None
        candidates = self._matching(service_type)
        if service_filter is None:
            return candidates
        return [ref for ref in candidates if service_filter.matches(ref.properties)]

    def get_service(self, reference: ServiceReference) -> Any | None:
        """Resolve a reference, counting one use. None if unregistered."""
        with self._lock:
            if reference not in self._services:
                return None
            self._use_counts[reference] += 1
            return self._services[reference]

    def unget_service(self, reference: ServiceReference) -> bool:
        """Release one use of a reference."""
        with self._lock:
            count = self._use_counts.get(reference, 0)
            if count == 0:
                return False
            self._use_counts[reference] = count - 1
            return True

    def use_count(self, reference: ServiceReference) -> int:
        """Current number of unreleased uses of a reference."""
        with self._lock:
            return self._use_counts.get(reference, 0)
