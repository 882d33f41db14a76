"""ServiceRegistry abstract interface."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, eq=False)
class ServiceReference:
    """Opaque handle to one service registration.

    References compare and hash by identity: two registrations of the same
    type with the same properties are still different references.
    """

    service_id: int
    service_type: type
    ranking: int = 0
    properties: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


class ServiceRegistry(ABC):
    """Abstract interface to a registry of dynamically registered services.

    Filter expressions are opaque to callers of this interface and are
    passed through verbatim; their syntax belongs to the implementation.
    """

    @abstractmethod
    def get_reference(self, service_type: type) -> ServiceReference | None:
        """Get the preferred reference registered under service_type."""
        pass

    @abstractmethod
    def get_references(
        self,
        service_type: type,
        filter_expr: str | None = None,
    ) -> list[ServiceReference]:
        """Get all references under service_type matching filter_expr, best first."""
        pass

    @abstractmethod
    def get_service(self, reference: ServiceReference) -> Any | None:
        """Resolve a reference to its instance, or None if it is gone."""
        pass

    @abstractmethod
    def unget_service(self, reference: ServiceReference) -> bool:
        """Release one use of a resolved reference.

        Returns False if the reference was not in use.
        """
        pass
