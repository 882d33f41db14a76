"""Service registry boundary and bounded-wait service lookup."""

from confhelm.services.exceptions import (
    InvalidFilterError,
    LookupClosedError,
    RegistryQueryError,
    ServiceLookupError,
    ServiceNotFoundError,
    ServiceTimeoutError,
    ServiceUnavailableError,
)
from confhelm.services.filters import Filter, parse_filter
from confhelm.services.inmemory import InMemoryServiceRegistry, ServiceRegistration
from confhelm.services.lookup import ServiceLookup, create_service_lookup
from confhelm.services.registry import ServiceReference, ServiceRegistry

__all__ = [
    "Filter",
    "InMemoryServiceRegistry",
    "InvalidFilterError",
    "LookupClosedError",
    "RegistryQueryError",
    "ServiceLookup",
    "ServiceLookupError",
    "ServiceNotFoundError",
    "ServiceReference",
    "ServiceRegistration",
    "ServiceRegistry",
    "ServiceTimeoutError",
    "ServiceUnavailableError",
    "create_service_lookup",
    "parse_filter",
]
