"""Tests for InMemoryServiceRegistry."""

import pytest

from confhelm.services.exceptions import InvalidFilterError
from confhelm.services.inmemory import (
    OBJECT_CLASS,
    SERVICE_ID,
    SERVICE_RANKING,
    InMemoryServiceRegistry,
)


class Greeter:
    def __init__(self, greeting: str = "hello") -> None:
        self.greeting = greeting


class Mailer:
    pass


@pytest.fixture
def registry() -> InMemoryServiceRegistry:
    """Create a fresh registry for each test."""
    return InMemoryServiceRegistry()


class TestRegistration:
    """Tests for register and unregister."""

    def test_register_adds_standard_properties(self, registry: InMemoryServiceRegistry) -> None:
        """Registrations carry id, ranking and type name properties."""
        registration = registry.register(Greeter, Greeter(), {"lang": "en"}, ranking=3)
        props = registration.reference.properties

        assert props["lang"] == "en"
        assert props[SERVICE_ID] == registration.reference.service_id
        assert props[SERVICE_RANKING] == 3
        assert props[OBJECT_CLASS].endswith("Greeter")

    def test_register_rejects_wrong_instance(self, registry: InMemoryServiceRegistry) -> None:
        """The instance must be of the registered type."""
        with pytest.raises(TypeError):
            registry.register(Greeter, Mailer())

    def test_unregister(self, registry: InMemoryServiceRegistry) -> None:
        """Unregistered services are no longer found or resolvable."""
        registration = registry.register(Greeter, Greeter())
        registration.unregister()

        assert registry.get_reference(Greeter) is None
        assert registry.get_service(registration.reference) is None

    def test_double_unregister(self, registry: InMemoryServiceRegistry) -> None:
        """Unregistering twice is an error."""
        registration = registry.register(Greeter, Greeter())
        registration.unregister()
        with pytest.raises(ValueError):
            registration.unregister()

    def test_references_compare_by_identity(self, registry: InMemoryServiceRegistry) -> None:
        """Separate registrations are distinct references."""
        first = registry.register(Greeter, Greeter()).reference
        second = registry.register(Greeter, Greeter()).reference
        assert first != second
        assert len({first, second}) == 2


class TestQueries:
    """Tests for reference lookup."""

    def test_lookup_by_exact_type(self, registry: InMemoryServiceRegistry) -> None:
        """Only registrations under the requested type are returned."""
        registry.register(Mailer, Mailer())
        assert registry.get_reference(Greeter) is None
        assert registry.get_references(Greeter) == []

    def test_ranking_then_registration_order(self, registry: InMemoryServiceRegistry) -> None:
        """Highest ranking wins; ties go to the earliest registration."""
        low = registry.register(Greeter, Greeter("low"), ranking=-1).reference
        first = registry.register(Greeter, Greeter("first")).reference
        second = registry.register(Greeter, Greeter("second")).reference
        high = registry.register(Greeter, Greeter("high"), ranking=10).reference

        assert registry.get_reference(Greeter) is high
        assert registry.get_references(Greeter) == [high, first, second, low]

    def test_filtered_references(self, registry: InMemoryServiceRegistry) -> None:
        """Filters select on registration properties."""
        registry.register(Greeter, Greeter(), {"lang": "en"})
        french = registry.register(Greeter, Greeter(), {"lang": "fr"}).reference

        assert registry.get_references(Greeter, "(lang=fr)") == [french]
        assert registry.get_references(Greeter, "(lang=de)") == []

    def test_invalid_filter(self, registry: InMemoryServiceRegistry) -> None:
        """Malformed filters raise InvalidFilterError."""
        registry.register(Greeter, Greeter())
        with pytest.raises(InvalidFilterError):
            registry.get_references(Greeter, "(lang=")


class TestUseCounts:
    """Tests for get_service and unget_service."""

    def test_get_and_unget(self, registry: InMemoryServiceRegistry) -> None:
        """Each get counts one use; each unget releases one."""
        instance = Greeter()
        reference = registry.register(Greeter, instance).reference

        assert registry.get_service(reference) is instance
        assert registry.get_service(reference) is instance
        assert registry.use_count(reference) == 2

        assert registry.unget_service(reference) is True
        assert registry.unget_service(reference) is True
        assert registry.unget_service(reference) is False
        assert registry.use_count(reference) == 0

    def test_unget_after_unregister(self, registry: InMemoryServiceRegistry) -> None:
        """Releasing a withdrawn service reports False."""
        registration = registry.register(Greeter, Greeter())
        registry.get_service(registration.reference)
        registration.unregister()
        assert registry.unget_service(registration.reference) is False
