"""Bootstrap module for wiring confhelm into a host process.

Loads settings, configures logging and builds the components from them.
Everything the components need is passed in explicitly; nothing is kept
in module-level state.

Example usage:

    from confhelm.bootstrap import bootstrap

    ctx = bootstrap(framework_properties={"confhelm.config.file": "/etc/app.properties"})
    timeout = ctx.properties.get_or_default("http.timeout", int, 30)
"""

from collections.abc import Mapping
from dataclasses import dataclass

from confhelm.config import get_settings
from confhelm.config.settings import Settings
from confhelm.observability.logging import get_logger, setup_logging
from confhelm.observability.metrics import setup_metrics
from confhelm.properties.factory import create_property_store
from confhelm.properties.store import PropertyStore
from confhelm.services.lookup import ServiceLookup, create_service_lookup
from confhelm.services.registry import ServiceRegistry

logger = get_logger(__name__)


@dataclass
class BootstrapContext:
    """Components built by bootstrap."""

    settings: Settings
    properties: PropertyStore
    lookup: ServiceLookup | None

    def close(self) -> None:
        """Release held services and drop the property table."""
        if self.lookup is not None:
            self.lookup.close()
        self.properties.dispose()


def bootstrap(
    framework_properties: Mapping[str, str] | None = None,
    registry: ServiceRegistry | None = None,
    settings: Settings | None = None,
) -> BootstrapContext:
    """Build a PropertyStore (and a ServiceLookup when given a registry).

    Args:
        framework_properties: Host-wide properties used for the file indirection
        registry: Service registry for the lookup; no lookup is built without one
        settings: Settings to use instead of loading them from config files

    Returns:
        BootstrapContext with the loaded store
    """
    settings = settings or get_settings()

    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_secrets=log_config.redact_secrets,
    )
    if settings.observability.metrics.enabled:
        setup_metrics()

    properties = create_property_store(settings.properties, framework_properties)
    lookup = create_service_lookup(registry, settings.lookup) if registry is not None else None

    logger.info(
        "confhelm_bootstrapped",
        app_name=settings.app_name,
        backing_path=str(properties.backing_path) if properties.backing_path else None,
        has_lookup=lookup is not None,
    )
    return BootstrapContext(settings=settings, properties=properties, lookup=lookup)
