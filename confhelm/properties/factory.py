"""PropertyStore factory.

Builds a store from the properties section of Settings. The host passes
its framework property table in; the process environment is consulted
after it unless the configuration disables the fallback.
"""

from collections.abc import Mapping

from confhelm.config.models.properties import PropertiesConfig
from confhelm.observability.logging import get_logger
from confhelm.properties.source import (
    ChainedPropertySource,
    EnvironmentPropertySource,
    MappingPropertySource,
    PropertySource,
)
from confhelm.properties.store import PropertyStore

logger = get_logger(__name__)


def create_property_source(
    config: PropertiesConfig,
    framework_properties: Mapping[str, str] | None = None,
) -> PropertySource:
    """Create the source used to resolve the indirection property."""
    sources: list[PropertySource] = []
    if framework_properties is not None:
        sources.append(MappingPropertySource(framework_properties))
    if config.use_environment_fallback or not sources:
        sources.append(EnvironmentPropertySource())
    if len(sources) == 1:
        return sources[0]
    return ChainedPropertySource(*sources)


def create_property_store(
    config: PropertiesConfig,
    framework_properties: Mapping[str, str] | None = None,
    *,
    activate: bool = True,
) -> PropertyStore:
    """Create a PropertyStore and, by default, load it.

    Args:
        config: Property store configuration from settings
        framework_properties: Host-wide properties checked before the environment
        activate: Load the backing file before returning

    Returns:
        Configured PropertyStore
    """
    source = create_property_source(config, framework_properties)
    store = PropertyStore(source, config.file_property_name)

    logger.info(
        "creating_property_store",
        file_property_name=config.file_property_name,
        environment_fallback=config.use_environment_fallback,
    )

    if activate:
        store.activate()
    return store
