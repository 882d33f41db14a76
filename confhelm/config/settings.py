"""Root settings model for confhelm configuration."""

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    InitSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from confhelm.config.loader import load_config
from confhelm.config.models.lookup import LookupConfig
from confhelm.config.models.observability import ObservabilityConfig
from confhelm.config.models.properties import PropertiesConfig

# Values read from the TOML layers, visible only while load_settings runs
_file_values: ContextVar[dict[str, Any]] = ContextVar("confhelm_file_values", default={})


class Settings(BaseSettings):
    """Root configuration object.

    Sources, highest precedence first:
    1. Constructor arguments
    2. CONFHELM_* environment variables (``__`` separates nested fields)
    3. TOML layers, when built through load_settings
    4. Model defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="CONFHELM_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="confhelm", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")

    properties: PropertiesConfig = Field(
        default_factory=PropertiesConfig,
        description="Property store configuration",
    )
    lookup: LookupConfig = Field(
        default_factory=LookupConfig,
        description="Service lookup configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        file_settings = InitSettingsSource(settings_cls, init_kwargs=dict(_file_values.get()))
        return (init_settings, env_settings, file_settings)


def load_settings(
    config_dir: Path | None = None,
    env: str | None = None,
    **overrides: Any,
) -> Settings:
    """Build Settings from the TOML layers of an environment.

    Args:
        config_dir: Directory holding the TOML files; located when omitted
        env: Environment name; read from CONFHELM_ENV when omitted
        **overrides: Field values taking precedence over every other source

    Raises:
        FileNotFoundError: If default.toml is missing
    """
    token = _file_values.set(load_config(config_dir, env))
    try:
        return Settings(**overrides)
    finally:
        _file_values.reset(token)
