"""Configuration for confhelm.

Settings come from layered TOML files with CONFHELM_* environment variable
overrides. Components never read settings on their own: the host passes the
relevant section into ``create_property_store`` or ``create_service_lookup``.

Usage:
    from confhelm.config import get_settings

    settings = get_settings()
    interval = settings.lookup.poll_interval_ms
"""

from functools import lru_cache

from confhelm.config.settings import Settings, load_settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for the current environment, loaded once per process."""
    return load_settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the configuration files again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["Settings", "get_settings", "load_settings", "reload_settings"]
