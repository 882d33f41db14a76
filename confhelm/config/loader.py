"""Layered TOML configuration files.

A config directory holds ``default.toml``, which must exist, and an optional
``{env}.toml`` per environment. Layers are read in that order and merged
table by table, so an environment file only needs the keys it changes.
"""

import os
import tomllib
from pathlib import Path
from typing import Any, NamedTuple

CONFIG_DIR_ENV = "CONFHELM_CONFIG_DIR"
ENVIRONMENT_ENV = "CONFHELM_ENV"
DEFAULT_ENVIRONMENT = "development"

# How many parent directories are searched for config/
_SEARCH_DEPTH = 5


class ConfigLayer(NamedTuple):
    """One TOML file in the merge order."""

    path: Path
    required: bool


def get_config_dir() -> Path:
    """Locate the configuration directory.

    CONFHELM_CONFIG_DIR wins when set and must exist. Otherwise the nearest
    ``config/`` in the working directory or one of its parents is used.

    Raises:
        FileNotFoundError: If CONFHELM_CONFIG_DIR names a missing directory
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    cwd = Path.cwd()
    for directory in [cwd, *cwd.parents][:_SEARCH_DEPTH]:
        candidate = directory / "config"
        if candidate.is_dir():
            return candidate
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def config_layers(config_dir: Path, env: str) -> list[ConfigLayer]:
    """List the layers for an environment, lowest precedence first."""
    return [
        ConfigLayer(config_dir / "default.toml", required=True),
        ConfigLayer(config_dir / f"{env}.toml", required=False),
    ]


def load_toml(file_path: Path) -> dict[str, Any]:
    """Read one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    try:
        with file_path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {file_path}") from None


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base.

    Tables present on both sides are merged key by key; any other value
    from override replaces the one in base. Neither input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(config_dir: Path | None = None, env: str | None = None) -> dict[str, Any]:
    """Read and merge every layer for an environment.

    Args:
        config_dir: Directory holding the TOML files; located when omitted
        env: Environment name; read from CONFHELM_ENV when omitted

    Returns:
        Merged configuration dictionary

    Raises:
        FileNotFoundError: If default.toml is missing
    """
    config_dir = config_dir if config_dir is not None else get_config_dir()
    env = env if env is not None else get_environment()

    config: dict[str, Any] = {}
    for layer in config_layers(config_dir, env):
        if not layer.path.exists():
            if layer.required:
                raise FileNotFoundError(
                    f"Default configuration file not found: {layer.path}. "
                    f"Create config/default.toml or set {CONFIG_DIR_ENV}."
                )
            continue
        config = deep_merge(config, load_toml(layer.path))
    return config
