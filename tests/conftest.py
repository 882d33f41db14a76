"""Shared test fixtures for the confhelm test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Hide CONFHELM_* variables of the invoking shell from every test."""
    for name in list(os.environ):
        if name.upper().startswith("CONFHELM_"):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test."""
    from confhelm.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Empty config/ directory under tmp_path."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture writing TOML layers into test_config_dir.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _write(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _write


@pytest.fixture
def properties_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture writing a properties file and returning its path."""

    def _write(content: str, name: str = "app.properties") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def mock_logger() -> MagicMock:
    """Mock to patch over a module-level structlog logger."""
    logger = MagicMock()
    logger.bind = MagicMock(return_value=logger)
    return logger
