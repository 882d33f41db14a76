"""Unit tests for TOML configuration loader."""

import tomllib
from pathlib import Path

import pytest

from confhelm.config.loader import (
    config_layers,
    deep_merge,
    get_config_dir,
    get_environment,
    load_config,
    load_toml,
)


class TestDeepMerge:
    """Tests for deep_merge function."""

    def test_merge_flat_dicts(self) -> None:
        """Flat dictionaries are merged correctly."""
        result = deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_merge_nested_dicts(self) -> None:
        """Nested dictionaries are merged recursively."""
        base = {"lookup": {"poll_interval_ms": 20, "default_timeout_ms": 5000}}
        override = {"lookup": {"default_timeout_ms": 100}}
        result = deep_merge(base, override)
        assert result == {"lookup": {"poll_interval_ms": 20, "default_timeout_ms": 100}}

    def test_override_replaces_non_dict(self) -> None:
        """Non-dict values in override replace base values."""
        assert deep_merge({"a": {"x": 1}}, {"a": "replaced"}) == {"a": "replaced"}

    def test_base_unmodified(self) -> None:
        """Original base dictionary is not modified."""
        base = {"a": 1}
        deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadToml:
    """Tests for load_toml function."""

    def test_load_valid_toml(self, tmp_path: Path) -> None:
        """Valid TOML file is loaded correctly."""
        toml_file = tmp_path / "test.toml"
        toml_file.write_text('[properties]\nfile_property_name = "app.file"')

        assert load_toml(toml_file) == {"properties": {"file_property_name": "app.file"}}

    def test_load_missing_file_raises(self, tmp_path: Path) -> None:
        """Missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_toml(tmp_path / "nonexistent.toml")

    def test_load_invalid_toml_raises(self, tmp_path: Path) -> None:
        """Invalid TOML syntax raises error."""
        invalid_file = tmp_path / "invalid.toml"
        invalid_file.write_text("invalid = [unclosed")

        with pytest.raises(tomllib.TOMLDecodeError):
            load_toml(invalid_file)


class TestGetEnvironment:
    """Tests for get_environment function."""

    def test_returns_env_var_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Returns CONFHELM_ENV value when set."""
        monkeypatch.setenv("CONFHELM_ENV", "production")
        assert get_environment() == "production"

    def test_defaults_to_development(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Defaults to 'development' when CONFHELM_ENV not set."""
        monkeypatch.delenv("CONFHELM_ENV", raising=False)
        assert get_environment() == "development"


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_uses_env_var_when_set(
        self, test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Uses CONFHELM_CONFIG_DIR when set."""
        monkeypatch.setenv("CONFHELM_CONFIG_DIR", str(test_config_dir))
        assert get_config_dir() == test_config_dir

    def test_raises_for_missing_env_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Raises error when CONFHELM_CONFIG_DIR doesn't exist."""
        monkeypatch.setenv("CONFHELM_CONFIG_DIR", str(tmp_path / "missing"))
        with pytest.raises(FileNotFoundError):
            get_config_dir()


class TestLoadConfig:
    """Tests for load_config function."""

    def test_merges_environment_config(
        self,
        test_config_dir: Path,
        mock_toml_files,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Environment config overrides default config."""
        mock_toml_files(
            {
                "default.toml": "app_name = 'test'\ndebug = false",
                "staging.toml": "debug = true",
            }
        )
        monkeypatch.setenv("CONFHELM_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("CONFHELM_ENV", "staging")

        assert load_config() == {"app_name": "test", "debug": True}

    def test_missing_environment_file_ignored(
        self,
        test_config_dir: Path,
        mock_toml_files,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """An absent environment file leaves the defaults alone."""
        mock_toml_files({"default.toml": "app_name = 'test'"})
        monkeypatch.setenv("CONFHELM_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("CONFHELM_ENV", "nonexistent")

        assert load_config() == {"app_name": "test"}

    def test_missing_default_raises(
        self, test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Missing default.toml raises error."""
        monkeypatch.setenv("CONFHELM_CONFIG_DIR", str(test_config_dir))

        with pytest.raises(FileNotFoundError, match="default.toml"):
            load_config()

    def test_explicit_directory_and_environment(self, tmp_path: Path) -> None:
        """Arguments take the place of the environment variables."""
        (tmp_path / "default.toml").write_text("[lookup]\npoll_interval_ms = 20")
        (tmp_path / "test.toml").write_text("[lookup]\npoll_interval_ms = 1")

        assert load_config(tmp_path, "test") == {"lookup": {"poll_interval_ms": 1}}


class TestConfigLayers:
    """Tests for config_layers function."""

    def test_default_first_and_required(self, tmp_path: Path) -> None:
        """default.toml is required and merged before the environment file."""
        layers = config_layers(tmp_path, "production")

        assert [layer.path.name for layer in layers] == ["default.toml", "production.toml"]
        assert [layer.required for layer in layers] == [True, False]
