"""Tests for structured logging."""

import json
from io import StringIO

import pytest
import structlog

from confhelm.observability.logging import (
    REDACTED,
    SecretRedactor,
    build_processors,
    get_logger,
    is_secret_key,
    setup_logging,
)


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_json_format(self) -> None:
        """Should configure JSON format for production."""
        setup_logging(level="INFO", format="json", redact_secrets=False)
        get_logger("test").info("test_message")

    def test_setup_console_format(self) -> None:
        """Should configure console format for development."""
        setup_logging(level="DEBUG", format="console", redact_secrets=False)
        get_logger("test").debug("test_message")

    def test_setup_with_redaction(self) -> None:
        """Should configure secret redaction when enabled."""
        setup_logging(level="INFO", format="json", redact_secrets=True)
        get_logger("test").info("test_message", password="hunter2")

    def test_unknown_level_falls_back(self) -> None:
        """An unknown level name does not raise."""
        setup_logging(level="VERBOSE")


class TestBuildProcessors:
    """Tests for the processor chain."""

    def test_redactor_before_renderer(self) -> None:
        """The redactor is present and runs before rendering."""
        processors = build_processors("json", redact_secrets=True)
        assert isinstance(processors[-2], SecretRedactor)
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_no_redactor_when_disabled(self) -> None:
        """Redaction can be switched off."""
        processors = build_processors("console", redact_secrets=False)
        assert not any(isinstance(p, SecretRedactor) for p in processors)
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


class TestIsSecretKey:
    """Tests for secret key detection."""

    @pytest.mark.parametrize(
        "key",
        ["password", "db.password", "service.auth.token", "API_KEY", "client-secret"],
    )
    def test_secret_keys(self, key: str) -> None:
        """Secret-looking names are detected, dotted or not."""
        assert is_secret_key(key)

    @pytest.mark.parametrize("key", ["http.port", "path", "service_type", "count"])
    def test_plain_keys(self, key: str) -> None:
        """Ordinary names are not treated as secret."""
        assert not is_secret_key(key)


class TestSecretRedactor:
    """Tests for SecretRedactor processor."""

    @pytest.fixture
    def redactor(self) -> SecretRedactor:
        """Create a SecretRedactor instance."""
        return SecretRedactor()

    def test_redacts_secret_keys(self, redactor: SecretRedactor) -> None:
        """Should mask values stored under secret keys."""
        result = redactor(None, None, {"token": "abc", "count": 3})  # type: ignore
        assert result["token"] == REDACTED
        assert result["count"] == 3

    def test_redacts_value_of_named_secret_property(self, redactor: SecretRedactor) -> None:
        """Should mask the value field when the event names a secret property."""
        event_dict = {"event": "property_set", "key": "db.password", "value": "s3cret"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert result["value"] == REDACTED
        assert result["key"] == "db.password"

    def test_keeps_value_of_plain_property(self, redactor: SecretRedactor) -> None:
        """Should keep values of ordinary properties."""
        event_dict = {"event": "property_set", "property": "http.port", "value": "8080"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert result == event_dict

    def test_handles_nested_dicts(self, redactor: SecretRedactor) -> None:
        """Should redact inside nested dictionaries."""
        result = redactor(None, None, {"db": {"password": "x", "host": "h"}})  # type: ignore
        assert result["db"] == {"password": REDACTED, "host": "h"}


class TestJSONLogging:
    """Tests for JSON log output format."""

    def test_json_output_is_valid_json(self) -> None:
        """Should produce valid JSON output with secrets masked."""
        output = StringIO()
        structlog.configure(
            processors=[
                structlog.processors.add_log_level,
                SecretRedactor(),
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(0),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(output),
            cache_logger_on_first_use=False,
        )

        structlog.get_logger("test").info("properties_loaded", path="/tmp/x", secret="y")

        parsed = json.loads(output.getvalue().strip())
        assert parsed["event"] == "properties_loaded"
        assert parsed["path"] == "/tmp/x"
        assert parsed["secret"] == REDACTED
        structlog.reset_defaults()
