"""Structured logging configuration using structlog.

Provides JSON logging for production and console logging for development,
with automatic context binding and masking of secret-looking values.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

# Key fragments that mark a value as secret (matched as substrings)
SECRET_KEY_FRAGMENTS: tuple[str, ...] = (
    "password",
    "passwd",
    "secret",
    "token",
    "api_key",
    "apikey",
    "credential",
    "private_key",
    "authorization",
)

REDACTED = "[REDACTED]"


def is_secret_key(key: str) -> bool:
    """Return True if a key name looks like it holds a secret.

    Dotted property names are matched as well, so ``db.password`` and
    ``service.auth.token`` are both considered secret.
    """
    normalized = key.lower().replace("-", "_").replace(".", "_")
    return any(fragment in normalized for fragment in SECRET_KEY_FRAGMENTS)


class SecretRedactor:
    """Processor that masks secret values in log events.

    Two cases are handled:
    1. Event keys that look secret (``password=...``) are masked directly.
    2. Events that name a property (``key=...`` or ``property=...``) have
       their ``value`` field masked when the property name looks secret.
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """Redact secrets from event dictionary."""
        result = self._redact_dict(event_dict)
        named = result.get("property") or result.get("key")
        if isinstance(named, str) and is_secret_key(named) and "value" in result:
            result["value"] = REDACTED
        return cast(EventDict, result)

    def _redact_dict(self, data: MutableMapping[str, Any]) -> dict[str, Any]:
        """Recursively redact secret keys from a dictionary."""
        result: dict[str, Any] = {}
        for key, value in data.items():
            if key != "event" and is_secret_key(key):
                result[key] = REDACTED
            elif isinstance(value, dict):
                result[key] = self._redact_dict(value)
            else:
                result[key] = value
        return result


def build_processors(format: str = "json", redact_secrets: bool = True) -> list[Any]:
    """Processor chain for the given output format."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if redact_secrets:
        processors.append(SecretRedactor())
    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_secrets: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum log level name; unknown names fall back to INFO
        format: "json" or "console"
        redact_secrets: Whether to mask secret-looking values in logs
    """
    level_num = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    structlog.configure(
        processors=build_processors(format, redact_secrets),
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger bound to a module name (pass ``__name__``)."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
