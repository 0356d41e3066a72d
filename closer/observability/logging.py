"""Structured logging with structlog.

JSON lines in production, colored console output in development. Inbound
events carry phone numbers and email addresses, so a redaction processor
runs before rendering unless it is switched off.
"""

import logging
import re
import sys
from collections.abc import Iterable, Mapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

REDACTED = "[REDACTED]"

SENSITIVE_KEYS: frozenset[str] = frozenset({
    "access_token",
    "actor_phone",
    "api_key",
    "authorization",
    "email",
    "password",
    "phone",
    "secret",
    "token",
})

EMAIL_PATTERN = re.compile(r"[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,}")
# WhatsApp numbers arrive as E.164 digits, with or without the leading +
PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{9,}\d")


class PIIRedactor:
    """structlog processor masking contact details.

    Values under a sensitive key are dropped entirely; every other string,
    however deeply nested, has emails and phone numbers masked in place.
    """

    def __init__(self, keys: Iterable[str] = SENSITIVE_KEYS) -> None:
        self._keys = frozenset(k.lower() for k in keys)

    def __call__(self, _logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
        return cast(EventDict, self._scrub(event_dict))

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            return PHONE_PATTERN.sub("[PHONE]", EMAIL_PATTERN.sub("[EMAIL]", value))
        if isinstance(value, Mapping):
            return {
                k: REDACTED if str(k).lower() in self._keys else self._scrub(v)
                for k, v in value.items()
            }
        if isinstance(value, list | tuple | set):
            return [self._scrub(item) for item in value]
        return value


def _level_number(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name
        format: "json" or "console"
        redact_pii: Mask phone numbers and emails before rendering
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if redact_pii:
        processors.append(PIIRedactor())
    processors.append(
        structlog.processors.JSONRenderer()
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
