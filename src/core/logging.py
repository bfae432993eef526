"""Logging configuration and utilities.

This module provides structured logging using structlog with support for
JSON and text formats.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

import structlog

from .config import Settings

REDACTED = "[REDACTED]"

SENSITIVE_KEYS = frozenset({
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "access_token",
    "password",
    "client_secret",
})


def setup_logging(settings: Settings) -> None:
    """Setup structured logging configuration.

    Args:
        settings: Application settings.
    """
    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # Setup log file handler if specified
    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=_parse_size(settings.log_max_size),
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, settings.log_level))
        logging.getLogger().addHandler(file_handler)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        redact_sensitive,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json":
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.extend([
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _parse_size(size_str: str) -> int:
    """Parse size string like '10MB' or '1GB' to bytes."""
    size_str = size_str.upper().strip()

    if size_str.endswith('KB'):
        return int(size_str[:-2]) * 1024
    elif size_str.endswith('MB'):
        return int(size_str[:-2]) * 1024 * 1024
    elif size_str.endswith('GB'):
        return int(size_str[:-2]) * 1024 * 1024 * 1024
    else:
        return int(size_str)


def redact_headers(
    headers: Mapping[str, str],
    sensitive: Iterable[str] = SENSITIVE_KEYS,
) -> Dict[str, str]:
    """Return a copy of headers safe to write to logs.

    Args:
        headers: Header mapping, any casing.
        sensitive: Lowercase names whose values are replaced.

    Returns:
        Dict[str, str]: Headers with credential-bearing values redacted.
    """
    sensitive = frozenset(sensitive)
    return {
        key: (REDACTED if key.lower() in sensitive else value)
        for key, value in headers.items()
    }


def redact_sensitive(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Structlog processor masking credential fields and header maps."""
    for key, value in list(event_dict.items()):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        elif key.endswith("headers") and isinstance(value, Mapping):
            event_dict[key] = redact_headers(value)
    return event_dict
