"""structlog configuration module."""

import logging
import sys
from typing import Any

import structlog

REDACTED = "[REDACTED]"
SENSITIVE_KEY_PARTS = frozenset({"password", "email", "token", "key", "secret"})


def _is_sensitive(key: str) -> bool:
    return any(part in SENSITIVE_KEY_PARTS for part in key.lower().split("_"))


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: REDACTED if _is_sensitive(str(k)) else _redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact(item) for item in value]
    return value


def redact_sensitive_fields(_logger, _method_name: str, event_dict: dict) -> dict:
    """Replace values of keys such as `email`, `api_key` or `access_token`."""
    return {
        key: REDACTED if _is_sensitive(key) else _redact(value)
        for key, value in event_dict.items()
    }


def setup_logging(debug: bool = False) -> None:
    """
    Configure structlog and stdlib logging.

    In debug mode: colored, human-readable console output.
    In production mode: JSON output for log aggregation.

    Args:
        debug: If True, use ConsoleRenderer; otherwise use JSONRenderer.
    """

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,  # request_id, method, path (from middleware)
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.INFO
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if debug else logging.INFO,
    )
