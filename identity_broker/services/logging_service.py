"""structlog setup for JSON logs, credential redaction and failure logging."""

import logging
import sys
from typing import Any, Dict

import structlog

from identity_broker.models.errors import BrokerError

# Substrings matched case-insensitively against every log key
REDACTED_KEY_PARTS = frozenset({"api_key", "authorization", "secret", "password", "token"})
REDACTED = "REDACTED"


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Processor replacing credential-bearing values with ``REDACTED``.

    Covers client secrets, admin and user passwords, access, refresh and
    confirmation tokens, and Authorization headers.
    """
    for key in event_dict:
        lowered = key.lower()
        if any(part in lowered for part in REDACTED_KEY_PARTS):
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Emit one JSON object per line on stdout at ``log_level`` and above.

    Request-scoped context (correlation id, method, path) bound through
    ``structlog.contextvars`` is merged into every entry.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def log_failure(
    logger: Any, event: str, error: BrokerError, level: str = "warning", **context: Any
) -> None:
    """Log a failed result step with its failure kind and upstream detail.

    Args:
        logger: structlog logger to emit on
        event: snake_case event name
        error: BrokerError carried by the Failure
        level: Log method name (warning, error, ...)
        **context: Extra key/value pairs bound to the entry
    """
    getattr(logger, level)(
        event,
        failure_kind=error.kind,
        failure_message=error.message,
        upstream_detail=error.detail,
        upstream_status=error.status_code,
        **context,
    )
