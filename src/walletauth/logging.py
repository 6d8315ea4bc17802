"""Centralized logging utilities.

Provides:
- Structlog JSON/console configuration
- Identifier abbreviation so nonces, addresses and tokens never hit the logs in full
- Standardized error type constants
"""

import logging
import sys
from typing import Any

import structlog


class ErrorType:
    """Standardized error type codes for structured logging and API responses."""

    # Request validation
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Authentication
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_TOKEN = "INVALID_TOKEN"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    RATE_LIMITED = "RATE_LIMIT_EXCEEDED"


def abbreviate(value: str | None, keep: int = 8) -> str:
    """Shorten an identifier for logging.

    Values longer than ``keep`` characters are cut to their first ``keep``
    characters followed by "...". Shorter values are returned unchanged.

    Args:
        value: Identifier such as a nonce, wallet address or token
        keep: Number of leading characters to preserve

    Returns:
        Abbreviated identifier ("" for None)
    """
    if not value:
        return ""
    if len(value) <= keep:
        return value
    return value[:keep] + "..."


def configure_logging(json_output: bool = True) -> None:
    """Configure structlog for structured logging.

    Sets up structlog with:
    - JSON output (production) or console output (development)
    - ISO timestamp format
    - Log level and stack trace formatting
    - Stdout output (container-friendly)

    Args:
        json_output: Use JSON format (True) or console format (False)
    """
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

