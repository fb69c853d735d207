"""Structured logging configuration with resolution_id propagation"""

import contextvars
import logging
import re
import sys
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

# Context variable for resolution_id propagation
resolution_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "resolution_id", default=None
)

# scheme://user:password@ prefix
_CREDENTIALS_PATTERN = re.compile(r"^(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)?[^/?#@]+@")

def redact_url(url: str) -> str:
    """
    Redact embedded credentials from a URL for safe logging

    Args:
        url: The URL to redact

    Returns:
        URL with any user:password@ prefix replaced by [REDACTED]@
    """
    if not url:
        return url
    return _CREDENTIALS_PATTERN.sub(
        lambda m: f"{m.group('scheme') or ''}[REDACTED]@", url, count=1
    )

def add_resolution_id(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Add resolution_id to log entries from context variable

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with resolution_id
    """
    resolution_id = resolution_id_var.get()
    if resolution_id:
        event_dict["resolution_id"] = resolution_id
    return event_dict

def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structured logging with structlog

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "console")
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # Diagnostics go to stderr so library users keep stdout for themselves
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
    )
    # basicConfig is a no-op once the host application installed handlers
    logging.getLogger().setLevel(numeric_level)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_resolution_id,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

def set_resolution_id(resolution_id: Optional[str] = None) -> str:
    """
    Set resolution_id in context variable

    Args:
        resolution_id: Optional resolution ID, generates one if not provided

    Returns:
        The resolution_id that was set
    """
    if resolution_id is None:
        resolution_id = f"res_{uuid4().hex[:12]}"
    resolution_id_var.set(resolution_id)
    return resolution_id

def clear_resolution_id() -> None:
    """Clear resolution_id from context variable"""
    resolution_id_var.set(None)
