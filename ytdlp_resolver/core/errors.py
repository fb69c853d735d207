"""Centralized error mapping for resolver results.

This module provides standardized error codes and the exception-to-result
mapping used at the resolver boundary, where failures are returned as data
instead of being raised.
"""

from typing import Dict, Type

from ytdlp_resolver.models.stream import ProbeResult, ResolvedStream
from ytdlp_resolver.resolvers.exceptions import (
    InvalidInputError,
    ProcessTimeoutError,
    ResolutionFailureError,
    ResolverError,
    SpawnFailureError,
    ToolInstallError,
    ToolUnavailableError,
    UnsupportedURLError,
)


class ErrorCode:
    """Standardized error codes carried by failed results.

    These codes provide machine-readable identifiers that callers can use to
    branch on the failure kind without parsing the message.
    """

    # Caller errors
    INVALID_INPUT = "INVALID_INPUT"
    UNSUPPORTED_URL = "UNSUPPORTED_URL"

    # Tool errors
    TOOL_UNAVAILABLE = "TOOL_UNAVAILABLE"
    SPAWN_FAILURE = "SPAWN_FAILURE"
    TIMEOUT = "TIMEOUT"
    RESOLUTION_FAILED = "RESOLUTION_FAILED"
    INSTALL_FAILED = "INSTALL_FAILED"

    # Anything else
    RESOLVER_ERROR = "RESOLVER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Exception type to error code mapping
# Order matters: subclasses must come before their base classes
EXCEPTION_TO_ERROR_CODE: Dict[Type[Exception], str] = {
    InvalidInputError: ErrorCode.INVALID_INPUT,
    UnsupportedURLError: ErrorCode.UNSUPPORTED_URL,
    ToolUnavailableError: ErrorCode.TOOL_UNAVAILABLE,
    SpawnFailureError: ErrorCode.SPAWN_FAILURE,
    ProcessTimeoutError: ErrorCode.TIMEOUT,
    ResolutionFailureError: ErrorCode.RESOLUTION_FAILED,
    ToolInstallError: ErrorCode.INSTALL_FAILED,
    # ResolverError must be last (after its subclasses)
    ResolverError: ErrorCode.RESOLVER_ERROR,
}

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


def error_code_for(exc: Exception) -> str:
    """Map an exception to its error code.

    Args:
        exc: The exception to map.

    Returns:
        The matching ErrorCode value, INTERNAL_ERROR for unknown exceptions.
    """
    for exc_type, error_code in EXCEPTION_TO_ERROR_CODE.items():
        if isinstance(exc, exc_type):
            return error_code
    return ErrorCode.INTERNAL_ERROR


def _message_for(exc: Exception, error_code: str) -> str:
    if error_code == ErrorCode.INTERNAL_ERROR:
        return INTERNAL_ERROR_MESSAGE
    return str(exc) or INTERNAL_ERROR_MESSAGE


def failed_stream(original_url: str, exc: Exception) -> ResolvedStream:
    """Convert an exception raised during resolve() into a failed ResolvedStream."""
    error_code = error_code_for(exc)
    return ResolvedStream.failure(original_url, _message_for(exc, error_code), error_code)


def failed_probe(original_url: str, exc: Exception) -> ProbeResult:
    """Convert an exception raised during probe() into a failed ProbeResult."""
    error_code = error_code_for(exc)
    return ProbeResult.failure(original_url, _message_for(exc, error_code), error_code)
