"""Stream resolver implementations."""

from ytdlp_resolver.resolvers.base import StreamResolver
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
from ytdlp_resolver.resolvers.ytdlp import YtdlpResolver

__all__ = [
    "StreamResolver",
    "YtdlpResolver",
    "ResolverError",
    "InvalidInputError",
    "UnsupportedURLError",
    "ToolUnavailableError",
    "SpawnFailureError",
    "ProcessTimeoutError",
    "ResolutionFailureError",
    "ToolInstallError",
]
