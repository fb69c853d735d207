"""Resolver-specific exceptions."""


class ResolverError(Exception):
    """Base exception for resolver errors."""

    pass


class InvalidInputError(ResolverError):
    """Raised when the URL passed to resolve/probe is missing or empty."""

    pass


class UnsupportedURLError(ResolverError):
    """Raised when the URL host is not on the known-host list."""

    pass


class ToolUnavailableError(ResolverError):
    """Raised when yt-dlp is missing and cannot be installed."""

    pass


class SpawnFailureError(ResolverError):
    """Raised when the OS fails to start the yt-dlp process."""

    pass


class ProcessTimeoutError(ResolverError):
    """Raised when yt-dlp does not exit within the configured deadline."""

    pass


class ResolutionFailureError(ResolverError):
    """Raised when yt-dlp ran but could not produce a direct URL."""

    pass


class ToolInstallError(ResolverError):
    """Raised when downloading the yt-dlp binary fails."""

    pass
