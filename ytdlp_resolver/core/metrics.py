"""Prometheus metrics collection for the resolver.

This module defines Prometheus metrics for resolution outcomes, individual
yt-dlp invocations and tool installation attempts.
"""

from prometheus_client import Counter, Histogram, Info

# Library info
resolver_info = Info("ytdlp_resolver", "yt-dlp resolver library information")

resolutions_total = Counter(
    "ytdlp_resolutions_total",
    "Total resolve/probe operations by status",
    ["operation", "status"],
)

resolution_duration_seconds = Histogram(
    "ytdlp_resolution_duration_seconds",
    "End-to-end resolve/probe duration in seconds",
    ["operation"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
)

tool_invocations_total = Counter(
    "ytdlp_tool_invocations_total",
    "Total yt-dlp process invocations by pipeline step and outcome",
    ["step", "outcome"],
)

tool_installs_total = Counter(
    "ytdlp_tool_installs_total",
    "Total yt-dlp installation attempts by status",
    ["status"],
)


class MetricsCollector:
    """Centralized metrics collection and update helper.

    Provides static methods for recording metrics throughout the resolver
    in a consistent manner.
    """

    enabled: bool = True

    @staticmethod
    def record_resolution(operation: str, status: str, duration: float) -> None:
        """Record a resolve or probe operation.

        Args:
            operation: 'resolve' or 'probe'.
            status: Outcome ('success' or an error code).
            duration: Operation duration in seconds.
        """
        if not MetricsCollector.enabled:
            return
        resolutions_total.labels(operation=operation, status=status).inc()
        resolution_duration_seconds.labels(operation=operation).observe(duration)

    @staticmethod
    def record_invocation(step: str, outcome: str) -> None:
        """Record a single yt-dlp invocation.

        Args:
            step: Pipeline step ('liveness', 'direct_url', 'metadata', ...).
            outcome: 'ok', 'exit_nonzero', 'timeout' or 'spawn_failure'.
        """
        if not MetricsCollector.enabled:
            return
        tool_invocations_total.labels(step=step, outcome=outcome).inc()

    @staticmethod
    def record_install(status: str) -> None:
        """Record a yt-dlp installation attempt ('success' or 'failed')."""
        if not MetricsCollector.enabled:
            return
        tool_installs_total.labels(status=status).inc()


def initialize_metrics(version: str, enabled: bool = True) -> None:
    """Initialize resolver metrics with version information.

    Args:
        version: Library version string.
        enabled: Whether metrics are recorded at all.
    """
    MetricsCollector.enabled = enabled
    resolver_info.info({"version": version})
