"""Data models for the resolver."""

from ytdlp_resolver.models.stream import (
    MAX_PIXEL_HEIGHT,
    ProbeResult,
    QualityRequest,
    ResolvedStream,
    ResolveOptions,
    StreamQuality,
)

__all__ = [
    "MAX_PIXEL_HEIGHT",
    "ProbeResult",
    "QualityRequest",
    "ResolvedStream",
    "ResolveOptions",
    "StreamQuality",
]
