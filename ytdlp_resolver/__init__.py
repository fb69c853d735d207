"""yt-dlp backed stream URL resolver."""

__version__ = "1.0.0"

from ytdlp_resolver.models.stream import (  # noqa: E402
    ProbeResult,
    QualityRequest,
    ResolvedStream,
    ResolveOptions,
    StreamQuality,
)
from ytdlp_resolver.resolvers.ytdlp import YtdlpResolver  # noqa: E402

__all__ = [
    "__version__",
    "ProbeResult",
    "QualityRequest",
    "ResolvedStream",
    "ResolveOptions",
    "StreamQuality",
    "YtdlpResolver",
]
