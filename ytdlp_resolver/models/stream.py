"""Stream data models for resolver results and quality requests."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

# Highest pixel height accepted for an explicit quality request (8K)
MAX_PIXEL_HEIGHT = 4320


class StreamQuality(int, Enum):
    """Named quality tiers mapped to their pixel height cap."""

    AUTO = 0
    LOW = 360
    MEDIUM = 480
    HIGH = 720
    FULL = 1080
    QHD = 1440
    UHD_4K = 2160


# Lookup for textual tier names, including common aliases
_TIER_ALIASES: Dict[str, StreamQuality] = {
    "auto": StreamQuality.AUTO,
    "best": StreamQuality.AUTO,
    "low": StreamQuality.LOW,
    "medium": StreamQuality.MEDIUM,
    "high": StreamQuality.HIGH,
    "hd": StreamQuality.HIGH,
    "full": StreamQuality.FULL,
    "fullhd": StreamQuality.FULL,
    "fhd": StreamQuality.FULL,
    "qhd": StreamQuality.QHD,
    "4k": StreamQuality.UHD_4K,
    "uhd": StreamQuality.UHD_4K,
    "uhd_4k": StreamQuality.UHD_4K,
}

_HEIGHT_PATTERN = re.compile(r"^(\d+)p?$")

QualityValue = Union["QualityRequest", StreamQuality, int, str, None]


@dataclass(frozen=True)
class QualityRequest:
    """A requested stream quality.

    Exactly one interpretation applies: a named tier, an explicit pixel
    height, or neither (AUTO, no constraint).

    Attributes:
        tier: Named quality tier, or None
        pixel_height: Explicit height in pixels (1..4320), or None
    """

    tier: Optional[StreamQuality] = None
    pixel_height: Optional[int] = None

    def __post_init__(self) -> None:
        if self.tier is not None and self.pixel_height is not None:
            raise ValueError("QualityRequest takes either a tier or a pixel height, not both")
        if self.pixel_height is not None and not 1 <= self.pixel_height <= MAX_PIXEL_HEIGHT:
            raise ValueError(f"pixel_height must be between 1 and {MAX_PIXEL_HEIGHT}")

    @classmethod
    def auto(cls) -> "QualityRequest":
        return cls()

    @classmethod
    def of_tier(cls, tier: StreamQuality) -> "QualityRequest":
        if tier is StreamQuality.AUTO:
            return cls()
        return cls(tier=tier)

    @classmethod
    def of_height(cls, height: int) -> "QualityRequest":
        return cls(pixel_height=height)

    @classmethod
    def parse(cls, value: QualityValue) -> "QualityRequest":
        """
        Build a QualityRequest from a loosely typed value.

        Args:
            value: A QualityRequest, StreamQuality, pixel height, tier name
                (e.g. "high", "4k"), height string (e.g. "720p") or None

        Returns:
            The matching QualityRequest

        Raises:
            ValueError: If the value cannot be interpreted
        """
        if value is None:
            return cls()
        if isinstance(value, QualityRequest):
            return value
        if isinstance(value, StreamQuality):
            return cls.of_tier(value)
        if isinstance(value, bool):
            raise ValueError(f"Invalid quality value: {value!r}")
        if isinstance(value, int):
            return cls() if value == 0 else cls.of_height(value)

        text = str(value).strip().lower()
        if text in _TIER_ALIASES:
            return cls.of_tier(_TIER_ALIASES[text])

        match = _HEIGHT_PATTERN.match(text)
        if match:
            height = int(match.group(1))
            return cls() if height == 0 else cls.of_height(height)

        raise ValueError(f"Invalid quality value: {value!r}")

    @property
    def is_auto(self) -> bool:
        return self.tier is None and self.pixel_height is None

    @property
    def height(self) -> int:
        """Pixel height cap, 0 meaning no constraint."""
        if self.tier is not None:
            return int(self.tier.value)
        if self.pixel_height is not None:
            return self.pixel_height
        return 0


@dataclass(frozen=True)
class ResolveOptions:
    """Per-call resolution options.

    Attributes:
        quality: Requested quality, anything QualityRequest.parse accepts
        timeout_ms: Per-invocation timeout override in milliseconds
        include_metadata: Whether to run the title/dimensions query
    """

    quality: QualityValue = None
    timeout_ms: Optional[int] = None
    include_metadata: bool = True

    def quality_request(self) -> QualityRequest:
        return QualityRequest.parse(self.quality)


@dataclass
class ResolvedStream:
    """Result of resolving a page URL into a playable stream.

    A failed resolution carries ``success=False`` with ``error`` set and no
    ``direct_url``.

    ``duration``, ``video_codec``, ``audio_codec``, ``headers``, ``cookies``
    and ``available_heights`` are reserved for resolvers that report them.
    The yt-dlp resolver never fills them, so they keep their defaults; use
    :meth:`YtdlpResolver.probe` for the duration.
    """

    original_url: str
    success: bool = False
    direct_url: Optional[str] = None
    audio_url: Optional[str] = None  # separate audio track for video+audio pairs
    title: str = ""
    width: int = 0  # 0 means unknown
    height: int = 0
    duration: float = 0.0  # seconds
    is_live: bool = False
    is_hls: bool = False
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Optional[str] = None
    available_heights: Tuple[int, ...] = ()
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def failure(cls, original_url: str, error: str, error_code: str) -> "ResolvedStream":
        return cls(original_url=original_url, success=False, error=error, error_code=error_code)


@dataclass
class ProbeResult:
    """Cheap metadata query result (no direct URL, no format decision)."""

    original_url: str
    success: bool = False
    title: str = ""
    is_live: bool = False
    duration: float = 0.0  # seconds, 0.0 when unknown
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def failure(cls, original_url: str, error: str, error_code: str) -> "ProbeResult":
        return cls(original_url=original_url, success=False, error=error, error_code=error_code)
