"""Resolution pipeline built on sequential yt-dlp invocations.

A resolution runs three tool invocations one after the other, each awaiting
the previous one:

1. Liveness probe (``--print is_live``), soft failure
2. Direct URL extraction (``-f SELECTOR --get-url``), hard failure
3. Metadata fetch (``--print title/width/height``), soft failure

Output is parsed positionally in request order with every line access
bounds-checked.
"""

import math
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import structlog

from ytdlp_resolver.core.logging import redact_url
from ytdlp_resolver.core.metrics import MetricsCollector
from ytdlp_resolver.core.process import (
    ProcessErrorKind,
    ProcessInvocation,
    ProcessOutcome,
    ProcessRunner,
)
from ytdlp_resolver.models.stream import ProbeResult, QualityRequest, ResolvedStream
from ytdlp_resolver.resolvers import formats
from ytdlp_resolver.resolvers.exceptions import (
    ProcessTimeoutError,
    ResolutionFailureError,
    SpawnFailureError,
)

logger = structlog.get_logger(__name__)

COMMON_ARGS = ("--no-warnings", "--no-check-certificate")

RESOLVE_FAILED_MESSAGE = "Failed to resolve URL"
PROBE_FAILED_MESSAGE = "Failed to probe URL"

ToolPath = Union[str, Path]


def _lines(text: str) -> List[str]:
    # Only "\n" separates printed fields; a title may contain other line breaks
    lines = [line.rstrip("\r").strip() for line in text.split("\n")]
    if lines and not lines[-1]:
        lines.pop()
    return lines


def _line(lines: Sequence[str], index: int) -> str:
    return lines[index] if index < len(lines) else ""


def _parse_int(value: str) -> int:
    try:
        return max(int(value), 0)
    except ValueError:
        return 0


def _parse_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return 0.0
    if not math.isfinite(parsed) or parsed < 0:
        return 0.0
    return parsed


def _failure_message(outcome: ProcessOutcome, default: str) -> str:
    """Pick the most useful error text: tool stderr, then runner error, then *default*."""
    stderr = outcome.stderr_text.strip()
    if stderr:
        return stderr
    if outcome.error:
        return outcome.error
    return default


def _raise_for_outcome(outcome: ProcessOutcome, default: str) -> None:
    """Raise the exception matching a failed hard step."""
    message = _failure_message(outcome, default)
    if outcome.error_kind is ProcessErrorKind.SPAWN_FAILURE:
        raise SpawnFailureError(message)
    if outcome.error_kind is ProcessErrorKind.TIMEOUT:
        raise ProcessTimeoutError(message)
    raise ResolutionFailureError(message)


class ResolutionPipeline:
    """Runs the yt-dlp invocations that turn a page URL into a stream."""

    def __init__(self, runner: ProcessRunner):
        """
        Initialize the pipeline.

        Args:
            runner: ProcessRunner used for every tool invocation
        """
        self.runner = runner

    async def _invoke(
        self,
        step: str,
        tool_path: ToolPath,
        args: Sequence[str],
        url: str,
        timeout: float,
    ) -> ProcessOutcome:
        # "--" keeps a URL starting with "-" from being read as an option
        invocation = ProcessInvocation(
            command=str(tool_path),
            args=(*COMMON_ARGS, *args, "--", url),
            timeout=timeout,
        )
        logger.debug("tool_invocation_started", step=step, url=redact_url(url))
        outcome = await self.runner.run(invocation)
        MetricsCollector.record_invocation(step, outcome.label)

        if outcome.ok:
            logger.debug("tool_invocation_completed", step=step, duration=outcome.duration)
        else:
            logger.info(
                "tool_invocation_failed",
                step=step,
                outcome=outcome.label,
                exit_code=outcome.exit_code,
                error=_failure_message(outcome, ""),
            )
        return outcome

    async def detect_live(self, tool_path: ToolPath, url: str, timeout: float) -> bool:
        """
        Ask yt-dlp whether *url* is a live stream.

        Any failure counts as not live.
        """
        outcome = await self._invoke("liveness", tool_path, ["--print", "is_live"], url, timeout)
        if not outcome.ok:
            logger.warning("liveness_probe_failed", outcome=outcome.label, url=redact_url(url))
            return False
        return outcome.stdout_text.strip().lower() == "true"

    async def fetch_direct_url(
        self, tool_path: ToolPath, url: str, selector: str, timeout: float
    ) -> Tuple[str, Optional[str]]:
        """
        Extract the playable URL for *selector*.

        Args:
            tool_path: Path to the yt-dlp binary
            url: Page URL
            selector: Format selector from the format planner
            timeout: Invocation timeout in seconds

        Returns:
            Tuple of (direct_url, audio_url). audio_url is set when the
            selector picked a separate video and audio pair.

        Raises:
            SpawnFailureError: If yt-dlp could not be started
            ProcessTimeoutError: If yt-dlp did not exit in time
            ResolutionFailureError: If yt-dlp failed or printed no URL
        """
        outcome = await self._invoke(
            "direct_url", tool_path, ["-f", selector, "--get-url"], url, timeout
        )
        if not outcome.ok:
            _raise_for_outcome(outcome, RESOLVE_FAILED_MESSAGE)

        urls = [line for line in _lines(outcome.stdout_text) if line]
        if not urls:
            raise ResolutionFailureError(_failure_message(outcome, RESOLVE_FAILED_MESSAGE))

        audio_url = urls[1] if len(urls) > 1 else None
        return urls[0], audio_url

    async def fetch_metadata(
        self, tool_path: ToolPath, url: str, timeout: float
    ) -> Tuple[str, int, int]:
        """
        Fetch title, width and height.

        Failures and missing or non-numeric lines degrade to an empty title
        and zero dimensions.

        Returns:
            Tuple of (title, width, height)
        """
        outcome = await self._invoke(
            "metadata",
            tool_path,
            ["--print", "title", "--print", "width", "--print", "height"],
            url,
            timeout,
        )
        if not outcome.ok:
            logger.warning("metadata_degraded", reason=outcome.label, url=redact_url(url))
            return "", 0, 0

        lines = _lines(outcome.stdout_text)
        if len(lines) < 3:
            logger.warning(
                "metadata_degraded", reason="missing_lines", lines=len(lines), url=redact_url(url)
            )
        return _line(lines, 0), _parse_int(_line(lines, 1)), _parse_int(_line(lines, 2))

    async def resolve(
        self,
        tool_path: ToolPath,
        url: str,
        quality: QualityRequest,
        timeout: float,
        include_metadata: bool = True,
    ) -> ResolvedStream:
        """
        Resolve *url* into a direct stream URL.

        Args:
            tool_path: Path to the yt-dlp binary
            url: Page URL, already validated by the caller
            quality: Requested quality
            timeout: Per-invocation timeout in seconds
            include_metadata: Whether to fetch title and dimensions

        Returns:
            Successful ResolvedStream

        Raises:
            SpawnFailureError: If yt-dlp could not be started for the URL step
            ProcessTimeoutError: If the URL step timed out
            ResolutionFailureError: If the URL step failed
        """
        is_live = await self.detect_live(tool_path, url, timeout)
        selector = formats.plan(quality.height, is_live)
        logger.debug("format_planned", selector=selector, is_live=is_live)

        direct_url, audio_url = await self.fetch_direct_url(tool_path, url, selector, timeout)

        title, width, height = "", 0, 0
        if include_metadata:
            title, width, height = await self.fetch_metadata(tool_path, url, timeout)

        return ResolvedStream(
            original_url=url,
            success=True,
            direct_url=direct_url,
            audio_url=audio_url,
            title=title,
            width=width,
            height=height,
            is_live=is_live,
            is_hls="m3u8" in direct_url,
        )

    async def probe(self, tool_path: ToolPath, url: str, timeout: float) -> ProbeResult:
        """
        Query title, liveness and duration without resolving a stream.

        Raises:
            SpawnFailureError: If yt-dlp could not be started
            ProcessTimeoutError: If yt-dlp did not exit in time
            ResolutionFailureError: If yt-dlp failed
        """
        outcome = await self._invoke(
            "probe",
            tool_path,
            ["--print", "title", "--print", "is_live", "--print", "duration"],
            url,
            timeout,
        )
        if not outcome.ok:
            _raise_for_outcome(outcome, PROBE_FAILED_MESSAGE)

        lines = _lines(outcome.stdout_text)
        return ProbeResult(
            original_url=url,
            success=True,
            title=_line(lines, 0),
            is_live=_line(lines, 1).lower() == "true",
            duration=_parse_float(_line(lines, 2)),
        )
