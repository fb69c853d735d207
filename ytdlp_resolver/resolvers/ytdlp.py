"""yt-dlp stream resolver.

Public entry point of the package. Wraps the resolution pipeline with input
validation, host gating and the tool availability gate, and turns every
resolution failure into a failed result instead of an exception.
"""

import asyncio
import time
from pathlib import Path
from typing import Optional

import structlog

from ytdlp_resolver import __version__
from ytdlp_resolver.core.checks import check_tool, self_update
from ytdlp_resolver.core.config import (
    Config,
    ResolverOptions,
    ResolverSettings,
    SettingsHolder,
)
from ytdlp_resolver.core.errors import failed_probe, failed_stream
from ytdlp_resolver.core.installer import ProgressCallback, ToolInstaller
from ytdlp_resolver.core.logging import (
    clear_resolution_id,
    configure_logging,
    redact_url,
    set_resolution_id,
)
from ytdlp_resolver.core.metrics import MetricsCollector, initialize_metrics
from ytdlp_resolver.core.process import ProcessRunner
from ytdlp_resolver.core.tools import ToolLocator
from ytdlp_resolver.models.stream import ProbeResult, ResolvedStream, ResolveOptions
from ytdlp_resolver.resolvers.base import StreamResolver
from ytdlp_resolver.resolvers.exceptions import (
    InvalidInputError,
    ResolverError,
    ToolInstallError,
    ToolUnavailableError,
    UnsupportedURLError,
)
from ytdlp_resolver.resolvers.hosts import can_resolve, extract_host
from ytdlp_resolver.resolvers.pipeline import ResolutionPipeline

logger = structlog.get_logger(__name__)


def _report(callback: Optional[ProgressCallback], value: float) -> None:
    if callback is not None:
        callback(value)


class YtdlpResolver(StreamResolver):
    """Resolves media page URLs into direct stream URLs through yt-dlp.

    Every resolution takes one settings snapshot at its start, so
    :meth:`configure` and :meth:`set_tool_path` never affect a call that is
    already running.

    When yt-dlp is missing, resolve and probe download it automatically at
    most once per resolver instance. A second instance has its own attempt;
    :meth:`ensure_available` always tries again.

    Example:
        resolver = YtdlpResolver()
        stream = await resolver.resolve(url, ResolveOptions(quality="720p"))
        if stream.success:
            play(stream.direct_url)
    """

    name = "yt-dlp"

    def __init__(
        self,
        settings: Optional[ResolverSettings] = None,
        runner: Optional[ProcessRunner] = None,
        locator: Optional[ToolLocator] = None,
        installer: Optional[ToolInstaller] = None,
    ):
        """
        Initialize the resolver.

        Args:
            settings: Initial configuration (defaults when None)
            runner: Process runner shared by every tool invocation
            locator: yt-dlp binary locator
            installer: yt-dlp binary installer
        """
        self._settings = SettingsHolder(settings)
        self.runner = runner or ProcessRunner()
        self.locator = locator or ToolLocator()
        self.installer = installer or ToolInstaller()
        self.pipeline = ResolutionPipeline(self.runner)
        self._install_lock = asyncio.Lock()

        logger.info("resolver_initialized", version=__version__)

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "YtdlpResolver":
        """Create a resolver from a loaded Config, applying its logging and metrics sections."""
        configure_logging(config.logging.level, config.logging.format)
        initialize_metrics(__version__, enabled=config.monitoring.metrics_enabled)
        return cls(settings=config.resolver.to_settings(), **kwargs)

    @property
    def settings(self) -> ResolverSettings:
        """Current configuration snapshot."""
        return self._settings.snapshot()

    def configure(self, options: ResolverOptions) -> ResolverSettings:
        """
        Merge configuration; None fields keep their current value.

        Args:
            options: Fields to change

        Returns:
            The new configuration snapshot
        """
        settings = self._settings.configure(options)
        if options.tool_path is not None or options.install_dir is not None:
            self.locator.invalidate()
        logger.info(
            "resolver_configured",
            tool_path=settings.tool_path,
            install_dir=settings.install_dir,
            auto_download=settings.auto_download,
            process_timeout_ms=settings.process_timeout_ms,
        )
        return settings

    def set_tool_path(self, tool_path: Optional[str]) -> None:
        """Use exactly *tool_path* for yt-dlp (None or empty restores auto-detection)."""
        self._settings.set_tool_path(tool_path or None)
        self.locator.invalidate()
        logger.info("tool_path_set", tool_path=tool_path or None)

    def can_handle(self, url: Optional[str]) -> bool:
        return can_resolve(url)

    def is_available(self) -> bool:
        return self.locator.is_available(self._settings.snapshot())

    async def ensure_available(self, on_progress: Optional[ProgressCallback] = None) -> bool:
        """
        Make sure yt-dlp is installed, downloading it if needed.

        Args:
            on_progress: Called with values in [0.0, 1.0]; always receives 1.0
                at the end

        Returns:
            True if yt-dlp is available afterwards
        """
        settings = self._settings.snapshot()
        if self.locator.is_available(settings):
            _report(on_progress, 1.0)
            return True

        _report(on_progress, 0.0)
        async with self._install_lock:
            if self.locator.is_available(settings):
                _report(on_progress, 1.0)
                return True
            try:
                await self._install(settings, on_progress)
            except ToolUnavailableError as e:
                logger.warning("tool_unavailable", error=str(e))
                _report(on_progress, 1.0)
                return False
        return True

    async def update_tool(self, on_progress: Optional[ProgressCallback] = None) -> bool:
        """
        Update yt-dlp with its self-update verb, installing it when missing.

        Returns:
            True if yt-dlp exited with status 0 (or was installed)
        """
        settings = self._settings.snapshot()
        tool_path = self.locator.locate(settings)
        if tool_path is None:
            return await self.ensure_available(on_progress)

        _report(on_progress, 0.0)
        result = await self_update(self.runner, str(tool_path), settings.process_timeout)
        _report(on_progress, 1.0)

        if result.available:
            logger.info("tool_update_completed", path=str(tool_path))
        else:
            logger.warning("tool_update_failed", path=str(tool_path), error=result.error)
        return result.available

    async def get_tool_version(self) -> Optional[str]:
        """Return the first line of ``yt-dlp --version``, or None."""
        settings = self._settings.snapshot()
        tool_path = self.locator.locate(settings)
        if tool_path is None:
            return None

        result = await check_tool(self.runner, str(tool_path), settings.process_timeout)
        if not result.available:
            logger.warning("tool_version_failed", path=str(tool_path), error=result.error)
            return None
        return result.version

    async def cancel(self) -> int:
        """
        Kill every yt-dlp process currently running for this resolver.

        The affected resolve/probe calls return failed results.

        Returns:
            Number of processes killed
        """
        return await self.runner.cancel_all()

    async def resolve(
        self, url: Optional[str], options: Optional[ResolveOptions] = None
    ) -> ResolvedStream:
        """
        Resolve a page URL into a direct stream URL.

        Args:
            url: Page URL
            options: Quality, timeout and metadata options

        Returns:
            ResolvedStream. On failure ``success`` is False and ``error`` and
            ``error_code`` describe what went wrong.

        Raises:
            MemoryError: Resource exhaustion is never converted to a result
        """
        options = options or ResolveOptions()
        original_url = (url or "").strip()
        set_resolution_id()
        start_time = time.time()
        log = logger.bind(url=redact_url(original_url))

        try:
            try:
                stream = await self._resolve(original_url, options)
            except MemoryError:
                raise
            except ResolverError as e:
                stream = failed_stream(original_url, e)
            except Exception as e:
                log.error("resolution_error", error=str(e), exc_info=True)
                stream = failed_stream(original_url, e)

            duration = time.time() - start_time
            if stream.success:
                MetricsCollector.record_resolution("resolve", "success", duration)
                log.info(
                    "resolution_completed",
                    is_live=stream.is_live,
                    is_hls=stream.is_hls,
                    height=stream.height,
                    duration=duration,
                )
            else:
                MetricsCollector.record_resolution("resolve", stream.error_code, duration)
                log.warning(
                    "resolution_failed",
                    error_code=stream.error_code,
                    error=stream.error,
                    duration=duration,
                )
            return stream
        finally:
            clear_resolution_id()

    async def probe(self, url: Optional[str]) -> ProbeResult:
        """
        Query title, liveness and duration without resolving a stream.

        Args:
            url: Page URL

        Returns:
            ProbeResult. On failure ``success`` is False and ``error`` and
            ``error_code`` describe what went wrong.
        """
        original_url = (url or "").strip()
        set_resolution_id()
        start_time = time.time()
        log = logger.bind(url=redact_url(original_url))

        try:
            try:
                self._validate_url(original_url)
                settings = self._settings.snapshot()
                tool_path = await self._require_tool(settings)
                result = await self.pipeline.probe(
                    tool_path, original_url, settings.process_timeout
                )
            except MemoryError:
                raise
            except ResolverError as e:
                result = failed_probe(original_url, e)
            except Exception as e:
                log.error("probe_error", error=str(e), exc_info=True)
                result = failed_probe(original_url, e)

            duration = time.time() - start_time
            status = "success" if result.success else result.error_code
            MetricsCollector.record_resolution("probe", status, duration)
            log.info("probe_completed", status=status, is_live=result.is_live, duration=duration)
            return result
        finally:
            clear_resolution_id()

    async def _resolve(self, url: str, options: ResolveOptions) -> ResolvedStream:
        self._validate_url(url)
        try:
            quality = options.quality_request()
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

        settings = self._settings.snapshot()
        timeout = settings.process_timeout
        if options.timeout_ms is not None and options.timeout_ms > 0:
            timeout = options.timeout_ms / 1000.0

        tool_path = await self._require_tool(settings)
        return await self.pipeline.resolve(
            tool_path, url, quality, timeout, include_metadata=options.include_metadata
        )

    def _validate_url(self, url: str) -> None:
        """Raise unless *url* is non-empty and on a supported host."""
        if not url:
            raise InvalidInputError("URL must not be empty")
        if not can_resolve(url):
            host = extract_host(url)
            raise UnsupportedURLError(f"Unsupported host: {host}" if host else "Unsupported URL")

    async def _require_tool(self, settings: ResolverSettings) -> Path:
        """
        Availability gate: locate yt-dlp, installing it at most once per resolver.

        Raises:
            ToolUnavailableError: If yt-dlp is missing and cannot be installed
        """
        tool_path = self.locator.locate(settings)
        if tool_path is not None:
            return tool_path

        async with self._install_lock:
            # Another call may have installed it while we waited
            tool_path = self.locator.locate(settings)
            if tool_path is not None:
                return tool_path

            # A missing override is never installed and leaves the latch unclaimed
            if settings.tool_path:
                raise ToolUnavailableError(
                    f"yt-dlp not found at configured path: {settings.tool_path}"
                )
            if not settings.auto_download:
                raise ToolUnavailableError("yt-dlp not found and automatic download is disabled")
            if not self._settings.claim_download_attempt():
                raise ToolUnavailableError(
                    "yt-dlp not found and automatic download was already attempted"
                )
            return await self._install(settings, None)

    async def _install(
        self, settings: ResolverSettings, on_progress: Optional[ProgressCallback]
    ) -> Path:
        """Run the installer; the caller must hold the install lock."""
        if settings.tool_path:
            raise ToolUnavailableError(f"yt-dlp not found at configured path: {settings.tool_path}")

        try:
            installed = await self.installer.install(settings.install_dir, on_progress)
        except ToolInstallError as e:
            raise ToolUnavailableError(f"yt-dlp not found and installation failed: {e}") from e

        self.locator.remember(installed)
        return installed
