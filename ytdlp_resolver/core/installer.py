"""yt-dlp binary installation.

Downloads the platform-specific yt-dlp release asset into a target
directory, marks it executable and reports progress in the 0.0-1.0 range.
"""

import contextlib
import os
import stat
import tempfile
from pathlib import Path
from typing import Callable, Optional

import httpx
import structlog

from ytdlp_resolver.core.metrics import MetricsCollector
from ytdlp_resolver.core.tools import default_install_dir, platform_binary_name
from ytdlp_resolver.resolvers.exceptions import ToolInstallError

logger = structlog.get_logger(__name__)

RELEASES_URL = "https://github.com/yt-dlp/yt-dlp/releases/latest/download/"

DOWNLOAD_TIMEOUT = 120.0

ProgressCallback = Callable[[float], None]


def _report(callback: Optional[ProgressCallback], value: float) -> None:
    if callback is not None:
        callback(max(0.0, min(1.0, value)))


class ToolInstaller:
    """Fetches the yt-dlp binary from the official release location."""

    def __init__(
        self,
        releases_url: str = RELEASES_URL,
        timeout: float = DOWNLOAD_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the installer.

        Args:
            releases_url: Base URL the release asset name is appended to
            timeout: Overall download timeout in seconds
            http_client: Optional shared client (one is created per install otherwise)
        """
        self.releases_url = releases_url
        self.timeout = timeout
        self._http_client = http_client

    def download_url(self, binary_name: Optional[str] = None) -> str:
        return f"{self.releases_url}{binary_name or platform_binary_name()}"

    async def install(
        self,
        install_dir: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        force: bool = False,
    ) -> Path:
        """
        Install yt-dlp into *install_dir*.

        Safe to call when the binary already exists: it is reported as
        installed without downloading unless *force* is set.

        Args:
            install_dir: Target directory (platform default when None)
            on_progress: Called with 0.0 first, intermediate values while
                downloading when the size is known, and 1.0 last
            force: Download even if the binary already exists

        Returns:
            Path to the installed binary

        Raises:
            ToolInstallError: If the download or the file write fails
        """
        target_dir = Path(install_dir) if install_dir else default_install_dir()
        target_path = target_dir / platform_binary_name()
        url = self.download_url()

        _report(on_progress, 0.0)

        if target_path.is_file() and not force:
            logger.info("tool_install_skipped", path=str(target_path), reason="already_installed")
            _report(on_progress, 1.0)
            return target_path

        logger.info("tool_install_started", url=url, path=str(target_path))

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            await self._download(url, target_path, on_progress)
            mode = os.stat(target_path).st_mode
            os.chmod(
                target_path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH | stat.S_IRUSR
            )
        except (httpx.HTTPError, OSError) as e:
            MetricsCollector.record_install("failed")
            logger.error("tool_install_failed", url=url, error=str(e))
            raise ToolInstallError(f"Failed to install yt-dlp from {url}: {e}") from e
        finally:
            _report(on_progress, 1.0)

        MetricsCollector.record_install("success")
        logger.info("tool_install_completed", path=str(target_path))
        return target_path

    async def _download(
        self, url: str, target_path: Path, on_progress: Optional[ProgressCallback]
    ) -> None:
        """Stream *url* into a temp file next to *target_path*, then move it in place."""
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target_path.name}.", suffix=".part", dir=str(target_path.parent)
        )
        try:
            with os.fdopen(fd, "wb") as out:
                if self._http_client is not None:
                    await self._stream_to(self._http_client, url, out, on_progress)
                else:
                    async with httpx.AsyncClient(timeout=self.timeout) as client:
                        await self._stream_to(client, url, out, on_progress)
            os.replace(tmp_name, target_path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise

    @staticmethod
    async def _stream_to(
        client: httpx.AsyncClient,
        url: str,
        out,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        async with client.stream("GET", url, follow_redirects=True) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length") or 0)
            received = 0
            async for chunk in response.aiter_bytes(chunk_size=65536):
                out.write(chunk)
                received += len(chunk)
                if total > 0:
                    # 1.0 is reserved for completion
                    _report(on_progress, min(received / total, 0.99))
