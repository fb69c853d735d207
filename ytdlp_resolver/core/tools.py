"""yt-dlp binary discovery.

Locates the yt-dlp executable and caches the located path. Only the path is
cached: whether the file still exists is checked on every call.

Search order when no explicit path is configured:

1. Configured install directory
2. Platform default install directory
3. Well-known system locations
4. ``PATH``
"""

import os
import platform
import shutil
import threading
from pathlib import Path
from typing import List, Optional

import structlog

from ytdlp_resolver.core.config import ResolverSettings

logger = structlog.get_logger(__name__)

APP_DIR_NAME = "ytdlp-resolver"

_WINDOWS_CANDIDATES = (
    r"C:\Program Files\yt-dlp\yt-dlp.exe",
    r"C:\yt-dlp\yt-dlp.exe",
)

_POSIX_CANDIDATES = (
    "/usr/local/bin/yt-dlp",
    "/usr/bin/yt-dlp",
    "/opt/homebrew/bin/yt-dlp",
)


def platform_binary_name(system: Optional[str] = None) -> str:
    """Return the release asset name of yt-dlp for the given OS."""
    system = (system or platform.system()).lower()
    if system == "windows":
        return "yt-dlp.exe"
    if system == "darwin":
        return "yt-dlp_macos"
    return "yt-dlp"


def default_install_dir(system: Optional[str] = None) -> Path:
    """Return the per-user directory yt-dlp is installed into by default."""
    system = (system or platform.system()).lower()
    if system == "windows":
        local_appdata = os.environ.get("LOCALAPPDATA")
        if local_appdata:
            return Path(local_appdata) / APP_DIR_NAME
        return Path("C:/") / APP_DIR_NAME
    home = os.environ.get("HOME")
    if home:
        return Path(home) / ".local" / "bin"
    return Path("/tmp") / APP_DIR_NAME  # nosec B108 - last-resort fallback


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


class ToolLocator:
    """Finds the yt-dlp binary and remembers where it is.

    With an explicit ``tool_path`` in the settings, only that exact path is
    consulted and auto-detection never runs.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cached_path: Optional[Path] = None

    def invalidate(self) -> None:
        """Forget the cached location so the next lookup searches again."""
        with self._lock:
            self._cached_path = None

    def remember(self, path: Path) -> None:
        """Cache *path* as the tool location (e.g. right after installing it)."""
        with self._lock:
            self._cached_path = path

    def candidates(self, settings: ResolverSettings) -> List[Path]:
        """Return the auto-detection search list in priority order."""
        binary = platform_binary_name()
        paths: List[Path] = []
        if settings.install_dir:
            paths.append(Path(settings.install_dir) / binary)
        paths.append(default_install_dir() / binary)
        system_paths = _WINDOWS_CANDIDATES if platform.system() == "Windows" else _POSIX_CANDIDATES
        paths.extend(Path(p) for p in system_paths)
        return paths

    def locate(self, settings: ResolverSettings) -> Optional[Path]:
        """
        Return the path of an existing yt-dlp binary.

        Args:
            settings: Configuration snapshot

        Returns:
            Path to the binary, or None if it cannot be found
        """
        if settings.tool_path:
            path = Path(settings.tool_path)
            return path if _is_file(path) else None

        with self._lock:
            cached = self._cached_path
        if cached is not None and _is_file(cached):
            return cached

        for candidate in self.candidates(settings):
            if _is_file(candidate):
                logger.debug("tool_located", path=str(candidate))
                self.remember(candidate)
                return candidate

        found = shutil.which("yt-dlp")
        if found:
            path = Path(found)
            logger.debug("tool_located", path=str(path), source="PATH")
            self.remember(path)
            return path

        logger.debug("tool_not_found")
        return None

    def is_available(self, settings: ResolverSettings) -> bool:
        return self.locate(settings) is not None
