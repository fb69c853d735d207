"""Pytest configuration and shared fixtures"""

import os

import pytest

from ytdlp_resolver.core.metrics import MetricsCollector


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables before each test"""
    # Clear any YTDLP_RESOLVER_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("YTDLP_RESOLVER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def enable_metrics(monkeypatch: pytest.MonkeyPatch) -> None:
    """Record metrics in every test regardless of earlier configuration"""
    monkeypatch.setattr(MetricsCollector, "enabled", True)


@pytest.fixture
def no_system_tool(tmp_path, monkeypatch: pytest.MonkeyPatch):
    """Hide any yt-dlp installed on the machine running the tests

    HOME and PATH point at empty directories and the fixed system locations
    are dropped from the search list.
    """
    monkeypatch.setattr("ytdlp_resolver.core.tools._POSIX_CANDIDATES", ())
    monkeypatch.setattr("ytdlp_resolver.core.tools._WINDOWS_CANDIDATES", ())
    monkeypatch.setenv("LOCALAPPDATA", str(tmp_path / "localappdata"))
    home = tmp_path / "home"
    home.mkdir()
    empty_bin = tmp_path / "empty-bin"
    empty_bin.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("PATH", str(empty_bin))
    return home
