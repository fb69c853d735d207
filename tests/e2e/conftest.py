"""E2E test configuration and fixtures.

These fixtures run the real resolver against a stub yt-dlp executable:
- The stub is a Python script answering the pipeline queries from a JSON table
- Every invocation appends its step name to a call log
- Automatic download is disabled so nothing touches the network
"""

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest

from ytdlp_resolver import YtdlpResolver
from ytdlp_resolver.core.config import ResolverSettings
from ytdlp_resolver.testing import write_stub_tool

if sys.platform == "win32":
    collect_ignore_glob = ["test_*.py"]


@pytest.fixture
def call_log(tmp_path: Path) -> Path:
    """File the stub tool appends each invoked step to."""
    return tmp_path / "calls.log"


@pytest.fixture
def logged_steps(call_log: Path) -> Callable[[], List[str]]:
    """Read the steps the stub tool has been invoked for, in order."""

    def read() -> List[str]:
        if not call_log.exists():
            return []
        return call_log.read_text(encoding="utf-8").split()

    return read


@pytest.fixture
def stub_resolver(
    tmp_path: Path, call_log: Path
) -> Callable[[Dict[str, Dict[str, Any]]], YtdlpResolver]:
    """Build a resolver whose tool_path points at a freshly written stub."""

    def build(responses: Dict[str, Dict[str, Any]]) -> YtdlpResolver:
        tool = write_stub_tool(tmp_path / "bin", responses, call_log=call_log)
        return YtdlpResolver(
            settings=ResolverSettings(
                tool_path=str(tool),
                auto_download=False,
                process_timeout_ms=20000,
            )
        )

    return build
