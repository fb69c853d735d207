"""Testing helpers: scripted runner, demo data and a stub yt-dlp executable."""

from ytdlp_resolver.testing.fixtures import (
    DEFAULT_DEMO_URL,
    DEMO_STREAMS,
    get_demo_stream,
    stub_responses_for,
    write_stub_tool,
)
from ytdlp_resolver.testing.mock_ytdlp import MockYtdlpRunner, classify_invocation

__all__ = [
    "DEFAULT_DEMO_URL",
    "DEMO_STREAMS",
    "get_demo_stream",
    "stub_responses_for",
    "write_stub_tool",
    "MockYtdlpRunner",
    "classify_invocation",
]
