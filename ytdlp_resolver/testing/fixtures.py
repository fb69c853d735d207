"""Demo stream fixtures and a stub yt-dlp executable for tests.

The demo data mirrors what yt-dlp prints for the pipeline's ``--print`` and
``--get-url`` queries. :func:`write_stub_tool` writes a small Python script
that behaves like yt-dlp for those queries, so the whole pipeline can be
exercised against a real child process.
"""

import json
import os
import stat
import sys
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_DEMO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

# Demo VOD: separate video and audio tracks
RICK_ASTLEY_STREAM: Dict[str, Any] = {
    "title": "Rick Astley - Never Gonna Give You Up (Official Music Video)",
    "width": 1280,
    "height": 720,
    "duration": 212,
    "is_live": False,
    "urls": [
        "https://rr1---sn-demo.googlevideo.com/videoplayback?itag=136&mime=video%2Fmp4",
        "https://rr1---sn-demo.googlevideo.com/videoplayback?itag=140&mime=audio%2Fmp4",
    ],
    "version": "2024.12.23",
}

# Demo live stream served over HLS
LIVE_CHANNEL_STREAM: Dict[str, Any] = {
    "title": "Demo Live Channel",
    "width": 1920,
    "height": 1080,
    "duration": "NA",
    "is_live": True,
    "urls": [
        "https://video-weaver.demo.hls.ttvnw.net/v1/playlist/demo.m3u8",
    ],
    "version": "2024.12.23",
}

DEMO_STREAMS: Dict[str, Dict[str, Any]] = {
    DEFAULT_DEMO_URL: RICK_ASTLEY_STREAM,
    "https://www.twitch.tv/demo_channel": LIVE_CHANNEL_STREAM,
}


def get_demo_stream(url: str) -> Dict[str, Any]:
    """Get demo stream data by page URL.

    Args:
        url: Page URL to look up.

    Returns:
        Demo stream data, the default demo stream for unknown URLs.
    """
    return DEMO_STREAMS.get(url, RICK_ASTLEY_STREAM)


_STUB_TEMPLATE = '''\
import json
import sys
import time

RESPONSES = json.loads({responses!r})
CALL_LOG = {call_log!r}


def classify(args):
    if "--get-url" in args:
        return "direct_url"
    if "--version" in args:
        return "version"
    if "-U" in args:
        return "update"
    printed = [args[i + 1] for i, arg in enumerate(args[:-1]) if arg == "--print"]
    if printed == ["is_live"]:
        return "liveness"
    if printed == ["title", "width", "height"]:
        return "metadata"
    if printed == ["title", "is_live", "duration"]:
        return "probe"
    return "unknown"


args = sys.argv[1:]
step = classify(args)
if CALL_LOG:
    with open(CALL_LOG, "a", encoding="utf-8") as log:
        log.write(step + "\\n")

response = RESPONSES.get(step, {{}})
time.sleep(response.get("sleep", 0))
sys.stdout.write(response.get("stdout", ""))
sys.stdout.flush()
sys.stderr.write(response.get("stderr", ""))
sys.stderr.flush()
sys.exit(response.get("exit_code", 0))
'''


def stub_responses_for(url: str = DEFAULT_DEMO_URL) -> Dict[str, Dict[str, Any]]:
    """Build stub tool responses that answer every step with demo data."""
    demo = get_demo_stream(url)
    return {
        "liveness": {"stdout": "True\n" if demo["is_live"] else "False\n"},
        "direct_url": {"stdout": "\n".join(demo["urls"]) + "\n"},
        "metadata": {"stdout": f"{demo['title']}\n{demo['width']}\n{demo['height']}\n"},
        "probe": {
            "stdout": f"{demo['title']}\n{demo['is_live']}\n{demo['duration']}\n",
        },
        "version": {"stdout": f"{demo['version']}\n"},
    }


def write_stub_tool(
    directory: Path,
    responses: Dict[str, Dict[str, Any]],
    name: str = "yt-dlp",
    call_log: Optional[Path] = None,
) -> Path:
    """Write an executable stub yt-dlp script.

    Each response entry may set ``stdout``, ``stderr``, ``exit_code`` and
    ``sleep`` (seconds before answering). Steps without an entry print
    nothing and exit 0.

    Args:
        directory: Directory to write the script into.
        responses: Response per step name ("liveness", "direct_url", ...).
        name: File name of the script.
        call_log: Optional file the script appends each step name to.

    Returns:
        Path to the executable script.
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    body = _STUB_TEMPLATE.format(
        responses=json.dumps(responses),
        call_log=str(call_log) if call_log else "",
    )
    path.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path
