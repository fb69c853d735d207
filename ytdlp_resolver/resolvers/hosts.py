"""Known-host matching for page URLs.

Matching is a case-insensitive substring test in both directions against a
static list of hosts yt-dlp is known to handle. Subdomains match their
parent (``gaming.youtube.com`` against ``youtube.com``), and so does any host
that shares a substring with a known one (a bare host ``tv`` matches
``twitch.tv``).
"""

from typing import Optional, Tuple

KNOWN_HOSTS: Tuple[str, ...] = (
    "youtube.com",
    "youtu.be",
    "www.youtube.com",
    "m.youtube.com",
    "twitch.tv",
    "www.twitch.tv",
    "clips.twitch.tv",
    "vimeo.com",
    "www.vimeo.com",
    "player.vimeo.com",
    "dailymotion.com",
    "www.dailymotion.com",
    "facebook.com",
    "www.facebook.com",
    "fb.watch",
    "m.facebook.com",
    "twitter.com",
    "x.com",
    "mobile.twitter.com",
    "instagram.com",
    "www.instagram.com",
    "tiktok.com",
    "www.tiktok.com",
    "vm.tiktok.com",
    "reddit.com",
    "www.reddit.com",
    "v.redd.it",
    "streamable.com",
    "soundcloud.com",
    "www.soundcloud.com",
    "bandcamp.com",
    "bilibili.com",
    "www.bilibili.com",
    "nicovideo.jp",
    "www.nicovideo.jp",
    "rumble.com",
    "www.rumble.com",
    "odysee.com",
    "www.odysee.com",
    "kick.com",
    "www.kick.com",
)

_HOST_TERMINATORS = ":/?#"


def extract_host(url: Optional[str]) -> str:
    """
    Extract the lower-cased host from a URL.

    Strips one leading ``scheme://`` and one ``user:password@`` prefix, then
    keeps everything up to the first ``:``, ``/``, ``?`` or ``#``.

    Args:
        url: URL or bare hostname

    Returns:
        The host, or an empty string if there is none
    """
    if not url:
        return ""

    rest = url
    scheme_end = rest.find("://")
    if scheme_end != -1:
        rest = rest[scheme_end + 3 :]

    # An "@" in the path or query ("/@channel") is not a credential prefix
    at = rest.find("@")
    if at != -1 and _host_end(rest, "/?#") > at:
        rest = rest[at + 1 :]

    return rest[: _host_end(rest, _HOST_TERMINATORS)].lower()


def _host_end(text: str, terminators: str) -> int:
    end = len(text)
    for terminator in terminators:
        index = text.find(terminator)
        if index != -1 and index < end:
            end = index
    return end


def can_resolve(url: Optional[str]) -> bool:
    """Return True if the URL's host matches any known host."""
    host = extract_host(url)
    if not host:
        return False
    return any(host in known or known in host for known in KNOWN_HOSTS)
