"""yt-dlp format selector construction.

Selectors are slash-delimited fallback chains that yt-dlp evaluates left to
right, using the first alternative that matches. The first alternative is
always the most specific and the last is always the unconstrained ``best``.
"""

# {height} is replaced by the height predicate, or nothing when uncapped
_LIVE_ALTERNATIVES = (
    "best{height}[protocol!=m3u8]",
    "best{height}[protocol!=m3u8_native]",
    "best{height}",
)

_VOD_ALTERNATIVES = (
    "bestvideo{height}[ext=mp4][protocol!=m3u8]+bestaudio[ext=m4a]",
    "best{height}[ext=mp4][protocol!=m3u8]",
    "best{height}[ext=mp4]",
    "best[ext=mp4]",
)


def plan(height: int, is_live: bool) -> str:
    """
    Build the format selector for a height cap and stream kind.

    Args:
        height: Maximum pixel height, 0 for no cap
        is_live: Whether the stream is live

    Returns:
        Format selector string for ``yt-dlp -f``

    Raises:
        ValueError: If height is negative
    """
    if height < 0:
        raise ValueError(f"height must not be negative, got {height}")

    predicate = f"[height<={height}]" if height > 0 else ""
    template = _LIVE_ALTERNATIVES if is_live else _VOD_ALTERNATIVES

    alternatives = []
    for alternative in template:
        rendered = alternative.format(height=predicate)
        # Without a height predicate some alternatives collapse into duplicates
        if rendered != "best" and rendered not in alternatives:
            alternatives.append(rendered)
    alternatives.append("best")
    return "/".join(alternatives)
