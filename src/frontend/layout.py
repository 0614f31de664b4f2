"""Where an ad card goes inside a rendered assistant reply."""

from __future__ import annotations

from typing import Optional

from core.placement import has_section_boundary

# Inline placement waits for the first section to have some body.
MIN_LINES_AFTER_SECTION = 4
MIN_CHARS_BEFORE_AD = 250
# Without a usable section, a streaming reply gets its ad once it is this long.
FALLBACK_STREAMING_CHARS = 300


def ad_split_index(content: str, streaming: bool) -> Optional[int]:
    """Return the line index to insert the ad before, or None to hold it back.

    The ad goes after the first section once that section has a few lines of
    body and the reply has some length. Otherwise it is appended at the end,
    but only when the reply is final or already long while streaming.
    """

    lines = content.split("\n")
    sections = 0
    lines_since_section = 0
    processed_chars = 0
    for index, line in enumerate(lines):
        processed_chars += len(line)
        lines_since_section += 1
        if not line.strip():
            continue
        if (
            sections >= 1
            and lines_since_section >= MIN_LINES_AFTER_SECTION
            and processed_chars >= MIN_CHARS_BEFORE_AD
        ):
            return index
        if has_section_boundary(line):
            sections += 1
            lines_since_section = 0

    if not streaming or len(content) > FALLBACK_STREAMING_CHARS:
        return len(lines)
    return None


def split_for_ad(content: str, streaming: bool) -> tuple[str, Optional[str]]:
    """Split ``content`` around the ad slot; the tail is None while the ad is held."""

    index = ad_split_index(content, streaming)
    if index is None:
        return content, None
    lines = content.split("\n")
    return "\n".join(lines[:index]), "\n".join(lines[index:])
