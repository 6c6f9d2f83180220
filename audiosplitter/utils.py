"""
audiosplitter.utils - Shared utility functions.

Contains filename and time formatting helpers used by the extractor,
the segmenter and the CLI.
"""

from __future__ import annotations

import re

MAX_TITLE_LENGTH = 120

_ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')
_SEPARATOR_RUNS = re.compile(r"[_ ]{2,}")


def sanitize_title(title: str) -> str:
    """Make a chapter title safe to embed in a filename.

    Replaces characters that are illegal on common filesystems with an
    underscore, drops non-printable characters, collapses runs of two or
    more underscores/spaces into a single underscore and truncates the
    result to MAX_TITLE_LENGTH characters. The function is deterministic
    and idempotent.

    Args:
        title: Raw chapter title

    Returns:
        Sanitized title
    """
    s = _ILLEGAL_FILENAME_CHARS.sub("_", title)
    s = "".join(ch for ch in s if ch.isprintable())
    s = _SEPARATOR_RUNS.sub("_", s)
    return s[:MAX_TITLE_LENGTH]


def format_seconds(seconds: float) -> str:
    """Format a timestamp for ffmpeg's -ss/-to options.

    Args:
        seconds: Time in seconds

    Returns:
        Decimal string with microsecond precision, e.g. "30.000000"
    """
    return f"{seconds:.6f}"


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS or MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (HH:MM:SS if >= 1 hour, otherwise MM:SS)
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
