"""
audiosplitter.chapters.extractor - ffprobe chapter extraction.

Two decoders are available for ffprobe's chapter output:
- json: structured output, robust to any character in chapter titles
- csv: line-oriented output, used when ffprobe has no JSON writer; titles
  containing commas or quotes keep ffprobe's CSV escaping verbatim

The decoder is chosen at runtime by asking ffprobe which writers it has.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Callable
from fractions import Fraction
from functools import lru_cache
from pathlib import Path
from typing import Any, NamedTuple

from pydantic import ValidationError

from audiosplitter.exceptions import ProbeError
from audiosplitter.models import ChapterRecord

logger = logging.getLogger(__name__)


class ChapterDecoder(NamedTuple):
    """ffprobe output format plus the parser that understands it."""

    name: str
    probe_args: tuple[str, ...]
    parse: Callable[[str], list[ChapterRecord]]


def make_record(position: int, start: Any, end: Any, title: str | None) -> ChapterRecord | None:
    """Build a ChapterRecord, or None if the raw values are unusable.

    Args:
        position: 1-based position of the chapter in the probe output
        start: Raw start time in seconds
        end: Raw end time in seconds
        title: Raw title; blank or missing becomes "Chapter {position}"

    Returns:
        ChapterRecord, or None for records with end <= start, negative or
        non-numeric times
    """
    try:
        record = ChapterRecord(
            start=float(start),
            end=float(end),
            title=title if title and title.strip() else f"Chapter {position}",
        )
    except (TypeError, ValueError, ValidationError) as e:
        logger.debug("Dropping chapter %d (%s..%s): %s", position, start, end, e)
        return None
    return record


def _json_time(chapter: dict[str, Any], key: str) -> Any:
    value = chapter.get(f"{key}_time")
    if value is not None:
        return value
    ticks = chapter.get(key)
    time_base = chapter.get("time_base")
    if ticks is None or not time_base:
        return None
    return float(Fraction(int(ticks)) * Fraction(time_base))


def parse_json_chapters(output: str) -> list[ChapterRecord]:
    """Parse ffprobe `-print_format json -show_chapters` output.

    Args:
        output: ffprobe stdout

    Returns:
        Valid chapter records in source order
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        logger.debug("Unparseable ffprobe JSON: %s", e)
        return []
    if not isinstance(data, dict):
        return []

    records = []
    for position, chapter in enumerate(data.get("chapters") or [], start=1):
        if not isinstance(chapter, dict):
            continue
        try:
            start = _json_time(chapter, "start")
            end = _json_time(chapter, "end")
        except (TypeError, ValueError, ZeroDivisionError):
            logger.debug("Dropping chapter %d: bad time base", position)
            continue
        title = (chapter.get("tags") or {}).get("title")
        record = make_record(position, start, end, title)
        if record is not None:
            records.append(record)
    return records


def parse_csv_chapters(output: str) -> list[ChapterRecord]:
    """Parse ffprobe `-of csv=p=0` chapter output.

    Each line is "start,end[,title]". Everything after the second comma is
    taken as the title verbatim.

    Args:
        output: ffprobe stdout

    Returns:
        Valid chapter records in source order
    """
    records = []
    position = 0
    for line in output.splitlines():
        if not line.strip():
            continue
        position += 1
        fields = line.split(",", 2)
        if len(fields) < 2:
            logger.debug("Dropping malformed chapter line: %r", line)
            continue
        title = fields[2] if len(fields) == 3 else None
        record = make_record(position, fields[0], fields[1], title)
        if record is not None:
            records.append(record)
    return records


JSON_DECODER = ChapterDecoder(
    name="json",
    probe_args=("-print_format", "json", "-show_chapters"),
    parse=parse_json_chapters,
)

CSV_DECODER = ChapterDecoder(
    name="csv",
    probe_args=(
        "-of",
        "csv=p=0",
        "-show_entries",
        "chapter=start_time,end_time:chapter_tags=title",
    ),
    parse=parse_csv_chapters,
)

DECODERS = {d.name: d for d in (JSON_DECODER, CSV_DECODER)}


@lru_cache(maxsize=None)
def ffprobe_has_json_writer(ffprobe: str = "ffprobe") -> bool:
    """Ask ffprobe whether it can emit JSON."""
    try:
        proc = subprocess.run(
            [ffprobe, "-hide_banner", "-writers"],
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("Cannot list ffprobe writers: %s", e)
        return False
    if proc.returncode != 0:
        return False
    return any("json" in line.split() for line in proc.stdout.splitlines())


def select_decoder(preference: str = "auto", ffprobe: str = "ffprobe") -> ChapterDecoder:
    """Pick the chapter decoder.

    Args:
        preference: "json", "csv", or "auto" to probe ffprobe's writers
        ffprobe: ffprobe executable name or path

    Returns:
        The selected ChapterDecoder
    """
    if preference in DECODERS:
        return DECODERS[preference]
    if ffprobe_has_json_writer(ffprobe):
        return JSON_DECODER
    logger.debug("ffprobe has no JSON writer, using line-oriented chapter decoder")
    return CSV_DECODER


def run_ffprobe(path: Path, decoder: ChapterDecoder, ffprobe: str = "ffprobe") -> str:
    """Run ffprobe for chapter metadata in the decoder's format.

    Args:
        path: Media file to probe
        decoder: Decoder whose output format to request
        ffprobe: ffprobe executable name or path

    Returns:
        ffprobe stdout

    Raises:
        ProbeError: If ffprobe cannot be run or exits non-zero
    """
    cmd = [ffprobe, "-v", "error", *decoder.probe_args, "-i", str(path)]
    logger.debug("Running: %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
        )
    except OSError as e:
        raise ProbeError(f"Cannot run {ffprobe}: {e}") from e
    if proc.returncode != 0:
        raise ProbeError(f"ffprobe failed for {path}: {proc.stderr.strip()}")
    return proc.stdout


def extract_chapters(
    path: Path,
    decoder: ChapterDecoder | None = None,
    ffprobe: str = "ffprobe",
) -> list[ChapterRecord]:
    """Read the usable chapters of a media file.

    Probe failures are not errors here: a file that cannot be probed is
    treated as having no chapters.

    Args:
        path: Media file to inspect
        decoder: Decoder to use; selected automatically if None
        ffprobe: ffprobe executable name or path

    Returns:
        Valid chapter records in source order, possibly empty
    """
    if decoder is None:
        decoder = select_decoder("auto", ffprobe)

    try:
        output = run_ffprobe(path, decoder, ffprobe)
    except ProbeError as e:
        logger.debug("No chapters for %s: %s", path.name, e)
        return []

    chapters = decoder.parse(output)
    logger.debug(
        "%s decoder found %d usable chapter(s) in %s", decoder.name, len(chapters), path.name
    )
    return chapters
