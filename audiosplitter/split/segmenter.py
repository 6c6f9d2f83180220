"""
audiosplitter.split.segmenter - FFmpeg stream-copy splitting.

Splits one downloaded audio file, either per chapter:
    {base}_ch_001 - {title}.{ext}, {base}_ch_002 - {title}.{ext}, ...
or into fixed-length parts:
    {base}_part_000.{ext}, {base}_part_001.{ext}, ...

Nothing is re-encoded. The source file is removed only when at least one
output file was produced by this run.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path
from typing import Any

from audiosplitter.chapters.extractor import extract_chapters, select_decoder
from audiosplitter.config import SplitterConfig
from audiosplitter.exceptions import SplitError
from audiosplitter.models import ChapterPlan, ChapterRecord, FixedIntervalPlan, choose_plan
from audiosplitter.utils import format_duration, format_seconds, sanitize_title
from audiosplitter.validation import validate_media_file

logger = logging.getLogger(__name__)


def chapter_output_path(source: Path, index: int, title: str) -> Path:
    """Output path for the index-th (1-based) chapter of source."""
    ext = source.suffix.lstrip(".")
    return source.with_name(f"{source.stem}_ch_{index:03d} - {sanitize_title(title)}.{ext}")


def part_output_pattern(source: Path) -> Path:
    """ffmpeg segment muxer output pattern for fixed-length parts.

    A literal "%" in the stem is doubled so ffmpeg does not read it as a
    format directive.
    """
    ext = source.suffix.lstrip(".")
    stem = source.stem.replace("%", "%%")
    return source.with_name(f"{stem}_part_%03d.{ext}")


def find_part_files(source: Path) -> list[Path]:
    """List existing part files of source, sorted by part index."""
    ext = source.suffix.lstrip(".")
    pattern = re.compile(rf"{re.escape(source.stem)}_part_\d{{3,}}\.{re.escape(ext)}")
    return sorted(
        p for p in source.parent.iterdir() if p.is_file() and pattern.fullmatch(p.name)
    )


def _snapshot(paths: list[Path]) -> dict[Path, tuple[int, int]]:
    snapshot = {}
    for p in paths:
        st = p.stat()
        snapshot[p] = (st.st_size, st.st_mtime_ns)
    return snapshot


def _run_ffmpeg(cmd: list[str]) -> subprocess.CompletedProcess:
    logger.debug("Running: %s", " ".join(cmd))
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        stdin=subprocess.DEVNULL,
    )


def extract_range(
    source: Path,
    output: Path,
    start: float,
    end: float,
    ffmpeg: str = "ffmpeg",
) -> Path:
    """Copy the [start, end) range of source into output without re-encoding.

    Args:
        source: Source audio file
        output: Destination file
        start: Range start in seconds
        end: Range end in seconds
        ffmpeg: ffmpeg executable name or path

    Returns:
        The output path

    Raises:
        SplitError: If ffmpeg fails or produces no file
    """
    cmd = [
        ffmpeg,
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-ss",
        format_seconds(start),
        "-to",
        format_seconds(end),
        "-i",
        str(source),
        "-map",
        "a",
        "-c",
        "copy",
        str(output),
    ]
    try:
        proc = _run_ffmpeg(cmd)
    except OSError as e:
        raise SplitError(f"Cannot run {ffmpeg}: {e}") from e
    if proc.returncode != 0:
        output.unlink(missing_ok=True)
        raise SplitError(f"FFmpeg range extraction failed: {proc.stderr.strip()}")
    if not output.exists():
        raise SplitError(f"FFmpeg produced no file: {output.name}")
    return output


def split_by_chapters(
    source: Path,
    chapters: list[ChapterRecord],
    ffmpeg: str = "ffmpeg",
) -> dict[str, Any]:
    """Write one file per chapter. Failed chapters are logged and skipped.

    Args:
        source: Source audio file
        chapters: Valid chapter records in source order
        ffmpeg: ffmpeg executable name or path

    Returns:
        Dict with 'outputs' (list of paths) and 'failed' count
    """
    results: dict[str, Any] = {"outputs": [], "failed": 0}

    for index, chapter in enumerate(chapters, start=1):
        output = chapter_output_path(source, index, chapter.title)
        try:
            extract_range(source, output, chapter.start, chapter.end, ffmpeg)
        except SplitError as e:
            logger.error("Chapter %03d (%s) failed: %s", index, chapter.title, e)
            results["failed"] += 1
            continue
        logger.info(
            "  %s [%s - %s]",
            output.name,
            format_duration(chapter.start),
            format_duration(chapter.end),
        )
        results["outputs"].append(output)

    return results


def split_fixed(
    source: Path,
    interval_seconds: int,
    ffmpeg: str = "ffmpeg",
) -> dict[str, Any]:
    """Split source into consecutive parts of interval_seconds.

    Only parts created or rewritten by this call are reported, so stale
    part files from an earlier run never count as output.

    Args:
        source: Source audio file
        interval_seconds: Part length in seconds
        ffmpeg: ffmpeg executable name or path

    Returns:
        Dict with 'outputs' (list of paths), 'failed' count and
        'complete' (True if ffmpeg exited cleanly)
    """
    results: dict[str, Any] = {"outputs": [], "failed": 0, "complete": False}

    before = _snapshot(find_part_files(source))

    cmd = [
        ffmpeg,
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-i",
        str(source),
        "-f",
        "segment",
        "-segment_time",
        str(interval_seconds),
        "-reset_timestamps",
        "1",
        "-map",
        "a",
        "-c",
        "copy",
        str(part_output_pattern(source)),
    ]
    try:
        proc = _run_ffmpeg(cmd)
    except OSError as e:
        logger.error("Cannot run %s: %s", ffmpeg, e)
        results["failed"] = 1
        return results

    if proc.returncode != 0:
        logger.error("FFmpeg segmenting failed: %s", proc.stderr.strip())
        results["failed"] = 1
    else:
        results["complete"] = True

    after = _snapshot(find_part_files(source))
    for part, stat in after.items():
        if stat[0] > 0 and before.get(part) != stat:
            logger.info("  %s", part.name)
            results["outputs"].append(part)

    return results


def split_media_file(source: Path, config: SplitterConfig) -> dict[str, Any]:
    """Split one media file and clean up the source.

    Args:
        source: Downloaded audio file
        config: Resolved configuration

    Returns:
        Dict with split results

    Raises:
        ValidationError: If source is missing or not a regular file
    """
    validate_media_file(source)

    result: dict[str, Any] = {
        "source": str(source),
        "mode": "none",
        "outputs": [],
        "failed": 0,
        "source_deleted": False,
        "error": None,
    }

    decoder = select_decoder(config.chapter_decoder, config.ffprobe_path)
    chapters = extract_chapters(source, decoder, config.ffprobe_path)
    plan = choose_plan(chapters, config.segment_seconds)

    delete_source = False
    if isinstance(plan, ChapterPlan):
        result["mode"] = "chapters"
        logger.info(
            "%d chapter(s) found - splitting %s by chapters...", len(plan.chapters), source.name
        )
        split = split_by_chapters(source, plan.chapters, config.ffmpeg_path)
        delete_source = bool(split["outputs"])
    elif isinstance(plan, FixedIntervalPlan):
        result["mode"] = "fixed"
        logger.info(
            "No/invalid chapters - splitting %s into %ds parts...",
            source.name,
            plan.interval_seconds,
        )
        split = split_fixed(source, plan.interval_seconds, config.ffmpeg_path)
        delete_source = split["complete"] and bool(split["outputs"])
    else:
        raise TypeError(f"Unknown split plan: {plan!r}")

    result["outputs"] = [str(p) for p in split["outputs"]]
    result["failed"] = split["failed"]

    if delete_source:
        source.unlink(missing_ok=True)
        result["source_deleted"] = True
        logger.info("Wrote %d file(s), removed %s", len(split["outputs"]), source.name)
    else:
        logger.error("No complete split for %s - keeping source file", source.name)

    return result


def run_split(input_path: str | Path | None, config: SplitterConfig) -> dict[str, Any]:
    """Split a file handed over by the download step. Never raises.

    An empty input path is a no-op. Any failure is logged and reported in
    the returned dict, so the calling pipeline is never interrupted.

    Args:
        input_path: Path of the downloaded file, possibly empty
        config: Resolved configuration

    Returns:
        Dict with split results; 'error' holds the failure message, if any
    """
    result: dict[str, Any] = {
        "source": None,
        "mode": "none",
        "outputs": [],
        "failed": 0,
        "source_deleted": False,
        "error": None,
    }

    if input_path is None or not str(input_path).strip():
        logger.debug("No input file given, nothing to do")
        return result

    source = Path(input_path)
    result["source"] = str(source)
    try:
        return split_media_file(source, config)
    except Exception as e:
        logger.error("Splitting %s failed: %s", source, e)
        result["error"] = str(e)
        return result
