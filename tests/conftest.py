"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import json
import math
import subprocess
from pathlib import Path
from typing import Any

import pytest

from audiosplitter.chapters.extractor import ffprobe_has_json_writer


def chapters_json(chapters: list[tuple[float, float, str | None]]) -> str:
    """Render (start, end, title) triples the way ffprobe's JSON writer does."""
    entries = []
    for idx, (start, end, title) in enumerate(chapters):
        entry: dict[str, Any] = {
            "id": idx,
            "time_base": "1/1000",
            "start": int(start * 1000),
            "start_time": f"{start:.6f}",
            "end": int(end * 1000),
            "end_time": f"{end:.6f}",
        }
        if title is not None:
            entry["tags"] = {"title": title}
        entries.append(entry)
    return json.dumps({"chapters": entries})


class FakeMediaTools:
    """Stands in for ffprobe and ffmpeg behind subprocess.run.

    Range extractions write a small file at the output path (a truncated
    one when they fail); segmenting writes ceil(duration / segment_time)
    parts, expanding the muxer template with "%" formatting like ffmpeg.
    """

    def __init__(
        self,
        chapters: list[tuple[float, float, str | None]] | None = None,
        probe_output: str | None = None,
        probe_returncode: int = 0,
        json_writer: bool = True,
        duration: float = 600.0,
        failing_ranges: tuple[int, ...] = (),
        segment_returncode: int = 0,
        segment_parts: int | None = None,
    ) -> None:
        self.chapters = chapters or []
        self.probe_output = probe_output
        self.probe_returncode = probe_returncode
        self.json_writer = json_writer
        self.duration = duration
        self.failing_ranges = failing_ranges
        self.segment_returncode = segment_returncode
        self.segment_parts = segment_parts
        self.calls: list[list[str]] = []
        self.range_calls = 0

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(list(cmd))
        tool = Path(cmd[0]).name
        if "-version" in cmd:
            banner = f"{tool} version 6.1.1 Copyright (c) the FFmpeg developers\n"
            return self._done(cmd, stdout=banner)
        if tool == "ffprobe":
            return self._ffprobe(cmd)
        if tool == "ffmpeg":
            return self._ffmpeg(cmd)
        raise FileNotFoundError(cmd[0])

    @property
    def ffmpeg_calls(self) -> list[list[str]]:
        return [c for c in self.calls if Path(c[0]).name == "ffmpeg"]

    def _done(self, cmd: list[str], returncode: int = 0, stdout: str = "", stderr: str = ""):
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)

    def _ffprobe(self, cmd: list[str]) -> subprocess.CompletedProcess:
        if "-writers" in cmd:
            lines = ["File writers:", " W  csv             CSV format"]
            if self.json_writer:
                lines.append(" W  json            JSON format")
            return self._done(cmd, stdout="\n".join(lines) + "\n")
        if self.probe_returncode != 0:
            return self._done(cmd, self.probe_returncode, stderr="Invalid data found")
        if self.probe_output is not None:
            return self._done(cmd, stdout=self.probe_output)
        if "json" in cmd:
            return self._done(cmd, stdout=chapters_json(self.chapters))
        lines = [f"{s:.6f},{e:.6f},{t or ''}" for s, e, t in self.chapters]
        return self._done(cmd, stdout="\n".join(lines) + ("\n" if lines else ""))

    def _ffmpeg(self, cmd: list[str]) -> subprocess.CompletedProcess:
        output = cmd[-1]
        if "segment" in cmd:
            interval = int(cmd[cmd.index("-segment_time") + 1])
            count = self.segment_parts
            if count is None:
                count = math.ceil(self.duration / interval)
            for i in range(count):
                Path(output % i).write_bytes(b"\xff\xfb" * 64)
            stderr = "Conversion failed!" if self.segment_returncode else ""
            return self._done(cmd, self.segment_returncode, stderr=stderr)

        self.range_calls += 1
        if self.range_calls in self.failing_ranges:
            Path(output).write_bytes(b"\xff")
            return self._done(cmd, 1, stderr="Invalid argument")
        Path(output).write_bytes(b"\xff\xfb" * 64)
        return self._done(cmd)


@pytest.fixture(autouse=True)
def clear_writer_cache():
    """ffprobe writer detection is cached per process."""
    ffprobe_has_json_writer.cache_clear()
    yield
    ffprobe_has_json_writer.cache_clear()


@pytest.fixture
def fake_tools(monkeypatch: pytest.MonkeyPatch):
    """Install a FakeMediaTools as subprocess.run; returns a factory."""

    def install(**kwargs: Any) -> FakeMediaTools:
        tools = FakeMediaTools(**kwargs)
        monkeypatch.setattr(subprocess, "run", tools)
        return tools

    return install


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    """A downloaded audio file in its own directory."""
    folder = tmp_path / "Channel" / "Some Video"
    folder.mkdir(parents=True)
    source = folder / "Some Video.mp3"
    source.write_bytes(b"ID3" + b"\x00" * 1024)
    return source


@pytest.fixture
def render_chapters():
    """Renders chapter triples as ffprobe JSON output."""
    return chapters_json
