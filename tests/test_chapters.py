"""Tests for audiosplitter.chapters.extractor module."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from audiosplitter.chapters.extractor import (
    CSV_DECODER,
    JSON_DECODER,
    extract_chapters,
    parse_csv_chapters,
    parse_json_chapters,
    select_decoder,
)


class TestParseJsonChapters:
    def test_basic(self, render_chapters) -> None:
        output = render_chapters([(0, 30, "Intro"), (30, 95.5, "Main Part")])
        chapters = parse_json_chapters(output)
        assert [(c.start, c.end, c.title) for c in chapters] == [
            (0.0, 30.0, "Intro"),
            (30.0, 95.5, "Main Part"),
        ]

    def test_zero_length_chapter_dropped(self, render_chapters) -> None:
        chapters = parse_json_chapters(render_chapters([(0, 30, "Intro"), (30, 30, "Bad")]))
        assert [c.title for c in chapters] == ["Intro"]

    def test_reversed_chapter_dropped(self, render_chapters) -> None:
        chapters = parse_json_chapters(render_chapters([(50, 40, "Bad"), (0, 10, "Good")]))
        assert [c.title for c in chapters] == ["Good"]

    def test_missing_title_uses_source_position(self, render_chapters) -> None:
        output = render_chapters([(0, 10, None), (10, 10, "Bad"), (10, 20, None)])
        chapters = parse_json_chapters(output)
        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 3"]

    def test_empty_title_synthesized(self, render_chapters) -> None:
        chapters = parse_json_chapters(render_chapters([(0, 10, "")]))
        assert chapters[0].title == "Chapter 1"

    def test_blank_title_synthesized(self, render_chapters) -> None:
        chapters = parse_json_chapters(render_chapters([(0, 10, "   ")]))
        assert chapters[0].title == "Chapter 1"

    def test_titles_with_delimiters_preserved(self, render_chapters) -> None:
        chapters = parse_json_chapters(render_chapters([(0, 10, 'One, "two" | three')]))
        assert chapters[0].title == 'One, "two" | three'

    def test_time_base_fallback(self) -> None:
        output = json.dumps(
            {"chapters": [{"id": 0, "time_base": "1/1000", "start": 1500, "end": 45000}]}
        )
        chapters = parse_json_chapters(output)
        assert chapters[0].start == 1.5
        assert chapters[0].end == 45.0

    def test_no_chapters_key(self) -> None:
        assert parse_json_chapters("{}") == []

    def test_empty_chapters(self) -> None:
        assert parse_json_chapters('{"chapters": []}') == []

    def test_malformed_json(self) -> None:
        assert parse_json_chapters('{"chapters": [') == []

    def test_empty_output(self) -> None:
        assert parse_json_chapters("") == []

    def test_non_numeric_times_dropped(self) -> None:
        output = json.dumps({"chapters": [{"start_time": "N/A", "end_time": "10.0"}]})
        assert parse_json_chapters(output) == []


class TestParseCsvChapters:
    def test_basic(self) -> None:
        output = "0.000000,30.000000,Intro\n30.000000,90.000000,Outro\n"
        chapters = parse_csv_chapters(output)
        assert [(c.start, c.end, c.title) for c in chapters] == [
            (0.0, 30.0, "Intro"),
            (30.0, 90.0, "Outro"),
        ]

    def test_zero_length_chapter_dropped(self) -> None:
        chapters = parse_csv_chapters("0.0,30.0,Intro\n30.0,30.0,Bad\n")
        assert [c.title for c in chapters] == ["Intro"]

    def test_title_keeps_commas(self) -> None:
        chapters = parse_csv_chapters("0.0,10.0,Part, the second\n")
        assert chapters[0].title == "Part, the second"

    def test_missing_title(self) -> None:
        chapters = parse_csv_chapters("0.0,10.0\n10.0,20.0,\n")
        assert [c.title for c in chapters] == ["Chapter 1", "Chapter 2"]

    def test_blank_title(self) -> None:
        chapters = parse_csv_chapters("0.0,10.0,   \n")
        assert chapters[0].title == "Chapter 1"

    def test_malformed_lines_skipped(self) -> None:
        chapters = parse_csv_chapters("garbage\nN/A,N/A,x\n0.0,10.0,Good\n")
        assert [c.title for c in chapters] == ["Good"]
        assert chapters[0].title == "Good"

    def test_blank_lines_ignored(self) -> None:
        chapters = parse_csv_chapters("\n0.0,10.0,A\n\n10.0,20.0\n")
        assert [c.title for c in chapters] == ["A", "Chapter 2"]

    def test_empty_output(self) -> None:
        assert parse_csv_chapters("") == []


class TestSelectDecoder:
    def test_forced_json(self, fake_tools) -> None:
        tools = fake_tools(json_writer=False)
        assert select_decoder("json") is JSON_DECODER
        assert tools.calls == []

    def test_forced_csv(self, fake_tools) -> None:
        fake_tools()
        assert select_decoder("csv") is CSV_DECODER

    def test_auto_prefers_json(self, fake_tools) -> None:
        fake_tools(json_writer=True)
        assert select_decoder("auto") is JSON_DECODER

    def test_auto_falls_back_to_csv(self, fake_tools) -> None:
        fake_tools(json_writer=False)
        assert select_decoder("auto") is CSV_DECODER

    def test_auto_without_ffprobe(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", missing)
        assert select_decoder("auto") is CSV_DECODER


class TestExtractChapters:
    def test_json_decoder(self, fake_tools, audio_file: Path) -> None:
        fake_tools(chapters=[(0, 30, "Intro"), (30, 60, "Song")])
        chapters = extract_chapters(audio_file, JSON_DECODER)
        assert [c.title for c in chapters] == ["Intro", "Song"]

    def test_csv_decoder(self, fake_tools, audio_file: Path) -> None:
        tools = fake_tools(chapters=[(0, 30, "Intro"), (30, 60, "Song")])
        chapters = extract_chapters(audio_file, CSV_DECODER)
        assert [c.title for c in chapters] == ["Intro", "Song"]
        assert "csv=p=0" in tools.calls[0]

    def test_auto_selects_decoder(self, fake_tools, audio_file: Path) -> None:
        tools = fake_tools(chapters=[(0, 30, "Intro")], json_writer=False)
        chapters = extract_chapters(audio_file)
        assert [c.title for c in chapters] == ["Intro"]
        assert "-writers" in tools.calls[0]
        assert "csv=p=0" in tools.calls[1]

    def test_probe_failure_means_no_chapters(self, fake_tools, audio_file: Path) -> None:
        fake_tools(chapters=[(0, 30, "Intro")], probe_returncode=1)
        assert extract_chapters(audio_file, JSON_DECODER) == []

    def test_missing_ffprobe_means_no_chapters(
        self, monkeypatch: pytest.MonkeyPatch, audio_file: Path
    ) -> None:
        def missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", missing)
        assert extract_chapters(audio_file, JSON_DECODER) == []

    def test_no_chapter_atoms(self, fake_tools, audio_file: Path) -> None:
        fake_tools(probe_output='{\n    "chapters": [\n\n    ]\n}\n')
        assert extract_chapters(audio_file, JSON_DECODER) == []

    def test_custom_ffprobe_path(self, fake_tools, audio_file: Path) -> None:
        tools = fake_tools(chapters=[(0, 30, "Intro")])
        extract_chapters(audio_file, JSON_DECODER, ffprobe="/opt/ffmpeg/bin/ffprobe")
        assert tools.calls[0][0] == "/opt/ffmpeg/bin/ffprobe"
