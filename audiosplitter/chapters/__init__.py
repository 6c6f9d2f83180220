"""
audiosplitter.chapters - Embedded chapter metadata extraction.

Stage 1 of a split run: probe the downloaded file with ffprobe and turn
its container-level chapters into validated ChapterRecords. An empty
result means "no usable chapters" and triggers fixed-length splitting.
"""

from __future__ import annotations
