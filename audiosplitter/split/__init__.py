"""
audiosplitter.split - Lossless audio splitting.

Stage 2 of a split run: cut the source into chapter files or fixed-length
parts with ffmpeg stream copy, then decide whether the source can go.
"""

from __future__ import annotations
