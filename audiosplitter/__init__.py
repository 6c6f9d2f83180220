"""
Audiosplitter - chapter-aware audio splitting for downloaded media.

Runs as a post-processing hook after a media download: probes the
downloaded file for embedded chapters, then splits it losslessly either
along those chapters or into fixed-length parts, and removes the source.
"""

__version__ = "0.1.0"
