"""Assemble intro + customer clip + outro videos with ffmpeg behind a small HTTP API."""

__version__ = "1.0.0"
