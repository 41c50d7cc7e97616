"""Trigger-matching and level-synchronous workflow engine for detection events."""

from surveilens.config import __version__

__all__ = ["__version__"]
