"""Spelling drill with replayable game progress."""

__version__ = "0.1.0"
