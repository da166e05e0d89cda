"""Jogging tracker: live position processing and session lifecycle."""

__version__ = "0.1.0"
