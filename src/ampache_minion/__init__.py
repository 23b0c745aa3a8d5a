"""Ampache-compatible server for a personal music library."""

__version__ = "0.1.0"
