"""Taste Mixer: seed- and mood-driven playlist generation for Spotify."""

__version__ = "0.1.0"
