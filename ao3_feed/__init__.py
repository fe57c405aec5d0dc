"""Serve AO3 works as RSS feeds, one item per chapter."""

__version__ = "0.1.0"
