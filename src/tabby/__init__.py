"""Tabby Journal — daily intention, goal and reflection journaling."""

__version__ = "0.1.0"
