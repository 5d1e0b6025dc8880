"""Sandboxed filesystem tools served over a JSON-lines stdio protocol."""

__version__ = "0.2.0"
