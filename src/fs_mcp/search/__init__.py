"""Bounded recursive search over sandboxed directory trees."""

from .walker import exclude_glob, is_excluded, search_files

__all__ = ["exclude_glob", "is_excluded", "search_files"]
