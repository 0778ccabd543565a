"""Process-lifetime cache of icon lookup results."""

from .store import CacheEntry, IconCache

__all__ = ["CacheEntry", "IconCache"]
