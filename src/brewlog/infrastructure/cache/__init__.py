"""Caching infrastructure for brewlog."""

from brewlog.infrastructure.cache.session_cache import CacheEntry, SessionCache

__all__ = ["CacheEntry", "SessionCache"]
