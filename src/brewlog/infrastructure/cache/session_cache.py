"""
Session Cache

Per-session, in-memory cache of the five entity collections so listing
views avoid a repository round trip on every request.

Entries are immutable. Writers clone the current entry, replace one slice
and swap the new entry into the map under the lock, so a reader holding an
entry never sees it change underneath it.

Usage:
    cache = SessionCache(ttl_seconds=120)

    cached = cache.get_collection(session_id, CollectionKind.BEANS)
    if cached is None:
        beans = await fetch_beans()
        cache.set_collection(session_id, CollectionKind.BEANS, beans)
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Any

import structlog

from brewlog.core.domain.locator import CollectionKind

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 120.0
DEFAULT_CLEANUP_MULTIPLIER = 2.0

# Invalidating a key slice also drops slices whose linked data embeds it.
_CASCADE: dict[CollectionKind, tuple[CollectionKind, ...]] = {
    CollectionKind.ROASTERS: (CollectionKind.BEANS,),
}


@dataclass(frozen=True)
class CacheEntry:
    """Snapshot of one session's cached collections.

    A slice of ``None`` means "not cached"; an empty tuple is a cached empty
    collection.
    """

    timestamp: float
    beans: tuple[Any, ...] | None = None
    roasters: tuple[Any, ...] | None = None
    grinders: tuple[Any, ...] | None = None
    brewers: tuple[Any, ...] | None = None
    brews: tuple[Any, ...] | None = None

    def slice(self, kind: CollectionKind) -> tuple[Any, ...] | None:
        """Return the cached slice for a collection kind."""
        return getattr(self, kind.value)


class SessionCache:
    """
    Thread-safe cache of collection snapshots keyed by session id.

    At most one entry exists per session. An entry is valid while its age is
    below the TTL; expired entries are still returned by ``get`` so callers
    that tolerate staleness can use them. ``cleanup`` drops entries older
    than ``ttl_seconds * cleanup_multiplier``.

    Attributes:
        _entries: Session id to current CacheEntry
        _lock: Guards the map; entries themselves are immutable
        _stats: Hit/miss/eviction counters for monitoring
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        cleanup_multiplier: float = DEFAULT_CLEANUP_MULTIPLIER,
        time_provider: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize SessionCache.

        Args:
            ttl_seconds: How long an entry is considered fresh
            cleanup_multiplier: Entries older than TTL times this are swept
            time_provider: Clock returning seconds; defaults to time.monotonic
        """
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._ttl = ttl_seconds
        self._cleanup_multiplier = cleanup_multiplier
        self._now = time_provider or time.monotonic
        self._stats = {"hits": 0, "misses": 0, "evictions": 0}
        self._generations: dict[tuple[str, CollectionKind], int] = {}
        self._cleanup_task: asyncio.Task | None = None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, session_id: str) -> CacheEntry | None:
        """Return the session's entry, fresh or stale, or None."""
        with self._lock:
            return self._entries.get(session_id)

    def is_valid(self, entry: CacheEntry | None) -> bool:
        """Check whether an entry is younger than the TTL."""
        if entry is None:
            return False
        return self._now() - entry.timestamp < self._ttl

    def set(self, session_id: str, entry: CacheEntry) -> None:
        """Replace the session's entry wholesale."""
        with self._lock:
            self._entries[session_id] = entry

    def invalidate(self, session_id: str) -> None:
        """Drop everything cached for a session."""
        with self._lock:
            for kind in CollectionKind:
                key = (session_id, kind)
                self._generations[key] = self._generations.get(key, 0) + 1
            self._entries.pop(session_id, None)
        logger.debug("session_cache.invalidated", session_id=session_id)

    def get_collection(
        self,
        session_id: str,
        kind: CollectionKind,
        allow_stale: bool = False,
    ) -> list[Any] | None:
        """
        Read one cached collection.

        Args:
            session_id: Session whose entry to read
            kind: Collection to read
            allow_stale: Return the slice even if the entry has expired

        Returns:
            A new list of the cached items, or None on a miss
        """
        entry = self.get(session_id)
        cached = entry.slice(kind) if entry is not None else None
        if cached is None or (not allow_stale and not self.is_valid(entry)):
            self._record("misses")
            return None
        self._record("hits")
        return list(cached)

    def generation(self, session_id: str, kind: CollectionKind) -> int:
        """Return the invalidation counter for one collection of a session."""
        with self._lock:
            return self._generations.get((session_id, kind), 0)

    def set_collection(
        self,
        session_id: str,
        kind: CollectionKind,
        items: Iterable[Any],
        generation: int | None = None,
    ) -> bool:
        """
        Store one collection for a session.

        Clones the current entry (or starts a new one), replaces the slice,
        restamps the entry and swaps it in atomically.

        Args:
            session_id: Session whose entry to update
            kind: Collection to store
            items: Collection contents
            generation: Value of ``generation()`` taken before the items were
                fetched. If the collection has been invalidated since, the
                items predate a write and are not stored.

        Returns:
            True if the items were stored
        """
        snapshot = tuple(items)
        with self._lock:
            current_generation = self._generations.get((session_id, kind), 0)
            if generation is not None and current_generation != generation:
                stored = False
            else:
                stored = True
                now = self._now()
                current = self._entries.get(session_id) or CacheEntry(timestamp=now)
                self._entries[session_id] = replace(
                    current, timestamp=now, **{kind.value: snapshot}
                )
        if not stored:
            logger.debug(
                "session_cache.stale_write_dropped", session_id=session_id, collection=kind.value
            )
        return stored

    def invalidate_collection(self, session_id: str, kind: CollectionKind) -> None:
        """
        Clear one collection for a session.

        Invalidating roasters also clears beans, whose linked roasters would
        otherwise be stale.
        """
        cleared = (kind, *_CASCADE.get(kind, ()))
        with self._lock:
            for k in cleared:
                key = (session_id, k)
                self._generations[key] = self._generations.get(key, 0) + 1
            current = self._entries.get(session_id)
            if current is None:
                return
            self._entries[session_id] = replace(
                current, **{k.value: None for k in cleared}
            )
        logger.debug(
            "session_cache.collection_invalidated",
            session_id=session_id,
            collections=[k.value for k in cleared],
        )

    def cleanup(self) -> int:
        """
        Remove entries older than TTL times the cleanup multiplier.

        Returns:
            Number of entries removed
        """
        max_age = self._ttl * self._cleanup_multiplier
        with self._lock:
            now = self._now()
            expired = [
                session_id
                for session_id, entry in self._entries.items()
                if now - entry.timestamp > max_age
            ]
            for session_id in expired:
                del self._entries[session_id]
            self._stats["evictions"] += len(expired)
        if expired:
            logger.debug("session_cache.cleanup", removed=len(expired))
        return len(expired)

    def start_cleanup(self, interval_seconds: float) -> None:
        """Start the background sweep on the running event loop."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(
            self._run_cleanup(interval_seconds), name="session-cache-cleanup"
        )
        logger.info("session_cache.cleanup_started", interval_seconds=interval_seconds)

    async def stop_cleanup(self) -> None:
        """Cancel the background sweep and wait for it to finish."""
        task = self._cleanup_task
        self._cleanup_task = None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("session_cache.cleanup_stopped")

    async def _run_cleanup(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self.cleanup()

    def _record(self, counter: str) -> None:
        with self._lock:
            self._stats[counter] += 1

    @property
    def stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with hits, misses, evictions, sessions and hit_rate
        """
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            return {
                **self._stats,
                "sessions": len(self._entries),
                "hit_rate": self._stats["hits"] / total if total > 0 else 0.0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
