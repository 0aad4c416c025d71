"""
Community feed.

Aggregates the most recent brews of every registered owner into a single
newest-first list. Each owner is fetched independently and concurrently
through the public client; an owner whose profile or brews cannot be
fetched is left out of the feed rather than failing it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog

from brewlog.core.domain.errors import BrewlogError, MalformedLocatorError, RecordDecodeError
from brewlog.core.domain.linking import link_beans_to_roasters, link_brew_references
from brewlog.core.domain.locator import CollectionKind
from brewlog.core.domain.models import Brew, Profile
from brewlog.core.domain.records import decode_record
from brewlog.core.interfaces.feed import FeedRegistryProtocol
from brewlog.core.interfaces.repository import PublicRepositoryProtocol, RecordEntry
from brewlog.core.utils.time import utc_now

logger = structlog.get_logger(__name__)

DEFAULT_FEED_LIMIT = 20
DEFAULT_BREWS_PER_USER = 10
DEFAULT_LOOKUP_LIMIT = 100

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR


@dataclass(frozen=True)
class FeedItem:
    """A brew in the feed together with its author."""

    brew: Brew
    author: Profile
    timestamp: datetime
    time_ago: str


def _ago(count: int, unit: str) -> str:
    if count == 1:
        return f"1 {unit} ago"
    return f"{count} {unit}s ago"


def format_time_ago(moment: datetime, now: datetime | None = None) -> str:
    """Render a timestamp relative to ``now`` ("3 hours ago", "yesterday")."""
    now = now or utc_now()
    seconds = (now - moment).total_seconds()
    if seconds < _MINUTE:
        return "just now"
    if seconds < _HOUR:
        return _ago(int(seconds // _MINUTE), "minute")
    if seconds < _DAY:
        return _ago(int(seconds // _HOUR), "hour")
    if seconds < 2 * _DAY:
        return "yesterday"
    if seconds < 7 * _DAY:
        return _ago(int(seconds // _DAY), "day")
    if seconds < 30 * _DAY:
        return _ago(int(seconds // (7 * _DAY)), "week")
    if seconds < 365 * _DAY:
        return _ago(int(seconds // (30 * _DAY)), "month")
    return _ago(int(seconds // (365 * _DAY)), "year")


def decode_entries(kind: CollectionKind, entries: Iterable[RecordEntry]) -> list[Any]:
    """Decode public record entries, skipping any that are malformed."""
    items = []
    for entry in entries:
        try:
            items.append(decode_record(kind, entry.value, entry.uri))
        except (RecordDecodeError, MalformedLocatorError) as exc:
            logger.warning(
                "feed.record_skipped", collection=kind.value, uri=entry.uri, error=str(exc)
            )
    return items


class FeedService:
    """
    Builds the recent-activity feed from registered owners.

    Args:
        registry: Source of the owners shown in the feed
        public_client: Read-only repository client
        brews_per_user: How many recent brews to fetch per owner
        lookup_limit: How many beans/roasters/grinders/brewers to fetch per
            owner for linking
        time_provider: Clock used for the relative time strings
    """

    def __init__(
        self,
        registry: FeedRegistryProtocol,
        public_client: PublicRepositoryProtocol,
        brews_per_user: int = DEFAULT_BREWS_PER_USER,
        lookup_limit: int = DEFAULT_LOOKUP_LIMIT,
        time_provider: Callable[[], datetime] | None = None,
    ):
        self._registry = registry
        self._public_client = public_client
        self._brews_per_user = brews_per_user
        self._lookup_limit = lookup_limit
        self._now = time_provider or utc_now

    async def get_recent_brews(self, limit: int = DEFAULT_FEED_LIMIT) -> list[FeedItem]:
        """
        Fetch recent brews across all registered owners.

        Returns:
            Up to ``limit`` items, newest first
        """
        owners = await self._registry.list_owners()
        if not owners:
            logger.debug("feed.no_registered_users")
            return []

        results = await asyncio.gather(
            *(self._fetch_owner(did) for did in owners), return_exceptions=True
        )

        now = self._now()
        items: list[FeedItem] = []
        for did, result in zip(owners, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("feed.user_skipped", did=did, error=str(result))
                continue
            profile, brews = result
            logger.debug(
                "feed.user_collected", did=did, handle=profile.handle, brew_count=len(brews)
            )
            items.extend(
                FeedItem(
                    brew=brew,
                    author=profile,
                    timestamp=brew.created_at,
                    time_ago=format_time_ago(brew.created_at, now),
                )
                for brew in brews
            )

        items.sort(key=lambda item: item.timestamp, reverse=True)
        logger.debug("feed.items_returned", total=min(len(items), limit))
        return items[:limit]

    async def _fetch_owner(self, did: str) -> tuple[Profile, list[Brew]]:
        profile = await self._public_client.get_profile(did)
        brew_page = await self._public_client.list_records(
            did, CollectionKind.BREWS.nsid, self._brews_per_user
        )
        beans, roasters, grinders, brewers = await asyncio.gather(
            self._lookup(did, CollectionKind.BEANS),
            self._lookup(did, CollectionKind.ROASTERS),
            self._lookup(did, CollectionKind.GRINDERS),
            self._lookup(did, CollectionKind.BREWERS),
        )
        brews = decode_entries(CollectionKind.BREWS, brew_page.records)
        linked = link_brew_references(
            brews, link_beans_to_roasters(beans, roasters), grinders, brewers
        )
        return profile, linked

    async def _lookup(self, did: str, kind: CollectionKind) -> list[Any]:
        """Fetch a lookup collection; a failure leaves it empty."""
        try:
            page = await self._public_client.list_records(did, kind.nsid, self._lookup_limit)
        except BrewlogError as exc:
            logger.warning(
                "feed.lookup_failed", did=did, collection=kind.value, error=str(exc)
            )
            return []
        return decode_entries(kind, page.records)
