"""Read-only view of another user's journal."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from brewlog.application.feed_service import decode_entries
from brewlog.core.domain.linking import link_beans_to_roasters, link_brew_references
from brewlog.core.domain.locator import CollectionKind
from brewlog.core.domain.models import Profile
from brewlog.core.interfaces.repository import PublicRepositoryProtocol
from brewlog.core.interfaces.store import StoreSnapshot
from brewlog.infrastructure.persistence.record_store import gather_fail_fast

logger = structlog.get_logger(__name__)


@dataclass
class ProfileSnapshot:
    """A public profile plus all of its owner's collections."""

    profile: Profile
    data: StoreSnapshot


class PublicProfileReader:
    """Loads a user's profile page data through the public client."""

    def __init__(self, public_client: PublicRepositoryProtocol, limit: int = 100):
        self._public_client = public_client
        self._limit = limit

    async def load_profile(self, actor: str) -> ProfileSnapshot:
        """
        Resolve ``actor`` (handle or DID) and fetch everything it owns.

        All five collections are fetched concurrently; the first failure
        cancels the rest and propagates.
        """
        did = actor if actor.startswith("did:") else await self._public_client.resolve_handle(actor)

        profile, beans, roasters, grinders, brewers, brews = await gather_fail_fast(
            self._public_client.get_profile(did),
            self._collection(did, CollectionKind.BEANS),
            self._collection(did, CollectionKind.ROASTERS),
            self._collection(did, CollectionKind.GRINDERS),
            self._collection(did, CollectionKind.BREWERS),
            self._collection(did, CollectionKind.BREWS),
        )
        linked_beans = link_beans_to_roasters(beans, roasters)
        logger.debug("profile_reader.loaded", did=did, brew_count=len(brews))
        return ProfileSnapshot(
            profile=profile,
            data=StoreSnapshot(
                beans=linked_beans,
                roasters=roasters,
                grinders=grinders,
                brewers=brewers,
                brews=link_brew_references(brews, linked_beans, grinders, brewers),
            ),
        )

    async def _collection(self, did: str, kind: CollectionKind) -> list:
        page = await self._public_client.list_records(did, kind.nsid, self._limit)
        return decode_entries(kind, page.records)
