"""
Feed Registry Protocol

Tracks which repository owners take part in the community feed.
"""

from typing import Protocol


class FeedRegistryProtocol(Protocol):
    """
    Protocol for the set of owners shown in the recent-activity feed.

    Error Handling:
        - register/unregister are idempotent
        - list_owners returns an empty list when nothing is registered
    """

    async def register(self, did: str) -> None:
        """Add an owner to the feed."""
        ...

    async def unregister(self, did: str) -> None:
        """Remove an owner from the feed."""
        ...

    async def list_owners(self) -> list[str]:
        """List registered owner DIDs, sorted."""
        ...
