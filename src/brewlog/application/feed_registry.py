"""
File-Based Feed Registry

JSON-file implementation of ``FeedRegistryProtocol``. The registry is a
single file:

    {work_dir}/feed/registry.json

holding the sorted list of owner DIDs that appear in the community feed.
Writes go to a temporary file first and are renamed into place; an asyncio
lock serializes writers within the process.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import structlog

from brewlog.core.domain.locator import validate_did
from brewlog.core.utils.time import utc_now


class FileFeedRegistry:
    """
    Feed registry persisted as a JSON file.

    Example:
        >>> registry = FileFeedRegistry(work_dir=".brewlog")
        >>> await registry.register("did:plc:abc123")
        >>> await registry.list_owners()
        ['did:plc:abc123']
    """

    def __init__(
        self,
        work_dir: str | Path = ".brewlog",
        time_provider: Callable[[], datetime] | None = None,
    ):
        self.work_dir = Path(work_dir)
        self.feed_dir = self.work_dir / "feed"
        self.registry_file = self.feed_dir / "registry.json"
        self._lock = asyncio.Lock()
        self._time_provider = time_provider or utc_now
        self.logger = structlog.get_logger(__name__)

    async def _read(self) -> set[str]:
        if not self.registry_file.exists():
            return set()
        async with aiofiles.open(self.registry_file, encoding="utf-8") as f:
            raw = await f.read()
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            self._quarantine(str(exc))
            return set()
        if not isinstance(data, dict) or not isinstance(data.get("owners", []), list):
            self._quarantine("registry root must be an object with an owners list")
            return set()
        return {owner for owner in data.get("owners", []) if isinstance(owner, str)}

    def _quarantine(self, error: str) -> None:
        """Move an unreadable registry aside so the next write cannot clobber it."""
        stamp = self._time_provider().strftime("%Y%m%dT%H%M%S")
        backup = self.feed_dir / f"registry.json.corrupt-{stamp}"
        self.registry_file.replace(backup)
        self.logger.error(
            "feed_registry.corrupt_file",
            path=str(self.registry_file),
            backup=str(backup),
            error=error,
        )

    async def _write(self, owners: set[str]) -> None:
        self.feed_dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(
            {
                "owners": sorted(owners),
                "updated_at": self._time_provider().isoformat(),
            },
            indent=2,
        )
        temp_file = self.feed_dir / "registry.json.tmp"
        async with aiofiles.open(temp_file, "w", encoding="utf-8") as f:
            await f.write(payload)
        temp_file.replace(self.registry_file)

    async def register(self, did: str) -> None:
        """
        Add an owner to the feed.

        Raises:
            ValueError: If ``did`` is not a valid DID
        """
        if not validate_did(did):
            raise ValueError(f"Invalid DID: {did!r}")
        async with self._lock:
            owners = await self._read()
            if did in owners:
                return
            owners.add(did)
            await self._write(owners)
        self.logger.info("feed_registry.registered", did=did)

    async def unregister(self, did: str) -> None:
        """Remove an owner from the feed; unknown owners are ignored."""
        async with self._lock:
            owners = await self._read()
            if did not in owners:
                return
            owners.discard(did)
            await self._write(owners)
        self.logger.info("feed_registry.unregistered", did=did)

    async def list_owners(self) -> list[str]:
        async with self._lock:
            return sorted(await self._read())
