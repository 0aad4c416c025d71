"""In-memory repository doubles used across the unit tests."""

from __future__ import annotations

import asyncio
import copy
from collections import Counter
from typing import Any

from brewlog.core.domain.errors import RecordNotFoundError, RepositoryError
from brewlog.core.domain.locator import build_locator
from brewlog.core.domain.models import Profile, Session
from brewlog.core.interfaces.repository import ListRecordsPage, RecordEntry


class FakeRepositoryClient:
    """
    Dict-backed stand-in for ``RepositoryClientProtocol``.

    Records live in ``records[collection][rkey]``. Every call is counted in
    ``calls``; ``fail()`` makes an operation raise and ``delay()`` makes a
    collection's listing slow, for cancellation tests.
    """

    def __init__(self, page_size: int = 100):
        self.records: dict[str, dict[str, dict[str, Any]]] = {}
        self.calls: Counter[str] = Counter()
        self.page_size = page_size
        self._failures: dict[tuple[str, str | None], Exception] = {}
        self._delays: dict[str, float] = {}
        self._cancelled: list[str] = []
        self._next_key = 0

    # ----- test helpers -----

    def seed(self, collection: str, rkey: str, record: Any) -> None:
        self.records.setdefault(collection, {})[rkey] = copy.deepcopy(record)

    def fail(
        self, operation: str, collection: str | None = None, exc: Exception | None = None
    ) -> None:
        self._failures[(operation, collection)] = exc or RepositoryError(
            f"{operation} exploded", operation=operation, collection=collection, status_code=500
        )

    def delay(self, collection: str, seconds: float) -> None:
        self._delays[collection] = seconds

    @property
    def cancelled(self) -> list[str]:
        return list(self._cancelled)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def _enter(self, operation: str, collection: str) -> None:
        self.calls[operation] += 1
        for key in ((operation, collection), (operation, None)):
            if key in self._failures:
                raise self._failures[key]

    # ----- RepositoryClientProtocol -----

    async def create_record(
        self, session: Session, collection: str, record: dict[str, Any]
    ) -> str:
        self._enter("create_record", collection)
        self._next_key += 1
        rkey = f"3kfake{self._next_key:07d}"
        self.seed(collection, rkey, record)
        return build_locator(session.owner_id, collection, rkey)

    async def get_record(
        self, session: Session, collection: str, rkey: str
    ) -> dict[str, Any]:
        self._enter("get_record", collection)
        try:
            return copy.deepcopy(self.records[collection][rkey])
        except KeyError:
            raise RecordNotFoundError(
                operation="getRecord",
                collection=collection,
                locator=build_locator(session.owner_id, collection, rkey),
            ) from None

    async def put_record(
        self, session: Session, collection: str, rkey: str, record: dict[str, Any]
    ) -> None:
        self._enter("put_record", collection)
        self.seed(collection, rkey, record)

    async def delete_record(self, session: Session, collection: str, rkey: str) -> None:
        self._enter("delete_record", collection)
        self.records.get(collection, {}).pop(rkey, None)

    async def list_records(
        self,
        session: Session,
        collection: str,
        cursor: str | None = None,
        limit: int = 100,
    ) -> ListRecordsPage:
        self._enter("list_records", collection)
        items = sorted(self.records.get(collection, {}).items())
        start = int(cursor) if cursor else 0
        page = items[start : start + limit]
        next_cursor = str(start + limit) if start + limit < len(items) else None
        return ListRecordsPage(
            records=[
                RecordEntry(
                    uri=build_locator(session.owner_id, collection, rkey),
                    value=copy.deepcopy(value),
                )
                for rkey, value in page
            ],
            cursor=next_cursor,
        )

    async def list_all_records(
        self, session: Session, collection: str
    ) -> list[RecordEntry]:
        self.calls["list_all_records"] += 1
        try:
            if collection in self._delays:
                await asyncio.sleep(self._delays[collection])
        except asyncio.CancelledError:
            self._cancelled.append(collection)
            raise
        records: list[RecordEntry] = []
        cursor = None
        while True:
            page = await self.list_records(session, collection, cursor, self.page_size)
            records.extend(page.records)
            if not page.cursor:
                return records
            cursor = page.cursor


class FakePublicClient:
    """Dict-backed stand-in for ``PublicRepositoryProtocol``."""

    def __init__(self):
        self.profiles: dict[str, Profile] = {}
        self.handles: dict[str, str] = {}
        self.records: dict[tuple[str, str], list[RecordEntry]] = {}
        self.failing_dids: set[str] = set()
        self.failing_collections: set[tuple[str, str]] = set()
        self.calls: Counter[str] = Counter()

    def add_user(self, did: str, handle: str, display_name: str | None = None) -> None:
        self.profiles[did] = Profile(did=did, handle=handle, display_name=display_name)
        self.handles[handle] = did

    def add_record(self, did: str, collection: str, rkey: str, value: Any) -> str:
        uri = build_locator(did, collection, rkey)
        self.records.setdefault((did, collection), []).append(
            RecordEntry(uri=uri, value=copy.deepcopy(value))
        )
        return uri

    def _check(self, did: str, collection: str | None = None) -> None:
        if did in self.failing_dids or (did, collection) in self.failing_collections:
            raise RepositoryError(f"{did} unavailable", operation="public", status_code=502)

    async def resolve_handle(self, handle: str) -> str:
        self.calls["resolve_handle"] += 1
        try:
            return self.handles[handle]
        except KeyError:
            raise RecordNotFoundError(operation="resolveHandle") from None

    async def get_profile(self, actor: str) -> Profile:
        self.calls["get_profile"] += 1
        did = self.handles.get(actor, actor)
        self._check(did)
        try:
            return self.profiles[did]
        except KeyError:
            raise RecordNotFoundError(operation="getProfile") from None

    async def list_records(
        self, did: str, collection: str, limit: int = 100, reverse: bool = True
    ) -> ListRecordsPage:
        self.calls["list_records"] += 1
        self._check(did, collection)
        entries = list(self.records.get((did, collection), []))
        if reverse:
            entries.reverse()
        return ListRecordsPage(records=entries[:limit])

    async def get_record(self, did: str, collection: str, rkey: str) -> RecordEntry:
        self.calls["get_record"] += 1
        self._check(did, collection)
        uri = build_locator(did, collection, rkey)
        for entry in self.records.get((did, collection), []):
            if entry.uri == uri:
                return entry
        raise RecordNotFoundError(operation="getRecord", collection=collection, locator=uri)
