"""
Record Store

Repository-backed implementation of ``StoreProtocol``. One instance serves
one authenticated session; the session cache is shared across instances.

Read path:
    list: cache slice -> (miss) list_all_records -> decode each record,
          skipping malformed ones -> cache -> link references in memory
    get:  get_record -> decode -> resolve references via the resolver

Write path:
    build reference locators from record keys -> encode -> create/put/delete
    -> invalidate the affected cache slice

Every write is a full replace with no revision check, so concurrent edits
of the same record resolve as last writer wins.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from datetime import datetime
from typing import Any

import structlog

from brewlog.core.domain.errors import (
    BrewlogError,
    MalformedLocatorError,
    MissingReferenceError,
    RecordDecodeError,
    RecordNotFoundError,
    RepositoryError,
)
from brewlog.core.domain.linking import link_beans_to_roasters, link_brew_references
from brewlog.core.domain.locator import (
    CollectionKind,
    build_locator,
    resolve_locator,
    validate_record_key,
)
from brewlog.core.domain.models import Bean, Brew, Brewer, Grinder, Pour, Roaster, Session
from brewlog.core.domain.records import (
    bean_to_record,
    brew_to_record,
    brewer_to_record,
    decode_record,
    grinder_to_record,
    roaster_to_record,
)
from brewlog.core.domain.requests import (
    CreateBeanRequest,
    CreateBrewerRequest,
    CreateBrewRequest,
    CreateGrinderRequest,
    CreateRoasterRequest,
)
from brewlog.core.interfaces.repository import RepositoryClientProtocol
from brewlog.core.interfaces.store import StoreSnapshot
from brewlog.core.utils.time import utc_now
from brewlog.infrastructure.cache.session_cache import SessionCache
from brewlog.infrastructure.persistence.reference_resolver import (
    ReferencePolicy,
    ReferenceResolver,
)

logger = structlog.get_logger(__name__)


def _now() -> datetime:
    """Current UTC time truncated to the second precision records store."""
    return utc_now().replace(microsecond=0)


async def gather_fail_fast(*aws: Awaitable[Any]) -> list[Any]:
    """
    Run awaitables concurrently in a TaskGroup.

    The first failure cancels the remaining tasks and is re-raised on its
    own rather than wrapped in an ExceptionGroup.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(aw) for aw in aws]
    except ExceptionGroup as exc_group:
        raise exc_group.exceptions[0] from exc_group
    return [task.result() for task in tasks]


class RecordStore:
    """
    Store adapter over a user's record repository.

    Args:
        client: Authenticated repository client
        session: Session every call is scoped to
        cache: Shared session cache
        resolver: Reference resolver; built from ``client`` if omitted
    """

    def __init__(
        self,
        client: RepositoryClientProtocol,
        session: Session,
        cache: SessionCache,
        resolver: ReferenceResolver | None = None,
    ):
        self._client = client
        self._session = session
        self._cache = cache
        self._resolver = resolver or ReferenceResolver(client)

    @property
    def session(self) -> Session:
        return self._session

    # ========== Brews ==========

    async def create_brew(self, request: CreateBrewRequest) -> Brew:
        """
        Create a brew.

        Raises:
            MissingReferenceError: If ``bean_rkey`` is empty; nothing is sent
        """
        brew = self._brew_from_request(request, created_at=_now())
        record = brew_to_record(brew, brew.bean_ref, brew.grinder_ref, brew.brewer_ref)
        brew.locator, brew.rkey = await self._create(CollectionKind.BREWS, record)

        try:
            brew = await self._resolver.resolve_brew_refs(
                brew, self._session, bean_policy=ReferencePolicy.OPTIONAL
            )
        except BrewlogError as exc:
            logger.warning(
                "record_store.brew_refs_unresolved",
                session_id=self._session.session_id,
                locator=brew.locator,
                error=str(exc),
            )
        return brew

    async def get_brew(self, rkey: str) -> Brew:
        """Fetch a brew with its bean (required), grinder and brewer."""
        brew = await self._get(CollectionKind.BREWS, rkey)
        return await self._resolver.resolve_brew_refs(brew, self._session)

    async def list_brews(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Brew]:
        """List brews linked to the session's beans, grinders and brewers."""
        brews, beans, roasters, grinders, brewers = await gather_fail_fast(
            self._load(CollectionKind.BREWS, refresh, allow_stale),
            self._load(CollectionKind.BEANS, refresh, allow_stale),
            self._load(CollectionKind.ROASTERS, refresh, allow_stale),
            self._load(CollectionKind.GRINDERS, refresh, allow_stale),
            self._load(CollectionKind.BREWERS, refresh, allow_stale),
        )
        return link_brew_references(
            brews, link_beans_to_roasters(beans, roasters), grinders, brewers
        )

    async def update_brew(self, rkey: str, request: CreateBrewRequest) -> None:
        """
        Replace a brew, keeping its original ``createdAt``.

        Raises:
            MissingReferenceError: If ``bean_rkey`` is empty; nothing is sent
            MalformedLocatorError: If a reference key is invalid; nothing is sent
        """
        brew = self._brew_from_request(request, created_at=_now())
        brew.created_at = await self._existing_created_at(CollectionKind.BREWS, rkey)
        record = brew_to_record(brew, brew.bean_ref, brew.grinder_ref, brew.brewer_ref)
        await self._put(CollectionKind.BREWS, rkey, record)

    async def delete_brew(self, rkey: str) -> None:
        await self._delete(CollectionKind.BREWS, rkey)

    # ========== Beans ==========

    async def create_bean(self, request: CreateBeanRequest) -> Bean:
        bean = self._bean_from_request(request, created_at=_now())
        record = bean_to_record(bean, bean.roaster_ref)
        bean.locator, bean.rkey = await self._create(CollectionKind.BEANS, record)

        try:
            bean = await self._resolver.attach_roaster(bean, self._session)
        except BrewlogError as exc:
            logger.warning(
                "record_store.bean_roaster_unresolved",
                session_id=self._session.session_id,
                locator=bean.locator,
                error=str(exc),
            )
        return bean

    async def get_bean(self, rkey: str) -> Bean:
        """Fetch a bean; its roaster is optional and may be unset."""
        bean = await self._get(CollectionKind.BEANS, rkey)
        return await self._resolver.attach_roaster(bean, self._session)

    async def list_beans(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Bean]:
        """List beans linked to the session's roasters."""
        beans, roasters = await gather_fail_fast(
            self._load(CollectionKind.BEANS, refresh, allow_stale),
            self._load(CollectionKind.ROASTERS, refresh, allow_stale),
        )
        return link_beans_to_roasters(beans, roasters)

    async def update_bean(self, rkey: str, request: CreateBeanRequest) -> None:
        bean = self._bean_from_request(request, created_at=_now())
        bean.created_at = await self._existing_created_at(CollectionKind.BEANS, rkey)
        await self._put(CollectionKind.BEANS, rkey, bean_to_record(bean, bean.roaster_ref))

    async def delete_bean(self, rkey: str) -> None:
        await self._delete(CollectionKind.BEANS, rkey)

    # ========== Roasters ==========

    async def create_roaster(self, request: CreateRoasterRequest) -> Roaster:
        roaster = Roaster(
            name=request.name,
            location=request.location,
            website=request.website,
            created_at=_now(),
        )
        roaster.locator, roaster.rkey = await self._create(
            CollectionKind.ROASTERS, roaster_to_record(roaster)
        )
        return roaster

    async def get_roaster(self, rkey: str) -> Roaster:
        return await self._get(CollectionKind.ROASTERS, rkey)

    async def list_roasters(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Roaster]:
        return await self._load(CollectionKind.ROASTERS, refresh, allow_stale)

    async def update_roaster(self, rkey: str, request: CreateRoasterRequest) -> None:
        created_at = await self._existing_created_at(CollectionKind.ROASTERS, rkey)
        roaster = Roaster(
            name=request.name,
            location=request.location,
            website=request.website,
            created_at=created_at,
        )
        await self._put(CollectionKind.ROASTERS, rkey, roaster_to_record(roaster))

    async def delete_roaster(self, rkey: str) -> None:
        await self._delete(CollectionKind.ROASTERS, rkey)

    # ========== Grinders ==========

    async def create_grinder(self, request: CreateGrinderRequest) -> Grinder:
        grinder = Grinder(
            name=request.name,
            grinder_type=request.grinder_type,
            burr_type=request.burr_type,
            notes=request.notes,
            created_at=_now(),
        )
        grinder.locator, grinder.rkey = await self._create(
            CollectionKind.GRINDERS, grinder_to_record(grinder)
        )
        return grinder

    async def get_grinder(self, rkey: str) -> Grinder:
        return await self._get(CollectionKind.GRINDERS, rkey)

    async def list_grinders(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Grinder]:
        return await self._load(CollectionKind.GRINDERS, refresh, allow_stale)

    async def update_grinder(self, rkey: str, request: CreateGrinderRequest) -> None:
        created_at = await self._existing_created_at(CollectionKind.GRINDERS, rkey)
        grinder = Grinder(
            name=request.name,
            grinder_type=request.grinder_type,
            burr_type=request.burr_type,
            notes=request.notes,
            created_at=created_at,
        )
        await self._put(CollectionKind.GRINDERS, rkey, grinder_to_record(grinder))

    async def delete_grinder(self, rkey: str) -> None:
        await self._delete(CollectionKind.GRINDERS, rkey)

    # ========== Brewers ==========

    async def create_brewer(self, request: CreateBrewerRequest) -> Brewer:
        brewer = Brewer(
            name=request.name, description=request.description, created_at=_now()
        )
        brewer.locator, brewer.rkey = await self._create(
            CollectionKind.BREWERS, brewer_to_record(brewer)
        )
        return brewer

    async def get_brewer(self, rkey: str) -> Brewer:
        return await self._get(CollectionKind.BREWERS, rkey)

    async def list_brewers(
        self, *, refresh: bool = False, allow_stale: bool = False
    ) -> list[Brewer]:
        return await self._load(CollectionKind.BREWERS, refresh, allow_stale)

    async def update_brewer(self, rkey: str, request: CreateBrewerRequest) -> None:
        created_at = await self._existing_created_at(CollectionKind.BREWERS, rkey)
        brewer = Brewer(
            name=request.name, description=request.description, created_at=created_at
        )
        await self._put(CollectionKind.BREWERS, rkey, brewer_to_record(brewer))

    async def delete_brewer(self, rkey: str) -> None:
        await self._delete(CollectionKind.BREWERS, rkey)

    # ========== Bulk assembly ==========

    async def fetch_all(self, *, refresh: bool = False) -> StoreSnapshot:
        """
        Fetch all five collections concurrently and link them.

        Fails as a whole on the first collection failure; the other fetches
        are cancelled.
        """
        beans, roasters, grinders, brewers, brews = await gather_fail_fast(
            self._load(CollectionKind.BEANS, refresh, False),
            self._load(CollectionKind.ROASTERS, refresh, False),
            self._load(CollectionKind.GRINDERS, refresh, False),
            self._load(CollectionKind.BREWERS, refresh, False),
            self._load(CollectionKind.BREWS, refresh, False),
        )
        linked_beans = link_beans_to_roasters(beans, roasters)
        return StoreSnapshot(
            beans=linked_beans,
            roasters=roasters,
            grinders=grinders,
            brewers=brewers,
            brews=link_brew_references(brews, linked_beans, grinders, brewers),
        )

    async def fetch_manage_data(self, *, refresh: bool = False) -> StoreSnapshot:
        """Fetch the equipment collections (no brews) for a management view."""
        beans, roasters, grinders, brewers = await gather_fail_fast(
            self._load(CollectionKind.BEANS, refresh, False),
            self._load(CollectionKind.ROASTERS, refresh, False),
            self._load(CollectionKind.GRINDERS, refresh, False),
            self._load(CollectionKind.BREWERS, refresh, False),
        )
        return StoreSnapshot(
            beans=link_beans_to_roasters(beans, roasters),
            roasters=roasters,
            grinders=grinders,
            brewers=brewers,
        )

    # ========== Internals ==========

    def _owner_locator(self, kind: CollectionKind, rkey: str) -> str:
        return build_locator(self._session.owner_id, kind.nsid, rkey)

    def _record_locator(self, kind: CollectionKind, rkey: str) -> str:
        locator = self._owner_locator(kind, rkey)
        if not validate_record_key(rkey):
            raise MalformedLocatorError(locator, f"invalid record key {rkey!r}")
        return locator

    def _optional_ref(self, kind: CollectionKind, rkey: str) -> str:
        return self._record_locator(kind, rkey) if rkey else ""

    def _brew_from_request(self, request: CreateBrewRequest, created_at: datetime) -> Brew:
        if not request.bean_rkey:
            raise MissingReferenceError("beanRef")
        return Brew(
            bean_ref=self._record_locator(CollectionKind.BEANS, request.bean_rkey),
            method=request.method,
            temperature=request.temperature,
            water_amount=request.water_amount,
            coffee_amount=request.coffee_amount,
            time_seconds=request.time_seconds,
            grind_size=request.grind_size,
            grinder_ref=self._optional_ref(CollectionKind.GRINDERS, request.grinder_rkey),
            brewer_ref=self._optional_ref(CollectionKind.BREWERS, request.brewer_rkey),
            tasting_notes=request.tasting_notes,
            rating=request.rating,
            pours=[
                Pour(
                    water_amount=pour.water_amount,
                    time_seconds=pour.time_seconds,
                    pour_number=number,
                )
                for number, pour in enumerate(request.pours, start=1)
            ],
            created_at=created_at,
        )

    def _bean_from_request(self, request: CreateBeanRequest, created_at: datetime) -> Bean:
        return Bean(
            name=request.name,
            origin=request.origin,
            roast_level=request.roast_level,
            process=request.process,
            description=request.description,
            roaster_ref=self._optional_ref(CollectionKind.ROASTERS, request.roaster_rkey),
            created_at=created_at,
        )

    def _context_error(
        self, exc: RepositoryError, operation: str, kind: CollectionKind, locator: str | None
    ) -> RepositoryError:
        if isinstance(exc, RecordNotFoundError):
            return RecordNotFoundError(
                operation=operation, collection=kind.nsid, locator=locator
            )
        return RepositoryError(
            f"Failed to {operation} {kind.value}: {exc.message}",
            operation=operation,
            collection=kind.nsid,
            locator=locator,
            status_code=exc.status_code,
            code=exc.code,
        )

    async def _create(self, kind: CollectionKind, record: dict[str, Any]) -> tuple[str, str]:
        try:
            locator = await self._client.create_record(self._session, kind.nsid, record)
        except RepositoryError as exc:
            raise self._context_error(exc, "create", kind, None) from exc
        self._cache.invalidate_collection(self._session.session_id, kind)
        rkey = resolve_locator(locator).record_key
        logger.info(
            "record_store.record_created",
            session_id=self._session.session_id,
            collection=kind.value,
            locator=locator,
        )
        return locator, rkey

    async def _get_raw(self, kind: CollectionKind, rkey: str, operation: str) -> tuple[str, Any]:
        locator = self._record_locator(kind, rkey)
        try:
            record = await self._client.get_record(self._session, kind.nsid, rkey)
        except RepositoryError as exc:
            raise self._context_error(exc, operation, kind, locator) from exc
        return locator, record

    async def _get(self, kind: CollectionKind, rkey: str) -> Any:
        locator, record = await self._get_raw(kind, rkey, "get")
        return decode_record(kind, record, locator)

    async def _existing_created_at(self, kind: CollectionKind, rkey: str) -> datetime:
        locator, record = await self._get_raw(kind, rkey, "update")
        return decode_record(kind, record, locator).created_at

    async def _put(self, kind: CollectionKind, rkey: str, record: dict[str, Any]) -> None:
        locator = self._record_locator(kind, rkey)
        try:
            await self._client.put_record(self._session, kind.nsid, rkey, record)
        except RepositoryError as exc:
            raise self._context_error(exc, "update", kind, locator) from exc
        self._cache.invalidate_collection(self._session.session_id, kind)
        logger.info(
            "record_store.record_updated",
            session_id=self._session.session_id,
            collection=kind.value,
            locator=locator,
        )

    async def _delete(self, kind: CollectionKind, rkey: str) -> None:
        locator = self._record_locator(kind, rkey)
        try:
            await self._client.delete_record(self._session, kind.nsid, rkey)
        except RepositoryError as exc:
            raise self._context_error(exc, "delete", kind, locator) from exc
        self._cache.invalidate_collection(self._session.session_id, kind)
        logger.info(
            "record_store.record_deleted",
            session_id=self._session.session_id,
            collection=kind.value,
            locator=locator,
        )

    async def _load(
        self, kind: CollectionKind, refresh: bool, allow_stale: bool
    ) -> list[Any]:
        """Read one collection through the cache; items are unlinked."""
        session_id = self._session.session_id
        if not refresh:
            cached = self._cache.get_collection(session_id, kind, allow_stale=allow_stale)
            if cached is not None:
                return cached

        # A write landing while this listing is in flight bumps the
        # generation, so pre-write items are not cached as fresh.
        generation = self._cache.generation(session_id, kind)
        try:
            entries = await self._client.list_all_records(self._session, kind.nsid)
        except RepositoryError as exc:
            raise self._context_error(exc, "list", kind, None) from exc

        items = []
        for entry in entries:
            try:
                items.append(decode_record(kind, entry.value, entry.uri))
            except (RecordDecodeError, MalformedLocatorError) as exc:
                logger.warning(
                    "record_store.record_skipped",
                    session_id=session_id,
                    collection=kind.value,
                    uri=entry.uri,
                    error=str(exc),
                )

        self._cache.set_collection(session_id, kind, items, generation=generation)
        logger.debug(
            "record_store.collection_loaded",
            session_id=session_id,
            collection=kind.value,
            count=len(items),
        )
        return list(items)
