"""
Reference Resolver

Turns reference locators stored in records back into entity objects by
fetching and decoding the referenced record.

Every call site states its policy explicitly:

- ``ReferencePolicy.REQUIRED``: a fetch or decode failure raises
  ``ReferenceResolutionError`` with the cause chained.
- ``ReferencePolicy.OPTIONAL``: a fetch or decode failure is logged and
  resolves to None.

Malformed locators and collection mismatches always propagate; they mean
the stored data is wrong, not that the referenced record is unavailable.
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Any

import structlog

from brewlog.core.domain.errors import (
    CollectionMismatchError,
    RecordDecodeError,
    ReferenceResolutionError,
    RepositoryError,
)
from brewlog.core.domain.locator import CollectionKind, resolve_locator
from brewlog.core.domain.models import Bean, Brew, Brewer, Grinder, Roaster, Session
from brewlog.core.domain.records import decode_record
from brewlog.core.interfaces.repository import RepositoryClientProtocol

logger = structlog.get_logger(__name__)


class ReferencePolicy(str, Enum):
    """How a failed reference resolution is treated."""

    REQUIRED = "required"
    OPTIONAL = "optional"


class ReferenceResolver:
    """
    Resolves entity references for one repository client.

    Args:
        client: Repository client used to fetch referenced records
    """

    def __init__(self, client: RepositoryClientProtocol):
        self._client = client

    async def resolve_ref(
        self,
        locator: str,
        session: Session,
        kind: CollectionKind,
        policy: ReferencePolicy = ReferencePolicy.REQUIRED,
    ) -> Any | None:
        """
        Fetch and decode the record a reference points at.

        Args:
            locator: Reference locator; empty means "no reference"
            session: Session to fetch under
            kind: Collection the reference must point into
            policy: Failure policy for fetch and decode errors

        Returns:
            The decoded entity, or None for an empty locator or a tolerated
            failure

        Raises:
            MalformedLocatorError: If the locator does not parse
            CollectionMismatchError: If it points into another collection
            ReferenceResolutionError: On fetch/decode failure under REQUIRED
        """
        if not locator:
            return None

        parsed = resolve_locator(locator)
        if parsed.collection != kind.nsid:
            raise CollectionMismatchError(locator, kind.nsid, parsed.collection)

        try:
            record = await self._client.get_record(
                session, parsed.collection, parsed.record_key
            )
            return decode_record(kind, record, locator)
        except (RepositoryError, RecordDecodeError) as exc:
            if policy is ReferencePolicy.OPTIONAL:
                logger.warning(
                    "reference_resolver.optional_reference_failed",
                    collection=kind.value,
                    locator=locator,
                    error=str(exc),
                )
                return None
            raise ReferenceResolutionError(kind.value, locator, str(exc)) from exc

    async def resolve_bean(
        self,
        locator: str,
        session: Session,
        policy: ReferencePolicy = ReferencePolicy.REQUIRED,
    ) -> Bean | None:
        return await self.resolve_ref(locator, session, CollectionKind.BEANS, policy)

    async def resolve_roaster(
        self,
        locator: str,
        session: Session,
        policy: ReferencePolicy = ReferencePolicy.REQUIRED,
    ) -> Roaster | None:
        return await self.resolve_ref(locator, session, CollectionKind.ROASTERS, policy)

    async def resolve_grinder(
        self,
        locator: str,
        session: Session,
        policy: ReferencePolicy = ReferencePolicy.REQUIRED,
    ) -> Grinder | None:
        return await self.resolve_ref(locator, session, CollectionKind.GRINDERS, policy)

    async def resolve_brewer(
        self,
        locator: str,
        session: Session,
        policy: ReferencePolicy = ReferencePolicy.REQUIRED,
    ) -> Brewer | None:
        return await self.resolve_ref(locator, session, CollectionKind.BREWERS, policy)

    async def resolve_bean_with_roaster(
        self,
        locator: str,
        session: Session,
        policy: ReferencePolicy = ReferencePolicy.REQUIRED,
    ) -> Bean | None:
        """
        Resolve a bean and, if it has one, its roaster.

        The roaster is always optional: a dangling or unreadable roaster
        reference yields the bean with ``roaster`` unset.
        """
        bean = await self.resolve_bean(locator, session, policy)
        if bean is None:
            return None
        return await self.attach_roaster(bean, session)

    async def attach_roaster(self, bean: Bean, session: Session) -> Bean:
        """Return a copy of ``bean`` with its roaster resolved, if any."""
        if not bean.roaster_ref:
            return bean
        roaster = await self.resolve_roaster(
            bean.roaster_ref, session, ReferencePolicy.OPTIONAL
        )
        return replace(bean, roaster=roaster)

    async def resolve_brew_refs(
        self,
        brew: Brew,
        session: Session,
        bean_policy: ReferencePolicy = ReferencePolicy.REQUIRED,
    ) -> Brew:
        """
        Resolve a brew's bean (with roaster), grinder and brewer.

        The bean follows ``bean_policy``; grinder and brewer are optional.

        Returns:
            A copy of ``brew`` with the joined objects filled in
        """
        bean = await self.resolve_bean_with_roaster(brew.bean_ref, session, bean_policy)
        grinder = await self.resolve_grinder(
            brew.grinder_ref, session, ReferencePolicy.OPTIONAL
        )
        brewer = await self.resolve_brewer(
            brew.brewer_ref, session, ReferencePolicy.OPTIONAL
        )
        return replace(brew, bean=bean, grinder=grinder, brewer=brewer)
