"""
Repository Client Protocols

This module defines the contracts for talking to a user's personal record
repository. The store adapter depends only on these protocols; concrete
HTTP implementations live in ``brewlog.infrastructure.repository``.

All authenticated operations are scoped by a ``Session`` (owner identity
plus session id). Transport-level retry/backoff is the implementation's
concern, not the caller's.

Error Handling:
    - Missing records raise ``RecordNotFoundError``
    - Any other backend or transport failure raises ``RepositoryError``
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from brewlog.core.domain.models import Profile, Session


@dataclass(frozen=True)
class RecordEntry:
    """One record as returned by the repository."""

    uri: str
    value: dict[str, Any]
    cid: str = ""


@dataclass(frozen=True)
class ListRecordsPage:
    """One page of a paginated listing."""

    records: list[RecordEntry] = field(default_factory=list)
    cursor: str | None = None


@dataclass(frozen=True)
class SessionCredentials:
    """Where and how to reach a session owner's repository."""

    service_url: str
    access_token: str


class CredentialsProviderProtocol(Protocol):
    """
    Supplies repository credentials for an authenticated session.

    The OAuth layer that produces sessions implements this; the store
    adapter treats it as a black box.
    """

    async def credentials_for(self, session: Session) -> SessionCredentials:
        """Return the repository endpoint and access token for a session."""
        ...


class RepositoryClientProtocol(Protocol):
    """
    Authenticated CRUD access to a session owner's repository.

    Every write is a full replace; there is no patch operation and no
    revision check.
    """

    async def create_record(
        self, session: Session, collection: str, record: dict[str, Any]
    ) -> str:
        """
        Create a record with a server-assigned key.

        Returns:
            Locator of the new record
        """
        ...

    async def get_record(
        self, session: Session, collection: str, rkey: str
    ) -> dict[str, Any]:
        """
        Fetch one record's value.

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        ...

    async def put_record(
        self, session: Session, collection: str, rkey: str, record: dict[str, Any]
    ) -> None:
        """Create or replace the record at ``rkey``."""
        ...

    async def delete_record(self, session: Session, collection: str, rkey: str) -> None:
        """Delete the record at ``rkey``."""
        ...

    async def list_records(
        self,
        session: Session,
        collection: str,
        cursor: str | None = None,
        limit: int = 100,
    ) -> ListRecordsPage:
        """List one page of records in a collection."""
        ...

    async def list_all_records(
        self, session: Session, collection: str
    ) -> list[RecordEntry]:
        """List every record in a collection, following pagination to the end."""
        ...


class PublicRepositoryProtocol(Protocol):
    """
    Unauthenticated, read-only access to any user's public records.

    Used for cross-user views. Implementations resolve the owner identity
    to the repository endpoint before fetching; they never write and never
    touch the session cache.
    """

    async def resolve_handle(self, handle: str) -> str:
        """Resolve a handle to an owner DID."""
        ...

    async def get_profile(self, actor: str) -> Profile:
        """Fetch a public profile by DID or handle."""
        ...

    async def list_records(
        self, did: str, collection: str, limit: int = 100, reverse: bool = True
    ) -> ListRecordsPage:
        """List a user's public records, newest first by default."""
        ...

    async def get_record(self, did: str, collection: str, rkey: str) -> RecordEntry:
        """Fetch a single public record."""
        ...
