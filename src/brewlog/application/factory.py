"""Application Layer - Store Factory.

Dependency injection factory wiring settings, the shared session cache and
the repository clients into per-session ``RecordStore`` instances and the
public read-side services.
"""

from __future__ import annotations

import structlog

from brewlog.application.feed_registry import FileFeedRegistry
from brewlog.application.feed_service import FeedService
from brewlog.application.profile_reader import PublicProfileReader
from brewlog.core.domain.config_schema import BrewlogSettings
from brewlog.core.domain.models import Session
from brewlog.core.interfaces.repository import (
    CredentialsProviderProtocol,
    PublicRepositoryProtocol,
    RepositoryClientProtocol,
)
from brewlog.infrastructure.cache.session_cache import SessionCache
from brewlog.infrastructure.persistence.record_store import RecordStore
from brewlog.infrastructure.repository.public_client import PublicRepositoryClient
from brewlog.infrastructure.repository.xrpc_client import XrpcRepositoryClient

logger = structlog.get_logger(__name__)


class StoreFactory:
    """
    Owns the long-lived collaborators shared by every session.

    Args:
        settings: Validated runtime settings
        credentials: Auth layer mapping sessions to PDS credentials; required
            only for authenticated stores
        client: Repository client override (tests inject a fake)
        public_client: Public client override
        cache: Session cache override
    """

    def __init__(
        self,
        settings: BrewlogSettings | None = None,
        credentials: CredentialsProviderProtocol | None = None,
        client: RepositoryClientProtocol | None = None,
        public_client: PublicRepositoryProtocol | None = None,
        cache: SessionCache | None = None,
    ):
        self.settings = settings or BrewlogSettings()
        self._credentials = credentials
        self._client = client
        self._public_client = public_client
        self.cache = cache or SessionCache(
            ttl_seconds=self.settings.cache_ttl_seconds,
            cleanup_multiplier=self.settings.cache_cleanup_multiplier,
        )

    @property
    def client(self) -> RepositoryClientProtocol:
        if self._client is None:
            if self._credentials is None:
                raise RuntimeError("A credentials provider is required for authenticated stores")
            self._client = XrpcRepositoryClient(
                self._credentials,
                timeout_seconds=self.settings.http_timeout_seconds,
                page_size=self.settings.list_page_size,
            )
        return self._client

    @property
    def public_client(self) -> PublicRepositoryProtocol:
        if self._public_client is None:
            self._public_client = PublicRepositoryClient(
                public_api_url=self.settings.public_api_url,
                plc_directory_url=self.settings.plc_directory_url,
                timeout_seconds=self.settings.http_timeout_seconds,
            )
        return self._public_client

    def for_session(self, session: Session) -> RecordStore:
        """Build a store scoped to one authenticated session."""
        return RecordStore(self.client, session, self.cache)

    def feed_registry(self) -> FileFeedRegistry:
        return FileFeedRegistry(work_dir=self.settings.work_dir)

    def feed_service(self, registry: FileFeedRegistry | None = None) -> FeedService:
        return FeedService(
            registry or self.feed_registry(),
            self.public_client,
            brews_per_user=self.settings.feed_brews_per_user,
            lookup_limit=self.settings.feed_lookup_limit,
        )

    def profile_reader(self) -> PublicProfileReader:
        return PublicProfileReader(self.public_client, limit=self.settings.feed_lookup_limit)

    async def start(self) -> None:
        """Start the background cache sweep."""
        self.cache.start_cleanup(self.settings.cache_cleanup_interval_seconds)
        logger.info("factory.started")

    async def close(self) -> None:
        """Stop the cache sweep and close HTTP clients."""
        await self.cache.stop_cleanup()
        for client in (self._client, self._public_client):
            close = getattr(client, "close", None)
            if close is not None:
                await close()
        logger.info("factory.closed")

    async def __aenter__(self) -> StoreFactory:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
