"""
Unit tests for StoreFactory wiring.
"""

import pytest

from brewlog.application.factory import StoreFactory
from brewlog.core.domain.config_schema import BrewlogSettings
from brewlog.core.domain.locator import NSID_BREWER
from brewlog.core.domain.models import Session
from brewlog.core.domain.requests import CreateBrewerRequest
from brewlog.infrastructure.repository.public_client import PublicRepositoryClient


class ClosingPublicClient:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True


class TestStoreFactory:
    """Tests for StoreFactory."""

    def test_cache_uses_settings(self):
        factory = StoreFactory(BrewlogSettings(cache_ttl_seconds=15))

        assert factory.cache.ttl_seconds == 15

    def test_client_requires_credentials(self):
        factory = StoreFactory()

        with pytest.raises(RuntimeError):
            _ = factory.client

    def test_public_client_is_built_lazily(self):
        factory = StoreFactory()

        assert isinstance(factory.public_client, PublicRepositoryClient)
        assert factory.public_client is factory.public_client

    @pytest.mark.asyncio
    async def test_stores_share_the_cache(self, fake_client):
        factory = StoreFactory(client=fake_client)
        first = factory.for_session(Session("did:plc:alice123", "s1"))
        second = factory.for_session(Session("did:plc:alice123", "s1"))

        await first.create_brewer(CreateBrewerRequest(name="V60"))
        await first.list_brewers()
        await second.list_brewers()

        assert fake_client.calls["list_all_records"] == 1
        assert list(fake_client.records[NSID_BREWER].values())[0]["name"] == "V60"

    def test_feed_registry_uses_work_dir(self, tmp_path):
        factory = StoreFactory(BrewlogSettings(work_dir=str(tmp_path)))

        registry = factory.feed_registry()

        assert registry.registry_file == tmp_path / "feed" / "registry.json"

    @pytest.mark.asyncio
    async def test_context_manager_closes_clients(self):
        public_client = ClosingPublicClient()

        async with StoreFactory(public_client=public_client) as factory:
            assert factory.cache._cleanup_task is not None

        assert public_client.closed
        assert factory.cache._cleanup_task is None
