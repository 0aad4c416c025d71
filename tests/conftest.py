"""Test configuration and shared fixtures."""

from __future__ import annotations

import pytest

from brewlog.core.domain.models import Session
from brewlog.infrastructure.cache.session_cache import SessionCache
from brewlog.infrastructure.persistence.record_store import RecordStore
from fakes import FakePublicClient, FakeRepositoryClient

OWNER_DID = "did:plc:alice123"


class FakeClock:
    """Manually advanced monotonic clock for cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session() -> Session:
    return Session(owner_id=OWNER_DID, session_id="session-1")


@pytest.fixture
def fake_client() -> FakeRepositoryClient:
    return FakeRepositoryClient()


@pytest.fixture
def public_client() -> FakePublicClient:
    return FakePublicClient()


@pytest.fixture
def cache(clock: FakeClock) -> SessionCache:
    return SessionCache(ttl_seconds=120, cleanup_multiplier=2, time_provider=clock)


@pytest.fixture
def store(fake_client: FakeRepositoryClient, session: Session, cache: SessionCache) -> RecordStore:
    return RecordStore(fake_client, session, cache)
