"""
Unit tests for PublicProfileReader.
"""

import pytest

from brewlog.application.profile_reader import PublicProfileReader
from brewlog.core.domain.errors import RecordNotFoundError, RepositoryError
from brewlog.core.domain.locator import NSID_BEAN, NSID_BREW, NSID_BREWER, NSID_ROASTER

DID = "did:plc:alice123"
CREATED = "2024-03-01T08:30:15Z"


@pytest.fixture
def alice(public_client):
    public_client.add_user(DID, "alice.test", "Alice")
    roaster = public_client.add_record(
        DID, NSID_ROASTER, "r1", {"name": "Onyx", "createdAt": CREATED}
    )
    bean = public_client.add_record(
        DID, NSID_BEAN, "b1", {"name": "Guji", "roasterRef": roaster, "createdAt": CREATED}
    )
    brewer = public_client.add_record(
        DID, NSID_BREWER, "w1", {"name": "V60", "createdAt": CREATED}
    )
    public_client.add_record(
        DID, NSID_BREW, "x1", {"beanRef": bean, "brewerRef": brewer, "createdAt": CREATED}
    )
    return public_client


@pytest.mark.asyncio
async def test_load_by_handle(alice):
    reader = PublicProfileReader(alice)

    snapshot = await reader.load_profile("alice.test")

    assert alice.calls["resolve_handle"] == 1
    assert snapshot.profile.display_name == "Alice"
    assert [bean.name for bean in snapshot.data.beans] == ["Guji"]
    assert snapshot.data.beans[0].roaster.name == "Onyx"
    assert snapshot.data.grinders == []
    brew = snapshot.data.brews[0]
    assert brew.bean.roaster.name == "Onyx"
    assert brew.brewer.name == "V60"


@pytest.mark.asyncio
async def test_load_by_did_skips_handle_resolution(alice):
    reader = PublicProfileReader(alice)

    snapshot = await reader.load_profile(DID)

    assert alice.calls["resolve_handle"] == 0
    assert snapshot.profile.handle == "alice.test"


@pytest.mark.asyncio
async def test_unknown_handle(public_client):
    reader = PublicProfileReader(public_client)

    with pytest.raises(RecordNotFoundError):
        await reader.load_profile("nobody.test")


@pytest.mark.asyncio
async def test_collection_failure_propagates(alice):
    alice.failing_collections.add((DID, NSID_BREWER))
    reader = PublicProfileReader(alice)

    with pytest.raises(RepositoryError):
        await reader.load_profile(DID)
