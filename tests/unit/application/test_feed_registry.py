"""
Unit tests for FileFeedRegistry.

Tests verify:
- Registration is persisted and idempotent
- Unregistration of unknown owners is a no-op
- Invalid DIDs are rejected
- A corrupt registry file is moved aside and reads as empty
"""

import json
from datetime import datetime, timezone

import pytest

from brewlog.application.feed_registry import FileFeedRegistry

FIXED = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def registry(tmp_path):
    return FileFeedRegistry(work_dir=tmp_path, time_provider=lambda: FIXED)


@pytest.mark.asyncio
async def test_empty_registry(registry):
    assert await registry.list_owners() == []


@pytest.mark.asyncio
async def test_register_persists_sorted_owners(registry, tmp_path):
    await registry.register("did:plc:zed")
    await registry.register("did:plc:amy")

    data = json.loads((tmp_path / "feed" / "registry.json").read_text())

    assert data["owners"] == ["did:plc:amy", "did:plc:zed"]
    assert data["updated_at"] == FIXED.isoformat()
    assert not (tmp_path / "feed" / "registry.json.tmp").exists()


@pytest.mark.asyncio
async def test_register_is_idempotent(registry):
    await registry.register("did:plc:amy")
    await registry.register("did:plc:amy")

    assert await registry.list_owners() == ["did:plc:amy"]


@pytest.mark.asyncio
async def test_owners_survive_new_instance(registry, tmp_path):
    await registry.register("did:web:example.com")

    reopened = FileFeedRegistry(work_dir=tmp_path)

    assert await reopened.list_owners() == ["did:web:example.com"]


@pytest.mark.asyncio
async def test_unregister(registry):
    await registry.register("did:plc:amy")
    await registry.register("did:plc:zed")

    await registry.unregister("did:plc:amy")
    await registry.unregister("did:plc:nobody")

    assert await registry.list_owners() == ["did:plc:zed"]


@pytest.mark.asyncio
@pytest.mark.parametrize("did", ["", "alice.test", "did:", "plc:abc"])
async def test_register_rejects_invalid_did(registry, did):
    with pytest.raises(ValueError):
        await registry.register(did)

    assert await registry.list_owners() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["{not json", "[]", '{"owners": "did:plc:amy"}'])
async def test_corrupt_file_is_kept_aside(registry, tmp_path, content):
    feed_dir = tmp_path / "feed"
    feed_dir.mkdir()
    (feed_dir / "registry.json").write_text(content)
    backup = feed_dir / "registry.json.corrupt-20240601T120000"

    assert await registry.list_owners() == []
    assert backup.read_text() == content

    await registry.register("did:plc:amy")

    assert await registry.list_owners() == ["did:plc:amy"]
    assert backup.read_text() == content
