"""Tests for the brewlog CLI.

Feed commands run against a temporary work directory; the public client is
replaced with the in-memory fake so no network calls are made.
"""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from brewlog import __version__
from brewlog.api.cli.commands import feed as feed_commands
from brewlog.api.cli.commands import profile as profile_commands
from brewlog.api.cli.main import app
from brewlog.application.factory import StoreFactory
from brewlog.core.domain.locator import NSID_BEAN, NSID_BREW, NSID_ROASTER

runner = CliRunner()

DID = "did:plc:alice123"
CREATED = "2024-03-01T08:30:15Z"


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "brewlog.yaml"
    path.write_text(f"work_dir: {tmp_path / 'state'}\n")
    return path


@pytest.fixture
def fake_factory(monkeypatch, public_client):
    """Route CLI-built factories to the fake public client."""

    def build(settings=None):
        return StoreFactory(settings=settings, public_client=public_client)

    monkeypatch.setattr(feed_commands, "StoreFactory", build)
    monkeypatch.setattr(profile_commands, "StoreFactory", build)
    return public_client


def _seed_alice(public_client):
    public_client.add_user(DID, "alice.test", "Alice")
    roaster = public_client.add_record(
        DID, NSID_ROASTER, "r1", {"name": "Onyx", "createdAt": CREATED}
    )
    bean = public_client.add_record(
        DID, NSID_BEAN, "b1", {"name": "Guji", "roasterRef": roaster, "createdAt": CREATED}
    )
    public_client.add_record(
        DID,
        NSID_BREW,
        "x1",
        {"beanRef": bean, "method": "Pour Over", "rating": 9, "createdAt": CREATED},
    )


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_invalid_config_exits(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("cache_ttl_seconds: -1\n")

    result = runner.invoke(app, ["--config", str(bad), "version"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


class TestLocatorCommand:
    """Tests for ``brewlog locator parse``."""

    def test_parse_full_locator(self):
        result = runner.invoke(app, ["locator", "parse", f"at://{DID}/{NSID_BEAN}/3kabc"])

        assert result.exit_code == 0
        assert DID in result.output
        assert NSID_BEAN in result.output
        assert "beans" in result.output
        assert "3kabc" in result.output

    def test_parse_malformed_locator(self):
        result = runner.invoke(app, ["locator", "parse", "https://example.com"])

        assert result.exit_code == 1


class TestFeedCommands:
    """Tests for ``brewlog feed``."""

    def test_register_and_list_owners(self, config_file):
        result = runner.invoke(app, ["--config", str(config_file), "feed", "register", DID])
        assert result.exit_code == 0

        result = runner.invoke(app, ["--config", str(config_file), "feed", "owners"])

        assert result.exit_code == 0
        assert DID in result.output

    def test_register_invalid_did(self, config_file):
        result = runner.invoke(
            app, ["--config", str(config_file), "feed", "register", "alice.test"]
        )

        assert result.exit_code == 1
        assert "Invalid DID" in result.output

    def test_unregister(self, config_file):
        runner.invoke(app, ["--config", str(config_file), "feed", "register", DID])

        result = runner.invoke(app, ["--config", str(config_file), "feed", "unregister", DID])
        owners = runner.invoke(app, ["--config", str(config_file), "feed", "owners"])

        assert result.exit_code == 0
        assert DID not in owners.output

    def test_show_empty_feed(self, config_file, fake_factory):
        result = runner.invoke(app, ["--config", str(config_file), "feed", "show"])

        assert result.exit_code == 0
        assert "No brews" in result.output

    def test_show_feed(self, config_file, fake_factory):
        _seed_alice(fake_factory)
        runner.invoke(app, ["--config", str(config_file), "feed", "register", DID])

        result = runner.invoke(app, ["--config", str(config_file), "feed", "show"])

        assert result.exit_code == 0
        assert "@alice.test" in result.output
        assert "Guji (Onyx)" in result.output
        assert "Pour Over" in result.output


class TestProfileCommand:
    """Tests for ``brewlog profile show``."""

    def test_show_profile(self, config_file, fake_factory):
        _seed_alice(fake_factory)

        result = runner.invoke(app, ["--config", str(config_file), "profile", "show", "alice.test"])

        assert result.exit_code == 0
        assert "Alice" in result.output
        assert "Guji" in result.output

    def test_unknown_profile(self, config_file, fake_factory):
        result = runner.invoke(
            app, ["--config", str(config_file), "profile", "show", "nobody.test"]
        )

        assert result.exit_code == 1
        assert "Could not load profile" in result.output
