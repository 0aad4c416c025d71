"""
Configuration Schema Validation

Pydantic model for the store, cache and public-client settings.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BrewlogSettings(BaseModel):
    """
    Runtime settings for brewlog.

    The cache TTL balances multi-device freshness against repository
    request load; entries older than ``cache_ttl_seconds *
    cache_cleanup_multiplier`` are dropped by the background sweep.
    """

    model_config = ConfigDict(extra="forbid")

    cache_ttl_seconds: float = Field(
        120.0,
        gt=0,
        description="How long a cached collection stays valid",
    )
    cache_cleanup_multiplier: float = Field(
        2.0,
        ge=1,
        description="Entries older than TTL times this are swept",
    )
    cache_cleanup_interval_seconds: float = Field(
        60.0,
        gt=0,
        description="Interval between background cache sweeps",
    )
    public_api_url: str = Field(
        "https://public.api.bsky.app",
        description="Public AppView used for profiles and handle resolution",
    )
    plc_directory_url: str = Field(
        "https://plc.directory",
        description="PLC directory used to resolve did:plc identities",
    )
    http_timeout_seconds: float = Field(30.0, gt=0)
    list_page_size: int = Field(100, ge=1, le=100)
    feed_brews_per_user: int = Field(10, ge=1, le=100)
    feed_lookup_limit: int = Field(100, ge=1, le=100)
    work_dir: str = Field(
        ".brewlog",
        description="Directory for local state such as the feed registry",
    )

    @field_validator("public_api_url", "plc_directory_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Normalize base URLs so paths can be appended."""
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://: {value}")
        return value.rstrip("/")
