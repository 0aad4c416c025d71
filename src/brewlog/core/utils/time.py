"""Shared UTC time helpers.

Provides ``utc_now`` plus the RFC3339 helpers used by the record codec, so
every module formats and parses ``createdAt`` the same way.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC timestamp."""
    return datetime.now(UTC)


def format_rfc3339(value: datetime) -> str:
    """Format a timestamp as RFC3339 with second precision.

    Naive datetimes are assumed to be UTC. UTC offsets are rendered as ``Z``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    text = value.replace(microsecond=0).isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_rfc3339(text: str) -> datetime:
    """Parse an RFC3339 timestamp.

    Raises:
        ValueError: If the string is not a full date-time with an offset.
    """
    if "T" not in text and "t" not in text:
        raise ValueError(f"not an RFC3339 date-time: {text!r}")
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"RFC3339 timestamp without offset: {text!r}")
    return parsed
