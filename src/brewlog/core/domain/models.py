"""
Domain entities for the brewing journal.

Entities are plain dataclasses. Cross-entity references are held as
locator strings (``roaster_ref``, ``bean_ref`` ...); the resolved objects
(``roaster``, ``bean`` ...) are joined data for display and are never
written back to the repository.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from brewlog.core.domain.locator import record_key_of
from brewlog.core.utils.time import utc_now


@dataclass
class Roaster:
    """A coffee roaster."""

    name: str
    location: str = ""
    website: str = ""
    rkey: str = ""
    locator: str = ""
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class Grinder:
    """A coffee grinder."""

    name: str
    grinder_type: str = ""  # Hand, Electric, Portable Electric
    burr_type: str = ""  # Conical, Flat, Blade, or empty
    notes: str = ""
    rkey: str = ""
    locator: str = ""
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class Brewer:
    """A brewing device (V60, AeroPress, espresso machine ...)."""

    name: str
    description: str = ""
    rkey: str = ""
    locator: str = ""
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class Bean:
    """A coffee bean, optionally linked to its roaster."""

    name: str
    origin: str = ""
    roast_level: str = ""
    process: str = ""
    description: str = ""
    roaster_ref: str = ""
    rkey: str = ""
    locator: str = ""
    created_at: datetime = field(default_factory=utc_now)

    # Joined data for display
    roaster: Roaster | None = None

    @property
    def roaster_rkey(self) -> str:
        """Record key of the referenced roaster, if any."""
        return record_key_of(self.roaster_ref)


@dataclass
class Pour:
    """One pour within a brew. Only exists embedded in a Brew."""

    water_amount: int = 0
    time_seconds: int = 0
    pour_number: int = 0


@dataclass
class Brew:
    """A single brew session."""

    bean_ref: str = ""
    method: str = ""
    temperature: float = 0.0
    water_amount: int = 0
    coffee_amount: int = 0
    time_seconds: int = 0
    grind_size: str = ""
    grinder_ref: str = ""
    brewer_ref: str = ""
    tasting_notes: str = ""
    rating: int = 0
    pours: list[Pour] = field(default_factory=list)
    rkey: str = ""
    locator: str = ""
    created_at: datetime = field(default_factory=utc_now)

    # Joined data for display
    bean: Bean | None = None
    grinder: Grinder | None = None
    brewer: Brewer | None = None

    @property
    def bean_rkey(self) -> str:
        return record_key_of(self.bean_ref)

    @property
    def grinder_rkey(self) -> str:
        return record_key_of(self.grinder_ref)

    @property
    def brewer_rkey(self) -> str:
        return record_key_of(self.brewer_ref)


@dataclass(frozen=True)
class Session:
    """Authenticated scope under which repository calls are issued.

    Lifetime is owned by the authentication layer; the store treats the
    pair as an opaque credential.
    """

    owner_id: str
    session_id: str


@dataclass(frozen=True)
class Profile:
    """A user's public profile."""

    did: str
    handle: str
    display_name: str | None = None
    avatar: str | None = None
