"""
Record locators (AT-URIs) and collection identifiers.

A locator addresses one record in a user's repository:

    at://<owner did>/<collection nsid>/<record key>

The serialized string is the only identifier the rest of the application
holds for an entity; there is no numeric primary key in this backend.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from brewlog.core.domain.errors import MalformedLocatorError

LOCATOR_SCHEME = "at://"

# Reversed-domain namespace shared by all brewlog collections.
NSID_BASE = "social.arabica.alpha"

NSID_BEAN = f"{NSID_BASE}.bean"
NSID_BREW = f"{NSID_BASE}.brew"
NSID_BREWER = f"{NSID_BASE}.brewer"
NSID_GRINDER = f"{NSID_BASE}.grinder"
NSID_ROASTER = f"{NSID_BASE}.roaster"

RECORD_KEY_MAX_LENGTH = 512

_RECORD_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:\-]*$")
_DID_PATTERN = re.compile(r"^did:[a-z]+:[A-Za-z0-9._:%\-]*[A-Za-z0-9._\-]$")
_HANDLE_PATTERN = re.compile(
    r"^([A-Za-z0-9]([A-Za-z0-9\-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z]([A-Za-z0-9\-]{0,61}[A-Za-z0-9])?$"
)
_NSID_PATTERN = re.compile(r"^[A-Za-z0-9\-]+(\.[A-Za-z0-9\-]+)+$")


class CollectionKind(str, Enum):
    """Entity collections stored in a user's repository."""

    BEANS = "beans"
    ROASTERS = "roasters"
    GRINDERS = "grinders"
    BREWERS = "brewers"
    BREWS = "brews"

    @property
    def nsid(self) -> str:
        """Collection NSID used on the wire."""
        return _KIND_TO_NSID[self]

    @classmethod
    def from_nsid(cls, nsid: str) -> "CollectionKind":
        """Look up the kind for a collection NSID.

        Raises:
            ValueError: If the NSID is not a brewlog collection.
        """
        for kind, value in _KIND_TO_NSID.items():
            if value == nsid:
                return kind
        raise ValueError(f"Unknown collection: {nsid}")


_KIND_TO_NSID = {
    CollectionKind.BEANS: NSID_BEAN,
    CollectionKind.ROASTERS: NSID_ROASTER,
    CollectionKind.GRINDERS: NSID_GRINDER,
    CollectionKind.BREWERS: NSID_BREWER,
    CollectionKind.BREWS: NSID_BREW,
}


@dataclass(frozen=True)
class Locator:
    """Parsed components of a record locator."""

    owner_id: str
    collection: str = ""
    record_key: str = ""

    def __str__(self) -> str:
        if not self.collection:
            return f"{LOCATOR_SCHEME}{self.owner_id}"
        return build_locator(self.owner_id, self.collection, self.record_key)


def build_locator(owner_id: str, collection: str, record_key: str) -> str:
    """Build a locator string. Inputs are not validated."""
    return f"{LOCATOR_SCHEME}{owner_id}/{collection}/{record_key}"


def validate_record_key(record_key: str) -> bool:
    """Check a record key against the repository's key grammar.

    Keys are 1-512 characters, start with a letter or digit, and otherwise
    contain only letters, digits, ``.``, ``_``, ``:`` and ``-``. The keys
    ``.`` and ``..`` are reserved.
    """
    if not record_key or len(record_key) > RECORD_KEY_MAX_LENGTH:
        return False
    if record_key in (".", ".."):
        return False
    return bool(_RECORD_KEY_PATTERN.match(record_key))


def _valid_authority(authority: str) -> bool:
    if authority.startswith("did:"):
        return bool(_DID_PATTERN.match(authority))
    return bool(_HANDLE_PATTERN.match(authority))


def resolve_locator(locator: str) -> Locator:
    """Parse a locator string into its components.

    A locator holding only an owner identity (``at://did:plc:abc``) is valid
    and resolves with an empty collection and record key.

    Raises:
        MalformedLocatorError: If the string does not match the scheme.
    """
    if not locator:
        raise MalformedLocatorError(locator, "empty locator")
    if not locator.startswith(LOCATOR_SCHEME):
        raise MalformedLocatorError(locator, f"expected {LOCATOR_SCHEME} prefix")
    if any(ch in locator for ch in "?# "):
        raise MalformedLocatorError(locator, "query, fragment or whitespace not allowed")

    path = locator[len(LOCATOR_SCHEME):]
    parts = path.split("/")
    authority = parts[0]
    if not authority:
        raise MalformedLocatorError(locator, "missing authority")
    if not _valid_authority(authority):
        raise MalformedLocatorError(locator, f"invalid authority {authority!r}")
    if len(parts) > 3:
        raise MalformedLocatorError(locator, "too many path segments")

    collection = parts[1] if len(parts) > 1 else ""
    record_key = parts[2] if len(parts) > 2 else ""

    if collection and not _NSID_PATTERN.match(collection):
        raise MalformedLocatorError(locator, f"invalid collection {collection!r}")
    if not collection and record_key:
        raise MalformedLocatorError(locator, "record key without collection")
    if record_key and not validate_record_key(record_key):
        raise MalformedLocatorError(locator, f"invalid record key {record_key!r}")

    return Locator(owner_id=authority, collection=collection, record_key=record_key)


def record_key_of(locator: str) -> str:
    """Return the record key of a locator, or ``""`` if it does not parse."""
    if not locator:
        return ""
    try:
        return resolve_locator(locator).record_key
    except MalformedLocatorError:
        return ""


def validate_did(did: str) -> bool:
    """Check that a string is a syntactically valid DID."""
    return bool(did) and bool(_DID_PATTERN.match(did))
