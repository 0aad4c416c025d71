"""
Record codec.

Bidirectional mapping between domain entities and the repository's generic
record format (a string-keyed map of JSON values). This module is the only
place that inspects raw record maps; everything else works with entities.

Encoding rules:
- Every record carries ``$type`` (the collection NSID) and ``createdAt``
  (RFC3339, second precision).
- Optional fields with a zero/empty value are omitted entirely.
- Brew temperature is stored as integer tenths of a degree (93.5 -> 935).
- Pours are an ordered array of ``{waterAmount, timeSeconds}`` objects;
  decoding numbers them 1..N by position.
- Reference fields hold locators the caller has already built; the codec
  never builds locators itself.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import Any

from brewlog.core.domain.errors import (
    InvalidTimestampError,
    MissingReferenceError,
    MissingRequiredFieldError,
    RecordDecodeError,
)
from brewlog.core.domain.locator import (
    NSID_BEAN,
    NSID_BREW,
    NSID_BREWER,
    NSID_GRINDER,
    NSID_ROASTER,
    CollectionKind,
    resolve_locator,
)
from brewlog.core.domain.models import Bean, Brew, Brewer, Grinder, Pour, Roaster
from brewlog.core.utils.time import format_rfc3339, parse_rfc3339

Record = dict[str, Any]


# ========== Field helpers ==========


def _check_record(record: Any, collection: str) -> Record:
    if not isinstance(record, dict):
        raise RecordDecodeError(
            f"{collection} record must be an object, got {type(record).__name__}",
            details={"collection": collection},
        )
    return record


def _required_str(record: Record, key: str, collection: str) -> str:
    value = record.get(key)
    if not isinstance(value, str) or not value:
        raise MissingRequiredFieldError(key, collection)
    return value


def _optional_str(record: Record, key: str) -> str:
    value = record.get(key)
    return value if isinstance(value, str) else ""


def _optional_number(record: Record, key: str) -> float | None:
    value = record.get(key)
    # bool is an int subclass; a JSON true is not a number here.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _optional_int(record: Record, key: str) -> int:
    value = _optional_number(record, key)
    return int(value) if value is not None else 0


def _created_at(record: Record, collection: str):
    value = record.get("createdAt")
    if value is None:
        raise MissingRequiredFieldError("createdAt", collection)
    if not isinstance(value, str):
        raise InvalidTimestampError("createdAt", value)
    try:
        return parse_rfc3339(value)
    except ValueError as exc:
        raise InvalidTimestampError("createdAt", value) from exc


def _own_rkey(locator: str) -> str:
    if not locator:
        return ""
    return resolve_locator(locator).record_key


def _put_if(record: Record, key: str, value: Any) -> None:
    if value:
        record[key] = value


def encode_temperature(temperature: float) -> int:
    """Encode degrees as integer tenths, truncating extra precision.

    The value goes through its decimal string form so binary float drift
    (``57.3 * 10 == 572.9999...``) cannot lose a tenth.
    """
    return int(Decimal(repr(float(temperature))) * 10)


def decode_temperature(tenths: float) -> float:
    """Decode integer tenths back to degrees."""
    return tenths / 10.0


# ========== Roaster ==========


def roaster_to_record(roaster: Roaster) -> Record:
    """Convert a Roaster to a repository record."""
    record: Record = {
        "$type": NSID_ROASTER,
        "name": roaster.name,
        "createdAt": format_rfc3339(roaster.created_at),
    }
    _put_if(record, "location", roaster.location)
    _put_if(record, "website", roaster.website)
    return record


def record_to_roaster(record: Any, locator: str = "") -> Roaster:
    """Convert a repository record to a Roaster."""
    record = _check_record(record, NSID_ROASTER)
    return Roaster(
        name=_required_str(record, "name", NSID_ROASTER),
        location=_optional_str(record, "location"),
        website=_optional_str(record, "website"),
        rkey=_own_rkey(locator),
        locator=locator,
        created_at=_created_at(record, NSID_ROASTER),
    )


# ========== Grinder ==========


def grinder_to_record(grinder: Grinder) -> Record:
    """Convert a Grinder to a repository record."""
    record: Record = {
        "$type": NSID_GRINDER,
        "name": grinder.name,
        "createdAt": format_rfc3339(grinder.created_at),
    }
    _put_if(record, "grinderType", grinder.grinder_type)
    _put_if(record, "burrType", grinder.burr_type)
    _put_if(record, "notes", grinder.notes)
    return record


def record_to_grinder(record: Any, locator: str = "") -> Grinder:
    """Convert a repository record to a Grinder."""
    record = _check_record(record, NSID_GRINDER)
    return Grinder(
        name=_required_str(record, "name", NSID_GRINDER),
        grinder_type=_optional_str(record, "grinderType"),
        burr_type=_optional_str(record, "burrType"),
        notes=_optional_str(record, "notes"),
        rkey=_own_rkey(locator),
        locator=locator,
        created_at=_created_at(record, NSID_GRINDER),
    )


# ========== Brewer ==========


def brewer_to_record(brewer: Brewer) -> Record:
    """Convert a Brewer to a repository record."""
    record: Record = {
        "$type": NSID_BREWER,
        "name": brewer.name,
        "createdAt": format_rfc3339(brewer.created_at),
    }
    _put_if(record, "description", brewer.description)
    return record


def record_to_brewer(record: Any, locator: str = "") -> Brewer:
    """Convert a repository record to a Brewer."""
    record = _check_record(record, NSID_BREWER)
    return Brewer(
        name=_required_str(record, "name", NSID_BREWER),
        description=_optional_str(record, "description"),
        rkey=_own_rkey(locator),
        locator=locator,
        created_at=_created_at(record, NSID_BREWER),
    )


# ========== Bean ==========


def bean_to_record(bean: Bean, roaster_ref: str = "") -> Record:
    """Convert a Bean to a repository record.

    Args:
        bean: Bean to encode
        roaster_ref: Full locator of the bean's roaster, or ``""``
    """
    record: Record = {
        "$type": NSID_BEAN,
        "name": bean.name,
        "createdAt": format_rfc3339(bean.created_at),
    }
    _put_if(record, "origin", bean.origin)
    _put_if(record, "roastLevel", bean.roast_level)
    _put_if(record, "process", bean.process)
    _put_if(record, "description", bean.description)
    _put_if(record, "roasterRef", roaster_ref)
    return record


def record_to_bean(record: Any, locator: str = "") -> Bean:
    """Convert a repository record to a Bean.

    The roaster reference is kept as a locator; resolving it is the
    reference resolver's job.
    """
    record = _check_record(record, NSID_BEAN)
    return Bean(
        name=_required_str(record, "name", NSID_BEAN),
        origin=_optional_str(record, "origin"),
        roast_level=_optional_str(record, "roastLevel"),
        process=_optional_str(record, "process"),
        description=_optional_str(record, "description"),
        roaster_ref=_optional_str(record, "roasterRef"),
        rkey=_own_rkey(locator),
        locator=locator,
        created_at=_created_at(record, NSID_BEAN),
    )


# ========== Brew ==========


def brew_to_record(
    brew: Brew,
    bean_ref: str,
    grinder_ref: str = "",
    brewer_ref: str = "",
) -> Record:
    """Convert a Brew to a repository record.

    Args:
        brew: Brew to encode
        bean_ref: Full locator of the brewed bean (required)
        grinder_ref: Full locator of the grinder, or ``""``
        brewer_ref: Full locator of the brewer, or ``""``

    Raises:
        MissingReferenceError: If ``bean_ref`` is empty.
    """
    if not bean_ref:
        raise MissingReferenceError("beanRef")

    record: Record = {
        "$type": NSID_BREW,
        "beanRef": bean_ref,
        "createdAt": format_rfc3339(brew.created_at),
    }
    _put_if(record, "method", brew.method)
    tenths = encode_temperature(brew.temperature)
    if tenths > 0:
        record["temperature"] = tenths
    if brew.water_amount > 0:
        record["waterAmount"] = brew.water_amount
    if brew.coffee_amount > 0:
        record["coffeeAmount"] = brew.coffee_amount
    if brew.time_seconds > 0:
        record["timeSeconds"] = brew.time_seconds
    _put_if(record, "grindSize", brew.grind_size)
    _put_if(record, "grinderRef", grinder_ref)
    _put_if(record, "brewerRef", brewer_ref)
    _put_if(record, "tastingNotes", brew.tasting_notes)
    if brew.rating > 0:
        record["rating"] = brew.rating
    if brew.pours:
        record["pours"] = [
            {"waterAmount": pour.water_amount, "timeSeconds": pour.time_seconds}
            for pour in brew.pours
        ]
    return record


def _decode_pours(raw: Any) -> list[Pour]:
    if not isinstance(raw, list):
        return []
    pours: list[Pour] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        pours.append(
            Pour(
                water_amount=_optional_int(item, "waterAmount"),
                time_seconds=_optional_int(item, "timeSeconds"),
                pour_number=len(pours) + 1,
            )
        )
    return pours


def record_to_brew(record: Any, locator: str = "") -> Brew:
    """Convert a repository record to a Brew.

    Reference fields are kept as locators; the bean, grinder and brewer
    objects are filled in by the reference resolver.
    """
    record = _check_record(record, NSID_BREW)
    bean_ref = _required_str(record, "beanRef", NSID_BREW)
    temperature = _optional_number(record, "temperature")
    return Brew(
        bean_ref=bean_ref,
        method=_optional_str(record, "method"),
        temperature=decode_temperature(temperature) if temperature is not None else 0.0,
        water_amount=_optional_int(record, "waterAmount"),
        coffee_amount=_optional_int(record, "coffeeAmount"),
        time_seconds=_optional_int(record, "timeSeconds"),
        grind_size=_optional_str(record, "grindSize"),
        grinder_ref=_optional_str(record, "grinderRef"),
        brewer_ref=_optional_str(record, "brewerRef"),
        tasting_notes=_optional_str(record, "tastingNotes"),
        rating=_optional_int(record, "rating"),
        pours=_decode_pours(record.get("pours")),
        rkey=_own_rkey(locator),
        locator=locator,
        created_at=_created_at(record, NSID_BREW),
    )


# ========== Dispatch ==========

Decoder = Callable[[Any, str], Any]

RECORD_DECODERS: dict[CollectionKind, Decoder] = {
    CollectionKind.BEANS: record_to_bean,
    CollectionKind.ROASTERS: record_to_roaster,
    CollectionKind.GRINDERS: record_to_grinder,
    CollectionKind.BREWERS: record_to_brewer,
    CollectionKind.BREWS: record_to_brew,
}


def decode_record(kind: CollectionKind, record: Any, locator: str = "") -> Any:
    """Decode a record of the given collection kind."""
    return RECORD_DECODERS[kind](record, locator)
