"""
Unit tests for the record codec.

Tests verify:
- Entity <-> record round trips
- Omission of empty optional fields
- Temperature tenths encoding
- Pour numbering
- Required field and timestamp validation
"""

from datetime import UTC, datetime

import pytest

from brewlog.core.domain.errors import (
    InvalidTimestampError,
    MalformedLocatorError,
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
    build_locator,
)
from brewlog.core.domain.models import Bean, Brew, Brewer, Grinder, Pour, Roaster
from brewlog.core.domain.records import (
    bean_to_record,
    brew_to_record,
    brewer_to_record,
    decode_record,
    decode_temperature,
    encode_temperature,
    grinder_to_record,
    record_to_bean,
    record_to_brew,
    record_to_brewer,
    record_to_grinder,
    record_to_roaster,
    roaster_to_record,
)

DID = "did:plc:alice123"
CREATED = datetime(2024, 3, 1, 8, 30, 15, tzinfo=UTC)
BEAN_REF = build_locator(DID, NSID_BEAN, "bean1")
ROASTER_REF = build_locator(DID, NSID_ROASTER, "roaster1")
GRINDER_REF = build_locator(DID, NSID_GRINDER, "grinder1")
BREWER_REF = build_locator(DID, NSID_BREWER, "brewer1")


class TestRoundTrips:
    """Encoding then decoding yields an equal entity."""

    def test_roaster(self):
        roaster = Roaster(
            name="Onyx", location="Arkansas", website="https://onyx.coffee", created_at=CREATED
        )
        locator = build_locator(DID, NSID_ROASTER, "r1")

        decoded = record_to_roaster(roaster_to_record(roaster), locator)

        assert decoded.name == "Onyx"
        assert decoded.location == "Arkansas"
        assert decoded.website == "https://onyx.coffee"
        assert decoded.created_at == CREATED
        assert decoded.rkey == "r1"
        assert decoded.locator == locator

    def test_grinder(self):
        grinder = Grinder(
            name="Comandante", grinder_type="Hand", burr_type="Conical", notes="C40",
            created_at=CREATED,
        )

        decoded = record_to_grinder(grinder_to_record(grinder))

        assert (decoded.name, decoded.grinder_type, decoded.burr_type, decoded.notes) == (
            "Comandante", "Hand", "Conical", "C40",
        )

    def test_brewer(self):
        brewer = Brewer(name="V60", description="Plastic 02", created_at=CREATED)

        decoded = record_to_brewer(brewer_to_record(brewer))

        assert decoded.name == "V60"
        assert decoded.description == "Plastic 02"

    def test_bean_keeps_roaster_reference(self):
        bean = Bean(
            name="Ethiopia Guji", origin="Ethiopia", roast_level="Light", process="Washed",
            description="Floral", created_at=CREATED,
        )

        record = bean_to_record(bean, ROASTER_REF)
        decoded = record_to_bean(record, BEAN_REF)

        assert record["roasterRef"] == ROASTER_REF
        assert decoded.roaster_ref == ROASTER_REF
        assert decoded.roaster_rkey == "roaster1"
        assert decoded.roaster is None
        assert decoded.origin == "Ethiopia"

    def test_brew_with_all_fields(self):
        brew = Brew(
            method="Pour Over", temperature=93.5, water_amount=250, coffee_amount=15,
            time_seconds=180, grind_size="Medium-Fine", tasting_notes="Bright",
            rating=8, pours=[Pour(50, 30), Pour(100, 60)], created_at=CREATED,
        )

        record = brew_to_record(brew, BEAN_REF, GRINDER_REF, BREWER_REF)
        decoded = record_to_brew(record, build_locator(DID, NSID_BREW, "b1"))

        assert record["temperature"] == 935
        assert decoded.temperature == 93.5
        assert decoded.bean_ref == BEAN_REF
        assert decoded.grinder_rkey == "grinder1"
        assert decoded.brewer_rkey == "brewer1"
        assert decoded.water_amount == 250
        assert decoded.coffee_amount == 15
        assert decoded.time_seconds == 180
        assert decoded.rating == 8
        assert [(p.water_amount, p.time_seconds, p.pour_number) for p in decoded.pours] == [
            (50, 30, 1),
            (100, 60, 2),
        ]


class TestEncoding:
    """Wire format details."""

    def test_type_and_created_at(self):
        record = roaster_to_record(Roaster(name="Onyx", created_at=CREATED))

        assert record["$type"] == NSID_ROASTER
        assert record["createdAt"] == "2024-03-01T08:30:15Z"

    def test_empty_optionals_are_omitted(self):
        record = bean_to_record(Bean(name="Mystery", created_at=CREATED))

        assert set(record) == {"$type", "name", "createdAt"}

    def test_brew_zero_values_are_omitted(self):
        record = brew_to_record(Brew(created_at=CREATED), BEAN_REF)

        assert set(record) == {"$type", "beanRef", "createdAt"}

    def test_brew_without_bean_reference(self):
        with pytest.raises(MissingReferenceError) as exc_info:
            brew_to_record(Brew(), "")

        assert exc_info.value.reference == "beanRef"

    @pytest.mark.parametrize(
        "degrees,tenths",
        [(93.5, 935), (93.53, 935), (93.59, 935), (57.3, 573), (100.0, 1000), (0.1, 1)],
    )
    def test_temperature_truncates_to_tenths(self, degrees, tenths):
        assert encode_temperature(degrees) == tenths

    def test_temperature_decode(self):
        assert decode_temperature(935) == 93.5

    @pytest.mark.parametrize("degrees", [0.0, 0.05, 0.099])
    def test_temperature_below_a_tenth_is_omitted(self, degrees):
        record = brew_to_record(Brew(temperature=degrees, created_at=CREATED), BEAN_REF)

        assert "temperature" not in record

    def test_pours_encode_without_numbers(self):
        brew = Brew(pours=[Pour(50, 30, pour_number=7)], created_at=CREATED)

        record = brew_to_record(brew, BEAN_REF)

        assert record["pours"] == [{"waterAmount": 50, "timeSeconds": 30}]


class TestDecoding:
    """Validation on the way in."""

    def test_missing_required_name(self):
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            record_to_roaster({"$type": NSID_ROASTER, "createdAt": "2024-03-01T08:30:15Z"})

        assert exc_info.value.field_name == "name"

    def test_missing_bean_ref(self):
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            record_to_brew({"$type": NSID_BREW, "createdAt": "2024-03-01T08:30:15Z"})

        assert exc_info.value.field_name == "beanRef"

    def test_missing_created_at(self):
        with pytest.raises(MissingRequiredFieldError):
            record_to_brewer({"name": "V60"})

    @pytest.mark.parametrize("value", ["yesterday", "2024-03-01", "2024-03-01T08:30:15", 12345])
    def test_invalid_timestamp(self, value):
        with pytest.raises(InvalidTimestampError):
            record_to_brewer({"name": "V60", "createdAt": value})

    def test_offset_timestamp_is_accepted(self):
        brewer = record_to_brewer({"name": "V60", "createdAt": "2024-03-01T10:30:15+02:00"})

        assert brewer.created_at == CREATED

    def test_non_object_record(self):
        with pytest.raises(RecordDecodeError):
            record_to_bean(["not", "a", "map"])

    def test_stored_pour_numbers_are_ignored(self):
        record = {
            "beanRef": BEAN_REF,
            "createdAt": "2024-03-01T08:30:15Z",
            "pours": [
                {"waterAmount": 40, "timeSeconds": 0, "pourNumber": 9},
                "junk",
                {"waterAmount": 60, "timeSeconds": 45},
            ],
        }

        pours = record_to_brew(record).pours

        assert [(p.water_amount, p.pour_number) for p in pours] == [(40, 1), (60, 2)]

    def test_wrong_typed_optionals_are_ignored(self):
        record = {
            "beanRef": BEAN_REF,
            "createdAt": "2024-03-01T08:30:15Z",
            "rating": True,
            "method": 42,
        }

        brew = record_to_brew(record)

        assert brew.rating == 0
        assert brew.method == ""

    def test_malformed_own_locator(self):
        with pytest.raises(MalformedLocatorError):
            record_to_brewer({"name": "V60", "createdAt": "2024-03-01T08:30:15Z"}, "bogus")

    def test_decode_record_dispatch(self):
        record = {"name": "V60", "createdAt": "2024-03-01T08:30:15Z"}

        assert isinstance(decode_record(CollectionKind.BREWERS, record), Brewer)
