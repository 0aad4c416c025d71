"""Domain-specific exception types for brewlog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class BrewlogError(Exception):
    """Base exception for brewlog domain errors."""

    message: str
    code: str = "brewlog_error"
    details: Dict[str, Any] | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.details is None:
            self.details = {}


class MalformedLocatorError(BrewlogError):
    """A locator string does not match the ``at://`` scheme."""

    def __init__(self, locator: str, reason: str) -> None:
        self.locator = locator
        self.reason = reason
        super().__init__(
            message=f"Malformed locator {locator!r}: {reason}",
            code="malformed_locator",
            details={"locator": locator, "reason": reason},
        )


class CollectionMismatchError(BrewlogError):
    """A locator names a different collection than the caller expected."""

    def __init__(self, locator: str, expected: str, actual: str) -> None:
        self.locator = locator
        self.expected = expected
        self.actual = actual
        super().__init__(
            message=f"Expected {expected} collection, got {actual!r}",
            code="collection_mismatch",
            details={"locator": locator, "expected": expected, "actual": actual},
        )


class RecordDecodeError(BrewlogError):
    """A repository record is structurally invalid for its entity type."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "record_decode_error",
        details: Dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class MissingRequiredFieldError(RecordDecodeError):
    """A required record field is absent or empty."""

    def __init__(self, field_name: str, collection: str | None = None) -> None:
        self.field_name = field_name
        self.collection = collection
        message = f"{field_name} is required"
        if collection:
            message = f"{collection} record: {field_name} is required"
        super().__init__(
            message,
            code="missing_required_field",
            details={"field": field_name, "collection": collection},
        )


class InvalidTimestampError(RecordDecodeError):
    """A timestamp field does not parse as RFC3339."""

    def __init__(self, field_name: str, value: Any) -> None:
        self.field_name = field_name
        self.value = value
        super().__init__(
            f"Invalid {field_name} format: {value!r}",
            code="invalid_timestamp",
            details={"field": field_name, "value": str(value)},
        )


class MissingReferenceError(BrewlogError):
    """A write was attempted without a required reference key."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(
            message=f"{reference} is required",
            code="missing_reference",
            details={"reference": reference},
        )


class ReferenceResolutionError(BrewlogError):
    """A required reference could not be fetched or decoded."""

    def __init__(self, reference: str, locator: str, reason: str) -> None:
        self.reference = reference
        self.locator = locator
        super().__init__(
            message=f"Failed to resolve {reference} reference {locator}: {reason}",
            code="reference_resolution_failed",
            details={"reference": reference, "locator": locator, "reason": reason},
        )


class RepositoryError(BrewlogError):
    """A remote repository operation failed.

    Carries the operation context (which call, which collection, which
    locator) so callers can report the failure without re-deriving it.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        collection: str | None = None,
        locator: str | None = None,
        status_code: int | None = None,
        code: str = "repository_error",
        details: Dict[str, Any] | None = None,
    ) -> None:
        error_details = dict(details or {})
        error_details.setdefault("operation", operation)
        if collection:
            error_details.setdefault("collection", collection)
        if locator:
            error_details.setdefault("locator", locator)
        if status_code is not None:
            error_details.setdefault("status_code", status_code)
        self.operation = operation
        self.collection = collection
        self.locator = locator
        self.status_code = status_code
        super().__init__(message=message, code=code, details=error_details)


class RecordNotFoundError(RepositoryError):
    """The requested record does not exist in the repository."""

    def __init__(
        self,
        *,
        operation: str,
        collection: str | None = None,
        locator: str | None = None,
    ) -> None:
        super().__init__(
            f"Record not found: {locator or collection or 'unknown'}",
            operation=operation,
            collection=collection,
            locator=locator,
            status_code=404,
            code="not_found",
        )


class ConfigError(BrewlogError):
    """Error raised for configuration failures."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="config_error", details=details)
