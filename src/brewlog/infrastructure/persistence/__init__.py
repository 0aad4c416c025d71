"""Repository-backed persistence: the record store and reference resolution."""

from brewlog.infrastructure.persistence.record_store import RecordStore, gather_fail_fast
from brewlog.infrastructure.persistence.reference_resolver import (
    ReferencePolicy,
    ReferenceResolver,
)

__all__ = ["RecordStore", "ReferencePolicy", "ReferenceResolver", "gather_fail_fast"]
