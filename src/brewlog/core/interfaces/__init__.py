"""
Core Protocol Interfaces

Contracts for the external collaborators of the brewlog store: the record
repository (authenticated and public), credential lookup, the feed registry
and the store itself.

Usage:
    from brewlog.core.interfaces import RepositoryClientProtocol, StoreProtocol
"""

from brewlog.core.interfaces.feed import FeedRegistryProtocol
from brewlog.core.interfaces.repository import (
    CredentialsProviderProtocol,
    ListRecordsPage,
    PublicRepositoryProtocol,
    RecordEntry,
    RepositoryClientProtocol,
    SessionCredentials,
)
from brewlog.core.interfaces.store import StoreProtocol, StoreSnapshot

__all__ = [
    "CredentialsProviderProtocol",
    "FeedRegistryProtocol",
    "ListRecordsPage",
    "PublicRepositoryProtocol",
    "RecordEntry",
    "RepositoryClientProtocol",
    "SessionCredentials",
    "StoreProtocol",
    "StoreSnapshot",
]
