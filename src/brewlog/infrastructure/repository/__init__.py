"""HTTP adapters for personal data server repositories."""

from brewlog.infrastructure.repository.public_client import (
    PublicRepositoryClient,
    SSRFBlockedError,
)
from brewlog.infrastructure.repository.xrpc_client import XrpcRepositoryClient

__all__ = ["PublicRepositoryClient", "SSRFBlockedError", "XrpcRepositoryClient"]
