"""
Public Repository Client

Unauthenticated, read-only access to any user's public records, used for
the community feed and profile views.

Reads go straight to the owner's PDS, so every call first resolves the
owner DID to a PDS endpoint:

- ``did:plc:*`` through the PLC directory's DID document
- ``did:web:*`` from the domain itself, after an SSRF check that refuses
  loopback, private, link-local and cloud metadata addresses

Resolved endpoints are cached for the lifetime of the client.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from brewlog.core.domain.errors import RepositoryError
from brewlog.core.domain.locator import build_locator
from brewlog.core.domain.models import Profile
from brewlog.core.interfaces.repository import ListRecordsPage, RecordEntry
from brewlog.infrastructure.repository.xrpc_client import (
    DEFAULT_TIMEOUT_SECONDS,
    MAX_PAGE_SIZE,
    XRPC_GET_RECORD,
    XRPC_LIST_RECORDS,
    check_xrpc_response,
    parse_json,
    parse_list_page,
    xrpc_url,
)

logger = structlog.get_logger(__name__)

PUBLIC_API_URL = "https://public.api.bsky.app"
PLC_DIRECTORY_URL = "https://plc.directory"

XRPC_RESOLVE_HANDLE = "com.atproto.identity.resolveHandle"
XRPC_GET_PROFILE = "app.bsky.actor.getProfile"

_PDS_SERVICE_ID = "#atproto_pds"
_PDS_SERVICE_TYPE = "AtprotoPersonalDataServer"
_METADATA_ADDRESS = ipaddress.ip_address("169.254.169.254")

HostResolver = Callable[[str], Awaitable[list[str]]]


def is_private_address(address: str) -> bool:
    """Check whether an IP address points into a non-public range."""
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return (
        ip.is_loopback
        or ip.is_link_local
        or ip.is_private
        or ip.is_unspecified
        or ip == _METADATA_ADDRESS
    )


async def _resolve_host(host: str) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


class SSRFBlockedError(RepositoryError):
    """A did:web domain resolves to an internal address."""

    def __init__(self, domain: str) -> None:
        super().__init__(
            f"Refusing to contact internal address for {domain}",
            operation="resolvePds",
            code="ssrf_blocked",
            details={"domain": domain},
        )


class PublicRepositoryClient:
    """
    Read-only client for public profiles and records.

    Args:
        http_client: Shared AsyncClient; created lazily if omitted
        public_api_url: AppView for profiles and handle resolution
        plc_directory_url: PLC directory for did:plc resolution
        timeout_seconds: Request timeout for the lazily created client
        host_resolver: Async hostname lookup used by the SSRF check
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        public_api_url: str = PUBLIC_API_URL,
        plc_directory_url: str = PLC_DIRECTORY_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        host_resolver: HostResolver | None = None,
    ):
        self._client = http_client
        self._public_api_url = public_api_url.rstrip("/")
        self._plc_directory_url = plc_directory_url.rstrip("/")
        self._timeout = timeout_seconds
        self._resolve_host = host_resolver or _resolve_host
        self._pds_cache: dict[str, str] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def close(self) -> None:
        """Close HTTP client connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None,
        *,
        operation: str,
        collection: str | None = None,
        locator: str | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._get_client().get(url, params=params)
        except httpx.HTTPError as exc:
            raise RepositoryError(
                f"{operation} request failed: {exc}",
                operation=operation,
                collection=collection,
                locator=locator,
            ) from exc
        check_xrpc_response(
            response, operation=operation, collection=collection, locator=locator
        )
        return parse_json(response, operation=operation)

    async def _validate_domain(self, host: str) -> None:
        if host == "localhost" or host.endswith(".local"):
            raise SSRFBlockedError(host)
        if is_private_address(host):
            raise SSRFBlockedError(host)
        try:
            addresses = await self._resolve_host(host)
        except OSError:
            # Unresolvable hosts fail later at request time.
            return
        if any(is_private_address(address) for address in addresses):
            raise SSRFBlockedError(host)

    async def get_pds_endpoint(self, did: str) -> str:
        """
        Resolve a DID to its PDS base URL.

        Raises:
            SSRFBlockedError: If a did:web domain points at an internal address
            RepositoryError: If the DID cannot be resolved to a PDS
        """
        cached = self._pds_cache.get(did)
        if cached is not None:
            return cached

        endpoint = ""
        if did.startswith("did:plc:"):
            document = await self._get(
                f"{self._plc_directory_url}/{did}", None, operation="resolveDid"
            )
            for service in document.get("service") or []:
                if not isinstance(service, dict):
                    continue
                if service.get("id") == _PDS_SERVICE_ID or service.get("type") == _PDS_SERVICE_TYPE:
                    endpoint = service.get("serviceEndpoint") or ""
                    break
        elif did.startswith("did:web:"):
            domain = did[len("did:web:"):].replace("%3A", ":").split("/", 1)[0]
            host = domain.rsplit(":", 1)[0] if domain.count(":") == 1 else domain
            await self._validate_domain(host)
            endpoint = f"https://{domain}"

        if not endpoint:
            raise RepositoryError(
                f"Could not resolve PDS endpoint for {did}",
                operation="resolvePds",
                details={"did": did},
            )

        endpoint = endpoint.rstrip("/")
        self._pds_cache[did] = endpoint
        logger.debug("public_client.pds_resolved", did=did, endpoint=endpoint)
        return endpoint

    async def resolve_handle(self, handle: str) -> str:
        """Resolve a handle to its DID."""
        body = await self._get(
            xrpc_url(self._public_api_url, XRPC_RESOLVE_HANDLE),
            {"handle": handle},
            operation="resolveHandle",
        )
        did = body.get("did")
        if not isinstance(did, str) or not did:
            raise RepositoryError(
                f"resolveHandle returned no DID for {handle}",
                operation="resolveHandle",
            )
        return did

    async def get_profile(self, actor: str) -> Profile:
        """Fetch a public profile by DID or handle."""
        body = await self._get(
            xrpc_url(self._public_api_url, XRPC_GET_PROFILE),
            {"actor": actor},
            operation="getProfile",
        )
        return Profile(
            did=body.get("did", ""),
            handle=body.get("handle", ""),
            display_name=body.get("displayName"),
            avatar=body.get("avatar"),
        )

    async def list_records(
        self,
        did: str,
        collection: str,
        limit: int = MAX_PAGE_SIZE,
        reverse: bool = True,
    ) -> ListRecordsPage:
        """List a user's public records; newest first unless ``reverse`` is False."""
        pds = await self.get_pds_endpoint(did)
        body = await self._get(
            xrpc_url(pds, XRPC_LIST_RECORDS),
            {
                "repo": did,
                "collection": collection,
                "limit": min(limit, MAX_PAGE_SIZE),
                "reverse": "true" if reverse else "false",
            },
            operation="listRecords",
            collection=collection,
        )
        return parse_list_page(body)

    async def get_record(self, did: str, collection: str, rkey: str) -> RecordEntry:
        """Fetch a single public record."""
        pds = await self.get_pds_endpoint(did)
        locator = build_locator(did, collection, rkey)
        body = await self._get(
            xrpc_url(pds, XRPC_GET_RECORD),
            {"repo": did, "collection": collection, "rkey": rkey},
            operation="getRecord",
            collection=collection,
            locator=locator,
        )
        return RecordEntry(
            uri=body.get("uri", locator), value=body.get("value"), cid=body.get("cid", "")
        )
