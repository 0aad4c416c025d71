"""
XRPC Repository Client

httpx implementation of ``RepositoryClientProtocol`` against a personal
data server's ``com.atproto.repo.*`` endpoints.

Credentials come from a ``CredentialsProviderProtocol`` (the OAuth layer),
which maps a session to the PDS base URL and an access token. No retry or
backoff happens here; a failed call surfaces as ``RepositoryError``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from brewlog.core.domain.errors import RecordNotFoundError, RepositoryError
from brewlog.core.domain.locator import build_locator
from brewlog.core.domain.models import Session
from brewlog.core.interfaces.repository import (
    CredentialsProviderProtocol,
    ListRecordsPage,
    RecordEntry,
)

logger = structlog.get_logger(__name__)

XRPC_CREATE_RECORD = "com.atproto.repo.createRecord"
XRPC_GET_RECORD = "com.atproto.repo.getRecord"
XRPC_PUT_RECORD = "com.atproto.repo.putRecord"
XRPC_DELETE_RECORD = "com.atproto.repo.deleteRecord"
XRPC_LIST_RECORDS = "com.atproto.repo.listRecords"

# XRPC error names that mean "no such record" regardless of HTTP status.
_NOT_FOUND_ERRORS = {"RecordNotFound", "NotFound"}

DEFAULT_TIMEOUT_SECONDS = 30.0
MAX_PAGE_SIZE = 100


def xrpc_url(base_url: str, method: str) -> str:
    return f"{base_url.rstrip('/')}/xrpc/{method}"


def _error_name(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if not isinstance(body, dict):
        return ""
    name = body.get("error", "")
    return name if isinstance(name, str) else ""


def check_xrpc_response(
    response: httpx.Response,
    *,
    operation: str,
    collection: str | None = None,
    locator: str | None = None,
) -> None:
    """
    Raise the matching domain error for a failed XRPC response.

    Raises:
        RecordNotFoundError: On 404 or an XRPC ``RecordNotFound`` error
        RepositoryError: On any other non-2xx status
    """
    if response.is_success:
        return
    error_name = _error_name(response)
    if response.status_code == 404 or error_name in _NOT_FOUND_ERRORS:
        raise RecordNotFoundError(
            operation=operation, collection=collection, locator=locator
        )
    raise RepositoryError(
        f"{operation} failed with status {response.status_code}"
        + (f" ({error_name})" if error_name else ""),
        operation=operation,
        collection=collection,
        locator=locator,
        status_code=response.status_code,
        details={"xrpc_error": error_name} if error_name else None,
    )


def parse_json(response: httpx.Response, *, operation: str) -> dict[str, Any]:
    """Decode a JSON object body or raise ``RepositoryError``."""
    try:
        body = response.json()
    except ValueError as exc:
        raise RepositoryError(
            f"{operation} returned invalid JSON", operation=operation
        ) from exc
    if not isinstance(body, dict):
        raise RepositoryError(
            f"{operation} returned {type(body).__name__}, expected object",
            operation=operation,
        )
    return body


def parse_list_page(body: dict[str, Any]) -> ListRecordsPage:
    """Build a ListRecordsPage from a listRecords response body."""
    records = [
        RecordEntry(uri=item.get("uri", ""), value=item.get("value"), cid=item.get("cid", ""))
        for item in body.get("records") or []
        if isinstance(item, dict)
    ]
    return ListRecordsPage(records=records, cursor=body.get("cursor") or None)


class XrpcRepositoryClient:
    """
    Authenticated repository client speaking XRPC over httpx.

    Args:
        credentials: Resolves a session to its PDS endpoint and token
        http_client: Shared AsyncClient; created lazily if omitted
        timeout_seconds: Request timeout for the lazily created client
        page_size: Records per listRecords page (max 100)
    """

    def __init__(
        self,
        credentials: CredentialsProviderProtocol,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        page_size: int = MAX_PAGE_SIZE,
    ):
        self._credentials = credentials
        self._client = http_client
        self._timeout = timeout_seconds
        self._page_size = min(page_size, MAX_PAGE_SIZE)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
        return self._client

    async def close(self) -> None:
        """Close HTTP client connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _request(
        self,
        session: Session,
        http_method: str,
        xrpc_method: str,
        *,
        operation: str,
        collection: str,
        locator: str | None = None,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        creds = await self._credentials.credentials_for(session)
        try:
            response = await self._get_client().request(
                http_method,
                xrpc_url(creds.service_url, xrpc_method),
                params=params,
                json=json_body,
                headers={"Authorization": f"Bearer {creds.access_token}"},
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "xrpc.transport_error",
                operation=operation,
                collection=collection,
                error=str(exc),
            )
            raise RepositoryError(
                f"{operation} request failed: {exc}",
                operation=operation,
                collection=collection,
                locator=locator,
            ) from exc
        check_xrpc_response(
            response, operation=operation, collection=collection, locator=locator
        )
        return response

    async def create_record(
        self, session: Session, collection: str, record: dict[str, Any]
    ) -> str:
        response = await self._request(
            session,
            "POST",
            XRPC_CREATE_RECORD,
            operation="createRecord",
            collection=collection,
            json_body={"repo": session.owner_id, "collection": collection, "record": record},
        )
        body = parse_json(response, operation="createRecord")
        uri = body.get("uri")
        if not isinstance(uri, str) or not uri:
            raise RepositoryError(
                "createRecord response is missing uri",
                operation="createRecord",
                collection=collection,
            )
        return uri

    async def get_record(
        self, session: Session, collection: str, rkey: str
    ) -> dict[str, Any]:
        locator = build_locator(session.owner_id, collection, rkey)
        response = await self._request(
            session,
            "GET",
            XRPC_GET_RECORD,
            operation="getRecord",
            collection=collection,
            locator=locator,
            params={"repo": session.owner_id, "collection": collection, "rkey": rkey},
        )
        body = parse_json(response, operation="getRecord")
        return body.get("value")

    async def put_record(
        self, session: Session, collection: str, rkey: str, record: dict[str, Any]
    ) -> None:
        await self._request(
            session,
            "POST",
            XRPC_PUT_RECORD,
            operation="putRecord",
            collection=collection,
            locator=build_locator(session.owner_id, collection, rkey),
            json_body={
                "repo": session.owner_id,
                "collection": collection,
                "rkey": rkey,
                "record": record,
            },
        )

    async def delete_record(self, session: Session, collection: str, rkey: str) -> None:
        await self._request(
            session,
            "POST",
            XRPC_DELETE_RECORD,
            operation="deleteRecord",
            collection=collection,
            locator=build_locator(session.owner_id, collection, rkey),
            json_body={"repo": session.owner_id, "collection": collection, "rkey": rkey},
        )

    async def list_records(
        self,
        session: Session,
        collection: str,
        cursor: str | None = None,
        limit: int = MAX_PAGE_SIZE,
    ) -> ListRecordsPage:
        params: dict[str, Any] = {
            "repo": session.owner_id,
            "collection": collection,
            "limit": min(limit, MAX_PAGE_SIZE),
        }
        if cursor:
            params["cursor"] = cursor
        response = await self._request(
            session,
            "GET",
            XRPC_LIST_RECORDS,
            operation="listRecords",
            collection=collection,
            params=params,
        )
        return parse_list_page(parse_json(response, operation="listRecords"))

    async def list_all_records(
        self, session: Session, collection: str
    ) -> list[RecordEntry]:
        """List every record in a collection, following cursors to the end."""
        records: list[RecordEntry] = []
        cursor: str | None = None
        seen_cursors: set[str] = set()
        while True:
            page = await self.list_records(session, collection, cursor, self._page_size)
            records.extend(page.records)
            if not page.cursor or not page.records or page.cursor in seen_cursors:
                break
            seen_cursors.add(page.cursor)
            cursor = page.cursor
        logger.debug(
            "xrpc.list_all_records",
            collection=collection,
            count=len(records),
        )
        return records
