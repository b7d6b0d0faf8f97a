"""
XRPC record store backed by an AT Protocol PDS.

Talks to the ``com.atproto.repo.*`` endpoints over HTTP with httpx. Reads are
public queries against any repo; writes are procedures authorized with the
session's access token and always target the session's own DID.

Usage:
    >>> async with XrpcRecordStore(
    ...     "https://pds.example.com",
    ...     session_did="did:plc:me",
    ...     access_token="eyJ...",
    ... ) as store:
    ...     record = await store.get_record("did:plc:me", "coop.hypha.spores.site.config", "self")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sporesite.exceptions import NotAuthenticatedError, RecordStoreError
from sporesite.observability import (
    ATTR_COLLECTION,
    ATTR_HTTP_STATUS_CODE,
    ATTR_RECORD_COUNT,
    ATTR_RECORD_KEY,
    ATTR_STORE_OPERATION,
    ATTR_TENANT_ID,
    Tracer,
    create_tracer,
)
from sporesite.records.models import Record
from sporesite.stores.interface import ListOptions, ListPage, RecordStore, WriteResult

logger = logging.getLogger(__name__)

GET_RECORD = "com.atproto.repo.getRecord"
LIST_RECORDS = "com.atproto.repo.listRecords"
PUT_RECORD = "com.atproto.repo.putRecord"
DELETE_RECORD = "com.atproto.repo.deleteRecord"

# Error names a PDS uses for a missing record or repo
NOT_FOUND_ERRORS = frozenset({"RecordNotFound", "NotFound"})


class XrpcRecordStore(RecordStore):
    """
    RecordStore implementation over XRPC.

    Attributes:
        service_url: Base URL of the PDS
        session_did: DID writes are scoped to (None for a read-only store)
    """

    def __init__(
        self,
        service_url: str,
        *,
        session_did: str | None = None,
        access_token: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the store.

        Args:
            service_url: Base URL of the PDS (trailing slash ignored)
            session_did: DID of the authenticated account, if any
            access_token: Bearer token for write procedures
            timeout: Request timeout in seconds
            client: Pre-built httpx client (for custom transports in tests)
            tracer: Optional custom Tracer instance
            enable_tracing: Whether to enable OpenTelemetry tracing
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self.service_url = service_url.rstrip("/")
        self.session_did = session_did
        self._access_token = access_token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.service_url,
            timeout=timeout,
        )

    async def __aenter__(self) -> XrpcRecordStore:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # RecordStore implementation
    # =========================================================================

    async def get_record(
        self,
        tenant_id: str,
        collection: str,
        rkey: str,
    ) -> Record | None:
        with self._tracer.span(
            "sporesite.xrpc_store.get_record",
            {
                ATTR_STORE_OPERATION: GET_RECORD,
                ATTR_TENANT_ID: tenant_id,
                ATTR_COLLECTION: collection,
                ATTR_RECORD_KEY: rkey,
            },
        ) as span:
            response = await self._request(
                "GET",
                GET_RECORD,
                params={"repo": tenant_id, "collection": collection, "rkey": rkey},
            )
            if span is not None:
                span.set_attribute(ATTR_HTTP_STATUS_CODE, response.status_code)
            if self._is_not_found(response):
                logger.debug("Record not found: %s/%s/%s", tenant_id, collection, rkey)
                return None
            data = self._json_or_raise(response, GET_RECORD)
            record = self._record_from(data)
            if record is None:
                logger.warning(
                    "Malformed getRecord response for %s/%s/%s", tenant_id, collection, rkey
                )
                raise RecordStoreError(
                    GET_RECORD, "malformed record response", status_code=response.status_code
                )
            return record

    async def put_record(
        self,
        collection: str,
        rkey: str,
        value: dict[str, Any],
    ) -> WriteResult:
        repo = self._require_session(PUT_RECORD)
        with self._tracer.span(
            "sporesite.xrpc_store.put_record",
            {
                ATTR_STORE_OPERATION: PUT_RECORD,
                ATTR_TENANT_ID: repo,
                ATTR_COLLECTION: collection,
                ATTR_RECORD_KEY: rkey,
            },
        ):
            response = await self._request(
                "POST",
                PUT_RECORD,
                json={"repo": repo, "collection": collection, "rkey": rkey, "record": value},
                authorized=True,
            )
            data = self._json_or_raise(response, PUT_RECORD)
            return WriteResult(uri=data.get("uri", ""), cid=data.get("cid"))

    async def list_records(
        self,
        tenant_id: str,
        collection: str,
        options: ListOptions | None = None,
    ) -> ListPage:
        options = options or ListOptions()
        params: dict[str, Any] = {
            "repo": tenant_id,
            "collection": collection,
            "limit": options.limit,
        }
        if options.cursor:
            params["cursor"] = options.cursor

        with self._tracer.span(
            "sporesite.xrpc_store.list_records",
            {
                ATTR_STORE_OPERATION: LIST_RECORDS,
                ATTR_TENANT_ID: tenant_id,
                ATTR_COLLECTION: collection,
            },
        ) as span:
            response = await self._request("GET", LIST_RECORDS, params=params)
            data = self._json_or_raise(response, LIST_RECORDS)
            items = data.get("records")
            records: list[Record] = []
            for item in items if isinstance(items, list) else []:
                record = self._record_from(item)
                if record is None:
                    logger.debug("Skipping malformed listRecords entry in %s", collection)
                    continue
                records.append(record)
            if span is not None:
                span.set_attribute(ATTR_RECORD_COUNT, len(records))
            cursor = data.get("cursor")
            if not isinstance(cursor, str) or not cursor:
                cursor = None
            return ListPage(records=records, cursor=cursor)

    async def delete_record(self, collection: str, rkey: str) -> None:
        repo = self._require_session(DELETE_RECORD)
        with self._tracer.span(
            "sporesite.xrpc_store.delete_record",
            {
                ATTR_STORE_OPERATION: DELETE_RECORD,
                ATTR_TENANT_ID: repo,
                ATTR_COLLECTION: collection,
                ATTR_RECORD_KEY: rkey,
            },
        ):
            response = await self._request(
                "POST",
                DELETE_RECORD,
                json={"repo": repo, "collection": collection, "rkey": rkey},
                authorized=True,
            )
            self._json_or_raise(response, DELETE_RECORD, allow_empty=True)

    # =========================================================================
    # HTTP helpers
    # =========================================================================

    def _require_session(self, operation: str) -> str:
        if not self.session_did or not self._access_token:
            raise NotAuthenticatedError(operation)
        return self.session_did

    async def _request(
        self,
        method: str,
        nsid: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        authorized: bool = False,
    ) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if authorized and self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        try:
            return await self._client.request(
                method,
                f"/xrpc/{nsid}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning("XRPC %s transport error: %s", nsid, e)
            raise RecordStoreError(nsid, f"{type(e).__name__}: {e}") from e

    @staticmethod
    def _record_from(data: Any) -> Record | None:
        """Build a Record from a response object, or None when it is malformed."""
        if not isinstance(data, dict):
            return None
        uri = data.get("uri")
        value = data.get("value")
        cid = data.get("cid")
        if not isinstance(uri, str) or not uri:
            return None
        if value is None:
            value = {}
        if not isinstance(value, dict) or not (cid is None or isinstance(cid, str)):
            return None
        return Record(uri=uri, value=value, cid=cid)

    @staticmethod
    def _error_name(response: httpx.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("error") if isinstance(body, dict) else None

    def _is_not_found(self, response: httpx.Response) -> bool:
        if response.status_code == 404:
            return True
        return response.status_code == 400 and self._error_name(response) in NOT_FOUND_ERRORS

    def _json_or_raise(
        self,
        response: httpx.Response,
        nsid: str,
        *,
        allow_empty: bool = False,
    ) -> dict[str, Any]:
        if response.is_success:
            if allow_empty and not response.content:
                return {}
            try:
                data = response.json()
            except ValueError as e:
                raise RecordStoreError(
                    nsid, "response body is not JSON", status_code=response.status_code
                ) from e
            return data if isinstance(data, dict) else {}

        error_name = self._error_name(response)
        message = error_name or response.reason_phrase or "request failed"
        try:
            body = response.json()
            if isinstance(body, dict) and body.get("message"):
                message = f"{message}: {body['message']}"
        except ValueError:
            pass
        raise RecordStoreError(
            nsid,
            message,
            status_code=response.status_code,
            error_code=error_name,
        )


__all__ = [
    "DELETE_RECORD",
    "GET_RECORD",
    "LIST_RECORDS",
    "NOT_FOUND_ERRORS",
    "PUT_RECORD",
    "XrpcRecordStore",
]
