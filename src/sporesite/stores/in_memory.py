"""
In-memory record store implementation.

Useful for testing and development. Not suitable for production
as all records are lost when the process terminates.
"""

import asyncio
import copy
from collections import defaultdict
from typing import Any

from sporesite.exceptions import NotAuthenticatedError
from sporesite.observability import (
    ATTR_COLLECTION,
    ATTR_PAGE_SIZE,
    ATTR_RECORD_COUNT,
    ATTR_RECORD_KEY,
    ATTR_TENANT_ID,
    Tracer,
    create_tracer,
)
from sporesite.records.models import Record
from sporesite.records.uri import AtUri
from sporesite.stores.interface import ListOptions, ListPage, RecordStore, WriteResult


class InMemoryRecordStore(RecordStore):
    """
    In-memory implementation of the record store.

    Holds every tenant's repo in a dictionary keyed by (repo, collection).
    Writes go to the tenant the store was created for, mirroring a session
    bound to one account. Suitable for:

    - Unit testing
    - Development environments
    - Prototyping

    seed() and peek() read and write any repo directly, bypassing the
    authorization check.

    Example:
        >>> store = InMemoryRecordStore(authenticated_tenant="did:plc:me")
        >>> await store.put_record("garden.spores.site.config", "self", {"title": "Hi"})
        >>> record = await store.get_record("did:plc:me", "garden.spores.site.config", "self")
        >>> record.value["title"]
        'Hi'
    """

    def __init__(
        self,
        authenticated_tenant: str | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize an empty in-memory record store.

        Args:
            authenticated_tenant: DID writes are scoped to (None means read-only)
            tracer: Optional custom Tracer instance
            enable_tracing: If True and OpenTelemetry is available, emit traces
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._authenticated_tenant = authenticated_tenant
        # (repo, collection) -> rkey -> value, insertion ordered
        self._repos: dict[tuple[str, str], dict[str, dict[str, Any]]] = defaultdict(dict)
        self._lock = asyncio.Lock()

    @property
    def authenticated_tenant(self) -> str | None:
        return self._authenticated_tenant

    # =========================================================================
    # Development helpers
    # =========================================================================

    def seed(self, tenant_id: str, collection: str, rkey: str, value: dict[str, Any]) -> None:
        """Insert a record directly into any repo."""
        self._repos[(tenant_id, collection)][rkey] = copy.deepcopy(value)

    def peek(self, tenant_id: str, collection: str, rkey: str) -> dict[str, Any] | None:
        """Read a stored value directly."""
        value = self._repos.get((tenant_id, collection), {}).get(rkey)
        return copy.deepcopy(value) if value is not None else None

    def collection_keys(self, tenant_id: str, collection: str) -> list[str]:
        """Record keys currently stored in one collection."""
        return list(self._repos.get((tenant_id, collection), {}).keys())

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
            "sporesite.in_memory_store.get_record",
            {ATTR_TENANT_ID: tenant_id, ATTR_COLLECTION: collection, ATTR_RECORD_KEY: rkey},
        ):
            value = self._repos.get((tenant_id, collection), {}).get(rkey)
            if value is None:
                return None
            return self._to_record(tenant_id, collection, rkey, value)

    async def put_record(
        self,
        collection: str,
        rkey: str,
        value: dict[str, Any],
    ) -> WriteResult:
        with self._tracer.span(
            "sporesite.in_memory_store.put_record",
            {ATTR_COLLECTION: collection, ATTR_RECORD_KEY: rkey},
        ):
            tenant_id = self._require_tenant("put_record")
            async with self._lock:
                self._repos[(tenant_id, collection)][rkey] = copy.deepcopy(value)
            return WriteResult(uri=str(AtUri.build(tenant_id, collection, rkey)))

    async def list_records(
        self,
        tenant_id: str,
        collection: str,
        options: ListOptions | None = None,
    ) -> ListPage:
        options = options or ListOptions()
        with self._tracer.span(
            "sporesite.in_memory_store.list_records",
            {ATTR_TENANT_ID: tenant_id, ATTR_COLLECTION: collection, ATTR_PAGE_SIZE: options.limit},
        ) as span:
            items = list(self._repos.get((tenant_id, collection), {}).items())

            # Cursor is the offset of the next record
            start = int(options.cursor) if options.cursor else 0
            page = items[start : start + options.limit]
            end = start + len(page)
            records = [self._to_record(tenant_id, collection, rkey, value) for rkey, value in page]
            if span is not None:
                span.set_attribute(ATTR_RECORD_COUNT, len(records))
            return ListPage(records=records, cursor=str(end) if end < len(items) else None)

    async def delete_record(self, collection: str, rkey: str) -> None:
        with self._tracer.span(
            "sporesite.in_memory_store.delete_record",
            {ATTR_COLLECTION: collection, ATTR_RECORD_KEY: rkey},
        ):
            tenant_id = self._require_tenant("delete_record")
            async with self._lock:
                self._repos.get((tenant_id, collection), {}).pop(rkey, None)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_tenant(self, operation: str) -> str:
        if self._authenticated_tenant is None:
            raise NotAuthenticatedError(operation)
        return self._authenticated_tenant

    @staticmethod
    def _to_record(tenant_id: str, collection: str, rkey: str, value: dict[str, Any]) -> Record:
        return Record(
            uri=str(AtUri.build(tenant_id, collection, rkey)),
            value=copy.deepcopy(value),
        )


__all__ = ["InMemoryRecordStore"]
