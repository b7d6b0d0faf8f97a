"""
Paginated collection lister.

Walks a collection's cursor pages until the store reports the end. Two
safety valves stop a misbehaving store from looping forever:

- a hard ceiling on pages fetched per collection
- a cursor that repeats (equal to the previous one or any seen before)

Hitting either one logs a warning and returns what was accumulated, marked
truncated. It never raises for this; an incomplete copy is retried on the
next run.
"""

from __future__ import annotations

import logging

from sporesite.migration.models import ListerConfig, ListResult
from sporesite.observability import (
    ATTR_COLLECTION,
    ATTR_PAGE_COUNT,
    ATTR_PAGE_SIZE,
    ATTR_RECORD_COUNT,
    ATTR_TENANT_ID,
    Tracer,
    create_tracer,
)
from sporesite.records.models import Record
from sporesite.stores.interface import ListOptions, RecordStore

logger = logging.getLogger(__name__)


class PaginatedCollectionLister:
    """
    Lists every record of one collection, one page at a time.

    Pages are requested sequentially so cursor state is never ambiguous.

    Example:
        >>> lister = PaginatedCollectionLister(store)
        >>> result = await lister.list_all("did:plc:me", "garden.spores.site.section")
        >>> len(result.records), result.truncated
        (3, False)
    """

    def __init__(
        self,
        store: RecordStore,
        config: ListerConfig | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the lister.

        Args:
            store: Record store to read from
            config: Page size and page ceiling
            tracer: Optional custom Tracer instance
            enable_tracing: Whether to enable OpenTelemetry tracing
        """
        self._store = store
        self._config = config or ListerConfig()
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def config(self) -> ListerConfig:
        return self._config

    async def list_all(self, tenant_id: str, collection: str) -> ListResult:
        """
        Fetch all records of a collection.

        Args:
            tenant_id: Repo to read
            collection: Collection NSID

        Returns:
            ListResult with the accumulated records; ``truncated`` is True
            when a safety valve stopped the walk early

        Raises:
            RecordStoreError: If a page request fails
        """
        with self._tracer.span(
            "sporesite.lister.list_all",
            {
                ATTR_TENANT_ID: tenant_id,
                ATTR_COLLECTION: collection,
                ATTR_PAGE_SIZE: self._config.page_size,
            },
        ) as span:
            records: list[Record] = []
            seen_cursors: set[str] = set()
            cursor: str | None = None
            pages = 0
            truncated = False

            while True:
                page = await self._store.list_records(
                    tenant_id,
                    collection,
                    ListOptions(limit=self._config.page_size, cursor=cursor),
                )
                pages += 1
                records.extend(page.records)

                next_cursor = page.cursor
                if not next_cursor:
                    break
                if pages >= self._config.max_pages:
                    logger.warning(
                        "Stopping pagination for %s: exceeded %d pages",
                        collection,
                        self._config.max_pages,
                    )
                    truncated = True
                    break
                if next_cursor == cursor or next_cursor in seen_cursors:
                    logger.warning(
                        "Stopping pagination for %s: repeated cursor %r",
                        collection,
                        next_cursor,
                    )
                    truncated = True
                    break

                seen_cursors.add(next_cursor)
                cursor = next_cursor

            if span is not None:
                span.set_attribute(ATTR_PAGE_COUNT, pages)
                span.set_attribute(ATTR_RECORD_COUNT, len(records))

            logger.debug(
                "Listed %d records from %s in %d page(s)",
                len(records),
                collection,
                pages,
            )
            return ListResult(
                collection=collection,
                records=records,
                pages=pages,
                truncated=truncated,
            )


__all__ = ["PaginatedCollectionLister"]
