"""
Record store interface and core data structures.

The record store is the tenant-owned remote repo the site reads from and
writes to. Reads take an explicit tenant; writes never do, because a store
instance is bound to exactly one authenticated session and can only write
into that session's repo.

This module provides:
- ListOptions: Page size and cursor for list requests
- ListPage: One page of a list response
- WriteResult: Acknowledgement of a put
- RecordStore: Abstract base class for store implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from sporesite.records.models import Record

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListOptions:
    """
    Options for one list request.

    Attributes:
        limit: Maximum records to return in this page
        cursor: Opaque cursor from the previous page (None for the first page)
    """

    limit: int = DEFAULT_PAGE_SIZE
    cursor: str | None = None


@dataclass(frozen=True)
class ListPage:
    """
    One page of records.

    Attributes:
        records: Records in this page
        cursor: Cursor for the next page, or None when the listing is complete
    """

    records: list[Record] = field(default_factory=list)
    cursor: str | None = None


@dataclass(frozen=True)
class WriteResult:
    """Acknowledgement returned by put_record."""

    uri: str
    cid: str | None = None


class RecordStore(ABC):
    """
    Abstract base class for tenant record stores.

    Implementations must be async-safe. A missing record is reported as None
    from get_record, never as an exception; every other failure raises
    RecordStoreError.
    """

    @abstractmethod
    async def get_record(
        self,
        tenant_id: str,
        collection: str,
        rkey: str,
    ) -> Record | None:
        """
        Fetch a single record.

        Args:
            tenant_id: DID of the repo to read
            collection: Collection NSID
            rkey: Record key

        Returns:
            The record, or None if it does not exist

        Raises:
            RecordStoreError: If the store cannot be reached or errors
        """
        pass

    @abstractmethod
    async def put_record(
        self,
        collection: str,
        rkey: str,
        value: dict[str, Any],
    ) -> WriteResult:
        """
        Create or fully overwrite a record in the authenticated tenant's repo.

        Args:
            collection: Collection NSID
            rkey: Record key
            value: Complete record payload

        Returns:
            WriteResult with the record URI

        Raises:
            NotAuthenticatedError: If no session is bound to the store
            RecordStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def list_records(
        self,
        tenant_id: str,
        collection: str,
        options: ListOptions | None = None,
    ) -> ListPage:
        """
        Fetch one page of a collection.

        Args:
            tenant_id: DID of the repo to read
            collection: Collection NSID
            options: Page size and cursor

        Returns:
            ListPage with records and the next cursor

        Raises:
            RecordStoreError: If the store cannot be reached or errors
        """
        pass

    @abstractmethod
    async def delete_record(self, collection: str, rkey: str) -> None:
        """
        Delete a record from the authenticated tenant's repo.

        Raises:
            NotAuthenticatedError: If no session is bound to the store
            RecordStoreError: If the delete fails
        """
        pass


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ListOptions",
    "ListPage",
    "RecordStore",
    "WriteResult",
]
