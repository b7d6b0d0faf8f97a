"""
Record store implementations.

- RecordStore: abstract interface (get / put / list / delete)
- InMemoryRecordStore: dictionary-backed store for tests and development
- XrpcRecordStore: httpx client for an AT Protocol PDS
"""

from sporesite.stores.in_memory import InMemoryRecordStore
from sporesite.stores.interface import (
    DEFAULT_PAGE_SIZE,
    ListOptions,
    ListPage,
    RecordStore,
    WriteResult,
)
from sporesite.stores.xrpc import XrpcRecordStore

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "InMemoryRecordStore",
    "ListOptions",
    "ListPage",
    "RecordStore",
    "WriteResult",
    "XrpcRecordStore",
]
