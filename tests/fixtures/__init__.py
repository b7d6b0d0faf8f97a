"""
Shared test fixtures for the sporesite library.

This module provides reusable test data and helpers:
- Tenant ids (TENANT, OTHER_TENANT)
- Collection id shortcuts for both namespaces (old_id, new_id)
- Record URI builders (uri_for)
- RecordingRecordStore: in-memory store with a call log and failure injection
- ScriptedListStore: a store whose list pages are scripted per call

Usage:
    from tests.fixtures import TENANT, old_id, new_id, uri_for, RecordingRecordStore
"""

from tests.fixtures.records import (
    OTHER_TENANT,
    TENANT,
    new_id,
    old_id,
    uri_for,
)
from tests.fixtures.stores import RecordingRecordStore, ScriptedListStore

__all__ = [
    "OTHER_TENANT",
    "TENANT",
    "RecordingRecordStore",
    "ScriptedListStore",
    "new_id",
    "old_id",
    "uri_for",
]
