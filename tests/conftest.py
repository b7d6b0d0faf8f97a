"""
Shared pytest fixtures for the sporesite library tests.

This module provides:
- Registry fixtures (registry with the rollout flag on, legacy_registry off)
- Session fixtures (owner_session, visitor_session, anonymous_session)
- Store fixtures (store bound to the tenant, mock_tracer)

All fixtures are function scoped; nothing is shared between tests.
"""

from __future__ import annotations

import pytest

from sporesite.config import NamespaceRolloutConfig
from sporesite.namespaces import NamespaceRegistry
from sporesite.observability import MockTracer
from sporesite.session import StaticSession
from tests.fixtures import OTHER_TENANT, TENANT, RecordingRecordStore

# ============================================================================
# Registry Fixtures
# ============================================================================


@pytest.fixture
def registry() -> NamespaceRegistry:
    """Registry with the namespace migration rolled out."""
    return NamespaceRegistry(NamespaceRolloutConfig(migration_enabled=True))


@pytest.fixture
def legacy_registry() -> NamespaceRegistry:
    """Registry with the rollout flag off (old namespace only)."""
    return NamespaceRegistry(NamespaceRolloutConfig(migration_enabled=False))


# ============================================================================
# Session Fixtures
# ============================================================================


@pytest.fixture
def owner_session() -> StaticSession:
    """Session signed in as the tenant whose site is loaded."""
    return StaticSession(TENANT)


@pytest.fixture
def visitor_session() -> StaticSession:
    """Session signed in as someone else."""
    return StaticSession(OTHER_TENANT)


@pytest.fixture
def anonymous_session() -> StaticSession:
    return StaticSession()


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def store() -> RecordingRecordStore:
    """In-memory store whose writes go to the tenant's repo, with a call log."""
    return RecordingRecordStore(TENANT)


@pytest.fixture
def mock_tracer() -> MockTracer:
    return MockTracer()
