"""
Standard span attributes for sporesite.

Attribute constants shared by every component so spans from the store,
lister, migration coordinator and resolver can be filtered consistently.

Example:
    >>> from sporesite.observability.attributes import ATTR_TENANT_ID
    >>> with tracer.span("sporesite.resolver.load", {ATTR_TENANT_ID: did}):
    ...     pass
"""

# =============================================================================
# Tenant / Record Attributes
# =============================================================================

ATTR_TENANT_ID = "sporesite.tenant.id"
"""DID of the tenant whose repo is being accessed."""

ATTR_COLLECTION = "sporesite.collection"
"""Concrete collection identifier (NSID)."""

ATTR_COLLECTION_KEY = "sporesite.collection.key"
"""Semantic, namespace-independent collection key (e.g. 'siteConfig')."""

ATTR_RECORD_KEY = "sporesite.record.key"
"""Record key within a collection."""

ATTR_NAMESPACE = "sporesite.namespace"
"""Namespace selector ('old' or 'new')."""

# =============================================================================
# Pagination Attributes
# =============================================================================

ATTR_PAGE_SIZE = "sporesite.page.size"
"""Requested page size for list operations (integer)."""

ATTR_PAGE_COUNT = "sporesite.page.count"
"""Number of pages fetched (integer)."""

ATTR_RECORD_COUNT = "sporesite.record.count"
"""Number of records returned or written (integer)."""

# =============================================================================
# Migration Attributes
# =============================================================================

ATTR_MIGRATION_PHASE = "sporesite.migration.phase"
"""Final phase reached by a migration run."""

ATTR_MIGRATION_VERSION = "sporesite.migration.version"
"""Marker version the run migrates to (integer)."""

ATTR_MIGRATION_RECORDS_WRITTEN = "sporesite.migration.records_written"
"""Records written into the new namespace by a run (integer)."""

# =============================================================================
# Store Attributes
# =============================================================================

ATTR_STORE_OPERATION = "sporesite.store.operation"
"""XRPC method invoked against the remote store."""

ATTR_HTTP_STATUS_CODE = "http.status_code"
"""HTTP status code of the store response (OTEL semantic convention)."""

ATTR_ERROR_TYPE = "error.type"
"""Exception class name when an operation fails."""
