"""
Observability utilities for sporesite.

Tracing helpers and standard attribute names. OpenTelemetry is optional;
without it every component falls back to a NullTracer.

Example:
    >>> from sporesite.observability import create_tracer
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.span("sporesite.example"):
    ...     pass
"""

from sporesite.observability.attributes import (
    ATTR_COLLECTION,
    ATTR_COLLECTION_KEY,
    ATTR_ERROR_TYPE,
    ATTR_HTTP_STATUS_CODE,
    ATTR_MIGRATION_PHASE,
    ATTR_MIGRATION_RECORDS_WRITTEN,
    ATTR_MIGRATION_VERSION,
    ATTR_NAMESPACE,
    ATTR_PAGE_COUNT,
    ATTR_PAGE_SIZE,
    ATTR_RECORD_COUNT,
    ATTR_RECORD_KEY,
    ATTR_STORE_OPERATION,
    ATTR_TENANT_ID,
)
from sporesite.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    Tracer,
    create_tracer,
)
from sporesite.observability.tracing import (
    OTEL_AVAILABLE,
    get_tracer,
    should_trace,
)

__all__ = [
    # Tracing utilities
    "OTEL_AVAILABLE",
    "get_tracer",
    "should_trace",
    # Tracer (composition-based API)
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
    # Attributes
    "ATTR_TENANT_ID",
    "ATTR_COLLECTION",
    "ATTR_COLLECTION_KEY",
    "ATTR_RECORD_KEY",
    "ATTR_NAMESPACE",
    "ATTR_PAGE_SIZE",
    "ATTR_PAGE_COUNT",
    "ATTR_RECORD_COUNT",
    "ATTR_MIGRATION_PHASE",
    "ATTR_MIGRATION_VERSION",
    "ATTR_MIGRATION_RECORDS_WRITTEN",
    "ATTR_STORE_OPERATION",
    "ATTR_HTTP_STATUS_CODE",
    "ATTR_ERROR_TYPE",
]
