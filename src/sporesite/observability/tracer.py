"""
Tracers handed to sporesite components.

Every store, the lister, the coordinator, the resolver, the legacy sections
upgrade and the site loader take ``tracer=`` / ``enable_tracing=`` and open
spans named ``sporesite.<component>.<operation>``. When no tracer is passed,
create_tracer() picks OpenTelemetry if the telemetry extra is installed and a
no-op tracer otherwise. Tests pass a MockTracer and assert on span names.
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from opentelemetry.trace import Span

from sporesite.observability.tracing import get_tracer, should_trace


@runtime_checkable
class Tracer(Protocol):
    """Source of spans for one component."""

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        """
        Open a span around one operation.

        Yields the live Span so callers can add attributes known only after
        the work (record counts, status codes), or None when not recording.
        """
        ...

    @property
    def enabled(self) -> bool: ...


class NullTracer:
    """Tracer used when tracing is off or OpenTelemetry is not installed."""

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        yield None

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Spans on the global OpenTelemetry tracer provider.

    Raises:
        ImportError: If the telemetry extra is not installed
    """

    def __init__(self, tracer_name: str) -> None:
        tracer = get_tracer(tracer_name)
        if tracer is None:
            raise ImportError("OpenTelemetry is not installed; pip install sporesite[telemetry]")
        self._tracer = tracer

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Span | None]:
        return self._tracer.start_as_current_span(name, attributes=attributes or {})

    @property
    def enabled(self) -> bool:
        return True


class MockTracer:
    """
    Records (name, attributes) for every span opened.

    Spans yield None, so code that sets attributes on the live span skips
    that step under this tracer.

    Example:
        >>> tracer = MockTracer()
        >>> coordinator = NamespaceMigrationCoordinator(store, session, registry, tracer=tracer)
        >>> await coordinator.migrate("did:plc:me")
        >>> tracer.span_names[0]
        'sporesite.migration.migrate'
    """

    def __init__(self) -> None:
        self.spans: list[tuple[str, dict[str, Any] | None]] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[None, None, None]:
        self.spans.append((name, attributes))
        yield None

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        return [name for name, _ in self.spans]

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(
    name: str,
    enable_tracing: bool = True,
) -> Tracer:
    """OpenTelemetryTracer when enabled and installed, NullTracer otherwise."""
    if should_trace(enable_tracing):
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
]
