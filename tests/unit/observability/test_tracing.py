"""
Unit tests for OpenTelemetry availability helpers.

Tests for:
- OTEL_AVAILABLE constant
- get_tracer() function
- should_trace() function
"""


class TestOTELAvailable:
    """Tests for OTEL_AVAILABLE constant."""

    def test_otel_available_is_boolean(self):
        from sporesite.observability import OTEL_AVAILABLE

        assert isinstance(OTEL_AVAILABLE, bool)

    def test_otel_available_reflects_import(self):
        """OTEL_AVAILABLE is True when opentelemetry is installed."""
        from sporesite.observability import OTEL_AVAILABLE

        # The test extra installs OpenTelemetry
        assert OTEL_AVAILABLE is True


class TestGetTracer:
    """Tests for get_tracer function."""

    def test_returns_tracer_when_available(self):
        from sporesite.observability import get_tracer

        assert get_tracer("test_module") is not None

    def test_returns_none_when_unavailable(self, monkeypatch):
        monkeypatch.setattr("sporesite.observability.tracing.OTEL_AVAILABLE", False)

        from sporesite.observability.tracing import get_tracer

        assert get_tracer("test_module") is None


class TestShouldTrace:
    """Tests for should_trace function."""

    def test_true_when_enabled_and_available(self):
        from sporesite.observability import should_trace

        assert should_trace(True) is True

    def test_false_when_disabled(self):
        from sporesite.observability import should_trace

        assert should_trace(False) is False

    def test_false_when_unavailable(self, monkeypatch):
        monkeypatch.setattr("sporesite.observability.tracing.OTEL_AVAILABLE", False)

        from sporesite.observability.tracing import should_trace

        assert should_trace(True) is False
