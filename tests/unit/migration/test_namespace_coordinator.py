"""
Unit tests for NamespaceMigrationCoordinator.

Tests cover:
- Authorization gate (no store calls for visitors or signed-out viewers)
- Marker fast path and idempotence
- Copying singletons and lists with rewritten payloads
- Tenants with nothing to migrate
- Aborts: classification, no marker, retry on the next run
- Truncated listings, skip_existing, existing new-namespace config
- Phase history and tracing spans
"""

from __future__ import annotations

from typing import Any

import pytest

from sporesite.exceptions import NotAuthenticatedError, RecordStoreError
from sporesite.migration import (
    DualNamespaceLoadResolver,
    ErrorRecoverability,
    ListerConfig,
    MigrationConfig,
    MigrationPhase,
    NamespaceMigrationCoordinator,
    SkipReason,
)
from sporesite.migration.coordinator import marker_of
from sporesite.namespaces import CollectionKey, Namespace, NamespaceRegistry
from sporesite.observability import MockTracer
from sporesite.records import Record
from sporesite.session import StaticSession
from sporesite.stores import InMemoryRecordStore, WriteResult
from tests.fixtures import (
    OTHER_TENANT,
    TENANT,
    RecordingRecordStore,
    new_id,
    old_id,
    uri_for,
)

OLD_CONFIG = old_id(CollectionKey.SITE_CONFIG)
NEW_CONFIG = new_id(CollectionKey.SITE_CONFIG)
OLD_SECTION = old_id(CollectionKey.SITE_SECTION)
NEW_SECTION = new_id(CollectionKey.SITE_SECTION)
OLD_CONTENT = old_id(CollectionKey.CONTENT_TEXT)
NEW_CONTENT = new_id(CollectionKey.CONTENT_TEXT)
OLD_LAYOUT = old_id(CollectionKey.SITE_LAYOUT)
NEW_LAYOUT = new_id(CollectionKey.SITE_LAYOUT)


class SelectiveFailureStore(RecordingRecordStore):
    """Recording store that fails reads or writes for chosen collections."""

    def __init__(self, tenant: str) -> None:
        super().__init__(tenant)
        self.failing_gets: set[str] = set()
        self.failing_puts: set[str] = set()

    async def get_record(self, tenant_id: str, collection: str, rkey: str) -> Record | None:
        if collection in self.failing_gets:
            raise RecordStoreError("getRecord", f"{collection} unavailable", status_code=503)
        return await super().get_record(tenant_id, collection, rkey)

    async def put_record(self, collection: str, rkey: str, value: dict[str, Any]) -> WriteResult:
        if collection in self.failing_puts:
            raise RecordStoreError("putRecord", f"{collection} rejected", status_code=500)
        return await super().put_record(collection, rkey, value)


def seed_legacy_site(store: InMemoryRecordStore) -> None:
    """Old-namespace config, one section referencing one text record."""
    store.seed(TENANT, OLD_CONFIG, "self", {"$type": OLD_CONFIG, "title": "Legacy"})
    store.seed(
        TENANT,
        OLD_SECTION,
        "abc123",
        {
            "$type": OLD_SECTION,
            "type": "content",
            "ref": uri_for(OLD_CONTENT, "welcome"),
        },
    )
    store.seed(
        TENANT,
        OLD_CONTENT,
        "welcome",
        {"$type": OLD_CONTENT, "content": "Hello garden"},
    )


def make_coordinator(
    store: RecordingRecordStore,
    registry: NamespaceRegistry,
    session: StaticSession | None = None,
    **kwargs: Any,
) -> NamespaceMigrationCoordinator:
    kwargs.setdefault("enable_tracing", False)
    return NamespaceMigrationCoordinator(
        store,
        session or StaticSession(TENANT),
        registry,
        **kwargs,
    )


class TestAuthorizationGate:
    """Nobody but the tenant can trigger a run."""

    @pytest.mark.asyncio
    async def test_visitor_makes_no_calls(
        self,
        store: RecordingRecordStore,
        registry: NamespaceRegistry,
        visitor_session: StaticSession,
    ) -> None:
        seed_legacy_site(store)
        result = await make_coordinator(store, registry, visitor_session).migrate(TENANT)

        assert store.calls == []
        assert result.phase is MigrationPhase.DONE
        assert result.skip_reason is SkipReason.NOT_OWNER
        assert result.was_noop

    @pytest.mark.asyncio
    async def test_anonymous_makes_no_calls(
        self,
        store: RecordingRecordStore,
        registry: NamespaceRegistry,
        anonymous_session: StaticSession,
    ) -> None:
        seed_legacy_site(store)
        result = await make_coordinator(store, registry, anonymous_session).migrate(TENANT)

        assert store.calls == []
        assert result.skip_reason is SkipReason.NOT_OWNER

    @pytest.mark.asyncio
    async def test_owner_of_other_site_is_not_owner(
        self,
        store: RecordingRecordStore,
        registry: NamespaceRegistry,
    ) -> None:
        result = await make_coordinator(store, registry).migrate(OTHER_TENANT)
        assert store.calls == []
        assert result.skip_reason is SkipReason.NOT_OWNER


class TestFastPath:
    """A current marker ends the run without writes."""

    @pytest.mark.asyncio
    async def test_current_marker_skips(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        store.seed(TENANT, NEW_CONFIG, "self", {"title": "New", "nsidMigrationVersion": 1})

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.skip_reason is SkipReason.ALREADY_MIGRATED
        assert result.marker_version == 1
        assert store.count("put") == 0
        assert store.count("list") == 0

    @pytest.mark.asyncio
    async def test_newer_marker_skips(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        store.seed(TENANT, NEW_CONFIG, "self", {"nsidMigrationVersion": 3})
        result = await make_coordinator(store, registry).migrate(TENANT)
        assert result.skip_reason is SkipReason.ALREADY_MIGRATED
        assert result.marker_version == 3

    @pytest.mark.asyncio
    async def test_stale_marker_runs(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        store.seed(TENANT, NEW_CONFIG, "self", {"title": "New", "nsidMigrationVersion": 1})

        result = await make_coordinator(
            store, registry, config=MigrationConfig(current_version=2)
        ).migrate(TENANT)

        assert result.skip_reason is None
        assert result.marker_version == 2
        assert store.peek(TENANT, NEW_CONFIG, "self")["nsidMigrationVersion"] == 2

    @pytest.mark.asyncio
    async def test_old_config_failure_ignored_when_marker_current(
        self, registry: NamespaceRegistry
    ) -> None:
        store = SelectiveFailureStore(TENANT)
        store.seed(TENANT, NEW_CONFIG, "self", {"nsidMigrationVersion": 1})
        store.failing_gets.add(OLD_CONFIG)

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.DONE
        assert result.skip_reason is SkipReason.ALREADY_MIGRATED

    @pytest.mark.asyncio
    async def test_sequential_fetch_skips_old_config_when_marker_current(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        store.seed(TENANT, NEW_CONFIG, "self", {"nsidMigrationVersion": 1})

        result = await make_coordinator(
            store, registry, config=MigrationConfig(fetch_configs_concurrently=False)
        ).migrate(TENANT)

        assert result.skip_reason is SkipReason.ALREADY_MIGRATED
        assert store.calls == [("get", (TENANT, NEW_CONFIG, "self"))]


class TestCopy:
    """A legacy site is copied into the new namespace."""

    @pytest.mark.asyncio
    async def test_legacy_site_is_migrated(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.DONE
        assert result.succeeded
        assert result.records_written == 3
        assert result.marker_version == 1

        section = store.peek(TENANT, NEW_SECTION, "abc123")
        assert section == {
            "$type": NEW_SECTION,
            "type": "content",
            "ref": uri_for(NEW_CONTENT, "welcome"),
        }
        assert store.peek(TENANT, NEW_CONTENT, "welcome") == {
            "$type": NEW_CONTENT,
            "content": "Hello garden",
        }
        config = store.peek(TENANT, NEW_CONFIG, "self")
        assert config == {"$type": NEW_CONFIG, "title": "Legacy", "nsidMigrationVersion": 1}

    @pytest.mark.asyncio
    async def test_new_records_reference_only_new_namespace(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        store.seed(
            TENANT,
            OLD_LAYOUT,
            "self",
            {"$type": OLD_LAYOUT, "sections": [uri_for(OLD_SECTION, "abc123")]},
        )

        await make_coordinator(store, registry).migrate(TENANT)

        for collection in registry.collections(Namespace.NEW).values():
            for rkey in store.collection_keys(TENANT, collection):
                assert "garden.spores." not in repr(store.peek(TENANT, collection, rkey))
        layout = store.peek(TENANT, NEW_LAYOUT, "self")
        assert layout["sections"] == [uri_for(NEW_SECTION, "abc123")]

    @pytest.mark.asyncio
    async def test_references_into_other_repos_are_kept(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        foreign = uri_for(OLD_CONTENT, "theirs", tenant=OTHER_TENANT)
        store.seed(TENANT, OLD_SECTION, "s1", {"ref": foreign})

        await make_coordinator(store, registry).migrate(TENANT)

        assert store.peek(TENANT, NEW_SECTION, "s1")["ref"] == foreign

    @pytest.mark.asyncio
    async def test_old_records_are_not_deleted(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)

        await make_coordinator(store, registry).migrate(TENANT)

        assert store.count("delete") == 0
        assert store.peek(TENANT, OLD_CONFIG, "self") == {"$type": OLD_CONFIG, "title": "Legacy"}
        assert store.collection_keys(TENANT, OLD_SECTION) == ["abc123"]

    @pytest.mark.asyncio
    async def test_empty_keys_are_reported(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        result = await make_coordinator(store, registry).migrate(TENANT)
        assert result.keys_skipped == ["siteLayout", "siteProfile", "itemSpecialSpore"]

    @pytest.mark.asyncio
    async def test_existing_new_config_is_kept(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        store.seed(TENANT, NEW_CONFIG, "self", {"title": "Edited after rollout"})

        await make_coordinator(store, registry).migrate(TENANT)

        config = store.peek(TENANT, NEW_CONFIG, "self")
        assert config["title"] == "Edited after rollout"
        assert config["nsidMigrationVersion"] == 1
        assert config["$type"] == NEW_CONFIG

    @pytest.mark.asyncio
    async def test_marker_written_with_default_config(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        store.seed(TENANT, OLD_SECTION, "s1", {"type": "content"})

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.records_written == 2
        config = store.peek(TENANT, NEW_CONFIG, "self")
        assert config["nsidMigrationVersion"] == 1
        assert config["$type"] == NEW_CONFIG

    @pytest.mark.asyncio
    async def test_overwrites_existing_list_records_by_default(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        store.seed(TENANT, OLD_SECTION, "s1", {"title": "Original"})
        store.seed(TENANT, NEW_SECTION, "s1", {"title": "Edited"})

        await make_coordinator(store, registry).migrate(TENANT)

        assert store.peek(TENANT, NEW_SECTION, "s1")["title"] == "Original"

    @pytest.mark.asyncio
    async def test_skip_existing_keeps_new_records(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        store.seed(TENANT, OLD_SECTION, "s1", {"title": "Original"})
        store.seed(TENANT, OLD_SECTION, "s2", {"title": "Second"})
        store.seed(TENANT, NEW_SECTION, "s1", {"title": "Edited"})

        result = await make_coordinator(
            store, registry, config=MigrationConfig(skip_existing=True)
        ).migrate(TENANT)

        assert store.peek(TENANT, NEW_SECTION, "s1")["title"] == "Edited"
        assert store.peek(TENANT, NEW_SECTION, "s2")["title"] == "Second"
        assert result.records_written == 2

    @pytest.mark.asyncio
    async def test_records_without_value_are_skipped(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        store.seed(TENANT, OLD_SECTION, "empty", {})
        store.seed(TENANT, OLD_SECTION, "full", {"title": "x"})

        await make_coordinator(store, registry).migrate(TENANT)

        assert store.collection_keys(TENANT, NEW_SECTION) == ["full"]


class TestNothingToMigrate:
    """A tenant with no data in either namespace."""

    @pytest.mark.asyncio
    async def test_no_writes(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.DONE
        assert result.skip_reason is SkipReason.NOTHING_TO_MIGRATE
        assert store.count("put") == 0
        assert store.peek(TENANT, NEW_CONFIG, "self") is None

    @pytest.mark.asyncio
    async def test_loader_sees_unconfigured_site(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        await make_coordinator(store, registry).migrate(TENANT)
        resolver = DualNamespaceLoadResolver(store, registry, enable_tracing=False)
        assert await resolver.load_active_config(TENANT) is None


class TestIdempotence:
    """Running twice writes nothing the second time."""

    @pytest.mark.asyncio
    async def test_second_run_is_noop(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        coordinator = make_coordinator(store, registry)

        first = await coordinator.migrate(TENANT)
        puts_after_first = store.count("put")
        snapshot = {
            rkey: store.peek(TENANT, NEW_SECTION, rkey)
            for rkey in store.collection_keys(TENANT, NEW_SECTION)
        }

        second = await coordinator.migrate(TENANT)

        assert first.records_written == 3
        assert second.skip_reason is SkipReason.ALREADY_MIGRATED
        assert second.was_noop
        assert store.count("put") == puts_after_first
        assert snapshot == {
            rkey: store.peek(TENANT, NEW_SECTION, rkey)
            for rkey in store.collection_keys(TENANT, NEW_SECTION)
        }


class TestAbort:
    """Failures are classified and never raised."""

    @pytest.mark.asyncio
    async def test_copy_failure_aborts_without_marker(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        store.fail_on("put", RecordStoreError("putRecord", "PDS unavailable", status_code=503))

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.ABORTED
        assert not result.succeeded
        assert result.phases[-2:] == [MigrationPhase.COPYING, MigrationPhase.ABORTED]
        assert "PDS unavailable" in result.error
        assert result.error_classification is not None
        assert result.error_classification.recoverability is ErrorRecoverability.TRANSIENT
        assert result.error_classification.recoverability.should_retry
        assert store.peek(TENANT, NEW_CONFIG, "self") is None

    @pytest.mark.asyncio
    async def test_retry_after_failure_completes(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        coordinator = make_coordinator(store, registry)
        store.fail_on("put", RecordStoreError("putRecord", "PDS unavailable"))

        aborted = await coordinator.migrate(TENANT)
        store.clear_failures()
        retried = await coordinator.migrate(TENANT)

        assert aborted.phase is MigrationPhase.ABORTED
        assert retried.phase is MigrationPhase.DONE
        assert retried.marker_version == 1
        assert store.peek(TENANT, NEW_SECTION, "abc123") is not None

    @pytest.mark.asyncio
    async def test_marker_check_failure_aborts(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        store.fail_on("get", RecordStoreError("getRecord", "timeout"))

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.ABORTED
        assert result.phases == [
            MigrationPhase.NOT_STARTED,
            MigrationPhase.AUTHORIZED_CHECK,
            MigrationPhase.MARKER_CHECK,
            MigrationPhase.ABORTED,
        ]
        assert result.error_classification.error_code == "RECORD_STORE_FAILURE"

    @pytest.mark.asyncio
    async def test_old_config_failure_aborts_without_marker(
        self, registry: NamespaceRegistry
    ) -> None:
        store = SelectiveFailureStore(TENANT)
        store.failing_gets.add(OLD_CONFIG)

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.ABORTED
        assert store.count("put") == 0

    @pytest.mark.asyncio
    async def test_marker_write_failure(self, registry: NamespaceRegistry) -> None:
        store = SelectiveFailureStore(TENANT)
        seed_legacy_site(store)
        store.failing_puts.add(NEW_CONFIG)

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.ABORTED
        assert result.phases[-2:] == [MigrationPhase.FINALIZING, MigrationPhase.ABORTED]
        assert result.error_classification.error_code == "MARKER_WRITE_FAILED"
        assert result.marker_version is None
        assert store.peek(TENANT, NEW_SECTION, "abc123") is not None

    @pytest.mark.asyncio
    async def test_lost_session_is_recoverable(self, registry: NamespaceRegistry) -> None:
        store = InMemoryRecordStore(enable_tracing=False)
        seed_legacy_site(store)

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.ABORTED
        assert result.error_classification.error_code == "NOT_AUTHENTICATED"
        assert result.error_classification.recoverability is ErrorRecoverability.RECOVERABLE

    @pytest.mark.asyncio
    async def test_unexpected_error_is_fatal(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        store.fail_on("list", KeyError("cursor"))

        result = await make_coordinator(store, registry).migrate(TENANT)

        assert result.phase is MigrationPhase.ABORTED
        assert result.error_classification.recoverability is ErrorRecoverability.FATAL

    @pytest.mark.asyncio
    async def test_abort_is_logged(
        self,
        store: RecordingRecordStore,
        registry: NamespaceRegistry,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        store.fail_on("get", NotAuthenticatedError("getRecord"))
        await make_coordinator(store, registry).migrate(TENANT)
        assert "Namespace migration aborted" in caplog.text


class TestTruncatedListing:
    """A listing stopped by a safety valve does not commit the run."""

    @pytest.mark.asyncio
    async def test_no_marker_when_truncated(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        for i in range(3):
            store.seed(TENANT, OLD_SECTION, f"s{i}", {"title": str(i)})

        result = await make_coordinator(
            store, registry, lister_config=ListerConfig(page_size=1, max_pages=2)
        ).migrate(TENANT)

        assert result.phase is MigrationPhase.DONE
        assert result.truncated_collections == [OLD_SECTION]
        assert result.records_written == 2
        assert result.marker_version is None
        assert store.peek(TENANT, NEW_CONFIG, "self") is None

        complete = await make_coordinator(store, registry).migrate(TENANT)
        assert complete.marker_version == 1
        assert store.collection_keys(TENANT, NEW_SECTION) == ["s0", "s1", "s2"]


class TestPhasesAndTracing:
    """Phase history and spans."""

    @pytest.mark.asyncio
    async def test_full_run_phases(
        self, store: RecordingRecordStore, registry: NamespaceRegistry
    ) -> None:
        seed_legacy_site(store)
        result = await make_coordinator(store, registry).migrate(TENANT)
        assert result.phases == [
            MigrationPhase.NOT_STARTED,
            MigrationPhase.AUTHORIZED_CHECK,
            MigrationPhase.MARKER_CHECK,
            MigrationPhase.COPYING,
            MigrationPhase.FINALIZING,
            MigrationPhase.DONE,
        ]
        assert result.duration_seconds >= 0

    @pytest.mark.asyncio
    async def test_spans(
        self,
        store: RecordingRecordStore,
        registry: NamespaceRegistry,
        mock_tracer: MockTracer,
    ) -> None:
        seed_legacy_site(store)
        await make_coordinator(store, registry, tracer=mock_tracer).migrate(TENANT)

        names = mock_tracer.span_names
        assert names[0] == "sporesite.migration.migrate"
        assert names[-1] == "sporesite.migration.write_marker"
        assert names.count("sporesite.migration.copy_singleton") == 2
        assert names.count("sporesite.migration.copy_list") == 3
        assert names.count("sporesite.lister.list_all") == 3


class TestMarkerOf:
    """Tests for reading the marker field."""

    def test_missing_record(self) -> None:
        assert marker_of(None, "nsidMigrationVersion") is None

    def test_integer(self) -> None:
        record = Record(uri=uri_for(NEW_CONFIG, "self"), value={"nsidMigrationVersion": 1})
        assert marker_of(record, "nsidMigrationVersion") == 1

    @pytest.mark.parametrize("value", [True, "1", 1.0, None])
    def test_non_integers_are_ignored(self, value: Any) -> None:
        record = Record(uri=uri_for(NEW_CONFIG, "self"), value={"nsidMigrationVersion": value})
        assert marker_of(record, "nsidMigrationVersion") is None
