"""
NamespaceMigrationCoordinator - moves one tenant's records to the new namespace.

The coordinator is a small per-tenant state machine:

    NOT_STARTED -> AUTHORIZED_CHECK -> MARKER_CHECK -> COPYING -> FINALIZING -> DONE
                                                                    (any) -> ABORTED

Responsibilities:
    - Authorization gate: only the tenant themselves may trigger a run, and
      nothing is read before that is established
    - Idempotence fast path: a current marker on the new-namespace config
      ends the run with zero writes
    - Copying singleton collections (fixed key) and list collections (every
      record, same key) with payloads rewritten for the new namespace
    - Committing the run by writing the config record with the marker
    - Never raising: failures are classified and recorded on the result

Old-namespace records are never deleted; they remain the fallback the load
resolver reads for tenants whose run has not committed.

Usage:
    >>> coordinator = NamespaceMigrationCoordinator(
    ...     store=store,
    ...     session=StaticSession("did:plc:me"),
    ...     registry=NamespaceRegistry(NamespaceRolloutConfig(migration_enabled=True)),
    ... )
    >>> result = await coordinator.migrate("did:plc:me")
    >>> result.phase, result.marker_version
    (<MigrationPhase.DONE: 'done'>, 1)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from sporesite.migration.exceptions import (
    CopyError,
    InvalidPhaseTransitionError,
    MarkerWriteError,
    classify_exception,
)
from sporesite.migration.lister import PaginatedCollectionLister
from sporesite.migration.models import (
    ListerConfig,
    MigrationConfig,
    MigrationPhase,
    MigrationResult,
    SkipReason,
)
from sporesite.namespaces.registry import (
    CONFIG_RKEY,
    CollectionKey,
    Namespace,
    NamespaceRegistry,
)
from sporesite.observability import (
    ATTR_COLLECTION,
    ATTR_COLLECTION_KEY,
    ATTR_ERROR_TYPE,
    ATTR_MIGRATION_PHASE,
    ATTR_MIGRATION_RECORDS_WRITTEN,
    ATTR_MIGRATION_VERSION,
    ATTR_RECORD_COUNT,
    ATTR_TENANT_ID,
    Tracer,
    create_tracer,
)
from sporesite.records.models import TYPE_FIELD, Record, default_site_config
from sporesite.records.rewriter import RecordRewriter
from sporesite.session.identity import Session, is_owner
from sporesite.stores.interface import RecordStore

logger = logging.getLogger(__name__)


def marker_of(record: Record | None, marker_field: str) -> int | None:
    """
    Read the migration marker from a config record.

    Returns None when the record or field is missing or not an integer.
    """
    if record is None:
        return None
    marker = record.value.get(marker_field)
    if isinstance(marker, bool) or not isinstance(marker, int):
        return None
    return marker


class NamespaceMigrationCoordinator:
    """
    Runs the namespace migration for one tenant at a time.

    Runs for different tenants share nothing. Two concurrent runs for the
    same tenant are not locked against each other; every write is a full
    overwrite computed from committed source data, so they converge.

    Example:
        >>> coordinator = NamespaceMigrationCoordinator(store, session, registry)
        >>> result = await coordinator.migrate(tenant_id)
        >>> if not result.succeeded:
        ...     print(result.error_classification.suggested_action)
    """

    def __init__(
        self,
        store: RecordStore,
        session: Session,
        registry: NamespaceRegistry,
        *,
        config: MigrationConfig | None = None,
        lister: PaginatedCollectionLister | None = None,
        lister_config: ListerConfig | None = None,
        rewriter: RecordRewriter | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            store: Record store bound to the viewer's session
            session: Viewer's session, used for the authorization gate
            registry: Namespace registry
            config: Marker version and copy behaviour
            lister: Collection lister (built from store if not provided)
            lister_config: Pagination bounds for the default lister
            rewriter: Payload rewriter (built from registry if not provided)
            tracer: Optional custom Tracer instance
            enable_tracing: Whether to enable OpenTelemetry tracing
        """
        self._store = store
        self._session = session
        self._registry = registry
        self._config = config or MigrationConfig()
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._lister = lister or PaginatedCollectionLister(
            store,
            lister_config,
            tracer=self._tracer,
        )
        self._rewriter = rewriter or RecordRewriter(registry)

    @property
    def config(self) -> MigrationConfig:
        return self._config

    async def migrate(self, tenant_id: str) -> MigrationResult:
        """
        Run the migration for one tenant.

        Never raises for store or data failures. The returned result is
        DONE (possibly with zero writes) or ABORTED with the error and its
        classification recorded.

        Args:
            tenant_id: Tenant whose repo to migrate

        Returns:
            MigrationResult describing the run
        """
        result = MigrationResult(tenant_id=tenant_id)
        started = time.monotonic()

        with self._tracer.span(
            "sporesite.migration.migrate",
            {ATTR_TENANT_ID: tenant_id},
        ) as span:
            try:
                await self._run(tenant_id, result)
            except Exception as e:
                self._abort(result, e)
                if span is not None:
                    span.set_attribute(ATTR_ERROR_TYPE, type(e).__name__)
            finally:
                result.duration_seconds = time.monotonic() - started

            if span is not None:
                span.set_attribute(ATTR_MIGRATION_PHASE, result.phase.value)
                span.set_attribute(ATTR_MIGRATION_RECORDS_WRITTEN, result.records_written)
                if result.marker_version is not None:
                    span.set_attribute(ATTR_MIGRATION_VERSION, result.marker_version)

        return result

    # =========================================================================
    # Phases
    # =========================================================================

    async def _run(self, tenant_id: str, result: MigrationResult) -> None:
        self._transition(result, MigrationPhase.AUTHORIZED_CHECK)
        if not is_owner(self._session, tenant_id):
            logger.debug("Skipping migration for %s: viewer is not the owner", tenant_id)
            result.skip_reason = SkipReason.NOT_OWNER
            self._transition(result, MigrationPhase.DONE)
            return

        self._transition(result, MigrationPhase.MARKER_CHECK)
        new_config, old_config = await self._fetch_configs(tenant_id)
        existing_marker = marker_of(new_config, self._config.marker_field)
        if existing_marker is not None and existing_marker >= self._config.current_version:
            logger.debug(
                "Skipping migration for %s: marker %d is current",
                tenant_id,
                existing_marker,
            )
            result.marker_version = existing_marker
            result.skip_reason = SkipReason.ALREADY_MIGRATED
            self._transition(result, MigrationPhase.DONE)
            return

        self._transition(result, MigrationPhase.COPYING)
        for key in self._registry.collection_keys:
            # The config record is written once, with the marker, when finalizing
            if key is CollectionKey.SITE_CONFIG:
                if old_config is None:
                    result.keys_skipped.append(key.value)
                continue
            if key.is_singleton:
                await self._copy_singleton(tenant_id, key, result)
            else:
                await self._copy_list(tenant_id, key, result)

        if result.records_written == 0 and new_config is None and old_config is None:
            logger.debug("No migration needed for %s: no old records to migrate", tenant_id)
            result.skip_reason = SkipReason.NOTHING_TO_MIGRATE
            self._transition(result, MigrationPhase.DONE)
            return

        if result.truncated_collections:
            logger.warning(
                "Not committing migration for %s: listing truncated for %s",
                tenant_id,
                ", ".join(result.truncated_collections),
            )
            self._transition(result, MigrationPhase.DONE)
            return

        self._transition(result, MigrationPhase.FINALIZING)
        await self._write_marker(tenant_id, new_config, old_config, existing_marker, result)
        self._transition(result, MigrationPhase.DONE)

        logger.info(
            "Completed namespace migration for %s: wrote %d record(s), marker %d",
            tenant_id,
            result.records_written,
            result.marker_version,
        )

    async def _fetch_configs(self, tenant_id: str) -> tuple[Record | None, Record | None]:
        new_collection = self._registry.collection_id_for(CollectionKey.SITE_CONFIG, Namespace.NEW)
        old_collection = self._registry.collection_id_for(CollectionKey.SITE_CONFIG, Namespace.OLD)

        if not self._config.fetch_configs_concurrently:
            new_config = await self._store.get_record(tenant_id, new_collection, CONFIG_RKEY)
            if self._is_current(new_config):
                return new_config, None
            old_config = await self._store.get_record(tenant_id, old_collection, CONFIG_RKEY)
            return new_config, old_config

        new_outcome, old_outcome = await asyncio.gather(
            self._store.get_record(tenant_id, new_collection, CONFIG_RKEY),
            self._store.get_record(tenant_id, old_collection, CONFIG_RKEY),
            return_exceptions=True,
        )
        if isinstance(new_outcome, BaseException):
            raise new_outcome
        # A current marker makes the old config irrelevant, even if its read failed
        if self._is_current(new_outcome):
            return new_outcome, None
        if isinstance(old_outcome, BaseException):
            raise old_outcome
        return new_outcome, old_outcome

    async def _copy_singleton(
        self,
        tenant_id: str,
        key: CollectionKey,
        result: MigrationResult,
    ) -> None:
        old_collection = self._registry.collection_id_for(key, Namespace.OLD)
        new_collection = self._registry.collection_id_for(key, Namespace.NEW)

        with self._tracer.span(
            "sporesite.migration.copy_singleton",
            {ATTR_TENANT_ID: tenant_id, ATTR_COLLECTION_KEY: key.value},
        ):
            try:
                old_record = await self._store.get_record(tenant_id, old_collection, CONFIG_RKEY)
                if old_record is None or not old_record.value:
                    logger.debug("No %s record to migrate for %s", key.value, tenant_id)
                    result.keys_skipped.append(key.value)
                    return

                if self._config.skip_existing:
                    existing = await self._store.get_record(tenant_id, new_collection, CONFIG_RKEY)
                    if existing is not None:
                        logger.debug("Keeping existing %s record for %s", key.value, tenant_id)
                        return

                value = self._rewrite(tenant_id, old_collection, old_record.value)
                await self._store.put_record(new_collection, CONFIG_RKEY, value)
                result.records_written += 1
            except Exception as e:
                raise CopyError(tenant_id, old_collection, e, rkey=CONFIG_RKEY) from e

    async def _copy_list(
        self,
        tenant_id: str,
        key: CollectionKey,
        result: MigrationResult,
    ) -> None:
        old_collection = self._registry.collection_id_for(key, Namespace.OLD)
        new_collection = self._registry.collection_id_for(key, Namespace.NEW)

        with self._tracer.span(
            "sporesite.migration.copy_list",
            {
                ATTR_TENANT_ID: tenant_id,
                ATTR_COLLECTION_KEY: key.value,
                ATTR_COLLECTION: old_collection,
            },
        ) as span:
            rkey: str | None = None
            try:
                listing = await self._lister.list_all(tenant_id, old_collection)
                if listing.truncated:
                    result.truncated_collections.append(old_collection)
                if span is not None:
                    span.set_attribute(ATTR_RECORD_COUNT, len(listing.records))
                if not listing.records:
                    result.keys_skipped.append(key.value)
                    return

                existing_rkeys: set[str] = set()
                if self._config.skip_existing:
                    existing = await self._lister.list_all(tenant_id, new_collection)
                    existing_rkeys = {r.rkey for r in existing.records if r.rkey}

                for record in listing.records:
                    rkey = record.rkey
                    if not rkey or not record.value or rkey in existing_rkeys:
                        continue
                    value = self._rewrite(tenant_id, old_collection, record.value)
                    await self._store.put_record(new_collection, rkey, value)
                    result.records_written += 1
                    existing_rkeys.add(rkey)
            except Exception as e:
                raise CopyError(tenant_id, old_collection, e, rkey=rkey) from e

    async def _write_marker(
        self,
        tenant_id: str,
        new_config: Record | None,
        old_config: Record | None,
        existing_marker: int | None,
        result: MigrationResult,
    ) -> None:
        config_collection = self._registry.collection_id_for(
            CollectionKey.SITE_CONFIG, Namespace.NEW
        )
        if new_config is not None:
            base = dict(new_config.value)
        elif old_config is not None:
            old_collection = self._registry.collection_id_for(
                CollectionKey.SITE_CONFIG, Namespace.OLD
            )
            base = self._rewrite(tenant_id, old_collection, old_config.value)
        else:
            base = default_site_config()

        marker = max(existing_marker or 0, self._config.current_version)
        value = {**base, TYPE_FIELD: config_collection, self._config.marker_field: marker}

        with self._tracer.span(
            "sporesite.migration.write_marker",
            {ATTR_TENANT_ID: tenant_id, ATTR_MIGRATION_VERSION: marker},
        ):
            try:
                await self._store.put_record(config_collection, CONFIG_RKEY, value)
            except Exception as e:
                raise MarkerWriteError(tenant_id, e) from e

        result.records_written += 1
        result.marker_version = marker

    # =========================================================================
    # Helpers
    # =========================================================================

    def _is_current(self, config: Record | None) -> bool:
        marker = marker_of(config, self._config.marker_field)
        return marker is not None and marker >= self._config.current_version

    def _rewrite(self, tenant_id: str, collection: str, value: dict[str, Any]) -> dict[str, Any]:
        return self._rewriter.rewrite(collection, value, Namespace.NEW, tenant_id=tenant_id)

    def _transition(self, result: MigrationResult, target: MigrationPhase) -> None:
        if not result.phase.can_transition_to(target):
            raise InvalidPhaseTransitionError(result.tenant_id, result.phase, target)
        logger.debug(
            "Migration %s: %s -> %s",
            result.tenant_id,
            result.phase.value,
            target.value,
        )
        result.phase = target
        result.phases.append(target)

    def _abort(self, result: MigrationResult, error: Exception) -> None:
        failed_in = result.phase
        classification = classify_exception(error)
        result.error = str(error)
        result.error_classification = classification
        result.phase = MigrationPhase.ABORTED
        result.phases.append(MigrationPhase.ABORTED)
        logger.error(
            "Namespace migration aborted for %s in %s [%s]: %s",
            result.tenant_id,
            failed_in.value,
            classification.error_code,
            error,
            exc_info=error,
        )


__all__ = ["NamespaceMigrationCoordinator", "marker_of"]
