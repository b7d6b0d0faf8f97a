"""
Page-load control flow for a tenant's site.

On each load the owner's own visit drives their upgrades: the namespace
migration when the rollout flag is on, then the legacy sections split. The
split waits until the migration has settled, so the namespace copy never
overwrites the layout it extends. Then the site is read through the
dual-namespace resolver, so a visitor sees the same site whether or not the
owner has been migrated.

The whole load runs inside site_owner_scope(), so rendering code can read
the owner with get_site_owner().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sporesite.exceptions import RecordStoreError
from sporesite.migration.coordinator import NamespaceMigrationCoordinator
from sporesite.migration.legacy_sections import LegacySectionsMigrator, LegacySectionsResult
from sporesite.migration.models import (
    ListerConfig,
    MigrationConfig,
    MigrationPhase,
    MigrationResult,
    SkipReason,
)
from sporesite.migration.resolver import DualNamespaceLoadResolver
from sporesite.namespaces.registry import Namespace, NamespaceRegistry
from sporesite.observability import (
    ATTR_ERROR_TYPE,
    ATTR_NAMESPACE,
    ATTR_TENANT_ID,
    Tracer,
    create_tracer,
)
from sporesite.records.models import default_site_config
from sporesite.session.context import site_owner_scope
from sporesite.session.identity import Session, is_owner
from sporesite.stores.interface import RecordStore

logger = logging.getLogger(__name__)


def migration_settled(result: MigrationResult | None) -> bool:
    """
    Whether reads for the tenant have stopped moving between namespaces.

    True when no migration ran, or when it finished with the marker in place
    or found nothing to copy. An aborted or truncated run will copy again on
    the next visit.
    """
    if result is None:
        return True
    if result.phase is not MigrationPhase.DONE:
        return False
    if result.marker_version is not None:
        return True
    return result.skip_reason is SkipReason.NOTHING_TO_MIGRATE


@dataclass(frozen=True)
class LoadedSite:
    """
    Everything needed to render one tenant's site.

    Attributes:
        tenant_id: Site owner
        namespace: Namespace the site was read from (None when unconfigured)
        config: Site config payload (the default config when unconfigured)
        layout: Site layout payload, if any
        migration: Namespace migration result when one ran on this load
        legacy_sections: Legacy sections upgrade result when one ran
        is_configured: False when no config or layout exists in any namespace
        load_error: Read failure message when the site could not be read
    """

    tenant_id: str
    namespace: Namespace | None
    config: dict[str, Any]
    layout: dict[str, Any] | None = None
    migration: MigrationResult | None = None
    legacy_sections: LegacySectionsResult | None = None
    is_configured: bool = False
    load_error: str | None = None

    @property
    def section_uris(self) -> list[str]:
        """Section record URIs in layout order."""
        if not self.layout:
            return []
        sections = self.layout.get("sections")
        return [s for s in sections if isinstance(s, str)] if isinstance(sections, list) else []


class SiteLoader:
    """
    Loads a tenant's site, running owner-triggered upgrades first.

    Example:
        >>> loader = SiteLoader(store, session, registry)
        >>> site = await loader.load("did:plc:someone")
        >>> site.config["title"]
        'spores.garden'
    """

    def __init__(
        self,
        store: RecordStore,
        session: Session,
        registry: NamespaceRegistry,
        *,
        migration_config: MigrationConfig | None = None,
        lister_config: ListerConfig | None = None,
        upgrade_legacy_sections: bool = True,
        coordinator: NamespaceMigrationCoordinator | None = None,
        resolver: DualNamespaceLoadResolver | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the loader.

        Args:
            store: Record store bound to the viewer's session
            session: Viewer's session
            registry: Namespace registry carrying the rollout flag
            migration_config: Config for the default coordinator
            lister_config: Pagination bounds for the default coordinator
            upgrade_legacy_sections: Run the legacy sections upgrade for owners
            coordinator: Migration coordinator (built if not provided)
            resolver: Load resolver (built if not provided)
            tracer: Optional custom Tracer instance
            enable_tracing: Whether to enable OpenTelemetry tracing
        """
        self._session = session
        self._registry = registry
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._coordinator = coordinator or NamespaceMigrationCoordinator(
            store,
            session,
            registry,
            config=migration_config,
            lister_config=lister_config,
            tracer=self._tracer,
        )
        self._resolver = resolver or DualNamespaceLoadResolver(
            store,
            registry,
            tracer=self._tracer,
        )
        self._legacy = (
            LegacySectionsMigrator(store, session, registry, tracer=self._tracer)
            if upgrade_legacy_sections
            else None
        )

    async def load(self, tenant_id: str) -> LoadedSite:
        """
        Load a tenant's site.

        Args:
            tenant_id: Owner of the site being viewed

        Returns:
            LoadedSite; unconfigured tenants get the default config
        """
        async with site_owner_scope(tenant_id):
            with self._tracer.span(
                "sporesite.site_loader.load", {ATTR_TENANT_ID: tenant_id}
            ) as span:
                return await self._load(tenant_id, span)

    async def _load(self, tenant_id: str, span: Any) -> LoadedSite:
        legacy_result: LegacySectionsResult | None = None
        migration_result: MigrationResult | None = None

        if is_owner(self._session, tenant_id):
            if self._registry.migration_enabled:
                migration_result = await self._coordinator.migrate(tenant_id)
            if self._legacy is not None:
                if migration_settled(migration_result):
                    legacy_result = await self._legacy.migrate(tenant_id)
                else:
                    logger.debug(
                        "Deferring legacy sections upgrade for %s until migration completes",
                        tenant_id,
                    )

        try:
            loaded = await self._resolver.load_active_config(tenant_id)
        except RecordStoreError as e:
            logger.warning("Failed to load site for %s: %s", tenant_id, e)
            if span is not None:
                span.set_attribute(ATTR_ERROR_TYPE, type(e).__name__)
            return LoadedSite(
                tenant_id=tenant_id,
                namespace=None,
                config=default_site_config(),
                migration=migration_result,
                legacy_sections=legacy_result,
                load_error=str(e),
            )

        if loaded is None:
            return LoadedSite(
                tenant_id=tenant_id,
                namespace=None,
                config=default_site_config(),
                migration=migration_result,
                legacy_sections=legacy_result,
            )

        if span is not None:
            span.set_attribute(ATTR_NAMESPACE, loaded.namespace.value)
        return LoadedSite(
            tenant_id=tenant_id,
            namespace=loaded.namespace,
            config=dict(loaded.config.value) if loaded.config else default_site_config(),
            layout=dict(loaded.layout.value) if loaded.layout else None,
            migration=migration_result,
            legacy_sections=legacy_result,
            is_configured=True,
        )


__all__ = ["LoadedSite", "SiteLoader", "migration_settled"]
