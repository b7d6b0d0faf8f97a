"""
Upgrade for the pre-split sections record.

Early sites kept every section inline in one ``garden.spores.site.sections``
record. The upgrade splits it into one section record per entry in the
active write namespace, appends those sections to the site layout in order,
then deletes the inline record.

An existing layout is extended rather than replaced. The write namespace is
checked first; a layout found only in the old namespace is carried over with
its references rewritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sporesite.migration.exceptions import (
    ErrorClassification,
    LegacySectionsError,
    classify_exception,
)
from sporesite.namespaces.registry import (
    CONFIG_RKEY,
    CollectionKey,
    Namespace,
    NamespaceRegistry,
)
from sporesite.observability import (
    ATTR_ERROR_TYPE,
    ATTR_NAMESPACE,
    ATTR_RECORD_COUNT,
    ATTR_TENANT_ID,
    Tracer,
    create_tracer,
)
from sporesite.records.models import TYPE_FIELD, SiteSectionValue
from sporesite.records.rewriter import RecordRewriter
from sporesite.records.tid import TidGenerator
from sporesite.records.uri import AtUri
from sporesite.session.identity import Session, is_owner
from sporesite.stores.interface import RecordStore

logger = logging.getLogger(__name__)

LEGACY_SECTIONS_COLLECTION = "garden.spores.site.sections"

# Wire fields carried from an inline section entry onto its own record
LEGACY_SECTION_FIELDS = (
    "type",
    "title",
    "layout",
    "collection",
    "rkey",
    "records",
    "content",
    "format",
    "limit",
    "hideHeader",
)


@dataclass
class LegacySectionsResult:
    """
    Outcome of one legacy sections upgrade.

    Attributes:
        tenant_id: Tenant the upgrade targeted
        migrated: True when the inline record was split and deleted
        section_uris: URIs of the section records created, in layout order
        skipped: True when there was nothing to do (not owner, no legacy record)
        error: Error message when the upgrade failed
        error_classification: Classification of that error
    """

    tenant_id: str
    migrated: bool = False
    section_uris: list[str] = field(default_factory=list)
    skipped: bool = False
    error: str | None = None
    error_classification: ErrorClassification | None = None

    @property
    def sections_created(self) -> int:
        return len(self.section_uris)


def legacy_section_value(entry: dict[str, Any], section_collection: str) -> dict[str, Any]:
    """Build a section record payload from one inline legacy entry."""
    fields = {name: entry[name] for name in LEGACY_SECTION_FIELDS if entry.get(name)}
    value = SiteSectionValue.model_validate(fields).to_value()
    value[TYPE_FIELD] = section_collection
    return value


class LegacySectionsMigrator:
    """
    Splits a tenant's inline sections record into section records.

    Example:
        >>> migrator = LegacySectionsMigrator(store, session, registry)
        >>> result = await migrator.migrate("did:plc:me")
        >>> result.sections_created
        2
    """

    def __init__(
        self,
        store: RecordStore,
        session: Session,
        registry: NamespaceRegistry,
        *,
        tid_generator: TidGenerator | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._store = store
        self._session = session
        self._registry = registry
        self._tids = tid_generator or TidGenerator()
        self._rewriter = RecordRewriter(registry)
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    async def migrate(self, tenant_id: str) -> LegacySectionsResult:
        """
        Run the upgrade for one tenant.

        Never raises for store failures; they are logged and recorded on
        the result. The legacy record is only deleted after the layout
        write succeeds.
        """
        result = LegacySectionsResult(tenant_id=tenant_id)
        if not is_owner(self._session, tenant_id):
            logger.debug("Skipping legacy sections upgrade for %s: not owner", tenant_id)
            result.skipped = True
            return result

        namespace = self._registry.write_namespace()
        with self._tracer.span(
            "sporesite.legacy_sections.migrate",
            {ATTR_TENANT_ID: tenant_id, ATTR_NAMESPACE: namespace.value},
        ) as span:
            try:
                await self._run(tenant_id, result)
            except Exception as e:
                error = LegacySectionsError(
                    tenant_id, e, sections_created=result.sections_created
                )
                result.error = str(error)
                result.error_classification = classify_exception(error)
                logger.error(
                    "Error during legacy sections upgrade for %s: %s",
                    tenant_id,
                    e,
                    exc_info=e,
                )
                if span is not None:
                    span.set_attribute(ATTR_ERROR_TYPE, type(e).__name__)
            if span is not None:
                span.set_attribute(ATTR_RECORD_COUNT, result.sections_created)
        return result

    async def _run(self, tenant_id: str, result: LegacySectionsResult) -> None:
        legacy = await self._store.get_record(tenant_id, LEGACY_SECTIONS_COLLECTION, CONFIG_RKEY)
        sections = legacy.value.get("sections") if legacy is not None else None
        if not isinstance(sections, list):
            result.skipped = True
            return

        logger.debug("Upgrading legacy sections record for %s", tenant_id)
        namespace = self._registry.write_namespace()
        section_collection = self._registry.collection_id_for(CollectionKey.SITE_SECTION, namespace)
        layout_collection = self._registry.collection_id_for(CollectionKey.SITE_LAYOUT, namespace)
        layout = await self._current_layout(tenant_id, namespace) or {}

        for entry in sections:
            if not isinstance(entry, dict):
                continue
            value = legacy_section_value(entry, section_collection)
            if "collection" in value:
                value["collection"] = self._registry.map_collection_to_namespace(
                    value["collection"], namespace
                )
            rkey = self._tids.next()
            written = await self._store.put_record(section_collection, rkey, value)
            result.section_uris.append(
                written.uri or str(AtUri.build(tenant_id, section_collection, rkey))
            )

        existing = layout.get("sections")
        merged = list(existing) if isinstance(existing, list) else []
        merged.extend(uri for uri in result.section_uris if uri not in merged)
        layout["sections"] = merged
        layout[TYPE_FIELD] = layout_collection
        await self._store.put_record(layout_collection, CONFIG_RKEY, layout)

        await self._store.delete_record(LEGACY_SECTIONS_COLLECTION, CONFIG_RKEY)
        result.migrated = True
        logger.info(
            "Upgraded legacy sections for %s: %d section(s)",
            tenant_id,
            result.sections_created,
        )

    async def _current_layout(
        self, tenant_id: str, namespace: Namespace
    ) -> dict[str, Any] | None:
        """Layout the site renders today, as a payload for the write namespace."""
        # read_namespaces() starts with the write namespace
        for candidate in self._registry.read_namespaces():
            collection = self._registry.collection_id_for(CollectionKey.SITE_LAYOUT, candidate)
            record = await self._store.get_record(tenant_id, collection, CONFIG_RKEY)
            if record is None:
                continue
            if candidate is namespace:
                return dict(record.value)
            logger.debug(
                "Carrying %s layout into %s for %s", candidate.value, namespace.value, tenant_id
            )
            return self._rewriter.rewrite(collection, record.value, namespace, tenant_id=tenant_id)
        return None


async def migrate_legacy_sections(
    store: RecordStore,
    session: Session,
    registry: NamespaceRegistry,
    tenant_id: str,
) -> LegacySectionsResult:
    """Functional shortcut for LegacySectionsMigrator(...).migrate(tenant_id)."""
    return await LegacySectionsMigrator(store, session, registry).migrate(tenant_id)


__all__ = [
    "LEGACY_SECTIONS_COLLECTION",
    "LEGACY_SECTION_FIELDS",
    "LegacySectionsMigrator",
    "LegacySectionsResult",
    "legacy_section_value",
    "migrate_legacy_sections",
]
