"""
Dual-namespace load resolver.

Finds a tenant's active site configuration at page-load time by checking
each read namespace in preference order. A tenant whose migration has not
committed still renders from the old namespace.
"""

from __future__ import annotations

import asyncio
import logging

from sporesite.migration.models import LoadedConfig
from sporesite.namespaces.registry import CONFIG_RKEY, CollectionKey, NamespaceRegistry
from sporesite.observability import ATTR_NAMESPACE, ATTR_TENANT_ID, Tracer, create_tracer
from sporesite.stores.interface import RecordStore

logger = logging.getLogger(__name__)


class DualNamespaceLoadResolver:
    """
    Locates the namespace holding a tenant's config and layout.

    Read-only; safe to call for any tenant, not just the viewer.

    Example:
        >>> resolver = DualNamespaceLoadResolver(store, registry)
        >>> loaded = await resolver.load_active_config("did:plc:someone")
        >>> loaded.namespace if loaded else "unconfigured"
        <Namespace.OLD: 'old'>
    """

    def __init__(
        self,
        store: RecordStore,
        registry: NamespaceRegistry,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._store = store
        self._registry = registry
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    async def load_active_config(self, tenant_id: str) -> LoadedConfig | None:
        """
        Load the tenant's config and layout from the first namespace holding either.

        Args:
            tenant_id: Tenant whose site is being loaded

        Returns:
            LoadedConfig for the first namespace with a config or layout
            record, or None when the tenant has neither in any namespace

        Raises:
            RecordStoreError: If a read fails
        """
        with self._tracer.span(
            "sporesite.resolver.load_active_config",
            {ATTR_TENANT_ID: tenant_id},
        ) as span:
            for namespace in self._registry.read_namespaces():
                config_collection = self._registry.collection_id_for(
                    CollectionKey.SITE_CONFIG, namespace
                )
                layout_collection = self._registry.collection_id_for(
                    CollectionKey.SITE_LAYOUT, namespace
                )
                config, layout = await asyncio.gather(
                    self._store.get_record(tenant_id, config_collection, CONFIG_RKEY),
                    self._store.get_record(tenant_id, layout_collection, CONFIG_RKEY),
                )
                if config is not None or layout is not None:
                    logger.debug(
                        "Loaded site for %s from %s namespace (config=%s, layout=%s)",
                        tenant_id,
                        namespace.value,
                        config is not None,
                        layout is not None,
                    )
                    if span is not None:
                        span.set_attribute(ATTR_NAMESPACE, namespace.value)
                    return LoadedConfig(namespace=namespace, config=config, layout=layout)

            logger.debug("No site config found for %s in any namespace", tenant_id)
            return None


__all__ = ["DualNamespaceLoadResolver"]
