"""
Record payload rewriter.

Produces the target-namespace equivalent of a record value: the ``$type`` tag
is re-pointed at the target collection, and cross-references into registered
collections have their collection segment swapped. Nothing else changes.

The rewrite is a pure function of its inputs: the same value rewritten twice
gives equal results, and the input is never mutated.
"""

from __future__ import annotations

from typing import Any

from sporesite.exceptions import InvalidAtUriError
from sporesite.namespaces.registry import CollectionKey, Namespace, NamespaceRegistry
from sporesite.records.models import TYPE_FIELD
from sporesite.records.uri import AtUri, is_at_uri


# Fields that name a collection directly rather than through a URI
COLLECTION_REFERENCE_FIELDS = frozenset({"collection"})


class RecordRewriter:
    """
    Rewrites record payloads into another namespace.

    Example:
        >>> rewriter = RecordRewriter(NamespaceRegistry())
        >>> rewriter.rewrite(
        ...     "garden.spores.site.section",
        ...     {"$type": "garden.spores.site.section",
        ...      "ref": "at://did:plc:t/garden.spores.content.text/welcome"},
        ...     Namespace.NEW,
        ... )
        {'$type': 'coop.hypha.spores.site.section', 'ref': 'at://did:plc:t/coop.hypha.spores.content.text/welcome'}
    """

    def __init__(self, registry: NamespaceRegistry) -> None:
        self._registry = registry

    def rewrite(
        self,
        collection_id: str,
        value: dict[str, Any],
        target: Namespace,
        *,
        tenant_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Rewrite a record value for the target namespace.

        Args:
            collection_id: Collection the value currently lives in
            value: Record payload (not modified)
            target: Namespace to rewrite into
            tenant_id: When given, only URIs whose repo is this tenant are
                rewritten; URIs into other repos pass through

        Returns:
            A new dict with the type tag and references rewritten

        Raises:
            UnknownCollectionKeyError: If collection_id is not registered
        """
        key: CollectionKey = self._registry.semantic_key_of(collection_id)
        rewritten = {
            field: self._rewrite_field(field, field_value, target, tenant_id)
            for field, field_value in value.items()
        }
        rewritten[TYPE_FIELD] = self._registry.collection_id_for(key, target)
        return rewritten

    def rewrite_uri(
        self,
        uri: str,
        target: Namespace,
        *,
        tenant_id: str | None = None,
    ) -> str:
        """
        Swap the collection segment of a record URI into the target namespace.

        URIs that do not parse, point at unregistered collections, or (with
        tenant_id set) belong to another repo are returned unchanged.
        """
        try:
            parsed = AtUri.parse(uri)
        except InvalidAtUriError:
            return uri
        if tenant_id is not None and parsed.repo != tenant_id:
            return uri
        mapped = self._registry.map_collection_to_namespace(parsed.collection, target)
        if mapped == parsed.collection:
            return uri
        return str(parsed.with_collection(mapped))

    def _rewrite_field(
        self,
        field: str,
        field_value: Any,
        target: Namespace,
        tenant_id: str | None,
    ) -> Any:
        if isinstance(field_value, str):
            if is_at_uri(field_value):
                return self.rewrite_uri(field_value, target, tenant_id=tenant_id)
            if field in COLLECTION_REFERENCE_FIELDS:
                return self._registry.map_collection_to_namespace(field_value, target)
            return field_value
        if isinstance(field_value, list):
            # Ordered reference lists (layout sections, section records)
            return [
                self.rewrite_uri(item, target, tenant_id=tenant_id)
                if is_at_uri(item)
                else item
                for item in field_value
            ]
        return field_value


def rewrite_record_payload(
    registry: NamespaceRegistry,
    collection_id: str,
    value: dict[str, Any],
    target: Namespace,
    *,
    tenant_id: str | None = None,
) -> dict[str, Any]:
    """Functional shortcut for RecordRewriter(registry).rewrite(...)."""
    return RecordRewriter(registry).rewrite(collection_id, value, target, tenant_id=tenant_id)


__all__ = [
    "COLLECTION_REFERENCE_FIELDS",
    "RecordRewriter",
    "rewrite_record_payload",
]
