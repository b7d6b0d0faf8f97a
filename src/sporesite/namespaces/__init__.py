"""
Collection namespaces for sporesite records.

Exports the registry that maps semantic collection keys to concrete
collection ids in the old (``garden.spores.*``) and new
(``coop.hypha.spores.*``) namespaces.
"""

from sporesite.namespaces.registry import (
    COLLECTION_IDS,
    CONFIG_RKEY,
    NEW_NSID_PREFIX,
    OLD_NSID_PREFIX,
    CollectionKey,
    CollectionShape,
    Namespace,
    NamespaceRegistry,
)

__all__ = [
    "COLLECTION_IDS",
    "CONFIG_RKEY",
    "NEW_NSID_PREFIX",
    "OLD_NSID_PREFIX",
    "CollectionKey",
    "CollectionShape",
    "Namespace",
    "NamespaceRegistry",
]
