"""
Namespace registry: semantic collection keys to concrete collection ids.

Every category of site data has a namespace-independent key (``siteConfig``,
``siteSection``...) and one concrete NSID per namespace. The registry is the
only place that knows those strings; everything else asks it.

Example:
    >>> registry = NamespaceRegistry(NamespaceRolloutConfig(migration_enabled=True))
    >>> registry.collection_id_for(CollectionKey.SITE_CONFIG, Namespace.NEW)
    'coop.hypha.spores.site.config'
    >>> registry.read_namespaces()
    [<Namespace.NEW: 'new'>, <Namespace.OLD: 'old'>]
"""

from __future__ import annotations

from enum import Enum

from sporesite.config import NamespaceRolloutConfig
from sporesite.exceptions import UnknownCollectionKeyError

CONFIG_RKEY = "self"
"""Fixed record key used by every singleton collection."""

OLD_NSID_PREFIX = "garden.spores."
NEW_NSID_PREFIX = "coop.hypha.spores."


class Namespace(Enum):
    """The two parallel naming schemes for site collections."""

    OLD = "old"
    NEW = "new"


class CollectionShape(Enum):
    """
    How many records a collection holds per tenant.

    Attributes:
        SINGLETON: Exactly one record at the fixed key ``self``.
        LIST: Any number of records at caller-chosen keys.
    """

    SINGLETON = "singleton"
    LIST = "list"


class CollectionKey(Enum):
    """Semantic collection keys, stable across namespaces."""

    SITE_CONFIG = "siteConfig"
    SITE_LAYOUT = "siteLayout"
    SITE_SECTION = "siteSection"
    SITE_PROFILE = "siteProfile"
    CONTENT_TEXT = "contentText"
    ITEM_SPECIAL_SPORE = "itemSpecialSpore"

    @property
    def shape(self) -> CollectionShape:
        """Singleton or list, per collection key."""
        return _SHAPES[self]

    @property
    def is_singleton(self) -> bool:
        return self.shape is CollectionShape.SINGLETON


_SHAPES: dict[CollectionKey, CollectionShape] = {
    CollectionKey.SITE_CONFIG: CollectionShape.SINGLETON,
    CollectionKey.SITE_LAYOUT: CollectionShape.SINGLETON,
    CollectionKey.SITE_PROFILE: CollectionShape.SINGLETON,
    CollectionKey.SITE_SECTION: CollectionShape.LIST,
    CollectionKey.CONTENT_TEXT: CollectionShape.LIST,
    CollectionKey.ITEM_SPECIAL_SPORE: CollectionShape.LIST,
}

# NSID suffix shared by both namespaces
_SUFFIXES: dict[CollectionKey, str] = {
    CollectionKey.SITE_CONFIG: "site.config",
    CollectionKey.SITE_LAYOUT: "site.layout",
    CollectionKey.SITE_SECTION: "site.section",
    CollectionKey.SITE_PROFILE: "site.profile",
    CollectionKey.CONTENT_TEXT: "content.text",
    CollectionKey.ITEM_SPECIAL_SPORE: "item.specialSpore",
}

_PREFIXES: dict[Namespace, str] = {
    Namespace.OLD: OLD_NSID_PREFIX,
    Namespace.NEW: NEW_NSID_PREFIX,
}

COLLECTION_IDS: dict[CollectionKey, dict[Namespace, str]] = {
    key: {ns: f"{prefix}{suffix}" for ns, prefix in _PREFIXES.items()}
    for key, suffix in _SUFFIXES.items()
}

# Reverse index: concrete collection id -> (key, namespace)
_BY_COLLECTION_ID: dict[str, tuple[CollectionKey, Namespace]] = {
    collection_id: (key, ns)
    for key, by_ns in COLLECTION_IDS.items()
    for ns, collection_id in by_ns.items()
}


def _coerce_key(key: CollectionKey | str) -> CollectionKey:
    if isinstance(key, CollectionKey):
        return key
    try:
        return CollectionKey(key)
    except ValueError:
        raise UnknownCollectionKeyError(str(key)) from None


class NamespaceRegistry:
    """
    Maps (collection key, namespace) pairs to collection ids.

    The collection tables are fixed; the only instance state is the rollout
    config, which decides the write namespace and the read order.

    Args:
        rollout: Rollout config (defaults to migration disabled)
    """

    def __init__(self, rollout: NamespaceRolloutConfig | None = None) -> None:
        self._rollout = rollout or NamespaceRolloutConfig()

    @property
    def migration_enabled(self) -> bool:
        return self._rollout.migration_enabled

    @property
    def collection_keys(self) -> list[CollectionKey]:
        """All known collection keys in migration order."""
        return list(CollectionKey)

    def collection_id_for(
        self,
        key: CollectionKey | str,
        namespace: Namespace,
    ) -> str:
        """
        Resolve a semantic key to the concrete collection id for a namespace.

        Args:
            key: Collection key (enum member or its string value)
            namespace: Namespace selector

        Returns:
            The collection NSID

        Raises:
            UnknownCollectionKeyError: If the key is not registered
        """
        return COLLECTION_IDS[_coerce_key(key)][namespace]

    def collections(self, namespace: Namespace) -> dict[CollectionKey, str]:
        """Every collection id of one namespace, keyed by collection key."""
        return {key: by_ns[namespace] for key, by_ns in COLLECTION_IDS.items()}

    def is_known_collection(self, collection_id: str) -> bool:
        return collection_id in _BY_COLLECTION_ID

    def semantic_key_of(self, collection_id: str) -> CollectionKey:
        """
        Find the semantic key for a concrete collection id of either namespace.

        Raises:
            UnknownCollectionKeyError: If the id belongs to neither namespace
        """
        try:
            return _BY_COLLECTION_ID[collection_id][0]
        except KeyError:
            raise UnknownCollectionKeyError(collection_id) from None

    def namespace_of(self, collection_id: str) -> Namespace:
        """
        Find which namespace a concrete collection id belongs to.

        Raises:
            UnknownCollectionKeyError: If the id belongs to neither namespace
        """
        try:
            return _BY_COLLECTION_ID[collection_id][1]
        except KeyError:
            raise UnknownCollectionKeyError(collection_id) from None

    def map_collection_to_namespace(self, collection_id: str, namespace: Namespace) -> str:
        """
        Translate a collection id into its counterpart in another namespace.

        Collection ids outside the registry (for example ``app.bsky.feed.post``)
        are returned unchanged, since cross-references may point at any lexicon.
        """
        entry = _BY_COLLECTION_ID.get(collection_id)
        if entry is None:
            return collection_id
        return COLLECTION_IDS[entry[0]][namespace]

    def write_namespace(self) -> Namespace:
        """The namespace new writes go to."""
        return Namespace.NEW if self.migration_enabled else Namespace.OLD

    def read_namespaces(self) -> list[Namespace]:
        """Namespaces to check on reads, most preferred first."""
        if self.migration_enabled:
            return [Namespace.NEW, Namespace.OLD]
        return [Namespace.OLD]


__all__ = [
    "CONFIG_RKEY",
    "COLLECTION_IDS",
    "NEW_NSID_PREFIX",
    "OLD_NSID_PREFIX",
    "CollectionKey",
    "CollectionShape",
    "Namespace",
    "NamespaceRegistry",
]
