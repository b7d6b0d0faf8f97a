"""
sporesite - Site records and per-tenant namespace migration for spores.garden.

This library provides:
- Namespace registry for the ``garden.spores.*`` and ``coop.hypha.spores.*`` collections
- Record models, AT URIs and the namespace payload rewriter
- Record stores: in-memory and XRPC (AT Protocol PDS) backends
- Per-tenant migration coordinator with pagination-safe listing
- Dual-namespace load resolver and page-level site loader
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("sporesite")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from sporesite.config import (
    MIGRATION_FLAG_ENV_VAR,
    NamespaceRolloutConfig,
    parse_migration_flag,
)
from sporesite.exceptions import (
    InvalidAtUriError,
    NotAuthenticatedError,
    RecordStoreError,
    SporeSiteError,
    UnknownCollectionKeyError,
)

# Migration
from sporesite.migration import (
    CURRENT_MIGRATION_VERSION,
    DualNamespaceLoadResolver,
    LegacySectionsMigrator,
    ListerConfig,
    LoadedConfig,
    MigrationConfig,
    MigrationError,
    MigrationPhase,
    MigrationResult,
    NamespaceMigrationCoordinator,
    PaginatedCollectionLister,
)

# Namespaces
from sporesite.namespaces import (
    CONFIG_RKEY,
    CollectionKey,
    CollectionShape,
    Namespace,
    NamespaceRegistry,
)

# Records
from sporesite.records import (
    AtUri,
    Record,
    RecordRewriter,
    default_site_config,
    rewrite_record_payload,
)

# Session
from sporesite.session import Session, StaticSession, is_owner, site_owner_scope

# Site
from sporesite.site import LoadedSite, SiteLoader

# Stores
from sporesite.stores import (
    InMemoryRecordStore,
    ListOptions,
    ListPage,
    RecordStore,
    XrpcRecordStore,
)

__all__ = [
    "__version__",
    # Config
    "MIGRATION_FLAG_ENV_VAR",
    "NamespaceRolloutConfig",
    "parse_migration_flag",
    # Exceptions
    "InvalidAtUriError",
    "NotAuthenticatedError",
    "RecordStoreError",
    "SporeSiteError",
    "UnknownCollectionKeyError",
    # Namespaces
    "CONFIG_RKEY",
    "CollectionKey",
    "CollectionShape",
    "Namespace",
    "NamespaceRegistry",
    # Records
    "AtUri",
    "Record",
    "RecordRewriter",
    "default_site_config",
    "rewrite_record_payload",
    # Stores
    "InMemoryRecordStore",
    "ListOptions",
    "ListPage",
    "RecordStore",
    "XrpcRecordStore",
    # Session
    "Session",
    "StaticSession",
    "is_owner",
    "site_owner_scope",
    # Migration
    "CURRENT_MIGRATION_VERSION",
    "DualNamespaceLoadResolver",
    "LegacySectionsMigrator",
    "ListerConfig",
    "LoadedConfig",
    "MigrationConfig",
    "MigrationError",
    "MigrationPhase",
    "MigrationResult",
    "NamespaceMigrationCoordinator",
    "PaginatedCollectionLister",
    # Site
    "LoadedSite",
    "SiteLoader",
]
