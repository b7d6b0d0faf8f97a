"""
Per-tenant collection namespace migration.

Moves a tenant's site records from the ``garden.spores.*`` collections to the
``coop.hypha.spores.*`` collections, one tenant at a time, triggered by that
tenant's own page visits.

Components:
    - PaginatedCollectionLister: Walks a collection's cursor pages with bounds
    - NamespaceMigrationCoordinator: Per-tenant state machine that copies
      records and commits the migration marker
    - DualNamespaceLoadResolver: Finds the active config across namespaces
    - LegacySectionsMigrator: Splits the pre-split inline sections record

Example:
    >>> from sporesite.migration import NamespaceMigrationCoordinator
    >>> coordinator = NamespaceMigrationCoordinator(store, session, registry)
    >>> result = await coordinator.migrate("did:plc:me")
"""

from sporesite.migration.coordinator import NamespaceMigrationCoordinator, marker_of
from sporesite.migration.exceptions import (
    CopyError,
    ErrorClassification,
    ErrorRecoverability,
    ErrorSeverity,
    InvalidPhaseTransitionError,
    LegacySectionsError,
    MarkerWriteError,
    MigrationError,
    classify_exception,
)
from sporesite.migration.legacy_sections import (
    LEGACY_SECTIONS_COLLECTION,
    LegacySectionsMigrator,
    LegacySectionsResult,
    migrate_legacy_sections,
)
from sporesite.migration.lister import PaginatedCollectionLister
from sporesite.migration.models import (
    CURRENT_MIGRATION_VERSION,
    DEFAULT_MAX_PAGES,
    ListerConfig,
    ListResult,
    LoadedConfig,
    MigrationConfig,
    MigrationPhase,
    MigrationResult,
    SkipReason,
)
from sporesite.migration.resolver import DualNamespaceLoadResolver

__all__ = [
    # Models
    "CURRENT_MIGRATION_VERSION",
    "DEFAULT_MAX_PAGES",
    "ListerConfig",
    "ListResult",
    "LoadedConfig",
    "MigrationConfig",
    "MigrationPhase",
    "MigrationResult",
    "SkipReason",
    # Exceptions
    "CopyError",
    "ErrorClassification",
    "ErrorRecoverability",
    "ErrorSeverity",
    "InvalidPhaseTransitionError",
    "LegacySectionsError",
    "MarkerWriteError",
    "MigrationError",
    "classify_exception",
    # Components
    "DualNamespaceLoadResolver",
    "LegacySectionsMigrator",
    "LegacySectionsResult",
    "LEGACY_SECTIONS_COLLECTION",
    "NamespaceMigrationCoordinator",
    "PaginatedCollectionLister",
    "marker_of",
    "migrate_legacy_sections",
]
