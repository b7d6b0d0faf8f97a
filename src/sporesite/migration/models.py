"""
Data models for the per-tenant namespace migration.

Enums:
    - MigrationPhase: Migration run state machine
    - SkipReason: Why a run finished without writing

Configuration:
    - MigrationConfig: Marker version and copy behaviour
    - ListerConfig: Pagination bounds

Results:
    - ListResult: Everything one paginated listing returned
    - MigrationResult: Outcome of one migration run
    - LoadedConfig: Active configuration found by the load resolver
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from sporesite.records.models import MIGRATION_MARKER_FIELD
from sporesite.stores.interface import DEFAULT_PAGE_SIZE

if TYPE_CHECKING:
    from sporesite.migration.exceptions import ErrorClassification
    from sporesite.namespaces.registry import Namespace
    from sporesite.records.models import Record

CURRENT_MIGRATION_VERSION = 1
"""Marker value written once a tenant's records are in the new namespace."""

DEFAULT_MAX_PAGES = 200


class MigrationPhase(Enum):
    """
    Migration run phases.

    State machine transitions:
        NOT_STARTED -> AUTHORIZED_CHECK -> MARKER_CHECK -> COPYING -> FINALIZING -> DONE
                              |                 |            |
                              +-> DONE          +-> DONE     +-> DONE
        Any non-terminal phase -------------------------------------------> ABORTED

    The early exits to DONE are the expected no-op outcomes: the viewer is
    not the tenant, the marker is already current, or there was nothing to
    copy.

    Attributes:
        NOT_STARTED: Run created but not started.
        AUTHORIZED_CHECK: Checking the viewer owns the tenant's repo.
        MARKER_CHECK: Reading the new-namespace config for the marker.
        COPYING: Copying records collection by collection.
        FINALIZING: Writing the config record carrying the marker.
        DONE: Run finished, with or without writes.
        ABORTED: Run stopped on an error; the marker was not written.
    """

    NOT_STARTED = "not_started"
    AUTHORIZED_CHECK = "authorized_check"
    MARKER_CHECK = "marker_check"
    COPYING = "copying"
    FINALIZING = "finalizing"
    DONE = "done"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        """
        Check if this is a terminal phase.

        Returns:
            True for DONE and ABORTED.
        """
        return self in (MigrationPhase.DONE, MigrationPhase.ABORTED)

    def can_transition_to(self, target: MigrationPhase) -> bool:
        """
        Check if transition to target phase is valid.

        Args:
            target: The target phase to transition to.

        Returns:
            True if the transition is valid.
        """
        if self.is_terminal:
            return False

        if target is MigrationPhase.ABORTED:
            return True

        valid_transitions: dict[MigrationPhase, list[MigrationPhase]] = {
            MigrationPhase.NOT_STARTED: [MigrationPhase.AUTHORIZED_CHECK],
            MigrationPhase.AUTHORIZED_CHECK: [MigrationPhase.MARKER_CHECK, MigrationPhase.DONE],
            MigrationPhase.MARKER_CHECK: [MigrationPhase.COPYING, MigrationPhase.DONE],
            MigrationPhase.COPYING: [MigrationPhase.FINALIZING, MigrationPhase.DONE],
            MigrationPhase.FINALIZING: [MigrationPhase.DONE],
        }

        return target in valid_transitions.get(self, [])


class SkipReason(Enum):
    """Why a run reached DONE without writing anything."""

    NOT_OWNER = "not_owner"
    """Viewer is signed out or signed in as someone else."""

    ALREADY_MIGRATED = "already_migrated"
    """New-namespace config already carries a current marker."""

    NOTHING_TO_MIGRATE = "nothing_to_migrate"
    """No old-namespace records and no config in either namespace."""


@dataclass(frozen=True)
class MigrationConfig:
    """
    Configuration for namespace migration runs.

    Attributes:
        current_version: Marker value a finished run writes. A config whose
            marker is at least this value is treated as migrated.
        marker_field: Field on the config record holding the marker
        skip_existing: Skip list-collection record keys already present in
            the new namespace instead of overwriting them
        fetch_configs_concurrently: Read the new and old config records in
            parallel during the marker check
    """

    current_version: int = CURRENT_MIGRATION_VERSION
    marker_field: str = MIGRATION_MARKER_FIELD
    skip_existing: bool = False
    fetch_configs_concurrently: bool = True

    def __post_init__(self) -> None:
        if self.current_version < 1:
            raise ValueError(f"current_version must be >= 1, got {self.current_version}")
        if not self.marker_field:
            raise ValueError("marker_field must not be empty")


@dataclass(frozen=True)
class ListerConfig:
    """
    Pagination bounds for listing a collection.

    Attributes:
        page_size: Records requested per page
        max_pages: Hard ceiling on pages fetched for one collection
    """

    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {self.max_pages}")


@dataclass(frozen=True)
class ListResult:
    """
    Everything one paginated listing returned.

    Attributes:
        collection: Collection that was listed
        records: Records accumulated across pages
        pages: Number of pages fetched
        truncated: True when the listing stopped before the store said it was done
    """

    collection: str
    records: list[Record] = field(default_factory=list)
    pages: int = 0
    truncated: bool = False


@dataclass
class MigrationResult:
    """
    Outcome of one migration run for one tenant.

    Attributes:
        tenant_id: Tenant the run targeted
        phase: Final phase (DONE or ABORTED)
        phases: Every phase the run entered, in order
        records_written: Records written to the new namespace, marker included
        keys_skipped: Collection keys with no old-namespace data
        truncated_collections: Collections whose listing hit a pagination bound
        marker_version: Marker value written, or found when already migrated
        skip_reason: Set when the run finished without writing
        error: Error message when the run aborted
        error_classification: Structured classification of that error
        duration_seconds: Wall-clock duration of the run
    """

    tenant_id: str
    phase: MigrationPhase = MigrationPhase.NOT_STARTED
    phases: list[MigrationPhase] = field(default_factory=lambda: [MigrationPhase.NOT_STARTED])
    records_written: int = 0
    keys_skipped: list[str] = field(default_factory=list)
    truncated_collections: list[str] = field(default_factory=list)
    marker_version: int | None = None
    skip_reason: SkipReason | None = None
    error: str | None = None
    error_classification: ErrorClassification | None = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.phase is MigrationPhase.DONE

    @property
    def was_noop(self) -> bool:
        """True when the run finished without writing anything."""
        return self.succeeded and self.records_written == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for logging."""
        return {
            "tenant_id": self.tenant_id,
            "phase": self.phase.value,
            "phases": [p.value for p in self.phases],
            "records_written": self.records_written,
            "keys_skipped": list(self.keys_skipped),
            "truncated_collections": list(self.truncated_collections),
            "marker_version": self.marker_version,
            "skip_reason": self.skip_reason.value if self.skip_reason else None,
            "error": self.error,
            "error_classification": (
                self.error_classification.to_dict() if self.error_classification else None
            ),
            "duration_seconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class LoadedConfig:
    """
    Configuration located by the dual-namespace load resolver.

    Attributes:
        namespace: Namespace the records were found in
        config: Site config record, if present
        layout: Site layout record, if present
    """

    namespace: Namespace
    config: Record | None = None
    layout: Record | None = None


__all__ = [
    "CURRENT_MIGRATION_VERSION",
    "DEFAULT_MAX_PAGES",
    "ListResult",
    "ListerConfig",
    "LoadedConfig",
    "MigrationConfig",
    "MigrationPhase",
    "MigrationResult",
    "SkipReason",
]
