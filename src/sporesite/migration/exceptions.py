"""
Migration exceptions and error classification.

Exception Hierarchy:
    MigrationError (base)
    +-- InvalidPhaseTransitionError
    +-- CopyError
    +-- MarkerWriteError
    +-- LegacySectionsError

Error Classification System:
    - ErrorSeverity: CRITICAL, ERROR, WARNING, INFO levels
    - ErrorRecoverability: RECOVERABLE, TRANSIENT, FATAL categories
    - ErrorClassification: Metadata recorded on an aborted MigrationResult

Migration runs never re-raise: the coordinator catches, classifies with
classify_exception() and records the classification on its result. A
TRANSIENT classification means the next page visit will retry the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from sporesite.exceptions import NotAuthenticatedError, RecordStoreError, SporeSiteError

if TYPE_CHECKING:
    from sporesite.migration.models import MigrationPhase


class ErrorSeverity(Enum):
    """
    Severity level of migration errors.

    Attributes:
        CRITICAL: Data could be wrong; needs attention.
        ERROR: The run failed and will not fix itself.
        WARNING: The run failed but will likely succeed on a later visit.
        INFO: Informational condition, not a failure.
    """

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def should_alert(self) -> bool:
        return self in (ErrorSeverity.CRITICAL, ErrorSeverity.ERROR)

    @property
    def log_level(self) -> int:
        """
        Get the corresponding Python logging level.

        Returns:
            Python logging level constant.
        """
        level_map = {
            ErrorSeverity.CRITICAL: logging.CRITICAL,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.INFO: logging.INFO,
        }
        return level_map[self]


class ErrorRecoverability(Enum):
    """
    Recoverability classification for migration errors.

    Attributes:
        RECOVERABLE: Needs a change outside the run (sign in, fix data).
        TRANSIENT: May resolve on its own; the next visit retries.
        FATAL: A bug; retrying will fail the same way.
    """

    RECOVERABLE = "recoverable"
    TRANSIENT = "transient"
    FATAL = "fatal"

    @property
    def should_retry(self) -> bool:
        return self == ErrorRecoverability.TRANSIENT


@dataclass(frozen=True)
class ErrorClassification:
    """
    Rich metadata for error classification.

    Attributes:
        severity: The severity level of the error.
        recoverability: How the error can be recovered from.
        error_code: Unique error code for programmatic handling.
        category: Error category for grouping related errors.
        suggested_action: Human-readable guidance for operators.

    Example:
        >>> classification = ErrorClassification(
        ...     severity=ErrorSeverity.WARNING,
        ...     recoverability=ErrorRecoverability.TRANSIENT,
        ...     error_code="RECORD_STORE_UNAVAILABLE",
        ...     category="store",
        ...     suggested_action="Check PDS availability",
        ... )
    """

    severity: ErrorSeverity
    recoverability: ErrorRecoverability
    error_code: str
    category: str
    suggested_action: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity.value,
            "recoverability": self.recoverability.value,
            "error_code": self.error_code,
            "category": self.category,
            "suggested_action": self.suggested_action,
        }


STORE_FAILURE_CLASSIFICATION = ErrorClassification(
    severity=ErrorSeverity.WARNING,
    recoverability=ErrorRecoverability.TRANSIENT,
    error_code="RECORD_STORE_FAILURE",
    category="store",
    suggested_action="The run is retried on the tenant's next visit; check PDS availability if it persists",
)

NOT_AUTHENTICATED_CLASSIFICATION = ErrorClassification(
    severity=ErrorSeverity.WARNING,
    recoverability=ErrorRecoverability.RECOVERABLE,
    error_code="NOT_AUTHENTICATED",
    category="session",
    suggested_action="The session expired mid-run; the tenant must sign in again",
)

UNKNOWN_CLASSIFICATION = ErrorClassification(
    severity=ErrorSeverity.ERROR,
    recoverability=ErrorRecoverability.FATAL,
    error_code="UNKNOWN_ERROR",
    category="unknown",
    suggested_action="An unexpected error occurred. Review logs.",
)


class MigrationError(SporeSiteError):
    """
    Base exception for migration errors.

    Attributes:
        message: Human-readable error description.
        tenant_id: The tenant involved, if applicable.
        suggested_action: Suggested action for recovery.
    """

    _default_classification: ErrorClassification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.FATAL,
        error_code="MIGRATION_ERROR",
        category="general",
        suggested_action="Review migration logs",
    )

    def __init__(
        self,
        message: str,
        *,
        tenant_id: str | None = None,
        suggested_action: str | None = None,
    ) -> None:
        self.message = message
        self.tenant_id = tenant_id
        self.suggested_action = suggested_action
        super().__init__(message)

    def __str__(self) -> str:
        if self.tenant_id:
            return f"{self.message} tenant_id={self.tenant_id}"
        return self.message

    @property
    def classification(self) -> ErrorClassification:
        return self._default_classification

    @property
    def severity(self) -> ErrorSeverity:
        return self.classification.severity

    @property
    def error_code(self) -> str:
        return self.classification.error_code

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "message": self.message,
            "tenant_id": self.tenant_id,
            "error_code": self.error_code,
            "classification": self.classification.to_dict(),
        }


class InvalidPhaseTransitionError(MigrationError):
    """
    Raised when a run attempts a transition the state machine forbids.

    Attributes:
        current_phase: The phase the run was in.
        target_phase: The phase that was attempted.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.CRITICAL,
        recoverability=ErrorRecoverability.FATAL,
        error_code="INVALID_PHASE_TRANSITION",
        category="state",
        suggested_action="Review the migration state machine; this is a bug",
    )

    def __init__(
        self,
        tenant_id: str,
        current_phase: MigrationPhase,
        target_phase: MigrationPhase,
    ) -> None:
        self.current_phase = current_phase
        self.target_phase = target_phase
        super().__init__(
            f"Invalid phase transition: {current_phase.value} -> {target_phase.value}",
            tenant_id=tenant_id,
        )


class CopyError(MigrationError):
    """
    Raised when copying one collection into the new namespace fails.

    The classification follows the underlying cause, so a store outage
    stays TRANSIENT while a bug stays FATAL.

    Attributes:
        collection: Source collection being copied
        rkey: Record key being written, if the failure was on a write
        cause: The underlying exception
    """

    def __init__(
        self,
        tenant_id: str,
        collection: str,
        cause: Exception,
        *,
        rkey: str | None = None,
    ) -> None:
        self.collection = collection
        self.rkey = rkey
        self.cause = cause
        where = f"{collection}/{rkey}" if rkey else collection
        super().__init__(f"Failed to copy {where}: {cause}", tenant_id=tenant_id)

    @property
    def classification(self) -> ErrorClassification:
        return classify_exception(self.cause)


class MarkerWriteError(MigrationError):
    """
    Raised when writing the config record carrying the marker fails.

    Every record was copied but the run is not committed; the next visit
    redoes the copy and retries the marker.
    """

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.WARNING,
        recoverability=ErrorRecoverability.TRANSIENT,
        error_code="MARKER_WRITE_FAILED",
        category="store",
        suggested_action="The copy is redone on the tenant's next visit",
    )

    def __init__(self, tenant_id: str, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"Failed to write migration marker: {cause}", tenant_id=tenant_id)


class LegacySectionsError(MigrationError):
    """Raised when upgrading the pre-split sections record fails part way."""

    _default_classification = ErrorClassification(
        severity=ErrorSeverity.ERROR,
        recoverability=ErrorRecoverability.RECOVERABLE,
        error_code="LEGACY_SECTIONS_FAILED",
        category="legacy",
        suggested_action=(
            "The legacy sections record is kept; section records created before "
            "the failure may be duplicated on retry"
        ),
    )

    def __init__(self, tenant_id: str, cause: Exception, *, sections_created: int = 0) -> None:
        self.cause = cause
        self.sections_created = sections_created
        super().__init__(
            f"Legacy sections upgrade failed after {sections_created} section(s): {cause}",
            tenant_id=tenant_id,
        )


def classify_exception(exc: BaseException) -> ErrorClassification:
    """
    Classify any exception and return its error classification.

    MigrationError subclasses carry their own classification. Store failures
    are transient, a lost session is recoverable, anything else is fatal.

    Args:
        exc: The exception to classify.

    Returns:
        ErrorClassification for the exception.
    """
    if isinstance(exc, MigrationError):
        return exc.classification
    if isinstance(exc, NotAuthenticatedError):
        return NOT_AUTHENTICATED_CLASSIFICATION
    if isinstance(exc, RecordStoreError):
        return STORE_FAILURE_CLASSIFICATION
    return UNKNOWN_CLASSIFICATION


__all__ = [
    "ErrorSeverity",
    "ErrorRecoverability",
    "ErrorClassification",
    "MigrationError",
    "InvalidPhaseTransitionError",
    "CopyError",
    "MarkerWriteError",
    "LegacySectionsError",
    "classify_exception",
]
