"""
Rollout configuration for the collection namespace migration.

The only external configuration surface is a single environment string that
switches the site between the legacy ``garden.spores.*`` collections and the
``coop.hypha.spores.*`` collections. It is parsed with a tolerant predicate so
deploy tooling can use whichever truthy spelling it prefers.

Example:
    >>> config = NamespaceRolloutConfig.from_env({"SPORES_NSID_MIGRATION_ENABLED": "yes"})
    >>> config.migration_enabled
    True
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MIGRATION_FLAG_ENV_VAR = "SPORES_NSID_MIGRATION_ENABLED"

TRUTHY_FLAG_VALUES = frozenset({"true", "1", "yes", "on"})


def parse_migration_flag(value: str | None) -> bool:
    """
    Parse the rollout flag from an environment-style string.

    Any of ``true``, ``1``, ``yes`` or ``on`` (case-insensitive, surrounding
    whitespace ignored) enables the flag. Everything else, including None and
    the empty string, disables it.

    Args:
        value: Raw flag value, or None when the variable is unset

    Returns:
        True if the flag is enabled
    """
    if not value:
        return False
    return value.strip().lower() in TRUTHY_FLAG_VALUES


@dataclass(frozen=True)
class NamespaceRolloutConfig:
    """
    Rollout state for the namespace migration.

    Attributes:
        migration_enabled: When True, writes go to the new namespace and
            reads check new before old. When False, only the old namespace
            is read and written.
    """

    migration_enabled: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> NamespaceRolloutConfig:
        """
        Build the rollout config from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            NamespaceRolloutConfig reflecting SPORES_NSID_MIGRATION_ENABLED
        """
        env = os.environ if environ is None else environ
        enabled = parse_migration_flag(env.get(MIGRATION_FLAG_ENV_VAR))
        logger.debug("Namespace migration rollout flag: %s", enabled)
        return cls(migration_enabled=enabled)


__all__ = [
    "MIGRATION_FLAG_ENV_VAR",
    "TRUTHY_FLAG_VALUES",
    "NamespaceRolloutConfig",
    "parse_migration_flag",
]
