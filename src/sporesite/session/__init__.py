"""
Session identity and page-level site owner context.

Example:
    >>> from sporesite.session import StaticSession, is_owner
    >>> is_owner(StaticSession("did:plc:me"), "did:plc:me")
    True
"""

from sporesite.session.context import (
    clear_site_owner,
    get_required_site_owner,
    get_site_owner,
    set_site_owner,
    site_owner_context,
    site_owner_scope,
    site_owner_scope_sync,
)
from sporesite.session.exceptions import SiteOwnerNotSetError
from sporesite.session.identity import (
    ANONYMOUS,
    Session,
    StaticSession,
    is_owner,
)

__all__ = [
    # Identity
    "ANONYMOUS",
    "Session",
    "StaticSession",
    "is_owner",
    # Context
    "site_owner_context",
    "get_site_owner",
    "get_required_site_owner",
    "set_site_owner",
    "clear_site_owner",
    "site_owner_scope",
    "site_owner_scope_sync",
    # Exceptions
    "SiteOwnerNotSetError",
]
