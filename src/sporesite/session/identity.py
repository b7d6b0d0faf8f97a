"""
Identity boundary.

Sign-in itself (OAuth, token refresh) lives outside this package. All the
site needs from it is whether someone is signed in and which tenant they are.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Session(Protocol):
    """Read-only view of the viewer's authenticated session."""

    def is_authenticated(self) -> bool: ...

    def current_tenant(self) -> str | None: ...


@dataclass(frozen=True)
class StaticSession:
    """
    Session with a fixed identity.

    Example:
        >>> StaticSession("did:plc:me").current_tenant()
        'did:plc:me'
        >>> StaticSession().is_authenticated()
        False
    """

    tenant_id: str | None = None

    def is_authenticated(self) -> bool:
        return self.tenant_id is not None

    def current_tenant(self) -> str | None:
        return self.tenant_id


ANONYMOUS = StaticSession()


def is_owner(session: Session | None, tenant_id: str) -> bool:
    """
    Whether the session is signed in as exactly this tenant.

    This is the gate in front of every write into a tenant's repo.
    """
    if session is None or not session.is_authenticated():
        return False
    return session.current_tenant() == tenant_id


__all__ = ["ANONYMOUS", "Session", "StaticSession", "is_owner"]
