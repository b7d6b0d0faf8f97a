"""
Site owner context for page rendering.

The site being rendered belongs to one tenant. Rendering code deep in the
call tree (section renderers, link builders) needs that tenant id, so it is
carried in a ContextVar set once at the page boundary:

- site_owner_context: ContextVar for site owner propagation
- get_site_owner(): Get the site owner (returns None if not set)
- get_required_site_owner(): Get the site owner (raises if not set)
- set_site_owner(): Set the site owner
- clear_site_owner(): Clear the site owner
- site_owner_scope(): Async context manager for a scoped site owner
- site_owner_scope_sync(): Sync context manager for a scoped site owner

Migration and loading code does not read this; those take the tenant id as
an explicit argument.

Example:
    >>> async def render(did):
    ...     async with site_owner_scope(did):
    ...         assert get_site_owner() == did
    ...     assert get_site_owner() is None
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

from sporesite.session.exceptions import SiteOwnerNotSetError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

logger = logging.getLogger(__name__)

# Default is None, indicating no site is being rendered
site_owner_context: ContextVar[str | None] = ContextVar("site_owner_context", default=None)


def get_site_owner() -> str | None:
    """
    Get the tenant id of the site being rendered.

    Returns:
        The owner DID, or None if not set
    """
    return site_owner_context.get()


def get_required_site_owner() -> str:
    """
    Get the site owner, raising if not set.

    Raises:
        SiteOwnerNotSetError: If no site owner is set
    """
    owner = site_owner_context.get()
    if owner is None:
        raise SiteOwnerNotSetError()
    return owner


def set_site_owner(tenant_id: str) -> Token[str | None]:
    """
    Set the site owner in the current context.

    Returns:
        Token that can be passed to site_owner_context.reset()

    Note:
        Prefer site_owner_scope() for automatic cleanup.
    """
    logger.debug("Site owner set: %s", tenant_id)
    return site_owner_context.set(tenant_id)


def clear_site_owner() -> None:
    logger.debug("Site owner cleared")
    site_owner_context.set(None)


@asynccontextmanager
async def site_owner_scope(tenant_id: str) -> AsyncGenerator[str, None]:
    """
    Async context manager setting the site owner for its body.

    The previous owner is restored on exit, so scopes nest.

    Args:
        tenant_id: Owner DID for this scope

    Yields:
        The tenant id
    """
    token = site_owner_context.set(tenant_id)
    logger.debug("Site owner scope entered: %s", tenant_id)
    try:
        yield tenant_id
    finally:
        site_owner_context.reset(token)
        logger.debug("Site owner scope exited: %s", tenant_id)


@contextmanager
def site_owner_scope_sync(tenant_id: str) -> Generator[str, None, None]:
    """Sync counterpart of site_owner_scope()."""
    token = site_owner_context.set(tenant_id)
    logger.debug("Site owner scope (sync) entered: %s", tenant_id)
    try:
        yield tenant_id
    finally:
        site_owner_context.reset(token)
        logger.debug("Site owner scope (sync) exited: %s", tenant_id)


__all__ = [
    "site_owner_context",
    "get_site_owner",
    "get_required_site_owner",
    "set_site_owner",
    "clear_site_owner",
    "site_owner_scope",
    "site_owner_scope_sync",
]
