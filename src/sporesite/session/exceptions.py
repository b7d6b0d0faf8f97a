"""
Site-owner context exceptions.

- SiteOwnerNotSetError: Raised when the page-level site owner is required but not set
"""

from __future__ import annotations

from sporesite.exceptions import SporeSiteError


class SiteOwnerNotSetError(SporeSiteError):
    """
    Raised when the site owner context is required but not set.

    Solution: wrap page rendering in site_owner_scope() (or call
    set_site_owner()) before code that reads the ambient owner.

    Example:
        >>> from sporesite.session import get_required_site_owner
        >>> try:
        ...     owner = get_required_site_owner()
        ... except SiteOwnerNotSetError:
        ...     print("No site owner set")
        No site owner set
    """

    def __init__(self) -> None:
        super().__init__(
            "No site owner set. Use set_site_owner() or site_owner_scope() "
            "before rendering a site."
        )


__all__ = ["SiteOwnerNotSetError"]
