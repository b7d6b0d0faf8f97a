"""
Site loading.

Example:
    >>> from sporesite.site import SiteLoader
    >>> site = await SiteLoader(store, session, registry).load("did:plc:someone")
"""

from sporesite.site.loader import LoadedSite, SiteLoader, migration_settled

__all__ = ["LoadedSite", "SiteLoader", "migration_settled"]
