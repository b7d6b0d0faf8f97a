"""
AT URI value type.

Record URIs have the shape ``at://<repo>/<collection>/<rkey>``, where the repo
is the tenant DID. Only the collection segment ever changes during a
namespace migration; the repo and record key are carried through untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from sporesite.exceptions import InvalidAtUriError

if TYPE_CHECKING:
    from sporesite.records.models import Record

AT_URI_SCHEME = "at://"


@dataclass(frozen=True)
class AtUri:
    """
    Parsed ``at://repo/collection/rkey`` record pointer.

    Attributes:
        repo: Tenant DID owning the record
        collection: Collection NSID
        rkey: Record key within the collection

    Example:
        >>> uri = AtUri.parse("at://did:plc:abc/coop.hypha.spores.site.section/3k2")
        >>> uri.rkey
        '3k2'
        >>> str(uri.with_collection("garden.spores.site.section"))
        'at://did:plc:abc/garden.spores.site.section/3k2'
    """

    repo: str
    collection: str
    rkey: str

    @classmethod
    def parse(cls, value: str) -> AtUri:
        """
        Parse a record URI.

        Raises:
            InvalidAtUriError: If the value is not a three-segment at:// URI
        """
        if not isinstance(value, str) or not value.startswith(AT_URI_SCHEME):
            raise InvalidAtUriError(str(value))
        parts = value[len(AT_URI_SCHEME) :].split("/")
        if len(parts) != 3 or not all(parts):
            raise InvalidAtUriError(value)
        return cls(repo=parts[0], collection=parts[1], rkey=parts[2])

    @classmethod
    def build(cls, repo: str, collection: str, rkey: str) -> AtUri:
        return cls(repo=repo, collection=collection, rkey=rkey)

    def with_collection(self, collection: str) -> AtUri:
        """Copy of this URI pointing at another collection, same repo and key."""
        return replace(self, collection=collection)

    def __str__(self) -> str:
        return f"{AT_URI_SCHEME}{self.repo}/{self.collection}/{self.rkey}"


def is_at_uri(value: Any) -> bool:
    """True if value is a string that parses as a record URI."""
    if not isinstance(value, str) or not value.startswith(AT_URI_SCHEME):
        return False
    try:
        AtUri.parse(value)
    except InvalidAtUriError:
        return False
    return True


def rkey_of(record: Record | dict[str, Any] | None) -> str | None:
    """
    Derive a record key from a record's own URI.

    Accepts a Record model or a raw ``{"uri": ..., "value": ...}`` mapping.
    Returns None when the URI is missing or malformed.
    """
    if record is None:
        return None
    uri = record.get("uri") if isinstance(record, dict) else record.uri
    if not isinstance(uri, str):
        return None
    try:
        return AtUri.parse(uri).rkey
    except InvalidAtUriError:
        return None


__all__ = ["AT_URI_SCHEME", "AtUri", "is_at_uri", "rkey_of"]
