"""
Record and payload models for site collections.

Record values are JSON documents owned by the tenant. Each collection key has
a payload model naming the fields the site understands; every model accepts
and preserves fields it does not know about, so a value can round-trip
through validation without losing data written by newer clients.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from sporesite.namespaces.registry import CollectionKey
from sporesite.records.uri import AtUri, rkey_of

TYPE_FIELD = "$type"
"""Type tag field; must equal the record's own collection id."""

MIGRATION_MARKER_FIELD = "nsidMigrationVersion"
"""Integer marker stored on the new-namespace config record."""

DEFAULT_SITE_TITLE = "spores.garden"


class Record(BaseModel):
    """
    A record as returned by the remote store.

    Attributes:
        uri: ``at://repo/collection/rkey`` of the record
        value: The record payload
        cid: Content hash reported by the store, if any
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    value: dict[str, Any] = Field(default_factory=dict)
    cid: str | None = None

    @property
    def at_uri(self) -> AtUri:
        return AtUri.parse(self.uri)

    @property
    def rkey(self) -> str | None:
        return rkey_of(self)

    @property
    def type_tag(self) -> str | None:
        return self.value.get(TYPE_FIELD)


class RecordValue(BaseModel):
    """
    Base payload model.

    Unknown fields pass through untouched (``extra="allow"``); fields are
    declared under their wire names via aliases.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    collection_key: ClassVar[CollectionKey]

    type_tag: str | None = Field(default=None, alias=TYPE_FIELD)

    def to_value(self) -> dict[str, Any]:
        """Serialize back to the wire dictionary, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class SiteConfigValue(RecordValue):
    collection_key = CollectionKey.SITE_CONFIG

    title: str | None = None
    subtitle: str | None = None
    sections: list[Any] | None = None
    theme: dict[str, Any] | None = None
    custom_css: str | None = Field(default=None, alias="customCss")
    migration_version: int | None = Field(default=None, alias=MIGRATION_MARKER_FIELD)


class SiteLayoutValue(RecordValue):
    collection_key = CollectionKey.SITE_LAYOUT

    sections: list[str] = Field(default_factory=list)


class SiteSectionValue(RecordValue):
    collection_key = CollectionKey.SITE_SECTION

    section_type: str | None = Field(default=None, alias="type")
    title: str | None = None
    layout: str | None = None
    collection: str | None = None
    rkey: str | None = None
    ref: str | None = None
    records: list[Any] | None = None
    content: str | None = None
    format: str | None = None
    limit: int | None = None
    hide_header: bool | None = Field(default=None, alias="hideHeader")


class SiteProfileValue(RecordValue):
    collection_key = CollectionKey.SITE_PROFILE

    display_name: str | None = Field(default=None, alias="displayName")
    description: str | None = None
    avatar: Any = None
    banner: Any = None


class ContentTextValue(RecordValue):
    collection_key = CollectionKey.CONTENT_TEXT

    title: str | None = None
    content: str | None = None
    format: str | None = None
    created_at: str | None = Field(default=None, alias="createdAt")


class SpecialSporeValue(RecordValue):
    collection_key = CollectionKey.ITEM_SPECIAL_SPORE

    owner_did: str | None = Field(default=None, alias="ownerDid")
    last_captured_at: str | None = Field(default=None, alias="lastCapturedAt")
    history: list[dict[str, Any]] | None = None


VALUE_MODELS: dict[CollectionKey, type[RecordValue]] = {
    model.collection_key: model
    for model in (
        SiteConfigValue,
        SiteLayoutValue,
        SiteSectionValue,
        SiteProfileValue,
        ContentTextValue,
        SpecialSporeValue,
    )
}


def parse_value(key: CollectionKey, value: dict[str, Any]) -> RecordValue:
    """Validate a raw payload into the model for its collection key."""
    return VALUE_MODELS[key].model_validate(value)


def default_site_config() -> dict[str, Any]:
    """Minimal configuration used when a tenant has no config record."""
    return {"title": DEFAULT_SITE_TITLE, "sections": []}


__all__ = [
    "DEFAULT_SITE_TITLE",
    "MIGRATION_MARKER_FIELD",
    "TYPE_FIELD",
    "VALUE_MODELS",
    "ContentTextValue",
    "Record",
    "RecordValue",
    "SiteConfigValue",
    "SiteLayoutValue",
    "SiteProfileValue",
    "SiteSectionValue",
    "SpecialSporeValue",
    "default_site_config",
    "parse_value",
]
