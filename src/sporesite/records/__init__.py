"""
Records stored in a tenant's repo.

- AtUri: parsed ``at://repo/collection/rkey`` pointers
- Record and per-collection payload models
- RecordRewriter: moves payloads between collection namespaces
- TidGenerator: sortable record keys for new records
"""

from sporesite.records.models import (
    DEFAULT_SITE_TITLE,
    MIGRATION_MARKER_FIELD,
    TYPE_FIELD,
    VALUE_MODELS,
    ContentTextValue,
    Record,
    RecordValue,
    SiteConfigValue,
    SiteLayoutValue,
    SiteProfileValue,
    SiteSectionValue,
    SpecialSporeValue,
    default_site_config,
    parse_value,
)
from sporesite.records.rewriter import (
    COLLECTION_REFERENCE_FIELDS,
    RecordRewriter,
    rewrite_record_payload,
)
from sporesite.records.tid import TID_ALPHABET, TID_LENGTH, TidGenerator, encode_tid
from sporesite.records.uri import AT_URI_SCHEME, AtUri, is_at_uri, rkey_of

__all__ = [
    # URIs
    "AT_URI_SCHEME",
    "AtUri",
    "is_at_uri",
    "rkey_of",
    # Models
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
    # Rewriting
    "COLLECTION_REFERENCE_FIELDS",
    "RecordRewriter",
    "rewrite_record_payload",
    # Record keys
    "TID_ALPHABET",
    "TID_LENGTH",
    "TidGenerator",
    "encode_tid",
]
