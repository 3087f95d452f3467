"""Catalog ingestion: turns deserialized prefix groups into an immutable snapshot."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Iterable

from .models import CatalogEntry, CatalogEntryParseFailure, CatalogSnapshot, CommunityEntry, PrefixSpec
from .utils import ParseError, parse_cidr


ENTRY_NAME_KEYS = ("name", "Name")
COMMUNITIES_KEYS = ("communities", "BgpCommunities")
COMMUNITY_NAME_KEYS = ("communityName", "community_name", "CommunityName")
REGION_KEYS = ("region", "ServiceSupportedRegion")
COMMUNITY_VALUE_KEYS = ("communityValue", "community_value", "CommunityValue")
PREFIXES_KEYS = ("prefixes", "CommunityPrefixes")


def _lookup(record: Mapping[str, Any], keys: tuple[str, ...], default: Any = None) -> Any:
    """Return the first present key from a set of accepted spellings."""
    for key in keys:
        if key in record:
            return record[key]
    return default


def _as_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _as_list(value: Any, what: str, owner: str) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise ParseError(f"Expected a list of {what} for {owner}, got: {type(value).__name__}")
    return list(value)


def _build_community(
    entry_name: str,
    raw_community: Any,
    failures: list[CatalogEntryParseFailure],
) -> CommunityEntry:
    """Build a community, skipping and recording prefixes that fail to parse."""
    logger = logging.getLogger(__name__)
    if not isinstance(raw_community, Mapping):
        raise ParseError(f"Community in entry {entry_name} is not a mapping")
    community_name = _as_text(_lookup(raw_community, COMMUNITY_NAME_KEYS))
    prefixes: list[PrefixSpec] = []
    for raw_prefix in _as_list(_lookup(raw_community, PREFIXES_KEYS), "prefixes", entry_name):
        try:
            prefixes.append(parse_cidr(raw_prefix))
        except ParseError as exc:
            logger.warning(
                "Skipping prefix %r in %s/%s: %s",
                raw_prefix,
                entry_name,
                community_name,
                exc,
            )
            failures.append(
                CatalogEntryParseFailure(
                    entry_name=entry_name,
                    community_name=community_name,
                    prefix=str(raw_prefix),
                    reason=str(exc),
                )
            )
    return CommunityEntry(
        community_name=community_name,
        region=_as_text(_lookup(raw_community, REGION_KEYS)),
        community_value=_as_text(_lookup(raw_community, COMMUNITY_VALUE_KEYS)),
        prefixes=tuple(prefixes),
    )


def build_catalog(raw_entries: Iterable[Any]) -> CatalogSnapshot:
    """Ingest nested catalog data into a CatalogSnapshot.

    Each entry is a mapping with a name and a list of communities; each
    community carries a name, region, value and a list of CIDR strings. Bad
    prefixes are skipped and reported in the snapshot's failures, while a
    structurally broken document raises ParseError.
    """
    logger = logging.getLogger(__name__)
    entries: list[CatalogEntry] = []
    failures: list[CatalogEntryParseFailure] = []
    for index, raw_entry in enumerate(raw_entries):
        if not isinstance(raw_entry, Mapping):
            raise ParseError(f"Catalog entry #{index} is not a mapping")
        name = _as_text(_lookup(raw_entry, ENTRY_NAME_KEYS))
        if not name:
            raise ParseError(f"Catalog entry #{index} has no name")
        communities = tuple(
            _build_community(name, raw_community, failures)
            for raw_community in _as_list(_lookup(raw_entry, COMMUNITIES_KEYS), "communities", name)
        )
        entries.append(CatalogEntry(name=name, communities=communities))

    snapshot = CatalogSnapshot(entries=tuple(entries), failures=tuple(failures))
    logger.info(
        "Loaded catalog with %s entries, %s prefixes, %s skipped prefixes",
        len(snapshot.entries),
        snapshot.prefix_count,
        len(snapshot.failures),
    )
    return snapshot
