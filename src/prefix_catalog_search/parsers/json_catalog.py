"""Parser for JSON prefix catalogs."""
from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..catalog import build_catalog
from ..models import CatalogSnapshot
from ..utils import ParseError


def _service_tag_entries(values: list[Any]) -> list[dict[str, Any]]:
    """Map a downloadable service-tag document to catalog entries.

    Each tag becomes one entry with a single community named after the tag,
    using the tag's region and system service.
    """
    entries: list[dict[str, Any]] = []
    for value in values:
        if not isinstance(value, Mapping):
            raise ParseError("Service tag value is not a mapping")
        properties = value.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise ParseError(f"Service tag {value.get('name')} has properties that are not a mapping")
        name = value.get("name") or value.get("id")
        entries.append(
            {
                "name": name,
                "communities": [
                    {
                        "communityName": name,
                        "region": properties.get("region") or "",
                        "communityValue": properties.get("systemService") or "",
                        "prefixes": properties.get("addressPrefixes") or [],
                    }
                ],
            }
        )
    return entries


def catalog_entries_from_document(document: Any) -> list[Any]:
    """Return the raw entry list from any supported catalog document shape."""
    if isinstance(document, list):
        return document
    if isinstance(document, Mapping):
        if isinstance(document.get("values"), list):
            return _service_tag_entries(document["values"])
        for key in ("entries", "catalog"):
            if isinstance(document.get(key), list):
                return document[key]
    raise ParseError(f"Unsupported catalog document: {type(document).__name__}")


def parse_json_text(text: str) -> CatalogSnapshot:
    """Parse catalog JSON text into a snapshot."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid catalog JSON: {exc}") from exc
    return build_catalog(catalog_entries_from_document(document))


def parse_json_catalog(path: str | Path) -> CatalogSnapshot:
    """Load a JSON catalog file into a snapshot."""
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ParseError(f"Unable to read catalog file {path}: {exc}") from exc
    return parse_json_text(text)
