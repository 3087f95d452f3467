"""Parser for Excel-based prefix catalogs."""
from __future__ import annotations

from typing import Any
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..catalog import build_catalog
from ..models import CatalogSnapshot
from ..utils import ParseError, split_members


CATALOG_SHEET = "Catalog"


def _cell(row: tuple[Any, ...], header_map: dict[str, int], header: str) -> Any:
    index = header_map.get(header)
    if index is None or index >= len(row):
        return None
    return row[index].value


def parse_excel_catalog(path: str) -> CatalogSnapshot:
    """Parse a workbook with one community per row into a catalog snapshot.

    Rows sharing a ``Name`` are grouped into one entry, in first-seen order.
    """
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (OSError, BadZipFile, InvalidFileException) as exc:
        raise ParseError(f"Unable to read Excel file {path}: {exc}") from exc
    try:
        if CATALOG_SHEET not in workbook.sheetnames:
            raise ParseError(f"Missing '{CATALOG_SHEET}' sheet in Excel file")
        sheet = workbook[CATALOG_SHEET]
        rows = sheet.iter_rows()
        header_row = next(rows, None)
        if header_row is None:
            return build_catalog([])
        header_map = {
            str(cell.value).strip(): idx for idx, cell in enumerate(header_row) if cell.value is not None
        }
        if "Name" not in header_map:
            raise ParseError(f"Missing 'Name' header in '{CATALOG_SHEET}' sheet")

        entries: dict[str, dict[str, Any]] = {}
        for row in rows:
            name = _cell(row, header_map, "Name")
            if name is None or not str(name).strip():
                continue
            entry = entries.setdefault(str(name).strip(), {"name": str(name).strip(), "communities": []})
            entry["communities"].append(
                {
                    "communityName": _cell(row, header_map, "Community Name"),
                    "region": _cell(row, header_map, "Region"),
                    "communityValue": _cell(row, header_map, "Community Value"),
                    "prefixes": split_members(_cell(row, header_map, "Prefixes")),
                }
            )
    finally:
        workbook.close()
    return build_catalog(entries.values())
