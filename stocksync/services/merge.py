from __future__ import annotations

import logging
import math
from typing import Any

from ..models.document import (
    COL_DEPARTMENT,
    COL_PART_NAME,
    COL_PART_NO,
    COL_QUANTITY,
    COL_VENDOR,
    COLUMN_COUNT,
    OVERWRITE_COLUMNS,
    STOCK_HEADER,
    DocumentKind,
    document_kind,
)
from ..models.errors import StructureError
from ..models.merge_report import MergeReport, SearchHit
from ..models.table_store import TableStore
from .progress import MergeProgress

"""Merge of purchase workbooks into the stock dataset.

For every data row of a purchase workbook:

1. rows with an empty part name are skipped
2. a part name already seen earlier in the same purchase workbook is skipped
   (first occurrence wins)
3. the part is looked up in the stock dataset by name (trimmed, case-insensitive,
   first match wins)
   - found:     stock += purchase; Part No / Department / Prepared / Approved /
                Vendor are overwritten only by non-blank purchase cells
   - not found: a new row is appended with stock = purchase
"""

__all__ = [
    "MergeEngine",
    "normalize_key",
    "to_quantity",
    "is_blank",
]

logger = logging.getLogger(__name__)


def normalize_key(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def to_quantity(value: Any) -> int:
    """Parse a quantity cell as an integer; anything non-numeric counts as 0."""
    if value is None or isinstance(value, bool):
        return int(value or 0)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return int(round(value))
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


class MergeEngine:
    def __init__(self, table: TableStore) -> None:
        self.table = table

    # ---- lookup -------------------------------------------------------
    def match_by_key(self, name: Any) -> int | None:
        """Return the first data row whose part name matches, or None."""
        wanted = normalize_key(name)
        for row in range(1, self.table.row_count):
            if normalize_key(self.table.get(row, COL_PART_NAME)) == wanted:
                return row
        return None

    def search_all(self, text: str) -> list[SearchHit]:
        """Substring search over Part Name, Part No and Vendor."""
        needle = normalize_key(text)
        hits: list[SearchHit] = []
        for row in range(1, self.table.row_count):
            haystack = (
                normalize_key(self.table.get(row, COL_PART_NAME)),
                normalize_key(self.table.get(row, COL_PART_NO)),
                normalize_key(self.table.get(row, COL_VENDOR)),
            )
            if any(needle in h for h in haystack):
                hits.append(
                    SearchHit(
                        row=row,
                        part_name=self.table.get(row, COL_PART_NAME),
                        part_no=self.table.get(row, COL_PART_NO),
                        stock=self.table.get(row, COL_QUANTITY),
                        vendor=self.table.get(row, COL_VENDOR),
                    )
                )
        logger.debug(f"search '{text}' found {len(hits)} results")
        return hits

    # ---- validation ---------------------------------------------------
    @staticmethod
    def validate_delta_structure(grid: list[list[Any]]) -> None:
        """Accept only purchase workbooks.

        Raises:
            StructureError: the quantity header is "Stock" or anything but "Purchase"
        """
        header = grid[0] if grid else []
        found = header[COL_QUANTITY] if len(header) > COL_QUANTITY else None
        text = "" if found is None else str(found).strip()
        if document_kind(header) is DocumentKind.PURCHASE:
            return
        if text.lower() == DocumentKind.STOCK.value:
            raise StructureError(
                "File structure mismatch: this is a STOCK file. "
                "Only PURCHASE files can be merged into the stock file."
            )
        raise StructureError(
            f"Invalid file structure: column 3 must be 'Purchase' (found: '{text}')"
        )

    # ---- merge --------------------------------------------------------
    def merge(self, grid: list[list[Any]], source: str = "") -> MergeReport:
        """Merge a purchase grid (row 0 = header) into the table.

        The grid is validated first; a rejected grid leaves the table untouched.
        """
        self.validate_delta_structure(grid)

        report = MergeReport(source=source)
        if self.table.row_count == 0:
            self.table.replace_all([list(STOCK_HEADER)])

        seen: set[str] = set()
        data_rows = grid[1:]
        with MergeProgress(len(data_rows), description=f"Merging {source}".strip()) as progress:
            for offset, raw in enumerate(data_rows, start=2):
                cells = list(raw[:COLUMN_COUNT]) + [None] * (COLUMN_COUNT - len(raw[:COLUMN_COUNT]))
                part_name = "" if cells[COL_PART_NAME] is None else str(cells[COL_PART_NAME]).strip()

                if not part_name:
                    logger.debug(f"row {offset}: skipping (empty part name)")
                    report.rows_skipped += 1
                elif part_name.lower() in seen:
                    logger.warning(f"row {offset}: duplicate '{part_name}' in purchase file skipped")
                    report.duplicates_skipped += 1
                else:
                    seen.add(part_name.lower())
                    existing = self.match_by_key(part_name)
                    if existing is not None:
                        self._update_existing(existing, cells)
                        report.rows_updated += 1
                        report.updated_parts.append(part_name)
                    else:
                        self._append_new(part_name, cells)
                        report.rows_added += 1
                        report.added_parts.append(part_name)

                progress.advance(added=report.rows_added, updated=report.rows_updated)

        logger.info(
            f"merge complete: updated={report.rows_updated} added={report.rows_added} "
            f"total_rows={self.table.row_count}"
        )
        return report

    def _update_existing(self, row: int, cells: list[Any]) -> None:
        current = to_quantity(self.table.get(row, COL_QUANTITY))
        purchase = to_quantity(cells[COL_QUANTITY])
        self.table.set(row, COL_QUANTITY, current + purchase)
        logger.debug(f"row {row}: stock {current} + {purchase} = {current + purchase}")
        for col in OVERWRITE_COLUMNS:
            if not is_blank(cells[col]):
                self.table.set(row, col, cells[col])

    def _append_new(self, part_name: str, cells: list[Any]) -> None:
        row = self.table.append_row()
        quantity = to_quantity(cells[COL_QUANTITY])
        self.table.set(row, COL_PART_NAME, part_name)
        self.table.set(row, COL_QUANTITY, quantity)
        for col in OVERWRITE_COLUMNS:
            self.table.set(row, col, cells[col])
        logger.debug(f"row {row}: new part '{part_name}' with stock {quantity}")

    def add_item(self, part_name: str, department: str, quantity: int) -> int:
        """Add stock for a single part, creating the row when it does not exist.

        Returns:
            Row index that was updated or appended.
        """
        existing = self.match_by_key(part_name)
        if existing is not None:
            current = to_quantity(self.table.get(existing, COL_QUANTITY))
            self.table.set(existing, COL_QUANTITY, current + quantity)
            return existing
        if self.table.row_count == 0:
            self.table.replace_all([list(STOCK_HEADER)])
        row = self.table.append_row()
        self.table.set(row, COL_PART_NAME, part_name)
        self.table.set(row, COL_PART_NO, f"PN-{row}")
        self.table.set(row, COL_QUANTITY, quantity)
        self.table.set(row, COL_DEPARTMENT, department)
        return row
