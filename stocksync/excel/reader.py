from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..models.document import COLUMN_COUNT
from ..models.errors import EmptyDocumentError, FormatError, LoadError, NotFoundError

"""Workbook reader.

Reads the first worksheet of a workbook into a rectangular grid (list of rows,
row 0 = header). The raw sheet is read without header inference and then
normalized:

1. Scan bounds come from the sheet's used range; malformed bounds fall back
   to DEFAULT_SCAN_ROWS x DEFAULT_SCAN_COLUMNS, and no more than
   MAX_SCAN_COLUMNS columns are ever scanned.
2. Header width = position of the last non-empty header cell.
3. Fully empty data rows are skipped; scanning stops after
   MAX_CONSECUTIVE_EMPTY of them in a row.
4. Every row is padded / truncated to the header width.

read_delta_rows skips all of the above for merge input: every sheet row is
kept (blank rows included) at exactly COLUMN_COUNT cells, so rows after a gap
and cells under blank header cells still reach the merge.
"""

__all__ = [
    "RECOGNIZED_EXTENSIONS",
    "DEFAULT_SCAN_ROWS",
    "DEFAULT_SCAN_COLUMNS",
    "MAX_SCAN_COLUMNS",
    "MAX_CONSECUTIVE_EMPTY",
    "is_recognized",
    "resolve_scan_range",
    "read_raw_sheet",
    "normalize_grid",
    "read_grid",
    "read_delta_rows",
    "read_header",
]

RECOGNIZED_EXTENSIONS = (".xlsx", ".xlsm")

DEFAULT_SCAN_ROWS = 1000
DEFAULT_SCAN_COLUMNS = 26  # A..Z
MAX_SCAN_COLUMNS = 26
MAX_CONSECUTIVE_EMPTY = 5


def is_recognized(path: Path) -> bool:
    return path.suffix.lower() in RECOGNIZED_EXTENSIONS


def resolve_scan_range(
    first_row: int, last_row: int, first_col: int, last_col: int
) -> tuple[int, int, int, int]:
    """Repair a 1-based used range reported by a worksheet.

    Some producers (Google Sheets exports in particular) write dimension
    metadata with last < first or non-positive values.
    """
    if first_row < 1:
        first_row = 1
    if first_col < 1:
        first_col = 1
    if last_row < first_row:
        last_row = DEFAULT_SCAN_ROWS
    if last_col < first_col:
        last_col = DEFAULT_SCAN_COLUMNS
    last_col = min(last_col, MAX_SCAN_COLUMNS)
    return first_row, last_row, first_col, last_col


def _clean_cell(value: Any) -> Any:
    """Convert pandas/numpy scalars to plain Python values (NaN -> None)."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value == "":
        return None
    return value


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def read_raw_sheet(path: Path) -> pd.DataFrame:
    """Read the first worksheet as a raw DataFrame (no header row applied).

    Raises:
        NotFoundError: path does not exist
        FormatError: extension is not a recognized workbook format
        LoadError: the workbook could not be parsed
    """
    if not path.exists():
        raise NotFoundError(f"File does not exist: {path}")
    if not is_recognized(path):
        raise FormatError(
            f"Invalid file type: expected one of {', '.join(RECOGNIZED_EXTENSIONS)}, got '{path.suffix}'"
        )
    try:
        xls = pd.ExcelFile(path, engine="openpyxl")
        if not xls.sheet_names:
            raise LoadError(f"No worksheet found: {path}")
        # dtype=object keeps integers as integers; keep_default_na=False stops
        # part names such as "NA" from turning into NaN
        return xls.parse(xls.sheet_names[0], header=None, dtype=object, keep_default_na=False)
    except LoadError:
        raise
    except Exception as e:
        raise LoadError(f"Failed to load workbook {path}: {e}") from e


def normalize_grid(df: pd.DataFrame) -> list[list[Any]]:
    """Normalize a raw sheet DataFrame into a rectangular grid."""
    n_rows, n_cols = df.shape
    first_row, last_row, first_col, last_col = resolve_scan_range(1, n_rows, 1, n_cols)

    def cell(r: int, c: int) -> Any:
        # r, c are 1-based sheet coordinates
        if r > n_rows or c > n_cols:
            return None
        return _clean_cell(df.iat[r - 1, c - 1])

    data: list[list[Any]] = []
    empty_run = 0
    for r in range(first_row, last_row + 1):
        cells = [cell(r, c) for c in range(first_col, last_col + 1)]
        filled = [i for i, v in enumerate(cells) if not _is_blank(v)]
        row_is_empty = not filled

        if r == first_row and not row_is_empty:
            # header width is decided by the last non-empty header cell
            cells = cells[: filled[-1] + 1]

        if row_is_empty and r > first_row:
            empty_run += 1
            if empty_run >= MAX_CONSECUTIVE_EMPTY:
                break
            continue
        if not row_is_empty:
            empty_run = 0
            if r > first_row and data:
                width = len(data[0])
                cells = cells[:width] + [None] * (width - len(cells))
            data.append(cells)

    if data:
        width = len(data[0])
        data = [row[:width] + [None] * (width - len(row)) for row in data]
    return data


def read_grid(path: Path) -> list[list[Any]]:
    """Read and normalize a workbook.

    Raises:
        EmptyDocumentError: no rows survive normalization
        (plus everything read_raw_sheet raises)
    """
    df = read_raw_sheet(path)
    grid = normalize_grid(df)
    if not grid:
        raise EmptyDocumentError(
            f"No data found in {path.name}. The file may be empty or corrupted."
        )
    return grid


def read_header(path: Path) -> list[Any]:
    """Return the raw first row of a workbook (used for structure checks)."""
    df = read_raw_sheet(path)
    if df.shape[0] == 0:
        return []
    return [_clean_cell(v) for v in df.iloc[0].tolist()]


def read_delta_rows(path: Path) -> list[list[Any]]:
    """Read every row of a purchase workbook at the fixed merge width.

    Raises:
        EmptyDocumentError: the sheet has no rows
        (plus everything read_raw_sheet raises)
    """
    df = read_raw_sheet(path)
    rows: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        cells = [_clean_cell(v) for v in raw[:COLUMN_COUNT]]
        rows.append(cells + [None] * (COLUMN_COUNT - len(cells)))
    if not rows:
        raise EmptyDocumentError(f"No data found in {path.name}. The file may be empty or corrupted.")
    return rows
