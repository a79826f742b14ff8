from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from ..models.errors import SyncIOError
from .reader import is_recognized

"""Workbook writer.

The grid is written verbatim starting at A1 (no header, no index), so a grid
read back with excel.reader.read_grid compares equal to what was written.
"""

__all__ = [
    "DEFAULT_EXTENSION",
    "ensure_extension",
    "write_grid",
]

DEFAULT_EXTENSION = ".xlsx"
SHEET_NAME = "Sheet1"


def ensure_extension(path: Path) -> Path:
    """Append .xlsx when the path does not already carry a recognized extension."""
    if is_recognized(path):
        return path
    return path.with_name(path.name + DEFAULT_EXTENSION)


def write_grid(path: Path, rows: list[list[Any]]) -> Path:
    """Write rows to a workbook and return the path actually written.

    Raises:
        SyncIOError: the workbook could not be written
    """
    target = ensure_extension(path)
    df = pd.DataFrame(rows, dtype=object)
    try:
        with pd.ExcelWriter(target, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=SHEET_NAME, header=False, index=False)
    except (OSError, ValueError) as e:
        raise SyncIOError(f"Failed to save file {target}: {e}") from e
    return target
