from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .document import COLUMN_COUNT

"""In-memory grid backing the currently open workbook.

TableStore is a passive container: it knows nothing about column meaning.
Every mutation is published to subscribers as a TableChange so that a dirty
flag (or any other observer) can follow edits without polling.
"""

__all__ = [
    "Cell",
    "TableChange",
    "TableStore",
]

Cell = Any  # str | int | float | date | None


@dataclass(frozen=True)
class TableChange:
    """Notification payload for a TableStore mutation.

    kind is one of: "cell", "row_inserted", "column_inserted", "reset".
    row/column are -1 when the change is not tied to a single position.
    """
    kind: str
    row: int = -1
    column: int = -1


Listener = Callable[[TableChange], None]


class TableStore:
    def __init__(self) -> None:
        self._rows: list[list[Cell]] = []
        self._listeners: list[Listener] = []

    # ---- subscription -------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: TableChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    # ---- queries ------------------------------------------------------
    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        if not self._rows:
            return 0
        return len(self._rows[0])

    def get(self, row: int, column: int) -> Cell:
        if row < 0 or row >= len(self._rows):
            return None
        if column < 0 or column >= len(self._rows[row]):
            return None
        return self._rows[row][column]

    def rows(self) -> list[list[Cell]]:
        """Return a copy of the grid (header included)."""
        return [list(r) for r in self._rows]

    # ---- mutations ----------------------------------------------------
    def set(self, row: int, column: int, value: Cell) -> bool:
        """Set one cell. Out-of-bounds positions are rejected, the grid never grows here."""
        if row < 0 or row >= len(self._rows):
            return False
        if column < 0 or column >= len(self._rows[row]):
            return False
        self._rows[row][column] = value
        self._notify(TableChange("cell", row, column))
        return True

    def append_row(self) -> int:
        """Append one blank row and return its index."""
        cols = self.column_count if self._rows else COLUMN_COUNT
        self._rows.append([None] * cols)
        index = len(self._rows) - 1
        self._notify(TableChange("row_inserted", row=index))
        return index

    def append_column(self) -> None:
        if not self._rows:
            return
        for r in self._rows:
            r.append(None)
        self._notify(TableChange("column_inserted", column=self.column_count - 1))

    def replace_all(self, rows: list[list[Cell]]) -> None:
        """Replace the whole grid. Rows are padded/truncated to the first row's width."""
        width = len(rows[0]) if rows else 0
        normalized: list[list[Cell]] = []
        for r in rows:
            cells = list(r[:width])
            cells.extend([None] * (width - len(cells)))
            normalized.append(cells)
        self._rows = normalized
        self._notify(TableChange("reset"))

    def clear(self) -> None:
        self._rows = []
        self._notify(TableChange("reset"))
