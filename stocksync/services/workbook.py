from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ..config.loader import SettingsStore
from ..excel.reader import is_recognized, read_grid
from ..excel.writer import write_grid
from ..models.document import COLUMN_COUNT, PURCHASE_HEADER, STOCK_HEADER, DocumentKind, document_kind
from ..models.errors import FormatError, NotFoundError, StockSyncError
from ..models.table_store import TableChange, TableStore
from .events import EventBus

"""Current-document session.

Workbook owns the TableStore, the path of the document currently open, the
canonical ("permanent") stock file reference and the unsaved-changes flag.
Methods here raise StockSyncError subclasses; StockManager turns them into
reported failures.
"""

__all__ = [
    "DEFAULT_NEW_ROWS",
    "UNTITLED",
    "DirtyTracker",
    "Workbook",
]

logger = logging.getLogger(__name__)

DEFAULT_NEW_ROWS = 15
UNTITLED = "Untitled"


class DirtyTracker:
    """TableStore listener maintaining the unsaved-changes flag."""

    def __init__(self, events: EventBus) -> None:
        self._events = events
        self.dirty = False

    def __call__(self, change: TableChange) -> None:
        if change.kind == "reset":
            # whole-document replacement decides the flag itself
            return
        if change.kind == "cell":
            self._events.emit("row_changed", change.row, change.column)
        self.mark(True)

    def mark(self, dirty: bool) -> None:
        if self.dirty != dirty:
            self.dirty = dirty
            self._events.emit("unsaved_changes_changed", dirty)


class Workbook:
    def __init__(self, store: SettingsStore, events: EventBus, table: TableStore | None = None) -> None:
        self.store = store
        self.events = events
        self.table = table if table is not None else TableStore()
        self.current_file: Path | None = None
        self.tracker = DirtyTracker(events)
        self.table.subscribe(self.tracker)

    # ---- properties ---------------------------------------------------
    @property
    def has_unsaved_changes(self) -> bool:
        return self.tracker.dirty

    @property
    def canonical_file(self) -> Path | None:
        raw = self.store.settings.permanent_file
        return Path(raw) if raw else None

    def file_name(self) -> str:
        if self.current_file is None:
            return UNTITLED
        return self.current_file.name

    def file_type(self) -> str:
        header = [self.table.get(0, c) for c in range(self.table.column_count)]
        return document_kind(header).value

    def _set_current_file(self, path: Path | None) -> None:
        self.current_file = path
        self.events.emit("current_file_changed", path)

    def adopt_path(self, path: Path) -> None:
        """Point the session at another file holding the same content (e.g. after a copy)."""
        self._set_current_file(path)

    def _replace(self, rows: list[list[Any]], path: Path | None) -> None:
        self.table.replace_all(rows)
        self.tracker.mark(False)
        self._set_current_file(path)
        self.events.emit("document_replaced", path)

    # ---- create / load / save -----------------------------------------
    def create(self, kind: DocumentKind, rows: int = DEFAULT_NEW_ROWS) -> None:
        """Replace the table with a blank stock or purchase sheet (header + rows-1 blank rows)."""
        header = PURCHASE_HEADER if kind is DocumentKind.PURCHASE else STOCK_HEADER
        grid: list[list[Any]] = [list(header)]
        grid.extend([None] * COLUMN_COUNT for _ in range(1, max(rows, 1)))
        self._replace(grid, None)
        logger.info(f"created new {kind.value} sheet with {len(grid)} rows")

    def load(self, path: Path) -> None:
        path = Path(path).expanduser()
        if path.exists() and not is_recognized(path) and path == self.canonical_file:
            # unusable canonical reference
            self.clear_canonical()
        grid = read_grid(path)
        self._replace(grid, path)
        self.events.emit("file_loaded", path.name)
        logger.info(f"loaded {path.name}: {len(grid)} rows x {len(grid[0])} columns ({self.file_type()})")

    def save(self, path: Path | None = None) -> Path:
        target = Path(path).expanduser() if path is not None else self.current_file
        if target is None:
            raise NotFoundError("No file path specified")
        written = write_grid(target, self.table.rows())
        self.tracker.mark(False)
        self._set_current_file(written)
        self.events.emit("file_saved", written.name)
        logger.info(f"saved {written}")
        return written

    # ---- canonical file -----------------------------------------------
    def set_canonical_path(self, path: Path) -> Path:
        path = Path(path).expanduser()
        if not path.exists():
            raise NotFoundError(f"Permanent file does not exist: {path}")
        if not is_recognized(path):
            raise FormatError(f"Permanent file must be a workbook (.xlsx), got '{path.suffix}'")
        previous = self.store.settings.permanent_file
        self.store.settings.permanent_file = str(path)
        try:
            self.store.save()
        except StockSyncError:
            self.store.settings.permanent_file = previous
            raise
        self.events.emit("canonical_file_changed", path)
        self._set_current_file(path)
        logger.info(f"permanent file set: {path}")
        return path

    def clear_canonical(self) -> None:
        self.store.settings.permanent_file = ""
        self.store.save()
        self.events.emit("canonical_file_changed", None)

    def load_canonical(self) -> None:
        canonical = self.canonical_file
        if canonical is None:
            raise NotFoundError("No permanent file set. Set a permanent file first.")
        if not canonical.exists():
            self.clear_canonical()
            raise NotFoundError(
                f"Permanent file not found: {canonical}. It may have been moved or deleted."
            )
        self.load(canonical)

    def save_to_canonical(self) -> Path:
        canonical = self.canonical_file
        if canonical is None:
            raise NotFoundError("No permanent file set")
        return self.save(canonical)

    def restore_canonical_reference(self) -> None:
        """Check the persisted canonical reference at startup.

        An unrecognized extension clears the reference; a missing file is only
        reported (it is cleared by load_canonical once actually used).
        """
        canonical = self.canonical_file
        if canonical is None:
            return
        if not canonical.exists():
            logger.warning(f"saved permanent file no longer exists: {canonical}")
            return
        if not is_recognized(canonical):
            logger.warning(f"saved permanent file is not a workbook ({canonical.suffix}), clearing")
            self.clear_canonical()

