from __future__ import annotations

import logging
from pathlib import Path

from ..config.loader import SettingsStore
from ..excel.reader import read_delta_rows
from ..logging.error_log import ErrorLogBuffer
from ..models.document import DocumentKind, SyncState
from ..models.errors import StockSyncError
from ..models.merge_report import MergeReport, SearchHit
from ..models.table_store import TableStore
from .events import ErrorReporter, EventBus
from .lock import LockCoordinator
from .merge import MergeEngine
from .scheduler import ReleaseScheduler
from .sync import SyncCoordinator
from .workbook import DEFAULT_NEW_ROWS, Workbook

"""Operation surface used by front ends (CLI, editors).

StockManager wires the workbook session, merge engine and sync coordinator to
one settings store and one event bus. Every mutating operation returns a bool;
failures never escape as exceptions, they are reported through the
``error_occurred`` event, the error journal and ``last_error``.
"""

__all__ = [
    "StockManager",
]

logger = logging.getLogger(__name__)


class StockManager:
    def __init__(
        self,
        store: SettingsStore | None = None,
        *,
        events: EventBus | None = None,
        error_log: ErrorLogBuffer | None = None,
        locks: LockCoordinator | None = None,
        releases: ReleaseScheduler | None = None,
    ) -> None:
        self.store = store if store is not None else SettingsStore()
        self.events = events if events is not None else EventBus()
        self.reporter = ErrorReporter(self.events, error_log)
        self.table = TableStore()
        self.workbook = Workbook(self.store, self.events, self.table)
        self.merger = MergeEngine(self.table)
        self.sync = SyncCoordinator(
            self.workbook,
            self.store,
            self.events,
            self.reporter,
            locks=locks,
            releases=releases,
        )
        try:
            self.workbook.restore_canonical_reference()
        except StockSyncError as e:
            self._report("restore_canonical_reference", e, self.workbook.canonical_file)
        logger.debug(f"current user: {self.current_user} ({self.user_role})")

    # ---- state ----------------------------------------------------------
    @property
    def last_error(self) -> StockSyncError | None:
        return self.reporter.last_error

    @property
    def error_log(self) -> ErrorLogBuffer:
        return self.reporter.error_log

    @property
    def current_file(self) -> Path | None:
        return self.workbook.current_file

    @property
    def canonical_file(self) -> Path | None:
        return self.workbook.canonical_file

    @property
    def has_unsaved_changes(self) -> bool:
        return self.workbook.has_unsaved_changes

    @property
    def sync_state(self) -> SyncState:
        return self.sync.state

    @property
    def last_sync_time(self) -> str:
        return self.sync.last_sync_time

    @property
    def cloud_folder(self) -> Path | None:
        return self.sync.cloud_folder

    @cloud_folder.setter
    def cloud_folder(self, folder: Path | str) -> None:
        self.sync.set_cloud_folder(folder)

    @property
    def sync_enabled(self) -> bool:
        return self.sync.sync_enabled

    @sync_enabled.setter
    def sync_enabled(self, enabled: bool) -> None:
        self.sync.set_sync_enabled(enabled)

    @property
    def current_user(self) -> str:
        return self.sync.current_user

    @current_user.setter
    def current_user(self, username: str) -> None:
        self.sync.set_current_user(username)

    @property
    def user_role(self) -> str:
        return self.sync.user_role

    @user_role.setter
    def user_role(self, role: str) -> None:
        self.sync.set_user_role(role)

    def file_name(self) -> str:
        return self.workbook.file_name()

    def file_type(self) -> str:
        return self.workbook.file_type()

    def can_edit(self) -> bool:
        return self.sync.can_edit()

    def cloud_file_path(self) -> Path | None:
        return self.sync.cloud_file_path()

    def _report(self, operation: str, error: StockSyncError, path: Path | None = None) -> bool:
        return self.reporter.report(operation, error, path)

    # ---- documents --------------------------------------------------------
    def create_canonical(self, rows: int = DEFAULT_NEW_ROWS) -> None:
        self.workbook.create(DocumentKind.STOCK, rows)

    def create_delta(self, rows: int = DEFAULT_NEW_ROWS) -> None:
        self.workbook.create(DocumentKind.PURCHASE, rows)

    def load(self, path: Path | str) -> bool:
        try:
            self.workbook.load(Path(path))
        except StockSyncError as e:
            return self._report("load", e, Path(path))
        return True

    def save(self, path: Path | str | None = None) -> bool:
        target = Path(path) if path is not None else None
        try:
            self.workbook.save(target)
        except StockSyncError as e:
            return self._report("save", e, target or self.current_file)
        return True

    def set_canonical_path(self, path: Path | str) -> bool:
        try:
            self.workbook.set_canonical_path(Path(path))
        except StockSyncError as e:
            return self._report("set_canonical_path", e, Path(path))
        return True

    def load_canonical(self) -> bool:
        try:
            self.workbook.load_canonical()
        except StockSyncError as e:
            return self._report("load_canonical", e, self.canonical_file)
        return True

    def save_to_canonical(self) -> bool:
        try:
            self.workbook.save_to_canonical()
        except StockSyncError as e:
            return self._report("save_to_canonical", e, self.canonical_file)
        return True

    # ---- merge --------------------------------------------------------------
    def merge(self, path: Path | str) -> MergeReport | None:
        """Merge a purchase workbook into the open stock dataset.

        Returns:
            The MergeReport, or None when the merge was rejected.
        """
        source = Path(path).expanduser()
        logger.info(f"merging from: {source}")
        try:
            grid = read_delta_rows(source)
            report = self.merger.merge(grid, source=source.name)
        except StockSyncError as e:
            self._report("merge", e, source)
            return None

        if self.canonical_file is not None:
            logger.info("auto-saving to permanent file")
            self.save_to_canonical()
            if self.sync_enabled and self.cloud_folder is not None:
                self.push_to_cloud()

        self.events.emit("file_merged", source.name, report.rows_added, report.rows_updated)
        return report

    def add_item(self, part_name: str, department: str, quantity: int) -> int:
        return self.merger.add_item(part_name, department, quantity)

    # ---- search -------------------------------------------------------------
    def find_by_name(self, name: str) -> int | None:
        row = self.merger.match_by_key(name)
        if row is not None:
            logger.info(f"found: {name} at row {row}")
            self.events.emit("search_result_found", row)
        else:
            logger.info(f"not found: {name}")
        return row

    def search_all(self, text: str) -> list[SearchHit]:
        return self.merger.search_all(text)

    # ---- cloud --------------------------------------------------------------
    def push_to_cloud(self) -> bool:
        return self.sync.push_to_cloud()

    def pull_from_cloud(self) -> bool:
        return self.sync.pull_from_cloud()

    def check_for_updates(self) -> bool:
        return self.sync.check_for_updates()

    def run_pending_releases(self) -> int:
        return self.sync.run_pending_releases()

    def close(self) -> None:
        """Release pending cloud locks and flush the error journal."""
        self.sync.drain_releases()
        journal = self.error_log.flush()
        if journal is not None:
            logger.info(f"errors written to {journal}")
