from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from ..config.loader import SettingsStore
from ..models.document import SyncState, UserRole
from ..models.errors import (
    EditPermissionError,
    LockConflictError,
    NotFoundError,
    SettingsError,
    StockSyncError,
    SyncIOError,
)
from .events import ErrorReporter, EventBus
from .lock import LockCoordinator
from .scheduler import ReleaseScheduler
from .workbook import Workbook

"""Cloud folder synchronization.

The "cloud" is any folder shared between machines (a synced drive, a network
share). The cloud copy of the open document is ``cloud_folder / <file name>``.

Push:  lock cloud copy -> save local -> replace cloud copy -> release lock after
       a grace delay (immediately on failure)
Pull:  cloud copy must exist and not be locked by someone else -> load it ->
       copy it to the canonical file, else to the previous local file, else keep
       working on the cloud path directly
Check: advisory only, compares modification times

State machine (SyncState):
    offline|synced|conflict --push/pull--> syncing
    syncing --ok--> synced
    syncing --I/O failure / missing cloud copy--> offline
    syncing --locked by another user--> conflict
"""

__all__ = [
    "SYNC_TIME_FORMAT",
    "SyncCoordinator",
]

logger = logging.getLogger(__name__)

SYNC_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _same_file(a: Path, b: Path) -> bool:
    return a.resolve() == b.resolve()


class SyncCoordinator:
    def __init__(
        self,
        workbook: Workbook,
        store: SettingsStore,
        events: EventBus,
        reporter: ErrorReporter,
        *,
        locks: LockCoordinator | None = None,
        releases: ReleaseScheduler | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.workbook = workbook
        self.store = store
        self.events = events
        self.reporter = reporter
        self.locks = locks if locks is not None else LockCoordinator(lambda: self.current_user)
        self.releases = releases if releases is not None else ReleaseScheduler(self.locks.release)
        self._now = now

        folder = self.cloud_folder
        self.state = SyncState.SYNCED if folder is not None and folder.is_dir() else SyncState.OFFLINE
        if self.state is SyncState.SYNCED:
            logger.info(f"cloud folder loaded: {folder}")

    # ---- settings-backed properties -----------------------------------
    @property
    def settings(self):
        return self.store.settings

    @property
    def cloud_folder(self) -> Path | None:
        raw = self.settings.cloud_folder
        return Path(raw) if raw else None

    @property
    def sync_enabled(self) -> bool:
        return self.settings.sync_enabled

    @property
    def current_user(self) -> str:
        return self.settings.current_user

    @property
    def user_role(self) -> str:
        return self.settings.user_role

    @property
    def last_sync_time(self) -> str:
        return self.settings.last_sync_time

    def _update_setting(self, key: str, value: object) -> bool:
        """Change and persist one setting; an unsaved value is rolled back."""
        previous = getattr(self.settings, key)
        setattr(self.settings, key, value)
        try:
            self.store.save()
        except StockSyncError as e:
            setattr(self.settings, key, previous)
            return self.reporter.report(f"set_{key}", e, self.store.path)
        self.events.emit("settings_changed", key, value)
        logger.info(f"{key} set: {value}")
        return True

    def set_cloud_folder(self, folder: Path | str) -> bool:
        path = Path(folder).expanduser()
        if not path.is_dir():
            return self.reporter.report(
                "set_cloud_folder", NotFoundError(f"Cloud folder does not exist: {path}"), path
            )
        return self._update_setting("cloud_folder", str(path))

    def set_sync_enabled(self, enabled: bool) -> bool:
        if self.settings.sync_enabled == enabled:
            return True
        return self._update_setting("sync_enabled", enabled)

    def set_current_user(self, username: str) -> bool:
        if self.settings.current_user == username:
            return True
        return self._update_setting("current_user", username)

    def set_user_role(self, role: str) -> bool:
        try:
            UserRole(role)
        except ValueError:
            return self.reporter.report(
                "set_user_role",
                SettingsError(f"Unknown role '{role}' (expected owner, editor or viewer)"),
            )
        if self.settings.user_role == role:
            return True
        return self._update_setting("user_role", role)

    def can_edit(self) -> bool:
        try:
            return UserRole(self.user_role).can_edit
        except ValueError:
            return False

    def cloud_file_path(self) -> Path | None:
        folder = self.cloud_folder
        current = self.workbook.current_file
        if folder is None or current is None:
            return None
        return folder / current.name

    # ---- state --------------------------------------------------------
    def _set_state(self, state: SyncState) -> None:
        if self.state is not state:
            self.state = state
            self.events.emit("sync_status_changed", state.value)

    def _mark_synced(self) -> None:
        self.settings.last_sync_time = self._now().strftime(SYNC_TIME_FORMAT)
        self.store.save()
        self.events.emit("last_sync_time_changed", self.settings.last_sync_time)
        self._set_state(SyncState.SYNCED)
        self.events.emit("sync_completed", True)

    def _fail(self, operation: str, error: StockSyncError, path: Path | None = None) -> bool:
        if isinstance(error, LockConflictError):
            self._set_state(SyncState.CONFLICT)
        elif self.state is SyncState.SYNCING:
            self._set_state(SyncState.OFFLINE)
        return self.reporter.report(operation, error, path)

    # ---- push ---------------------------------------------------------
    def push_to_cloud(self) -> bool:
        """Upload the current document to the cloud folder."""
        folder = self.cloud_folder
        current = self.workbook.current_file
        if folder is None:
            return self._fail(
                "push_to_cloud", NotFoundError("No cloud folder configured. Set a cloud folder first.")
            )
        if current is None:
            return self._fail(
                "push_to_cloud", NotFoundError("No file loaded. Open or create a file first.")
            )
        if not self.can_edit():
            return self._fail(
                "push_to_cloud",
                EditPermissionError(f"You don't have permission to upload (role: {self.user_role})"),
            )

        cloud = folder / current.name
        logger.info(f"syncing to cloud: {current} -> {cloud}")
        self._set_state(SyncState.SYNCING)
        try:
            self._push(current, cloud)
            self._mark_synced()
        except StockSyncError as e:
            return self._fail("push_to_cloud", e, cloud)
        logger.info(f"synced to cloud: {cloud}")
        return True

    def _push(self, current: Path, cloud: Path) -> None:
        if _same_file(current, cloud):
            # already lives in the cloud folder
            self.workbook.save(current)
            return

        if self.locks.is_locked(cloud):
            raise LockConflictError(
                "File is being edited by another user. Please try again later.",
                owner=self.locks.owner(cloud),
            )
        if not self.locks.acquire(cloud):
            raise SyncIOError(f"Could not create lock file for {cloud}")

        try:
            local = self.workbook.save(current)
            if cloud.exists():
                try:
                    cloud.unlink()
                except OSError as e:
                    logger.warning(f"could not remove old cloud file {cloud}: {e}")
            shutil.copyfile(local, cloud)
        except OSError as e:
            self.locks.release(cloud)
            raise SyncIOError(f"Failed to upload to cloud folder. Check permissions. ({e})") from e
        except StockSyncError:
            self.locks.release(cloud)
            raise

        self.releases.schedule(cloud)

    # ---- pull ---------------------------------------------------------
    def pull_from_cloud(self) -> bool:
        """Replace the open document with the cloud copy."""
        if self.cloud_folder is None:
            return self._fail("pull_from_cloud", NotFoundError("No cloud folder configured"))

        self._set_state(SyncState.SYNCING)
        cloud = self.cloud_file_path()
        if cloud is None or not cloud.exists():
            return self._fail("pull_from_cloud", NotFoundError("No file found in cloud folder"), cloud)
        if self.locks.is_locked(cloud):
            return self._fail(
                "pull_from_cloud",
                LockConflictError("File is being edited by another user", owner=self.locks.owner(cloud)),
                cloud,
            )

        previous = self.workbook.current_file
        try:
            self.workbook.load(cloud)
        except StockSyncError as e:
            return self._fail("pull_from_cloud", e, cloud)

        target = self.workbook.canonical_file or previous
        if target is not None and not _same_file(target, cloud):
            try:
                target.unlink(missing_ok=True)
                shutil.copyfile(cloud, target)
            except OSError as e:
                logger.warning(f"could not copy cloud file to {target}, using cloud file: {e}")
            else:
                self.workbook.adopt_path(target)
                logger.info(f"copied cloud file to {target}")

        try:
            self._mark_synced()
        except StockSyncError as e:
            return self._fail("pull_from_cloud", e, self.store.path)
        logger.info(f"synced from cloud, current file now: {self.workbook.current_file}")
        return True

    # ---- update check -------------------------------------------------
    def check_for_updates(self) -> bool:
        """Return True when the cloud copy is strictly newer than the local file.

        Only a conflict_detected event is emitted; nothing is loaded or changed.
        """
        cloud = self.cloud_file_path()
        current = self.workbook.current_file
        if cloud is None or current is None or not cloud.exists():
            return False
        try:
            cloud_mtime = cloud.stat().st_mtime
            local_mtime = current.stat().st_mtime if current.exists() else float("-inf")
        except OSError as e:
            logger.warning(f"cannot compare modification times: {e}")
            return False
        if cloud_mtime > local_mtime:
            logger.warning("cloud file is newer")
            self.events.emit("conflict_detected", "Cloud file has been updated by another user")
            return True
        return False

    # ---- deferred releases --------------------------------------------
    def run_pending_releases(self) -> int:
        return self.releases.run_pending()

    def drain_releases(self) -> int:
        return self.releases.drain()
