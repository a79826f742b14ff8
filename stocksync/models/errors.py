from __future__ import annotations

"""Error taxonomy for workbook, merge and cloud sync operations.

Each error carries an UPPER_SNAKE ``error_type`` used in the JSON Lines error
journal (see stocksync.models.error_record). These are raised by internal
helpers and recovered at the operation boundary (StockManager / SyncCoordinator),
where they are turned into an ``error_occurred`` event and a False return.
"""

__all__ = [
    "StockSyncError",
    "NotFoundError",
    "FormatError",
    "StructureError",
    "EmptyDocumentError",
    "LoadError",
    "EditPermissionError",
    "LockConflictError",
    "SyncIOError",
    "SettingsError",
]


class StockSyncError(Exception):
    """Base class for recoverable operation failures."""

    error_type = "STOCKSYNC_ERROR"


class NotFoundError(StockSyncError):
    """Referenced file or folder does not exist."""

    error_type = "NOT_FOUND"


class FormatError(StockSyncError):
    """File extension is not a recognized workbook format."""

    error_type = "UNSUPPORTED_FORMAT"


class StructureError(StockSyncError):
    """Delta document header does not read "Purchase" in the quantity column."""

    error_type = "STRUCTURE_MISMATCH"


class EmptyDocumentError(StockSyncError):
    """Loading produced zero rows after normalization."""

    error_type = "EMPTY_DOCUMENT"


class LoadError(StockSyncError):
    """Workbook exists but could not be read."""

    error_type = "LOAD_FAILED"


class EditPermissionError(StockSyncError):
    """Current role may not upload to the cloud folder."""

    error_type = "PERMISSION_DENIED"


class LockConflictError(StockSyncError):
    """Target is locked by another user and the lock is not stale."""

    error_type = "LOCK_CONFLICT"

    def __init__(self, message: str, owner: str | None = None) -> None:
        super().__init__(message)
        self.owner = owner


class SyncIOError(StockSyncError):
    """Underlying save / copy / remove operation failed."""

    error_type = "IO_FAILED"


class SettingsError(StockSyncError):
    """Settings could not be persisted or a setting value is invalid."""

    error_type = "SETTINGS_FAILED"
