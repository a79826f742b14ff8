"""Domain models for the stock workbook manager.

This package contains the in-memory table, the fixed workbook schema, merge
results and the error taxonomy shared by the services.
"""

from .document import DocumentKind, SyncState, UserRole, document_kind
from .error_record import ErrorRecord
from .errors import (
    EditPermissionError,
    EmptyDocumentError,
    FormatError,
    LoadError,
    LockConflictError,
    NotFoundError,
    StockSyncError,
    StructureError,
    SettingsError,
    SyncIOError,
)
from .merge_report import MergeReport, SearchHit
from .table_store import TableChange, TableStore

__all__ = [
    # Schema
    "DocumentKind",
    "SyncState",
    "UserRole",
    "document_kind",
    # Table
    "TableChange",
    "TableStore",
    # Results
    "MergeReport",
    "SearchHit",
    "ErrorRecord",
    # Errors
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
