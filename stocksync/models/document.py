from __future__ import annotations

from enum import Enum

"""Document schema constants and lifecycle enums.

The stock workbook and the purchase workbook share one 7-column layout. Only the
header of the quantity column differs, and that header is what tells the two apart.
"""

__all__ = [
    "COLUMN_COUNT",
    "COL_PART_NAME",
    "COL_PART_NO",
    "COL_QUANTITY",
    "COL_DEPARTMENT",
    "COL_PREPARED",
    "COL_APPROVED",
    "COL_VENDOR",
    "OVERWRITE_COLUMNS",
    "STOCK_HEADER",
    "PURCHASE_HEADER",
    "DocumentKind",
    "SyncState",
    "UserRole",
    "document_kind",
]

COLUMN_COUNT = 7

COL_PART_NAME = 0
COL_PART_NO = 1
COL_QUANTITY = 2
COL_DEPARTMENT = 3
COL_PREPARED = 4
COL_APPROVED = 5
COL_VENDOR = 6

# Columns a merge may overwrite on an existing part (sparse overwrite)
OVERWRITE_COLUMNS = (COL_PART_NO, COL_DEPARTMENT, COL_PREPARED, COL_APPROVED, COL_VENDOR)

STOCK_HEADER = ["Part Name", "Part No", "Stock", "Department", "Prepared", "Approved", "Vendor Name"]
PURCHASE_HEADER = ["Part Name", "Part No", "Purchase", "Department", "Prepared", "Approved", "Vendor Name"]


class DocumentKind(Enum):
    """Kind of workbook, decided by the header text of the quantity column."""
    STOCK = "stock"
    PURCHASE = "purchase"


class SyncState(Enum):
    """Cloud sync status.

    Transitions: offline|synced|conflict -> syncing -> (synced | offline | conflict)
    """
    OFFLINE = "offline"
    SYNCING = "syncing"
    SYNCED = "synced"
    CONFLICT = "conflict"


class UserRole(Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"

    @property
    def can_edit(self) -> bool:
        return self in (UserRole.OWNER, UserRole.EDITOR)


def document_kind(header: list[object] | None) -> DocumentKind:
    """Return the kind of a document from its header row.

    Anything other than a literal "purchase" (case-insensitive, trimmed) in the
    quantity column is treated as a stock document.
    """
    if not header or len(header) <= COL_QUANTITY:
        return DocumentKind.STOCK
    cell = header[COL_QUANTITY]
    text = "" if cell is None else str(cell).strip().lower()
    if text == DocumentKind.PURCHASE.value:
        return DocumentKind.PURCHASE
    return DocumentKind.STOCK
