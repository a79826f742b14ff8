from __future__ import annotations

from dataclasses import dataclass, field

"""Merge result model.

MergeReport aggregates what one purchase workbook did to the stock dataset.
It is built incrementally by MergeEngine and rendered by services.summary.
"""

__all__ = [
    "MergeReport",
    "SearchHit",
]


@dataclass
class MergeReport:
    rows_added: int = 0  # parts appended to the stock dataset
    rows_updated: int = 0  # existing parts whose quantity was accumulated
    rows_skipped: int = 0  # delta rows with an empty part name
    duplicates_skipped: int = 0  # later repeats of a part inside the same delta
    source: str = ""  # delta file name (empty for in-memory merges)
    updated_parts: list[str] = field(default_factory=list)
    added_parts: list[str] = field(default_factory=list)

    @property
    def touched(self) -> int:
        return self.rows_added + self.rows_updated


@dataclass(frozen=True)
class SearchHit:
    """One match returned by a free-text search over the stock dataset."""
    row: int
    part_name: object
    part_no: object
    stock: object
    vendor: object
