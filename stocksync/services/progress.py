from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Merge progress display with tqdm (TTY only).

In non-TTY environments (CI, redirected output) no bar is created so that log
lines are not interleaved with ANSI control sequences.
"""

__all__ = [
    "MergeProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class MergeProgress:
    """Progress bar over the data rows of a purchase workbook."""

    def __init__(self, total_rows: int, *, description: str = "Merging") -> None:
        self.total_rows = total_rows
        self.description = description
        self.current_row = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, **postfix: Any) -> None:
        """Mark one row as processed, optionally updating the postfix stats."""
        self.current_row += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            if postfix:
                self.pbar.set_postfix(**postfix)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> MergeProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
