from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Error journal for ErrorReporter.

Reported failures accumulate in ``records`` until flush, which appends them as
JSON Lines to ``<logs_dir>/errors-YYYYMMDD-HHMMSS.log``. The stamp is UTC and
taken at the first flush that has records, so a session without failures
leaves no file behind and later flushes keep appending to the same journal.
"""

__all__ = [
    "ErrorLogBuffer",
]


class ErrorLogBuffer:
    def __init__(self, logs_dir: Path | None = None) -> None:
        self.logs_dir = logs_dir if logs_dir is not None else Path("logs")
        self.records: list[ErrorRecord] = []
        self.path: Path | None = None

    def append(self, record: ErrorRecord) -> None:
        self.records.append(record)

    def __len__(self) -> int:
        return len(self.records)

    def flush(self) -> Path | None:
        """Append pending records to the journal; returns its path, or None if nothing was pending."""
        if not self.records:
            return None
        if self.path is None:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            self.path = self.logs_dir / f"errors-{datetime.now(UTC):%Y%m%d-%H%M%S}.log"
        lines = "".join(record.to_json_line() + "\n" for record in self.records)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(lines)
        self.records.clear()
        return self.path
