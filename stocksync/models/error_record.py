from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the operation error journal.

Every failure reported at an operation boundary is kept as one ErrorRecord and
written as a JSON Lines entry with a fixed key set.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        operation: Operation that failed (e.g. "merge", "push_to_cloud")
        path: File the operation was working on, empty when unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str  # ISO8601 UTC
    operation: str
    path: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(operation: str, path: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            operation=operation,
            path=path,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # asdict keeps the key set fixed to the dataclass fields
        return json.dumps(asdict(self), ensure_ascii=False)
