from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.errors import StockSyncError

"""Observer interface for change notifications.

Services publish named events (document replaced, row changed, sync status
changed, conflict detected, ...) and any number of listeners can subscribe to
them. Delivery is synchronous, in subscription order, on the caller's thread.
"""

__all__ = [
    "EVENT_NAMES",
    "EventBus",
    "ErrorReporter",
]

logger = logging.getLogger(__name__)

EVENT_NAMES = frozenset(
    {
        "document_replaced",
        "row_changed",
        "current_file_changed",
        "canonical_file_changed",
        "unsaved_changes_changed",
        "file_loaded",
        "file_saved",
        "file_merged",
        "search_result_found",
        "sync_status_changed",
        "last_sync_time_changed",
        "sync_completed",
        "conflict_detected",
        "settings_changed",
        "error_occurred",
    }
)

Handler = Callable[..., None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register handler for event. Returns a callable that removes it again."""
        if event not in EVENT_NAMES:
            raise ValueError(f"unknown event: {event}")
        self._handlers[event].append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return _unsubscribe

    def emit(self, event: str, *args: Any) -> None:
        if event not in EVENT_NAMES:
            raise ValueError(f"unknown event: {event}")
        logger.debug(f"event {event} {args}")
        for handler in list(self._handlers[event]):
            handler(*args)


class ErrorReporter:
    """Turns a caught StockSyncError into a reported failure.

    The error is logged at ERROR, kept in the error journal and published as an
    ``error_occurred`` event. The last reported error stays available for callers
    that need more than the boolean result.
    """

    def __init__(self, events: EventBus, error_log: ErrorLogBuffer | None = None) -> None:
        self.events = events
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self.last_error: StockSyncError | None = None

    def report(self, operation: str, error: StockSyncError, path: Path | None = None) -> bool:
        self.last_error = error
        logger.error(f"{operation}: {error}")
        self.error_log.append(
            ErrorRecord.create(
                operation=operation,
                path=str(path) if path is not None else "",
                error_type=error.error_type,
                message=str(error),
            )
        )
        self.events.emit("error_occurred", str(error))
        return False
