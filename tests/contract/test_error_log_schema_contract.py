from __future__ import annotations

import json
import re
from pathlib import Path

from stocksync.logging.error_log import ErrorLogBuffer
from stocksync.models.errors import (
    EditPermissionError,
    EmptyDocumentError,
    FormatError,
    LoadError,
    LockConflictError,
    NotFoundError,
    SettingsError,
    StructureError,
    SyncIOError,
)
from stocksync.services.events import ErrorReporter, EventBus

"""Error journal JSON Lines contract."""

REQUIRED_KEYS = {"timestamp", "operation", "path", "error_type", "message"}
UPPER_SNAKE = re.compile(r"^[A-Z][A-Z0-9_]*$")
ISO_Z = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")


def test_every_error_kind_produces_a_valid_line(temp_workdir: Path):
    errors = [
        NotFoundError("missing"),
        FormatError("bad extension"),
        StructureError("stock file"),
        EmptyDocumentError("empty"),
        LoadError("corrupt"),
        EditPermissionError("viewer"),
        LockConflictError("locked", owner="userB"),
        SyncIOError("copy failed"),
        SettingsError("settings not writable"),
    ]
    reporter = ErrorReporter(EventBus(), ErrorLogBuffer())
    for error in errors:
        reporter.report("push_to_cloud", error, Path("cloud/stock.xlsx"))

    journal = reporter.error_log.flush()
    lines = journal.read_text(encoding="utf-8").splitlines()
    assert len(lines) == len(errors)

    types = []
    for raw in lines:
        obj = json.loads(raw)
        assert set(obj.keys()) == REQUIRED_KEYS
        assert ISO_Z.match(obj["timestamp"])
        assert UPPER_SNAKE.match(obj["error_type"])
        types.append(obj["error_type"])
    assert len(set(types)) == len(errors)
