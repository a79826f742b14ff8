from __future__ import annotations

from pathlib import Path

import pytest

from stocksync.excel.reader import read_grid
from stocksync.excel.writer import ensure_extension, write_grid
from stocksync.models.document import PURCHASE_HEADER
from stocksync.models.errors import SyncIOError


@pytest.mark.parametrize(
    "name,expected",
    [("stock", "stock.xlsx"), ("stock.xlsx", "stock.xlsx"), ("stock.xlsm", "stock.xlsm"), ("stock.csv", "stock.csv.xlsx")],
)
def test_ensure_extension(name, expected):
    assert ensure_extension(Path(name)).name == expected


def test_write_grid_appends_extension(temp_workdir: Path):
    rows = [list(PURCHASE_HEADER), ["Washer", "P9", 3, None, None, None, "FastCo"]]
    written = write_grid(temp_workdir / "purchase", rows)
    assert written == temp_workdir / "purchase.xlsx"
    assert read_grid(written) == rows


def test_write_grid_overwrites_existing(temp_workdir: Path):
    target = temp_workdir / "stock.xlsx"
    write_grid(target, [["A", "B"], ["x", 1]])
    write_grid(target, [["A", "B"], ["y", 2]])
    assert read_grid(target) == [["A", "B"], ["y", 2]]


def test_write_grid_into_missing_directory(temp_workdir: Path):
    with pytest.raises(SyncIOError):
        write_grid(temp_workdir / "no" / "such" / "dir" / "stock.xlsx", [["A"]])
