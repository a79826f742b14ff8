from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from stocksync.excel.reader import (
    DEFAULT_SCAN_COLUMNS,
    DEFAULT_SCAN_ROWS,
    MAX_SCAN_COLUMNS,
    is_recognized,
    normalize_grid,
    read_delta_rows,
    read_grid,
    read_header,
    resolve_scan_range,
)
from stocksync.models.document import COLUMN_COUNT, PURCHASE_HEADER, STOCK_HEADER
from stocksync.models.errors import EmptyDocumentError, FormatError, LoadError, NotFoundError


class TestResolveScanRange:
    def test_valid_range_is_kept(self):
        assert resolve_scan_range(1, 20, 1, 7) == (1, 20, 1, 7)

    def test_inverted_bounds_fall_back_to_defaults(self):
        assert resolve_scan_range(1, 0, 1, 0) == (1, DEFAULT_SCAN_ROWS, 1, DEFAULT_SCAN_COLUMNS)

    def test_non_positive_firsts_are_clamped(self):
        assert resolve_scan_range(0, 10, -3, 5) == (1, 10, 1, 5)

    def test_columns_are_capped(self):
        assert resolve_scan_range(1, 10, 1, 200)[3] == MAX_SCAN_COLUMNS


class TestNormalizeGrid:
    def test_header_width_is_last_non_empty_header_cell(self):
        df = pd.DataFrame(
            [["A", "B", None, None], ["x", 1, None, "extra"]],
            dtype=object,
        )
        assert normalize_grid(df) == [["A", "B"], ["x", 1]]

    def test_short_rows_are_padded(self):
        df = pd.DataFrame([["A", "B", "C"], ["x", None, None]], dtype=object)
        assert normalize_grid(df) == [["A", "B", "C"], ["x", None, None]]

    def test_empty_rows_are_skipped(self):
        df = pd.DataFrame([["A", "B"], [None, None], ["x", "y"], ["", "  "], ["z", None]], dtype=object)
        assert normalize_grid(df) == [["A", "B"], ["x", "y"], ["z", None]]

    def test_scan_stops_after_five_consecutive_empty_rows(self):
        empty = [None, None]
        rows = [["A", "B"], ["r1", 1], *[empty] * 4, ["r2", 2], *[empty] * 5, ["r3", 3]]
        df = pd.DataFrame(rows, dtype=object)
        assert normalize_grid(df) == [["A", "B"], ["r1", 1], ["r2", 2]]

    def test_cells_are_plain_python_values(self):
        df = pd.DataFrame([["A", "B", "C"], [np.int64(4), 3.0, np.nan]], dtype=object)
        grid = normalize_grid(df)
        assert grid[1] == [4, 3, None]
        assert type(grid[1][0]) is int
        assert type(grid[1][1]) is int

    def test_empty_frame(self):
        assert normalize_grid(pd.DataFrame()) == []


class TestReadGrid:
    def test_round_trip(self, temp_workdir: Path, make_workbook):
        rows = [list(STOCK_HEADER), ["BoltM6", "P1", 10, None, None, None, "Acme"], ["NA", "P2", 0, "QA", None, None, None]]
        path = make_workbook(temp_workdir / "stock.xlsx", rows)
        assert read_grid(path) == rows

    def test_missing_file(self, temp_workdir: Path):
        with pytest.raises(NotFoundError):
            read_grid(temp_workdir / "missing.xlsx")

    def test_unrecognized_extension(self, temp_workdir: Path):
        path = temp_workdir / "stock.csv"
        path.write_text("Part Name,Part No,Stock\n", encoding="utf-8")
        with pytest.raises(FormatError):
            read_grid(path)

    def test_corrupt_workbook(self, temp_workdir: Path):
        path = temp_workdir / "broken.xlsx"
        path.write_bytes(b"not a zip archive")
        with pytest.raises(LoadError):
            read_grid(path)

    def test_empty_workbook(self, temp_workdir: Path, make_workbook):
        path = make_workbook(temp_workdir / "empty.xlsx", [])
        with pytest.raises(EmptyDocumentError):
            read_grid(path)

    def test_read_header(self, temp_workdir: Path, make_workbook):
        path = make_workbook(temp_workdir / "stock.xlsx", [list(STOCK_HEADER), ["BoltM6", "P1", 10]])
        assert read_header(path) == STOCK_HEADER


class TestReadDeltaRows:
    def test_rows_after_blank_gap_are_kept(self, temp_workdir: Path, make_workbook):
        blank = [None] * COLUMN_COUNT
        rows = [list(PURCHASE_HEADER), ["A", "P1", 1, None, None, None, None]]
        rows += [list(blank) for _ in range(5)]
        rows.append(["B", "P2", 2, None, None, None, None])
        path = make_workbook(temp_workdir / "purchase.xlsx", rows)

        delta = read_delta_rows(path)

        assert delta[-1] == ["B", "P2", 2, None, None, None, None]
        assert len(delta) == 8
        assert all(len(row) == COLUMN_COUNT for row in delta)

    def test_blank_header_cells_do_not_narrow_rows(self, temp_workdir: Path, make_workbook):
        rows = [
            ["Part Name", "Part No", "Purchase", None, None, None, None],
            ["A", "P1", 1, "Dept", "Ann", "Bob", "Acme"],
        ]
        path = make_workbook(temp_workdir / "purchase.xlsx", rows)

        delta = read_delta_rows(path)

        assert delta[0] == ["Part Name", "Part No", "Purchase", None, None, None, None]
        assert delta[1] == ["A", "P1", 1, "Dept", "Ann", "Bob", "Acme"]

    def test_wide_rows_are_cut_and_narrow_rows_padded(self, temp_workdir: Path, make_workbook):
        rows = [list(PURCHASE_HEADER) + ["Notes"], ["A", "P1", 1, None, None, None, "Acme", "x"], ["B"]]
        path = make_workbook(temp_workdir / "purchase.xlsx", rows)

        delta = read_delta_rows(path)

        assert delta[0] == PURCHASE_HEADER
        assert delta[1] == ["A", "P1", 1, None, None, None, "Acme"]
        assert delta[2] == ["B"] + [None] * (COLUMN_COUNT - 1)

    def test_empty_workbook(self, temp_workdir: Path, make_workbook):
        path = make_workbook(temp_workdir / "empty.xlsx", [])
        with pytest.raises(EmptyDocumentError):
            read_delta_rows(path)


@pytest.mark.parametrize(
    "name,expected",
    [("a.xlsx", True), ("a.XLSM", True), ("a.xls", False), ("a.csv", False), ("a", False)],
)
def test_is_recognized(name, expected):
    assert is_recognized(Path(name)) is expected
