from __future__ import annotations

from stocksync.models.merge_report import MergeReport
from stocksync.services.summary import render_summary_line


def test_render_summary_line_basic():
    report = MergeReport(rows_added=1, rows_updated=2, rows_skipped=3, duplicates_skipped=4, source="purchase.xlsx")
    line = render_summary_line(report, 42)
    assert line == "SUMMARY merged=purchase.xlsx added=1 updated=2 skipped=3 duplicates=4 total_rows=42"


def test_render_summary_line_without_source():
    line = render_summary_line(MergeReport(), 1)
    assert line.startswith("SUMMARY merged=- added=0")


def test_touched_counts_added_and_updated():
    assert MergeReport(rows_added=2, rows_updated=5, rows_skipped=9).touched == 7
