from __future__ import annotations

from ..models.merge_report import MergeReport

"""SUMMARY line rendering for merge results."""


def render_summary_line(report: MergeReport, total_rows: int) -> str:
    """Render the SUMMARY line printed after a merge.

    Format:
    SUMMARY merged={source} added={n} updated={n} skipped={n} duplicates={n} total_rows={n}

    Examples:
        >>> r = MergeReport(rows_added=1, rows_updated=2, source="purchase.xlsx")
        >>> render_summary_line(r, 10)
        'SUMMARY merged=purchase.xlsx added=1 updated=2 skipped=0 duplicates=0 total_rows=10'
    """
    source = report.source or "-"
    return (
        f"SUMMARY merged={source} "
        f"added={report.rows_added} "
        f"updated={report.rows_updated} "
        f"skipped={report.rows_skipped} "
        f"duplicates={report.duplicates_skipped} "
        f"total_rows={total_rows}"
    )
