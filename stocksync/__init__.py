"""stocksync: reconcile purchase sheets into a stock workbook and share it through a synced folder."""

__version__ = "1.0.0"
