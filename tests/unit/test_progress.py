from __future__ import annotations

from unittest.mock import Mock, patch

from stocksync.services.progress import MergeProgress, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    """Test that is_tty_enabled returns sys.stdout.isatty()."""
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestMergeProgress:
    """Test cases for MergeProgress class."""

    def test_init_with_tty_enabled(self):
        """Test MergeProgress initialization when TTY is enabled."""
        with patch('stocksync.services.progress.is_tty_enabled', return_value=True), \
             patch('stocksync.services.progress.tqdm') as mock_tqdm:

            progress = MergeProgress(12, description="Merging purchase.xlsx")

            assert progress.total_rows == 12
            assert progress.current_row == 0
            assert progress.enabled is True
            mock_tqdm.assert_called_once_with(
                total=12,
                desc="Merging purchase.xlsx",
                unit="row",
                disable=False,
                leave=False,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        """Test MergeProgress initialization when TTY is disabled."""
        with patch('stocksync.services.progress.is_tty_enabled', return_value=False), \
             patch('stocksync.services.progress.tqdm') as mock_tqdm:
            progress = MergeProgress(12)

            assert progress.enabled is False
            assert progress.pbar is None
            mock_tqdm.assert_not_called()

    def test_advance_updates_bar_and_postfix(self):
        """Test advance updates the bar by one row and sets postfix stats."""
        mock_pbar = Mock()
        with patch('stocksync.services.progress.is_tty_enabled', return_value=True), \
             patch('stocksync.services.progress.tqdm', return_value=mock_pbar):
            progress = MergeProgress(3)
            progress.advance(added=1, updated=0)
            progress.advance()

            assert progress.current_row == 2
            assert mock_pbar.update.call_count == 2
            mock_pbar.set_postfix.assert_called_once_with(added=1, updated=0)

    def test_advance_with_tty_disabled(self):
        """Test advance only counts rows when TTY is disabled."""
        with patch('stocksync.services.progress.is_tty_enabled', return_value=False):
            progress = MergeProgress(3)
            progress.advance(added=1)
            assert progress.current_row == 1

    def test_context_manager_closes_bar(self):
        """Test leaving the context closes the bar exactly once."""
        mock_pbar = Mock()
        with patch('stocksync.services.progress.is_tty_enabled', return_value=True), \
             patch('stocksync.services.progress.tqdm', return_value=mock_pbar):
            with MergeProgress(1) as progress:
                progress.advance()
            progress.close()

            mock_pbar.close.assert_called_once()
            assert progress.pbar is None
