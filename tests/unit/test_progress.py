from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

from invoice_import.services.progress import ProgressTracker, RowProgressIndicator, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """Test cases for ProgressTracker class."""

    def test_init_with_tty_enabled(self):
        with patch('invoice_import.services.progress.is_tty_enabled', return_value=True), \
             patch('invoice_import.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(5, description="Test files")

            assert tracker.total_files == 5
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Test files",
                unit="file",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('invoice_import.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(5, description="Test files")

            assert tracker.enabled is False
            assert tracker.pbar is None

    def test_file_lifecycle_with_tty_enabled(self):
        mock_pbar = Mock()

        with patch('invoice_import.services.progress.is_tty_enabled', return_value=True), \
             patch('invoice_import.services.progress.tqdm', return_value=mock_pbar):

            tracker = ProgressTracker(3, description="Processing")
            tracker.start_file(Path("jan.csv"))
            assert tracker.current_file == 1
            mock_pbar.set_description.assert_called_once_with("Processing (jan.csv)")

            tracker.set_postfix(success=1, failed=0, invoices=12)
            mock_pbar.set_postfix.assert_called_once_with(success=1, failed=0, invoices=12)

            tracker.finish_file(success=True)
            mock_pbar.update.assert_called_once_with(1)
            mock_pbar.set_description.assert_called_with("Processing")

    def test_file_lifecycle_with_tty_disabled(self):
        with patch('invoice_import.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(3)
            tracker.start_file(Path("jan.csv"))
            tracker.set_postfix(success=1)
            tracker.finish_file(success=False)
            assert tracker.current_file == 1

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()

        with patch('invoice_import.services.progress.is_tty_enabled', return_value=True), \
             patch('invoice_import.services.progress.tqdm', return_value=mock_pbar):

            with ProgressTracker(2) as tracker:
                assert tracker.pbar is mock_pbar

            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None


class TestRowProgressIndicator:
    """Test cases for RowProgressIndicator class."""

    def test_update_with_tty_enabled(self):
        with patch('invoice_import.services.progress.is_tty_enabled', return_value=True), \
             patch('builtins.print') as mock_print:

            indicator = RowProgressIndicator("jan.csv")
            indicator.update(50, 200)

            assert indicator.lines_processed == 50
            assert indicator.total_lines == 200
            assert indicator.updates == 1
            mock_print.assert_called_once_with("\r  jan.csv: 50/200 lines (25%)", end="", flush=True)

    def test_update_with_empty_total(self):
        with patch('invoice_import.services.progress.is_tty_enabled', return_value=True), \
             patch('builtins.print') as mock_print:

            RowProgressIndicator("empty.csv").update(0, 0)
            mock_print.assert_called_once_with("\r  empty.csv: 0/0 lines (100%)", end="", flush=True)

    def test_update_with_tty_disabled(self):
        with patch('invoice_import.services.progress.is_tty_enabled', return_value=False), \
             patch('builtins.print') as mock_print:

            indicator = RowProgressIndicator("jan.csv")
            indicator.update(10, 20)
            indicator.finish(success=True, invoices=3)

            assert indicator.updates == 1
            mock_print.assert_not_called()

    def test_finish_messages(self):
        with patch('invoice_import.services.progress.is_tty_enabled', return_value=True), \
             patch('builtins.print') as mock_print:

            indicator = RowProgressIndicator("jan.csv")
            indicator.finish(success=True, invoices=3)
            mock_print.assert_called_with(" - 3 invoices ok")
            indicator.finish(success=False)
            mock_print.assert_called_with(" - 0 invoices failed")
