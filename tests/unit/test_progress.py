from __future__ import annotations

from unittest.mock import Mock, patch

from seatroster.services.progress import ImportProgress, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestImportProgress:

    def test_init_with_tty_enabled(self):
        with patch("seatroster.services.progress.is_tty_enabled", return_value=True), \
             patch("seatroster.services.progress.tqdm") as mock_tqdm:
            progress = ImportProgress(120, description="Importing")

            assert progress.enabled is True
            mock_tqdm.assert_called_once_with(
                total=120,
                desc="Importing",
                unit="row",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch("seatroster.services.progress.is_tty_enabled", return_value=False):
            progress = ImportProgress(10)
            assert progress.enabled is False
            assert progress.pbar is None

    def test_call_updates_bar_by_delta(self):
        mock_pbar = Mock()
        mock_pbar.total = 0
        with patch("seatroster.services.progress.is_tty_enabled", return_value=True), \
             patch("seatroster.services.progress.tqdm", return_value=mock_pbar):
            progress = ImportProgress()
            progress(50, 120)
            progress(100, 120)

        assert mock_pbar.total == 120
        assert [c.args[0] for c in mock_pbar.update.call_args_list] == [50, 50]
        mock_pbar.set_postfix.assert_called_with(done="100/120")
        assert progress.imported == 100

    def test_call_without_tty_tracks_counts(self):
        with patch("seatroster.services.progress.is_tty_enabled", return_value=False):
            progress = ImportProgress()
            progress(20, 40)
        assert progress.imported == 20
        assert progress.percent == 50.0

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()
        with patch("seatroster.services.progress.is_tty_enabled", return_value=True), \
             patch("seatroster.services.progress.tqdm", return_value=mock_pbar):
            with ImportProgress(1) as progress:
                pass
        mock_pbar.close.assert_called_once()
        assert progress.pbar is None

    def test_percent_with_zero_total(self):
        with patch("seatroster.services.progress.is_tty_enabled", return_value=False):
            assert ImportProgress(0).percent == 100.0
