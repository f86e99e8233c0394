"""Tests for stackprobe.cli entry point."""

from __future__ import annotations

from unittest.mock import patch


class TestMainEntry:
    """Tests for the main() entry point."""

    @patch("stackprobe.cli.CLIRunner")
    def test_main_creates_runner(self, mock_runner_cls) -> None:
        """Verify main() creates CLIRunner and calls run."""
        mock_runner = mock_runner_cls.return_value
        mock_runner.run.return_value = 0

        from stackprobe.cli import main
        result = main()

        assert result == 0
        mock_runner.run.assert_called_once_with(None)

    @patch("stackprobe.cli.CLIRunner")
    def test_main_passes_argv(self, mock_runner_cls) -> None:
        """Verify main() passes argv to runner."""
        mock_runner = mock_runner_cls.return_value
        mock_runner.run.return_value = 3

        from stackprobe.cli import main
        result = main(["--format", "summary", "project"])

        assert result == 3
        mock_runner.run.assert_called_once_with(["--format", "summary", "project"])
