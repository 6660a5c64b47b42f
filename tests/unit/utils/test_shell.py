"""Unit tests for shell execution utilities."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest
from flatmirror.utils.shell import CommandResult, command_exists, run_command


class TestCommandResult:
    """Tests for CommandResult dataclass."""

    def test_success_on_zero_exit(self) -> None:
        """Exit code 0 is a success."""
        assert CommandResult(stdout="", stderr="", returncode=0).success

    def test_failure_on_nonzero_exit(self) -> None:
        """Non-zero exit codes are failures."""
        assert not CommandResult(stdout="", stderr="", returncode=1).success

    def test_diagnostic_prefers_stderr(self) -> None:
        """diagnostic returns stripped stderr when present."""
        result = CommandResult(stdout="out", stderr="  error: nope\n", returncode=1)
        assert result.diagnostic == "error: nope"

    def test_diagnostic_falls_back_to_stdout(self) -> None:
        """diagnostic uses stdout when stderr is empty."""
        result = CommandResult(stdout="something failed\n", stderr="", returncode=1)
        assert result.diagnostic == "something failed"

    def test_diagnostic_falls_back_to_exit_status(self) -> None:
        """diagnostic names the exit status when there is no output."""
        result = CommandResult(stdout="", stderr="", returncode=3)
        assert result.diagnostic == "exit status 3"

    def test_is_frozen(self) -> None:
        """CommandResult is immutable."""
        result = CommandResult(stdout="", stderr="", returncode=0)
        with pytest.raises(AttributeError):
            result.returncode = 1  # type: ignore[misc]


class TestRunCommand:
    """Tests for run_command function."""

    @patch("flatmirror.utils.shell.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        """run_command wraps the completed process."""
        mock_run.return_value = MagicMock(stdout="abc\n", stderr="", returncode=0)

        result = run_command(["ostree", "refs"])

        assert result == CommandResult(stdout="abc\n", stderr="", returncode=0)
        assert mock_run.call_args.kwargs["capture_output"] is True
        assert mock_run.call_args.kwargs["text"] is True

    @patch("flatmirror.utils.shell.subprocess.run")
    def test_passes_timeout_and_cwd(self, mock_run: MagicMock) -> None:
        """run_command forwards timeout and working directory."""
        mock_run.return_value = MagicMock(stdout="", stderr="", returncode=0)

        run_command(["ls"], timeout=5.0, cwd="/tmp")

        assert mock_run.call_args.kwargs["timeout"] == 5.0
        assert mock_run.call_args.kwargs["cwd"] == "/tmp"

    @patch("flatmirror.utils.shell.subprocess.run")
    def test_propagates_timeout(self, mock_run: MagicMock) -> None:
        """run_command lets TimeoutExpired propagate."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=["ostree"], timeout=1)

        with pytest.raises(subprocess.TimeoutExpired):
            run_command(["ostree", "pull"], timeout=1)


class TestCommandExists:
    """Tests for command_exists function."""

    @patch("flatmirror.utils.shell.shutil.which", return_value="/usr/bin/ostree")
    def test_found(self, mock_which: MagicMock) -> None:
        """command_exists is True when the executable is on PATH."""
        assert command_exists("ostree")
        mock_which.assert_called_once_with("ostree")

    @patch("flatmirror.utils.shell.shutil.which", return_value=None)
    def test_missing(self, mock_which: MagicMock) -> None:
        """command_exists is False when the executable is missing."""
        assert not command_exists("flatpak")
