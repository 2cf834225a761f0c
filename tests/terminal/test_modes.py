"""
Tests for terminal mode utilities.
"""

from __future__ import annotations

import os
import sys
from unittest.mock import patch

import pytest

from sshhop.exceptions import RawModeError, TerminalSizeError
from sshhop.terminal.modes import RawMode, TerminalSize, get_terminal_size, is_tty

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="Unix only")


class TestTerminalSize:
    """Test TerminalSize."""

    def test_fields(self):
        """TerminalSize is (cols, rows)."""
        size = TerminalSize(120, 40)
        assert size.cols == 120
        assert size.rows == 40
        assert str(size) == "120x40"

    def test_equality(self):
        """Sizes compare by value."""
        assert TerminalSize(80, 24) == TerminalSize(80, 24)
        assert TerminalSize(80, 24) != TerminalSize(24, 80)


class TestGetTerminalSize:
    """Test get_terminal_size()."""

    def test_returns_size(self):
        """Reads columns and lines from os.get_terminal_size."""
        with patch("os.get_terminal_size", return_value=os.terminal_size((132, 43))):
            assert get_terminal_size(0) == TerminalSize(132, 43)

    def test_error_raises(self):
        """Errors raise TerminalSizeError instead of a fallback."""
        with patch("os.get_terminal_size", side_effect=OSError(25, "Inappropriate ioctl")):
            with pytest.raises(TerminalSizeError):
                get_terminal_size(0)


class TestIsTty:
    """Test is_tty()."""

    def test_with_fd(self):
        """is_tty(fd) delegates to os.isatty."""
        with patch("os.isatty", return_value=True) as mock_isatty:
            assert is_tty(7) is True
            mock_isatty.assert_called_once_with(7)

    def test_default_stdin(self):
        """is_tty() checks stdin.isatty()."""
        with patch.object(sys, "stdin") as mock_stdin:
            mock_stdin.isatty.return_value = False
            assert is_tty() is False


class TestRawMode:
    """Test RawMode scoped resource."""

    def test_enter_and_restore_once(self):
        """Attributes captured on enter are restored exactly once."""
        saved = [0, 0, 0, 0, 0, 0, []]
        with patch("termios.tcgetattr", return_value=saved), patch("tty.setraw") as mock_setraw:
            with patch("termios.tcsetattr") as mock_setattr:
                mode = RawMode(5)
                with mode:
                    assert mode.is_raw
                    mock_setraw.assert_called_once_with(5)
                assert mode.restore() is False

        assert mode.restore_count == 1
        assert mock_setattr.call_count == 1
        assert mock_setattr.call_args.args[0] == 5
        assert mock_setattr.call_args.args[2] is saved

    def test_restored_on_exception(self):
        """An error inside the block still restores the terminal."""
        with patch("termios.tcgetattr", return_value=[]), patch("tty.setraw"):
            with patch("termios.tcsetattr") as mock_setattr:
                mode = RawMode(5)
                with pytest.raises(RuntimeError):
                    with mode:
                        raise RuntimeError("boom")

        assert mode.restore_count == 1
        mock_setattr.assert_called_once()

    def test_enter_failure_captures_nothing(self):
        """Failure to enter raw mode raises and leaves nothing to restore."""
        import termios

        with patch("termios.tcgetattr", side_effect=termios.error(25, "Inappropriate ioctl")):
            with patch("termios.tcsetattr") as mock_setattr:
                mode = RawMode(5)
                with pytest.raises(RawModeError):
                    with mode:
                        pass  # pragma: no cover

                assert mode.snapshot is None
                assert mode.restore() is False

        mock_setattr.assert_not_called()
        assert mode.restore_count == 0

    def test_restore_failure_logged(self):
        """A failed restore reports False but does not raise."""
        with patch("termios.tcgetattr", return_value=[]), patch("tty.setraw"):
            with patch("termios.tcsetattr", side_effect=OSError(5, "I/O error")):
                mode = RawMode(5)
                mode.enter()
                assert mode.restore() is False

        assert mode.restore_count == 1
        assert mode.is_raw is False
