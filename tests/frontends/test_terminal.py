"""Tests for terminal control."""

import os
import signal
import termios
from io import StringIO
from unittest.mock import Mock, patch

import pytest

from termlife.frontends import terminal
from termlife.frontends.terminal import (
    BACKSPACE,
    ENTER,
    ESC,
    SEQUENCE,
    TAB,
    KeyEvent,
    Keyboard,
    TerminalError,
    TerminalSession,
    decode_keys,
    resize_terminal,
    terminal_size,
)


class TestDecodeKeys:
    """Test cases for raw mode key decoding."""

    def test_plain_characters(self):
        """Printable characters decode as themselves."""
        assert decode_keys(b"rS") == [KeyEvent("r"), KeyEvent("S")]

    def test_control_letters(self):
        """Control bytes decode to ctrl + letter."""
        assert decode_keys(b"\x13") == [KeyEvent("s", ctrl=True)]
        assert decode_keys(b"\x03") == [KeyEvent("c", ctrl=True)]

    def test_named_keys(self):
        """Tab, enter and backspace have names."""
        assert decode_keys(b"\t\r\x7f") == [KeyEvent(TAB), KeyEvent(ENTER), KeyEvent(BACKSPACE)]

    def test_lone_escape(self):
        """A single ESC byte is the escape key."""
        assert decode_keys(b"\x1b") == [KeyEvent(ESC)]
        assert decode_keys(b"\x1b\x1b") == [KeyEvent(ESC), KeyEvent(ESC)]

    def test_escape_sequences(self):
        """Arrow and function keys collapse into one sequence event each."""
        assert decode_keys(b"\x1b[A\x1b[15~q") == [KeyEvent(SEQUENCE), KeyEvent(SEQUENCE), KeyEvent("q")]
        assert decode_keys(b"\x1bOP") == [KeyEvent(SEQUENCE)]

    def test_alt_character(self):
        """ESC followed by a character is alt + character."""
        assert decode_keys(b"\x1bq") == [KeyEvent("q", alt=True)]

    def test_utf8(self):
        """Multi-byte characters decode to one event."""
        assert decode_keys("é".encode("utf-8")) == [KeyEvent("é")]


class TestKeyboard:
    """Test cases for non-blocking key polling."""

    @pytest.fixture
    def pipe(self):
        read_fd, write_fd = os.pipe()
        yield read_fd, write_fd
        os.close(read_fd)
        os.close(write_fd)

    def test_poll_without_input(self, pipe):
        """Polling with nothing to read returns None immediately."""
        read_fd, _ = pipe
        keyboard = Keyboard(Mock(fileno=Mock(return_value=read_fd)))
        assert keyboard.poll(0.0) is None

    def test_poll_queues_events(self, pipe):
        """All bytes of one read are returned one event at a time."""
        read_fd, write_fd = pipe
        keyboard = Keyboard(Mock(fileno=Mock(return_value=read_fd)))
        os.write(write_fd, b"p\x13")

        assert keyboard.poll(0.0) == KeyEvent("p")
        assert keyboard.poll(0.0) == KeyEvent("s", ctrl=True)
        assert keyboard.poll(0.0) is None


class TestTerminalSize:
    """Test cases for terminal queries."""

    def test_size(self):
        """Size is returned as (cols, rows)."""
        stream = Mock(fileno=Mock(return_value=1))
        with patch.object(terminal.os, "get_terminal_size", return_value=os.terminal_size((80, 24))):
            assert terminal_size(stream) == (80, 24)

    def test_size_unavailable(self):
        """A stream without a terminal raises TerminalError."""
        stream = Mock(fileno=Mock(return_value=1))
        with patch.object(terminal.os, "get_terminal_size", side_effect=OSError("not a tty")):
            with pytest.raises(TerminalError):
                terminal_size(stream)

    def test_resize(self):
        """Resize writes the window size request with rows first."""
        stream = StringIO()
        resize_terminal(120, 40, stream)
        assert stream.getvalue() == "\x1b[8;40;120t"


class TestTerminalSession:
    """Test cases for raw mode and alternate screen handling."""

    @pytest.fixture
    def tty_calls(self):
        with patch.object(terminal.termios, "tcgetattr", return_value=["attrs"]) as tcgetattr, patch.object(
            terminal.termios, "tcsetattr"
        ) as tcsetattr, patch.object(terminal.tty, "setraw") as setraw:
            yield tcgetattr, tcsetattr, setraw

    def make_session(self):
        return TerminalSession(Mock(fileno=Mock(return_value=0)), StringIO())

    def test_enter_and_exit(self, tty_calls):
        """Entering switches modes; leaving restores them in reverse."""
        tcgetattr, tcsetattr, setraw = tty_calls
        session = self.make_session()

        with session:
            assert session.active
            setraw.assert_called_once_with(0)
            assert session.stdout.getvalue() == terminal.ENTER_ALTERNATE_SCREEN + terminal.HIDE_CURSOR

        assert not session.active
        assert session.stdout.getvalue().endswith(terminal.SHOW_CURSOR + terminal.LEAVE_ALTERNATE_SCREEN)
        tcsetattr.assert_called_once_with(0, termios.TCSADRAIN, ["attrs"])

    def test_restores_on_exception(self, tty_calls):
        """The terminal is restored when the block raises."""
        _, tcsetattr, _ = tty_calls
        session = self.make_session()

        with pytest.raises(RuntimeError):
            with session:
                raise RuntimeError("boom")

        tcsetattr.assert_called_once()
        assert terminal.SHOW_CURSOR in session.stdout.getvalue()

    def test_exit_runs_once(self, tty_calls):
        """Repeated exits restore only once."""
        _, tcsetattr, _ = tty_calls
        session = self.make_session()
        session.enter()
        session.exit()
        session.exit()
        tcsetattr.assert_called_once()

    def test_sigterm_handler_installed_and_restored(self, tty_calls):
        """SIGTERM exits through teardown while the session is active."""
        previous = signal.getsignal(signal.SIGTERM)
        session = self.make_session()

        with session:
            handler = signal.getsignal(signal.SIGTERM)
            with pytest.raises(SystemExit) as exc_info:
                handler(signal.SIGTERM, None)
            assert exc_info.value.code == 128 + signal.SIGTERM

        assert signal.getsignal(signal.SIGTERM) == previous

    def test_enter_failure(self):
        """A stream that is not a terminal raises TerminalError."""
        session = self.make_session()
        with patch.object(terminal.termios, "tcgetattr", side_effect=termios.error(25, "Inappropriate ioctl")):
            with pytest.raises(TerminalError):
                session.enter()
        assert not session.active
        assert session.stdout.getvalue() == ""

    def test_restore_failure_is_logged(self, tty_calls, caplog):
        """Errors while restoring are logged, not raised."""
        _, tcsetattr, _ = tty_calls
        tcsetattr.side_effect = termios.error(5, "I/O error")
        session = self.make_session()

        with caplog.at_level("WARNING", logger="termlife.frontends.terminal"):
            with session:
                pass

        assert "Error restoring terminal mode" in caplog.text
        assert not session.active
