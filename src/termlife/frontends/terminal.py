"""Terminal control: raw mode session, key polling and size queries."""

import logging
import os
import select
import signal
import sys
import termios
import tty
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, TextIO, Tuple

logger = logging.getLogger(__name__)

ESC = "esc"
ENTER = "enter"
TAB = "tab"
BACKSPACE = "backspace"
SEQUENCE = "sequence"

ENTER_ALTERNATE_SCREEN = "\x1b[?1049h"
LEAVE_ALTERNATE_SCREEN = "\x1b[?1049l"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"


class TerminalError(Exception):
    """The terminal could not be queried or switched into the needed mode."""


@dataclass(frozen=True)
class KeyEvent:
    """A key press read from the terminal.

    `code` is either the typed character or one of the named keys
    (ESC, ENTER, TAB, BACKSPACE, SEQUENCE).
    """

    code: str
    ctrl: bool = False
    alt: bool = False


def decode_keys(data: bytes) -> List[KeyEvent]:
    """Decode bytes read from a raw mode terminal into key events.

    Args:
        data: Bytes as returned by a single read

    Returns:
        Key events in the order they were typed
    """
    text = data.decode("utf-8", errors="replace")
    events = []
    i = 0
    while i < len(text):
        char = text[i]
        i += 1

        if char == "\x1b":
            if i >= len(text):
                events.append(KeyEvent(ESC))
            elif text[i] in "[O":
                # CSI/SS3 sequence: parameters up to a final byte in @..~
                i += 1
                while i < len(text) and not ("@" <= text[i] <= "~"):
                    i += 1
                i += 1
                events.append(KeyEvent(SEQUENCE))
            elif text[i] == "\x1b":
                events.append(KeyEvent(ESC))
            else:
                events.append(KeyEvent(text[i], alt=True))
                i += 1
        elif char == "\t":
            events.append(KeyEvent(TAB))
        elif char in "\r\n":
            events.append(KeyEvent(ENTER))
        elif char == "\x7f":
            events.append(KeyEvent(BACKSPACE))
        elif "\x01" <= char <= "\x1a":
            events.append(KeyEvent(chr(ord(char) + ord("a") - 1), ctrl=True))
        else:
            events.append(KeyEvent(char))

    return events


class Keyboard:
    """Non-blocking reader of key events from the terminal's input."""

    def __init__(self, stdin: Optional[TextIO] = None) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self._pending: Deque[KeyEvent] = deque()

    def poll(self, timeout: float = 0.0) -> Optional[KeyEvent]:
        """Return the next key event, or None if none arrives within timeout.

        A timeout of 0 only checks whether input is already available.
        """
        if not self._pending:
            fd = self.stdin.fileno()
            ready, _, _ = select.select([fd], [], [], timeout)
            if ready:
                data = os.read(fd, 64)
                self._pending.extend(decode_keys(data))

        if self._pending:
            return self._pending.popleft()
        return None


def terminal_size(stream: Optional[TextIO] = None) -> Tuple[int, int]:
    """Get the terminal size as (cols, rows).

    Raises:
        TerminalError: If the stream is not attached to a terminal
    """
    stream = stream if stream is not None else sys.stdout
    try:
        size = os.get_terminal_size(stream.fileno())
    except (OSError, ValueError) as e:
        raise TerminalError(f"Unable to get terminal size: {e}") from e
    return (size.columns, size.lines)


def resize_terminal(cols: int, rows: int, stream: Optional[TextIO] = None) -> None:
    """Ask the terminal emulator to resize its window to cols x rows."""
    stream = stream if stream is not None else sys.stdout
    stream.write(f"\x1b[8;{rows};{cols}t")
    stream.flush()
    logger.debug(f"Requested terminal resize to {cols}x{rows}")


class TerminalSession:
    """Raw mode plus alternate screen for the lifetime of a `with` block.

    The terminal is restored on every way out of the block, including
    exceptions and SIGTERM. Problems while restoring are logged and never
    raised.
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self._saved_attrs = None
        self._previous_sigterm = None
        self.active = False

    def enter(self) -> None:
        """Switch to raw mode, enter the alternate screen and hide the cursor.

        Raises:
            TerminalError: If the terminal does not support these modes
        """
        if self.active:
            return

        try:
            fd = self.stdin.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setraw(fd)
        except (termios.error, OSError, ValueError) as e:
            self._restore_attrs()
            raise TerminalError(f"Unable to enter raw mode: {e}") from e

        self.active = True
        try:
            self.stdout.write(ENTER_ALTERNATE_SCREEN + HIDE_CURSOR)
            self.stdout.flush()
        except OSError as e:
            self.exit()
            raise TerminalError(f"Unable to enter alternate screen: {e}") from e

        self._previous_sigterm = signal.signal(signal.SIGTERM, self._handle_sigterm)
        logger.debug("Entered raw mode and alternate screen")

    def exit(self) -> None:
        """Show the cursor, leave the alternate screen and restore cooked mode."""
        if not self.active:
            return
        self.active = False

        if self._previous_sigterm is not None:
            signal.signal(signal.SIGTERM, self._previous_sigterm)
            self._previous_sigterm = None

        try:
            self.stdout.write(SHOW_CURSOR + LEAVE_ALTERNATE_SCREEN)
            self.stdout.flush()
        except OSError as e:
            logger.warning(f"Error restoring terminal screen: {e}")

        self._restore_attrs()
        logger.debug("Restored terminal")

    def _restore_attrs(self) -> None:
        if self._saved_attrs is None:
            return
        try:
            termios.tcsetattr(self.stdin.fileno(), termios.TCSADRAIN, self._saved_attrs)
        except (termios.error, OSError, ValueError) as e:
            logger.warning(f"Error restoring terminal mode: {e}")
        finally:
            self._saved_attrs = None

    def _handle_sigterm(self, signum, frame):
        raise SystemExit(128 + signum)

    def __enter__(self) -> "TerminalSession":
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.exit()
