"""Terminal abstraction for the line editor.

Defines the two collaborators the engine talks to: a ``Terminal`` sink that
positions the cursor and writes text, and a ``KeySource`` that blocks for the
next key press. ``ProcessTerminal`` implements both on top of a POSIX tty
using raw mode and ANSI escape sequences.
"""

from __future__ import annotations

import codecs
import logging
import os
import re
import select
import sys
import termios
import time
import tty
from collections import deque
from typing import Protocol, TextIO

from linread.coords import CursorCoords, coords_to_index, index_to_coords
from linread.keys import KeyEvent, parse_key_event
from linread.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CURSOR_TO_FMT = "\x1b[{};{}H"
_REQUEST_CURSOR_REPORT = "\x1b[6n"
_NEWLINE = "\r\n"

_CURSOR_REPORT_RE = re.compile(r"^\x1b\[(\d+);(\d+)R$")

_CTRL_C = "\x03"

# Seconds to wait for the terminal to answer a cursor position request
_CURSOR_REPORT_TIMEOUT = 1.0


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Output side: cursor positioning and text writes."""

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def cursor_position(self) -> CursorCoords: ...

    def set_cursor_position(self, column: int, row: int) -> None: ...

    def write(self, text: str) -> None: ...

    def write_line(self) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...


class KeySource(Protocol):
    """Input side: blocking key reads with echo suppressed between start/stop."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def read_key(self) -> KeyEvent: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal and key source backed by the process's stdin/stdout tty.

    Raw mode (no echo, no line buffering) is enabled by :meth:`start` and the
    previous terminal attributes are restored by :meth:`stop`. The cursor
    position is queried from the terminal with a DSR request and otherwise
    tracked in software, so that a write ending exactly on a row boundary can
    force the terminal's deferred wrap. The engine relies on the cursor
    having moved to the next row after such a write.
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        *,
        escape_timeout: float = 0.01,
        write_log_path: str = "",
    ) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._escape_timeout = escape_timeout
        self._write_log_path = write_log_path
        self._original_termios: list | None = None
        self._stdin_buffer = StdinBuffer()
        self._pending: deque[str] = deque()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._column = 0
        self._row = 0

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- KeySource: start / stop / read_key ----------------------------------

    def start(self) -> None:
        """Enable raw mode on stdin, saving the previous attributes."""
        if self._original_termios is not None:
            return
        fd = self._stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)
        logger.debug("raw mode enabled on fd %d", fd)

    def stop(self) -> None:
        """Restore the terminal attributes saved by :meth:`start`.

        A partially received escape sequence is discarded so it cannot merge
        with input read after the next :meth:`start`.
        """
        self._stdin_buffer.clear()
        if self._original_termios is None:
            return
        fd = self._stdin.fileno()
        termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
        self._original_termios = None
        logger.debug("terminal attributes restored on fd %d", fd)

    def read_key(self) -> KeyEvent:
        """Block until a complete key sequence is available and parse it.

        Ctrl+C raises :class:`KeyboardInterrupt` since raw mode disables the
        terminal's own signal generation.
        """
        while not self._pending:
            self._feed(self._read_chunk(None))
            while self._stdin_buffer.get_buffer():
                more = self._read_chunk(self._escape_timeout)
                if not more:
                    self._pending.extend(self._stdin_buffer.flush())
                    break
                self._feed(more)

        data = self._pending.popleft()
        if data == _CTRL_C:
            raise KeyboardInterrupt
        return parse_key_event(data)

    # -- Terminal: cursor ---------------------------------------------------

    def cursor_position(self) -> CursorCoords:
        """Ask the terminal where the cursor is (``ESC [ 6 n``).

        Key presses that arrive before the report stay queued for
        :meth:`read_key`.
        """
        self._raw_write(_REQUEST_CURSOR_REPORT)
        deadline = time.monotonic() + _CURSOR_REPORT_TIMEOUT

        while True:
            for sequence in list(self._pending):
                report = parse_cursor_report(sequence)
                if report is not None:
                    self._pending.remove(sequence)
                    self._column, self._row = report
                    return report

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError("terminal did not report the cursor position")
            chunk = self._read_chunk(remaining)
            if chunk:
                self._feed(chunk)
            else:
                self._pending.extend(self._stdin_buffer.flush())

    def set_cursor_position(self, column: int, row: int) -> None:
        self._raw_write(_CURSOR_TO_FMT.format(row + 1, column + 1))
        self._column = column
        self._row = row

    # -- Terminal: output ---------------------------------------------------

    def write(self, text: str) -> None:
        """Write *text* at the cursor and advance the tracked position."""
        if not text:
            return
        self._raw_write(text)
        self._log_write(text)

        width = self.columns
        offset = coords_to_index(CursorCoords(self._column, self._row), width) + len(text)
        target = index_to_coords(offset, width)
        if target.column == 0:
            # The terminal holds the cursor in the last column until the next
            # character; move it to the start of the next row now.
            self._raw_write(_NEWLINE)
        self._column = target.column
        self._row = min(target.row, self.rows - 1)

    def write_line(self) -> None:
        self._raw_write(_NEWLINE)
        self._log_write(_NEWLINE)
        self._column = 0
        self._row = min(self._row + 1, self.rows - 1)

    def hide_cursor(self) -> None:
        self._best_effort_write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self._best_effort_write(_SHOW_CURSOR)

    # -- private: input -----------------------------------------------------

    def _feed(self, data: str) -> None:
        self._pending.extend(self._stdin_buffer.feed(data))

    def _read_chunk(self, timeout: float | None) -> str:
        """Read what stdin has, waiting at most *timeout* seconds.

        Returns ``""`` on timeout; raises :class:`EOFError` when stdin closes.
        """
        fd = self._stdin.fileno()
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            return ""
        raw = os.read(fd, 4096)
        if not raw:
            raise EOFError("stdin closed while reading a line")
        return self._decoder.decode(raw)

    # -- private: output ----------------------------------------------------

    def _raw_write(self, data: str) -> None:
        self._stdout.write(data)
        self._stdout.flush()

    def _best_effort_write(self, data: str) -> None:
        try:
            self._raw_write(data)
        except OSError as exc:
            logger.debug("ignoring cursor visibility failure: %s", exc)

    def _log_write(self, data: str) -> None:
        if not self._write_log_path:
            return
        try:
            with open(self._write_log_path, "a") as f:
                f.write(data)
        except OSError as exc:
            logger.warning("cannot append to write log %s: %s", self._write_log_path, exc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_cursor_report(data: str) -> CursorCoords | None:
    """Parse a ``ESC [ row ; col R`` report into zero-based coordinates."""
    match = _CURSOR_REPORT_RE.match(data)
    if match is None:
        return None
    return CursorCoords(column=int(match.group(2)) - 1, row=int(match.group(1)) - 1)
