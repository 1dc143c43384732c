"""Line-edit engine.

``LineReader`` reads one line of keyboard input on a terminal that offers no
line editing of its own. It keeps the typed text in memory, positions the
terminal cursor itself and redraws only the tail of the line after each
edit. Up/Down recall earlier lines from an in-memory history.

Three coordinate spaces are involved:

* the *buffer-relative index*, a linear offset from the terminal's display
  origin (``row * width + column``), stored as the cursor position;
* the *line-relative index*, the cursor's offset into the line being edited,
  always derived as ``cursor_index - line_start`` and never stored;
* the row/column pair the terminal understands, computed from the
  buffer-relative index with the current width on every move.

When output runs past the bottom row the terminal scrolls, and the stored
line start is shifted up by the scrolled rows so the derived line-relative
index stays correct.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable

import wcwidth

from linread.config import ReaderSettings
from linread.coords import coords_to_index, index_to_coords
from linread.history import History
from linread.keys import Key, KeyEvent
from linread.terminal import KeySource, ProcessTerminal, Terminal

logger = logging.getLogger(__name__)


def _is_insertable(event: KeyEvent) -> bool:
    """Whether *event* types a character the engine can place in the line."""
    char = event.char
    if char is None or len(char) != 1 or char == "\x00":
        return False
    if event.ctrl or event.alt:
        return False
    # Cursor arithmetic assumes every character occupies one cell
    return wcwidth.wcwidth(char) == 1


class LineReader:
    """Reads lines with cursor editing and history recall.

    All state belongs to the instance: the line buffer and cursor for the
    read in progress, and the history that outlives individual reads. An
    instance is not thread-safe; concurrent callers must serialise calls to
    :meth:`read_line`.
    """

    def __init__(
        self,
        terminal: Terminal,
        keys: KeySource,
        settings: ReaderSettings | None = None,
    ) -> None:
        self._terminal = terminal
        self._keys = keys
        self._settings = settings or ReaderSettings()
        self._history = History()

        self._line: list[str] = []
        self._line_start: int = 0
        self._cursor_index: int = 0

        self._handlers: dict[str, Callable[[], None]] = {
            Key.escape: self.clear,
            Key.delete: self.delete,
            Key.backspace: self.backspace,
            Key.up: self.recall_previous,
            Key.down: self.recall_next,
            Key.left: self.move_left,
            Key.right: self.move_right,
            Key.tab: self.tab,
        }

    # -- read-only views ----------------------------------------------------

    @property
    def line(self) -> str:
        return "".join(self._line)

    @property
    def line_start(self) -> int:
        return self._line_start

    @property
    def cursor_index(self) -> int:
        return self._cursor_index

    @property
    def line_index(self) -> int:
        return self._cursor_index - self._line_start

    @property
    def history(self) -> History:
        return self._history

    # -- main loop ----------------------------------------------------------

    def read_line(self) -> str:
        """Read keys until Enter and return the line without its newline.

        Errors raised by the terminal or key source propagate; the key
        source is stopped either way.
        """
        self._keys.start()
        try:
            self.reset()
            logger.debug("reading line at buffer index %d", self._line_start)
            while True:
                event = self._keys.read_key()
                self._hide_cursor()
                try:
                    submitted = self.handle_key(event)
                finally:
                    self._show_cursor()
                if submitted is not None:
                    return submitted
        finally:
            self._keys.stop()

    def reset(self) -> None:
        """Start a new line at the terminal's current cursor position."""
        self._line = []
        coords = self._terminal.cursor_position()
        self._line_start = coords_to_index(coords, self._terminal.columns)
        self._cursor_index = self._line_start
        self._history.reset_position()

    def handle_key(self, event: KeyEvent) -> str | None:
        """Apply one key press. Returns the finished line on Enter."""
        if event.key == Key.enter:
            return self.submit()

        handler = self._handlers.get(event.key)
        if handler is not None:
            handler()
        elif _is_insertable(event):
            self.insert(event.char)
        else:
            logger.debug("ignoring key %r", event)
        return None

    # -- key handlers -------------------------------------------------------

    def submit(self) -> str:
        """Finish the line: move past it, emit a newline, record history."""
        self.set_line_index(len(self._line))
        self._terminal.write_line()

        line = self.line
        if line or self._settings.record_empty_lines:
            self._history.add(line)
            logger.debug("recorded %r in history (%d entries)", line, self._history.length)
        else:
            self._history.reset_position()
        return line

    def insert(self, char: str) -> None:
        """Insert *char* at the cursor and step past it."""
        index = self.line_index
        self._line.insert(index, char)
        self._redraw_from_cursor()
        self.set_line_index(index + 1)

    def delete(self) -> None:
        """Remove the character under the cursor."""
        index = self.line_index
        if index >= len(self._line):
            return
        del self._line[index]
        self._redraw_from_cursor()

    def backspace(self) -> None:
        """Remove the character before the cursor."""
        if self.line_index <= self._first_line_index:
            return
        self.set_line_index(self.line_index - 1)
        self.delete()

    def clear(self) -> None:
        """Blank the displayed line and empty the buffer.

        Only the part of the line still on screen is blanked. If the line
        start has scrolled off the top, the empty line starts at the first
        visible cell instead.
        """
        first = self._first_line_index
        self.set_line_index(first)
        self._write(" " * (len(self._line) - first))
        self.set_line_index(first)
        self._line.clear()
        self._line_start = self._cursor_index

    def replace_line_with(self, text: str) -> None:
        """Replace the whole line with *text*, leaving the cursor at its end."""
        self.clear()
        self._line.extend(text)
        self._redraw_from_cursor()
        self.set_line_index(len(self._line))

    def move_left(self) -> None:
        self.set_line_index(self.line_index - 1)

    def move_right(self) -> None:
        self.set_line_index(self.line_index + 1)

    def recall_previous(self) -> None:
        entry = self._history.previous()
        if entry is not None and entry != self.line:
            self.replace_line_with(entry)

    def recall_next(self) -> None:
        entry = self._history.next()
        if entry is not None and entry != self.line:
            self.replace_line_with(entry)

    def tab(self) -> None:
        """Tab completion is not supported; the key does nothing."""

    # -- cursor positioning -------------------------------------------------

    def set_cursor(self, index: int) -> None:
        """Move the terminal cursor to buffer-relative *index*.

        Repositions the physical cursor. A target below the last visible row
        means the terminal has scrolled, so the line start and the target are
        shifted up first.
        """
        if index < 0:
            raise ValueError(f"cursor index must not be negative, got {index}")
        index = self._compensate_scroll(index)
        coords = index_to_coords(index, self._terminal.columns)
        self._terminal.set_cursor_position(coords.column, coords.row)
        self._cursor_index = index

    def set_line_index(self, index: int) -> None:
        """Move the cursor to *index* within the line.

        Targets past either end of the line, or above the top row once a
        long line has scrolled, are ignored.
        """
        if self._first_line_index <= index <= len(self._line):
            self.set_cursor(self._line_start + index)

    @property
    def _first_line_index(self) -> int:
        # Nonzero once the line start has scrolled off the top
        return max(0, -self._line_start)

    def _compensate_scroll(self, index: int) -> int:
        width = self._terminal.columns
        scrolled = index // width - self._terminal.rows + 1
        if scrolled <= 0:
            return index
        shift = scrolled * width
        self._line_start -= shift
        logger.debug("terminal scrolled %d row(s); line start now %d", scrolled, self._line_start)
        return index - shift

    # -- output -------------------------------------------------------------

    def _write(self, text: str) -> None:
        """Write at the cursor; the physical cursor advances past *text*."""
        self._terminal.write(text)
        self._cursor_index = self._compensate_scroll(self._cursor_index + len(text))

    def _redraw_from_cursor(self) -> None:
        # Trailing space blanks the cell freed by a deletion
        index = self.line_index
        self._write("".join(self._line[index:]) + " ")
        self.set_line_index(index)

    def _hide_cursor(self) -> None:
        if self._settings.hide_cursor:
            self._terminal.hide_cursor()

    def _show_cursor(self) -> None:
        if self._settings.hide_cursor:
            self._terminal.show_cursor()


# ---------------------------------------------------------------------------
# Process-wide default reader
# ---------------------------------------------------------------------------

_default_reader: LineReader | None = None


def get_default_reader() -> LineReader:
    """Return the shared reader on the process's tty, creating it once."""
    global _default_reader
    if _default_reader is None:
        settings = ReaderSettings.from_env()
        terminal = ProcessTerminal(
            escape_timeout=settings.escape_timeout,
            write_log_path=settings.write_log_path,
        )
        _default_reader = LineReader(terminal, terminal, settings)
    return _default_reader


def set_default_reader(reader: LineReader | None) -> None:
    global _default_reader
    _default_reader = reader


def read_line() -> str:
    """Read one line from the user.

    Uses the line editor when stdin and stdout are both terminals; otherwise
    falls back to the interpreter's own ``input()``.
    """
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        return input()
    return get_default_reader().read_line()
