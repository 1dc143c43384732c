"""linread: line editing for terminals without a native line editor."""

from linread.config import ReaderSettings
from linread.coords import CursorCoords, coords_to_index, index_to_coords
from linread.history import History
from linread.keys import Key, KeyEvent, parse_key_event
from linread.reader import LineReader, get_default_reader, read_line, set_default_reader
from linread.stdin_buffer import StdinBuffer
from linread.terminal import KeySource, ProcessTerminal, Terminal

__all__ = [
    # Engine
    "LineReader",
    "get_default_reader",
    "read_line",
    "set_default_reader",
    # Settings
    "ReaderSettings",
    # Coordinates
    "CursorCoords",
    "coords_to_index",
    "index_to_coords",
    # History
    "History",
    # Keys
    "Key",
    "KeyEvent",
    "parse_key_event",
    # Input buffering
    "StdinBuffer",
    # Terminal
    "KeySource",
    "ProcessTerminal",
    "Terminal",
]
