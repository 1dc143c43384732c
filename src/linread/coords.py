"""Conversions between terminal row/column coordinates and linear indexes.

A buffer-relative index counts cells from the terminal's display origin,
row by row: ``index = row * width + column``. Width is passed on every call
because the terminal can be resized between keystrokes.
"""

from __future__ import annotations

from typing import NamedTuple


class CursorCoords(NamedTuple):
    """Zero-based cursor position on the terminal grid."""

    column: int
    row: int


def _check_width(width: int) -> None:
    if width <= 0:
        raise ValueError(f"terminal width must be positive, got {width}")


def coords_to_index(coords: CursorCoords, width: int) -> int:
    """Return the buffer-relative index of *coords* for a terminal *width*."""
    _check_width(width)
    return coords.row * width + coords.column


def index_to_coords(index: int, width: int) -> CursorCoords:
    """Return the row/column for buffer-relative *index*."""
    _check_width(width)
    row, column = divmod(index, width)
    return CursorCoords(column=column, row=row)
