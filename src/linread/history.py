"""Recall list of previously submitted lines."""

from __future__ import annotations


class History:
    """Submitted lines in order of most recent use.

    Adding a line removes any earlier copies first, so each string appears
    at most once and the newest entry is always last. A recall position
    tracks where Up/Down navigation currently points; ``None`` means
    navigation has not started.
    """

    def __init__(self) -> None:
        self._entries: list[str] = []
        self._position: int | None = None

    def add(self, line: str) -> None:
        """Append *line*, dropping earlier equal entries, and reset recall."""
        self._entries = [entry for entry in self._entries if entry != line]
        self._entries.append(line)
        self._position = None

    def previous(self) -> str | None:
        """Step back towards older entries and return the one selected.

        The first step lands on the newest entry. Returns ``None`` when the
        history is empty.
        """
        if not self._entries:
            return None
        if self._position is None:
            self._position = len(self._entries) - 1
        elif self._position > 0:
            self._position -= 1
        return self._entries[self._position]

    def next(self) -> str | None:
        """Step forward towards newer entries and return the one selected.

        The first step lands on the oldest entry. Returns ``None`` when the
        history is empty.
        """
        if not self._entries:
            return None
        if self._position is None:
            self._position = 0
        elif self._position < len(self._entries) - 1:
            self._position += 1
        return self._entries[self._position]

    def reset_position(self) -> None:
        self._position = None

    @property
    def position(self) -> int | None:
        return self._position

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def length(self) -> int:
        return len(self._entries)
