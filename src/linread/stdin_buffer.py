"""StdinBuffer splits raw terminal input into complete key sequences.

Input arrives from ``os.read`` in arbitrary chunks, so an escape sequence
such as ``ESC [ 3 ~`` may be split across reads. Without buffering, the
partial sequence would be misread as an Escape key press followed by
ordinary characters.
"""

from __future__ import annotations

import re

ESC = "\x1b"

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def _is_complete_sequence(data: str) -> str:
    """Classify *data* as ``'complete'``, ``'incomplete'`` or ``'not-escape'``."""
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI sequences: ESC [
    if after_esc.startswith("["):
        if after_esc.startswith("[M"):
            # X10 mouse report carries three raw bytes
            return "complete" if len(data) >= 6 else "incomplete"
        return _is_complete_csi_sequence(data)

    # OSC sequences: ESC ]
    if after_esc.startswith("]"):
        if data.endswith(f"{ESC}\\") or data.endswith("\x07"):
            return "complete"
        return "incomplete"

    # DCS and APC sequences end with ST
    if after_esc.startswith("P") or after_esc.startswith("_"):
        return "complete" if data.endswith(f"{ESC}\\") else "incomplete"

    # SS3 sequences: ESC O, optionally with a modifier digit
    if after_esc.startswith("O"):
        if len(after_esc) >= 2 and after_esc[1].isdigit():
            return "complete" if len(after_esc) >= 3 else "incomplete"
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # Meta key: ESC followed by a single character
    return "complete"


def _is_complete_csi_sequence(data: str) -> str:
    if len(data) < 3:
        return "incomplete"

    payload = data[2:]
    last_char = payload[-1]

    if 0x40 <= ord(last_char) <= 0x7E:
        if payload.startswith("<"):
            return "complete" if _SGR_MOUSE_RE.match(payload) else "incomplete"
        return "complete"

    return "incomplete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences.

    Returns ``(sequences, remainder)`` where *remainder* is a trailing
    escape sequence that still needs more input.
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            candidate = remaining[:seq_end]
            if _is_complete_sequence(candidate) == "incomplete":
                seq_end += 1
                continue
            sequences.append(candidate)
            pos += seq_end
            break
        else:
            return sequences, remaining

    return sequences, ""


class StdinBuffer:
    """Accumulates raw input and hands back complete sequences.

    An incomplete trailing escape sequence is held until more input arrives
    or the caller gives up waiting and calls :meth:`flush`; a lone ESC that is
    flushed is the Escape key itself.
    """

    def __init__(self) -> None:
        self._buffer: str = ""

    def feed(self, data: str) -> list[str]:
        """Add *data* and return every sequence that is now complete."""
        self._buffer += data
        sequences, self._buffer = _extract_complete_sequences(self._buffer)
        return sequences

    def flush(self) -> list[str]:
        """Release whatever is buffered as a single sequence."""
        if not self._buffer:
            return []
        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        self._buffer = ""

    def get_buffer(self) -> str:
        return self._buffer
