"""Keyboard input parsing for the line editor.

Turns one complete raw terminal input sequence (as produced by
:class:`linread.stdin_buffer.StdinBuffer`) into a :class:`KeyEvent` carrying
the logical key, the character it types (if any) and its modifiers. Legacy
xterm/VT sequences are recognised, including the ``CSI 1;<mod>`` modifier
forms; the Kitty keyboard protocol is not negotiated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Key names
# ---------------------------------------------------------------------------


class Key:
    """Logical key identities reported in :attr:`KeyEvent.key`."""

    enter = "enter"
    escape = "escape"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    f1 = "f1"
    f2 = "f2"
    f3 = "f3"
    f4 = "f4"
    f5 = "f5"
    f6 = "f6"
    f7 = "f7"
    f8 = "f8"
    f9 = "f9"
    f10 = "f10"
    f11 = "f11"
    f12 = "f12"

    # Character keys use the lower-cased character itself as identity.
    unknown = "unknown"


@dataclass(frozen=True)
class KeyEvent:
    """A single key press.

    ``char`` is the literal character the key produces, or ``None`` for keys
    such as arrows that produce no character.
    """

    key: str
    char: str | None = None
    ctrl: bool = False
    alt: bool = False
    shift: bool = False


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ESC = "\x1b"

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

# Caps lock / num lock bits some terminals report alongside modifiers
LOCK_MASK = 64 + 128

# Final byte of ``CSI [1;mod] X`` and ``SS3 X`` sequences
LETTER_KEYS: dict[str, str] = {
    "A": Key.up,
    "B": Key.down,
    "C": Key.right,
    "D": Key.left,
    "H": Key.home,
    "F": Key.end,
    "P": Key.f1,
    "Q": Key.f2,
    "R": Key.f3,
    "S": Key.f4,
}

# Numeric parameter of ``CSI n [;mod] ~`` sequences
TILDE_KEYS: dict[str, str] = {
    "1": Key.home,
    "2": Key.insert,
    "3": Key.delete,
    "4": Key.end,
    "5": Key.page_up,
    "6": Key.page_down,
    "7": Key.home,
    "8": Key.end,
    "15": Key.f5,
    "17": Key.f6,
    "18": Key.f7,
    "19": Key.f8,
    "20": Key.f9,
    "21": Key.f10,
    "23": Key.f11,
    "24": Key.f12,
}

_CSI_LETTER_RE = re.compile(r"^\x1b\[(?:1;(\d+))?([A-Z])$")
_CSI_TILDE_RE = re.compile(r"^\x1b\[(\d+)(?:;(\d+))?~$")
_SS3_RE = re.compile(r"^\x1bO(\d?)([A-Z])$")

_CONTROL_KEYS: dict[str, str] = {
    "\r": Key.enter,
    "\n": Key.enter,
    "\t": Key.tab,
    "\x7f": Key.backspace,
    "\x08": Key.backspace,
    ESC: Key.escape,
}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _decode_modifier(param: str | None) -> tuple[bool, bool, bool]:
    """Return ``(ctrl, alt, shift)`` for an xterm modifier parameter."""
    if not param:
        return False, False, False
    mod = (int(param) - 1) & ~LOCK_MASK
    return (
        bool(mod & MODIFIERS["ctrl"]),
        bool(mod & MODIFIERS["alt"]),
        bool(mod & MODIFIERS["shift"]),
    )


def _parse_escape_sequence(data: str) -> KeyEvent | None:
    if data == "\x1b[Z":
        return KeyEvent(Key.tab, "\t", shift=True)

    match = _CSI_LETTER_RE.match(data) or _SS3_RE.match(data)
    if match:
        name = LETTER_KEYS.get(match.group(2))
        if name is None:
            return None
        ctrl, alt, shift = _decode_modifier(match.group(1))
        return KeyEvent(name, None, ctrl=ctrl, alt=alt, shift=shift)

    match = _CSI_TILDE_RE.match(data)
    if match:
        name = TILDE_KEYS.get(match.group(1))
        if name is None:
            return None
        ctrl, alt, shift = _decode_modifier(match.group(2))
        return KeyEvent(name, None, ctrl=ctrl, alt=alt, shift=shift)

    return None


def _parse_plain(ch: str, *, alt: bool = False) -> KeyEvent | None:
    name = _CONTROL_KEYS.get(ch)
    if name is not None:
        return KeyEvent(name, ch, alt=alt)
    if ch == "\x00":
        return KeyEvent(Key.space, None, ctrl=True, alt=alt)
    # Ctrl + letter (0x01 - 0x1a); character keeps the raw control code
    if 1 <= ord(ch) <= 26:
        return KeyEvent(chr(ord(ch) + ord("a") - 1), ch, ctrl=True, alt=alt)
    if ch == " ":
        return KeyEvent(Key.space, ch, alt=alt)
    if ch.isprintable():
        return KeyEvent(ch.lower(), ch, alt=alt, shift=ch.isupper())
    return None


def parse_key_event(data: str) -> KeyEvent:
    """Parse one complete raw input sequence into a :class:`KeyEvent`.

    Unrecognised input yields a ``Key.unknown`` event with no character, so
    callers can ignore it without special-casing.
    """
    event: KeyEvent | None = None

    if len(data) == 1:
        event = _parse_plain(data)
    elif len(data) == 2 and data[0] == ESC:
        # Alt + key arrives as an ESC prefix
        event = _parse_plain(data[1], alt=True)
    elif data.startswith(ESC + "[") or data.startswith(ESC + "O"):
        event = _parse_escape_sequence(data)

    return event or KeyEvent(Key.unknown, None)
