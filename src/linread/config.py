"""Settings for the line reader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

ENV_RECORD_EMPTY = "LINREAD_RECORD_EMPTY"
ENV_HIDE_CURSOR = "LINREAD_HIDE_CURSOR"
ENV_ESCAPE_TIMEOUT = "LINREAD_ESCAPE_TIMEOUT"
ENV_WRITE_LOG = "LINREAD_WRITE_LOG"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ReaderSettings:
    """Line reader behaviour.

    ``record_empty_lines`` keeps submitted empty lines in history (off by
    default, empty submissions are not recalled). ``hide_cursor`` hides the
    terminal cursor while an edit repositions it. ``escape_timeout`` is how
    long, in seconds, a lone ESC waits for the rest of an escape sequence.
    ``write_log_path`` mirrors every terminal write to a file when set.
    """

    record_empty_lines: bool = False
    hide_cursor: bool = True
    escape_timeout: float = 0.01
    write_log_path: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ReaderSettings:
        """Build settings from ``LINREAD_*`` environment variables."""
        env = os.environ if environ is None else environ
        settings = cls()

        if ENV_RECORD_EMPTY in env:
            settings.record_empty_lines = _parse_bool(ENV_RECORD_EMPTY, env[ENV_RECORD_EMPTY])
        if ENV_HIDE_CURSOR in env:
            settings.hide_cursor = _parse_bool(ENV_HIDE_CURSOR, env[ENV_HIDE_CURSOR])
        if ENV_ESCAPE_TIMEOUT in env:
            settings.escape_timeout = _parse_timeout(ENV_ESCAPE_TIMEOUT, env[ENV_ESCAPE_TIMEOUT])
        settings.write_log_path = env.get(ENV_WRITE_LOG, settings.write_log_path)

        return settings


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _parse_timeout(name: str, value: str) -> float:
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from None
    if timeout < 0:
        raise ValueError(f"{name} must not be negative, got {value!r}")
    return timeout
