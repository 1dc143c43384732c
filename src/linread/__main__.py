"""Entry point for the linread demo: echo every line read from the terminal."""

from __future__ import annotations

import argparse
import logging
import sys

_EXIT_WORDS = {"exit", "quit"}


def main() -> None:
    parser = argparse.ArgumentParser(description="linread: line editor demo (type 'exit' to quit)")
    parser.add_argument("--prompt", default="> ", help="Prompt printed before each line (default: '> ')")
    parser.add_argument("--log-file", default=None, help="Write log records to this file")
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    parser.add_argument("--record-empty", action="store_true", help="Keep empty lines in history")
    parser.add_argument("--no-hide-cursor", action="store_true", help="Leave the cursor visible while editing")
    args = parser.parse_args()

    # stdout belongs to the editor, so log records go to a file or stderr
    logging.basicConfig(
        filename=args.log_file,
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    from linread.config import ReaderSettings
    from linread.reader import LineReader, read_line, set_default_reader
    from linread.terminal import ProcessTerminal

    settings = ReaderSettings.from_env()
    if args.record_empty:
        settings.record_empty_lines = True
    if args.no_hide_cursor:
        settings.hide_cursor = False

    terminal = ProcessTerminal(
        escape_timeout=settings.escape_timeout,
        write_log_path=settings.write_log_path,
    )
    set_default_reader(LineReader(terminal, terminal, settings))

    while True:
        sys.stdout.write(args.prompt)
        sys.stdout.flush()
        try:
            line = read_line()
        except (KeyboardInterrupt, EOFError):
            sys.stdout.write("\n")
            break
        if line.strip() in _EXIT_WORDS:
            break
        print(f"read: {line!r}")


if __name__ == "__main__":
    main()
