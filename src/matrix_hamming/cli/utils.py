from __future__ import annotations

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from typing_extensions import override

_console = Console(stderr=True)

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# levelno: (name, head color, message color)
_STYLES = {
    logging.DEBUG: ("Debug", "dim white", "dim white"),
    logging.INFO: ("Info", "blue", "white"),
    logging.WARNING: ("Warning", "yellow", "white"),
    logging.ERROR: ("Error", "red", "red"),
    logging.CRITICAL: ("Error", "red", "red"),
}


def get_log_level() -> tuple[int, bool]:
    """Read the log level and verbosity from `LOG_LEVEL` and `VERBOSE_LOGS`.

    Verbose logs include the source location of each record. They're enabled
    for the debug level unless `VERBOSE_LOGS=0`.
    """
    level_str = os.environ.get("LOG_LEVEL", "warning")

    try:
        level = LEVELS[level_str.lower()]
    except KeyError:
        level = logging.WARNING
        print(
            f"Warning: invalid log level `{level_str}`, expected one of: {', '.join(LEVELS.keys())}, defaulting to WARNING"
        )

    match os.environ.get("VERBOSE_LOGS", ""):
        case "":
            verbose = level == logging.DEBUG
        case "0":
            verbose = False
        case _:
            verbose = True

    return level, verbose


class LogFormatter(logging.Formatter):
    """Colored single line records, see `setup_logging`."""

    def __init__(self, verbose: bool = False):
        super().__init__()

        self.verbose: bool = verbose

    @override
    def format(self, record: logging.LogRecord) -> str:
        try:
            name, head_color, message_color = _STYLES[record.levelno]
        except KeyError:
            return logging.Formatter().format(record)

        message = f"[{head_color}]{name}[/{head_color}][{message_color}]: {escape(record.getMessage())}[/{message_color}]"

        if self.verbose:
            message = f"{message}\n\
-> [dim white]{record.pathname}:{record.funcName}:{record.lineno}[/dim white]"

        with _console.capture() as capture:
            _console.print(message, end="", markup=True, highlight=False)

        return capture.get()


def setup_logging(logger: logging.Logger | None = None) -> None:
    """Configure the given logger or the root logger if None."""
    if logger is None:
        logger = logging.getLogger()

    level, verbose = get_log_level()

    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(LogFormatter(verbose))

    logger.setLevel(level)
    logger.addHandler(handler)


def derive_output_path(input: Path, tag: str) -> Path:
    """Insert `_<tag>` before the last extension of `input`.

    `notes.txt` becomes `notes_encoded.txt` for the `encoded` tag.
    """
    return input.with_name(f"{input.stem}_{tag}{input.suffix}")
