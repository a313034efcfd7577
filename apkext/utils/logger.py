import logging
import shlex
import sys
from pathlib import Path
from typing import Optional, Sequence

# Centralized logger name
LOGGER_NAME = "apkext"

# The Java tools write to the same terminal, so console lines stay short
CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
VERBOSE_CONSOLE_FORMAT = "[%(levelname)s] %(asctime)s - %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s.%(module)s: %(message)s"


def init_logging(
    verbose: bool = False,
    log_path: Optional[Path] = None,
    log_to_console: bool = True,
    stream=None,
) -> logging.Logger:
    """
    Configure the `apkext` logger for one CLI run.

    Console output goes to stderr and carries timestamps only when verbose.
    A log file, when given, always gets the full DEBUG trace including every
    tool command line.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Avoid duplicate logs when run() is called more than once in a process
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    if log_to_console:
        console = logging.StreamHandler(stream or sys.stderr)
        console.setLevel(logging.DEBUG if verbose else logging.INFO)
        console.setFormatter(logging.Formatter(VERBOSE_CONSOLE_FORMAT if verbose else CONSOLE_FORMAT))
        logger.addHandler(console)

    return logger


def log_command(logger: logging.Logger, command: Sequence[str]) -> None:
    """Log a tool command line at DEBUG, quoted so it can be pasted into a shell."""
    logger.debug(f"[Tools] $ {shlex.join(str(part) for part in command)}", stacklevel=2)


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)
