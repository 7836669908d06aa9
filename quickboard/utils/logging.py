"""Logging setup shared by the board service, the CLI and the sync client."""

import sys
from collections.abc import Iterable
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

# Rejected drags and edits are logged per gesture; keep them out of the console.
NOISY_MODULES = ("quickboard.board.mutations",)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
PLAIN_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> | "
    "<level>{message}</level>"
)


def _console_filter(quiet: tuple[str, ...]):
    def keep(record) -> bool:
        if record["level"].no >= logger.level("WARNING").no:
            return True
        return not (record["name"] or "").startswith(quiet)

    return keep


def setup_logger(
    level: str = "INFO",
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "1 week",
    use_rich: bool = True,
    quiet_modules: Iterable[str] = NOISY_MODULES,
) -> None:
    """
    Configure loguru sinks.

    Args:
        level: Minimum level for every sink
        log_file: Also write to this file, rotated and zipped
        rotation: When to rotate the log file (e.g. "10 MB", "1 day")
        retention: How long rotated files are kept
        use_rich: Render console output through Rich instead of plain text
        quiet_modules: Module prefixes whose records below WARNING only go to the file
    """
    logger.remove()
    console_filter = _console_filter(tuple(quiet_modules))

    if use_rich:
        handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
            omit_repeated_times=False,
        )
        logger.add(handler, level=level, format="{message}", filter=console_filter)
    else:
        logger.add(
            sys.stderr,
            format=PLAIN_FORMAT,
            level=level,
            colorize=True,
            filter=console_filter,
        )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )
        logger.info(f"Logging to file: {log_file}")
