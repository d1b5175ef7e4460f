"""Logging configuration for the termlife package."""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional


def setup_logging(level: int = logging.WARNING, log_file: Optional[str] = None) -> None:
    """Configure the 'termlife' logger.

    Console output goes to stderr, since stdout is where the grid is drawn.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to also write logs to
    """
    logger = logging.getLogger("termlife")
    logger.setLevel(level)

    # Avoid duplicate handlers when main() runs more than once in a process
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


@contextmanager
def console_muted(name: str = "termlife") -> Iterator[None]:
    """Silence console handlers of the logger; file handlers keep logging.

    Used while the grid owns the screen, where console lines would be drawn
    over the frame.
    """
    logger = logging.getLogger(name)
    consoles = [
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler)
    ]
    levels = [handler.level for handler in consoles]
    for handler in consoles:
        handler.setLevel(logging.CRITICAL + 1)
    try:
        yield
    finally:
        for handler, level in zip(consoles, levels):
            handler.setLevel(level)
