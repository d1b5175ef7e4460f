"""Conway's Game of Life running interactively in a terminal."""

__version__ = "0.1.0"

from .core.grid import Grid
from .core.errors import GridError, GridIOError, GridParseError, InconsistentWidthError, EmptyGridError

__all__ = ["Grid", "GridError", "GridIOError", "GridParseError", "InconsistentWidthError", "EmptyGridError"]
