"""Core Game of Life logic."""

from .grid import Grid
from .errors import GridError, GridIOError, GridParseError, InconsistentWidthError, EmptyGridError

__all__ = ["Grid", "GridError", "GridIOError", "GridParseError", "InconsistentWidthError", "EmptyGridError"]
