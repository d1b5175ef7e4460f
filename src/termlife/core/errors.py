"""Errors raised while building, loading and saving grids."""


class GridError(Exception):
    """Base class for grid errors."""


class GridIOError(GridError):
    """A grid file could not be read or written."""

    def __init__(self, path: str, cause: Exception) -> None:
        super().__init__(f"I/O error: {path}: {cause}")
        self.path = path
        self.cause = cause


class GridParseError(GridError):
    """Grid text contains a character other than '0' or '1'."""

    def __init__(self, char: str) -> None:
        super().__init__(f"Invalid character: {char!r} (expected 0/1)")
        self.char = char


class InconsistentWidthError(GridError):
    """Grid text rows have different lengths."""

    def __init__(self) -> None:
        super().__init__("Inconsistent row widths in file")


class EmptyGridError(GridError):
    """Grid text contains no cells."""

    def __init__(self) -> None:
        super().__init__("Grid file contains no cells")
