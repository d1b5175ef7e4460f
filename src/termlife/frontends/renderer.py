"""Draws a grid onto the terminal without clearing the screen."""

import sys
from typing import Optional, TextIO

from ..core.grid import Grid

ALIVE = "█"
DEAD = " "

SAVE_CURSOR = "\x1b7"
RESTORE_CURSOR = "\x1b8"


def move_to(row: int, col: int = 0) -> str:
    """Cursor positioning sequence for a zero-based row and column."""
    return f"\x1b[{row + 1};{col + 1}H"


class Renderer:
    """Writes each generation over the previous one in place."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def render(self, grid: Grid) -> str:
        """Build the escape sequences and glyphs for one frame."""
        parts = [SAVE_CURSOR]
        for i, row in enumerate(grid.cells):
            parts.append(move_to(i))
            parts.append("".join(ALIVE if cell else DEAD for cell in row))
        parts.append(RESTORE_CURSOR)
        return "".join(parts)

    def draw(self, grid: Grid) -> None:
        """Draw the grid starting at the top-left corner of the screen.

        The cursor position is saved before and restored after the frame.
        Write errors propagate to the caller.
        """
        self.stream.write(self.render(grid))
        self.stream.flush()
