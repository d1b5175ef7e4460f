"""Grid data structure for the terminal Game of Life."""

import logging
import os
import shutil
import tempfile
from typing import Optional, Tuple

import numpy as np
import torch
import torch.nn.functional as F

from .errors import EmptyGridError, GridIOError, GridParseError, InconsistentWidthError

logger = logging.getLogger(__name__)

DEFAULT_DENSITY = 0.5


class Grid:
    """A bounded 2D grid of cells running Conway's Game of Life.

    Cells live in a boolean numpy array of shape (rows, cols). Edges do not
    wrap: cells outside the grid count as dead. Besides the live cells the
    grid keeps one saved snapshot and the pause flag of the simulation.
    """

    def __init__(
        self,
        rows: int,
        cols: int,
        density: float = DEFAULT_DENSITY,
        seed: Optional[int] = None,
    ) -> None:
        """Initialize a randomly populated grid.

        Args:
            rows: Number of rows
            cols: Number of columns
            density: Chance each cell starts alive (0.0 to 1.0)
            seed: Optional seed for reproducible randomization

        Raises:
            ValueError: If a dimension is not positive or density is out of range
        """
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {rows}x{cols}")
        if not 0.0 <= density <= 1.0:
            raise ValueError(f"Density must be between 0.0 and 1.0, got {density}")

        self.rows = rows
        self.cols = cols
        self.density = density
        self.generation = 0
        self._paused = False
        self._rng = np.random.default_rng(seed)
        self._cells = self._random_cells()
        self._saved_cells = self._cells.copy()

        # Neighbourhood kernel: every cell of the 3x3 block except the centre
        self._torch_kernel = (
            torch.tensor([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=torch.float32).unsqueeze(0).unsqueeze(0)
        )

    @classmethod
    def from_text(cls, content: str, density: float = DEFAULT_DENSITY, seed: Optional[int] = None) -> "Grid":
        """Build a grid from text rows of '0' and '1'.

        Args:
            content: Newline separated rows, '1' for alive and '0' for dead.
                A trailing newline is optional.
            density: Alive chance used when the grid is restarted
            seed: Optional seed for restarts

        Returns:
            Grid with one row per line and the first line's width

        Raises:
            GridParseError: If a character other than '0' or '1' appears
            InconsistentWidthError: If rows have different lengths
            EmptyGridError: If there are no rows or rows are empty
        """
        lines = content.split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        matrix = []
        width: Optional[int] = None
        for line in lines:
            if line.endswith("\r"):
                line = line[:-1]

            if width is None:
                width = len(line)
            elif len(line) != width:
                raise InconsistentWidthError()

            row = []
            for char in line:
                if char == "0":
                    row.append(False)
                elif char == "1":
                    row.append(True)
                else:
                    raise GridParseError(char)
            matrix.append(row)

        if not matrix or not width:
            raise EmptyGridError()

        grid = cls(len(matrix), width, density, seed)
        grid._cells = np.array(matrix, dtype=bool)
        grid._saved_cells = grid._cells.copy()
        return grid

    @classmethod
    def from_file(cls, path: str, density: float = DEFAULT_DENSITY, seed: Optional[int] = None) -> "Grid":
        """Read a grid file written by save_to_file.

        Raises:
            GridIOError: If the file cannot be read
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise GridIOError(path, e) from e

        grid = cls.from_text(content, density, seed)
        logger.info(f"Loaded {grid.rows}x{grid.cols} grid from {path}")
        return grid

    @property
    def cells(self) -> np.ndarray:
        """Get the current cell array."""
        return self._cells

    @property
    def saved_cells(self) -> np.ndarray:
        """Get the saved snapshot array."""
        return self._saved_cells

    @property
    def shape(self) -> Tuple[int, int]:
        """Get grid dimensions as (rows, cols)."""
        return (self.rows, self.cols)

    @property
    def population(self) -> int:
        """Get the number of living cells."""
        return int(np.count_nonzero(self._cells))

    @property
    def paused(self) -> bool:
        """Whether the simulation is paused."""
        return self._paused

    def toggle_pause(self) -> None:
        """Pause a running simulation or resume a paused one."""
        self._paused = not self._paused

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.rows and 0 <= y < self.cols):
            raise IndexError(f"Coordinates ({x}, {y}) out of bounds")

    def get_cell(self, x: int, y: int) -> bool:
        """Get the state of the cell at row x, column y.

        Raises:
            IndexError: If coordinates are out of bounds
        """
        self._check_bounds(x, y)
        return bool(self._cells[x, y])

    def set_cell(self, x: int, y: int, alive: bool) -> None:
        """Set the state of the cell at row x, column y.

        Raises:
            IndexError: If coordinates are out of bounds
        """
        self._check_bounds(x, y)
        self._cells[x, y] = alive

    def _random_cells(self) -> np.ndarray:
        return self._rng.random((self.rows, self.cols)) < self.density

    def restart(self) -> None:
        """Replace the cells with a fresh random population."""
        self._cells = self._random_cells()
        self.generation = 0

    def save_state(self) -> None:
        """Save the current cells as the snapshot, replacing any earlier one."""
        self._saved_cells = self._cells.copy()

    def load_state(self) -> None:
        """Restore the cells from the snapshot.

        Before any save_state() call this returns the grid to the state it
        was constructed with.
        """
        self._cells = self._saved_cells.copy()

    def to_text(self) -> str:
        """Serialize the cells as '0'/'1' rows, each terminated by a newline."""
        return "".join("".join("1" if cell else "0" for cell in row) + "\n" for row in self._cells)

    def save_to_file(self, path: str) -> None:
        """Write the current cells to a grid file.

        The text is written to a temporary file next to the target which
        then replaces it, so the target is either fully written or left as
        it was.

        Args:
            path: Destination file

        Raises:
            GridIOError: If the file cannot be written
        """
        directory = os.path.dirname(os.path.abspath(path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".termlife-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(self.to_text())
            # mkstemp creates 0600; keep the target's mode or apply the umask
            if os.path.isfile(path):
                shutil.copymode(path, tmp_path)
            else:
                umask = os.umask(0)
                os.umask(umask)
                os.chmod(tmp_path, 0o666 & ~umask)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise GridIOError(path, e) from e

        logger.info(f"Saved {self.rows}x{self.cols} grid to {path}")

    def count_neighbors(self, x: int, y: int) -> int:
        """Count living neighbors of a cell.

        Cells beyond the grid edge count as dead, so corner cells have at
        most 3 neighbors and edge cells at most 5.

        Args:
            x: Row coordinate
            y: Column coordinate

        Returns:
            Number of living neighbors (0-8)

        Raises:
            IndexError: If coordinates are out of bounds
        """
        self._check_bounds(x, y)
        block = self._cells[max(x - 1, 0) : x + 2, max(y - 1, 0) : y + 2]
        return int(np.count_nonzero(block)) - int(self._cells[x, y])

    def count_all_neighbors(self) -> np.ndarray:
        """Count neighbors for all cells using a PyTorch convolution.

        Returns:
            Int array of shape (rows, cols) with each cell's neighbor count
        """
        torch_input = torch.from_numpy(self._cells.astype(np.float32)).unsqueeze(0).unsqueeze(0)
        # Zero padding keeps the edges bounded
        neighbors = F.conv2d(torch_input, self._torch_kernel, padding=1)
        return neighbors[0, 0].numpy().astype(np.int8)

    def step(self) -> None:
        """Advance the grid by one generation.

        A live cell with 2 or 3 neighbors survives, a dead cell with exactly
        3 neighbors becomes alive, every other cell is dead. All counts are
        taken from the current generation before any cell changes.
        """
        neighbor_counts = self.count_all_neighbors()
        cells = self._cells

        survive = cells & ((neighbor_counts == 2) | (neighbor_counts == 3))
        birth = ~cells & (neighbor_counts == 3)

        self._cells = survive | birth
        self.generation += 1

    def __eq__(self, other: object) -> bool:
        """Check if two grids hold the same cells."""
        if not isinstance(other, Grid):
            return False
        return self.shape == other.shape and np.array_equal(self._cells, other._cells)

    def __str__(self) -> str:
        """String representation showing living cells as '*' and dead as '.'."""
        return "\n".join("".join("*" if cell else "." for cell in row) for row in self._cells)
