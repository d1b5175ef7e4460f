"""Interactive terminal interface for Conway's Game of Life."""

import argparse
import enum
import logging
import sys
import time
from typing import List, Optional

from ..core.errors import GridError
from ..core.grid import DEFAULT_DENSITY, Grid
from ..logging_config import console_muted, setup_logging
from .renderer import Renderer
from .terminal import ESC, KeyEvent, Keyboard, TerminalError, TerminalSession, resize_terminal, terminal_size

logger = logging.getLogger(__name__)

FPS = 25
DEFAULT_SAVE_PATH = "grid.data"
LOAD_ERROR_DELAY = 3.0


class Command(enum.Enum):
    """Actions bound to keys during a simulation."""

    NONE = "none"
    RESTART = "restart"
    SAVE_FILE = "save_file"
    SAVE_SNAPSHOT = "save_snapshot"
    LOAD_SNAPSHOT = "load_snapshot"
    TOGGLE_PAUSE = "toggle_pause"
    QUIT = "quit"


def command_for_key(event: KeyEvent) -> Command:
    """Map a key event to its command. Letters are case-insensitive."""
    if event.code == ESC:
        return Command.QUIT
    if len(event.code) != 1:
        return Command.NONE

    key = event.code.lower()
    if key == "r":
        return Command.RESTART
    if key == "s":
        return Command.SAVE_FILE if event.ctrl else Command.SAVE_SNAPSHOT
    if key == "l":
        return Command.LOAD_SNAPSHOT
    if key == "p":
        return Command.TOGGLE_PAUSE
    if key == "q" or (key == "c" and event.ctrl):
        return Command.QUIT
    return Command.NONE


class TerminalGameOfLife:
    """Keyboard driven simulation loop drawing to the terminal."""

    def __init__(
        self,
        grid: Grid,
        save_path: str = DEFAULT_SAVE_PATH,
        renderer: Optional[Renderer] = None,
        keyboard: Optional[Keyboard] = None,
        fps: int = FPS,
    ) -> None:
        """Initialize the loop.

        Args:
            grid: Grid to simulate; it is mutated in place
            save_path: File written by the save-to-disk command
            renderer: Frame renderer (stdout by default)
            keyboard: Key event source (stdin by default)
            fps: Generations per second while running
        """
        self.grid = grid
        self.save_path = save_path
        self.renderer = renderer if renderer is not None else Renderer()
        self.keyboard = keyboard if keyboard is not None else Keyboard()
        self.frame_delay = 1.0 / fps
        self.errors: List[GridError] = []

    def handle_command(self, command: Command) -> bool:
        """Apply a command to the grid.

        Returns:
            False if the loop should stop, True otherwise
        """
        if command is Command.QUIT:
            return False

        if command is Command.RESTART:
            self.grid.restart()
        elif command is Command.SAVE_FILE:
            try:
                self.grid.save_to_file(self.save_path)
            except GridError as e:
                # The screen belongs to the simulation; report after it ends
                logger.info(f"Save failed: {e}")
                self.errors.append(e)
        elif command is Command.SAVE_SNAPSHOT:
            self.grid.save_state()
        elif command is Command.LOAD_SNAPSHOT:
            self.grid.load_state()
        elif command is Command.TOGGLE_PAUSE:
            self.grid.toggle_pause()
            logger.debug("Paused" if self.grid.paused else "Resumed")

        return True

    def run_once(self) -> bool:
        """Run one iteration: handle pending input, then advance and draw.

        Returns:
            False once a quit command has been received
        """
        event = self.keyboard.poll(0.0)
        if event is not None:
            if not self.handle_command(command_for_key(event)):
                return False

        if self.grid.paused:
            return True

        self.grid.step()
        self.renderer.draw(self.grid)
        time.sleep(self.frame_delay)
        return True

    def run(self) -> None:
        """Run until a quit command arrives."""
        while self.run_once():
            pass
        logger.debug(f"Stopped after generation {self.grid.generation}")


def load_initial_grid(args: argparse.Namespace, cols: int, rows: int) -> Grid:
    """Build the starting grid from the command line file or at random.

    A grid read from a file resizes the terminal to fit it. A file that
    cannot be loaded is reported and replaced by a random grid after a short
    pause so the message can be read.
    """
    if args.file:
        try:
            grid = Grid.from_file(args.file, density=args.density, seed=args.seed)
        except GridError as e:
            print(f"Error while loading from file: {e}. Creating default grid.", file=sys.stderr)
            time.sleep(LOAD_ERROR_DELAY)
        else:
            resize_terminal(grid.cols, grid.rows)
            return grid

    return Grid(rows, cols, density=args.density, seed=args.seed)


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="Conway's Game of Life in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keys:
  r          restart with a random grid
  s          save a snapshot in memory
  l          load the snapshot
  Ctrl+s     save the grid to FILE (default: grid.data)
  p          pause / resume
  q, Esc     quit

Examples:
  # Random grid filling the terminal
  termlife

  # Start from a saved grid; Ctrl+s writes back to it
  termlife glider.data

  # Slower, sparser and reproducible
  termlife --fps 10 --density 0.2 --seed 42
        """,
    )

    parser.add_argument(
        "file",
        nargs="?",
        help="Grid file of 0/1 rows to load; also the Ctrl+s target",
    )

    parser.add_argument("--fps", type=int, default=FPS, help=f"Generations per second (default: {FPS})")

    parser.add_argument(
        "-d",
        "--density",
        type=float,
        default=DEFAULT_DENSITY,
        help=f"Alive chance of random cells, 0.0-1.0 (default: {DEFAULT_DENSITY})",
    )

    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible grids")

    parser.add_argument("--log-file", default=None, help="Also write log messages to this file")

    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages")

    return parser


def validate_args(args: argparse.Namespace) -> bool:
    """Validate command-line arguments.

    Args:
        args: Parsed arguments

    Returns:
        True if arguments are valid, False otherwise
    """
    errors = []

    if args.fps <= 0:
        errors.append("FPS must be positive")

    if not 0.0 <= args.density <= 1.0:
        errors.append("Density must be between 0.0 and 1.0")

    if errors:
        print("Error: Invalid arguments:")
        for error in errors:
            print(f"  - {error}")
        return False

    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the terminal interface.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not validate_args(args):
        return 1

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)

    try:
        cols, rows = terminal_size()
    except TerminalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        grid = load_initial_grid(args, cols, rows)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1

    save_path = args.file or DEFAULT_SAVE_PATH
    game = TerminalGameOfLife(grid, save_path, fps=args.fps)

    try:
        with TerminalSession(), console_muted():
            game.run()
    except TerminalError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for error in game.errors:
        print(f"Error: {error}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
