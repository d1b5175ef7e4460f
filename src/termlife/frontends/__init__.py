"""Terminal frontend for the Game of Life."""

from .cli import TerminalGameOfLife
from .renderer import Renderer
from .terminal import Keyboard, TerminalSession

__all__ = ["TerminalGameOfLife", "Renderer", "Keyboard", "TerminalSession"]
