"""Terminal display package for switop frames."""

from .terminal import TerminalDisplay

__all__ = ["TerminalDisplay"]
