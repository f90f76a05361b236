"""Terminal multiplexer integration and pane lifecycle."""

from flowcanvas.terminal.lifecycle import PaneManager
from flowcanvas.terminal.multiplexer import Multiplexer, MultiplexerKind, detect_multiplexer
from flowcanvas.terminal.registry import FilePaneRegistry, PaneRecord, PaneRegistry

__all__ = [
    "FilePaneRegistry",
    "Multiplexer",
    "MultiplexerKind",
    "PaneManager",
    "PaneRecord",
    "PaneRegistry",
    "detect_multiplexer",
]
