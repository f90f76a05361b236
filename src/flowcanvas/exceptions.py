"""Custom exceptions for flowcanvas."""


class FlowCanvasError(Exception):
    """Base exception for all flowcanvas errors."""


class ConfigError(FlowCanvasError):
    """Invalid flowchart config or settings."""


class ProtocolError(FlowCanvasError):
    """Canvas socket errors seen by a client (closed peer, reply timeout)."""


class PaneError(FlowCanvasError):
    """Pane creation or management errors."""


class CapabilityError(PaneError):
    """Raised when no usable terminal multiplexer is available."""

    def __init__(self, detail: str = ""):
        message = (
            "Canvas requires tmux or iTerm2. "
            "Run inside a tmux session or an iTerm2 window."
        )
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
