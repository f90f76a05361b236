"""flowcanvas - interactive flowchart canvas for terminal panes."""

__version__ = "0.1.0"
