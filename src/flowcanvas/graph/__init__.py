"""Flowchart graph structure and linearization."""

from flowcanvas.graph.builder import FlowGraph, build_graph
from flowcanvas.graph.linearize import Line, LineKind, Linearization, SelectableItem, linearize

__all__ = [
    "FlowGraph",
    "build_graph",
    "Line",
    "LineKind",
    "Linearization",
    "SelectableItem",
    "linearize",
]
