"""Flatten a flowchart into an indented, selectable line sequence.

The walk is a pre-order depth-first traversal from each entry point. A node
reached a second time is emitted as a back-reference: it stays selectable
(with its own annotation key) but its children are not walked again, which
keeps cycles finite and shared subtrees from being expanded twice.

Example, for ``A -> B, A -> C, B -> D, C -> D``::

    A
    ├─ B
    │  │
    │  D
    └─ C
       │
       ↺ D
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from flowcanvas.graph.builder import FlowGraph

PATH_SEPARATOR = " → "
BACK_REFERENCE_GLYPH = "↺ "
CONNECTOR = "│"
TEE = "├─ "
CORNER = "└─ "
PIPE_INDENT = "│  "
BLANK_INDENT = "   "


class LineKind(str, Enum):
    NODE = "node"
    BACK_REFERENCE = "back_reference"
    CONNECTOR = "connector"
    SPACER = "spacer"


@dataclass(frozen=True)
class SelectableItem:
    """One selectable occurrence of a node in the linearized view."""

    node_id: str
    display_label: str
    annotation_key: str
    is_back_reference: bool = False


@dataclass(frozen=True)
class Line:
    """One rendered row.

    ``prefix`` is the accumulated indentation, ``branch`` the tee/corner
    glyph (empty for roots and chain members), ``label`` the node text.
    ``is_last`` marks the last or only child of its parent.
    """

    prefix: str
    branch: str
    label: str
    kind: LineKind
    node_id: str | None = None
    selectable_index: int | None = None
    is_last: bool = False

    @property
    def text(self) -> str:
        if self.kind == LineKind.BACK_REFERENCE:
            return f"{self.prefix}{self.branch}{BACK_REFERENCE_GLYPH}{self.label}"
        return f"{self.prefix}{self.branch}{self.label}"


@dataclass
class Linearization:
    lines: list[Line] = field(default_factory=list)
    selectables: list[SelectableItem] = field(default_factory=list)

    def index_of(self, annotation_key: str) -> int | None:
        """Selectable index for an annotation key, if present."""
        for i, item in enumerate(self.selectables):
            if item.annotation_key == annotation_key:
                return i
        return None


def _path_labels(path: tuple | None) -> list[str]:
    """Unwind a (label, parent) path cell into labels, entry point first."""
    labels: list[str] = []
    while path is not None:
        labels.append(path[0])
        path = path[1]
    labels.reverse()
    return labels


@dataclass(frozen=True)
class _Frame:
    node_id: str
    prefix: str
    branch: str
    path: tuple | None
    connector: bool = False


class _Walker:
    def __init__(self, graph: FlowGraph) -> None:
        self.graph = graph
        self.visited: set[str] = set()
        self.result = Linearization()

    def walk(self) -> Linearization:
        for i, entry in enumerate(self.graph.entry_points):
            if entry in self.visited:
                continue
            if i > 0 and self.result.lines:
                self.result.lines.append(Line("", "", "", LineKind.SPACER))
            self._visit(entry)
        return self.result

    def _emit(self, frame: _Frame) -> bool:
        """Append the line and selectable for one occurrence.

        Returns True when the node should be expanded (first visit).
        """
        node_id = frame.node_id
        label = self.graph.label(node_id)
        back = node_id in self.visited
        if back:
            key = PATH_SEPARATOR.join((*_path_labels(frame.path), label))
        else:
            key = node_id
            self.visited.add(node_id)

        index = len(self.result.selectables)
        self.result.selectables.append(
            SelectableItem(
                node_id=node_id,
                display_label=label,
                annotation_key=key,
                is_back_reference=back,
            )
        )
        kind = LineKind.BACK_REFERENCE if back else LineKind.NODE
        is_last = frame.connector or frame.branch == CORNER
        self.result.lines.append(
            Line(frame.prefix, frame.branch, label, kind, node_id, index, is_last)
        )
        return not back

    def _visit(self, entry: str) -> None:
        # Explicit stack: chains and cycles can be far deeper than the
        # interpreter's recursion limit.
        stack = [_Frame(entry, "", "", None)]
        while stack:
            frame = stack.pop()
            if frame.connector:
                self.result.lines.append(
                    Line(frame.prefix, "", CONNECTOR, LineKind.CONNECTOR)
                )
            if not self._emit(frame):
                continue

            node_id = frame.node_id
            path = (self.graph.label(node_id), frame.path)
            if frame.branch == TEE:
                inner = frame.prefix + PIPE_INDENT
            elif frame.branch == CORNER:
                inner = frame.prefix + BLANK_INDENT
            else:
                inner = frame.prefix

            children = self.graph.children[node_id]
            if len(children) == 1:
                stack.append(_Frame(children[0], inner, "", path, connector=True))
                continue
            last = len(children) - 1
            for i in range(last, -1, -1):
                stack.append(_Frame(children[i], inner, CORNER if i == last else TEE, path))


def linearize(graph: FlowGraph) -> Linearization:
    """Linearize a graph into display lines and selectable items.

    Pure: the same graph always yields equal output.
    """
    return _Walker(graph).walk()
