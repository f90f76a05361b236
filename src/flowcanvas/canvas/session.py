"""Canvas session state and its transitions.

A session is an immutable value. Keyboard events and protocol messages are
both fed through :func:`handle_input`, which returns a :class:`Transition`:
the next session, the messages to send to the driver, and whether the canvas
should exit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import cached_property

from flowcanvas.canvas.annotations import AnnotationStore
from flowcanvas.canvas.selection import ViewMode, clamp, move_down, move_up
from flowcanvas.exceptions import ConfigError
from flowcanvas.graph.builder import FlowGraph, build_graph
from flowcanvas.graph.linearize import Linearization, SelectableItem, linearize
from flowcanvas.ipc.protocol import (
    CancelledMessage,
    CloseMessage,
    CommentMessage,
    CommentsMessage,
    ErrorMessage,
    GetCommentsMessage,
    PingMessage,
    PongMessage,
    UpdateMessage,
)
from flowcanvas.models import FlowchartConfig, parse_flowchart

logger = logging.getLogger("flowcanvas.session")

UP_KEYS = {"up", "left"}
DOWN_KEYS = {"down", "right"}
UP_TEXT = {"k", "h"}
DOWN_TEXT = {"j", "l"}


@dataclass(frozen=True)
class KeyEvent:
    """A decoded keypress.

    ``key`` is one of ``up``, ``down``, ``left``, ``right``, ``confirm``,
    ``cancel``, ``tab``, ``backspace`` or ``text`` (with ``text`` set).
    """

    key: str
    text: str = ""

    @classmethod
    def char(cls, text: str) -> KeyEvent:
        return cls("text", text)


@dataclass(frozen=True)
class Session:
    config: FlowchartConfig = field(default_factory=FlowchartConfig)
    annotations: AnnotationStore = field(default_factory=AnnotationStore)
    mode: ViewMode = ViewMode.GRAPH
    graph_index: int = 0
    review_index: int = 0
    edit_key: str | None = None
    edit_buffer: str | None = None

    @classmethod
    def from_config(cls, config: FlowchartConfig) -> Session:
        return cls(config=config, annotations=AnnotationStore(config.annotations))

    @cached_property
    def graph(self) -> FlowGraph:
        return build_graph(self.config.nodes, self.config.edges)

    @cached_property
    def view(self) -> Linearization:
        return linearize(self.graph)

    @property
    def review_entries(self) -> list[tuple[str, str]]:
        return self.annotations.non_empty_entries()

    @property
    def editing(self) -> bool:
        return self.edit_buffer is not None

    def current(self) -> SelectableItem | tuple[str, str] | None:
        """The selected item of the active view, if any."""
        if self.mode == ViewMode.REVIEW:
            entries = self.review_entries
            return entries[self.review_index] if entries else None
        items = self.view.selectables
        return items[self.graph_index] if items else None

    def current_key(self) -> str | None:
        item = self.current()
        if item is None:
            return None
        if isinstance(item, SelectableItem):
            return item.annotation_key
        return item[0]


@dataclass(frozen=True)
class Transition:
    session: Session
    outbound: tuple = ()
    exit: bool = False


def handle_input(session: Session, event: object) -> Transition:
    """Dispatch a keyboard event or a driver message."""
    if isinstance(event, KeyEvent):
        return handle_key(session, event)
    return handle_message(session, event)


# =========================================================================
# Keyboard
# =========================================================================


def handle_key(session: Session, event: KeyEvent) -> Transition:
    if session.editing:
        return _handle_edit_key(session, event)

    if session.mode == ViewMode.REVIEW:
        size = len(session.review_entries)
        index_field = "review_index"
        index = session.review_index
    else:
        size = len(session.view.selectables)
        index_field = "graph_index"
        index = session.graph_index

    key, text = event.key, event.text
    if key in UP_KEYS or (key == "text" and text in UP_TEXT):
        return Transition(replace(session, **{index_field: move_up(index, size)}))
    if key in DOWN_KEYS or (key == "text" and text in DOWN_TEXT):
        return Transition(replace(session, **{index_field: move_down(index, size)}))
    if key == "confirm" or (key == "text" and text == "c"):
        return Transition(_start_edit(session))
    if key == "tab":
        return Transition(_toggle_mode(session))
    if key == "cancel" or (key == "text" and text == "q"):
        return Transition(session, (CancelledMessage(),), exit=True)
    return Transition(session)


def _toggle_mode(session: Session) -> Session:
    if session.mode == ViewMode.GRAPH:
        return replace(session, mode=ViewMode.REVIEW, review_index=0)
    return replace(session, mode=ViewMode.GRAPH)


def _start_edit(session: Session) -> Session:
    key = session.current_key()
    if key is None:
        return session
    return replace(session, edit_key=key, edit_buffer=session.annotations.get(key, ""))


def _handle_edit_key(session: Session, event: KeyEvent) -> Transition:
    buffer = session.edit_buffer or ""
    if event.key == "text":
        return Transition(replace(session, edit_buffer=buffer + event.text))
    if event.key == "backspace":
        return Transition(replace(session, edit_buffer=buffer[:-1]))
    if event.key == "cancel":
        return Transition(replace(session, edit_key=None, edit_buffer=None))
    if event.key == "confirm":
        key = session.edit_key
        annotations = session.annotations.set(key, buffer)
        committed = replace(
            session, annotations=annotations, edit_key=None, edit_buffer=None
        )
        committed = replace(
            committed,
            review_index=clamp(committed.review_index, len(committed.review_entries)),
        )
        return Transition(committed, (CommentMessage(key=key, text=buffer),))
    return Transition(session)


# =========================================================================
# Driver messages
# =========================================================================


def handle_message(session: Session, message: object) -> Transition:
    if isinstance(message, UpdateMessage):
        return _apply_update(session, message)
    if isinstance(message, CloseMessage):
        return Transition(session, exit=True)
    if isinstance(message, GetCommentsMessage):
        data = dict(session.review_entries)
        return Transition(session, (CommentsMessage(data=data),))
    if isinstance(message, PingMessage):
        return Transition(session, (PongMessage(),))
    logger.debug("Ignoring unhandled message %r", message)
    return Transition(session)


def _apply_update(session: Session, message: UpdateMessage) -> Transition:
    try:
        config = parse_flowchart(message.config)
    except ConfigError as e:
        logger.warning("Rejected update: %s", e)
        return Transition(session, (ErrorMessage(message=str(e)),))

    updated = Session(
        config=config,
        annotations=session.annotations.replace_from(config),
        mode=session.mode,
        edit_key=session.edit_key,
        edit_buffer=session.edit_buffer,
    )
    updated = replace(
        updated,
        graph_index=clamp(session.graph_index, len(updated.view.selectables)),
        review_index=clamp(session.review_index, len(updated.review_entries)),
    )
    if updated.editing and not _key_exists(updated, updated.edit_key):
        updated = replace(updated, edit_key=None, edit_buffer=None)
    logger.info(
        "Applied update: %d nodes, %d edges", len(config.nodes), len(config.edges)
    )
    return Transition(updated)


def _key_exists(session: Session, key: str | None) -> bool:
    if key is None:
        return False
    if key in session.annotations:
        return True
    return session.view.index_of(key) is not None
