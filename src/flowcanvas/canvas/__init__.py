"""Interactive canvas: session state, selection, annotations and event loop."""

from flowcanvas.canvas.annotations import AnnotationStore
from flowcanvas.canvas.session import KeyEvent, Session, Transition, handle_input

__all__ = ["AnnotationStore", "KeyEvent", "Session", "Transition", "handle_input"]
