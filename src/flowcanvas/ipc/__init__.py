"""Canvas session protocol over a Unix domain socket."""

from flowcanvas.ipc.client import CanvasClient, request, send_message
from flowcanvas.ipc.server import CanvasServer

__all__ = ["CanvasClient", "CanvasServer", "request", "send_message"]
