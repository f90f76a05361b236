"""The canvas process: one asyncio loop for keyboard and socket input."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import logging
import os
import signal
import sys
import termios
import tty
from collections.abc import Iterator
from pathlib import Path

from rich.live import Live

from flowcanvas.canvas.keys import ESC_TIMEOUT, KeyDecoder
from flowcanvas.canvas.session import Session, handle_input
from flowcanvas.ipc.protocol import CancelledMessage
from flowcanvas.ipc.server import CanvasServer
from flowcanvas.ui.console import Console

logger = logging.getLogger("flowcanvas.canvas")


@contextlib.contextmanager
def cbreak_terminal(fd: int) -> Iterator[None]:
    """Put a tty into cbreak mode for the duration of the block."""
    if not os.isatty(fd):
        yield
        return
    original = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, original)


class CanvasApp:
    """Wires keyboard input, the canvas socket and the renderer together.

    Every input goes through :func:`handle_input`; outbound messages are
    sent to the driver and the view is redrawn before the next input.
    """

    def __init__(
        self,
        session: Session,
        socket_path: str | Path | None = None,
        console: Console | None = None,
        input_fd: int | None = None,
    ) -> None:
        self.session = session
        self.console = console or Console()
        self.server = CanvasServer(socket_path, self.dispatch) if socket_path else None
        self.input_fd = sys.stdin.fileno() if input_fd is None else input_fd
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
        self._keys = KeyDecoder()
        self._esc_timer: asyncio.TimerHandle | None = None
        self._done = asyncio.Event()
        self._live: Live | None = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def dispatch(self, event: object) -> None:
        """Apply one keyboard event or driver message."""
        if self.done:
            return
        transition = handle_input(self.session, event)
        self.session = transition.session
        for message in transition.outbound:
            self._send(message)
        if transition.exit:
            logger.info("Canvas exiting")
            self._done.set()
        else:
            self._refresh()

    def _send(self, message: object) -> None:
        if self.server is not None:
            self.server.send(message)

    def _refresh(self) -> None:
        if self._live is not None:
            self._live.update(self.console.render_canvas(self.session), refresh=True)

    def _on_input(self) -> None:
        try:
            data = os.read(self.input_fd, 1024)
        except OSError as e:
            logger.warning("Keyboard input error: %s", e)
            data = b""
        if not data:
            logger.info("Keyboard input closed")
            self._done.set()
            return
        if self._esc_timer is not None:
            self._esc_timer.cancel()
            self._esc_timer = None
        for event in self._keys.feed(self._decoder.decode(data)):
            self.dispatch(event)
        if self._keys.pending:
            loop = asyncio.get_running_loop()
            self._esc_timer = loop.call_later(ESC_TIMEOUT, self._flush_keys)

    def _flush_keys(self) -> None:
        self._esc_timer = None
        for event in self._keys.flush():
            self.dispatch(event)

    def _on_interrupt(self) -> None:
        self._send(CancelledMessage(reason="interrupted"))
        self._done.set()

    async def run(self) -> Session:
        """Run until a quit key, a ``close`` message or an interrupt."""
        loop = asyncio.get_running_loop()
        if self.server is not None:
            await self.server.start()

        try:
            with cbreak_terminal(self.input_fd), Live(
                self.console.render_canvas(self.session),
                console=self.console.console,
                screen=True,
                auto_refresh=False,
            ) as live:
                self._live = live
                loop.add_reader(self.input_fd, self._on_input)
                loop.add_signal_handler(signal.SIGINT, self._on_interrupt)
                try:
                    await self._done.wait()
                finally:
                    loop.remove_signal_handler(signal.SIGINT)
                    loop.remove_reader(self.input_fd)
                    if self._esc_timer is not None:
                        self._esc_timer.cancel()
                        self._esc_timer = None
                    self._live = None
        finally:
            if self.server is not None:
                await self.server.close()
        return self.session
