"""Unix socket server owned by the canvas process."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel

from flowcanvas.ipc.protocol import (
    CONTROLLER_MESSAGES,
    LineBuffer,
    ReadyMessage,
    decode_line,
    encode_message,
)

logger = logging.getLogger("flowcanvas.ipc")

READ_CHUNK = 65536

MessageHandler = Callable[[BaseModel], None]


class _Peer:
    """One connected driver: its stream pair and its own frame buffer."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.reader = reader
        self.writer = writer
        self.buffer = LineBuffer()

    def write(self, data: bytes) -> None:
        if not self.writer.is_closing():
            self.writer.write(data)

    async def close(self) -> None:
        if self.writer.is_closing():
            return
        try:
            await self.writer.drain()
        except (ConnectionError, OSError):
            pass
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass


class CanvasServer:
    """Single-peer newline-JSON server on a Unix domain socket.

    Each accepted peer is greeted with one ``ready`` message. A new
    connection supersedes the current peer: the old one is flushed and
    closed, and since every peer keeps its own line buffer a half-received
    frame from the old peer never mixes with the new peer's stream.
    """

    def __init__(self, socket_path: str | Path, on_message: MessageHandler | None = None) -> None:
        self.socket_path = Path(socket_path)
        self.on_message = on_message
        self._server: asyncio.AbstractServer | None = None
        self._peer: _Peer | None = None

    @property
    def connected(self) -> bool:
        return self._peer is not None

    async def start(self) -> None:
        if self.socket_path.exists():
            self.socket_path.unlink()
        self._server = await asyncio.start_unix_server(
            self._handle_connection, path=str(self.socket_path)
        )
        logger.info("Canvas socket listening at %s", self.socket_path)

    async def close(self) -> None:
        if self._peer is not None:
            await self._peer.close()
            self._peer = None
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        if self.socket_path.exists():
            try:
                os.unlink(self.socket_path)
            except OSError as e:
                logger.debug("Could not remove socket %s: %s", self.socket_path, e)
        logger.info("Canvas socket closed")

    def send(self, message: BaseModel) -> None:
        """Send to the connected peer; dropped when no peer is connected."""
        if self._peer is None:
            logger.debug("No peer connected, dropping %s", message)
            return
        self._peer.write(encode_message(message))

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        previous = self._peer
        peer = _Peer(reader, writer)
        self._peer = peer
        if previous is not None:
            logger.info("New driver connection supersedes the previous one")
            await previous.close()

        logger.info("Driver connected")
        peer.write(encode_message(ReadyMessage()))

        try:
            while True:
                chunk = await reader.read(READ_CHUNK)
                if not chunk:
                    break
                for line in peer.buffer.feed(chunk):
                    message = decode_line(line, CONTROLLER_MESSAGES)
                    if message is None or self.on_message is None:
                        continue
                    try:
                        self.on_message(message)
                    except Exception:
                        logger.exception("Error handling %s message", message.type)
        except (ConnectionError, OSError) as e:
            logger.warning("IPC socket error: %s", e)
        finally:
            if peer.buffer.pending.strip():
                logger.debug("Discarding unterminated frame from closed peer")
            if self._peer is peer:
                self._peer = None
                await peer.close()
            logger.info("Driver disconnected")
