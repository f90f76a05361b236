"""Driver-side helpers for talking to a canvas socket."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pydantic import BaseModel

from flowcanvas.exceptions import ProtocolError
from flowcanvas.ipc.protocol import (
    CANVAS_MESSAGES,
    LineBuffer,
    decode_line,
    encode_message,
)

logger = logging.getLogger("flowcanvas.ipc")


class CanvasClient:
    """A connection to a running canvas."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._buffer = LineBuffer()
        self._queue: list[BaseModel] = []

    @classmethod
    async def connect(cls, socket_path: str | Path, timeout: float = 5.0) -> CanvasClient:
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_unix_connection(str(socket_path)), timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise ProtocolError(f"Cannot connect to canvas at {socket_path}: {e}") from e
        return cls(reader, writer)

    async def send(self, message: BaseModel) -> None:
        self._writer.write(encode_message(message))
        await self._writer.drain()

    async def receive(self, expected_type: str | None = None, timeout: float = 5.0) -> BaseModel:
        """Return the next message, skipping others until ``expected_type``."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            while self._queue:
                message = self._queue.pop(0)
                if expected_type is None or message.type == expected_type:
                    return message
                logger.debug("Skipping %s while waiting for %s", message.type, expected_type)

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ProtocolError(f"Timed out waiting for {expected_type or 'a message'}")
            try:
                chunk = await asyncio.wait_for(self._reader.read(65536), remaining)
            except asyncio.TimeoutError as e:
                raise ProtocolError(
                    f"Timed out waiting for {expected_type or 'a message'}"
                ) from e
            if not chunk:
                raise ProtocolError("Canvas closed the connection")
            for line in self._buffer.feed(chunk):
                message = decode_line(line, CANVAS_MESSAGES)
                if message is not None:
                    self._queue.append(message)

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except (ConnectionError, OSError):
            pass

    async def __aenter__(self) -> CanvasClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def send_message(socket_path: str | Path, message: BaseModel, timeout: float = 5.0) -> None:
    """Connect, send one message, disconnect."""
    client = await CanvasClient.connect(socket_path, timeout)
    async with client:
        await client.send(message)


async def request(
    socket_path: str | Path,
    message: BaseModel,
    reply_type: str,
    timeout: float = 5.0,
) -> BaseModel:
    """Connect, send one message and wait for a reply of ``reply_type``."""
    client = await CanvasClient.connect(socket_path, timeout)
    async with client:
        await client.send(message)
        return await client.receive(reply_type, timeout)
