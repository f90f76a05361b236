"""Canvas session protocol: newline-delimited JSON messages.

Every message is one UTF-8 JSON object with a ``type`` field, terminated by
``\\n``. Unknown fields are ignored; lines with an unknown ``type`` or that
fail to parse are logged and dropped without closing the connection.

Driver -> canvas: ``update``, ``close``, ``getComments``, ``ping``.
Canvas -> driver: ``ready``, ``comment``, ``comments``, ``cancelled``,
``pong``, ``error``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger("flowcanvas.ipc")

ENCODING = "utf-8"
DELIMITER = b"\n"


class _Message(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


# Driver -> canvas


class UpdateMessage(_Message):
    type: Literal["update"] = "update"
    config: dict[str, Any] = Field(default_factory=dict)


class CloseMessage(_Message):
    type: Literal["close"] = "close"


class GetCommentsMessage(_Message):
    type: Literal["getComments"] = "getComments"


class PingMessage(_Message):
    type: Literal["ping"] = "ping"


# Canvas -> driver


class ReadyMessage(_Message):
    type: Literal["ready"] = "ready"


class CommentMessage(_Message):
    type: Literal["comment"] = "comment"
    key: str
    text: str


class CommentsMessage(_Message):
    type: Literal["comments"] = "comments"
    data: dict[str, str] = Field(default_factory=dict)


class CancelledMessage(_Message):
    type: Literal["cancelled"] = "cancelled"
    reason: str | None = None


class PongMessage(_Message):
    type: Literal["pong"] = "pong"


class ErrorMessage(_Message):
    type: Literal["error"] = "error"
    message: str


ControllerMessage = Union[UpdateMessage, CloseMessage, GetCommentsMessage, PingMessage]
CanvasMessage = Union[
    ReadyMessage, CommentMessage, CommentsMessage, CancelledMessage, PongMessage, ErrorMessage
]

CONTROLLER_MESSAGES: dict[str, type[_Message]] = {
    "update": UpdateMessage,
    "close": CloseMessage,
    "getComments": GetCommentsMessage,
    "ping": PingMessage,
}

CANVAS_MESSAGES: dict[str, type[_Message]] = {
    "ready": ReadyMessage,
    "comment": CommentMessage,
    "comments": CommentsMessage,
    "cancelled": CancelledMessage,
    "pong": PongMessage,
    "error": ErrorMessage,
}


def encode_message(message: BaseModel) -> bytes:
    """Serialize a message as one newline-terminated JSON line."""
    body = json.dumps(message.model_dump(exclude_none=True), ensure_ascii=False)
    return body.encode(ENCODING) + DELIMITER


def decode_line(
    line: bytes | str, registry: dict[str, type[_Message]] = CONTROLLER_MESSAGES
) -> _Message | None:
    """Parse one line into a message, or None if it is not a usable message."""
    if isinstance(line, bytes):
        try:
            line = line.decode(ENCODING)
        except UnicodeDecodeError as e:
            logger.warning("Dropping undecodable line: %s", e)
            return None
    line = line.strip()
    if not line:
        return None

    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse IPC message %r: %s", line[:200], e)
        return None
    if not isinstance(data, dict):
        logger.warning("Dropping non-object IPC message: %r", line[:200])
        return None

    kind = data.get("type")
    model = registry.get(kind) if isinstance(kind, str) else None
    if model is None:
        logger.warning("Ignoring IPC message with unknown type %r", kind)
        return None

    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("Invalid %s message: %s", kind, e)
        return None


class LineBuffer:
    """Reassemble newline-delimited frames from arbitrary byte chunks.

    A trailing partial line is held until a later chunk completes it.
    """

    def __init__(self) -> None:
        self._pending = b""

    def feed(self, data: bytes) -> list[bytes]:
        self._pending += data
        *lines, self._pending = self._pending.split(DELIMITER)
        return [line for line in lines if line.strip()]

    @property
    def pending(self) -> bytes:
        return self._pending
