"""Where the hosted pane's identifier lives between CLI invocations."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ValidationError

from flowcanvas.terminal.multiplexer import MultiplexerKind

logger = logging.getLogger("flowcanvas.terminal")


class PaneRecord(BaseModel):
    pane_id: str
    multiplexer: MultiplexerKind = MultiplexerKind.TMUX


class PaneRegistry(ABC):
    """Storage for at most one pane record."""

    @abstractmethod
    def load(self) -> PaneRecord | None: ...

    @abstractmethod
    def save(self, record: PaneRecord) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class FilePaneRegistry(PaneRegistry):
    """Pane record in a JSON state file.

    No locking: two concurrent writers can race, the last write wins.
    A file holding only a bare pane id is read as a tmux record.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> PaneRecord | None:
        try:
            raw = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug("Cannot read pane state %s: %s", self.path, e)
            return None
        if not raw:
            return None

        if raw.startswith("{"):
            try:
                return PaneRecord.model_validate(json.loads(raw))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning("Ignoring corrupt pane state %s: %s", self.path, e)
                return None
        return PaneRecord(pane_id=raw)

    def save(self, record: PaneRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(record.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
