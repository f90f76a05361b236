"""Pane lifecycle: reuse the recorded canvas pane or create a new one."""

from __future__ import annotations

import json
import logging
import shlex
import sys
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from flowcanvas.config import PaneConfig
from flowcanvas.exceptions import CapabilityError, PaneError
from flowcanvas.models import FlowchartConfig
from flowcanvas.terminal.multiplexer import Multiplexer, detect_multiplexer
from flowcanvas.terminal.registry import FilePaneRegistry, PaneRecord, PaneRegistry

logger = logging.getLogger("flowcanvas.terminal")


class PaneManager:
    """Keeps at most one canvas pane alive across CLI invocations.

    ``spawn`` reuses the recorded pane when it still exists (Ctrl-C, a short
    settle delay, then the new command typed in) and otherwise opens a new
    split and records it. ``close`` kills the recorded pane.
    """

    def __init__(
        self,
        registry: PaneRegistry,
        multiplexer: Multiplexer | None = None,
        settle_delay: float = 0.15,
        detect: Callable[[], Multiplexer | None] = detect_multiplexer,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry = registry
        self._multiplexer = multiplexer
        self.settle_delay = settle_delay
        self._detect = detect
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: PaneConfig) -> PaneManager:
        return cls(
            FilePaneRegistry(config.state_file),
            settle_delay=config.settle_delay,
            detect=lambda: detect_multiplexer(config.tmux_binary, config.split_size),
        )

    def multiplexer(self) -> Multiplexer | None:
        if self._multiplexer is None:
            self._multiplexer = self._detect()
        return self._multiplexer

    def live_record(self) -> PaneRecord | None:
        """The recorded pane if it still exists; stale records are cleared.

        Without a multiplexer the pane cannot be checked, so the record is
        left in place.
        """
        record = self.registry.load()
        if record is None:
            return None
        mux = self.multiplexer()
        if mux is None:
            logger.info("No multiplexer to check pane %s; keeping record", record.pane_id)
            return None
        if record.multiplexer != mux.kind or not mux.query_alive(record.pane_id):
            logger.info("Discarding stale pane record %s", record.pane_id)
            self.registry.clear()
            return None
        return record

    def spawn(self, command: str) -> PaneRecord:
        """Run ``command`` in the canvas pane, reusing it when alive.

        Raises:
            CapabilityError: no usable multiplexer; nothing is created.
            PaneError: the multiplexer did not report the new pane's id.
        """
        mux = self.multiplexer()
        if mux is None:
            raise CapabilityError()

        record = self.live_record()
        if record is not None:
            logger.info("Reusing pane %s", record.pane_id)
            mux.interrupt(record.pane_id)
            self._sleep(self.settle_delay)
            mux.send_keys(record.pane_id, command)
            return record

        pane_id = mux.create_split(command)
        if not pane_id:
            raise PaneError(f"{mux.kind.value} did not return a pane id")
        record = PaneRecord(pane_id=pane_id, multiplexer=mux.kind)
        self.registry.save(record)
        logger.info("Created pane %s", pane_id)
        return record

    def close(self) -> bool:
        """Kill the recorded pane. Returns False when there was none."""
        record = self.live_record()
        if record is None:
            return False
        self.multiplexer().destroy(record.pane_id)
        self.registry.clear()
        logger.info("Closed pane %s", record.pane_id)
        return True


def write_config_file(canvas_id: str, config: FlowchartConfig) -> Path:
    """Stage a config on disk so the pane command needs no JSON quoting."""
    path = Path(tempfile.gettempdir()) / f"flowcanvas-config-{canvas_id}.json"
    path.write_text(json.dumps(config.to_wire()), encoding="utf-8")
    return path


def build_show_command(
    canvas_id: str,
    kind: str = "flowchart",
    socket_path: str | None = None,
    config_file: str | Path | None = None,
) -> str:
    """Shell command line that starts a canvas in a pane."""
    args = [sys.executable, "-m", "flowcanvas", "show", kind, "--id", canvas_id]
    if socket_path:
        args += ["--socket", socket_path]
    if config_file:
        args += ["--config-file", str(config_file)]
    return shlex.join(args)
