"""Shared test fixtures for flowcanvas."""

from __future__ import annotations

from pathlib import Path

import pytest

from flowcanvas.models import FlowchartConfig, FlowNode
from flowcanvas.terminal.multiplexer import Multiplexer, MultiplexerKind


def make_config(nodes: list[str], edges: list[tuple[str, str]], **kwargs) -> FlowchartConfig:
    """Config whose node labels equal their ids."""
    return FlowchartConfig(
        nodes=[FlowNode(id=n, label=n) for n in nodes],
        edges=edges,
        **kwargs,
    )


@pytest.fixture
def chain_config() -> FlowchartConfig:
    return make_config(["A", "B", "C", "D"], [("A", "B"), ("B", "C"), ("C", "D")])


@pytest.fixture
def diamond_config() -> FlowchartConfig:
    return make_config(
        ["A", "B", "C", "D"],
        [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")],
    )


@pytest.fixture
def review_flow() -> dict:
    """A realistic driver payload, as JSON-decoded data."""
    return {
        "title": "Deploy flow",
        "nodes": [
            {"id": "start", "label": "Start", "type": "start"},
            {"id": "build", "label": "Build", "type": "process"},
            {"id": "ok", "label": "Tests pass?", "type": "decision"},
            {"id": "ship", "label": "Ship", "type": "end"},
            {"id": "fix", "label": "Fix", "type": "process"},
        ],
        "edges": [
            ["start", "build"],
            ["build", "ok"],
            ["ok", "ship"],
            ["ok", "fix"],
            ["fix", "build"],
        ],
        "comments": {"build": "use the cached image"},
    }


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the settings file at a temp location for every test."""
    path = tmp_path / "settings" / "config.json"
    monkeypatch.setenv("FLOWCANVAS_CONFIG", str(path))
    return path


class FakeMultiplexer(Multiplexer):
    """In-memory multiplexer recording every call."""

    kind = MultiplexerKind.TMUX

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.panes: dict[str, list[str]] = {}
        self.calls: list[tuple] = []
        self._next = 0

    def is_available(self) -> bool:
        return self.available

    def query_alive(self, pane_id: str) -> bool:
        self.calls.append(("query_alive", pane_id))
        return pane_id in self.panes

    def create_split(self, command: str) -> str | None:
        self._next += 1
        pane_id = f"%{self._next}"
        self.panes[pane_id] = [command]
        self.calls.append(("create_split", command))
        return pane_id

    def send_keys(self, pane_id: str, text: str) -> None:
        self.calls.append(("send_keys", pane_id, text))
        if pane_id in self.panes:
            self.panes[pane_id].append(text)

    def interrupt(self, pane_id: str) -> None:
        self.calls.append(("interrupt", pane_id))

    def destroy(self, pane_id: str) -> None:
        self.calls.append(("destroy", pane_id))
        self.panes.pop(pane_id, None)


@pytest.fixture
def fake_mux() -> FakeMultiplexer:
    return FakeMultiplexer()
