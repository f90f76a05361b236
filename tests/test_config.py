"""Tests for settings and flowchart configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from flowcanvas.config import (
    Settings,
    load_settings,
    save_settings,
    set_settings_value,
    settings_path,
)
from flowcanvas.exceptions import ConfigError
from flowcanvas.models import NodeKind, load_flowchart, parse_flowchart


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.pane.settle_delay == 0.15
        assert settings.ipc.socket_path("abc") == "/tmp/flowcanvas-abc.sock"
        assert settings.canvas.log_file("abc") == "/tmp/flowcanvas-abc.log"

    def test_path_from_env(self, isolated_settings: Path):
        assert settings_path() == isolated_settings

    def test_xdg_fallback(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("FLOWCANVAS_CONFIG")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert settings_path() == tmp_path / "flowcanvas" / "config.json"

    def test_missing_file_gives_defaults(self):
        assert load_settings() == Settings()

    def test_save_and_load(self, isolated_settings: Path):
        settings = Settings()
        settings.pane.split_size = "50%"
        assert save_settings(settings) == isolated_settings
        assert load_settings().pane.split_size == "50%"

    def test_invalid_file(self, isolated_settings: Path):
        isolated_settings.parent.mkdir(parents=True)
        isolated_settings.write_text("{nope")
        with pytest.raises(ConfigError):
            load_settings()

    def test_set_value(self):
        settings = set_settings_value(Settings(), "pane.settle_delay", 0.3)
        assert settings.pane.settle_delay == 0.3

    def test_set_unknown_key(self):
        with pytest.raises(KeyError):
            set_settings_value(Settings(), "pane.nope", 1)
        with pytest.raises(KeyError):
            set_settings_value(Settings(), "nope.settle_delay", 1)

    def test_set_invalid_value(self):
        with pytest.raises(ConfigError):
            set_settings_value(Settings(), "ipc.connect_timeout", "soon")


class TestFlowchartConfig:
    def test_parse_with_type_alias(self, review_flow: dict):
        config = parse_flowchart(review_flow)
        assert config.nodes[0].kind == NodeKind.START
        assert config.edges[0] == ("start", "build")
        assert config.annotations == {"build": "use the cached image"}

    def test_wire_form_uses_type(self, review_flow: dict):
        wire = parse_flowchart(review_flow).to_wire()
        assert wire["nodes"][2]["type"] == "decision"
        assert parse_flowchart(wire) == parse_flowchart(review_flow)

    def test_unknown_fields_ignored(self):
        config = parse_flowchart({"nodes": [{"id": "a", "label": "A", "color": "red"}]})
        assert config.nodes[0].kind is None

    @pytest.mark.parametrize("data", [
        {"nodes": "nope"},
        {"nodes": [{"label": "no id"}]},
        {"nodes": [], "edges": [["a"]]},
        ["not", "an", "object"],
    ])
    def test_invalid(self, data):
        with pytest.raises(ConfigError):
            parse_flowchart(data)

    def test_load_from_json_string(self):
        config = load_flowchart('{"nodes": [{"id": "a", "label": "A"}], "edges": []}')
        assert [n.id for n in config.nodes] == ["a"]

    def test_load_bad_json(self):
        with pytest.raises(ConfigError):
            load_flowchart("{broken")

    def test_file_takes_precedence(self, tmp_path: Path):
        path = tmp_path / "flow.json"
        path.write_text(json.dumps({"nodes": [{"id": "f", "label": "F"}]}))
        config = load_flowchart('{"nodes": [{"id": "s", "label": "S"}]}', str(path))
        assert [n.id for n in config.nodes] == ["f"]

    def test_missing_file_falls_back_to_string(self, tmp_path: Path):
        config = load_flowchart('{"nodes": [{"id": "s", "label": "S"}]}',
                                str(tmp_path / "absent.json"))
        assert [n.id for n in config.nodes] == ["s"]

    def test_nothing_given(self):
        assert load_flowchart().nodes == []
