"""Tests for graph building and linearization."""

from __future__ import annotations

from conftest import make_config

from flowcanvas.graph.builder import build_graph
from flowcanvas.graph.linearize import LineKind, linearize
from flowcanvas.models import FlowchartConfig, FlowNode


def _graph(config: FlowchartConfig):
    return build_graph(config.nodes, config.edges)


class TestGraphBuilder:
    def test_adjacency(self, diamond_config: FlowchartConfig):
        graph = _graph(diamond_config)
        assert graph.children["A"] == ["B", "C"]
        assert graph.parents["D"] == ["B", "C"]
        assert graph.children["D"] == []

    def test_roots_keep_node_order(self):
        config = make_config(["Z", "M", "A"], [("M", "A")])
        assert _graph(config).roots == ["Z", "M"]

    def test_dangling_edges_dropped(self):
        config = make_config(["A", "B"], [("A", "B"), ("A", "ghost"), ("ghost", "B")])
        graph = _graph(config)
        assert "ghost" not in graph.nodes
        assert graph.children["A"] == ["B"]
        assert graph.parents["B"] == ["A"]
        assert graph.digraph.number_of_nodes() == 2

    def test_duplicate_edges_kept(self):
        config = make_config(["A", "B"], [("A", "B"), ("A", "B")])
        graph = _graph(config)
        assert graph.children["A"] == ["B", "B"]
        assert graph.digraph.number_of_edges() == 1

    def test_repeated_node_id_keeps_first_position(self):
        nodes = [FlowNode(id="A", label="old"), FlowNode(id="B", label="B"),
                 FlowNode(id="A", label="new")]
        graph = build_graph(nodes, [])
        assert list(graph.nodes) == ["A", "B"]
        assert graph.label("A") == "new"

    def test_cycle_detection(self):
        assert not _graph(make_config(["A", "B"], [("A", "B")])).has_cycle
        assert _graph(make_config(["A", "B"], [("A", "B"), ("B", "A")])).has_cycle

    def test_entry_points_for_rootless_cycle(self):
        config = make_config(["B", "A", "C"], [("A", "B"), ("B", "C"), ("C", "A")])
        graph = _graph(config)
        assert graph.roots == []
        assert graph.entry_points == ["B"]

    def test_entry_points_include_detached_cycle(self):
        config = make_config(
            ["R", "S", "X", "Y"], [("R", "S"), ("X", "Y"), ("Y", "X")]
        )
        graph = _graph(config)
        assert graph.roots == ["R"]
        assert graph.entry_points == ["R", "X"]

    def test_empty_graph(self):
        graph = build_graph([], [])
        assert graph.roots == []
        assert graph.entry_points == []
        assert len(graph) == 0


class TestLinearize:
    def test_chain(self, chain_config: FlowchartConfig):
        result = linearize(_graph(chain_config))
        assert len(result.selectables) == 4
        assert [s.annotation_key for s in result.selectables] == ["A", "B", "C", "D"]
        assert not any(s.is_back_reference for s in result.selectables)
        assert [line.text for line in result.lines] == ["A", "│", "B", "│", "C", "│", "D"]

    def test_diamond(self, diamond_config: FlowchartConfig):
        result = linearize(_graph(diamond_config))
        d_lines = [line for line in result.lines if line.node_id == "D"]
        assert len(d_lines) == 2
        assert d_lines[0].kind == LineKind.NODE
        assert d_lines[1].kind == LineKind.BACK_REFERENCE

        d_items = [s for s in result.selectables if s.node_id == "D"]
        assert d_items[0].annotation_key == "D"
        assert d_items[1].annotation_key == "A → C → D"
        assert d_items[1].is_back_reference

    def test_diamond_layout(self, diamond_config: FlowchartConfig):
        result = linearize(_graph(diamond_config))
        assert [line.text for line in result.lines] == [
            "A",
            "├─ B",
            "│  │",
            "│  D",
            "└─ C",
            "   │",
            "   ↺ D",
        ]

    def test_branch_glyphs(self):
        config = make_config(["A", "B", "C", "E"], [("A", "B"), ("A", "C"), ("A", "E")])
        lines = [line.text for line in linearize(_graph(config)).lines]
        assert lines == ["A", "├─ B", "├─ C", "└─ E"]

    def test_cycle_terminates(self):
        config = make_config(["A", "B"], [("A", "B"), ("B", "A")])
        result = linearize(_graph(config))
        # rootless: starts at A, B expands, A comes back as a reference
        assert [s.annotation_key for s in result.selectables] == ["A", "B", "A → B → A"]

    def test_dag_primary_visits(self):
        config = make_config(
            ["A", "B", "C", "D", "E"],
            [("A", "B"), ("A", "C"), ("A", "D"), ("B", "E"), ("C", "E"), ("D", "E")],
        )
        graph = _graph(config)
        result = linearize(graph)
        primaries = [s.node_id for s in result.selectables if not s.is_back_reference]
        assert sorted(primaries) == sorted(graph.nodes)
        backrefs = [s.node_id for s in result.selectables if s.is_back_reference]
        assert backrefs == ["E", "E"]
        keys = [s.annotation_key for s in result.selectables]
        assert len(keys) == len(set(keys))

    def test_multiple_roots_separated(self):
        config = make_config(["A", "B"], [])
        result = linearize(_graph(config))
        assert [line.kind for line in result.lines] == [
            LineKind.NODE, LineKind.SPACER, LineKind.NODE,
        ]
        assert result.lines[2].selectable_index == 1

    def test_labels_in_back_reference_path(self):
        config = FlowchartConfig(
            nodes=[FlowNode(id="a", label="Start"), FlowNode(id="b", label="Left"),
                   FlowNode(id="c", label="Right"), FlowNode(id="d", label="Join")],
            edges=[("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")],
        )
        result = linearize(_graph(config))
        assert result.selectables[-1].annotation_key == "Start → Right → Join"
        assert result.selectables[-1].display_label == "Join"

    def test_idempotent(self, diamond_config: FlowchartConfig):
        graph = _graph(diamond_config)
        assert linearize(graph) == linearize(graph)

    def test_index_of(self, diamond_config: FlowchartConfig):
        result = linearize(_graph(diamond_config))
        assert result.index_of("A → C → D") == len(result.selectables) - 1
        assert result.index_of("missing") is None

    def test_empty(self):
        result = linearize(build_graph([], []))
        assert result.lines == []
        assert result.selectables == []

    def test_last_branch_marker(self, diamond_config: FlowchartConfig):
        result = linearize(_graph(diamond_config))
        marks = {(line.node_id, line.kind): line.is_last
                 for line in result.lines if line.node_id}
        assert marks[("A", LineKind.NODE)] is False
        assert marks[("B", LineKind.NODE)] is False
        assert marks[("C", LineKind.NODE)] is True
        # single child of B: no glyph, but still the only branch
        assert marks[("D", LineKind.NODE)] is True
        assert marks[("D", LineKind.BACK_REFERENCE)] is True


class TestLinearizeScale:
    def test_deep_chain(self):
        ids = [f"n{i}" for i in range(5000)]
        config = make_config(ids, list(zip(ids, ids[1:])))
        result = linearize(_graph(config))
        assert [s.node_id for s in result.selectables] == ids
        assert len(result.lines) == 2 * len(ids) - 1
        assert result.lines[-1].text == "n4999"

    def test_long_cycle(self):
        ids = [f"n{i}" for i in range(5000)]
        edges = list(zip(ids, ids[1:])) + [(ids[-1], ids[0])]
        result = linearize(_graph(make_config(ids, edges)))
        assert len(result.selectables) == len(ids) + 1
        back = result.selectables[-1]
        assert back.is_back_reference
        assert back.annotation_key == " → ".join([*ids, "n0"])

    def test_deep_branching(self):
        # every level forks into a leaf and the next level
        depth = 2000
        nodes = [f"s{i}" for i in range(depth)] + [f"leaf{i}" for i in range(depth - 1)]
        edges = []
        for i in range(depth - 1):
            edges += [(f"s{i}", f"leaf{i}"), (f"s{i}", f"s{i + 1}")]
        result = linearize(_graph(make_config(nodes, edges)))
        assert len(result.selectables) == 2 * depth - 1
        assert result.lines[-1].prefix == "   " * (depth - 2)
