"""Build the adjacency structure of a flowchart from its node and edge lists."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import networkx as nx

from flowcanvas.models import FlowNode

logger = logging.getLogger("flowcanvas.graph")


@dataclass
class FlowGraph:
    """Derived flowchart structure.

    ``children`` and ``parents`` are ordered lists that keep duplicate edges.
    ``digraph`` is a networkx view of the same structure (duplicates
    collapsed) used for structural queries like cycle detection.
    """

    nodes: dict[str, FlowNode] = field(default_factory=dict)
    children: dict[str, list[str]] = field(default_factory=dict)
    parents: dict[str, list[str]] = field(default_factory=dict)
    digraph: nx.DiGraph = field(default_factory=nx.DiGraph)

    @property
    def roots(self) -> list[str]:
        """Node ids with no inbound edges, in node-list order."""
        return [node_id for node_id in self.nodes if not self.parents[node_id]]

    @property
    def entry_points(self) -> list[str]:
        """Where a walk of the whole graph starts.

        The roots, then one node for every cycle that no root reaches: the
        first listed node of each source component of the condensation.
        """
        entries = self.roots
        reached: set[str] = set()
        for root in entries:
            reached.add(root)
            reached |= nx.descendants(self.digraph, root)
        if len(reached) == len(self.nodes):
            return entries

        order = {node_id: i for i, node_id in enumerate(self.nodes)}
        condensed = nx.condensation(self.digraph)
        extra: list[str] = []
        for component in condensed.nodes:
            if condensed.in_degree(component) != 0:
                continue
            members = condensed.nodes[component]["members"]
            if members & reached:
                continue
            extra.append(min(members, key=order.__getitem__))
        extra.sort(key=order.__getitem__)
        return entries + extra

    @property
    def has_cycle(self) -> bool:
        return not nx.is_directed_acyclic_graph(self.digraph)

    def label(self, node_id: str) -> str:
        node = self.nodes.get(node_id)
        return node.label if node else node_id

    def __len__(self) -> int:
        return len(self.nodes)


def build_graph(
    nodes: Iterable[FlowNode], edges: Iterable[tuple[str, str]]
) -> FlowGraph:
    """Build a FlowGraph.

    Edges naming an unknown node are dropped; they never create nodes.

    Args:
        nodes: Ordered node list. A repeated id keeps its first position
            but takes the later label and kind.
        edges: ``(from_id, to_id)`` pairs, duplicates allowed.

    Returns:
        The derived graph.
    """
    graph = FlowGraph()
    for node in nodes:
        graph.nodes[node.id] = node
        graph.children.setdefault(node.id, [])
        graph.parents.setdefault(node.id, [])
        graph.digraph.add_node(node.id)

    for source, target in edges:
        if source not in graph.nodes or target not in graph.nodes:
            logger.debug("Dropping edge %s -> %s: unknown node", source, target)
            continue
        graph.children[source].append(target)
        graph.parents[target].append(source)
        graph.digraph.add_edge(source, target)

    return graph
