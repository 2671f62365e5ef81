"""Connection topology as a networkx graph.

Nodes are component ids (in scene order, with the ``Component`` stored under
``data``). Edges are keyed by connection id and carry ``order``, the
connection's position in the scene, so "first connection that …" questions
can be answered in authoring order. A ``MultiDiGraph`` keeps parallel
connections so they count toward degree.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable

import networkx as nx

from flow_layout.types import Component, Connection

logger = logging.getLogger(__name__)


def build_graph(
    components: Iterable[Component],
    connections: Iterable[Connection],
    also_known: Collection[str] = (),
) -> nx.MultiDiGraph:
    """Build the component graph; edges touching unknown ids are dropped.

    ``also_known`` lists ids (e.g. zones) that are valid connection targets
    but not layout nodes; edges to them are dropped without a warning.
    """
    graph: nx.MultiDiGraph = nx.MultiDiGraph()
    for comp in components:
        graph.add_node(comp.id, data=comp)

    for order, conn in enumerate(connections):
        src, tgt = conn.from_id, conn.to_id
        if src is None or tgt is None:
            continue
        missing = [end for end in (src, tgt) if end not in graph and end not in also_known]
        if missing:
            logger.warning("Connection %s references unknown id(s) %s; ignored for layout", conn.id, missing)
            continue
        if src not in graph or tgt not in graph:
            continue
        graph.add_edge(src, tgt, key=conn.id, order=order)
    return graph


def ordered_edges(graph: nx.MultiDiGraph) -> list[tuple[str, str]]:
    """(src, tgt) pairs in scene connection order."""
    edges = sorted(graph.edges(data="order"), key=lambda e: e[2])
    return [(src, tgt) for src, tgt, _ in edges]


def _first_max(nodes: list[str], weight: dict[str, int]) -> str | None:
    """Node with the largest weight; ties go to the earliest node."""
    best: str | None = None
    for node in nodes:
        if best is None or weight[node] > weight[best]:
            best = node
    return best


def highest_degree(graph: nx.MultiDiGraph, nodes: list[str]) -> str | None:
    """Node among ``nodes`` with the most connections to other ``nodes``."""
    if not nodes:
        return None
    sub = graph.subgraph(nodes)
    return _first_max(nodes, dict(sub.degree()))


def highest_out_degree(graph: nx.MultiDiGraph, nodes: list[str]) -> str | None:
    """Node among ``nodes`` with the most outgoing connections (anywhere)."""
    if not nodes:
        return None
    return _first_max(nodes, {n: graph.out_degree(n) if n in graph else 0 for n in nodes})


def branch_parents(graph: nx.MultiDiGraph, primary: Collection[str]) -> dict[str, str]:
    """Map each off-path node to the primary node of the first connection into it."""
    parents: dict[str, str] = {}
    for src, tgt in ordered_edges(graph):
        if src in primary and tgt not in primary and tgt not in parents:
            parents[tgt] = src
    return parents
