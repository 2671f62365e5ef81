"""Scene graph analyzer: infer roles, a profile and a primary path from topology.

Used only when a scene asks for automatic layout without saying how. No
network, no randomness: the same scene always yields the same hints.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

import networkx as nx

from flow_layout.config import Hints, explicit_hints
from flow_layout.graph import build_graph, ordered_edges
from flow_layout.types import Component, Connection, Grouping, Profile, Scene, Zone

logger = logging.getLogger(__name__)

# First match wins, so order matters ("api" is a gateway before a service).
ROLE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("source", ("user", "client", "browser", "device")),
    ("gateway", ("gateway", "api", "ingress", "edge", "proxy")),
    ("service", ("service", "app", "api", "worker")),
    ("queue", ("queue", "topic", "stream", "broker")),
    ("cache", ("cache", "redis", "memcache")),
    ("database", ("db", "database", "sql", "postgres", "mysql")),
    ("storage", ("storage", "s3", "bucket", "blob")),
    ("sink", ("report", "analytics", "warehouse", "sink")),
)

TIER_KEYWORDS: tuple[str, ...] = ("frontend", "backend", "data", "presentation", "business")

FANOUT_MIN_OUT_DEGREE: int = 3
HUB_MIN_DEGREE: int = 4
SWIMLANE_MIN_ZONES: int = 3


@dataclass(frozen=True)
class GraphStats:
    max_out: int
    max_degree: int
    zone_count: int
    has_tier_zones: bool


@dataclass(frozen=True)
class InferredLayout:
    profile: Profile
    template: str
    hints: Hints
    components: tuple[Component, ...]


def infer_role(component: Component) -> str | None:
    if component.role:
        return component.role
    text = f"{component.id} {component.label}".lower()
    for role, words in ROLE_KEYWORDS:
        if any(word in text for word in words):
            return role
    return None


def infer_roles(components: Iterable[Component]) -> tuple[Component, ...]:
    """Copies of ``components`` with ``role`` filled in where a keyword matches."""
    return tuple(replace(c, role=infer_role(c)) for c in components)


def infer_primary_path(components: Iterable[Component], connections: Iterable[Connection]) -> list[str]:
    """Greedy walk from the first source along the busiest successor.

    Starts at the first component with no incoming edges (or the first
    component), repeatedly steps to the successor with the highest
    out-degree, and stops at a sink or a node already visited. With no
    usable edges, every component id in order.
    """
    components = list(components)
    graph = build_graph(components, connections)
    node_ids = [c.id for c in components if c.id]
    if graph.number_of_edges() == 0:
        return node_ids

    sources = [n for n in node_ids if graph.in_degree(n) == 0]
    current: str | None = sources[0] if sources else (node_ids[0] if node_ids else None)
    successors = _successors_in_order(graph)

    path: list[str] = []
    visited: set[str] = set()
    while current is not None and current not in visited:
        path.append(current)
        visited.add(current)
        outgoing = successors.get(current, [])
        if not outgoing:
            break
        # Stable: ties keep connection order.
        current = sorted(outgoing, key=lambda n: -graph.out_degree(n))[0]

    return path or node_ids


def _successors_in_order(graph: nx.MultiDiGraph) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for src, tgt in ordered_edges(graph):
        out.setdefault(src, []).append(tgt)
    return out


def has_tier_zones(zones: Iterable[Zone]) -> bool:
    return any(keyword in zone.label.lower() for zone in zones for keyword in TIER_KEYWORDS)


def graph_stats(scene: Scene) -> GraphStats:
    graph = build_graph(scene.components, scene.connections, also_known={z.id for z in scene.zones})
    return GraphStats(
        max_out=max((d for _, d in graph.out_degree()), default=0),
        max_degree=max((d for _, d in graph.degree()), default=0),
        zone_count=len(scene.zones),
        has_tier_zones=has_tier_zones(scene.zones),
    )


def infer_profile(stats: GraphStats) -> Profile:
    if stats.max_out >= FANOUT_MIN_OUT_DEGREE:
        return Profile.Fanout
    if stats.max_degree >= HUB_MIN_DEGREE:
        return Profile.Hub
    if stats.has_tier_zones:
        return Profile.Tiered
    if stats.zone_count >= SWIMLANE_MIN_ZONES:
        return Profile.Swimlane
    return Profile.Pipeline


def infer_layout_hints(scene: Scene) -> InferredLayout:
    """Profile, template and hints for ``scene``; explicit settings win."""
    layout = dict(scene.layout or {})
    given = explicit_hints(layout.get("hints"))
    components = infer_roles(scene.components)

    if layout.get("profile"):
        profile = Profile.parse(layout["profile"])
    else:
        profile = infer_profile(graph_stats(scene))

    if scene.flow:
        path = list(scene.flow)
    else:
        path = infer_primary_path(components, scene.connections)

    grouping = given.get("grouping") or (Grouping.Zone if scene.zones else Grouping.Flow)
    hints = Hints(
        primary_path=tuple(path),
        grouping=Grouping.parse(grouping),
        compact=given.get("compact", True),
    )
    template = str(layout.get("template") or profile.value)

    logger.debug("Inferred layout hints: profile=%s template=%s hints=%s", profile.value, template, hints)
    return InferredLayout(profile=profile, template=template, hints=hints, components=components)
