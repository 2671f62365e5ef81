"""Layout quality scoring: bounding-box overlaps and edge crossings.

Both counts are plain O(n²) pair scans; scenes are tens of components.
Edges are scored as straight center-to-center segments. Two edges that share
an endpoint component never count as crossing (fan-in / fan-out).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from flow_layout.geometry import bounds_from_anchor, center_of
from flow_layout.types import Component, Connection, Point

OVERLAP_WEIGHT: int = 3


@dataclass(frozen=True)
class LayoutScore:
    """Lower is better; overlaps weigh strictly more than crossings."""

    overlaps: int = 0
    crossings: int = 0

    @property
    def total(self) -> int:
        return self.overlaps * OVERLAP_WEIGHT + self.crossings

    def to_dict(self) -> dict[str, int]:
        return {"overlaps": self.overlaps, "crossings": self.crossings, "total": self.total}


@dataclass(frozen=True)
class Segment:
    """A connection drawn center to center; ids are None for literal points."""

    start: Point
    end: Point
    from_id: str | None
    to_id: str | None

    def shares_endpoint(self, other: Segment) -> bool:
        mine = {self.from_id, self.to_id} - {None}
        return bool(mine & {other.from_id, other.to_id})


def segments_cross(a1: Point, a2: Point, b1: Point, b2: Point) -> bool:
    """Proper intersection of segments a1-a2 and b1-b2.

    Parametric line-line test; both parameters must lie strictly inside
    (0, 1), so touching endpoints and parallel/collinear segments don't count.
    """
    det = (a2.x - a1.x) * (b2.y - b1.y) - (a2.y - a1.y) * (b2.x - b1.x)
    if det == 0:
        return False
    lam = ((b2.y - b1.y) * (b2.x - a1.x) + (b1.x - b2.x) * (b2.y - a1.y)) / det
    gamma = ((a1.y - a2.y) * (b2.x - a1.x) + (a2.x - a1.x) * (b2.y - a1.y)) / det
    return 0 < lam < 1 and 0 < gamma < 1


def count_overlaps(components: Iterable[Component]) -> int:
    boxes = [bounds_from_anchor(c) for c in components]
    total = 0
    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            if boxes[i].overlaps(boxes[j]):
                total += 1
    return total


def connection_segments(components: Iterable[Component], connections: Iterable[Connection]) -> list[Segment]:
    """Center-to-center segments; connections with unknown ids are skipped."""
    centers = {c.id: center_of(c) for c in components}
    segments: list[Segment] = []
    for conn in connections:
        ends = []
        for endpoint in (conn.from_, conn.to):
            if isinstance(endpoint, Point):
                ends.append(endpoint)
            else:
                ends.append(centers.get(endpoint) if endpoint is not None else None)
        start, end = ends
        if start is None or end is None:
            continue
        segments.append(Segment(start, end, conn.from_id, conn.to_id))
    return segments


def count_crossings(segments: list[Segment]) -> int:
    total = 0
    for i in range(len(segments)):
        for j in range(i + 1, len(segments)):
            a, b = segments[i], segments[j]
            if a.shares_endpoint(b):
                continue
            if segments_cross(a.start, a.end, b.start, b.end):
                total += 1
    return total


def score_layout(components: Iterable[Component], connections: Iterable[Connection]) -> LayoutScore:
    components = list(components)
    return LayoutScore(
        overlaps=count_overlaps(components),
        crossings=count_crossings(connection_segments(components, connections)),
    )
