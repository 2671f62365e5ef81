"""Connection resolution: turn id-based edges into literal endpoint pairs.

For two endpoint boxes the *dominant axis* is whichever of |dx| / |dy|
(center to center) is larger. The connector leaves the source through the
side facing the target on that axis and enters the target through the
opposite side:

    dominant horizontal, target to the right  → from RIGHT, to LEFT
    dominant horizontal, target to the left   → from LEFT,  to RIGHT
    dominant vertical,   target below         → from BOTTOM, to TOP
    dominant vertical,   target above         → from TOP,   to BOTTOM

Ties go to the vertical axis. No path routing happens here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace

from flow_layout.geometry import bounds_from_anchor, zone_bounds
from flow_layout.types import Bounds, Component, Connection, Endpoint, Point, Scene, Side, Zone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedConnection:
    """Literal endpoints for one connection.

    An endpoint is ``None`` when its id could not be found.
    """

    id: str
    from_: Point | None
    to: Point | None
    from_side: Side | None = None
    to_side: Side | None = None

    @property
    def complete(self) -> bool:
        return self.from_ is not None and self.to is not None


def choose_anchor_sides(from_bounds: Bounds, to_bounds: Bounds) -> tuple[Side, Side]:
    """Pick (from_side, to_side) by the dominant center-to-center axis."""
    src, dst = from_bounds.center, to_bounds.center
    dx = dst.x - src.x
    dy = dst.y - src.y
    if abs(dx) > abs(dy):
        return (Side.Right, Side.Left) if dx > 0 else (Side.Left, Side.Right)
    return (Side.Bottom, Side.Top) if dy > 0 else (Side.Top, Side.Bottom)


def anchor_point(bounds: Bounds, side: Side) -> Point:
    """Midpoint of the given side (or the center)."""
    center = bounds.center
    if side is Side.Top:
        return Point(center.x, bounds.y)
    if side is Side.Bottom:
        return Point(center.x, bounds.bottom)
    if side is Side.Left:
        return Point(bounds.x, center.y)
    if side is Side.Right:
        return Point(bounds.right, center.y)
    return center


def point_bounds(point: Point) -> Bounds:
    """Zero-size box at an explicit point."""
    return Bounds(point.x, point.y, 0, 0)


Shape = Component | Zone


def _bounds(shape: Shape) -> Bounds:
    if isinstance(shape, Zone):
        return zone_bounds(shape)
    return bounds_from_anchor(shape)


def _endpoint_bounds(endpoint: Endpoint | None, lookup: Mapping[str, Shape], conn_id: str, role: str) -> Bounds | None:
    if isinstance(endpoint, Point):
        return point_bounds(endpoint)
    if endpoint is None:
        logger.warning("Connection %s has no '%s' endpoint", conn_id, role)
        return None
    shape = lookup.get(endpoint)
    if shape is None:
        logger.warning("Could not resolve connection %s '%s': %s", conn_id, role, endpoint)
        return None
    return _bounds(shape)


def resolve_connection(connection: Connection, lookup: Mapping[str, Shape]) -> ResolvedConnection:
    """Resolve both endpoints of ``connection`` against ``lookup``.

    ``lookup`` maps ids to components or zones. When only one endpoint can be
    resolved it is reported at its center and the other is ``None``.
    """
    from_bounds = _endpoint_bounds(connection.from_, lookup, connection.id, "from")
    to_bounds = _endpoint_bounds(connection.to, lookup, connection.id, "to")

    if from_bounds is not None and to_bounds is not None:
        from_side, to_side = choose_anchor_sides(from_bounds, to_bounds)
        return ResolvedConnection(
            id=connection.id,
            from_=anchor_point(from_bounds, from_side),
            to=anchor_point(to_bounds, to_side),
            from_side=from_side,
            to_side=to_side,
        )

    return ResolvedConnection(
        id=connection.id,
        from_=from_bounds.center if from_bounds is not None else None,
        to=to_bounds.center if to_bounds is not None else None,
    )


class ConnectionResolver:
    """Resolves connections against a registered set of components and zones.

    Components shadow zones that share an id.
    """

    def __init__(self, components: Iterable[Component] = (), zones: Iterable[Zone] = ()) -> None:
        self._components: dict[str, Component] = {}
        self._zones: dict[str, Zone] = {}
        self.register_components(components)
        self.register_zones(zones)

    def register_components(self, components: Iterable[Component]) -> None:
        self._components = {c.id: c for c in components if c.id}
        logger.debug("Registered %d components", len(self._components))

    def register_zones(self, zones: Iterable[Zone]) -> None:
        self._zones = {z.id: z for z in zones if z.id}
        logger.debug("Registered %d zones", len(self._zones))

    def lookup(self) -> dict[str, Shape]:
        table: dict[str, Shape] = dict(self._zones)
        table.update(self._components)
        return table

    def get(self, shape_id: str) -> Shape | None:
        return self._components.get(shape_id) or self._zones.get(shape_id)

    def resolve(self, connection: Connection) -> ResolvedConnection:
        return resolve_connection(connection, self.lookup())

    def resolve_all(self, connections: Iterable[Connection]) -> list[ResolvedConnection]:
        table = self.lookup()
        resolved = [resolve_connection(conn, table) for conn in connections]
        logger.debug("Resolved %d connections", len(resolved))
        return resolved

    def transform_scene(self, scene: Scene) -> Scene:
        """A copy of ``scene`` whose connections carry literal points.

        Unresolved endpoints keep their original id.
        """
        self.register_components(scene.components)
        self.register_zones(scene.zones)
        connections = []
        for conn, resolved in zip(scene.connections, self.resolve_all(scene.connections)):
            connections.append(
                replace(
                    conn,
                    from_=resolved.from_ if resolved.from_ is not None else conn.from_,
                    to=resolved.to if resolved.to is not None else conn.to,
                )
            )
        return replace(scene, connections=tuple(connections))
