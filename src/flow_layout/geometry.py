"""Geometry primitives: sizes, bounds and anchor conversion.

Every placement algorithm works in *center* coordinates. What gets stored on
a component is its *anchor*, whose meaning depends on the shape kind:

    Anchor.Center   → (x, y) is the geometric center
    Anchor.TopLeft  → (x, y) is the top-left corner of the bounding box

The functions below are the only place that conversion happens.
"""

from __future__ import annotations

from flow_layout.types import Bounds, Component, Point, ShapeKind, Zone

# Zones have no shape kind; used when a connection targets an unsized zone.
ZONE_DEFAULT_WIDTH: int = 300
ZONE_DEFAULT_HEIGHT: int = 200


def default_size(kind: ShapeKind) -> tuple[float, float]:
    return (kind.default_width, kind.default_height)


def size_of(component: Component) -> tuple[float, float]:
    """Resolve (width, height) for a component.

    Precedence: array ``size`` → scalar ``size`` (doubled for radius-like
    kinds) → explicit ``width``/``height`` → kind defaults. A circle's
    ``radius`` overrides everything. Zero or missing values fall through.
    """
    kind = component.type
    width: float = 0
    height: float = 0

    if isinstance(component.size, tuple):
        width, height = component.size
    elif component.size:
        scale = 2 if kind.doubles_scalar_size else 1
        width = height = component.size * scale

    default_w, default_h = default_size(kind)
    if not width:
        width = component.width or default_w
    if not height:
        height = component.height or default_h

    if kind is ShapeKind.Circle and component.radius:
        width = height = component.radius * 2

    return (width, height)


def bounds_from_anchor(component: Component) -> Bounds:
    """Bounding box implied by the component's stored anchor (missing → 0, 0)."""
    width, height = size_of(component)
    anchor_x = component.x if component.x is not None else 0
    anchor_y = component.y if component.y is not None else 0
    if component.type.centered:
        return Bounds(anchor_x - width / 2, anchor_y - height / 2, width, height)
    return Bounds(anchor_x, anchor_y, width, height)


def center_of(component: Component) -> Point:
    return bounds_from_anchor(component).center


def center_to_anchor(center: Point, component: Component) -> Point:
    """Anchor coordinates that put the component's center at ``center``."""
    if component.type.centered:
        return center
    width, height = size_of(component)
    return Point(center.x - width / 2, center.y - height / 2)


def anchor_to_center(anchor: Point, component: Component) -> Point:
    """Inverse of ``center_to_anchor``."""
    if component.type.centered:
        return anchor
    width, height = size_of(component)
    return Point(anchor.x + width / 2, anchor.y + height / 2)


def zone_bounds(zone: Zone) -> Bounds:
    return Bounds(
        zone.x or 0,
        zone.y or 0,
        zone.width or ZONE_DEFAULT_WIDTH,
        zone.height or ZONE_DEFAULT_HEIGHT,
    )


def max_extent(components: list[Component] | tuple[Component, ...]) -> tuple[float, float]:
    """Largest (width, height) across components, independently per axis."""
    max_w: float = 0
    max_h: float = 0
    for comp in components:
        w, h = size_of(comp)
        max_w = max(max_w, w)
        max_h = max(max_h, h)
    return (max_w, max_h)
