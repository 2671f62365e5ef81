"""Scene model shared by the geometry, placement, scoring and analysis modules.

A scene is a flat description of a diagram:

  - components: labeled shapes, each of a fixed ``ShapeKind``
  - zones:      rectangular grouping regions referenced by ``Component.zone``
  - connections: edges between component/zone ids or literal points

Everything here is an immutable dataclass. Layout produces *new* objects via
``dataclasses.replace`` and never edits the caller's scene in place.

``from_dict`` / ``to_dict`` speak the external (camelCase, JSON-ish) shape so
scenes coming out of a config loader round-trip with unknown keys intact.
Validation of that shape lives in ``flow_layout.schema``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from flow_layout.schema import ComponentInput, ConnectionInput, SceneInput, ZoneInput

logger = logging.getLogger(__name__)

# ─── Enumerations ─────────────────────────────────────────────────────────────


class Anchor(Enum):
    """What a shape's stored (x, y) denotes."""

    Center = "center"
    TopLeft = "top-left"


class ShapeKind(Enum):
    """Closed set of shape kinds.

    Each member carries its record:
    (key, anchor, default_width, default_height, doubles_scalar_size, default_color).

    ``doubles_scalar_size`` marks the symmetric shapes whose scalar ``size`` is
    radius-like (width = height = 2 * size).
    """

    Rectangle = ("rectangle", Anchor.TopLeft, 120, 60, False, "#6366f1")
    Circle = ("circle", Anchor.Center, 70, 70, False, "#10b981")
    Diamond = ("diamond", Anchor.Center, 120, 120, True, "#f59e0b")
    Hexagon = ("hexagon", Anchor.Center, 80, 80, True, "#8b5cf6")
    Cylinder = ("cylinder", Anchor.TopLeft, 80, 100, False, "#ef4444")
    Cloud = ("cloud", Anchor.TopLeft, 120, 70, False, "#f59e0b")
    Server = ("server", Anchor.Center, 60, 80, False, "#10b981")
    Database = ("database", Anchor.Center, 60, 80, False, "#ef4444")
    User = ("user", Anchor.Center, 56, 80, False, "#6366f1")
    Gear = ("gear", Anchor.Center, 60, 60, True, "#f59e0b")
    Container = ("container", Anchor.TopLeft, 200, 150, False, "#14b8a6")

    def __init__(
        self,
        key: str,
        anchor: Anchor,
        default_width: int,
        default_height: int,
        doubles_scalar_size: bool,
        default_color: str,
    ) -> None:
        self.key = key
        self.anchor = anchor
        self.default_width = default_width
        self.default_height = default_height
        self.doubles_scalar_size = doubles_scalar_size
        self.default_color = default_color

    @property
    def centered(self) -> bool:
        return self.anchor is Anchor.Center

    @classmethod
    def parse(cls, name: object) -> ShapeKind:
        """Look up a kind by key or alias; unknown names become Rectangle."""
        if isinstance(name, ShapeKind):
            return name
        if name is None or name == "":
            return cls.Rectangle
        key = str(name).strip().lower()
        kind = _SHAPE_BY_KEY.get(key)
        if kind is None:
            logger.warning("Unknown shape kind %r, using rectangle", name)
            return cls.Rectangle
        return kind


_SHAPE_BY_KEY: dict[str, ShapeKind] = {kind.key: kind for kind in ShapeKind}
_SHAPE_BY_KEY.update(
    {
        "box": ShapeKind.Rectangle,
        "rect": ShapeKind.Rectangle,
        "decision": ShapeKind.Diamond,
        "hex": ShapeKind.Hexagon,
        "person": ShapeKind.User,
        "db": ShapeKind.Database,
    }
)


class Direction(Enum):
    """Primary flow axis."""

    LR = "LR"
    TB = "TB"

    @property
    def vertical(self) -> bool:
        return self is Direction.TB

    @classmethod
    def parse(cls, value: object) -> Direction:
        if isinstance(value, Direction):
            return value
        key = str(value or "").strip().upper()
        if key in ("TB", "TD", "TOP-TO-BOTTOM", "VERTICAL"):
            return cls.TB
        if key not in ("", "LR", "LEFT-TO-RIGHT", "HORIZONTAL"):
            logger.warning("Unknown direction %r, using LR", value)
        return cls.LR


class Profile(Enum):
    """Named placement strategy."""

    Pipeline = "pipeline"
    Hub = "hub"
    Fanout = "fanout"
    Tiered = "tiered"
    Swimlane = "swimlane"
    Grid = "grid"

    @classmethod
    def parse(cls, value: object) -> Profile:
        if isinstance(value, Profile):
            return value
        key = str(value or "").strip().lower()
        for profile in cls:
            if profile.value == key:
                return profile
        if key:
            logger.warning("Unknown layout profile %r, using pipeline", value)
        return cls.Pipeline


class Grouping(Enum):
    """How components are bucketed before placement."""

    Zone = "zone"
    Type = "type"
    Flow = "flow"

    @classmethod
    def parse(cls, value: object) -> Grouping:
        if isinstance(value, Grouping):
            return value
        key = str(value or "").strip().lower()
        if key in ("zone", "zones"):
            return cls.Zone
        if key in ("type", "shape", "kind"):
            return cls.Type
        if key not in ("", "flow", "none"):
            logger.warning("Unknown grouping %r, using zone", value)
            return cls.Zone
        return cls.Flow if key else cls.Zone


class Side(Enum):
    """Edge of a bounding box a connector attaches to."""

    Top = "top"
    Bottom = "bottom"
    Left = "left"
    Right = "right"
    Center = "center"


# ─── Geometry Values ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Point:
    """A 2D point in stage coordinates."""

    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box: top-left corner plus size."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def overlaps(self, other: Bounds) -> bool:
        """True when the two boxes share a region of positive area."""
        overlap_x = min(self.right, other.right) - max(self.x, other.x)
        overlap_y = min(self.bottom, other.bottom) - max(self.y, other.y)
        return overlap_x > 0 and overlap_y > 0


@dataclass(frozen=True)
class Gaps:
    """Spacing triple used by every placement strategy."""

    column_gap: float
    row_gap: float
    component_gap: float


# ─── Scene Entities ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Component:
    """A placed (or to-be-placed) shape.

    ``x``/``y`` are *anchor* coordinates: their meaning depends on
    ``type.anchor`` (see ``flow_layout.geometry``).
    """

    id: str
    type: ShapeKind = ShapeKind.Rectangle
    label: str = ""
    zone: str | None = None
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    size: float | tuple[float, float] | None = None
    radius: float | None = None
    color: str | None = None
    role: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Component:
        return cls.from_input(ComponentInput.model_validate(dict(data)))

    @classmethod
    def from_input(cls, parsed: ComponentInput) -> Component:
        x, y = parsed.anchor()
        return cls(
            id=parsed.id,
            type=ShapeKind.parse(parsed.type),
            label=parsed.label,
            zone=parsed.zone,
            x=x,
            y=y,
            width=parsed.width,
            height=parsed.height,
            size=parsed.size_value(),
            radius=parsed.radius,
            color=parsed.color,
            role=parsed.role,
            extra=parsed.extras(),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out["id"] = self.id
        out["type"] = self.type.key
        if self.label:
            out["label"] = self.label
        if self.zone is not None:
            out["zone"] = self.zone
        if self.x is not None and self.y is not None:
            out["x"] = self.x
            out["y"] = self.y
            out["position"] = [self.x, self.y]
        for key in ("width", "height", "radius", "color", "role"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        if self.size is not None:
            out["size"] = list(self.size) if isinstance(self.size, tuple) else self.size
        return out


@dataclass(frozen=True)
class Zone:
    """A rectangular grouping region (top-left anchored)."""

    id: str
    label: str = ""
    x: float | None = None
    y: float | None = None
    width: float | None = None
    height: float | None = None
    color: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Zone:
        return cls.from_input(ZoneInput.model_validate(dict(data)))

    @classmethod
    def from_input(cls, parsed: ZoneInput) -> Zone:
        x, y = parsed.anchor()
        return cls(
            id=parsed.id,
            label=parsed.label,
            x=x,
            y=y,
            width=parsed.width,
            height=parsed.height,
            color=parsed.color,
            extra=parsed.extras(),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out["id"] = self.id
        if self.label:
            out["label"] = self.label
        for key in ("x", "y", "width", "height", "color"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


Endpoint = str | Point


def _endpoint(value: Any) -> Endpoint | None:
    """An id string stays as is; a parsed (x, y) pair becomes a ``Point``."""
    if isinstance(value, tuple):
        return Point(*value)
    return value


def _endpoint_to_json(value: Endpoint | None) -> Any:
    if isinstance(value, Point):
        return value.to_dict()
    return value


@dataclass(frozen=True)
class Connection:
    """An edge between two endpoints (ids or literal points)."""

    id: str
    from_: Endpoint | None
    to: Endpoint | None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def from_id(self) -> str | None:
        return self.from_ if isinstance(self.from_, str) else None

    @property
    def to_id(self) -> str | None:
        return self.to if isinstance(self.to, str) else None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], index: int = 0) -> Connection:
        return cls.from_input(ConnectionInput.model_validate(dict(data)), index)

    @classmethod
    def from_input(cls, parsed: ConnectionInput, index: int = 0) -> Connection:
        conn_id = parsed.id or f"conn-{index}"
        from_, to = _endpoint(parsed.from_), _endpoint(parsed.to)
        if from_ is None or to is None:
            logger.warning("Connection %s has an unusable endpoint", conn_id)
        return cls(id=conn_id, from_=from_, to=to, extra=dict(parsed.model_extra or {}))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out["id"] = self.id
        out["from"] = _endpoint_to_json(self.from_)
        out["to"] = _endpoint_to_json(self.to)
        return out


@dataclass(frozen=True)
class Scene:
    """The graph description a layout runs over."""

    components: tuple[Component, ...] = ()
    zones: tuple[Zone, ...] = ()
    connections: tuple[Connection, ...] = ()
    flow: tuple[str, ...] = ()
    layout: Mapping[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def component_map(self) -> dict[str, Component]:
        return {c.id: c for c in self.components}

    def zone_map(self) -> dict[str, Zone]:
        return {z.id: z for z in self.zones}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Scene:
        parsed = SceneInput.model_validate(dict(data))
        return cls(
            components=tuple(Component.from_input(c) for c in parsed.components),
            zones=tuple(Zone.from_input(z) for z in parsed.zones),
            connections=tuple(Connection.from_input(c, i) for i, c in enumerate(parsed.connections)),
            flow=tuple(parsed.flow),
            layout=parsed.layout,
            extra=dict(parsed.model_extra or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out["components"] = [c.to_dict() for c in self.components]
        out["zones"] = [z.to_dict() for z in self.zones]
        out["connections"] = [c.to_dict() for c in self.connections]
        if self.flow:
            out["flow"] = list(self.flow)
        if self.layout is not None:
            out["layout"] = dict(self.layout)
        return out
