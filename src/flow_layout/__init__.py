"""flow-layout: deterministic auto-layout for component/zone/connection diagrams."""

from __future__ import annotations

from flow_layout.analyzer import InferredLayout, infer_layout_hints, infer_primary_path, infer_roles
from flow_layout.api import layout_scene, needs_auto_layout, resolve_scene_connections
from flow_layout.compaction import compact_gaps
from flow_layout.config import Hints, LayoutConfig
from flow_layout.connections import ConnectionResolver, ResolvedConnection, choose_anchor_sides, resolve_connection
from flow_layout.engine import LayoutResult, calculate_layout, iter_layout_attempts
from flow_layout.geometry import anchor_to_center, bounds_from_anchor, center_of, center_to_anchor, size_of
from flow_layout.scoring import LayoutScore, score_layout
from flow_layout.types import (
    Anchor,
    Bounds,
    Component,
    Connection,
    Direction,
    Gaps,
    Grouping,
    Point,
    Profile,
    Scene,
    ShapeKind,
    Side,
    Zone,
)

__all__ = [
    "Anchor",
    "Bounds",
    "Component",
    "Connection",
    "ConnectionResolver",
    "Direction",
    "Gaps",
    "Grouping",
    "Hints",
    "InferredLayout",
    "LayoutConfig",
    "LayoutResult",
    "LayoutScore",
    "Point",
    "Profile",
    "ResolvedConnection",
    "Scene",
    "ShapeKind",
    "Side",
    "Zone",
    "anchor_to_center",
    "bounds_from_anchor",
    "calculate_layout",
    "center_of",
    "center_to_anchor",
    "choose_anchor_sides",
    "compact_gaps",
    "infer_layout_hints",
    "infer_primary_path",
    "infer_roles",
    "iter_layout_attempts",
    "layout_scene",
    "needs_auto_layout",
    "resolve_connection",
    "resolve_scene_connections",
    "score_layout",
    "size_of",
]
