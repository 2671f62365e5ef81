"""Dict-in / dict-out entry points for callers holding parsed scene data."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from flow_layout.analyzer import infer_layout_hints
from flow_layout.config import LayoutConfig, explicit_hints
from flow_layout.connections import ConnectionResolver
from flow_layout.engine import LayoutResult, calculate_layout
from flow_layout.types import Scene

logger = logging.getLogger(__name__)

AUTO_MODE = "auto"


def needs_auto_layout(data: Mapping[str, Any]) -> bool:
    """Auto-layout is opt-in: only ``layout.mode == "auto"`` enables it."""
    layout = data.get("layout")
    return isinstance(layout, Mapping) and layout.get("mode") == AUTO_MODE


def prepare_auto_layout(scene: Scene) -> Scene:
    """Fill in a missing profile/hints from topology; explicit values win."""
    layout: dict[str, Any] = dict(scene.layout or {})
    given_hints = explicit_hints(layout.get("hints"))
    if layout.get("profile") and given_hints:
        return scene

    inferred = infer_layout_hints(scene)
    hints = inferred.hints.to_dict()
    hints.update(given_hints)
    layout.update(
        {
            "mode": AUTO_MODE,
            "profile": layout.get("profile") or inferred.profile.value,
            "template": layout.get("template") or inferred.template,
            "direction": layout.get("direction") or "LR",
            "hints": hints,
        }
    )
    return replace(scene, layout=layout, components=inferred.components)


def run_layout(data: Mapping[str, Any], **overrides: Any) -> LayoutResult:
    """Parse, infer missing hints, and lay out ``data`` unconditionally."""
    scene = Scene.from_dict(data)
    if overrides:
        scene = replace(scene, layout={**(scene.layout or {}), **overrides})
    scene = prepare_auto_layout(scene)
    return calculate_layout(scene, LayoutConfig.from_mapping(scene.layout))


def layout_scene(data: Mapping[str, Any], force: bool = False, **overrides: Any) -> dict[str, Any]:
    """Lay out ``data`` when it opts in (or ``force``); else return a copy as-is.

    ``overrides`` are merged into the scene's ``layout`` mapping, e.g.
    ``layout_scene(data, profile="hub", direction="TB")``.
    """
    if not (force or needs_auto_layout(data)):
        logger.debug("Scene does not request auto-layout; positions left as authored")
        return copy.deepcopy(dict(data))
    result = run_layout(data, **overrides)
    if not result.applied:
        return copy.deepcopy(dict(data))
    return result.to_dict()


def resolve_scene_connections(data: Mapping[str, Any]) -> dict[str, Any]:
    """Replace id-based connection endpoints with literal coordinates."""
    scene = Scene.from_dict(data)
    resolved = ConnectionResolver().transform_scene(scene)
    out = copy.deepcopy(dict(data))
    out["connections"] = [c.to_dict() for c in resolved.connections]
    return out
