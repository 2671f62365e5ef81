"""Layout configuration: defaults, per-profile templates, and parsing.

Precedence when building a ``LayoutConfig`` from a scene's ``layout`` mapping:

    module defaults  <  profile template gaps  <  explicit overrides

Keys may be given camelCase (``columnGap``) or snake_case (``column_gap``);
``flow_layout.schema`` validates them. Bad values are logged and replaced by
the default; nothing here raises.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any

from flow_layout.schema import HintsInput, LayoutInput
from flow_layout.types import Direction, Gaps, Grouping, Profile

logger = logging.getLogger(__name__)

# ─── Defaults ─────────────────────────────────────────────────────────────────

CANVAS_WIDTH: int = 1200
CANVAS_HEIGHT: int = 700
PADDING: int = 60
START_X: int = 60
START_Y: int = 80

ZONE_GAP: int = 50  # between consecutive zones on the primary axis
ZONE_PADDING: int = 50  # zone border to content
ZONE_LABEL_HEIGHT: int = 30
ZONE_MIN_WIDTH: int = 180
ZONE_MIN_HEIGHT: int = 200

COLUMN_GAP: int = 80
ROW_GAP: int = 90
COMPONENT_GAP: int = 30
MIN_COLUMN_GAP: int = 40
MIN_ROW_GAP: int = 50
MIN_COMPONENT_GAP: int = 16

MAX_REPAIR_PASSES: int = 2
REPAIR_GROWTH: float = 1.25
REPAIR_MAX_OVERLAPS: int = 0
REPAIR_MAX_CROSSINGS: int = 2

ZONE_COLORS: tuple[str, ...] = ("#6366f1", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#14b8a6")

# Gap presets keyed by template (or profile) name.
LAYOUT_TEMPLATES: dict[str, Gaps] = {
    "pipeline": Gaps(column_gap=90, row_gap=120, component_gap=28),
    "hub": Gaps(column_gap=70, row_gap=90, component_gap=24),
    "fanout": Gaps(column_gap=80, row_gap=110, component_gap=24),
    "tiered": Gaps(column_gap=100, row_gap=80, component_gap=26),
    "swimlane": Gaps(column_gap=110, row_gap=70, component_gap=24),
}


def resolve_template(template: str | None, profile: Profile) -> Gaps:
    """Template gaps for ``template`` (or the profile name); pipeline if unknown."""
    key = (template or profile.value).strip().lower()
    if key not in LAYOUT_TEMPLATES:
        if template:
            logger.warning("Unknown layout template %r, using pipeline gaps", template)
        return LAYOUT_TEMPLATES["pipeline"]
    return LAYOUT_TEMPLATES[key]


# ─── Config Types ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Hints:
    """Placement hints.

    Attributes:
        primary_path: Ordered component ids of the dominant flow. Empty means
            "derive it" (see ``placement.primary_path``).
        grouping: Bucket components by zone, by shape kind, or not at all.
        compact: Scale gaps down to fit the canvas.
    """

    primary_path: tuple[str, ...] = ()
    grouping: Grouping = Grouping.Zone
    compact: bool = True

    @classmethod
    def from_mapping(cls, data: Any) -> Hints:
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            logger.warning("hints should be a mapping, got %r", data)
            return cls()
        parsed = HintsInput.model_validate(dict(data))
        return cls(
            primary_path=tuple(parsed.primary_path or ()),
            grouping=Grouping.parse(parsed.grouping),
            compact=True if parsed.compact is None else parsed.compact,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "primaryPath": list(self.primary_path),
            "grouping": self.grouping.value,
            "compact": self.compact,
        }


@dataclass(frozen=True)
class LayoutConfig:
    """Everything one layout attempt needs besides the scene itself.

    ``repair_pass`` counts completed repair passes; only ``relaxed`` advances it.
    """

    profile: Profile = Profile.Pipeline
    template: str | None = None
    direction: Direction = Direction.LR
    hints: Hints = field(default_factory=Hints)

    canvas_width: float = CANVAS_WIDTH
    canvas_height: float = CANVAS_HEIGHT
    padding: float = PADDING
    start_x: float = START_X
    start_y: float = START_Y

    zone_gap: float = ZONE_GAP
    zone_padding: float = ZONE_PADDING
    zone_label_height: float = ZONE_LABEL_HEIGHT

    column_gap: float = COLUMN_GAP
    row_gap: float = ROW_GAP
    component_gap: float = COMPONENT_GAP
    min_column_gap: float = MIN_COLUMN_GAP
    min_row_gap: float = MIN_ROW_GAP
    min_component_gap: float = MIN_COMPONENT_GAP

    max_repair_passes: int = MAX_REPAIR_PASSES
    repair_growth: float = REPAIR_GROWTH
    repair_max_overlaps: int = REPAIR_MAX_OVERLAPS
    repair_max_crossings: int = REPAIR_MAX_CROSSINGS
    repair_pass: int = 0

    @property
    def vertical(self) -> bool:
        return self.direction.vertical

    @property
    def gaps(self) -> Gaps:
        return Gaps(self.column_gap, self.row_gap, self.component_gap)

    def with_hints(self, **changes: Any) -> LayoutConfig:
        return replace(self, hints=replace(self.hints, **changes))

    def relaxed(self) -> LayoutConfig:
        """Config for the next repair pass: roomier gaps, no compaction."""
        growth = max(self.repair_growth, 1.0)

        def grow(gap: float) -> float:
            # Rounding can swallow small growth; always move strictly up.
            return max(round(gap * growth), math.floor(gap) + 1)

        return replace(
            self,
            column_gap=grow(self.column_gap),
            row_gap=grow(self.row_gap),
            component_gap=grow(self.component_gap),
            hints=replace(self.hints, compact=False),
            repair_pass=self.repair_pass + 1,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None = None, **overrides: Any) -> LayoutConfig:
        """Build a config from a scene ``layout`` mapping plus keyword overrides."""
        merged: dict[str, Any] = dict(data or {})
        merged.update(overrides)
        parsed = LayoutInput.model_validate(merged)

        profile = Profile.parse(parsed.profile)
        template = str(parsed.template) if parsed.template else None
        preset = resolve_template(template, profile)

        values: dict[str, Any] = {
            "profile": profile,
            "template": template,
            "direction": Direction.parse(parsed.direction),
            "column_gap": preset.column_gap,
            "row_gap": preset.row_gap,
            "component_gap": preset.component_gap,
        }

        hints = parsed.hints
        values["hints"] = hints if isinstance(hints, Hints) else Hints.from_mapping(hints)

        for name, raw in parsed.numbers().items():
            default = _DEFAULTS[name]
            values[name] = type(default)(raw) if isinstance(default, int) and float(raw).is_integer() else raw

        if values.get("repair_growth", REPAIR_GROWTH) <= 1:
            logger.warning("repair_growth must be > 1, using %s", REPAIR_GROWTH)
            values["repair_growth"] = REPAIR_GROWTH

        return cls(**values)


_DEFAULTS: dict[str, Any] = {f.name: f.default for f in fields(LayoutConfig)}


def explicit_hints(data: Any) -> dict[str, Any]:
    """Only the hints a caller actually gave, camelCase keyed.

    Used to lay caller hints over inferred ones without the defaults of the
    missing keys clobbering anything.
    """
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        logger.warning("hints should be a mapping, got %r", data)
        return {}
    parsed = HintsInput.model_validate(dict(data))
    return parsed.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
