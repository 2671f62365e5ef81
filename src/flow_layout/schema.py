"""Pydantic models for the external (JSON-ish) scene and layout mappings.

These validate what scene authors hand us and nothing more. Parsing is
lenient: a bad value is logged and becomes ``None`` so the caller's default
applies, and unknown keys are kept (``extra="allow"``) so they round-trip.
Keys may be camelCase or snake_case.

The ``types`` and ``config`` modules turn these into the frozen dataclasses
the layout code works with.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

Number = Union[int, float]


def _number(value: Any) -> Number | None:
    """Return value if it is a real number (bools excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _text(value: Any) -> str | None:
    if isinstance(value, Enum):
        value = value.value
    return str(value) if value else None


def _lenient_number(value: Any, info: ValidationInfo) -> Number | None:
    number = _number(value)
    if value is not None and number is None:
        logger.warning("Ignoring non-numeric %s=%r", info.field_name, value)
    return number


# ─── Scene Entities ───────────────────────────────────────────────────────────


class _PlacedInput(BaseModel):
    """Fields shared by components and zones."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str = ""
    label: str = ""
    x: Optional[Number] = None
    y: Optional[Number] = None
    position: Any = None
    width: Optional[Number] = None
    height: Optional[Number] = None
    color: Optional[str] = None

    @field_validator("id", "label", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("color", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: Any) -> str | None:
        return _text(v)

    @field_validator("x", "y", "width", "height", mode="before")
    @classmethod
    def lenient_number(cls, v: Any, info: ValidationInfo) -> Number | None:
        return _lenient_number(v, info)

    def anchor(self) -> tuple[Number | None, Number | None]:
        """Anchor from ``position`` ([x, y] or {x, y}), else the plain x/y keys."""
        position = self.position
        if isinstance(position, (list, tuple)) and len(position) >= 2:
            return _number(position[0]), _number(position[1])
        if isinstance(position, Mapping):
            return _number(position.get("x")), _number(position.get("y"))
        return self.x, self.y

    def extras(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class ComponentInput(_PlacedInput):
    """One entry of ``components[]``."""

    type: Optional[str] = None
    zone: Optional[str] = None
    size: Any = None
    radius: Optional[Number] = None
    role: Optional[str] = None

    @field_validator("type", "zone", "role", mode="before")
    @classmethod
    def coerce_names(cls, v: Any) -> str | None:
        return _text(v)

    @field_validator("radius", mode="before")
    @classmethod
    def lenient_radius(cls, v: Any, info: ValidationInfo) -> Number | None:
        return _lenient_number(v, info)

    def size_value(self) -> Number | tuple[Number, Number] | None:
        """``size`` as a scalar or (w, h); None when absent or unusable."""
        value = self.size
        if isinstance(value, (list, tuple)) and len(value) >= 2:
            w, h = _number(value[0]), _number(value[1])
            return (w, h) if w is not None and h is not None else None
        return _number(value)

    def extras(self) -> dict[str, Any]:
        """Unknown keys, plus an unusable ``size`` kept verbatim."""
        out = super().extras()
        if self.size is not None and self.size_value() is None:
            logger.warning("Component %s has unusable size %r; using defaults", self.id, self.size)
            out["size"] = self.size
        return out


class ZoneInput(_PlacedInput):
    """One entry of ``zones[]``."""


class ConnectionInput(BaseModel):
    """One entry of ``connections[]``; endpoints become an id, an (x, y) pair, or None."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    from_: Any = Field(None, alias="from")
    to: Any = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str | None:
        return _text(v)

    @field_validator("from_", "to", mode="before")
    @classmethod
    def parse_endpoint(cls, v: Any) -> str | tuple[Number, Number] | None:
        if isinstance(v, str):
            return v or None
        if isinstance(v, Mapping):
            if v.get("id"):
                return str(v["id"])
            x, y = _number(v.get("x")), _number(v.get("y"))
            if x is not None and y is not None:
                return (x, y)
        return None


def _mappings(v: Any) -> list[dict[str, Any]]:
    if not isinstance(v, (list, tuple)):
        return []
    return [dict(item) for item in v if isinstance(item, Mapping)]


class SceneInput(BaseModel):
    """A whole scene mapping."""

    model_config = ConfigDict(extra="allow")

    components: list[ComponentInput] = Field(default_factory=list)
    zones: list[ZoneInput] = Field(default_factory=list)
    connections: list[ConnectionInput] = Field(default_factory=list)
    flow: list[str] = Field(default_factory=list)
    layout: Any = None

    @field_validator("components", "zones", "connections", mode="before")
    @classmethod
    def keep_mappings(cls, v: Any) -> list[dict[str, Any]]:
        return _mappings(v)

    @field_validator("flow", mode="before")
    @classmethod
    def coerce_flow(cls, v: Any) -> list[str]:
        return [str(f) for f in v] if isinstance(v, (list, tuple)) else []

    @field_validator("layout", mode="before")
    @classmethod
    def coerce_layout(cls, v: Any) -> dict[str, Any] | None:
        return dict(v) if isinstance(v, Mapping) else None


# ─── Layout Settings ──────────────────────────────────────────────────────────


class HintsInput(BaseModel):
    """``layout.hints``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    primary_path: Optional[list[str]] = None
    grouping: Optional[str] = None
    compact: Optional[bool] = None

    @field_validator("primary_path", mode="before")
    @classmethod
    def coerce_path(cls, v: Any) -> list[str] | None:
        if v is None:
            return None
        if not isinstance(v, (list, tuple)):
            logger.warning("primaryPath should be a list of component ids, got %r", v)
            return None
        return [str(p) for p in v]

    @field_validator("grouping", mode="before")
    @classmethod
    def coerce_grouping(cls, v: Any) -> str | None:
        return _text(v)

    @field_validator("compact", mode="before")
    @classmethod
    def strict_bool(cls, v: Any) -> bool | None:
        if v is not None and not isinstance(v, bool):
            logger.warning("compact should be a boolean, got %r", v)
            return None
        return v


LAYOUT_NUMBERS: tuple[str, ...] = (
    "canvas_width",
    "canvas_height",
    "padding",
    "start_x",
    "start_y",
    "zone_gap",
    "zone_padding",
    "zone_label_height",
    "column_gap",
    "row_gap",
    "component_gap",
    "min_column_gap",
    "min_row_gap",
    "min_component_gap",
    "max_repair_passes",
    "repair_growth",
    "repair_max_overlaps",
    "repair_max_crossings",
)


class LayoutInput(BaseModel):
    """A scene's ``layout`` mapping merged with caller overrides.

    ``profile``, ``template``, ``direction`` and ``hints`` stay raw here; the
    enums and ``Hints`` do their own lenient parsing.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    profile: Any = None
    template: Any = None
    direction: Any = None
    hints: Any = None

    canvas_width: Optional[Number] = Field(
        None, validation_alias=AliasChoices("canvas_width", "canvasWidth", "viewBoxWidth")
    )
    canvas_height: Optional[Number] = Field(
        None, validation_alias=AliasChoices("canvas_height", "canvasHeight", "viewBoxHeight")
    )
    padding: Optional[Number] = None
    start_x: Optional[Number] = None
    start_y: Optional[Number] = None
    zone_gap: Optional[Number] = None
    zone_padding: Optional[Number] = None
    zone_label_height: Optional[Number] = None
    column_gap: Optional[Number] = None
    row_gap: Optional[Number] = None
    component_gap: Optional[Number] = None
    min_column_gap: Optional[Number] = None
    min_row_gap: Optional[Number] = None
    min_component_gap: Optional[Number] = None
    max_repair_passes: Optional[Number] = None
    repair_growth: Optional[Number] = None
    repair_max_overlaps: Optional[Number] = None
    repair_max_crossings: Optional[Number] = None

    @field_validator(*LAYOUT_NUMBERS, mode="before")
    @classmethod
    def non_negative_number(cls, v: Any, info: ValidationInfo) -> Number | None:
        if v is None:
            return None
        number = _number(v)
        if number is None or number < 0:
            logger.warning("Ignoring invalid layout value %s=%r", info.field_name, v)
            return None
        return number

    def numbers(self) -> dict[str, Number]:
        """The numeric settings that were given and valid."""
        return self.model_dump(include=set(LAYOUT_NUMBERS), exclude_none=True)
