"""Gap compaction: shrink spacing uniformly so content fits the canvas."""

from __future__ import annotations

from flow_layout.config import LayoutConfig
from flow_layout.types import Gaps


def compact_gaps(config: LayoutConfig, needed_primary: float, needed_secondary: float, vertical: bool) -> Gaps:
    """Scale the configured gaps so the needed extents fit the canvas.

    The primary axis is the canvas height when ``vertical``. Both axes share
    one scale factor (the tighter one), capped at 1.0. Each gap is rounded and
    clamped to its configured minimum, so content may still overflow.
    """
    canvas_primary = config.canvas_height if vertical else config.canvas_width
    canvas_secondary = config.canvas_width if vertical else config.canvas_height
    available_primary = max(1, canvas_primary - config.padding * 2)
    available_secondary = max(1, canvas_secondary - config.padding * 2)

    scale_primary = min(1.0, available_primary / needed_primary) if needed_primary > 0 else 1.0
    scale_secondary = min(1.0, available_secondary / needed_secondary) if needed_secondary > 0 else 1.0
    scale = min(scale_primary, scale_secondary)

    return Gaps(
        column_gap=max(config.min_column_gap, round(config.column_gap * scale)),
        row_gap=max(config.min_row_gap, round(config.row_gap * scale)),
        component_gap=max(config.min_component_gap, round(config.component_gap * scale)),
    )


def gaps_for(config: LayoutConfig, needed_primary: float, needed_secondary: float) -> Gaps:
    """Compacted gaps when ``hints.compact`` is on, else the configured gaps."""
    if not config.hints.compact:
        return config.gaps
    return compact_gaps(config, needed_primary, needed_secondary, config.vertical)
