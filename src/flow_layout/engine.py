"""Layout driver: placement attempts, scoring, and the bounded repair loop.

    attempt 0: place with the given config
    attempt k: if the score is over the repair thresholds and
               k <= max_repair_passes, place again with ``config.relaxed()``

The loop is explicit, so its depth is visibly bounded by
``max_repair_passes``. The best-scoring attempt is returned.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, replace
from typing import Any

from flow_layout.config import LayoutConfig
from flow_layout.placement import place
from flow_layout.scoring import LayoutScore, score_layout
from flow_layout.types import Scene

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutResult:
    """A positioned scene plus the stage it needs and its quality score."""

    scene: Scene
    stage_width: float
    stage_height: float
    score: LayoutScore
    config: LayoutConfig
    applied: bool = True

    @property
    def repair_pass(self) -> int:
        return self.config.repair_pass

    def to_dict(self) -> dict[str, Any]:
        """External shape: the scene dict plus stage size and score fields."""
        out = self.scene.to_dict()
        if not self.applied:
            return out
        out["_layoutApplied"] = True
        out["_stageWidth"] = self.stage_width
        out["_stageHeight"] = self.stage_height
        out["_layoutScore"] = self.score.to_dict()
        return out


def needs_repair(score: LayoutScore, config: LayoutConfig) -> bool:
    return score.overlaps > config.repair_max_overlaps or score.crossings > config.repair_max_crossings


def layout_once(scene: Scene, config: LayoutConfig) -> LayoutResult:
    """One placement attempt, scored."""
    placement = place(scene, config)
    positioned = replace(
        scene,
        components=tuple(placement.components),
        zones=tuple(placement.zones) if placement.zones else scene.zones,
    )
    return LayoutResult(
        scene=positioned,
        stage_width=placement.stage_width,
        stage_height=placement.stage_height,
        score=score_layout(positioned.components, positioned.connections),
        config=config,
    )


def iter_layout_attempts(scene: Scene, config: LayoutConfig) -> Iterator[LayoutResult]:
    """Yield the initial attempt and every repair pass it triggers."""
    current = config
    while True:
        result = layout_once(scene, current)
        yield result
        if not needs_repair(result.score, current):
            return
        if current.repair_pass >= current.max_repair_passes:
            logger.warning(
                "Layout still over repair thresholds after %d pass(es): %s",
                current.repair_pass,
                result.score.to_dict(),
            )
            return
        current = current.relaxed()
        logger.warning("Repair pass %d triggered by score %s", current.repair_pass, result.score.to_dict())


def calculate_layout(scene: Scene, config: LayoutConfig | None = None) -> LayoutResult:
    """Position every component (and zone) of ``scene``.

    With no config, one is built from ``scene.layout``. An empty scene comes
    back unchanged with ``applied=False``. Ties between attempts go to the
    later (roomier) one.
    """
    if config is None:
        config = LayoutConfig.from_mapping(scene.layout)

    if not scene.components:
        logger.info("No components to lay out")
        return LayoutResult(
            scene=scene,
            stage_width=config.canvas_width,
            stage_height=config.canvas_height,
            score=LayoutScore(),
            config=config,
            applied=False,
        )

    attempts = iter_layout_attempts(scene, config)
    best = next(attempts)
    for attempt in attempts:
        if attempt.score.total <= best.score.total:
            best = attempt
    return best
