"""Tests for compaction.py — uniform gap scaling clamped to minimums."""

from __future__ import annotations

from flow_layout.compaction import compact_gaps, gaps_for
from flow_layout.config import Hints, LayoutConfig
from flow_layout.types import Direction, Gaps


def make_config(**kwargs) -> LayoutConfig:
    """1200×700 canvas, padding 60 → 1080×580 available."""
    return LayoutConfig(column_gap=80, row_gap=90, component_gap=30, **kwargs)


class TestCompactGaps:
    def test_fits_unchanged(self):
        """Content that fits keeps the configured gaps (no scale-up)."""
        assert compact_gaps(make_config(), 100, 100, False) == Gaps(80, 90, 30)

    def test_scales_down_and_clamps(self):
        """Half the space → half the gaps, but never below the minimums."""
        gaps = compact_gaps(make_config(), 2160, 10, False)
        assert gaps == Gaps(column_gap=40, row_gap=50, component_gap=16)

    def test_tighter_axis_wins(self):
        """The smaller of the two axis ratios is applied to every gap."""
        config = make_config(min_column_gap=0, min_row_gap=0, min_component_gap=0)
        gaps = compact_gaps(config, 1080, 2320, False)  # primary 1.0, secondary 0.25
        assert gaps == Gaps(column_gap=20, row_gap=22, component_gap=8)

    def test_vertical_swaps_axes(self):
        """With a vertical primary axis the canvas height bounds the primary need."""
        config = make_config(min_column_gap=0, min_row_gap=0, min_component_gap=0)
        assert compact_gaps(config, 1160, 10, True).column_gap == 40
        assert compact_gaps(config, 1160, 10, False).column_gap == 74  # 80 * 1080/1160

    def test_zero_need_is_neutral(self):
        """A non-positive need does not scale anything."""
        assert compact_gaps(make_config(), 0, 0, False) == Gaps(80, 90, 30)

    def test_huge_content_hits_floor(self):
        """Content that can never fit still gets usable gaps."""
        gaps = compact_gaps(make_config(), 10**9, 10**9, False)
        assert gaps == Gaps(40, 50, 16)


class TestGapsFor:
    def test_compaction_disabled(self):
        """hints.compact=False skips compaction entirely."""
        config = make_config(hints=Hints(compact=False))
        assert gaps_for(config, 10**6, 10**6) == Gaps(80, 90, 30)

    def test_uses_direction(self):
        """gaps_for reads the direction from the config."""
        config = make_config(direction=Direction.TB, min_column_gap=0, min_row_gap=0, min_component_gap=0)
        assert gaps_for(config, 1160, 10).column_gap == 40
