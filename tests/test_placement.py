"""Tests for placement.py — ordering, grouping and every profile strategy.

Positions are checked through component centers (``geometry.center_of``) so
the assertions hold regardless of which anchor a shape kind uses.
"""

from __future__ import annotations

import math

import pytest

from flow_layout.config import Hints, LayoutConfig
from flow_layout.geometry import bounds_from_anchor, center_of, zone_bounds
from flow_layout.graph import build_graph
from flow_layout.placement import (
    PlacementContext,
    group_components,
    pick_hub,
    pick_source,
    place,
    primary_path,
    rank_components,
    zigzag_rows,
)
from flow_layout.types import Component, Connection, Direction, Grouping, Point, Profile, Scene, ShapeKind, Zone

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_scene(*ids: str, edges=(), zones=(), zone_of=None, flow=(), kind=ShapeKind.Rectangle) -> Scene:
    """Build a scene of same-kind components with ``(src, dst)`` edges."""
    zone_of = zone_of or {}
    return Scene(
        components=tuple(Component(id=i, type=kind, zone=zone_of.get(i)) for i in ids),
        zones=tuple(Zone(id=z, label=z) for z in zones),
        connections=tuple(Connection(id=f"{s}-{t}", from_=s, to=t) for s, t in edges),
        flow=tuple(flow),
    )


def make_config(profile: Profile = Profile.Pipeline, direction: Direction = Direction.LR, **kwargs) -> LayoutConfig:
    return LayoutConfig(profile=profile, direction=direction, **kwargs)


def centers(scene: Scene, config: LayoutConfig) -> dict[str, Point]:
    placement = place(scene, config)
    return {c.id: center_of(c) for c in placement.components}


# ─── Ordering ─────────────────────────────────────────────────────────────────


class TestPrimaryPath:
    def test_hint_wins(self):
        scene = make_scene("a", "b", "c", flow=["c", "b"])
        config = make_config(hints=Hints(primary_path=("b", "a")))
        assert primary_path(scene, config) == ("b", "a")

    def test_unknown_and_duplicate_ids_dropped(self, caplog):
        scene = make_scene("a", "b")
        config = make_config(hints=Hints(primary_path=("a", "ghost", "a", "b")))
        assert primary_path(scene, config) == ("a", "b")
        assert "ghost" in caplog.text

    def test_all_unknown_hint_falls_back_to_flow(self):
        scene = make_scene("a", "b", flow=["b", "a"])
        config = make_config(hints=Hints(primary_path=("ghost",)))
        assert primary_path(scene, config) == ("b", "a")

    def test_component_order_last(self):
        assert primary_path(make_scene("x", "y", "z"), make_config()) == ("x", "y", "z")


class TestRankComponents:
    def test_branches_follow_their_parent(self):
        """Branch of 'a' sorts between 'a' and 'b'; strangers go last."""
        scene = make_scene("a", "b", "lonely", "br")
        rank = rank_components(scene.components, ("a", "b"), {"br": "a"})
        assert sorted(rank, key=rank.get) == ["a", "br", "b", "lonely"]

    def test_total_order(self):
        scene = make_scene("a", "b", "c")
        rank = rank_components(scene.components, (), {})
        assert sorted(rank.values()) == [0, 1, 2]


class TestZigzagRows:
    def test_without_center(self):
        assert zigzag_rows(["a", "b", "c", "d"]) == {"a": 1, "b": -1, "c": 2, "d": -2}

    def test_with_center(self):
        """The center is pinned to row 0; the rest alternate around it."""
        rows = zigzag_rows(["a", "b", "c", "d"], center_id="b")
        assert rows == {"b": 0, "a": 1, "c": -1, "d": 2}

    def test_center_not_in_ids_is_ignored(self):
        assert zigzag_rows(["a"], center_id="zzz") == {"a": 1}


# ─── Grouping ─────────────────────────────────────────────────────────────────


class TestGroupComponents:
    def test_zone_groups_in_zone_order_unzoned_last(self):
        scene = make_scene("a", "b", "c", zones=["z2", "z1"], zone_of={"a": "z1", "b": "z2"})
        groups = group_components(scene, Grouping.Zone)
        assert [g.zone.id if g.zone else None for g in groups] == ["z2", "z1", None]
        assert [c.id for c in groups[2].components] == ["c"]

    def test_dangling_zone_reference_is_unzoned(self, caplog):
        scene = make_scene("a", zones=["z1"], zone_of={"a": "nowhere"})
        groups = group_components(scene, Grouping.Zone)
        assert [c.id for c in groups[-1].components] == ["a"]
        assert groups[-1].zone is None
        assert "nowhere" in caplog.text

    def test_group_by_type(self):
        scene = Scene(
            components=(
                Component(id="a", type=ShapeKind.Database),
                Component(id="b", type=ShapeKind.Rectangle),
                Component(id="c", type=ShapeKind.Database),
            )
        )
        groups = group_components(scene, Grouping.Type)
        assert [g.label for g in groups] == ["database", "rectangle"]
        assert [c.id for c in groups[0].components] == ["a", "c"]

    def test_flow_is_one_group(self):
        scene = make_scene("a", "b", zones=["z"], zone_of={"a": "z"})
        assert len(group_components(scene, Grouping.Flow)) == 1


# ─── Pipeline ─────────────────────────────────────────────────────────────────


class TestPipeline:
    def test_three_boxes_in_a_row(self):
        """Three 120×60 boxes, column gap 80: centers 280 apart from x=200."""
        scene = make_scene("a", "b", "c", edges=[("a", "b"), ("b", "c")])
        pos = centers(scene, make_config(column_gap=80))
        assert [pos[i].x for i in "abc"] == [200, 480, 760]
        assert pos["a"].y == pos["b"].y == pos["c"].y

    def test_follows_primary_path_order(self):
        """Centers strictly increase along the primary axis in path order."""
        scene = make_scene("a", "b", "c", "d")
        config = make_config(hints=Hints(primary_path=("d", "b", "a", "c")))
        pos = centers(scene, config)
        xs = [pos[i].x for i in ("d", "b", "a", "c")]
        assert xs == sorted(xs) and len(set(xs)) == 4

    def test_vertical_direction(self):
        scene = make_scene("a", "b", "c")
        pos = centers(scene, make_config(direction=Direction.TB))
        ys = [pos[i].y for i in "abc"]
        assert ys == sorted(ys) and len(set(ys)) == 3
        assert pos["a"].x == pos["b"].x == pos["c"].x

    def test_branches_zigzag_off_the_path(self):
        """Two branches of 'a' land on either side of the path row."""
        scene = make_scene(
            "a", "b", "c", "x", "y",
            edges=[("a", "b"), ("b", "c"), ("a", "x"), ("a", "y")],
        )
        config = make_config(hints=Hints(primary_path=("a", "b", "c")))
        pos = centers(scene, config)
        assert pos["x"].y > pos["a"].y > pos["y"].y
        assert pos["a"].y == pos["b"].y == pos["c"].y
        assert pos["a"].x < pos["x"].x < pos["y"].x < pos["b"].x

    def test_mixed_kinds_share_the_row(self):
        """Centers align even when anchors differ by kind."""
        scene = Scene(
            components=(
                Component(id="box"),
                Component(id="db", type=ShapeKind.Database),
                Component(id="user", type=ShapeKind.User),
            )
        )
        pos = centers(scene, make_config())
        assert pos["box"].y == pos["db"].y == pos["user"].y

    def test_default_colors_applied(self):
        scene = Scene(components=(Component(id="a"), Component(id="b", color="#000000")))
        placed = {c.id: c for c in place(scene, make_config()).components}
        assert placed["a"].color == ShapeKind.Rectangle.default_color
        assert placed["b"].color == "#000000"


# ─── Tiered / Grid ────────────────────────────────────────────────────────────


class TestTiered:
    def test_single_file(self):
        scene = make_scene("a", "b", "c", edges=[("a", "c")])
        pos = centers(scene, make_config(Profile.Tiered))
        assert pos["a"].y == pos["b"].y == pos["c"].y
        assert pos["a"].x < pos["b"].x < pos["c"].x


class TestGrid:
    def test_two_columns(self):
        scene = make_scene("a", "b", "c", "d")
        pos = centers(scene, make_config(Profile.Grid))
        assert pos["a"].y == pos["b"].y < pos["c"].y == pos["d"].y
        assert pos["a"].x == pos["c"].x < pos["b"].x == pos["d"].x

    def test_scene_order_ignores_path(self):
        scene = make_scene("a", "b", "c")
        pos = centers(scene, make_config(Profile.Grid, hints=Hints(primary_path=("c", "b", "a"))))
        assert pos["a"].x < pos["b"].x
        assert pos["a"].y == pos["b"].y < pos["c"].y

    def test_swimlane_without_zones_is_grid(self):
        scene = make_scene("a", "b", "c", "d")
        assert centers(scene, make_config(Profile.Swimlane)) == centers(scene, make_config(Profile.Grid))


# ─── Hub ──────────────────────────────────────────────────────────────────────


class TestHub:
    SPOKES = ("s1", "s2", "s3", "s4", "s5")

    def hub_scene(self) -> Scene:
        return make_scene("hub", *self.SPOKES, edges=[("hub", s) for s in self.SPOKES])

    @pytest.mark.parametrize("direction", [Direction.LR, Direction.TB])
    def test_spokes_equidistant(self, direction):
        pos = centers(self.hub_scene(), make_config(Profile.Hub, direction))
        hub = pos["hub"]
        radii = [math.dist((hub.x, hub.y), (pos[s].x, pos[s].y)) for s in self.SPOKES]
        assert radii == pytest.approx([radii[0]] * len(radii))
        assert radii[0] >= 100

    def test_spokes_evenly_spaced(self):
        """Consecutive spokes are 2π/N apart."""
        pos = centers(self.hub_scene(), make_config(Profile.Hub))
        hub = pos["hub"]
        angles = [math.atan2(pos[s].y - hub.y, pos[s].x - hub.x) for s in self.SPOKES]
        step = 2 * math.pi / len(self.SPOKES)
        for a, b in zip(angles, angles[1:]):
            assert (b - a) % (2 * math.pi) == pytest.approx(step)

    def test_first_spoke_points_up_for_lr(self):
        pos = centers(self.hub_scene(), make_config(Profile.Hub))
        assert pos["s1"].x == pytest.approx(pos["hub"].x)
        assert pos["s1"].y < pos["hub"].y

    def test_first_spoke_points_left_for_tb(self):
        pos = centers(self.hub_scene(), make_config(Profile.Hub, Direction.TB))
        assert pos["s1"].y == pytest.approx(pos["hub"].y)
        assert pos["s1"].x < pos["hub"].x

    def test_path_member_is_hub(self):
        """The first primary-path id in the group is the hub."""
        scene = make_scene("a", "b", "c", "d", edges=[("c", "a"), ("c", "b"), ("c", "d")])
        pos = centers(scene, make_config(Profile.Hub, hints=Hints(primary_path=("a",))))
        radii = [math.dist((pos["a"].x, pos["a"].y), (pos[i].x, pos[i].y)) for i in "bcd"]
        assert radii == pytest.approx([radii[0]] * 3)

    def test_busiest_node_without_path(self):
        """With no path member in the group, the best-connected node is the hub."""
        scene = make_scene("a", "b", "c", "d", edges=[("c", "a"), ("c", "b"), ("c", "d")])
        ctx = PlacementContext(
            config=make_config(Profile.Hub),
            graph=build_graph(scene.components, scene.connections),
            primary_path=(),
            parents={},
            rank={},
            use_zones=False,
        )
        assert pick_hub(list(scene.components), ctx).id == "c"
        assert pick_source(list(scene.components), ctx).id == "c"


# ─── Fanout ───────────────────────────────────────────────────────────────────


class TestFanout:
    def test_source_then_targets(self):
        scene = make_scene("src", "t1", "t2", "t3", edges=[("src", "t1"), ("src", "t2"), ("src", "t3")])
        pos = centers(scene, make_config(Profile.Fanout))
        assert pos["t1"].x == pos["t2"].x == pos["t3"].x > pos["src"].x
        # first target level with the source, the rest zig-zag around it
        assert pos["t1"].y == pos["src"].y
        assert pos["t2"].y > pos["src"].y > pos["t3"].y

    def test_source_centered_on_targets(self):
        scene = make_scene("src", "t1", "t2", edges=[("src", "t1"), ("src", "t2")])
        pos = centers(scene, make_config(Profile.Fanout))
        assert pos["src"].y == pytest.approx((pos["t1"].y + pos["t2"].y) / 2)

    def test_vertical(self):
        scene = make_scene("src", "t1", "t2", "t3", edges=[("src", "t1"), ("src", "t2"), ("src", "t3")])
        pos = centers(scene, make_config(Profile.Fanout, Direction.TB))
        assert pos["t1"].y == pos["t2"].y == pos["t3"].y > pos["src"].y

    def test_output_keeps_scene_order(self):
        """Targets are placed before the source but come back in authored order."""
        scene = make_scene("src", "t1", "t2", edges=[("src", "t1"), ("src", "t2")])
        placement = place(scene, make_config(Profile.Fanout))
        assert [c.id for c in placement.components] == ["src", "t1", "t2"]


# ─── Zoned Layouts ────────────────────────────────────────────────────────────


def contains(outer, inner) -> bool:
    return (
        outer.x <= inner.x
        and outer.y <= inner.y
        and inner.right <= outer.right
        and inner.bottom <= outer.bottom
    )


class TestZonedPipeline:
    def scene(self) -> Scene:
        return make_scene(
            "a", "b", "c", "d",
            edges=[("a", "b"), ("b", "c"), ("c", "d")],
            zones=["front", "back"],
            zone_of={"a": "front", "b": "front", "c": "back", "d": "back"},
        )

    def test_zones_left_to_right(self):
        placement = place(self.scene(), make_config())
        front, back = placement.zones
        assert front.x + front.width < back.x
        assert front.y == back.y

    def test_members_inside_their_zone(self):
        placement = place(self.scene(), make_config())
        zones = {z.id: zone_bounds(z) for z in placement.zones}
        for comp in placement.components:
            assert contains(zones[comp.zone], bounds_from_anchor(comp)), comp.id

    def test_zones_get_palette_colors(self):
        placement = place(self.scene(), make_config())
        assert all(z.color for z in placement.zones)
        assert placement.zones[0].color != placement.zones[1].color

    def test_empty_zone_still_framed(self):
        scene = make_scene("a", zones=["z1", "empty"], zone_of={"a": "z1"})
        placement = place(scene, make_config())
        empty = next(z for z in placement.zones if z.id == "empty")
        assert empty.width >= 180 and empty.height >= 200


class TestSwimlanes:
    def scene(self) -> Scene:
        return make_scene(
            "a", "b", "c", "d",
            zones=["l1", "l2", "l3"],
            zone_of={"a": "l1", "b": "l2", "c": "l3", "d": "l1"},
            flow=["a", "b", "c", "d"],
        )

    def test_lanes_stack_across_flow(self):
        placement = place(self.scene(), make_config(Profile.Swimlane))
        lanes = placement.zones
        assert [z.id for z in lanes] == ["l1", "l2", "l3"]
        assert len({(z.x, z.width) for z in lanes}) == 1
        for upper, lower in zip(lanes, lanes[1:]):
            assert upper.y + upper.height < lower.y

    def test_columns_follow_rank_across_lanes(self):
        placement = place(self.scene(), make_config(Profile.Swimlane))
        pos = {c.id: center_of(c) for c in placement.components}
        assert pos["a"].x < pos["b"].x < pos["c"].x < pos["d"].x
        assert pos["a"].y == pos["d"].y

    def test_members_inside_their_lane(self):
        placement = place(self.scene(), make_config(Profile.Swimlane))
        lanes = {z.id: zone_bounds(z) for z in placement.zones}
        for comp in placement.components:
            assert contains(lanes[comp.zone], bounds_from_anchor(comp)), comp.id


class TestZonedStar:
    def scene(self) -> Scene:
        return make_scene(
            "hub", "a", "b", "c", "d",
            edges=[("hub", x) for x in "abcd"],
            zones=["left", "right"],
            zone_of={"a": "left", "b": "left", "hub": "right", "c": "right", "d": "right"},
        )

    def test_hub_pinned_in_middle_of_its_zone(self):
        config = make_config(Profile.Hub, hints=Hints(primary_path=("hub",)))
        pos = centers(self.scene(), config)
        assert pos["c"].y > pos["hub"].y > pos["d"].y
        assert pos["hub"].y == pytest.approx((pos["c"].y + pos["d"].y) / 2)

    def test_zones_along_primary_axis(self):
        config = make_config(Profile.Fanout, hints=Hints(primary_path=("hub",)))
        placement = place(self.scene(), config)
        left, right = placement.zones
        assert left.x + left.width < right.x
        zones = {z.id: zone_bounds(z) for z in placement.zones}
        for comp in placement.components:
            assert contains(zones[comp.zone], bounds_from_anchor(comp)), comp.id


# ─── Stage ────────────────────────────────────────────────────────────────────


class TestStageSize:
    def test_small_scene_uses_canvas(self):
        placement = place(make_scene("a"), make_config())
        assert (placement.stage_width, placement.stage_height) == (1200, 700)

    def test_grows_to_fit_content(self):
        """Twelve boxes overflow 1200px; the stage grows to contain them."""
        ids = [f"n{i}" for i in range(12)]
        placement = place(make_scene(*ids), make_config())
        right = max(bounds_from_anchor(c).right for c in placement.components)
        assert placement.stage_width == right + 60


class TestOutputOrder:
    @pytest.mark.parametrize("profile", list(Profile))
    def test_every_profile_keeps_scene_order(self, profile: Profile):
        """Zone grouping and strategy fill order never reorder the output."""
        scene = make_scene(
            "c", "a", "b", "d",
            edges=[("a", "b"), ("a", "c"), ("a", "d")],
            zones=["z1", "z2"],
            zone_of={"c": "z2", "a": "z1", "b": "z2"},
        )
        placement = place(scene, make_config(profile))
        assert [c.id for c in placement.components] == ["c", "a", "b", "d"]
