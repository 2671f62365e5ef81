"""Profile placement strategies.

Pipeline:
  1. Primary path   (hint → scene flow → component order)
  2. Global ranking (path order; branches right after their path parent)
  3. Grouping       (by zone, by shape kind, or a single group)
  4. Placement      (one strategy per group, or a whole-scene strategy for
                     swimlanes and zoned hub/fanout)
  5. Framing        (groups/zones laid end to end along the primary axis)
  6. Stage bounds   (max extent of everything placed, plus padding)

Strategies work in *center* coordinates local to their content box and are
converted to anchor coordinates once, at the end, via ``geometry``. Layouts
are described in (primary, secondary) terms; ``_xy`` maps them onto (x, y)
for the configured direction.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

import networkx as nx

from flow_layout.compaction import gaps_for
from flow_layout.config import ZONE_COLORS, ZONE_MIN_HEIGHT, ZONE_MIN_WIDTH, LayoutConfig
from flow_layout.geometry import bounds_from_anchor, center_to_anchor, max_extent
from flow_layout.graph import branch_parents, build_graph, highest_degree, highest_out_degree
from flow_layout.types import Bounds, Component, Grouping, Point, Profile, Scene, Zone

logger = logging.getLogger(__name__)

# Smallest radius a hub layout will use, regardless of compaction.
HUB_MIN_RADIUS: int = 100

# ─── Placement Context ────────────────────────────────────────────────────────


@dataclass
class PlacementContext:
    """Per-attempt inputs shared by all strategies."""

    config: LayoutConfig
    graph: nx.MultiDiGraph
    primary_path: tuple[str, ...]
    parents: dict[str, str]
    rank: dict[str, int]
    use_zones: bool

    @property
    def primary_set(self) -> frozenset[str]:
        return frozenset(self.primary_path)

    def ordered(self, components: Iterable[Component]) -> list[Component]:
        return sorted(components, key=lambda c: self.rank.get(c.id, len(self.rank)))


@dataclass
class Group:
    """Components placed together; ``zone`` is set only for zone groups."""

    components: list[Component]
    zone: Zone | None = None
    label: str | None = None


@dataclass
class Block:
    """Output of a strategy: content size and centers in local coordinates."""

    width: float
    height: float
    centers: dict[str, Point] = field(default_factory=dict)


@dataclass
class Placement:
    """Final placement of one attempt, anchors already applied."""

    components: list[Component]
    zones: list[Zone]
    stage_width: float
    stage_height: float


def _xy(primary: float, secondary: float, vertical: bool) -> tuple[float, float]:
    return (secondary, primary) if vertical else (primary, secondary)


def _point(primary: float, secondary: float, vertical: bool) -> Point:
    x, y = _xy(primary, secondary, vertical)
    return Point(x, y)


def _axis_extents(components: list[Component], vertical: bool) -> tuple[float, float]:
    """(max primary size, max secondary size) over the components."""
    max_w, max_h = max_extent(components)
    return (max_h, max_w) if vertical else (max_w, max_h)


# ─── Ordering ─────────────────────────────────────────────────────────────────


def _dedupe(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def primary_path(scene: Scene, config: LayoutConfig) -> tuple[str, ...]:
    """The dominant flow: hint, else scene flow, else every component in order.

    Unknown ids are dropped (with a warning); an empty result falls through
    to the next source.
    """
    known = [c.id for c in scene.components]
    known_set = set(known)
    for source, ids in (("hints.primaryPath", config.hints.primary_path), ("flow", scene.flow)):
        if not ids:
            continue
        dropped = [i for i in ids if i not in known_set]
        if dropped:
            logger.warning("Ignoring unknown ids in %s: %s", source, dropped)
        path = _dedupe(i for i in ids if i in known_set)
        if path:
            return tuple(path)
    return tuple(_dedupe(known))


def rank_components(components: Iterable[Component], path: tuple[str, ...], parents: dict[str, str]) -> dict[str, int]:
    """Total order over component ids.

    Path members keep path order; a branch sorts right after its path parent;
    everything else follows the path, in scene order.
    """
    index = {cid: i for i, cid in enumerate(path)}
    tail = len(path)

    def key(item: tuple[int, Component]) -> tuple[int, int, int]:
        original, comp = item
        if comp.id in index:
            return (index[comp.id], 0, original)
        parent = parents.get(comp.id)
        if parent is not None and parent in index:
            return (index[parent], 1, original)
        return (tail, 1, original)

    ranked = sorted(enumerate(components), key=key)
    rank: dict[str, int] = {}
    for comp in (c for _, c in ranked):
        rank.setdefault(comp.id, len(rank))
    return rank


def zigzag_rows(ids: Iterable[str], center_id: str | None = None) -> dict[str, int]:
    """Assign rows 0, +1, -1, +2, -2 … (or +1, -1, … without a center).

    ``center_id``, when present in ``ids``, is pinned to row 0 and the others
    fan out around it in the given order.
    """
    ids = list(ids)
    rows: dict[str, int] = {}
    if center_id is not None and center_id in ids:
        rows[center_id] = 0
    placed = 0
    for cid in ids:
        if cid in rows:
            continue
        rows[cid] = _branch_row(placed)
        placed += 1
    return rows


def _branch_row(count: int) -> int:
    """Row for the ``count``-th branch under one parent: +1, -1, +2, -2, …"""
    step = count // 2 + 1
    return step if count % 2 == 0 else -step


# ─── Grouping ─────────────────────────────────────────────────────────────────


def group_components(scene: Scene, grouping: Grouping) -> list[Group]:
    """Bucket components; zone groups keep zone order, unzoned last."""
    components = list(scene.components)
    if grouping is Grouping.Zone and scene.zones:
        zone_ids = {z.id for z in scene.zones}
        groups = [Group([c for c in components if c.zone == z.id], zone=z) for z in scene.zones]
        dangling = {c.id: c.zone for c in components if c.zone and c.zone not in zone_ids}
        if dangling:
            logger.warning("Components reference unknown zones, placing them unzoned: %s", dangling)
        unzoned = [c for c in components if not c.zone or c.zone not in zone_ids]
        if unzoned:
            groups.append(Group(unzoned))
        return groups

    if grouping is Grouping.Type:
        by_type: dict[str, list[Component]] = {}
        for comp in components:
            by_type.setdefault(comp.type.key, []).append(comp)
        return [Group(comps, label=key) for key, comps in by_type.items()]

    return [Group(components)]


# ─── Per-Group Strategies ─────────────────────────────────────────────────────


def _line_block(ordered: list[Component], rows: dict[str, int], ctx: PlacementContext) -> Block:
    """One cell per component along the primary axis, rows on the secondary."""
    config = ctx.config
    vertical = config.vertical
    max_p, max_s = _axis_extents(ordered, vertical)
    base = config.gaps

    min_row = min(rows.values(), default=0)
    row_count = max(rows.values(), default=0) - min_row + 1
    cols = len(ordered)

    gaps = gaps_for(
        config,
        cols * (max_p + base.column_gap * 2),
        row_count * (max_s + base.row_gap * 2),
    )
    cell_p = max_p + gaps.column_gap * 2
    cell_s = max_s + gaps.row_gap * 2

    width, height = _xy(cols * cell_p, row_count * cell_s, vertical)
    block = Block(width, height)
    for i, comp in enumerate(ordered):
        offset = rows.get(comp.id, 0) - min_row
        block.centers[comp.id] = _point(cell_p / 2 + i * cell_p, cell_s / 2 + offset * cell_s, vertical)
    return block


def place_pipeline(components: list[Component], ctx: PlacementContext) -> Block:
    """Path nodes on row 0; each branch zig-zags around its path parent's row."""
    ordered = ctx.ordered(components)
    primary = ctx.primary_set
    rows: dict[str, int] = {}
    per_parent: dict[str, int] = {}
    orphans = 0
    for comp in ordered:
        if comp.id in primary:
            rows[comp.id] = 0
            continue
        parent = ctx.parents.get(comp.id)
        if parent is not None:
            count = per_parent.get(parent, 0)
            per_parent[parent] = count + 1
        else:
            count = orphans
            orphans += 1
        rows[comp.id] = _branch_row(count)
    return _line_block(ordered, rows, ctx)


def place_tiered(components: list[Component], ctx: PlacementContext) -> Block:
    """Everything on a single file, one component per cell."""
    ordered = ctx.ordered(components)
    return _line_block(ordered, {c.id: 0 for c in ordered}, ctx)


def pick_hub(components: list[Component], ctx: PlacementContext) -> Component:
    """First path id in the group, else the best-connected member, else the first."""
    ids = [c.id for c in components]
    members = set(ids)
    hub_id = next((cid for cid in ctx.primary_path if cid in members), None)
    if hub_id is None:
        hub_id = highest_degree(ctx.graph, ids)
    return next((c for c in components if c.id == hub_id), components[0])


def pick_source(components: list[Component], ctx: PlacementContext) -> Component:
    """First path id in the group, else the member with most outgoing edges."""
    ids = [c.id for c in components]
    members = set(ids)
    source_id = next((cid for cid in ctx.primary_path if cid in members), None)
    if source_id is None:
        source_id = highest_out_degree(ctx.graph, ids)
    return next((c for c in components if c.id == source_id), components[0])


def hub_radius(spokes: int, max_size: float, column_gap: float, row_gap: float) -> float:
    """Spoke circle radius: a size floor, widened until spokes fit the circumference."""
    radius = max(HUB_MIN_RADIUS, max_size + row_gap)
    if spokes > 1:
        radius = max(radius, spokes * (max_size + column_gap) / (2 * math.pi))
    return radius


def hub_start_angle(vertical: bool) -> float:
    """First spoke points up for LR layouts and left for TB layouts."""
    return math.pi if vertical else -math.pi / 2


def place_hub(components: list[Component], ctx: PlacementContext) -> Block:
    """Hub at the center, spokes evenly spaced on a circle around it."""
    config = ctx.config
    ordered = ctx.ordered(components)
    hub = pick_hub(ordered, ctx)
    spokes = [c for c in ordered if c.id != hub.id]

    max_w, max_h = max_extent(ordered)
    max_size = max(max_w, max_h)
    base = config.gaps
    estimate = hub_radius(len(spokes), max_size, base.column_gap, base.row_gap) * 2 + max_size
    gaps = gaps_for(config, estimate, estimate)
    radius = hub_radius(len(spokes), max_size, gaps.column_gap, gaps.row_gap)

    side = radius * 2 + max_size
    center = Point(side / 2, side / 2)
    block = Block(side, side, {hub.id: center})

    start = hub_start_angle(config.vertical)
    step = 2 * math.pi / len(spokes) if spokes else 0.0
    for i, comp in enumerate(spokes):
        angle = start + i * step
        block.centers[comp.id] = Point(center.x + math.cos(angle) * radius, center.y + math.sin(angle) * radius)
    return block


def place_fanout(components: list[Component], ctx: PlacementContext) -> Block:
    """Source at the head of the primary axis; targets in one perpendicular file.

    Targets are zig-zag centered (first target level with the source) and the
    source sits on the midpoint of the target span.
    """
    config = ctx.config
    vertical = config.vertical
    ordered = ctx.ordered(components)
    source = pick_source(ordered, ctx)
    targets = [c for c in ordered if c.id != source.id]

    max_p, max_s = _axis_extents(ordered, vertical)
    base = config.gaps
    gaps = gaps_for(
        config,
        2 * (max_p + base.column_gap * 2),
        max(1, len(targets)) * (max_s + base.row_gap * 2),
    )
    cell_p = max_p + gaps.column_gap * 2
    cell_s = max_s + gaps.row_gap * 2

    rows = zigzag_rows((c.id for c in targets), targets[0].id if targets else None)
    min_row = min(rows.values(), default=0)
    row_count = max(1, len(targets))

    width, height = _xy(2 * cell_p, row_count * cell_s, vertical)
    block = Block(width, height)
    secondaries = []
    for comp in targets:
        s = cell_s / 2 + (rows[comp.id] - min_row) * cell_s
        secondaries.append(s)
        block.centers[comp.id] = _point(cell_p * 1.5, s, vertical)

    source_s = (min(secondaries) + max(secondaries)) / 2 if secondaries else cell_s / 2
    block.centers[source.id] = _point(cell_p / 2, source_s, vertical)
    return block


def place_grid(components: list[Component], ctx: PlacementContext) -> Block:
    """Near-square packing in scene order: two columns once there are 3+."""
    config = ctx.config
    ordered = list(components)
    cols = 2 if len(ordered) >= 3 else 1
    rows = math.ceil(len(ordered) / cols)

    max_w, max_h = max_extent(ordered)
    base = config.gaps
    gaps = gaps_for(
        config,
        (rows if config.vertical else cols) * (max_w + base.component_gap * 2),
        (cols if config.vertical else rows) * (max_h + base.component_gap * 2),
    )
    cell_w = max_w + gaps.component_gap * 2
    cell_h = max_h + gaps.component_gap * 2

    block = Block(cols * cell_w, rows * cell_h)
    for i, comp in enumerate(ordered):
        col, row = i % cols, i // cols
        block.centers[comp.id] = Point(cell_w / 2 + col * cell_w, cell_h / 2 + row * cell_h)
    return block


_STRATEGIES = {
    Profile.Pipeline: place_pipeline,
    Profile.Tiered: place_tiered,
    Profile.Hub: place_hub,
    Profile.Fanout: place_fanout,
    Profile.Grid: place_grid,
    # Swimlanes need zones; without them this is the grid fallback.
    Profile.Swimlane: place_grid,
}


# ─── Framing ──────────────────────────────────────────────────────────────────


class _Frames:
    """Lays framed blocks end to end and collects the placed geometry."""

    def __init__(self, ctx: PlacementContext, comps: dict[str, Component]) -> None:
        self.ctx = ctx
        self.comps = comps
        self.components: list[Component] = []
        self.zones: list[Zone] = []
        self.cursor = ctx.config.start_y if ctx.config.vertical else ctx.config.start_x

    def frame_size(self, content_w: float, content_h: float) -> tuple[float, float]:
        config = self.ctx.config
        if not self.ctx.use_zones:
            return (content_w, content_h)
        return (
            max(ZONE_MIN_WIDTH, content_w + config.zone_padding * 2),
            max(ZONE_MIN_HEIGHT, content_h + config.zone_padding * 2 + config.zone_label_height),
        )

    def emit(self, block: Block, zone: Zone | None, origin: Point, frame: tuple[float, float]) -> None:
        """Center ``block`` inside the frame at ``origin`` and record everything."""
        config = self.ctx.config
        frame_w, frame_h = frame
        label_h = config.zone_label_height if self.ctx.use_zones else 0
        offset_x = origin.x + (frame_w - block.width) / 2
        offset_y = origin.y + label_h + (frame_h - label_h - block.height) / 2

        for cid, local in block.centers.items():
            comp = self.comps[cid]
            anchor = center_to_anchor(Point(offset_x + local.x, offset_y + local.y), comp)
            self.components.append(
                replace(comp, x=anchor.x, y=anchor.y, color=comp.color or comp.type.default_color)
            )
        if zone is not None:
            self.zones.append(replace(zone, x=origin.x, y=origin.y, width=frame_w, height=frame_h))

    def append(self, block: Block, zone: Zone | None = None) -> None:
        """Frame ``block`` at the cursor and advance along the primary axis."""
        config = self.ctx.config
        frame = self.frame_size(block.width, block.height)
        if config.vertical:
            origin = Point(config.start_x, self.cursor)
        else:
            origin = Point(self.cursor, config.start_y)
        self.emit(block, zone, origin, frame)
        self.cursor += (frame[1] if config.vertical else frame[0]) + config.zone_gap


def _colored(zone: Zone, index: int) -> Zone:
    return zone if zone.color else replace(zone, color=ZONE_COLORS[index % len(ZONE_COLORS)])


def place_groups(groups: list[Group], ctx: PlacementContext, frames: _Frames) -> None:
    """One strategy call per group; empty zones still get a (minimum) frame."""
    strategy = _STRATEGIES[ctx.config.profile]
    if ctx.config.profile is Profile.Swimlane:
        logger.info("Swimlane layout needs zone grouping; using grid placement")
    for group in groups:
        if group.components:
            block = strategy(group.components, ctx)
        else:
            block = Block(0, 0)
        if not group.components and group.zone is None:
            continue
        frames.append(block, group.zone)


def place_swimlanes(groups: list[Group], ctx: PlacementContext, frames: _Frames) -> None:
    """Each zone is a lane stacked across the primary axis.

    Column = global rank, so components at the same rank line up across
    lanes. All lanes share one cell size and one lane length.
    """
    config = ctx.config
    vertical = config.vertical
    lanes = [g for g in groups if g.components or g.zone is not None]
    everything = [c for g in lanes for c in g.components]
    max_p, max_s = _axis_extents(everything, vertical)
    columns = {cid: i for i, cid in enumerate(c.id for c in ctx.ordered(everything))}
    total_cols = max(1, len(columns))

    base = config.gaps
    gaps = gaps_for(
        config,
        total_cols * (max_p + base.column_gap * 2),
        len(lanes) * (max_s + base.row_gap * 2),
    )
    cell_p = max_p + gaps.column_gap * 2
    cell_s = max_s + gaps.row_gap * 2
    lane_w, lane_h = _xy(total_cols * cell_p, cell_s, vertical)

    cursor = config.start_x if vertical else config.start_y
    frame = frames.frame_size(lane_w, lane_h)
    for lane in lanes:
        block = Block(lane_w, lane_h)
        for comp in lane.components:
            block.centers[comp.id] = _point(cell_p / 2 + columns[comp.id] * cell_p, cell_s / 2, vertical)
        origin = Point(cursor, config.start_y) if vertical else Point(config.start_x, cursor)
        frames.emit(block, lane.zone, origin, frame)
        cursor += (frame[0] if vertical else frame[1]) + config.zone_gap


def place_zoned_star(groups: list[Group], ctx: PlacementContext, frames: _Frames) -> None:
    """Hub/fanout across zones: each zone is a perpendicular file of cells.

    The hub (or source) is pinned to row 0 of its zone, other zones pin their
    first member; the rest zig-zag around that row.
    """
    config = ctx.config
    vertical = config.vertical
    members = [c for g in groups for c in g.components]
    if config.profile is Profile.Hub:
        center = pick_hub(ctx.ordered(members), ctx)
    else:
        center = pick_source(ctx.ordered(members), ctx)

    def content(group: Group, row_gap: float) -> tuple[float, float, float]:
        max_p, max_s = _axis_extents(group.components, vertical) if group.components else (0, 0)
        max_p, max_s = max_p or 60, max_s or 60
        cell_s = max_s + row_gap * 2
        return max_p, cell_s, max(1, len(group.components)) * cell_s

    estimated_p = 0.0
    estimated_s = 0.0
    for group in groups:
        max_p, _, content_s = content(group, config.row_gap)
        frame = frames.frame_size(*_xy(max_p, content_s, vertical))
        frame_p, frame_s = _xy(*frame, vertical)
        estimated_p += frame_p
        estimated_s = max(estimated_s, frame_s)
    estimated_p += max(0, len(groups) - 1) * config.zone_gap
    gaps = gaps_for(config, estimated_p, estimated_s)

    for group in groups:
        max_p, cell_s, content_s = content(group, gaps.row_gap)
        ordered = ctx.ordered(group.components)
        ids = [c.id for c in ordered]
        rows = zigzag_rows(ids, center.id if center.id in ids else next(iter(ids), None))
        min_row = min(rows.values(), default=0)
        width, height = _xy(max_p, content_s, vertical)
        block = Block(width, height)
        for comp in ordered:
            block.centers[comp.id] = _point(max_p / 2, cell_s / 2 + (rows[comp.id] - min_row) * cell_s, vertical)
        frames.append(block, group.zone)


# ─── Entry Point ──────────────────────────────────────────────────────────────


def stage_size(components: list[Component], zones: list[Zone], config: LayoutConfig) -> tuple[float, float]:
    """Canvas size containing all placed geometry plus padding (never below the canvas)."""
    max_x: float = 0
    max_y: float = 0
    for zone in zones:
        max_x = max(max_x, (zone.x or 0) + (zone.width or 0))
        max_y = max(max_y, (zone.y or 0) + (zone.height or 0))
    for comp in components:
        box: Bounds = bounds_from_anchor(comp)
        max_x = max(max_x, box.right)
        max_y = max(max_y, box.bottom)
    return (
        max(config.canvas_width, max_x + config.padding),
        max(config.canvas_height, max_y + config.padding),
    )


def place(scene: Scene, config: LayoutConfig) -> Placement:
    """Run one placement attempt for ``scene`` under ``config``."""
    zone_ids = {z.id for z in scene.zones}
    ids = [c.id for c in scene.components]
    if len(set(ids)) != len(ids):
        logger.warning("Duplicate component ids; only the last of each is placed: %s", sorted({i for i in ids if ids.count(i) > 1}))
    graph = build_graph(scene.components, scene.connections, also_known=zone_ids)
    path = primary_path(scene, config)
    parents = branch_parents(graph, set(path))
    rank = rank_components(scene.components, path, parents)

    use_zones = config.hints.grouping is Grouping.Zone and bool(scene.zones)
    ctx = PlacementContext(
        config=config,
        graph=graph,
        primary_path=path,
        parents=parents,
        rank=rank,
        use_zones=use_zones,
    )
    colored = [_colored(z, i) for i, z in enumerate(scene.zones)]
    groups = group_components(replace(scene, zones=tuple(colored)), config.hints.grouping)
    frames = _Frames(ctx, {c.id: c for c in scene.components})

    if use_zones and config.profile is Profile.Swimlane:
        place_swimlanes(groups, ctx, frames)
    elif use_zones and config.profile in (Profile.Hub, Profile.Fanout):
        place_zoned_star(groups, ctx, frames)
    else:
        place_groups(groups, ctx, frames)

    # Strategies fill in their own order; hand back the authored order.
    placed = {c.id: c for c in frames.components}
    components = [placed[cid] for cid in dict.fromkeys(c.id for c in scene.components) if cid in placed]

    stage_w, stage_h = stage_size(components, frames.zones, config)
    logger.info(
        "Layout complete: profile=%s zones=%d components=%d stage=%sx%s",
        config.profile.value,
        len(frames.zones),
        len(components),
        stage_w,
        stage_h,
    )
    return Placement(components, frames.zones, stage_w, stage_h)
