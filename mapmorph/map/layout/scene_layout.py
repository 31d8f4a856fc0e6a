"""
scene_layout.py
---------------
Deterministic node placement for every map level.

Responsibilities
----------------
- Place coarse levels on a ring (hub at index 0, others evenly spaced
  starting at the top) and the finest level as a hallway of doors.
- Expose immutable SceneSnapshot objects, the unit every transition captures.
- Cache geometry per (level, width, height, count) and re-apply discovery and
  label flags without recomputing positions.
- Compute the mini-cluster dot positions drawn beneath group nodes.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from mapmorph.core.debug.debug_logger import DebugLogger
from mapmorph.core.runtime.map_settings import LayoutConfig, Levels, MiniCluster, Radii
from mapmorph.core.runtime.map_state import MapState


Point = Tuple[float, float]


# ===========================================================
# Node Model
# ===========================================================

class NodeKind(Enum):
    """Visual role of a location circle."""
    LEADER = "leader"
    SATELLITE = "satellite"
    DOORWAY = "doorway"

    @property
    def radius(self) -> float:
        return _KIND_RADII[self]


_KIND_RADII = {
    NodeKind.SATELLITE: Radii.SATELLITE,
    NodeKind.LEADER: Radii.LEADER,
    NodeKind.DOORWAY: Radii.DOORWAY,
}


def node_kind(level: int, index: int) -> NodeKind:
    """Level 0: leader hub with satellites. Deeper levels: doorway hub with leaders."""
    if level == Levels.COARSE:
        return NodeKind.LEADER if index == 0 else NodeKind.SATELLITE
    return NodeKind.DOORWAY if index == 0 else NodeKind.LEADER


@dataclass(frozen=True)
class Node:
    """One placed location."""
    index: int
    x: float
    y: float
    kind: NodeKind
    label: Optional[str] = None
    discovered: bool = True
    name_known: bool = False

    @property
    def position(self) -> Point:
        return (self.x, self.y)

    @property
    def radius(self) -> float:
        return self.kind.radius


@dataclass(frozen=True)
class HallwayMeta:
    """Wall geometry of the finest level."""
    x_left: float
    x_right: float
    y_top: float
    y_bottom: float
    center_x: float


@dataclass(frozen=True)
class LayoutMeta:
    """Level-specific layout facts needed by anchors and hit tests."""
    center: Point
    hub_index: int = 0
    ring_radius: Optional[float] = None
    hallway: Optional[HallwayMeta] = None


@dataclass(frozen=True)
class SceneSnapshot:
    """
    Immutable positions of one level at one viewport size.

    Captured before a level change so a transition can keep drawing the
    scene being left after the game state has moved on.
    """
    level: int
    width: float
    height: float
    nodes: Tuple[Node, ...]
    meta: LayoutMeta

    def node(self, index: int) -> Optional[Node]:
        for n in self.nodes:
            if n.index == index:
                return n
        return None

    @property
    def center(self) -> Point:
        return (self.width * 0.5, self.height * 0.5)

    @property
    def edges(self) -> List[Tuple[int, int]]:
        """Star edges from the hub to every other node."""
        hub = self.meta.hub_index
        return [(hub, n.index) for n in self.nodes if n.index != hub]

    @property
    def is_hallway(self) -> bool:
        return self.meta.hallway is not None

    @property
    def key(self) -> Tuple[int, float, float, int]:
        return (self.level, self.width, self.height, len(self.nodes))


# ===========================================================
# Placement
# ===========================================================

def circle_positions(count: int, cx: float, cy: float, r: float) -> List[Point]:
    """Evenly spaced points on a circle, index 0 at the top."""
    points = []
    for i in range(count):
        t = (i / count) * math.pi * 2 - math.pi / 2
        points.append((cx + r * math.cos(t), cy + r * math.sin(t)))
    return points


def ring_radius(level: int, width: float, height: float) -> float:
    """Ring radius for a coarse level, shrunk to leave header room above the hub."""
    pad = LayoutConfig.PAD
    cy = height * 0.5
    r = max(LayoutConfig.MIN_RING_RADIUS,
            min(cy - pad, width * LayoutConfig.RING_WIDTH_FRACTION - pad))

    headroom = LayoutConfig.COARSE_HEADROOM if level == Levels.COARSE else LayoutConfig.GROUP_HEADROOM
    max_r = max(LayoutConfig.MIN_RING_RADIUS, cy - (pad + headroom))
    return min(r, max_r)


def _hallway_positions(count: int, width: float, height: float) -> Tuple[List[Point], HallwayMeta]:
    pad = LayoutConfig.PAD
    cx = width * 0.5
    hall_width = min(width * 0.5, LayoutConfig.HALLWAY_MAX_WIDTH)
    meta = HallwayMeta(
        x_left=cx - hall_width * 0.5,
        x_right=cx + hall_width * 0.5,
        y_top=pad + LayoutConfig.HALLWAY_TOP_OFFSET,
        y_bottom=height - pad - LayoutConfig.HALLWAY_BOTTOM_OFFSET,
        center_x=cx,
    )

    elevator_y = meta.y_top + LayoutConfig.ELEVATOR_DROP
    first_y = elevator_y + LayoutConfig.FIRST_DOOR_GAP
    step = (meta.y_bottom - first_y) / LayoutConfig.DOOR_SLOTS

    points = [(cx, elevator_y)] if count > 0 else []
    for i in range(1, count):
        y = first_y + (i - 1) * step + step * 0.5
        # Odd doors on the left wall, even doors on the right
        if i % 2 == 1:
            x = meta.x_left + LayoutConfig.DOOR_WALL_INSET
        else:
            x = meta.x_right - LayoutConfig.DOOR_WALL_INSET
        points.append((x, y))
    return points, meta


def build_scene_layout(level: int, width: float, height: float, count: int) -> SceneSnapshot:
    """
    Place `count` nodes for `level` inside a width x height viewport.

    Pure and deterministic: identical arguments give identical snapshots.
    Nodes carry default flags; use apply_state() to attach labels.
    """
    count = max(0, int(count))
    cx, cy = width * 0.5, height * 0.5

    if level >= Levels.HALLWAY:
        points, hallway = _hallway_positions(count, width, height)
        meta = LayoutMeta(center=(cx, cy), hallway=hallway)
    else:
        r = ring_radius(level, width, height)
        points = circle_positions(count, cx, cy, r)
        meta = LayoutMeta(center=(cx, cy), ring_radius=r)

    nodes = tuple(
        Node(index=i, x=x, y=y, kind=node_kind(level, i))
        for i, (x, y) in enumerate(points)
    )
    return SceneSnapshot(level=level, width=width, height=height, nodes=nodes, meta=meta)


def group_mini_positions(node: Node) -> List[Point]:
    """
    Sub-location dots beneath a group node: a shallow arc whose two outer
    dots sit slightly higher than the inner pair.
    """
    base_y = node.y + node.radius + MiniCluster.BELOW_OFFSET
    last = len(MiniCluster.MULTIPLIERS) - 1
    points = []
    for i, m in enumerate(MiniCluster.MULTIPLIERS):
        lift = MiniCluster.DOT_RADIUS * MiniCluster.OUTER_LIFT if i in (0, last) else 0.0
        points.append((node.x + m * MiniCluster.GAP, base_y - lift))
    return points


# ===========================================================
# Discovery & Labels
# ===========================================================

def apply_state(snapshot: SceneSnapshot, state: MapState) -> SceneSnapshot:
    """Attach labels and discovery flags from a game-state snapshot."""
    level = snapshot.level
    nodes = []
    for n in snapshot.nodes:
        visited = state.is_visited(level, n.index)
        label = state.name_for(level, n.index) or state.generic_label(level, n.index)
        nodes.append(replace(
            n,
            label=label,
            # Coarse spots stay hidden until reached; deeper places are always shown
            discovered=visited if level == Levels.COARSE else True,
            name_known=visited,
        ))
    return replace(snapshot, nodes=tuple(nodes))


def _carry_flags(fresh: SceneSnapshot, previous: SceneSnapshot) -> SceneSnapshot:
    """Keep flags of nodes that exist in both snapshots."""
    nodes = []
    for n in fresh.nodes:
        old = previous.node(n.index)
        if old is not None:
            n = replace(n, label=old.label, discovered=old.discovered, name_known=old.name_known)
        nodes.append(n)
    return replace(fresh, nodes=tuple(nodes))


class LayoutCache:
    """
    Memoizes build_scene_layout per level.

    Geometry is rebuilt only when (width, height, count) changes; a change
    limited to discovery or names re-applies flags on the cached positions.
    """

    def __init__(self):
        self._geometry: Dict[int, SceneSnapshot] = {}
        self._latest: Dict[int, SceneSnapshot] = {}
        self.builds = 0

    def get(self, level: int, width: float, height: float, count: int,
            state: Optional[MapState] = None) -> SceneSnapshot:
        """Snapshot for level at the given size, flags from state when given."""
        key = (level, width, height, max(0, int(count)))
        geometry = self._geometry.get(level)

        if geometry is None or geometry.key != key:
            geometry = build_scene_layout(level, width, height, count)
            self._geometry[level] = geometry
            self.builds += 1
            DebugLogger.trace(f"Rebuilt layout L{level} {width}x{height} n={count}", category="layout")

        if state is not None:
            snapshot = apply_state(geometry, state)
        elif level in self._latest:
            snapshot = _carry_flags(geometry, self._latest[level])
        else:
            snapshot = geometry

        self._latest[level] = snapshot
        return snapshot

    def for_state(self, state: MapState, level: int, width: float, height: float) -> SceneSnapshot:
        """Shorthand using the location count recorded in state."""
        return self.get(level, width, height, state.count_for(level), state)

    def invalidate(self) -> None:
        """Drop cached geometry (viewport resize). Flags survive."""
        self._geometry.clear()
