"""
anchor_resolver.py
------------------
Turns declarative anchor, rotation and scale descriptors into concrete
numbers for one adjacency.

Every lookup happens in the forward frame: the low (coarse) snapshot and
the high (fine) snapshot, whatever the playing direction is. Missing
inputs never raise; they fall back to the first node, then the viewport
center, and ratios fall back to 1.0.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from mapmorph.core.debug.debug_logger import DebugLogger
from mapmorph.core.runtime.map_settings import Morph, RoomGeometry
from mapmorph.map.layout.room_geometry import door_center, doorway_rect
from mapmorph.map.layout.scene_layout import SceneSnapshot, group_mini_positions
from mapmorph.map.transitions.affine import Vec2, distance
from mapmorph.map.transitions.transition_spec import (
    AnchorDescriptor,
    AnchorType,
    IndexRole,
    RotationMode,
    RotationSpec,
    ScaleMode,
    ScaleSpec,
    SceneRole,
)


@dataclass(frozen=True)
class Adjacency:
    """Both snapshots of a transition, ordered coarse (lo) to fine (hi)."""
    lo_snapshot: SceneSnapshot
    hi_snapshot: SceneSnapshot
    lo_index: int
    hi_index: int
    viewport: Tuple[float, float]

    @property
    def lo(self) -> int:
        return self.lo_snapshot.level

    @property
    def hi(self) -> int:
        return self.hi_snapshot.level

    def snapshot_for(self, role: SceneRole) -> SceneSnapshot:
        return self.lo_snapshot if role is SceneRole.LOW else self.hi_snapshot

    def index_for(self, role: SceneRole) -> int:
        return self.lo_index if role is SceneRole.LOW else self.hi_index

    def role_of(self, snapshot: SceneSnapshot) -> SceneRole:
        return SceneRole.LOW if snapshot is self.lo_snapshot or snapshot.level == self.lo else SceneRole.HIGH

    @property
    def viewport_center(self) -> Vec2:
        return (self.viewport[0] * 0.5, self.viewport[1] * 0.5)


# ===========================================================
# Indices & Anchors
# ===========================================================

def resolve_index(desc: AnchorDescriptor, snapshot: SceneSnapshot, adj: Adjacency) -> int:
    """
    Location index an anchor refers to.

    from_index and to_index both mean 'the active location of the scene
    this descriptor is evaluated against', so one forward entry reads the
    right index whichever way the transition plays.
    """
    if desc.which is IndexRole.FIXED:
        return desc.index
    return adj.index_for(adj.role_of(snapshot))


def resolve_anchor(desc: AnchorDescriptor, snapshot: SceneSnapshot, adj: Adjacency) -> Vec2:
    """Scene-local point the anchor descriptor names."""
    index = resolve_index(desc, snapshot, adj)

    if desc.type is AnchorType.DOOR_CENTER:
        point = door_center(snapshot, index)
    else:
        node = snapshot.node(index)
        point = node.position if node is not None else None

    if point is not None:
        return point

    if snapshot.nodes:
        DebugLogger.warn(f"L{snapshot.level} anchor index {index} missing, using node 0", category="transition")
        return snapshot.nodes[0].position

    DebugLogger.warn(f"L{snapshot.level} has no nodes, anchoring at viewport center", category="transition")
    return adj.viewport_center


# ===========================================================
# Rotation
# ===========================================================

def resolve_rotation(spec: RotationSpec, adj: Adjacency) -> float:
    """
    Forward rotation angle for the adjacency.

    side_angles looks at the active door of the fine scene: a door in the
    left wall, one in the right wall, or the center (hub) each map to
    their own configured angle.
    """
    if spec.mode is RotationMode.CONSTANT:
        return spec.value

    snapshot = adj.hi_snapshot
    node = snapshot.node(adj.hi_index)
    if node is None or node.index == snapshot.meta.hub_index:
        return spec.center

    hall = snapshot.meta.hallway
    center_x = hall.center_x if hall is not None else snapshot.width * 0.5
    if abs(node.x - center_x) < 1e-6:
        return spec.center
    return spec.left if node.x < center_x else spec.right


# ===========================================================
# Scale Ratios
# ===========================================================

def _pair_distance(adj: Adjacency, pair: Tuple[int, int]) -> Optional[float]:
    a = adj.lo_snapshot.node(pair[0])
    b = adj.lo_snapshot.node(pair[1])
    if a is None or b is None:
        return None
    return distance(a.position, b.position)


def _mini_distance(adj: Adjacency, mini_index: int) -> Optional[float]:
    group = adj.hi_snapshot.node(adj.hi_index)
    if group is None:
        return None
    minis = group_mini_positions(group)
    if not 0 <= mini_index < len(minis):
        return None
    return distance(group.position, minis[mini_index])


def pair_to_mini_ratio(spec: ScaleSpec, adj: Adjacency) -> Optional[float]:
    """Coarse pair spacing over fine group-to-mini spacing (low side measure first)."""
    low = _pair_distance(adj, spec.pair)
    high = _mini_distance(adj, spec.mini_index)
    if low is None or high is None:
        return None
    return _oriented(low, high, spec.source)


def door_gap_ratio(spec: ScaleSpec, adj: Adjacency) -> Optional[float]:
    """Width of the group doorway gap over the height of a hallway door gap."""
    rect = doorway_rect(adj.lo_snapshot) if adj.lo_snapshot.nodes else None
    gap_w = rect.w - RoomGeometry.DOORWAY_PAD * 2 if rect is not None else RoomGeometry.DOOR_GAP_WIDTH
    low = max(1.0, gap_w)
    high = max(1.0, 2 * spec.door_gap_half)
    return _oriented(low, high, spec.source)


def _oriented(low_measure: float, high_measure: float, source: SceneRole) -> float:
    # Numerator comes from the source scene
    if source is SceneRole.LOW:
        return low_measure / max(Morph.MIN_RATIO, high_measure)
    return high_measure / max(Morph.MIN_RATIO, low_measure)


def resolve_ratio(spec: ScaleSpec, adj: Adjacency) -> float:
    """Scale ratio R, clamped to at least MIN_RATIO. Unresolvable inputs give 1.0."""
    if spec.mode is ScaleMode.NONE:
        return 1.0

    if spec.mode is ScaleMode.PAIR_TO_MINI:
        ratio = pair_to_mini_ratio(spec, adj)
    else:
        ratio = door_gap_ratio(spec, adj)

    if ratio is None:
        DebugLogger.warn(f"{spec.mode.value} ratio unresolved for {adj.lo}->{adj.hi}, using 1.0",
                         category="transition")
        return 1.0
    return max(Morph.MIN_RATIO, ratio)
