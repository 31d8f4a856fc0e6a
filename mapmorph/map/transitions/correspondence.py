"""
correspondence.py
-----------------
Maps individual locations of the low scene onto locations of the high
scene while the camera moves, so a circle in one scene visibly becomes
its counterpart in the other.

Each pair is stored in the forward frame (low point, high point). Per
frame both points go through their own scene pose and the results are
blended by eased forward time, so a pair replays identically in reverse.

Responsibilities
----------------
- single_door: one low entity <-> one high entity.
- ring_to_mini4: ring leader + up to 4 satellites <-> group node + its
  4 mini dots, paired by angular rank around each side's centroid.
- Hide sets: pairs are drawn as overlays, so the static scenes skip them.
- Moving labels that stay upright and shrink or grow with the motion.
"""

import math
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Sequence, Tuple

from mapmorph.core.debug.debug_logger import DebugLogger
from mapmorph.core.runtime.map_settings import Labels, MiniCluster
from mapmorph.map.layout.scene_layout import Node, NodeKind, group_mini_positions
from mapmorph.map.transitions.affine import Vec2, ease_in_out_cubic, lerp, lerp_point
from mapmorph.map.transitions.morph_params import MorphParams
from mapmorph.map.transitions.transition_spec import MappingMode, SceneRole


# ===========================================================
# Data Model
# ===========================================================

@dataclass(frozen=True)
class OverlayLabel:
    """Screen-space label drawn upright above a moving circle."""
    text: str
    position: Vec2
    font_scale: float
    alpha: float


@dataclass(frozen=True)
class OverlayEntity:
    """One moving circle at one instant."""
    position: Vec2
    radius: float
    kind: str
    label: Optional[OverlayLabel] = None


@dataclass(frozen=True)
class EntityPair:
    """Scene-local endpoints of one corresponding entity."""
    lo_point: Vec2
    lo_radius: float
    hi_point: Vec2
    hi_radius: float
    kind: str = "satellite"
    lo_label: Optional[str] = None
    hi_label: Optional[str] = None


@dataclass(frozen=True)
class Correspondence:
    """Pairs plus the indices each static scene must not draw."""
    mode: MappingMode
    pairs: Tuple[EntityPair, ...] = ()
    hide_lo: FrozenSet[int] = field(default_factory=frozenset)
    hide_hi: FrozenSet[int] = field(default_factory=frozenset)
    ring_role: Optional[SceneRole] = None

    def hidden_for(self, role: SceneRole) -> FrozenSet[int]:
        return self.hide_lo if role is SceneRole.LOW else self.hide_hi

    def overlays_at(self, params: MorphParams, t: float) -> List[OverlayEntity]:
        """World-space overlay circles for playing time t."""
        u = params.forward_time(t)
        lo_pose, hi_pose = params.poses_at_forward(u)
        e_fwd = ease_in_out_cubic(u)
        e_play = ease_in_out_cubic(t)

        # Satellite labels live in the ring scene: they grow while it is
        # being entered and shrink while it is being left
        ring_is_destination = self.ring_role is not None and self.ring_role is params.to_role
        k = e_play if ring_is_destination else 1.0 - e_play

        overlays = []
        for pair in self.pairs:
            w_lo = lo_pose.apply(pair.lo_point)
            w_hi = hi_pose.apply(pair.hi_point)
            position = lerp_point(w_lo, w_hi, e_fwd)
            radius = lerp(lo_pose.apply_radius(pair.lo_radius), hi_pose.apply_radius(pair.hi_radius), e_fwd)

            if pair.kind == "satellite":
                label = _satellite_label(pair, position, radius, k, self.ring_role)
            else:
                label = _cross_fade_label(pair, position, radius, e_fwd)
            overlays.append(OverlayEntity(position, radius, pair.kind, label))
        return overlays


# ===========================================================
# Labels
# ===========================================================

def label_text(node: Optional[Node]) -> Optional[str]:
    if node is None or not node.name_known:
        return None
    return node.label


def _label_anchor(position: Vec2, radius: float) -> Vec2:
    return (position[0], position[1] - (radius + Labels.OFFSET_ABOVE))


def _satellite_label(pair: EntityPair, position: Vec2, radius: float, k: float,
                     ring_role: Optional[SceneRole]) -> Optional[OverlayLabel]:
    text = pair.lo_label if ring_role is SceneRole.LOW else pair.hi_label
    if not text:
        return None
    return OverlayLabel(text, _label_anchor(position, radius), max(Labels.MIN_FONT_SCALE, k), k)


def _cross_fade_label(pair: EntityPair, position: Vec2, radius: float,
                      e_fwd: float) -> Optional[OverlayLabel]:
    # Low label fades out over the first half, high label in over the second
    text = pair.lo_label if e_fwd < 0.5 else pair.hi_label
    if not text:
        return None
    return OverlayLabel(text, _label_anchor(position, radius), 1.0, abs(1.0 - 2.0 * e_fwd))


# ===========================================================
# Angular Pairing
# ===========================================================

def angle_order(points: Sequence[Vec2]) -> List[int]:
    """
    Indices of points sorted by angle around their centroid.

    Ties (coincident angles) fall back to distance then coordinates, never
    to list position, so the order depends only on geometry.
    """
    if not points:
        return []
    cx = sum(p[0] for p in points) / len(points)
    cy = sum(p[1] for p in points) / len(points)

    def sort_key(i):
        dx, dy = points[i][0] - cx, points[i][1] - cy
        return (round(math.atan2(dy, dx), 9), round(math.hypot(dx, dy), 9), points[i][0], points[i][1])

    return sorted(range(len(points)), key=sort_key)


# ===========================================================
# Builders
# ===========================================================

def build_correspondence(params: MorphParams) -> Correspondence:
    """Correspondence for the mapping mode named by the transition spec."""
    mode = params.spec.mapping.mode
    if mode is MappingMode.SINGLE_DOOR:
        return single_door(params)
    if mode is MappingMode.RING_TO_MINI4:
        return ring_to_mini4(params)
    return Correspondence(mode=MappingMode.NONE)


def single_door(params: MorphParams) -> Correspondence:
    """One low entity travels into one high entity."""
    adj = params.adjacency
    mapping = params.spec.mapping
    lo_index = mapping.low_index if mapping.low_index is not None else adj.lo_index

    lo_node = adj.lo_snapshot.node(lo_index)
    hi_node = adj.hi_snapshot.node(adj.hi_index)
    if lo_node is None or hi_node is None:
        DebugLogger.warn(f"single_door: missing node lo={lo_index} hi={adj.hi_index}", category="mapping")
        return Correspondence(mode=MappingMode.SINGLE_DOOR)

    pair = EntityPair(
        lo_point=lo_node.position, lo_radius=lo_node.radius,
        hi_point=hi_node.position, hi_radius=hi_node.radius,
        kind="door",
        lo_label=label_text(lo_node), hi_label=label_text(hi_node),
    )
    return Correspondence(
        mode=MappingMode.SINGLE_DOOR,
        pairs=(pair,),
        hide_lo=frozenset({lo_node.index}),
        hide_hi=frozenset({hi_node.index}),
    )


def ring_to_mini4(params: MorphParams) -> Correspondence:
    """
    Ring leader and satellites collapse into one group node and its dots.

    Satellites and dots are each sorted by angle around their own
    centroid and paired by rank. Dots left without a satellite (small
    rings) emerge from the leader.
    """
    adj = params.adjacency
    ring_role = params.spec.mapping.ring_scene
    group_role = params.spec.mapping.group_scene
    ring = adj.snapshot_for(ring_role)
    group_snapshot = adj.snapshot_for(group_role)
    group = group_snapshot.node(adj.index_for(group_role))

    leader = ring.node(ring.meta.hub_index)
    if group is None or leader is None:
        DebugLogger.warn(f"ring_to_mini4: no group node {adj.index_for(group_role)} or ring leader",
                         category="mapping")
        return Correspondence(mode=MappingMode.RING_TO_MINI4, ring_role=ring_role)

    ring_nodes = [n for n in ring.nodes if n.index <= MiniCluster.COUNT]
    satellites = [n for n in ring_nodes if n.index != leader.index]
    minis = group_mini_positions(group)

    sat_order = angle_order([s.position for s in satellites])
    mini_order = angle_order(minis)

    ring_side = [(leader.position, leader.radius, label_text(leader), "leader")]
    group_side = [(group.position, group.radius, label_text(group))]
    for rank, mini_idx in enumerate(mini_order):
        if rank < len(sat_order):
            sat = satellites[sat_order[rank]]
            ring_side.append((sat.position, sat.radius, label_text(sat), "satellite"))
        else:
            ring_side.append((leader.position, NodeKind.SATELLITE.radius, None, "satellite"))
        group_side.append((minis[mini_idx], MiniCluster.DOT_RADIUS, None))

    pairs = []
    for (r_point, r_radius, r_label, kind), (g_point, g_radius, g_label) in zip(ring_side, group_side):
        if ring_role is SceneRole.LOW:
            pairs.append(EntityPair(r_point, r_radius, g_point, g_radius, kind, r_label, g_label))
        else:
            pairs.append(EntityPair(g_point, g_radius, r_point, r_radius, kind, g_label, r_label))

    ring_hidden = frozenset(n.index for n in ring_nodes)
    group_hidden = frozenset({group.index})
    hide_lo, hide_hi = (ring_hidden, group_hidden) if ring_role is SceneRole.LOW else (group_hidden, ring_hidden)

    DebugLogger.trace(
        f"ring_to_mini4: satellites {[satellites[i].index for i in sat_order]} -> dots {mini_order}",
        category="mapping",
    )
    return Correspondence(
        mode=MappingMode.RING_TO_MINI4,
        pairs=tuple(pairs),
        hide_lo=hide_lo,
        hide_hi=hide_hi,
        ring_role=ring_role,
    )
