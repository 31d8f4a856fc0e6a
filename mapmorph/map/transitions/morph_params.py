"""
morph_params.py
---------------
Resolves a forward TransitionSpec into concrete, per-frame camera poses
for either playing direction.

Everything is computed once in the forward frame (low scene at forward
time 0, high scene at forward time 1). Playing in reverse evaluates the
same poses at u = 1 - t, so the reverse animation is the forward one
played backwards, frame for frame. The single exception is the
identity_start pan, whose pivot follows the playing direction.

Endpoint contract
-----------------
- low scene at u = 0: scale 1, spin 0, pan puts its anchor where it was
- high scene at u = 1: scale 1, spin + pre_rotation = 0, same for its anchor
"""

import math
from dataclasses import dataclass
from enum import Enum

from mapmorph.core.debug.debug_logger import DebugLogger
from mapmorph.core.runtime.map_settings import Morph
from mapmorph.map.layout.scene_layout import SceneSnapshot
from mapmorph.map.transitions.affine import (
    PanStrategy,
    ScenePose,
    Vec2,
    clamp01,
    ease_in_out_cubic,
    ease_in_out_quad,
    lerp,
    pan_at,
    rotate,
    sub,
)
from mapmorph.map.transitions.anchor_resolver import (
    Adjacency,
    resolve_anchor,
    resolve_ratio,
    resolve_rotation,
)
from mapmorph.map.transitions.transition_spec import (
    PivotEnd,
    RotationMode,
    SceneRole,
    TransitionSpec,
)


class Direction(Enum):
    FORWARD = "forward"    # coarse to fine
    REVERSE = "reverse"    # fine to coarse

    @classmethod
    def from_levels(cls, from_level: int, to_level: int) -> "Direction":
        return cls.REVERSE if from_level > to_level else cls.FORWARD


@dataclass(frozen=True)
class FramePose:
    """Both scene poses plus eased values for one playing instant."""
    t: float
    u: float
    eased: float
    from_pose: ScenePose
    to_pose: ScenePose
    from_alpha: float
    to_alpha: float


@dataclass(frozen=True)
class MorphParams:
    """Concrete parameters of one adjacency played in one direction."""
    spec: TransitionSpec
    adjacency: Adjacency
    direction: Direction
    anchor_lo: Vec2
    anchor_hi: Vec2
    pivot: Vec2
    spin_target: float
    ratio: float
    pan_strategy: PanStrategy
    pan_lo: Vec2
    pan_hi: Vec2

    # -----------------------------------------------------------
    # Role helpers
    # -----------------------------------------------------------
    @property
    def reverse(self) -> bool:
        return self.direction is Direction.REVERSE

    @property
    def from_role(self) -> SceneRole:
        return SceneRole.HIGH if self.reverse else SceneRole.LOW

    @property
    def to_role(self) -> SceneRole:
        return SceneRole.LOW if self.reverse else SceneRole.HIGH

    @property
    def from_snapshot(self) -> SceneSnapshot:
        return self.adjacency.snapshot_for(self.from_role)

    @property
    def to_snapshot(self) -> SceneSnapshot:
        return self.adjacency.snapshot_for(self.to_role)

    @property
    def pre_rotation_hi(self) -> float:
        return -self.spin_target

    # -----------------------------------------------------------
    # Forward-frame curves
    # -----------------------------------------------------------
    def forward_time(self, t: float) -> float:
        t = clamp01(t)
        return 1.0 - t if self.reverse else t

    def scales_at(self, u: float):
        """(low scale, high scale) at forward time u."""
        e = ease_in_out_cubic(u)
        r = self.ratio
        # The source scene is drawn at S, the other at S * R; endpoints
        # are written out so scale_from(0) and scale_to(1) are exactly 1
        if self.spec.scale.source is SceneRole.LOW:
            return lerp(1.0, 1.0 / r, e), lerp(r, 1.0, e)
        return lerp(1.0, r, e), lerp(1.0 / r, 1.0, e)

    def pan_at(self, u: float) -> Vec2:
        e = ease_in_out_cubic(u)
        _, hi_now = self.scales_at(u)
        _, hi_start = self.scales_at(0.0)
        return pan_at(self.pan_strategy, self.pan_lo, self.pan_hi, e,
                      hi_scale_now=hi_now, hi_scale_start=hi_start, hi_scale_end=1.0)

    def poses_at_forward(self, u: float):
        """(low pose, high pose) at forward time u."""
        e = ease_in_out_cubic(u)
        s_lo, s_hi = self.scales_at(u)
        spin = self.spin_target * e
        pan = self.pan_at(u)
        lo = ScenePose(s_lo, 0.0, self.anchor_lo, spin, pan, self.pivot)
        hi = ScenePose(s_hi, self.pre_rotation_hi, self.anchor_hi, spin, pan, self.pivot)
        return lo, hi

    # -----------------------------------------------------------
    # Playing frame
    # -----------------------------------------------------------
    def pose_at(self, t: float) -> FramePose:
        """Poses and fade alphas at playing time t in [0, 1]."""
        t = clamp01(t)
        u = self.forward_time(t)
        lo, hi = self.poses_at_forward(u)
        eased = ease_in_out_cubic(t)

        fades = self.spec.fades
        k_out = clamp01((eased - fades.out_start) / max(Morph.RATIO_EPSILON, fades.out_end - fades.out_start))
        k_in = clamp01(eased / max(Morph.RATIO_EPSILON, fades.in_end))

        from_pose, to_pose = (hi, lo) if self.reverse else (lo, hi)
        return FramePose(
            t=t,
            u=u,
            eased=eased,
            from_pose=from_pose,
            to_pose=to_pose,
            from_alpha=1.0 - ease_in_out_quad(k_out),
            to_alpha=ease_in_out_quad(k_in),
        )


# ===========================================================
# Resolution
# ===========================================================

def spin_target_for(spec: TransitionSpec, angle: float) -> float:
    """
    Total camera spin over the transition.

    Side-angle turns spin the long way round (angle - sign * pi), so the
    fine scene arrives upright after starting inverted relative to it.
    """
    if spec.rotation.mode is RotationMode.SIDE_ANGLES:
        sign = 1.0 if angle >= 0 else -1.0
        return angle - sign * math.pi
    return angle


def resolve(spec: TransitionSpec, adjacency: Adjacency, direction: Direction) -> MorphParams:
    """
    Concrete parameters for playing spec in the given direction.

    Anchors, rotation and ratio are read in the forward frame; only the
    identity_start pivot depends on direction.
    """
    anchor_lo = resolve_anchor(spec.anchor_from, adjacency.lo_snapshot, adjacency)
    anchor_hi = resolve_anchor(spec.anchor_to, adjacency.hi_snapshot, adjacency)
    spin_target = spin_target_for(spec, resolve_rotation(spec.rotation, adjacency))
    ratio = resolve_ratio(spec.scale, adjacency)

    strategy = spec.pan_strategy
    reverse = direction is Direction.REVERSE

    if strategy is PanStrategy.IDENTITY_START:
        # Pivot on the named end of the playing direction
        pivot_on_hi = (spec.pivot is PivotEnd.TO) != reverse
    else:
        pivot_on_hi = spec.pivot is PivotEnd.TO
    pivot = anchor_hi if pivot_on_hi else anchor_lo

    pan_lo = sub(anchor_lo, pivot)
    pan_hi = rotate(sub(anchor_hi, pivot), -spin_target)

    if strategy is PanStrategy.ZERO:
        drift = max(math.hypot(*pan_lo), math.hypot(*pan_hi))
        if drift > Morph.ANCHOR_EPSILON:
            DebugLogger.warn(f"{spec.key}: zero pan with anchors {drift:.1f}px apart, using linear pan",
                             category="transition")
            strategy = PanStrategy.MIRRORED_LINEAR

    params = MorphParams(
        spec=spec,
        adjacency=adjacency,
        direction=direction,
        anchor_lo=anchor_lo,
        anchor_hi=anchor_hi,
        pivot=pivot,
        spin_target=spin_target,
        ratio=ratio,
        pan_strategy=strategy,
        pan_lo=pan_lo,
        pan_hi=pan_hi,
    )
    DebugLogger.trace(
        f"{spec.key} {direction.value}: ratio={ratio:.3f} spin={spin_target:.3f} "
        f"pan={strategy.value} pivot=({pivot[0]:.1f}, {pivot[1]:.1f})",
        category="affine",
    )
    return params
