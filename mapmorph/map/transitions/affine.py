"""
affine.py
---------
Closed-form camera math shared by every level transition.

A scene point p is drawn at

    world(p) = pivot + Rot(spin) * [pan + scale * Rot(pre_rotation) * (p - anchor)]

All functions here are pure and work on (x, y) tuples so they can be
evaluated in tests without a display.

Responsibilities
----------------
- Easing curves (symmetric: e(1 - t) == 1 - e(t)).
- The world transform and its canvas equivalent.
- Pan strategies that keep both endpoint poses exact.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from mapmorph.core.runtime.map_settings import Morph


Vec2 = Tuple[float, float]


# ===========================================================
# Scalar Helpers
# ===========================================================

def clamp01(t: float) -> float:
    return 0.0 if t < 0.0 else 1.0 if t > 1.0 else t


def lerp(a: float, b: float, t: float) -> float:
    # Exact at both ends
    return a * (1.0 - t) + b * t


def lerp_point(a: Vec2, b: Vec2, t: float) -> Vec2:
    return (lerp(a[0], b[0], t), lerp(a[1], b[1], t))


def ease_in_out_quad(t: float) -> float:
    """Used for fades."""
    t = clamp01(t)
    return 2 * t * t if t < 0.5 else -1 + (4 - 2 * t) * t


def ease_in_out_cubic(t: float) -> float:
    """Used for camera motion."""
    t = clamp01(t)
    return 4 * t * t * t if t < 0.5 else 1 - ((-2 * t + 2) ** 3) / 2


# ===========================================================
# Vector Helpers
# ===========================================================

def add(a: Vec2, b: Vec2) -> Vec2:
    return (a[0] + b[0], a[1] + b[1])


def sub(a: Vec2, b: Vec2) -> Vec2:
    return (a[0] - b[0], a[1] - b[1])


def mul(v: Vec2, k: float) -> Vec2:
    return (v[0] * k, v[1] * k)


def rotate(v: Vec2, angle: float) -> Vec2:
    if angle == 0.0:
        return v
    c, s = math.cos(angle), math.sin(angle)
    return (v[0] * c - v[1] * s, v[0] * s + v[1] * c)


def distance(a: Vec2, b: Vec2) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


# ===========================================================
# Scene Pose
# ===========================================================

@dataclass(frozen=True)
class ScenePose:
    """Where one scene is drawn at one instant."""
    scale: float = 1.0
    pre_rotation: float = 0.0
    anchor: Vec2 = (0.0, 0.0)
    spin: float = 0.0
    pan: Vec2 = (0.0, 0.0)
    pivot: Vec2 = (0.0, 0.0)

    def apply(self, p: Vec2) -> Vec2:
        """Scene-local point to world (screen) coordinates."""
        local = rotate(sub(p, self.anchor), self.pre_rotation)
        inner = add(self.pan, mul(local, self.scale))
        return add(self.pivot, rotate(inner, self.spin))

    def apply_radius(self, r: float) -> float:
        return r * abs(self.scale)

    def apply_to_canvas(self, canvas) -> None:
        """Push the same transform onto a canvas (outermost call first)."""
        canvas.translate(*self.pivot)
        canvas.rotate(self.spin)
        canvas.translate(*self.pan)
        canvas.scale(self.scale)
        canvas.rotate(self.pre_rotation)
        canvas.translate(-self.anchor[0], -self.anchor[1])


# ===========================================================
# Pan Strategies
# ===========================================================

class PanStrategy(Enum):
    """How the pan vector travels between its two endpoint values."""
    MIRRORED_LINEAR = "mirrored_linear"
    IDENTITY_START = "identity_start"
    FORWARD_INVERSE = "forward_inverse"
    ZERO = "zero"


def pan_at(strategy: PanStrategy, start: Vec2, end: Vec2, eased: float,
           hi_scale_now: float = 1.0, hi_scale_start: float = 1.0,
           hi_scale_end: float = 1.0) -> Vec2:
    """
    Pan vector for one instant.

    `eased` is the eased time of the frame the endpoints were expressed in.
    FORWARD_INVERSE weights the start pan by how much of the fine scene's
    inverse scale remains; it reduces to linear when the scale barely moves.
    """
    if strategy is PanStrategy.ZERO:
        return (0.0, 0.0)

    if strategy is PanStrategy.FORWARD_INVERSE:
        inv_start = 1.0 / hi_scale_start
        inv_end = 1.0 / hi_scale_end
        span = inv_start - inv_end
        if abs(span) > Morph.RATIO_EPSILON:
            w = (1.0 / hi_scale_now - inv_end) / span
            return lerp_point(end, start, w)

    return lerp_point(start, end, eased)
