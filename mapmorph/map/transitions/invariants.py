"""
invariants.py
-------------
Numeric checks of the transition contract, used by the orchestrator at
begin() (reported at VERBOSE level) and by the property tests.

- Endpoint identity: from scene untouched at t = 0, to scene at t = 1.
- Reversal: reverse at t draws exactly what forward draws at 1 - t.
"""

from typing import Iterable, List

from mapmorph.core.debug.debug_logger import DebugLogger
from mapmorph.map.layout.scene_layout import SceneSnapshot
from mapmorph.map.transitions.affine import Vec2, distance
from mapmorph.map.transitions.morph_params import MorphParams

TOLERANCE = 1e-6


def _sample_points(snapshot: SceneSnapshot) -> List[Vec2]:
    points = [n.position for n in snapshot.nodes]
    points.append((0.0, 0.0))
    points.append((snapshot.width, snapshot.height))
    return points


def endpoint_error(params: MorphParams) -> float:
    """Largest displacement of any sample point at the two identity instants."""
    start = params.pose_at(0.0)
    end = params.pose_at(1.0)
    worst = 0.0
    for p in _sample_points(params.from_snapshot):
        worst = max(worst, distance(start.from_pose.apply(p), p))
    for p in _sample_points(params.to_snapshot):
        worst = max(worst, distance(end.to_pose.apply(p), p))
    return worst


def scale_endpoint_error(params: MorphParams) -> float:
    return max(abs(params.pose_at(0.0).from_pose.scale - 1.0),
               abs(params.pose_at(1.0).to_pose.scale - 1.0))


def reversal_error(forward: MorphParams, reverse: MorphParams, steps: int = 20) -> float:
    """Largest position difference between forward(t) and reverse(1 - t)."""
    lo_points = _sample_points(forward.adjacency.lo_snapshot)
    hi_points = _sample_points(forward.adjacency.hi_snapshot)
    worst = 0.0
    for t in _times(steps):
        f = forward.pose_at(t)
        r = reverse.pose_at(1.0 - t)
        # Forward draws lo as "from"; reverse draws lo as "to"
        for p in lo_points:
            worst = max(worst, distance(f.from_pose.apply(p), r.to_pose.apply(p)))
        for p in hi_points:
            worst = max(worst, distance(f.to_pose.apply(p), r.from_pose.apply(p)))
    return worst


def _times(steps: int) -> Iterable[float]:
    return (i / steps for i in range(steps + 1))


def report(params: MorphParams) -> bool:
    """Log residuals; True when the endpoint contract holds."""
    err = max(endpoint_error(params), scale_endpoint_error(params))
    ok = DebugLogger.residual(
        f"{params.spec.key} {params.direction.value} endpoint",
        err,
        TOLERANCE * max(1.0, params.from_snapshot.width),
    )
    if not ok:
        DebugLogger.warn(f"{params.spec.key}: transition does not start or end on the native scene",
                         category="affine")
    return ok
