"""
test_affine.py
--------------
Easing curves, the world transform and pan strategies.
"""

import math

import pytest

from mapmorph.map.transitions.affine import (
    PanStrategy,
    ScenePose,
    clamp01,
    ease_in_out_cubic,
    ease_in_out_quad,
    lerp,
    pan_at,
    rotate,
)


SAMPLES = [i / 20 for i in range(21)]


def _moves_nothing(pose):
    return all(pose.apply(p) == pytest.approx(p, abs=1e-9) for p in ((0.0, 0.0), (100.0, 0.0), (0.0, 100.0)))


# ===========================================================
# Easing
# ===========================================================

@pytest.mark.property
@pytest.mark.parametrize("ease", [ease_in_out_cubic, ease_in_out_quad])
def test_easing_is_symmetric(ease):
    for t in SAMPLES:
        assert ease(1.0 - t) == pytest.approx(1.0 - ease(t), abs=1e-12)


@pytest.mark.parametrize("ease", [ease_in_out_cubic, ease_in_out_quad])
def test_easing_endpoints_and_clamp(ease):
    assert ease(0.0) == 0.0
    assert ease(1.0) == 1.0
    assert ease(-0.5) == 0.0
    assert ease(1.5) == 1.0
    assert ease(0.5) == pytest.approx(0.5)


@pytest.mark.parametrize("ease", [ease_in_out_cubic, ease_in_out_quad])
def test_easing_is_monotonic(ease):
    values = [ease(t) for t in SAMPLES]
    assert values == sorted(values)


def test_lerp_is_exact_at_ends():
    assert lerp(0.1, 7.3, 0.0) == 0.1
    assert lerp(0.1, 7.3, 1.0) == 7.3


def test_clamp01():
    assert (clamp01(-1), clamp01(0.3), clamp01(4)) == (0.0, 0.3, 1.0)


# ===========================================================
# World Transform
# ===========================================================

def test_rotate_quarter_turn():
    assert rotate((1.0, 0.0), math.pi / 2) == pytest.approx((0.0, 1.0))


def test_default_pose_is_identity():
    pose = ScenePose()
    assert _moves_nothing(pose)
    assert pose.apply((12.5, -3.0)) == (12.5, -3.0)


def test_anchor_lands_on_pivot_plus_pan():
    pose = ScenePose(scale=3.0, pre_rotation=0.4, anchor=(10, 20), spin=1.1, pan=(5, 0), pivot=(100, 100))
    expected = (100 + rotate((5, 0), 1.1)[0], 100 + rotate((5, 0), 1.1)[1])
    assert pose.apply((10, 20)) == pytest.approx(expected)


def test_scale_and_rotation_act_about_anchor():
    pose = ScenePose(scale=2.0, anchor=(10, 10), pivot=(10, 10))
    assert pose.apply((11, 10)) == pytest.approx((12, 10))
    spun = ScenePose(spin=math.pi, pivot=(0, 0))
    assert spun.apply((1, 2)) == pytest.approx((-1, -2))


def test_pre_rotation_cancels_spin():
    pose = ScenePose(scale=1.0, pre_rotation=-0.7, spin=0.7, anchor=(3, 4), pivot=(3, 4))
    assert _moves_nothing(pose)



def test_radius_scales_with_magnitude():
    assert ScenePose(scale=2.5).apply_radius(4) == 10
    assert ScenePose(scale=-2.0).apply_radius(4) == 8


# ===========================================================
# Pan Strategies
# ===========================================================

@pytest.mark.parametrize("strategy", [PanStrategy.MIRRORED_LINEAR, PanStrategy.IDENTITY_START])
def test_linear_strategies(strategy):
    assert pan_at(strategy, (0, 0), (10, -10), 0.25) == pytest.approx((2.5, -2.5))


def test_zero_strategy():
    assert pan_at(PanStrategy.ZERO, (3, 3), (9, 9), 0.5) == (0.0, 0.0)


def test_forward_inverse_endpoints():
    start, end = (10.0, 0.0), (0.0, 4.0)
    assert pan_at(PanStrategy.FORWARD_INVERSE, start, end, 0.0, 4.0, 4.0, 1.0) == pytest.approx(start)
    assert pan_at(PanStrategy.FORWARD_INVERSE, start, end, 1.0, 1.0, 4.0, 1.0) == pytest.approx(end)


def test_forward_inverse_weights_by_inverse_scale():
    # 1/s runs 0.25 -> 1; at s = 2 a third of the way is covered
    pan = pan_at(PanStrategy.FORWARD_INVERSE, (12.0, 0.0), (0.0, 0.0), 0.5, 2.0, 4.0, 1.0)
    assert pan == pytest.approx((8.0, 0.0))


def test_forward_inverse_without_scale_change_is_linear():
    pan = pan_at(PanStrategy.FORWARD_INVERSE, (0, 0), (10, 0), 0.3, 1.0, 1.0, 1.0)
    assert pan == pytest.approx((3.0, 0.0))
