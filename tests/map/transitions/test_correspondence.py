"""
test_correspondence.py
----------------------
Entity mapping between scenes: angular pairing, hide sets, overlay
endpoints and moving labels.
"""

from dataclasses import replace

import pytest

from conftest import make_adjacency, make_params
from mapmorph.core.runtime.map_settings import Labels, MiniCluster
from mapmorph.map.layout.scene_layout import group_mini_positions
from mapmorph.map.transitions.anchor_resolver import Adjacency
from mapmorph.map.transitions.correspondence import (
    angle_order,
    build_correspondence,
    ring_to_mini4,
)
from mapmorph.map.transitions.morph_params import Direction, resolve
from mapmorph.map.transitions.transition_spec import MappingMode, SceneRole


# ===========================================================
# Fixtures
# ===========================================================

@pytest.fixture
def ring_params(spec_table, layouts, map_state):
    """Five-node coarse ring entering group 2."""
    return make_params(spec_table, layouts, 0, 0, 2, state=map_state)


# ===========================================================
# Angular Ordering
# ===========================================================

def test_angle_order_sorts_counter_from_left():
    points = [(1, 0), (0, 1), (-1, 0), (0, -1)]
    # atan2 ascending: (-1, 0) is pi, so (0, -1) at -pi/2 comes first
    assert angle_order(points) == [3, 0, 1, 2]


def test_angle_order_empty():
    assert angle_order([]) == []


def test_mini_cluster_order(layouts, viewport):
    group = layouts.get(1, *viewport, 5).node(2)
    # Outer-left, outer-right, inner-right, inner-left
    assert angle_order(group_mini_positions(group)) == [0, 3, 2, 1]


# ===========================================================
# ringToMini4: Concrete Scenario
# ===========================================================

def test_ring_to_mini4_pairs_leader_and_satellites(ring_params):
    corr = build_correspondence(ring_params)
    ring = ring_params.adjacency.lo_snapshot
    group = ring_params.adjacency.hi_snapshot.node(2)
    minis = group_mini_positions(group)

    assert corr.mode is MappingMode.RING_TO_MINI4
    assert len(corr.pairs) == 5

    leader = corr.pairs[0]
    assert leader.kind == "leader"
    assert leader.lo_point == ring.node(0).position
    assert leader.hi_point == group.position

    expected = [(4, 0), (1, 3), (2, 2), (3, 1)]
    actual = [(p.lo_point, p.hi_point) for p in corr.pairs[1:]]
    assert actual == [(ring.node(s).position, minis[m]) for s, m in expected]


def test_ring_to_mini4_hide_sets(ring_params):
    corr = build_correspondence(ring_params)
    assert corr.hidden_for(SceneRole.LOW) == frozenset({0, 1, 2, 3, 4})
    assert corr.hidden_for(SceneRole.HIGH) == frozenset({2})


def test_pairing_ignores_listing_order(spec_table, layouts, map_state):
    adjacency = make_adjacency(layouts, 0, 0, 2, map_state)
    shuffled = replace(adjacency.lo_snapshot, nodes=tuple(reversed(adjacency.lo_snapshot.nodes)))
    other = Adjacency(shuffled, adjacency.hi_snapshot, 0, 2, adjacency.viewport)

    spec = spec_table.get(0, 1)
    a = ring_to_mini4(resolve(spec, adjacency, Direction.FORWARD))
    b = ring_to_mini4(resolve(spec, other, Direction.FORWARD))
    assert a.pairs == b.pairs


def test_small_ring_leaves_dots_emerging_from_leader(spec_table, layouts, viewport):
    lo = layouts.get(0, *viewport, 3)
    hi = layouts.get(1, *viewport, 5)
    params = resolve(spec_table.get(0, 1), Adjacency(lo, hi, 0, 1, viewport), Direction.FORWARD)
    corr = ring_to_mini4(params)

    assert len(corr.pairs) == 1 + MiniCluster.COUNT
    from_leader = [p for p in corr.pairs[1:] if p.lo_point == lo.node(0).position]
    assert len(from_leader) == 2
    assert corr.hide_lo == frozenset({0, 1, 2})


def test_missing_group_node_gives_empty_mapping(spec_table, layouts, viewport):
    params = resolve(spec_table.get(0, 1),
                     Adjacency(layouts.get(0, *viewport, 5), layouts.get(1, *viewport, 5), 0, 9, viewport),
                     Direction.FORWARD)
    corr = ring_to_mini4(params)
    assert corr.pairs == ()
    assert corr.hide_hi == frozenset()


# ===========================================================
# Overlays
# ===========================================================

@pytest.mark.property
def test_overlays_start_and_end_on_native_positions(ring_params):
    corr = build_correspondence(ring_params)
    start = corr.overlays_at(ring_params, 0.0)
    end = corr.overlays_at(ring_params, 1.0)

    for pair, a, b in zip(corr.pairs, start, end):
        assert a.position == pytest.approx(pair.lo_point, abs=1e-6)
        assert b.position == pytest.approx(pair.hi_point, abs=1e-6)
        assert a.radius == pytest.approx(pair.lo_radius)
        assert b.radius == pytest.approx(pair.hi_radius)


@pytest.mark.property
@pytest.mark.parametrize("lo,hi_idx", [(0, 2), (1, 1), (1, 4)])
def test_overlays_replay_in_reverse(spec_table, layouts, map_state, lo, hi_idx):
    forward = make_params(spec_table, layouts, lo, 0, hi_idx, Direction.FORWARD, state=map_state)
    reverse = make_params(spec_table, layouts, lo, 0, hi_idx, Direction.REVERSE, state=map_state)
    f_corr, r_corr = build_correspondence(forward), build_correspondence(reverse)

    for i in range(11):
        t = i / 10
        f = f_corr.overlays_at(forward, t)
        r = r_corr.overlays_at(reverse, 1.0 - t)
        for a, b in zip(f, r):
            assert a.position == pytest.approx(b.position, abs=1e-6)
            assert a.radius == pytest.approx(b.radius)


def test_satellite_labels_shrink_when_leaving_ring(ring_params):
    corr = build_correspondence(ring_params)
    start = corr.overlays_at(ring_params, 0.0)
    end = corr.overlays_at(ring_params, 1.0)

    # Satellite 4 pairs first and is named "Di"
    sat_start, sat_end = start[1].label, end[1].label
    assert sat_start.text == "Di"
    assert (sat_start.font_scale, sat_start.alpha) == (1.0, 1.0)
    assert sat_end.font_scale == Labels.MIN_FONT_SCALE
    assert sat_end.alpha == 0.0


def test_satellite_labels_grow_when_entering_ring(spec_table, layouts, map_state):
    params = make_params(spec_table, layouts, 0, 0, 2, Direction.REVERSE, state=map_state)
    corr = build_correspondence(params)
    assert corr.overlays_at(params, 0.0)[1].label.alpha == 0.0
    assert corr.overlays_at(params, 1.0)[1].label.alpha == 1.0


def test_unvisited_satellite_has_no_label(ring_params):
    corr = build_correspondence(ring_params)
    overlays = corr.overlays_at(ring_params, 0.2)
    # Rank 4 pairs satellite 3, never visited
    assert overlays[4].label is None


def test_labels_sit_above_circle(ring_params):
    corr = build_correspondence(ring_params)
    for entity in corr.overlays_at(ring_params, 0.4):
        if entity.label is not None:
            assert entity.label.position[0] == pytest.approx(entity.position[0])
            assert entity.label.position[1] == pytest.approx(entity.position[1] - entity.radius - Labels.OFFSET_ABOVE)


# ===========================================================
# singleDoor
# ===========================================================

def test_single_door_pairs_doorway_with_selected_door(spec_table, layouts):
    params = make_params(spec_table, layouts, 1, 0, 3)
    corr = build_correspondence(params)

    assert corr.mode is MappingMode.SINGLE_DOOR
    assert len(corr.pairs) == 1
    assert corr.pairs[0].lo_point == params.adjacency.lo_snapshot.node(0).position
    assert corr.pairs[0].hi_point == params.adjacency.hi_snapshot.node(3).position
    assert corr.hide_lo == frozenset({0})
    assert corr.hide_hi == frozenset({3})


def test_single_door_reverse_hides_the_same_entities(spec_table, layouts):
    params = make_params(spec_table, layouts, 1, 0, 3, Direction.REVERSE)
    corr = build_correspondence(params)
    assert corr.hidden_for(params.from_role) == frozenset({3})
    assert corr.hidden_for(params.to_role) == frozenset({0})


def test_single_door_label_cross_fades(spec_table, layouts, map_state):
    params = make_params(spec_table, layouts, 1, 0, 2, state=map_state)
    corr = build_correspondence(params)
    start = corr.overlays_at(params, 0.0)[0].label
    middle = corr.overlays_at(params, 0.5)[0]

    assert start.text == "Door"
    assert start.alpha == 1.0
    # Hallway door 2 was never visited: no label on the far side
    assert middle.label is None
