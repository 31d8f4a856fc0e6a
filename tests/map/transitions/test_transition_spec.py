"""
test_transition_spec.py
-----------------------
Parsing and validation of the transition table.
"""

import copy

import pytest

from mapmorph.core.runtime.map_settings import Timing
from mapmorph.core.services.config_manager import load_config
from mapmorph.map.transitions.affine import PanStrategy
from mapmorph.map.transitions.transition_spec import (
    AnchorType,
    IndexRole,
    MappingMode,
    PivotEnd,
    RotationMode,
    ScaleMode,
    SceneRole,
    TransitionSpec,
    TransitionSpecError,
    TransitionSpecTable,
    parse_key,
)


@pytest.fixture
def raw_table():
    return load_config("transition_specs.yaml", strict=True)


# ===========================================================
# Shipped Table
# ===========================================================

def test_shipped_entries(spec_table):
    assert len(spec_table) == 2
    assert spec_table.rejected == {}
    assert (0, 1) in spec_table and (1, 2) in spec_table


def test_lookup_is_direction_agnostic(spec_table):
    assert spec_table.get(1, 0) is spec_table.get(0, 1)
    assert spec_table.get(2, 1).key == "1->2"


def test_unknown_pairs_are_none(spec_table):
    assert spec_table.get(0, 2) is None
    assert spec_table.get(2, 3) is None
    assert (3, 4) not in spec_table


def test_ring_entry_fields(spec_table):
    spec = spec_table.get(0, 1)
    assert spec.anchor_from.which is IndexRole.FIXED
    assert spec.anchor_to.which is IndexRole.TO_INDEX
    assert spec.rotation.mode is RotationMode.CONSTANT
    assert spec.scale.mode is ScaleMode.PAIR_TO_MINI
    assert spec.scale.pair == (0, 2)
    assert spec.pivot is PivotEnd.TO
    assert spec.pan_strategy is PanStrategy.IDENTITY_START
    assert spec.mapping.mode is MappingMode.RING_TO_MINI4
    assert spec.mapping.group_scene is SceneRole.HIGH
    assert spec.shows_sub_locations(SceneRole.HIGH)
    assert not spec.shows_sub_locations(SceneRole.LOW)
    assert spec.duration_ms == 2000


def test_hallway_entry_fields(spec_table):
    spec = spec_table.get(1, 2)
    assert spec.anchor_from.type is AnchorType.DOOR_CENTER
    assert spec.rotation.mode is RotationMode.SIDE_ANGLES
    assert spec.scale.mode is ScaleMode.DOOR_GAP_RATIO
    assert spec.scale.door_gap_half == 10.0
    assert spec.pan_strategy is PanStrategy.FORWARD_INVERSE
    assert spec.mapping.low_index == 0


# ===========================================================
# Keys
# ===========================================================

@pytest.mark.parametrize("key,expected", [("0->1", (0, 1)), ("4->5", (4, 5))])
def test_parse_key(key, expected):
    assert parse_key(key) == expected


@pytest.mark.parametrize("key", ["1->0", "0->2", "a->b", "0-1", "-1->0", ""])
def test_bad_keys(key):
    with pytest.raises(TransitionSpecError):
        parse_key(key)


# ===========================================================
# Defaults & Validation
# ===========================================================

def test_minimal_entry_uses_defaults():
    spec = TransitionSpec.from_dict("2->3", {})
    assert spec.anchor_from.which is IndexRole.FIXED
    assert spec.anchor_to.which is IndexRole.TO_INDEX
    assert spec.scale.mode is ScaleMode.NONE
    assert spec.pan_strategy is PanStrategy.MIRRORED_LINEAR
    assert spec.duration_ms is None
    assert spec.fades.out_start == 0.75


@pytest.mark.parametrize("patch", [
    {"rotation": {"mode": "spiral"}},
    {"scale": {"pair": [0]}},
    {"scale": {"door_gap_half": 0}},
    {"pan": {"strategy": "teleport"}},
    {"fades": {"from": {"out_start": 0.9, "out_end": 0.5}}},
    {"fades": {"to": {"in_end": 0.0}}},
    {"anchors": {"from": {"index": -1}}},
    {"anchors": {"to": "node"}},
    {"rotation": {"value": "fast"}},
    {"duration_ms": 0},
    {"mapping": {"low_index": True}},
])
def test_malformed_fields_raise(patch):
    with pytest.raises(TransitionSpecError):
        TransitionSpec.from_dict("0->1", patch)


def test_non_mapping_entry_raises():
    with pytest.raises(TransitionSpecError):
        TransitionSpec.from_dict("0->1", ["not", "a", "mapping"])


def test_table_skips_broken_entries(raw_table):
    raw = copy.deepcopy(raw_table)
    raw["1->2"]["scale"]["mode"] = "bogus"
    raw["5->3"] = {}

    table = TransitionSpecTable.from_dict(raw)
    assert len(table) == 1
    assert table.get(1, 2) is None
    assert set(table.rejected) == {"1->2", "5->3"}


def test_missing_file_gives_empty_table():
    table = TransitionSpecTable.load("no_such_table.yaml")
    assert len(table) == 0
    assert table.get(0, 1) is None


def test_shipped_morphs_play_at_the_default_pace(spec_table):
    for lo, hi in ((0, 1), (1, 2)):
        assert spec_table.get(lo, hi).duration_ms == Timing.DEFAULT_TRANSITION_MS
