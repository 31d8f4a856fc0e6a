"""
conftest.py
-----------
Shared pytest configuration and fixtures for mapmorph tests.

Contains:
- Headless pygame setup (dummy video driver)
- Common fixtures: viewport, layouts, spec table, game state, fake clock
- Helpers for building resolved transitions
- Pytest configuration and hooks
"""

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest
from unittest.mock import MagicMock

from mapmorph.core.debug.debug_logger import LoggerConfig
from mapmorph.core.runtime.map_state import MapState
from mapmorph.core.services.event_manager import reset_events
from mapmorph.map.layout.scene_layout import LayoutCache
from mapmorph.map.transitions.anchor_resolver import Adjacency
from mapmorph.map.transitions.morph_params import Direction, resolve
from mapmorph.map.transitions.transition_spec import TransitionSpecTable

VIEWPORT = (480.0, 480.0)


# ===========================================================
# Session Setup
# ===========================================================

@pytest.fixture(autouse=True)
def quiet_logger():
    """Silence console output during tests."""
    previous = LoggerConfig.ENABLE_LOGGING
    LoggerConfig.ENABLE_LOGGING = False
    yield
    LoggerConfig.ENABLE_LOGGING = previous


@pytest.fixture(autouse=True)
def fresh_events():
    reset_events()
    yield
    reset_events()


# ===========================================================
# Common Fixtures
# ===========================================================

@pytest.fixture
def viewport():
    return VIEWPORT


@pytest.fixture
def layouts():
    return LayoutCache()


@pytest.fixture(scope="session")
def spec_table():
    """The shipped transition table."""
    return TransitionSpecTable.load(strict=True)


@pytest.fixture
def map_state():
    """Five locations per level, a few visited and named."""
    return MapState(
        current_level=0,
        location_index=0,
        location_counts=(5, 5, 5),
        visited={
            0: (True, True, True, False, True),
            1: (True, False, True, False, False),
            2: (True, False, False, False, False),
        },
        names={
            0: ("Boss", "Ada", "Bo", "Cy", "Di"),
            1: ("Door", "North", "East", "South", "West"),
        },
    )


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def mock_canvas():
    """MagicMock standing in for MapCanvas."""
    canvas = MagicMock()
    canvas.global_alpha = 1.0
    canvas.size = (480, 480)
    canvas.capture.return_value = MagicMock(name="frame")
    return canvas


@pytest.fixture
def mock_event_manager():
    event_manager = MagicMock()
    event_manager.dispatch = MagicMock()
    event_manager.subscribe = MagicMock()
    return event_manager


# ===========================================================
# Test Utilities
# ===========================================================

def make_adjacency(layouts, lo, lo_index, hi_index, state=None, viewport=VIEWPORT):
    """Snapshots for lo -> lo+1 at the given active indices."""
    w, h = viewport
    count = 5
    lo_snap = layouts.get(lo, w, h, state.count_for(lo) if state else count, state)
    hi_snap = layouts.get(lo + 1, w, h, state.count_for(lo + 1) if state else count, state)
    return Adjacency(lo_snap, hi_snap, lo_index, hi_index, viewport)


def make_params(spec_table, layouts, lo, lo_index, hi_index, direction=Direction.FORWARD,
                state=None, spec=None):
    """Resolved MorphParams for one adjacency and direction."""
    spec = spec or spec_table.get(lo, lo + 1)
    adjacency = make_adjacency(layouts, lo, lo_index, hi_index, state)
    return resolve(spec, adjacency, direction)


# ===========================================================
# Pytest Configuration
# ===========================================================

def pytest_configure(config):
    """Custom pytest configuration."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks invariant/property tests")


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to everything not marked integration."""
    for item in items:
        if "integration" not in item.keywords:
            item.add_marker(pytest.mark.unit)
