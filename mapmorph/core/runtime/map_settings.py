"""
map_settings.py
---------------
Centralized constants for the hierarchical map and its transitions.
"""

import math


# ===========================================================
# Display & Performance
# ===========================================================

class Display:
    """Map view surface configuration."""
    WIDTH: int = 480
    HEIGHT: int = 480
    FPS: int = 60
    CAPTION: str = "Map"


# ===========================================================
# Levels
# ===========================================================

class Levels:
    """Hierarchy depth. The finest level is drawn as a hallway."""
    COARSE: int = 0
    GROUP: int = 1
    HALLWAY: int = 2
    COUNT: int = 3
    NUM_LOCATIONS: int = 5


# ===========================================================
# Node Geometry
# ===========================================================

class Radii:
    """Circle radius per node kind."""
    SATELLITE: float = 6.0
    LEADER: float = 8.0
    DOORWAY: float = 10.0


class LayoutConfig:
    """Ring and hallway placement parameters."""
    PAD: float = 12.0
    MIN_RING_RADIUS: float = 20.0
    RING_WIDTH_FRACTION: float = 0.45

    # Header headroom reserved above the ring
    COARSE_HEADROOM: float = Radii.LEADER + 10 + 10 + 6
    GROUP_HEADROOM: float = Radii.DOORWAY + 16 + 26 + 8

    HALLWAY_MAX_WIDTH: float = 140.0
    HALLWAY_TOP_OFFSET: float = 24.0
    HALLWAY_BOTTOM_OFFSET: float = 8.0
    ELEVATOR_DROP: float = 20.0
    FIRST_DOOR_GAP: float = 40.0
    DOOR_SLOTS: int = 4
    DOOR_WALL_INSET: float = 16.0


class MiniCluster:
    """Sub-location dots drawn beneath each group node."""
    COUNT: int = 4
    DOT_RADIUS: float = 4.6
    GAP: float = 14.0
    BELOW_OFFSET: float = 12.0
    MULTIPLIERS = (-1.5, -0.5, 0.5, 1.5)
    OUTER_LIFT: float = 0.5


class RoomGeometry:
    """Doorway, elevator and door-gap dimensions."""
    LABEL_HEIGHT: float = 16.0
    WALL_PAD: float = 25.0
    DOOR_GAP_WIDTH: float = 50.0
    DOORWAY_PAD: float = 8.0
    DOORWAY_RECT_LIFT: float = 12.0
    DOORWAY_RECT_HEIGHT: float = 30.0
    HALLWAY_DOOR_GAP_HALF: float = 10.0
    ELEVATOR_MAX_WIDTH: float = 52.0
    ELEVATOR_HEIGHT: float = 28.0
    ELEVATOR_GAP: float = 10.0
    ELEVATOR_PAD: float = 4.0


class HitTest:
    """Pointer tolerances in pixels."""
    NODE_SLOP: float = 6.0
    MINI_RADIUS: float = 8.0
    WALL_THICKNESS: float = 14.0
    DOOR_MARGIN: float = 6.0
    PATH_DISTANCE: float = 10.0


# ===========================================================
# Timing
# ===========================================================

class Timing:
    """Transition durations and loop cadence, in milliseconds."""
    DEFAULT_TRANSITION_MS: float = 2000.0
    STATE_POLL_MS: float = 100.0

    # Degraded cross-zoom
    CROSS_FADE_OUT_SCALE: float = 0.2
    CROSS_FADE_IN_SCALE_UP: float = 1.2
    CROSS_FADE_IN_SCALE_DOWN: float = 0.2


# ===========================================================
# Transition Math
# ===========================================================

class Morph:
    """Numeric guards used by the transform resolver."""
    MIN_RATIO: float = 1e-3
    RATIO_EPSILON: float = 1e-6
    ANCHOR_EPSILON: float = 1e-6
    SIDE_LEFT: float = -math.pi / 2
    SIDE_RIGHT: float = math.pi / 2
    SIDE_CENTER: float = 0.0


# ===========================================================
# Labels & Colors
# ===========================================================

class Labels:
    """Label text and typography."""
    BASE_FONT_PX: int = 10
    MIN_FONT_SCALE: float = 0.15
    OFFSET_ABOVE: float = 6.0
    UNKNOWN_NAME: str = "?"

    # Generic per-level names, index 0 first
    LOCATION_NAMES = {
        0: ("spot", "spot"),
        1: ("doorway", "group"),
        2: ("elevator", "doorway"),
    }


class Palette:
    """Map palette (RGB)."""
    BACKGROUND = (12, 14, 20)
    NODE = (220, 220, 220)
    NODE_UNDISCOVERED = (90, 90, 100)
    CURRENT = (255, 210, 80)
    EDGE = (70, 75, 90)
    LABEL = (200, 200, 210)
    WALL = (120, 120, 130)
