"""
Runtime configuration exports.

Map-wide constants as lightweight classes with no initialization overhead.
"""

from mapmorph.core.runtime.map_settings import (
    Display,
    Levels,
    Radii,
    LayoutConfig,
    MiniCluster,
    RoomGeometry,
    HitTest,
    Timing,
    Morph,
    Labels,
    Palette,
)

__all__ = [
    # Display
    'Display',
    'Palette',
    # Layout
    'Levels',
    'Radii',
    'LayoutConfig',
    'MiniCluster',
    'RoomGeometry',
    'HitTest',
    'Labels',
    # Transitions
    'Timing',
    'Morph',
]
