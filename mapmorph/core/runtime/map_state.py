"""
map_state.py
------------
Read-only snapshot of the game state the map engine consumes.

The engine never reads or writes live game state directly: callers build a
MapState (or supply a provider returning one) and pass it into prepare(),
begin() and draw(). This keeps the transition code pure with respect to
the world it renders.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from mapmorph.core.runtime.map_settings import Labels, Levels


@dataclass(frozen=True)
class MapState:
    """Immutable view of the player's place in the location hierarchy."""

    current_level: int = 0
    location_index: int = 0
    next_location_index: Optional[int] = None
    location_counts: Tuple[int, ...] = (Levels.NUM_LOCATIONS,) * Levels.COUNT
    visited: Dict[int, Tuple[bool, ...]] = field(default_factory=dict)
    names: Dict[int, Tuple[str, ...]] = field(default_factory=dict)

    # -----------------------------------------------------------
    # Queries
    # -----------------------------------------------------------
    def count_for(self, level: int) -> int:
        """Number of locations at a level (0 when the level is unknown)."""
        if 0 <= level < len(self.location_counts):
            return max(0, int(self.location_counts[level]))
        return 0

    def is_visited(self, level: int, index: int) -> bool:
        flags = self.visited.get(level, ())
        return 0 <= index < len(flags) and bool(flags[index])

    def name_for(self, level: int, index: int) -> Optional[str]:
        """Display name of a location, or None when it has none."""
        names = self.names.get(level, ())
        if 0 <= index < len(names) and names[index]:
            return names[index]
        return None

    def generic_label(self, level: int, index: int) -> str:
        """Kind-of-place label, e.g. 'doorway' or 'group'."""
        first, rest = Labels.LOCATION_NAMES.get(level, ("spot", "spot"))
        return first if index == 0 else rest

    def with_level(self, level: int, location_index: int = 0) -> "MapState":
        """Copy of this state moved to another level."""
        return MapState(
            current_level=level,
            location_index=location_index,
            next_location_index=None,
            location_counts=self.location_counts,
            visited=self.visited,
            names=self.names,
        )
