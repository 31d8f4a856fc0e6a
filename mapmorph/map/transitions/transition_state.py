"""
transition_state.py
-------------------
Runtime record of the single in-flight level transition.

Lifecycle: IDLE -> PREPARED (snapshot held) -> ACTIVE (clock running) -> IDLE.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Optional

from mapmorph.core.runtime.map_state import MapState
from mapmorph.map.layout.scene_layout import SceneSnapshot
from mapmorph.map.transitions.affine import clamp01


class TransitionPhase(Enum):
    IDLE = auto()
    PREPARED = auto()
    ACTIVE = auto()


class TransitionMode(Enum):
    MORPH = "morph"            # spec-driven camera animation
    CROSS_FADE = "cross_fade"  # degraded zoom of a captured frame


@dataclass(frozen=True)
class PreparedTransition:
    """Everything captured by prepare() before the game state moves."""
    from_level: int
    to_level: int
    from_index: int
    to_index: int
    reverse: bool
    from_snapshot: SceneSnapshot
    state: Optional[MapState] = None

    def matches(self, from_level: int, to_level: int) -> bool:
        return self.from_level == from_level and self.to_level == to_level


@dataclass
class TransitionState:
    """Mutable state of the one transition that may be active."""
    phase: TransitionPhase = TransitionPhase.IDLE
    mode: Optional[TransitionMode] = None
    start_time: float = 0.0
    duration_ms: float = 0.0
    from_level: int = 0
    to_level: int = 0
    from_index: int = 0
    to_index: int = 0
    reverse: bool = False
    from_snapshot: Optional[SceneSnapshot] = None
    to_snapshot: Optional[SceneSnapshot] = None
    pending_hold: bool = False
    clock: Optional[Callable[[], float]] = None
    previous_frame: Any = None
    params: Any = None
    correspondence: Any = None

    @property
    def active(self) -> bool:
        return self.phase is TransitionPhase.ACTIVE

    def progress(self) -> float:
        """Normalized time from the clock pinned at begin()."""
        if not self.active or self.clock is None:
            return 0.0
        if self.duration_ms <= 0:
            return 1.0
        return clamp01((self.clock() - self.start_time) / self.duration_ms)

    def reset(self) -> None:
        """Back to IDLE, dropping snapshots and the captured frame."""
        self.phase = TransitionPhase.IDLE
        self.mode = None
        self.from_snapshot = None
        self.to_snapshot = None
        self.previous_frame = None
        self.params = None
        self.correspondence = None
        self.pending_hold = False
