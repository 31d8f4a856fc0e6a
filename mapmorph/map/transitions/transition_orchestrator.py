"""
transition_orchestrator.py
--------------------------
State machine that owns the one level transition the map can play.

Responsibilities
----------------
- prepare(): capture the departing scene before the game state moves.
- begin(): pick the table-driven morph or the degraded cross-fade, pin
  the clock and start the animation.
- draw(): compose both scenes and the moving overlays for the current
  instant; finish the transition once normalized time reaches 1.
- wait_for_transition(): futures resolved on the next Active -> Idle
  boundary, including degraded and cancelled transitions.

Callers must call prepare() before mutating the level; a begin() that
finds no matching prepared snapshot still animates (cross-fade) but
cannot morph.
"""

import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import List, Optional, Tuple

from mapmorph.core.debug.debug_logger import DebugLogger
from mapmorph.core.runtime.map_settings import Display, Levels, Timing
from mapmorph.core.runtime.map_state import MapState
from mapmorph.core.services.event_manager import (
    TransitionCancelledEvent,
    TransitionCompletedEvent,
    TransitionStartedEvent,
    get_events,
)
from mapmorph.graphics.scene_painter import ScenePainter
from mapmorph.map.layout.scene_layout import LayoutCache, SceneSnapshot
from mapmorph.map.transitions import invariants
from mapmorph.map.transitions.affine import ease_in_out_cubic, lerp
from mapmorph.map.transitions.anchor_resolver import Adjacency
from mapmorph.map.transitions.correspondence import build_correspondence
from mapmorph.map.transitions.morph_params import Direction, resolve
from mapmorph.map.transitions.transition_spec import TransitionSpecTable
from mapmorph.map.transitions.transition_state import (
    PreparedTransition,
    TransitionMode,
    TransitionPhase,
    TransitionState,
)


def monotonic_ms() -> float:
    return time.perf_counter() * 1000.0


@dataclass(frozen=True)
class FrameInfo:
    """What draw() rendered."""
    t: float
    eased: float
    mode: TransitionMode
    finished: bool


class TransitionOrchestrator:
    """Drives Idle -> Prepared -> Active -> Idle for level changes."""

    # ===========================================================
    # Initialization
    # ===========================================================

    def __init__(self, specs: Optional[TransitionSpecTable] = None,
                 layouts: Optional[LayoutCache] = None,
                 painter: Optional[ScenePainter] = None,
                 viewport: Tuple[float, float] = (Display.WIDTH, Display.HEIGHT),
                 clock=monotonic_ms, events=None):
        self.specs = specs if specs is not None else TransitionSpecTable.load()
        self.layouts = layouts if layouts is not None else LayoutCache()
        self.painter = painter if painter is not None else ScenePainter()
        self.viewport = viewport
        self.clock = clock
        self.events = events if events is not None else get_events()

        self._state = TransitionState()
        self._prepared: Optional[PreparedTransition] = None
        self._last_level: Optional[int] = None
        self._on_done: List[Future] = []
        self._next_waiters: List[Future] = []

        DebugLogger.init_entry("TransitionOrchestrator")
        DebugLogger.init_sub(f"Spec table: {len(self.specs)} adjacencies")
        DebugLogger.init_sub(f"Viewport {viewport[0]}x{viewport[1]}")

    # ===========================================================
    # Queries
    # ===========================================================

    @property
    def state(self) -> TransitionState:
        return self._state

    @property
    def phase(self) -> TransitionPhase:
        return self._state.phase

    @property
    def last_level(self) -> Optional[int]:
        return self._last_level

    def is_active(self) -> bool:
        return self._state.active

    def is_pending_hold(self) -> bool:
        """True between prepare() and begin(); the view holds its last frame once the level moves."""
        return self._state.pending_hold

    def update_last_level(self, level: int) -> None:
        """Record the level shown without animating (initial load, teleports)."""
        self._last_level = level

    # ===========================================================
    # Lifecycle
    # ===========================================================

    def prepare(self, from_level: int, to_level: int, from_index: int, to_index: int,
                reverse: Optional[bool] = None, state: Optional[MapState] = None) -> PreparedTransition:
        """
        Capture the departing scene. Must run before the level changes.

        Args:
            from_level / to_level: Levels being left and entered
            from_index / to_index: Active location in each level
            reverse: Optional explicit direction; must agree with the levels
            state: Game state used for counts and labels
        """
        derived = from_level > to_level
        if reverse is not None and bool(reverse) != derived:
            DebugLogger.warn(f"prepare({from_level}->{to_level}): reverse={reverse} contradicts levels, ignoring",
                             category="transition")

        snapshot = self._snapshot(from_level, state)
        self._prepared = PreparedTransition(
            from_level=from_level,
            to_level=to_level,
            from_index=from_index,
            to_index=to_index,
            reverse=derived,
            from_snapshot=snapshot,
            state=state,
        )
        self._state.pending_hold = True
        if not self._state.active:
            self._state.phase = TransitionPhase.PREPARED

        DebugLogger.state(f"Prepared {from_level}->{to_level} ({from_index} -> {to_index})", category="transition")
        return self._prepared

    def begin(self, new_level: int, state: Optional[MapState] = None,
              previous_frame=None) -> Optional[TransitionState]:
        """
        Start animating from the last known level to new_level.

        Returns the active TransitionState, or None when there is nothing
        to animate (first level seen, or level unchanged).
        """
        prev_level = self._last_level
        if prev_level is None or prev_level == new_level:
            self._last_level = new_level
            self._prepared = None
            self._state.pending_hold = False
            if self._state.phase is TransitionPhase.PREPARED:
                self._state.phase = TransitionPhase.IDLE
            return None

        prepared = self._prepared
        if self._state.active:
            self.cancel("superseded")

        st = self._state
        st.from_level = prev_level
        st.to_level = new_level
        st.reverse = new_level < prev_level

        spec = self.specs.get(prev_level, new_level) if abs(new_level - prev_level) == 1 else None

        if prepared is not None and prepared.matches(prev_level, new_level) and spec is not None:
            self._start_morph(prepared, spec, state)
        else:
            if prepared is None or not prepared.matches(prev_level, new_level):
                reason = "no matching prepare()"
            else:
                reason = "no transition spec"
            DebugLogger.warn(f"{prev_level}->{new_level}: {reason}, using cross-fade", category="transition")
            self._start_cross_fade(state, previous_frame)

        st.duration_ms = float(spec.duration_ms) if spec is not None and spec.duration_ms else Timing.DEFAULT_TRANSITION_MS
        st.clock = self.clock
        st.start_time = st.clock()
        st.phase = TransitionPhase.ACTIVE
        st.pending_hold = False

        self._prepared = None
        self._last_level = new_level
        self._on_done.extend(self._next_waiters)
        self._next_waiters = []

        DebugLogger.state(f"Transition {prev_level}->{new_level} [{st.mode.value}] {st.duration_ms:.0f}ms",
                          category="transition")
        self.events.dispatch(TransitionStartedEvent(prev_level, new_level, st.mode.value, st.duration_ms))
        return st

    def _start_morph(self, prepared: PreparedTransition, spec, state: Optional[MapState]) -> None:
        st = self._state
        to_snapshot = self._snapshot(prepared.to_level, state or prepared.state)

        if prepared.reverse:
            lo_snap, hi_snap = to_snapshot, prepared.from_snapshot
            lo_idx, hi_idx = prepared.to_index, prepared.from_index
        else:
            lo_snap, hi_snap = prepared.from_snapshot, to_snapshot
            lo_idx, hi_idx = prepared.from_index, prepared.to_index

        adjacency = Adjacency(lo_snap, hi_snap, lo_idx, hi_idx, self.viewport)
        direction = Direction.REVERSE if prepared.reverse else Direction.FORWARD
        params = resolve(spec, adjacency, direction)
        invariants.report(params)

        st.mode = TransitionMode.MORPH
        st.from_index = prepared.from_index
        st.to_index = prepared.to_index
        st.from_snapshot = prepared.from_snapshot
        st.to_snapshot = to_snapshot
        st.params = params
        st.correspondence = build_correspondence(params)
        st.previous_frame = None

    def _start_cross_fade(self, state: Optional[MapState], previous_frame) -> None:
        st = self._state
        st.mode = TransitionMode.CROSS_FADE
        st.from_snapshot = None
        st.to_snapshot = self._snapshot(st.to_level, state)
        st.previous_frame = previous_frame
        st.params = None
        st.correspondence = None

    # ===========================================================
    # Drawing
    # ===========================================================

    def draw(self, canvas, state: Optional[MapState] = None) -> Optional[FrameInfo]:
        """
        Render the current instant. Returns None when no transition is active.

        state marks the current location and route in the destination scene.
        """
        st = self._state
        if not st.active:
            return None

        t = st.progress()
        if st.mode is TransitionMode.MORPH:
            self._draw_morph(canvas, t, state)
        else:
            self._draw_cross_fade(canvas, t, state)

        info = FrameInfo(t=t, eased=ease_in_out_cubic(t), mode=st.mode, finished=t >= 1.0)
        DebugLogger.throttled("transition_frame", f"{st.mode.value} t={t:.2f}", category="render")
        if info.finished:
            self._finish()
        return info

    def _draw_morph(self, canvas, t: float, state: Optional[MapState]) -> None:
        st = self._state
        params = st.params
        corr = st.correspondence
        frame = params.pose_at(t)

        # Only the destination layer shows the current location and route
        layers = (
            (params.from_snapshot, frame.from_pose, frame.from_alpha, params.from_role, None),
            (params.to_snapshot, frame.to_pose, frame.to_alpha, params.to_role, state),
        )
        for snapshot, pose, alpha, role, layer_state in layers:
            canvas.save()
            pose.apply_to_canvas(canvas)
            canvas.global_alpha = canvas.global_alpha * alpha
            self.painter.draw_scene(canvas, snapshot, layer_state, hidden=corr.hidden_for(role),
                                    show_sub_locations=params.spec.shows_sub_locations(role))
            canvas.restore()

        self.painter.draw_overlays(canvas, corr.overlays_at(params, t))

    def _draw_cross_fade(self, canvas, t: float, state: Optional[MapState]) -> None:
        st = self._state
        e = ease_in_out_cubic(t)
        cx, cy = self.viewport[0] * 0.5, self.viewport[1] * 0.5

        if st.previous_frame is not None:
            canvas.draw_image(st.previous_frame, (cx, cy), lerp(1.0, Timing.CROSS_FADE_OUT_SCALE, e), alpha=1.0 - e)

        going_deeper = st.to_level > st.from_level
        start = Timing.CROSS_FADE_IN_SCALE_UP if going_deeper else Timing.CROSS_FADE_IN_SCALE_DOWN
        canvas.save()
        canvas.translate(cx, cy)
        canvas.scale(lerp(start, 1.0, e))
        canvas.translate(-cx, -cy)
        canvas.global_alpha = canvas.global_alpha * e
        self.painter.draw_scene(canvas, st.to_snapshot, state)
        canvas.restore()

    # ===========================================================
    # Completion & Cancellation
    # ===========================================================

    def wait_for_transition(self) -> Future:
        """
        Future resolved on the next Active -> Idle boundary.

        While idle (or prepared) it attaches to the next transition that starts.
        """
        future = Future()
        if self._state.active:
            self._on_done.append(future)
        else:
            self._next_waiters.append(future)
        return future

    def _finish(self) -> None:
        st = self._state
        from_level, to_level, mode = st.from_level, st.to_level, st.mode
        st.reset()
        self._flush_waiters()
        DebugLogger.action(f"Transition {from_level}->{to_level} complete", category="transition")
        self.events.dispatch(TransitionCompletedEvent(from_level, to_level, mode.value))

    def cancel(self, reason: str = "cancelled") -> bool:
        """Hard-stop any prepared or active transition. Returns True if one was active."""
        st = self._state
        was_active = st.active
        from_level, to_level = st.from_level, st.to_level

        self._prepared = None
        st.reset()
        if not was_active:
            return False

        self._flush_waiters()
        DebugLogger.warn(f"Transition {from_level}->{to_level} cancelled: {reason}", category="transition")
        self.events.dispatch(TransitionCancelledEvent(from_level, to_level, reason))
        return True

    def resize(self, width: float, height: float) -> None:
        """New viewport: cached layouts and any in-flight transition are dropped."""
        if (width, height) == tuple(self.viewport):
            return
        self.viewport = (width, height)
        self.layouts.invalidate()
        self.cancel("resize")

    def _flush_waiters(self) -> None:
        waiters, self._on_done = self._on_done, []
        for future in waiters:
            if not future.done():
                future.set_result(self._last_level)

    # ===========================================================
    # Helpers
    # ===========================================================

    def _snapshot(self, level: int, state: Optional[MapState]) -> SceneSnapshot:
        w, h = self.viewport
        count = state.count_for(level) if state is not None else Levels.NUM_LOCATIONS
        return self.layouts.get(level, w, h, count, state)
