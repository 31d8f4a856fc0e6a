"""
map_view.py
-----------
Runtime host for the map: a display-rate draw loop plus a slower poll of
the injected game state.

Responsibilities:
- Poll the MapState provider every Timing.STATE_POLL_MS and start a
  transition when the level changes
- Draw the static level, the active transition, or hold the last frame
  once the level has moved but the prepared transition has not begun
- Forward resizes (hard-cancelling any transition) and pointer hit tests
"""

from typing import Callable, Optional

import pygame

from mapmorph.core.debug.debug_logger import DebugLogger
from mapmorph.core.runtime.map_settings import Display, Palette, Timing
from mapmorph.core.runtime.map_state import MapState
from mapmorph.core.services.event_manager import LevelChangedEvent
from mapmorph.graphics.map_canvas import MapCanvas
from mapmorph.map.geometry.hit_test import HitResult, hit_test
from mapmorph.map.transitions.transition_orchestrator import TransitionOrchestrator


class MapView:
    """Owns the canvas and feeds game-state snapshots to the orchestrator."""

    # ===========================================================
    # Initialization
    # ===========================================================

    def __init__(self, state_provider: Callable[[], MapState],
                 orchestrator: Optional[TransitionOrchestrator] = None,
                 canvas: Optional[MapCanvas] = None):
        DebugLogger.section("Initializing MapView")

        self.state_provider = state_provider
        self.orchestrator = orchestrator if orchestrator is not None else TransitionOrchestrator()
        self.canvas = canvas
        self.state: Optional[MapState] = None
        self.running = False
        self._last_poll: Optional[float] = None

        DebugLogger.init_entry("MapView")
        DebugLogger.init_sub(f"State poll every {Timing.STATE_POLL_MS:.0f}ms")

    @property
    def layouts(self):
        return self.orchestrator.layouts

    @property
    def painter(self):
        return self.orchestrator.painter

    # ===========================================================
    # State Polling
    # ===========================================================

    def poll_state(self) -> Optional[MapState]:
        """Read the provider; begin a transition if the level moved."""
        state = self.state_provider()
        self.state = state
        orch = self.orchestrator

        if orch.last_level is None:
            orch.update_last_level(state.current_level)
        elif state.current_level != orch.last_level:
            DebugLogger.state(f"Level {orch.last_level} -> {state.current_level}")
            orch.events.dispatch(LevelChangedEvent(orch.last_level, state.current_level))
            # The canvas still holds the last frame of the old level
            previous = self.canvas.capture() if self.canvas is not None else None
            orch.begin(state.current_level, state, previous_frame=previous)
        return state

    def tick(self, now_ms: float) -> None:
        """Poll when the poll interval has elapsed."""
        if self._last_poll is None or now_ms - self._last_poll >= Timing.STATE_POLL_MS:
            self._last_poll = now_ms
            self.poll_state()

    # ===========================================================
    # Rendering
    # ===========================================================

    def draw_frame(self) -> None:
        """Render one frame onto the canvas."""
        if self.canvas is None or self.state is None:
            return
        orch = self.orchestrator

        if orch.is_active():
            self.canvas.clear(Palette.BACKGROUND)
            orch.draw(self.canvas, self.state)
            return

        if orch.is_pending_hold() and self.state_provider().current_level != orch.last_level:
            # Level already moved but the poll has not begun the transition yet
            return

        self.canvas.clear(Palette.BACKGROUND)
        w, h = orch.viewport
        snapshot = self.layouts.for_state(self.state, self.state.current_level, w, h)
        self.painter.draw_scene(self.canvas, snapshot, self.state)

    # ===========================================================
    # Input
    # ===========================================================

    def resize(self, width: int, height: int, surface: Optional[pygame.Surface] = None) -> None:
        """New viewport; surface is the resized window, else an offscreen one is made."""
        self.orchestrator.resize(width, height)
        if surface is not None:
            self.canvas = MapCanvas(surface)
        elif self.canvas is not None and self.canvas.size != (width, height):
            self.canvas = MapCanvas(pygame.Surface((width, height)))

    def node_at(self, point) -> Optional[HitResult]:
        """What the pointer is over on the static level (None while animating)."""
        if self.state is None or self.orchestrator.is_active():
            return None
        w, h = self.orchestrator.viewport
        snapshot = self.layouts.for_state(self.state, self.state.current_level, w, h)
        return hit_test(snapshot, point, self.state)

    # ===========================================================
    # Main Loop
    # ===========================================================

    def run(self) -> None:
        """Open a window and loop until it is closed."""
        pygame.init()
        w, h = (int(v) for v in self.orchestrator.viewport)
        screen = pygame.display.set_mode((w, h), pygame.RESIZABLE)
        pygame.display.set_caption(Display.CAPTION)
        self.canvas = MapCanvas(screen)
        clock = pygame.time.Clock()
        self.running = True

        DebugLogger.section("Map Loop")
        while self.running:
            clock.tick(Display.FPS)
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                    DebugLogger.action("Quit signal received")
                elif event.type == pygame.VIDEORESIZE:
                    self.resize(event.w, event.h, pygame.display.get_surface())
                elif event.type == pygame.MOUSEBUTTONDOWN:
                    hit = self.node_at(event.pos)
                    if hit is not None:
                        DebugLogger.action(f"Clicked {hit.type.value} {hit.index}", category="input")

            self.tick(self.orchestrator.clock())
            self.draw_frame()
            pygame.display.flip()

        pygame.quit()
        DebugLogger.system("Pygame terminated")
