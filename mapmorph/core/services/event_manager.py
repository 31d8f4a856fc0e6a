"""
event_manager.py
----------------
Publish/subscribe bus for map lifecycle events.

The transition engine announces level changes and transition phases here
without knowing who listens (HUD, audio, tutorial prompts). A callback
registered for a base class receives every subclass too, so subscribing
to TransitionEvent observes start, completion and cancellation at once.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

from mapmorph.core.debug.debug_logger import DebugLogger


# ===========================================================
# Event Definitions
# ===========================================================

@dataclass(frozen=True)
class BaseEvent:
    pass


@dataclass(frozen=True)
class LevelChangedEvent(BaseEvent):
    """The polled map level differs from the last known one."""
    previous_level: int
    new_level: int

    @property
    def step(self) -> int:
        return self.new_level - self.previous_level


@dataclass(frozen=True)
class TransitionEvent(BaseEvent):
    from_level: int
    to_level: int


@dataclass(frozen=True)
class TransitionStartedEvent(TransitionEvent):
    """Transition entered the Active phase."""
    mode: str
    duration_ms: float


@dataclass(frozen=True)
class TransitionCompletedEvent(TransitionEvent):
    """Normalized time reached 1."""
    mode: str


@dataclass(frozen=True)
class TransitionCancelledEvent(TransitionEvent):
    """Hard cancellation: resize, superseding begin, explicit cancel."""
    reason: str


EventCallback = Callable[[BaseEvent], None]


# ===========================================================
# Event Manager
# ===========================================================

class EventManager:
    """Synchronous dispatcher; callbacks run in subscription order."""

    def __init__(self):
        self._subscribers: Dict[Type[BaseEvent], List[EventCallback]] = {}
        DebugLogger.init("EventManager initialized", category="event_manager")

    def subscribe(self, event_type: Type[BaseEvent], callback: EventCallback) -> Callable[[], None]:
        """
        Listen for event_type and its subclasses.

        Subscribing the same callback twice is a no-op. Returns a function
        that undoes the subscription.
        """
        listeners = self._subscribers.setdefault(event_type, [])
        if callback not in listeners:
            listeners.append(callback)
            DebugLogger.system(
                f"Subscribed '{_name(callback)}' to '{event_type.__name__}'",
                category="event_manager"
            )
        return lambda: self.unsubscribe(event_type, callback)

    def unsubscribe(self, event_type: Type[BaseEvent], callback: EventCallback) -> None:
        """Unknown callbacks are ignored."""
        listeners = self._subscribers.get(event_type)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def dispatch(self, event: BaseEvent) -> int:
        """
        Deliver event to every matching callback. Returns how many ran
        without raising; a raising callback is logged and the rest still run.
        """
        delivered = 0
        for callback in self._listeners_for(type(event)):
            try:
                callback(event)
            except Exception as e:
                DebugLogger.warn(
                    f"{_name(callback)} failed on {type(event).__name__}: {e}",
                    category="event_manager"
                )
                continue
            delivered += 1
        return delivered

    def _listeners_for(self, event_type: Type[BaseEvent]) -> List[EventCallback]:
        # Snapshot so callbacks may (un)subscribe while being dispatched
        found: List[EventCallback] = []
        for cls in event_type.__mro__:
            for callback in self._subscribers.get(cls, ()):
                if callback not in found:
                    found.append(callback)
        return found

    def clear_all(self) -> None:
        self._subscribers.clear()

    def get_subscriber_count(self, event_type: Optional[Type[BaseEvent]] = None) -> int:
        """Direct subscribers of one event type, or of all types when None."""
        if event_type is not None:
            return len(self._subscribers.get(event_type, ()))
        return sum(len(listeners) for listeners in self._subscribers.values())


def _name(callback) -> str:
    return getattr(callback, "__name__", repr(callback))


# ===========================================================
# Singleton Access
# ===========================================================

_EVENTS = None


def get_events() -> EventManager:
    """Shared bus, created on first use."""
    global _EVENTS
    if _EVENTS is None:
        _EVENTS = EventManager()
    return _EVENTS


def reset_events() -> None:
    global _EVENTS
    _EVENTS = None
