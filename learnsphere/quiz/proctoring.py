# learnsphere/quiz/proctoring.py
"""
Proctoring monitor for timed quiz sessions.

The monitor subscribes to browser-style events on an event source and keeps
three client-observed signals: tab switches, fullscreen exits and whether
the webcam permission was granted. Copy, paste and cut are blocked but not
counted. Nothing here is verified server-side; the counters are attached to
the attempt for instructor review.
"""

import logging
import time
from collections import defaultdict
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_WARNING_SECONDS = 3.0


class ProctorEventType(str, Enum):
    VISIBILITY_CHANGE = "visibilitychange"
    FULLSCREEN_CHANGE = "fullscreenchange"
    COPY = "copy"
    PASTE = "paste"
    CUT = "cut"


CLIPBOARD_EVENTS = (ProctorEventType.COPY, ProctorEventType.PASTE, ProctorEventType.CUT)


@dataclass
class ProctorEvent:
    type: ProctorEventType
    hidden: bool = False  # visibilitychange: document is now hidden
    fullscreen: bool = False  # fullscreenchange: document is now fullscreen
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


Handler = Callable[[ProctorEvent], None]


class EventHub:
    """In-process event source with explicit subscribe/unsubscribe."""

    def __init__(self):
        self._handlers: Dict[ProctorEventType, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: ProctorEventType, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: ProctorEventType, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: Optional[ProctorEventType] = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(h) for h in self._handlers.values())

    def dispatch(self, event: ProctorEvent) -> ProctorEvent:
        for handler in list(self._handlers.get(event.type, [])):
            handler(event)
        return event


@dataclass
class ProctoringCounters:
    tab_switches: int = 0
    full_screen_exits: int = 0
    webcam_enabled: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProctorWarning:
    message: str
    expires_at: float


TAB_SWITCH_WARNING = "Tab switch detected! Stay on the quiz page."
FULLSCREEN_EXIT_WARNING = "Full-screen exited! Please return to full-screen mode."
CLIPBOARD_WARNING = "Copy/Paste is disabled during the quiz."


class ProctorMonitor:
    def __init__(
        self,
        source: EventHub,
        request_fullscreen: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        warning_seconds: float = DEFAULT_WARNING_SECONDS,
        on_violation: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        self.source = source
        self.request_fullscreen = request_fullscreen
        self.clock = clock
        self.warning_seconds = warning_seconds
        self.on_violation = on_violation

        self.counters = ProctoringCounters()
        self.is_active = False
        self.is_fullscreen = False
        self._entered_fullscreen = False
        self._warning: Optional[ProctorWarning] = None
        self._subscriptions = [
            (ProctorEventType.VISIBILITY_CHANGE, self._on_visibility_change),
            (ProctorEventType.FULLSCREEN_CHANGE, self._on_fullscreen_change),
        ] + [(event_type, self._on_clipboard) for event_type in CLIPBOARD_EVENTS]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def activate(self) -> "ProctorMonitor":
        if self.is_active:
            return self
        for event_type, handler in self._subscriptions:
            self.source.subscribe(event_type, handler)
        self.is_active = True
        self.enter_fullscreen()
        return self

    def deactivate(self) -> None:
        if not self.is_active:
            return
        for event_type, handler in self._subscriptions:
            self.source.unsubscribe(event_type, handler)
        self.is_active = False

    def __enter__(self) -> "ProctorMonitor":
        return self.activate()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()

    # ------------------------------------------------------------------
    # Fullscreen
    # ------------------------------------------------------------------
    def enter_fullscreen(self) -> None:
        """Ask the client to go fullscreen. Denials are logged, never raised."""
        if self.request_fullscreen is None:
            return
        try:
            self.request_fullscreen()
        except Exception as e:
            logger.info(f"Full-screen request failed: {e}")

    @property
    def needs_fullscreen_prompt(self) -> bool:
        return self.is_active and not self.is_fullscreen

    # ------------------------------------------------------------------
    # Webcam
    # ------------------------------------------------------------------
    def request_webcam(self, open_stream: Callable[[], Any]) -> bool:
        """
        Check webcam permission with ``open_stream``, which returns a stream object.

        The stream is stopped straight away; only the permission is recorded.
        """
        try:
            stream = open_stream()
        except Exception as e:
            logger.info(f"Webcam access denied: {e}")
            return False
        self.counters.webcam_enabled = True
        stop = getattr(stream, "stop", None)
        if callable(stop):
            stop()
        return True

    def record_webcam_permission(self, granted: bool) -> None:
        if granted:
            self.counters.webcam_enabled = True
        else:
            logger.info("Webcam access denied by client")

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------
    def _warn(self, message: str) -> None:
        self._warning = ProctorWarning(message, self.clock() + self.warning_seconds)

    @property
    def active_warning(self) -> Optional[str]:
        if self._warning is None:
            return None
        if self.clock() >= self._warning.expires_at:
            self._warning = None
            return None
        return self._warning.message

    def _report(self, violation_type: str, count: int) -> None:
        if self.on_violation is not None:
            self.on_violation({"type": violation_type, "count": count})

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def _on_visibility_change(self, event: ProctorEvent) -> None:
        if not event.hidden:
            return
        self.counters.tab_switches += 1
        self._warn(TAB_SWITCH_WARNING)
        self._report("tab_switch", self.counters.tab_switches)

    def _on_fullscreen_change(self, event: ProctorEvent) -> None:
        if event.fullscreen:
            self.is_fullscreen = True
            self._entered_fullscreen = True
            return

        was_fullscreen = self.is_fullscreen
        self.is_fullscreen = False
        # Only a real exit counts; the first enter is never an exit
        if self._entered_fullscreen and was_fullscreen:
            self.counters.full_screen_exits += 1
            self._warn(FULLSCREEN_EXIT_WARNING)
            self._report("fullscreen_exit", self.counters.full_screen_exits)

    def _on_clipboard(self, event: ProctorEvent) -> None:
        event.prevent_default()
        self._warn(CLIPBOARD_WARNING)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def snapshot(self) -> ProctoringCounters:
        return ProctoringCounters(**self.counters.to_payload())

    def reset_counters(self) -> None:
        """Clear the counters for a new attempt. Webcam permission carries over."""
        self.counters = ProctoringCounters(webcam_enabled=self.counters.webcam_enabled)
        self._warning = None
