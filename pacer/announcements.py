"""Announcement scheduling and sequential playback."""

import math
import queue
import threading
import time
from collections import deque
from typing import Callable, Optional

from .audio import Audio
from .config import CONFIG
from .deviation import DeviationEvent
from .flags import AnnouncementFlags
from .geo import format_distance, format_duration, format_pace
from .logger import Logger
from .models import (
    AnnouncementCategory,
    AnnouncementEvent,
    PaceStatus,
    SessionSnapshot,
    UnitSystem,
    Verbosity,
)
from .pace import pace_status


class AnnouncementScheduler:
    """Decides what, if anything, to announce on each periodic tick.

    Checks run in priority order and at most one event is returned per tick:
    distance milestones, then time updates, then pace guidance. Deviation
    announcements do not wait for a tick; the session builds them straight
    from DeviationMonitor transitions via deviation_announcement().
    """

    def __init__(self, flags: AnnouncementFlags, units: UnitSystem = UnitSystem.METRIC,
                 target_pace: Optional[float] = None,
                 verbosity: Verbosity = Verbosity.STANDARD,
                 logger: Optional[Logger] = None):
        self.flags = flags
        self.units = units
        self.target_pace = target_pace  # seconds per unit
        self.verbosity = verbosity
        self.logger = logger or Logger()
        self.last_pace_announcement: Optional[float] = None

    def reset_announcement_tracking(self):
        """Clear milestone and time flags. Call once at session start."""
        self.flags.reset()
        self.last_pace_announcement = None
        self.logger.log("Announcement tracking reset")

    def tick(self, snapshot: SessionSnapshot, active: bool = True,
             paused: bool = False) -> Optional[AnnouncementEvent]:
        if not active or paused:
            return None
        if snapshot.elapsed < CONFIG["announcement_warmup"]:
            return None

        units_done = snapshot.distance / self.units.unit_length
        for check in (self._check_milestone, self._check_time):
            event = check(snapshot.elapsed, snapshot.distance, units_done)
            if event:
                return event
        return self._check_pace(snapshot.elapsed, snapshot.pace)

    def _check_milestone(self, elapsed: float, distance: float,
                         units_done: float) -> Optional[AnnouncementEvent]:
        completed = math.floor(units_done)
        if units_done < CONFIG["milestone_min_fraction"]:
            return None
        if units_done - completed > CONFIG["milestone_window"]:
            return None
        if completed < 1:
            return None

        key = self.flags.milestone_key(completed)
        if self.flags.is_set(key):
            return None
        self.flags.mark(key)

        name = self.units.unit_name
        text = (f"{completed} {name}{'s' if completed != 1 else ''} completed. "
                f"Time {format_duration(elapsed)}. "
                f"Average pace {format_pace(elapsed / units_done)} per {name}.")
        self.logger.log("Milestone announcement", {"milestone": completed, "distance": distance})
        return AnnouncementEvent(AnnouncementCategory.MILESTONE, text)

    def _check_time(self, elapsed: float, distance: float,
                    units_done: float) -> Optional[AnnouncementEvent]:
        minutes = int(elapsed // 60)
        interval = CONFIG["time_announcement_interval"]
        if minutes < interval or minutes % interval != 0:
            return None

        key = self.flags.time_key(minutes)
        if self.flags.is_set(key):
            return None

        # A milestone is about to be spoken; let it carry the update instead
        next_milestone = math.floor(units_done) + 1
        if next_milestone - units_done <= CONFIG["time_milestone_deferral"]:
            return None
        self.flags.mark(key)

        text = f"{minutes} minutes. Distance {format_distance(distance, self.units)}."
        self.logger.log("Time announcement", {"minutes": minutes, "distance": distance})
        return AnnouncementEvent(AnnouncementCategory.TIME_UPDATE, text)

    def _check_pace(self, elapsed: float, pace: Optional[float]) -> Optional[AnnouncementEvent]:
        if self.target_pace is None or pace is None:
            return None
        if elapsed < CONFIG["pace_warmup"]:
            return None
        if (self.last_pace_announcement is not None and
                elapsed - self.last_pace_announcement < CONFIG["pace_announcement_interval"]):
            return None

        status = pace_status(pace, self.target_pace)
        if status is PaceStatus.TOO_SLOW:
            advice = "Pick up the pace"
        elif status is PaceStatus.TOO_FAST:
            advice = "Ease off a little"
        else:
            return None

        self.last_pace_announcement = elapsed
        name = self.units.unit_name
        text = (f"{advice}. Current pace {format_pace(pace)} per {name}, "
                f"target {format_pace(self.target_pace)}.")
        self.logger.log("Pace announcement", {"pace": round(pace, 1), "status": status.value})
        return AnnouncementEvent(AnnouncementCategory.PACE_GUIDANCE, text)

    def deviation_announcement(self, event: DeviationEvent,
                               distance: float) -> Optional[AnnouncementEvent]:
        """Announcement for a deviation transition, or None if verbosity suppresses it"""
        if event is DeviationEvent.DEVIATED:
            text = f"You are off route, {format_distance(distance, self.units)} from the path."
            return AnnouncementEvent(AnnouncementCategory.DEVIATION, text)
        if self.verbosity is Verbosity.COMPREHENSIVE:
            return AnnouncementEvent(AnnouncementCategory.DEVIATION, "Back on route.")
        return None


class AnnouncementQueue:
    """Single FIFO of announcements played strictly one at a time.

    With no speaker given, events go to Audio.announce. A new event never
    interrupts the one playing; after each playback there is a short fixed
    pause before the next is taken. Drain it with the background worker
    (start/stop) or synchronously with play_next().
    """

    def __init__(self, speaker: Optional[Callable[[str], None]] = None,
                 delay: Optional[float] = None,
                 logger: Optional[Logger] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.speaker = speaker
        self.delay = delay if delay is not None else CONFIG["playback_delay"]
        self.logger = logger or Logger()
        self.sleep = sleep
        self.played: deque = deque(maxlen=CONFIG["announcement_history"])
        self._queue: queue.Queue = queue.Queue()
        self._play_lock = threading.Lock()
        self._playing = False
        self._running = False
        self._thread: Optional[threading.Thread] = None

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def enqueue(self, event: AnnouncementEvent):
        self._queue.put(event)
        self.logger.log("Announcement queued", {"category": event.category.value, "text": event.text})

    def play_next(self, timeout: Optional[float] = None) -> Optional[AnnouncementEvent]:
        """Play the oldest queued event. Returns it, or None if the queue stayed empty."""
        try:
            if timeout is None:
                event = self._queue.get_nowait()
            else:
                event = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

        with self._play_lock:
            self._playing = True
            try:
                if self.speaker is None:
                    Audio.announce(event)
                else:
                    self.speaker(event.text)
            except Exception as e:
                self.logger.log("Announcement playback failed", {"text": event.text, "error": str(e)})
            finally:
                self._playing = False
            self.played.append(event)
            self.sleep(self.delay)
        return event

    def drain(self) -> list[AnnouncementEvent]:
        """Play everything queued, in order"""
        played = []
        while True:
            event = self.play_next()
            if event is None:
                return played
            played.append(event)

    def start(self):
        """Start the playback worker thread"""
        self._running = True
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self):
        while self._running:
            self.play_next(timeout=0.1)

    def stop(self):
        self._running = False
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
