"""Navigation session: the single writer for all location-derived state."""

import threading
import time
from typing import Callable, Optional, Sequence

from .announcements import AnnouncementQueue, AnnouncementScheduler
from .config import CONFIG
from .deviation import DeviationEvent, DeviationMonitor
from .flags import AnnouncementFlags, MemoryFlagStore
from .geo import sample_distance
from .logger import Logger
from .matcher import match_position
from .models import (
    AnnouncementEvent,
    Coordinate,
    DeviationState,
    LocationSample,
    MatchResult,
    ProgressState,
    ReturnRoute,
    Route,
    SessionSnapshot,
    UnitSystem,
    Verbosity,
    Waypoint,
)
from .pace import PaceEstimator
from .progress import ProgressTracker
from .return_route import NoHomeLocation, plan_return_route
from .waypoints import build_return_route, build_route


class NavigationSession:
    """Owns one activity session's navigation state.

    Location samples go through on_location(), which runs matching, deviation
    and progress inside one short critical section. The periodic tick only
    reads a snapshot and feeds the announcement queue. Routes are built
    outside the lock and swapped in whole, together with fresh deviation and
    progress state, so no update ever sees a half-built route or stale state.
    """

    def __init__(self, units: UnitSystem = UnitSystem.METRIC,
                 flag_store=None,
                 speaker: Optional[Callable[[str], None]] = None,
                 target_pace: Optional[float] = None,
                 verbosity: Verbosity = Verbosity.STANDARD,
                 logger: Optional[Logger] = None,
                 clock: Callable[[], float] = time.time,
                 playback_delay: Optional[float] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.units = units
        self.verbosity = verbosity
        self.logger = logger or Logger()
        self.clock = clock

        self.flags = AnnouncementFlags(flag_store or MemoryFlagStore(), self.logger)
        self.scheduler = AnnouncementScheduler(
            self.flags, units=units, target_pace=target_pace,
            verbosity=verbosity, logger=self.logger,
        )
        self.announcements = AnnouncementQueue(
            speaker, delay=playback_delay, logger=self.logger, sleep=sleep,
        )
        self.pace = PaceEstimator(units)

        self._lock = threading.Lock()
        self.planned_route: Optional[Route] = None
        self.route: Optional[Route] = None  # route being followed: planned or return
        self.progress_tracker: Optional[ProgressTracker] = None
        self.deviation = DeviationMonitor()
        self.return_route: Optional[ReturnRoute] = None
        self.last_match: Optional[MatchResult] = None
        self.deviation_events: list[DeviationEvent] = []

        self.home: Optional[Coordinate] = None
        self.current_location: Optional[LocationSample] = None
        self.recorded_path: list[LocationSample] = []
        self.distance = 0.0  # meters covered this session
        self._last_sample_for_distance: Optional[LocationSample] = None

        self.active = False
        self.paused = False
        self.start_time: Optional[float] = None
        self._paused_total = 0.0
        self._pause_started: Optional[float] = None
        self._last_log_update = 0.0

        self._ticker_thread: Optional[threading.Thread] = None
        self._ticker_stop = threading.Event()

    # ------------------------------------------------------------------
    # Route lifecycle
    # ------------------------------------------------------------------

    def load_route(self, polyline: Sequence[Coordinate]) -> Route:
        """Select a new planned route, discarding any return route and state"""
        route = build_route(polyline, self.units)
        with self._lock:
            self.planned_route = route
            self.return_route = None
            self._activate(route)
        self.logger.log("Route loaded", {
            "points": len(route.polyline),
            "distance": round(route.total_distance, 1),
            "waypoints": len(route.waypoints),
        })
        if not route.has_guidance:
            self.logger.log("Route too short for guidance, running without route tracking")
        return route

    def _activate(self, route: Optional[Route]):
        """Swap in a route with fresh progress and deviation state. Caller holds the lock."""
        self.route = route
        self.progress_tracker = ProgressTracker(route) if route else None
        self.deviation = DeviationMonitor()
        self.last_match = None

    def enable_return_mode(self) -> ReturnRoute:
        """Plan a route back to start and follow it instead of the planned route.

        Raises:
            NoHomeLocation: if the session has no home location yet
        """
        with self._lock:
            home = self.home
            current = self.current_location.coordinate if self.current_location else home
            path = list(self.recorded_path)
        if home is None:
            raise NoHomeLocation("Return mode needs a home location")

        return_route = plan_return_route(current, path, home, self.units)
        route = build_return_route(return_route, self.units)
        with self._lock:
            self.return_route = return_route
            self._activate(route)
        self.logger.log("Return mode enabled", {
            "strategy": return_route.strategy,
            "distance": round(return_route.total_distance, 1),
            "instruction": return_route.instruction,
        })
        return return_route

    def disable_return_mode(self):
        """Drop the return route and go back to the planned route with fresh state"""
        with self._lock:
            self.return_route = None
            self._activate(self.planned_route)
        self.logger.log("Return mode disabled")

    @property
    def return_mode(self) -> bool:
        return self.return_route is not None

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def start(self, now: Optional[float] = None, home: Optional[Coordinate] = None,
              resume: bool = False):
        """Start the session.

        A fresh start clears the announcement flags; resume=True keeps them so
        a restarted process does not repeat milestones already spoken.
        """
        now = self._now(now)
        with self._lock:
            self.active = True
            self.paused = False
            self.start_time = now
            self._paused_total = 0.0
            self._pause_started = None
            self._last_log_update = now
            self.distance = 0.0
            self.recorded_path = []
            self._last_sample_for_distance = None
            self.current_location = None
            self.home = home
            self.pace.reset()
            if self.route:
                self._activate(self.route)
        if not resume:
            self.scheduler.reset_announcement_tracking()
        self.logger.log("Session started", {"resume": resume, "units": self.units.value})

    def pause(self, now: Optional[float] = None):
        with self._lock:
            if self.active and not self.paused:
                self.paused = True
                self._pause_started = self._now(now)
        self.logger.log("Session paused")

    def resume(self, now: Optional[float] = None):
        with self._lock:
            if self.paused:
                self._paused_total += self._now(now) - self._pause_started
                self._pause_started = None
                self.paused = False
                # Distance across the pause gap is not counted
                self.pace.reset()
                self._last_sample_for_distance = None
        self.logger.log("Session resumed")

    def stop(self, now: Optional[float] = None) -> dict:
        """End the session and return a summary"""
        self.stop_ticker()
        summary = {
            "distance": round(self.distance, 1),
            "elapsed": round(self.elapsed(now), 1),
            "completion": round(self.progress.completion_percentage, 1),
            "deviations": sum(1 for e in self.deviation_events if e is DeviationEvent.DEVIATED),
        }
        with self._lock:
            self.active = False
        self.logger.log("Session summary", summary)
        return summary

    def elapsed(self, now: Optional[float] = None) -> float:
        """Active session time in seconds, excluding pauses"""
        if self.start_time is None:
            return 0.0
        now = self._now(now)
        paused = self._paused_total
        if self._pause_started is not None:
            paused += now - self._pause_started
        return max(0.0, now - self.start_time - paused)

    def _now(self, now: Optional[float]) -> float:
        return now if now is not None else self.clock()

    # ------------------------------------------------------------------
    # Location updates
    # ------------------------------------------------------------------

    def on_location(self, sample: LocationSample) -> Optional[DeviationEvent]:
        """Process one location sample. Returns the deviation transition it caused, if any."""
        announcement = None
        with self._lock:
            if not self.active or self.paused:
                return None
            now = self._now(sample.timestamp)

            if self.home is None:
                self.home = sample.coordinate
            self._accumulate_distance(sample)
            self.recorded_path.append(sample)
            self.current_location = sample
            self.pace.add(sample)

            route = self.route
            if route is None or not route.has_guidance:
                return None

            hint = self.last_match.index if self.last_match else None
            match = match_position(sample.coordinate, route.polyline, hint_index=hint)
            if match is None:
                return None
            self.last_match = match

            event = self.deviation.evaluate(match.distance)
            if self.deviation.is_on_route:
                self.progress_tracker.update(match, self.elapsed(now))

            if event:
                self.deviation_events.append(event)
                announcement = self.scheduler.deviation_announcement(event, match.distance)

        if event:
            self.logger.log("Deviation transition", {
                "event": event.value,
                "distance": round(match.distance, 1),
            })
        if announcement:
            self.announcements.enqueue(announcement)
        return event

    def _accumulate_distance(self, sample: LocationSample):
        previous = self._last_sample_for_distance
        if sample.accuracy is not None and sample.accuracy > CONFIG["max_sample_accuracy"]:
            return
        if previous is not None:
            self.distance += sample_distance(previous, sample)
        self._last_sample_for_distance = sample

    # ------------------------------------------------------------------
    # Announcements
    # ------------------------------------------------------------------

    def snapshot(self, now: Optional[float] = None) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                elapsed=self.elapsed(now),
                distance=self.distance,
                progress=self.progress,
                deviation=self.deviation.state,
                pace=self.pace.current_pace(),
                active=self.active,
                paused=self.paused,
            )

    def tick(self, now: Optional[float] = None) -> Optional[AnnouncementEvent]:
        """Periodic announcement check; enqueues and returns the event it fired"""
        now = self._now(now)
        snapshot = self.snapshot(now)
        event = self.scheduler.tick(snapshot, active=snapshot.active, paused=snapshot.paused)
        if event:
            self.announcements.enqueue(event)

        if now - self._last_log_update >= CONFIG["log_interval"]:
            self.logger.log("STATE", self.get_state(snapshot))
            self._last_log_update = now
        return event

    def reset_announcement_tracking(self):
        self.scheduler.reset_announcement_tracking()

    def start_ticker(self, interval: Optional[float] = None):
        """Run tick() every interval seconds on a background thread"""
        if interval is None:
            interval = CONFIG["announcement_tick_interval"]
        self._ticker_stop.clear()

        def run():
            while not self._ticker_stop.wait(interval):
                self.tick()

        self._ticker_thread = threading.Thread(target=run, daemon=True)
        self._ticker_thread.start()

    def stop_ticker(self):
        self._ticker_stop.set()
        if self._ticker_thread:
            self._ticker_thread.join(timeout=5)
            self._ticker_thread = None

    # ------------------------------------------------------------------
    # Read-only views for rendering collaborators
    # ------------------------------------------------------------------

    @property
    def progress(self) -> ProgressState:
        if self.progress_tracker:
            return self.progress_tracker.state
        return ProgressState()

    @property
    def deviation_state(self) -> DeviationState:
        return self.deviation.state

    @property
    def waypoints(self) -> tuple[Waypoint, ...]:
        return self.route.waypoints if self.route else ()

    def get_state(self, snapshot: Optional[SessionSnapshot] = None) -> dict:
        """Get current state as dict for logging"""
        snapshot = snapshot or self.snapshot()
        state = {
            "elapsed": round(snapshot.elapsed, 1),
            "distance": round(snapshot.distance, 1),
            "progress": snapshot.progress.to_dict(),
            "deviation": snapshot.deviation.to_dict(),
            "return_mode": self.return_mode,
        }
        if snapshot.pace is not None:
            state["pace"] = round(snapshot.pace, 1)
        if self.current_location:
            state["location"] = {
                "lat": self.current_location.lat,
                "lon": self.current_location.lon,
                "accuracy": self.current_location.accuracy,
            }
        return state
