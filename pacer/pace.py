"""Rolling pace estimation and pace-versus-target classification."""

from collections import deque
from typing import Optional

from .config import CONFIG
from .geo import sample_distance
from .models import LocationSample, PaceStatus, UnitSystem


class PaceEstimator:
    """Pace over a rolling time window of location samples.

    A reading is only reported once the window holds enough samples spanning
    enough ground; standing still or a fresh start gives no reading rather
    than a wild one.
    """

    def __init__(self, units: UnitSystem = UnitSystem.METRIC,
                 window: Optional[float] = None,
                 min_samples: Optional[int] = None,
                 min_distance: Optional[float] = None):
        self.units = units
        self.window = window if window is not None else CONFIG["pace_window"]
        self.min_samples = min_samples if min_samples is not None else CONFIG["pace_min_samples"]
        self.min_distance = (min_distance if min_distance is not None
                             else CONFIG["pace_min_window_distance"])
        self._points: deque = deque()  # (timestamp, cumulative meters)
        self._last_sample: Optional[LocationSample] = None
        self._distance = 0.0

    def reset(self):
        self._points.clear()
        self._last_sample = None
        self._distance = 0.0

    def add(self, sample: LocationSample):
        if sample.timestamp is None:
            return
        if self._last_sample is not None:
            self._distance += sample_distance(self._last_sample, sample)
        self._last_sample = sample
        self._points.append((sample.timestamp, self._distance))

        cutoff = sample.timestamp - self.window
        while self._points and self._points[0][0] < cutoff:
            self._points.popleft()

    def current_pace(self) -> Optional[float]:
        """Seconds per kilometer or mile, or None without a stable reading"""
        if len(self._points) < self.min_samples:
            return None
        (t0, d0), (t1, d1) = self._points[0], self._points[-1]
        span, covered = t1 - t0, d1 - d0
        if span <= 0 or covered < self.min_distance:
            return None
        return span / covered * self.units.unit_length


def pace_status(current: float, target: float) -> PaceStatus:
    """Classify a pace against a target (both in seconds per unit).

    Within the on-target tolerance is ON_TARGET; beyond the off-target
    tolerance is TOO_SLOW or TOO_FAST; the band between is DEAD_ZONE.
    """
    ratio = (current - target) / target
    if abs(ratio) <= CONFIG["pace_on_target_tolerance"]:
        return PaceStatus.ON_TARGET
    if abs(ratio) > CONFIG["pace_off_target_tolerance"]:
        return PaceStatus.TOO_SLOW if ratio > 0 else PaceStatus.TOO_FAST
    return PaceStatus.DEAD_ZONE
