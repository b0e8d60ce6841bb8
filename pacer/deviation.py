"""Route deviation monitoring with hysteresis."""

from enum import Enum
from typing import Optional

from .config import CONFIG
from .models import DeviationState


class DeviationEvent(Enum):
    DEVIATED = "deviated"
    BACK_ON_ROUTE = "back_on_route"


class RouteState(Enum):
    ON_ROUTE = "on_route"
    OFF_ROUTE = "off_route"


class DeviationMonitor:
    """Two-threshold state machine over match distances.

    At or below the re-entry threshold the runner is on route. Between the
    thresholds they are off route but nothing is announced, so GPS jitter
    around the boundary stays quiet. Above the alarm threshold a single
    DEVIATED event fires; it cannot fire again until the runner has come back
    on route. Coming back after an announced deviation emits BACK_ON_ROUTE.
    """

    def __init__(self, on_route_threshold: Optional[float] = None,
                 deviation_threshold: Optional[float] = None):
        self.on_route_threshold = (on_route_threshold if on_route_threshold is not None
                                   else CONFIG["on_route_threshold"])
        self.deviation_threshold = (deviation_threshold if deviation_threshold is not None
                                    else CONFIG["deviation_threshold"])
        self.route_state = RouteState.ON_ROUTE
        self.announced = False
        self.last_distance = 0.0

    def reset(self):
        self.route_state = RouteState.ON_ROUTE
        self.announced = False
        self.last_distance = 0.0

    @property
    def is_on_route(self) -> bool:
        return self.route_state is RouteState.ON_ROUTE

    @property
    def state(self) -> DeviationState:
        return DeviationState(
            is_on_route=self.is_on_route,
            deviation_distance=self.last_distance,
            has_announced_deviation=self.announced,
        )

    def evaluate(self, distance: float) -> Optional[DeviationEvent]:
        """Feed one match distance (meters). Returns the event it triggers, if any."""
        self.last_distance = distance

        if distance <= self.on_route_threshold:
            was_announced = self.route_state is RouteState.OFF_ROUTE and self.announced
            self.route_state = RouteState.ON_ROUTE
            self.announced = False
            return DeviationEvent.BACK_ON_ROUTE if was_announced else None

        self.route_state = RouteState.OFF_ROUTE
        if distance > self.deviation_threshold and not self.announced:
            self.announced = True
            return DeviationEvent.DEVIATED
        return None
