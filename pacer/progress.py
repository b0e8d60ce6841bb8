"""Progress tracking along a loaded route."""

from dataclasses import replace

from .models import MatchResult, ProgressState, Route


class ProgressTracker:
    """Turns route matches into completion, remaining distance and ETA.

    Only fed while the runner is on route; progress within one route never
    goes backwards, so a nearest-vertex match snapping to an earlier part of
    an out-and-back or looping route does not undo completed distance.
    """

    def __init__(self, route: Route):
        self.route = route
        self.state = ProgressState(remaining_distance=route.total_distance)

    def reset(self):
        self.state = ProgressState(remaining_distance=self.route.total_distance)

    def update(self, match: MatchResult, elapsed_time: float) -> ProgressState:
        """Advance progress for an on-route match.

        Args:
            match: Result from match_position against this route's polyline
            elapsed_time: Session time in seconds, used for the ETA

        Returns:
            The updated ProgressState (a fresh object; earlier snapshots are untouched)
        """
        total = self.route.total_distance
        completed = self.route.cumulative[match.index] + match.offset
        completed = min(max(completed, 0.0), total)

        completed = max(completed, self.state.completed_distance)

        remaining = total - completed
        percentage = completed / total * 100 if total > 0 else 0.0
        percentage = min(max(percentage, 0.0), 100.0)

        if completed > 0:
            eta = remaining * (elapsed_time / completed)
        else:
            eta = 0.0

        self.state = replace(
            self.state,
            completed_distance=completed,
            remaining_distance=remaining,
            completion_percentage=percentage,
            estimated_time_remaining=eta,
            next_waypoint_distance=self._next_waypoint_distance(completed),
        )
        return self.state

    def _next_waypoint_distance(self, completed: float) -> float:
        for waypoint in self.route.waypoints:
            if waypoint.distance_from_start > completed:
                return waypoint.distance_from_start - completed
        return 0.0
