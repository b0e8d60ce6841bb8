"""Ad-hoc route back to the session's start location."""

from typing import Optional, Sequence

from .config import CONFIG
from .geo import (
    bearing_between,
    bearing_to_compass,
    distance_between,
    format_distance,
    midpoint,
    offset_perpendicular,
    path_length,
)
from .matcher import match_position
from .models import Coordinate, PacerError, ReturnRoute, UnitSystem


class NoHomeLocation(PacerError):
    """Return routing was requested before a home location was known"""


def plan_return_route(current: Coordinate, recorded_path: Sequence,
                      home: Optional[Coordinate],
                      units: UnitSystem = UnitSystem.METRIC) -> ReturnRoute:
    """Synthesize a route from the current position back to home.

    Close to home, or with too little recorded path to follow, the route
    heads straight there. Otherwise it retraces the recorded path backwards
    from the point nearest the current position, thinned by a stride.

    Args:
        current: Current position
        recorded_path: Points visited this session, oldest first (anything with lat/lon)
        home: Session start location
        units: Unit preference for the instruction text

    Raises:
        NoHomeLocation: if home is None
    """
    if home is None:
        raise NoHomeLocation("No home location set for this session")

    path = [Coordinate(p.lat, p.lon) for p in recorded_path]
    distance_home = distance_between(current, home)

    if (distance_home < CONFIG["return_direct_distance"] or
            len(path) < CONFIG["return_min_path_points"]):
        return _direct_route(current, home, distance_home, units)
    return _reversed_path_route(current, path, home, units)


def _direct_route(current: Coordinate, home: Coordinate, distance_home: float,
                  units: UnitSystem) -> ReturnRoute:
    bearing = bearing_between(current.lat, current.lon, home.lat, home.lon)
    coordinates = [current]
    if distance_home > CONFIG["return_curve_distance"]:
        offset = min(CONFIG["return_curve_max_offset"], distance_home / 10_000_000)
        coordinates.append(offset_perpendicular(midpoint(current, home), bearing, offset))
    coordinates.append(home)

    instruction = (f"Head {bearing_to_compass(bearing)} directly to start, "
                   f"{format_distance(distance_home, units)} away")
    return ReturnRoute(
        coordinates=tuple(coordinates),
        total_distance=path_length(coordinates),
        instruction=instruction,
        strategy="direct",
    )


def _reversed_path_route(current: Coordinate, path: list[Coordinate],
                         home: Coordinate, units: UnitSystem) -> ReturnRoute:
    nearest = match_position(current, path, mode="vertex")
    stride = max(CONFIG["return_min_stride"], len(path) // CONFIG["return_stride_divisor"])

    indices = list(range(nearest.index, -1, -stride))
    if indices[-1] != 0:
        indices.append(0)

    coordinates = [current]
    for point in [path[i] for i in indices] + [home]:
        # The current position is usually the last recorded sample
        if point != coordinates[-1]:
            coordinates.append(point)

    total = path_length(coordinates)
    return ReturnRoute(
        coordinates=tuple(coordinates),
        total_distance=total,
        instruction=f"Follow your path back to start, {format_distance(total, units)} total",
        strategy="reversed_path",
    )
