"""Waypoint generation: route polyline to turn-by-turn waypoints."""

import math
from dataclasses import replace
from typing import Optional, Sequence

from .config import CONFIG
from .geo import (
    bearing_between,
    bearing_to_compass,
    classify_turn,
    cumulative_distances,
    format_distance,
    normalize_bearing_delta,
)
from .matcher import match_position
from .models import (
    Checkpoint,
    Coordinate,
    Direction,
    Finish,
    Landmark,
    ReturnRoute,
    Route,
    Start,
    Turn,
    UnitSystem,
    Waypoint,
)


TURN_INSTRUCTIONS = {
    Direction.LEFT: "Turn left",
    Direction.RIGHT: "Turn right",
    Direction.SHARP_LEFT: "Turn sharp left",
    Direction.SHARP_RIGHT: "Turn sharp right",
    Direction.STRAIGHT: "Continue straight",
    Direction.U_TURN: "Make a U-turn",
}


def checkpoint_interval(units: UnitSystem) -> float:
    if units is UnitSystem.METRIC:
        return CONFIG["checkpoint_interval_metric"]
    return CONFIG["checkpoint_interval_imperial"]


def generate_waypoints(polyline: Sequence[Coordinate],
                       units: UnitSystem = UnitSystem.METRIC,
                       interval: Optional[float] = None) -> list[Waypoint]:
    """Convert a route polyline into ordered waypoints.

    Polylines with fewer than 3 points have no usable geometry and yield an
    empty list; callers fall back to running without guidance.

    Args:
        polyline: Ordered route coordinates
        units: Unit preference, selects the checkpoint interval and text
        interval: Checkpoint spacing in meters, overriding the unit default

    Returns:
        Waypoints ordered by distance from start, Start first and Finish last
    """
    if len(polyline) < 3:
        return []

    if interval is None:
        interval = checkpoint_interval(units)
    cumulative = cumulative_distances(polyline)

    first_bearing = bearing_between(polyline[0].lat, polyline[0].lon,
                                    polyline[1].lat, polyline[1].lon)
    waypoints = [Waypoint(
        coordinate=polyline[0],
        instruction=f"Start heading {bearing_to_compass(first_bearing)}",
        kind=Start(),
        distance_from_start=0.0,
    )]

    for i in range(1, len(polyline)):
        # Checkpoints inside the segment come before any turn at its end vertex
        waypoints.extend(_segment_checkpoints(polyline, cumulative, i, interval, units))
        if i == len(polyline) - 1:
            break

        prev_pt, curr_pt, next_pt = polyline[i - 1], polyline[i], polyline[i + 1]
        incoming = bearing_between(prev_pt.lat, prev_pt.lon, curr_pt.lat, curr_pt.lon)
        outgoing = bearing_between(curr_pt.lat, curr_pt.lon, next_pt.lat, next_pt.lon)
        direction = classify_turn(normalize_bearing_delta(outgoing - incoming))
        if direction is not None:
            waypoints.append(Waypoint(
                coordinate=curr_pt,
                instruction=TURN_INSTRUCTIONS[direction],
                kind=Turn(direction),
                distance_from_start=cumulative[i],
            ))

    total = cumulative[-1]
    waypoints.append(Waypoint(
        coordinate=polyline[-1],
        instruction=f"Finish, {format_distance(total, units)}",
        kind=Finish(),
        distance_from_start=total,
    ))
    return waypoints


def _segment_checkpoints(polyline: Sequence[Coordinate], cumulative: Sequence[float],
                         i: int, interval: float, units: UnitSystem) -> list[Waypoint]:
    """Checkpoints for each interval multiple crossed on the segment ending at vertex i.

    Each one sits at its exact distance, interpolated inside the segment. A
    multiple that lands on the finish is left to the Finish waypoint.
    """
    start, end = cumulative[i - 1], cumulative[i]
    length = end - start
    if length <= 0:
        return []
    last_allowed = cumulative[-1] - CONFIG["checkpoint_finish_tolerance"]
    a, b = polyline[i - 1], polyline[i]

    checkpoints = []
    multiple = math.floor(start / interval) + 1
    while multiple * interval <= min(end, last_allowed):
        distance = multiple * interval
        fraction = (distance - start) / length
        checkpoints.append(Waypoint(
            coordinate=Coordinate(a.lat + fraction * (b.lat - a.lat),
                                  a.lon + fraction * (b.lon - a.lon)),
            instruction=f"Checkpoint, {format_distance(distance, units)}",
            kind=Checkpoint(),
            distance_from_start=distance,
        ))
        multiple += 1
    return checkpoints


def build_route(polyline: Sequence[Coordinate],
                units: UnitSystem = UnitSystem.METRIC) -> Route:
    """Build the immutable route bundle for a polyline"""
    points = tuple(polyline)
    return Route(
        polyline=points,
        cumulative=tuple(cumulative_distances(points)),
        waypoints=tuple(generate_waypoints(points, units)),
    )


def build_return_route(return_route: ReturnRoute,
                       units: UnitSystem = UnitSystem.METRIC) -> Route:
    """Route bundle for a return route: its single instruction and a finish, no turns.

    Matching and progress run against the return coordinates as usual; only
    the guidance is reduced to the static instruction.
    """
    points = return_route.coordinates
    cumulative = tuple(cumulative_distances(points))
    total = cumulative[-1] if cumulative else 0.0
    waypoints = (
        Waypoint(
            coordinate=points[0],
            instruction=return_route.instruction,
            kind=Start(),
            distance_from_start=0.0,
        ),
        Waypoint(
            coordinate=points[-1],
            instruction=f"Finish, {format_distance(total, units)}",
            kind=Finish(),
            distance_from_start=total,
        ),
    )
    return Route(polyline=points, cumulative=cumulative, waypoints=waypoints)


def attach_landmarks(route: Route, landmarks: Sequence[tuple[str, Coordinate]],
                     max_distance: Optional[float] = None) -> Route:
    """Return a copy of route with named landmarks inserted as waypoints.

    Each landmark snaps to its nearest route vertex; landmarks farther than
    max_distance from the route are ignored. Routes without guidance are
    returned unchanged.
    """
    if not route.has_guidance or not landmarks:
        return route
    if max_distance is None:
        max_distance = CONFIG["landmark_max_distance"]

    added = []
    for name, location in landmarks:
        match = match_position(location, route.polyline)
        if match is None or match.distance > max_distance:
            continue
        added.append(Waypoint(
            coordinate=route.polyline[match.index],
            instruction=f"Passing {name}",
            kind=Landmark(name),
            distance_from_start=route.cumulative[match.index],
        ))

    if not added:
        return route

    start, *middle, finish = route.waypoints
    middle = sorted(middle + added, key=lambda w: w.distance_from_start)
    return replace(route, waypoints=tuple([start, *middle, finish]))
