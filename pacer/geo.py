"""Geographic utility functions."""

from __future__ import annotations

import math
from typing import Optional, Sequence, TYPE_CHECKING

from .config import CONFIG
from .models import Coordinate, Direction, UnitSystem

if TYPE_CHECKING:
    from .models import LocationSample

EARTH_RADIUS = 6371000  # meters
METERS_PER_MILE = 1609.34
FEET_PER_METER = 3.28084


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using Haversine formula"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS * c


def distance_between(a: Coordinate, b: Coordinate) -> float:
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def bearing_between(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate bearing from point 1 to point 2 in degrees (0-360, 0=North)"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = (math.cos(phi1) * math.sin(phi2) -
         math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda))

    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def bearing_to_compass(bearing: float) -> str:
    """Convert bearing to compass direction"""
    directions = ["north", "northeast", "east", "southeast",
                  "south", "southwest", "west", "northwest"]
    index = round(bearing / 45) % 8
    return directions[index]


def normalize_bearing_delta(delta: float) -> float:
    """Wrap a bearing difference into (-180, 180]. Positive is clockwise."""
    delta = delta % 360
    if delta > 180:
        delta -= 360
    return delta


def classify_turn(delta: float) -> Optional[Direction]:
    """Map a normalized bearing change to a turn direction, or None if too gentle.

    <30 no turn, 30-120 left/right, 120-150 sharp, >150 u-turn.
    """
    magnitude = abs(delta)
    if magnitude < CONFIG["turn_min_angle"]:
        return None
    if magnitude > CONFIG["turn_uturn_angle"]:
        return Direction.U_TURN
    if magnitude >= CONFIG["turn_sharp_angle"]:
        return Direction.SHARP_RIGHT if delta > 0 else Direction.SHARP_LEFT
    return Direction.RIGHT if delta > 0 else Direction.LEFT


def cumulative_distances(polyline: Sequence[Coordinate]) -> list[float]:
    """Distance from the first vertex to every vertex, in meters"""
    if not polyline:
        return []
    totals = [0.0]
    for prev, curr in zip(polyline, polyline[1:]):
        totals.append(totals[-1] + distance_between(prev, curr))
    return totals


def path_length(points: Sequence[Coordinate]) -> float:
    total = 0.0
    for prev, curr in zip(points, points[1:]):
        total += distance_between(prev, curr)
    return total


def midpoint(a: Coordinate, b: Coordinate) -> Coordinate:
    return Coordinate((a.lat + b.lat) / 2, (a.lon + b.lon) / 2)


def offset_perpendicular(point: Coordinate, bearing: float, offset_degrees: float) -> Coordinate:
    """Shift a point sideways (90 degrees clockwise of bearing) by a few degrees"""
    perpendicular = math.radians((bearing + 90) % 360)
    return Coordinate(
        point.lat + offset_degrees * math.cos(perpendicular),
        point.lon + offset_degrees * math.sin(perpendicular),
    )


def project_onto_segment(point: Coordinate, a: Coordinate, b: Coordinate) -> tuple[float, float]:
    """Project point onto segment a-b.

    Uses a local equirectangular projection, fine at route-segment scale.
    Returns (distance in meters from point to the segment, fraction along a-b in [0, 1]).
    """
    cos_lat = math.cos(math.radians(a.lat))
    ax, ay = 0.0, 0.0
    bx = (b.lon - a.lon) * cos_lat
    by = b.lat - a.lat
    px = (point.lon - a.lon) * cos_lat
    py = point.lat - a.lat

    seg_len_sq = bx * bx + by * by
    if seg_len_sq == 0:
        return distance_between(point, a), 0.0

    t = ((px - ax) * bx + (py - ay) * by) / seg_len_sq
    t = max(0.0, min(1.0, t))
    closest = Coordinate(a.lat + t * (b.lat - a.lat), a.lon + t * (b.lon - a.lon))
    return distance_between(point, closest), t


def format_distance(meters: float, units: UnitSystem) -> str:
    """Human-readable distance: km/m for metric, mi/ft for imperial"""
    if units is UnitSystem.METRIC:
        if meters >= 1000:
            return f"{meters / 1000:.1f} km"
        return f"{meters:.0f} m"
    miles = meters / METERS_PER_MILE
    if miles >= 0.1:
        return f"{miles:.1f} mi"
    return f"{meters * FEET_PER_METER:.0f} ft"


def format_duration(seconds: float) -> str:
    """Spoken duration, e.g. '1 hour 5 minutes' or '4 minutes 30 seconds'"""
    total = int(round(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    parts = []
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if secs and not hours:
        parts.append(f"{secs} second{'s' if secs != 1 else ''}")
    return " ".join(parts) if parts else "0 seconds"


def format_pace(seconds_per_unit: float) -> str:
    """Pace as m:ss"""
    total = int(round(seconds_per_unit))
    return f"{total // 60}:{total % 60:02d}"


def sample_distance(prev: "LocationSample", curr: "LocationSample") -> float:
    return haversine_distance(prev.lat, prev.lon, curr.lat, curr.lon)
