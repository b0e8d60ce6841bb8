"""Data classes for Pacer."""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Union


class PacerError(Exception):
    """Base class for Pacer errors"""


class UnitSystem(Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"

    @property
    def unit_length(self) -> float:
        """Meters in one kilometer or one mile"""
        return 1000.0 if self is UnitSystem.METRIC else 1609.34

    @property
    def unit_name(self) -> str:
        return "kilometer" if self is UnitSystem.METRIC else "mile"

    @property
    def unit_abbreviation(self) -> str:
        return "km" if self is UnitSystem.METRIC else "mi"


class Verbosity(Enum):
    MINIMAL = "minimal"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"
    SHARP_LEFT = "sharp left"
    SHARP_RIGHT = "sharp right"
    STRAIGHT = "straight"
    U_TURN = "u-turn"


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float

    def to_list(self) -> list[float]:
        return [self.lat, self.lon]


@dataclass
class LocationSample:
    """A single fix from the location stream"""
    lat: float
    lon: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    timestamp: Optional[float] = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "LocationSample":
        return cls(
            lat=d["lat"],
            lon=d["lon"],
            accuracy=d.get("accuracy"),
            speed=d.get("speed"),
            timestamp=d.get("timestamp"),
        )


# Waypoint kinds form a closed set; check them with isinstance.

@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Turn:
    direction: Direction


@dataclass(frozen=True)
class Landmark:
    name: str


@dataclass(frozen=True)
class Checkpoint:
    pass


@dataclass(frozen=True)
class Finish:
    pass


WaypointKind = Union[Start, Turn, Landmark, Checkpoint, Finish]


@dataclass(frozen=True)
class Waypoint:
    """A point of interest along a planned route"""
    coordinate: Coordinate
    instruction: str
    kind: WaypointKind
    distance_from_start: float  # meters

    def to_dict(self) -> dict:
        kind = type(self.kind).__name__.lower()
        data = {
            "lat": self.coordinate.lat,
            "lon": self.coordinate.lon,
            "instruction": self.instruction,
            "kind": kind,
            "distance_from_start": round(self.distance_from_start, 1),
        }
        if isinstance(self.kind, Turn):
            data["direction"] = self.kind.direction.value
        elif isinstance(self.kind, Landmark):
            data["name"] = self.kind.name
        return data


@dataclass(frozen=True)
class Route:
    """A loaded route: polyline plus everything derived from it.

    Built once per route selection and never mutated, so a session can swap
    it in with a single assignment.
    """
    polyline: tuple[Coordinate, ...]
    cumulative: tuple[float, ...]  # meters from start at each vertex
    waypoints: tuple[Waypoint, ...]

    @property
    def total_distance(self) -> float:
        return self.cumulative[-1] if self.cumulative else 0.0

    @property
    def has_guidance(self) -> bool:
        """False when the polyline was too short to produce waypoints"""
        return bool(self.waypoints)


@dataclass(frozen=True)
class MatchResult:
    index: int
    distance: float        # meters from the position to the matched point
    offset: float = 0.0    # meters past polyline[index] along the next segment


@dataclass
class ProgressState:
    completed_distance: float = 0.0
    remaining_distance: float = 0.0
    completion_percentage: float = 0.0
    estimated_time_remaining: float = 0.0  # seconds
    next_waypoint_distance: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DeviationState:
    is_on_route: bool = True
    deviation_distance: float = 0.0
    has_announced_deviation: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ReturnRoute:
    coordinates: tuple[Coordinate, ...]
    total_distance: float
    instruction: str
    strategy: str  # "direct" or "reversed_path"


class AnnouncementCategory(Enum):
    MILESTONE = "milestone"
    TIME_UPDATE = "time_update"
    DEVIATION = "deviation"
    PACE_GUIDANCE = "pace_guidance"


@dataclass(frozen=True)
class AnnouncementEvent:
    category: AnnouncementCategory
    text: str


class PaceStatus(Enum):
    ON_TARGET = "on_target"
    DEAD_ZONE = "dead_zone"
    TOO_SLOW = "too_slow"
    TOO_FAST = "too_fast"


@dataclass
class SessionSnapshot:
    """Read-only copy of session state handed to the announcement tick"""
    elapsed: float
    distance: float
    progress: ProgressState = field(default_factory=ProgressState)
    deviation: DeviationState = field(default_factory=DeviationState)
    pace: Optional[float] = None  # seconds per unit
    active: bool = True
    paused: bool = False
