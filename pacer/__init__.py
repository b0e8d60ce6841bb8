"""Pacer - Route navigation and progress tracking for runs and walks."""

from .config import CONFIG
from .models import (
    PacerError,
    UnitSystem,
    Verbosity,
    Direction,
    Coordinate,
    LocationSample,
    Start,
    Turn,
    Landmark,
    Checkpoint,
    Finish,
    Waypoint,
    Route,
    MatchResult,
    ProgressState,
    DeviationState,
    ReturnRoute,
    AnnouncementCategory,
    AnnouncementEvent,
    PaceStatus,
    SessionSnapshot,
)
from .logger import Logger
from .geo import (
    haversine_distance,
    bearing_between,
    bearing_to_compass,
    format_distance,
)
from .waypoints import generate_waypoints, build_route, build_return_route, attach_landmarks
from .matcher import match_position
from .progress import ProgressTracker
from .deviation import DeviationMonitor, DeviationEvent
from .return_route import plan_return_route, NoHomeLocation
from .flags import AnnouncementFlags, MemoryFlagStore, SQLiteFlagStore, FlagStoreError
from .pace import PaceEstimator, pace_status
from .announcements import AnnouncementScheduler, AnnouncementQueue
from .audio import Audio, ConsoleSpeaker
from .routes import load_route_file, save_route_file, export_waypoints_gpx, RouteFileError
from .gps import TraceRecorder, TracePlayback, load_trace, save_trace
from .session import NavigationSession

__all__ = [
    "CONFIG",
    "PacerError",
    "UnitSystem",
    "Verbosity",
    "Direction",
    "Coordinate",
    "LocationSample",
    "Start",
    "Turn",
    "Landmark",
    "Checkpoint",
    "Finish",
    "Waypoint",
    "Route",
    "MatchResult",
    "ProgressState",
    "DeviationState",
    "ReturnRoute",
    "AnnouncementCategory",
    "AnnouncementEvent",
    "PaceStatus",
    "SessionSnapshot",
    "Logger",
    "haversine_distance",
    "bearing_between",
    "bearing_to_compass",
    "format_distance",
    "generate_waypoints",
    "build_route",
    "build_return_route",
    "attach_landmarks",
    "match_position",
    "ProgressTracker",
    "DeviationMonitor",
    "DeviationEvent",
    "plan_return_route",
    "NoHomeLocation",
    "AnnouncementFlags",
    "MemoryFlagStore",
    "SQLiteFlagStore",
    "FlagStoreError",
    "PaceEstimator",
    "pace_status",
    "AnnouncementScheduler",
    "AnnouncementQueue",
    "Audio",
    "ConsoleSpeaker",
    "load_route_file",
    "save_route_file",
    "export_waypoints_gpx",
    "RouteFileError",
    "TraceRecorder",
    "TracePlayback",
    "load_trace",
    "save_trace",
    "NavigationSession",
]
