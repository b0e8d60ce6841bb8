"""Configuration settings for Pacer."""

CONFIG = {
    # Waypoint generation
    "turn_min_angle": 30,        # degrees - below this no turn waypoint is emitted
    "turn_sharp_angle": 120,     # degrees - at or above this a turn is sharp
    "turn_uturn_angle": 150,     # degrees - above this a turn is a u-turn
    "checkpoint_interval_metric": 1000.0,    # meters
    "checkpoint_interval_imperial": 804.67,  # meters (half a mile)
    "checkpoint_finish_tolerance": 1.0,      # meters - a multiple this close to the finish is left to Finish
    "landmark_max_distance": 50,  # meters - landmarks farther than this from the route are dropped
    # Route matching
    "route_matching": "vertex",   # "vertex" (nearest vertex) or "segment" (point-to-segment projection)
    "match_tie_tolerance": 0.5,   # meters - near-equal vertices resolve toward the last matched index
    # Deviation hysteresis
    "on_route_threshold": 50,     # meters - back on route at or below this
    "deviation_threshold": 100,   # meters - announce deviation above this
    # Return route
    "return_direct_distance": 500,    # meters - closer than this heads directly home
    "return_min_path_points": 10,     # recorded points needed to follow the path back
    "return_curve_distance": 200,     # meters - direct routes longer than this get a curved midpoint
    "return_curve_max_offset": 0.0001,  # degrees
    "return_min_stride": 3,
    "return_stride_divisor": 25,
    # Announcements
    "announcement_tick_interval": 10,   # seconds between scheduler ticks
    "announcement_warmup": 60,          # seconds before any scheduled announcement
    "milestone_window": 0.05,           # fraction of a unit after a milestone where it may fire
    "milestone_min_fraction": 0.95,
    "time_announcement_interval": 10,   # minutes
    "time_milestone_deferral": 0.2,     # units - skip time updates this close to the next milestone
    "playback_delay": 0.5,              # seconds after each announcement (0.3-0.8)
    "announcement_history": 50,         # recently played announcements kept for inspection
    "speech_timeout": 30,               # seconds before a stuck espeak call is abandoned
    # (words per minute, espeak amplitude) per announcement category
    "speech_voice": {
        "deviation": (135, 160),
        "default": (150, 100),
    },
    # Pace guidance
    "pace_warmup": 30,                  # seconds
    "pace_announcement_interval": 60,   # seconds between pace announcements
    "pace_on_target_tolerance": 0.05,   # fraction of target pace
    "pace_off_target_tolerance": 0.10,  # fraction of target pace
    "pace_window": 30,                  # seconds of samples in the rolling pace window
    "pace_min_samples": 4,
    "pace_min_window_distance": 20,     # meters - slower than this is treated as standing still
    # Location stream
    "max_sample_accuracy": 50,          # meters - worse fixes do not add session distance
    "log_interval": 10,                 # seconds between STATE log entries
}
