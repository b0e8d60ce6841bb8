#!/usr/bin/env python3
"""
Pacer - Route navigation and progress tracking for runs and walks

Usage:
    python -m pacer ROUTE [TRACE] [options]

Options:
    --units SYSTEM     metric or imperial (default: metric)
    --target-pace M:SS Target pace per kilometer/mile for pace guidance
    --verbosity LEVEL  minimal, standard or comprehensive (default: standard)
    --log FILE         Log file path (default: pacer_TIMESTAMP.log)
    --flags-db FILE    Persist announcement flags in a SQLite file
    --resume           Keep announcement flags from an earlier run of this session
    --return-at N      Switch to return mode after N trace samples
    --preview          Print the route's waypoints without replaying a trace
    --html FILE        Output route visualization to HTML file
    --gpx FILE         Export route and waypoints to GPX file
    --reset-flags      Clear stored announcement flags and exit (needs --flags-db)
    --speak            Speak announcements instead of printing them
"""

import argparse
import sys
from datetime import datetime

from .audio import ConsoleSpeaker
from .config import CONFIG
from .flags import FlagStoreError, MemoryFlagStore, SQLiteFlagStore
from .geo import format_distance, format_duration
from .gps import TracePlayback, load_trace
from .logger import Logger
from .models import PacerError, UnitSystem, Verbosity
from .return_route import NoHomeLocation
from .routes import RouteFileError, export_waypoints_gpx, load_route_file
from .session import NavigationSession


def parse_pace(value: str) -> float:
    """Parse M:SS into seconds"""
    try:
        minutes, seconds = value.split(":")
        return int(minutes) * 60 + int(seconds)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Pace must look like 5:30, got {value!r}")


def print_waypoints(session: NavigationSession):
    route = session.route
    print(f"\nRoute: {len(route.polyline)} points, "
          f"{format_distance(route.total_distance, session.units)}")
    if not route.has_guidance:
        print("  Too short for guidance")
        return
    for wp in route.waypoints:
        print(f"  {format_distance(wp.distance_from_start, session.units):>8}  {wp.instruction}")


def replay(session: NavigationSession, trace_path: str, return_at=None, resume: bool = False):
    """Feed a recorded trace through the session, playing announcements as they fire"""
    playback = TracePlayback(trace_path)
    interval = CONFIG["announcement_tick_interval"]
    started = False
    count = 0
    now = None
    next_tick = None

    for sample in playback.samples():
        now = sample.timestamp
        if not started:
            session.start(now=now, resume=resume)
            started = True
            next_tick = now + interval
        session.on_location(sample)

        # Ticks follow trace time, as the live ticker follows the clock
        if now >= next_tick:
            session.tick(now)
            next_tick += interval * (1 + (now - next_tick) // interval)
        session.announcements.drain()
        count += 1

        if return_at is not None and count == return_at:
            return_route = session.enable_return_mode()
            print(f"\nReturn mode: {return_route.instruction}")

    if not started:
        print("No valid samples in trace")
        return None

    summary = session.stop(now)
    progress = session.progress
    print(f"\nReplayed {count} samples ({playback.get_status()})")
    print(f"  Distance: {format_distance(summary['distance'], session.units)}")
    print(f"  Time: {format_duration(summary['elapsed'])}")
    print(f"  Route completion: {progress.completion_percentage:.1f}%")
    print(f"  Deviations: {summary['deviations']}")
    return summary


def main():
    parser = argparse.ArgumentParser(
        description="Pacer - Route navigation and progress tracking"
    )
    parser.add_argument("route", nargs="?",
                        help="Route file (JSON or GPX)")
    parser.add_argument("trace", nargs="?",
                        help="Recorded trace JSON file to replay against the route")
    parser.add_argument("--units", choices=[u.value for u in UnitSystem], default="metric",
                        help="Unit system (default: metric)")
    parser.add_argument("--target-pace", type=parse_pace, metavar="M:SS",
                        help="Target pace per kilometer or mile")
    parser.add_argument("--verbosity", choices=[v.value for v in Verbosity], default="standard",
                        help="Announcement verbosity (default: standard)")
    parser.add_argument("--log", metavar="FILE",
                        help="Log file path (default: pacer_TIMESTAMP.log)")
    parser.add_argument("--flags-db", metavar="FILE",
                        help="Persist announcement flags in a SQLite file")
    parser.add_argument("--resume", action="store_true",
                        help="Keep announcement flags from an earlier run")
    parser.add_argument("--return-at", type=int, metavar="N",
                        help="Switch to return mode after N trace samples")
    parser.add_argument("--preview", action="store_true",
                        help="Print the route's waypoints and exit")
    parser.add_argument("--html", metavar="FILE",
                        help="Output route visualization to HTML file")
    parser.add_argument("--gpx", metavar="FILE",
                        help="Export route and waypoints to GPX file")
    parser.add_argument("--reset-flags", action="store_true",
                        help="Clear stored announcement flags and exit")
    parser.add_argument("--speak", action="store_true",
                        help="Speak announcements instead of printing them")

    args = parser.parse_args()

    # Reset flags: early exit
    if args.reset_flags:
        if not args.flags_db:
            parser.error("--reset-flags requires --flags-db")
        try:
            store = SQLiteFlagStore(args.flags_db)
            count = store.count()
            store.clear_prefix("")
            store.close()
        except FlagStoreError as e:
            print(f"Could not reset flags: {e}")
            return 1
        print(f"Cleared {count} announcement flags.")
        return 0

    if not args.route:
        parser.error("a route file is required")
    if not args.trace and not (args.preview or args.html or args.gpx):
        parser.error("give a trace to replay, or --preview/--html/--gpx")

    log_path = args.log
    if not log_path:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = f"pacer_{timestamp}.log"
    logger = Logger(log_path, echo=False)

    try:
        store = SQLiteFlagStore(args.flags_db) if args.flags_db else MemoryFlagStore()
    except FlagStoreError as e:
        print(f"Could not open flag store: {e}")
        return 1

    # No speaker means spoken through Audio.announce
    speaker = None if args.speak else ConsoleSpeaker().speak
    session = NavigationSession(
        units=UnitSystem(args.units),
        flag_store=store,
        speaker=speaker,
        target_pace=args.target_pace,
        verbosity=Verbosity(args.verbosity),
        logger=logger,
        playback_delay=0.5 if args.speak else 0.0,
    )

    try:
        session.load_route(load_route_file(args.route))

        if args.preview:
            print_waypoints(session)
        if args.gpx:
            export_waypoints_gpx(session.route, args.gpx)

        if args.trace:
            replay(session, args.trace, args.return_at, args.resume)

        if args.html:
            from .visualize import create_route_map
            trace = load_trace(args.trace) if args.trace else None
            create_route_map(session.planned_route, args.html,
                             trace=trace, return_route=session.return_route)
    except RouteFileError as e:
        print(e)
        return 1
    except NoHomeLocation as e:
        print(f"Cannot plan return route: {e}")
        return 1
    except PacerError as e:
        print(f"Error: {e}")
        return 1
    finally:
        if isinstance(store, SQLiteFlagStore):
            store.close()
        logger.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
