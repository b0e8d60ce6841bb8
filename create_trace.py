#!/usr/bin/env python3
"""
Create a synthetic location trace along a route, for replaying with pacer.

Usage:
    python create_trace.py route.json [-o trace.json] [--speed 3.0] [--interval 5]
                           [--jitter 5] [--detour-at 0.5 --detour 150]

The trace uses the recorder format, so it can be replayed with
`python -m pacer route.json trace.json` and drawn with visualize_trace.py.
"""

import argparse
import random
import time

from pacer import (
    Coordinate,
    LocationSample,
    RouteFileError,
    TraceRecorder,
    bearing_between,
    load_route_file,
)
from pacer.geo import cumulative_distances, offset_perpendicular


METERS_PER_DEGREE = 111_320


def interpolate(polyline: list[Coordinate], cumulative: list[float], distance: float) -> tuple[Coordinate, float]:
    """Point at a distance along the polyline, plus the bearing of its segment"""
    for i in range(len(polyline) - 1):
        if cumulative[i + 1] >= distance:
            a, b = polyline[i], polyline[i + 1]
            length = cumulative[i + 1] - cumulative[i]
            t = (distance - cumulative[i]) / length if length > 0 else 0.0
            point = Coordinate(a.lat + t * (b.lat - a.lat), a.lon + t * (b.lon - a.lon))
            return point, bearing_between(a.lat, a.lon, b.lat, b.lon)
    last, prev = polyline[-1], polyline[-2]
    return last, bearing_between(prev.lat, prev.lon, last.lat, last.lon)


def create_trace(polyline: list[Coordinate], recorder: TraceRecorder, speed: float,
                 interval: float, jitter: float = 0.0,
                 detour_at: float = None, detour: float = 0.0):
    """Walk the route at a steady speed, recording a sample every interval seconds"""
    cumulative = cumulative_distances(polyline)
    total = cumulative[-1]
    start = recorder.start_time
    elapsed = 0.0

    while True:
        covered = min(speed * elapsed, total)
        point, bearing = interpolate(polyline, cumulative, covered)

        # Bulge sideways around detour_at, peaking at the detour distance
        if detour_at is not None and detour:
            fraction = covered / total if total else 0.0
            spread = 0.1
            weight = max(0.0, 1 - abs(fraction - detour_at) / spread)
            if weight:
                point = offset_perpendicular(point, bearing, weight * detour / METERS_PER_DEGREE)

        if jitter:
            point = Coordinate(
                point.lat + random.gauss(0, jitter) / METERS_PER_DEGREE,
                point.lon + random.gauss(0, jitter) / METERS_PER_DEGREE,
            )

        recorder.record(LocationSample(
            lat=point.lat,
            lon=point.lon,
            accuracy=max(3.0, jitter),
            speed=speed,
            timestamp=start + elapsed,
        ))

        if covered >= total:
            break
        elapsed += interval


def main():
    parser = argparse.ArgumentParser(description="Create a synthetic trace along a route")
    parser.add_argument("route", help="Route file (JSON or GPX)")
    parser.add_argument("-o", "--output", default="trace.json",
                        help="Output trace file (default: trace.json)")
    parser.add_argument("--speed", type=float, default=3.0,
                        help="Speed in m/s (default: 3.0)")
    parser.add_argument("--interval", type=float, default=5.0,
                        help="Seconds between samples (default: 5)")
    parser.add_argument("--jitter", type=float, default=0.0,
                        help="GPS noise standard deviation in meters (default: 0)")
    parser.add_argument("--detour-at", type=float, metavar="FRACTION",
                        help="Leave the route around this fraction of its length")
    parser.add_argument("--detour", type=float, default=150.0,
                        help="Peak detour distance in meters (default: 150)")
    parser.add_argument("--seed", type=int, help="Random seed for jitter")

    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    try:
        polyline = load_route_file(args.route)
    except RouteFileError as e:
        print(e)
        return 1
    if len(polyline) < 2:
        print("Route needs at least 2 points")
        return 1

    recorder = TraceRecorder(args.output, start_time=time.time())
    create_trace(polyline, recorder, args.speed, args.interval, args.jitter,
                 args.detour_at, args.detour)
    recorder.save()
    return 0


if __name__ == "__main__":
    exit(main())
