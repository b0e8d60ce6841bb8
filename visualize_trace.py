#!/usr/bin/env python3
"""
Visualize a recorded trace against its route on a map.

Usage:
    python visualize_trace.py route.json trace.json [--output map.html] [--return-at N]
"""

import argparse

from pacer import (
    LocationSample,
    PacerError,
    build_route,
    load_route_file,
    load_trace,
    plan_return_route,
)
from pacer.visualize import create_route_map


def main():
    parser = argparse.ArgumentParser(description="Visualize a trace against its route")
    parser.add_argument("route", help="Route file (JSON or GPX)")
    parser.add_argument("trace", nargs="?", help="Trace JSON file")
    parser.add_argument("-o", "--output", default="trace_map.html",
                        help="Output HTML file (default: trace_map.html)")
    parser.add_argument("--return-at", type=int, metavar="N",
                        help="Also draw the return route planned at trace sample N")

    args = parser.parse_args()

    try:
        route = build_route(load_route_file(args.route))
        trace = load_trace(args.trace) if args.trace else None
    except PacerError as e:
        print(e)
        return 1

    return_route = None
    if trace and args.return_at:
        samples = [LocationSample.from_dict(e["location"]) for e in trace if e.get("location")]
        path = samples[:args.return_at]
        if path:
            return_route = plan_return_route(path[-1].coordinate, path, path[0].coordinate)
            print(f"Return route: {return_route.instruction}")

    create_route_map(route, args.output, trace=trace, return_route=return_route)

    if trace:
        valid = sum(1 for e in trace if e.get("location"))
        print(f"  {valid} valid points, {len(trace) - valid} failures")
    return 0


if __name__ == "__main__":
    exit(main())
