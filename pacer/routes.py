"""Route file loading and GPX export."""

import json
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import Coordinate, PacerError, Route


class RouteFileError(PacerError):
    """A route or trace file could not be read"""


def load_route_file(path: str) -> list[Coordinate]:
    """Load a route polyline from JSON or GPX.

    JSON files hold {"route": [[lat, lon], ...]}. GPX files are read from
    track points, falling back to route points.

    Raises:
        RouteFileError: if the file is missing, malformed or has no points
    """
    if not Path(path).exists():
        raise RouteFileError(f"Route file not found: {path}")

    if path.lower().endswith(".gpx"):
        points = _load_gpx(path)
    else:
        points = _load_json(path)

    if not points:
        raise RouteFileError(f"No route points in {path}")
    return points


def _load_json(path: str) -> list[Coordinate]:
    try:
        with open(path) as f:
            data = json.load(f)
        return [Coordinate(float(lat), float(lon)) for lat, lon in data["route"]]
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise RouteFileError(f"Invalid route JSON {path}: {e}") from e


def _load_gpx(path: str) -> list[Coordinate]:
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise RouteFileError(f"Invalid GPX {path}: {e}") from e

    # Match on local names so any GPX namespace version works
    def points(tag: str) -> list[Coordinate]:
        return [
            Coordinate(float(el.attrib["lat"]), float(el.attrib["lon"]))
            for el in root.iter()
            if el.tag.rsplit("}", 1)[-1] == tag
        ]

    try:
        return points("trkpt") or points("rtept")
    except (KeyError, ValueError) as e:
        raise RouteFileError(f"Bad point in GPX {path}: {e}") from e


def save_route_file(path: str, polyline: list[Coordinate]):
    with open(path, "w") as f:
        json.dump({"route": [c.to_list() for c in polyline]}, f, indent=2)


def export_waypoints_gpx(route: Route, output_path: str, name: Optional[str] = None):
    """Write the route and its waypoints to a GPX file for navigation apps"""
    timestamp = datetime.now().isoformat()
    name = name or f"Pacer Route ({route.total_distance/1000:.2f} km)"

    gpx_lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<gpx version="1.1" creator="Pacer"',
        '     xmlns="http://www.topografix.com/GPX/1/1"',
        '     xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
        '     xsi:schemaLocation="http://www.topografix.com/GPX/1/1 http://www.topografix.com/GPX/1/1/gpx.xsd">',
        '  <metadata>',
        f'    <name>{_escape(name)}</name>',
        f'    <time>{timestamp}</time>',
        '  </metadata>',
    ]

    for wp in route.waypoints:
        gpx_lines.append(f'  <wpt lat="{wp.coordinate.lat:.6f}" lon="{wp.coordinate.lon:.6f}">')
        gpx_lines.append(f'    <name>{_escape(wp.instruction)}</name>')
        gpx_lines.append(f'    <type>{type(wp.kind).__name__.lower()}</type>')
        gpx_lines.append('  </wpt>')

    gpx_lines.append('  <trk>')
    gpx_lines.append(f'    <name>{_escape(name)}</name>')
    gpx_lines.append('    <trkseg>')
    for point in route.polyline:
        gpx_lines.append(f'      <trkpt lat="{point.lat:.6f}" lon="{point.lon:.6f}"/>')
    gpx_lines.append('    </trkseg>')
    gpx_lines.append('  </trk>')
    gpx_lines.append('</gpx>')

    with open(output_path, 'w') as f:
        f.write('\n'.join(gpx_lines))

    print(f"GPX route saved to: {output_path}")
    print(f"  {len(route.waypoints)} waypoints, {len(route.polyline)} track points")


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
