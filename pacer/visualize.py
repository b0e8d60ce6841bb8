"""Folium map of a route, its waypoints, a recorded trace and a return route."""

from typing import Optional

import folium
from folium import plugins

from .models import Checkpoint, Finish, Landmark, ReturnRoute, Route, Start, Turn


WAYPOINT_STYLE = {
    Start: ("green", "play"),
    Turn: ("blue", "share-alt"),
    Landmark: ("purple", "star"),
    Checkpoint: ("orange", "flag"),
    Finish: ("red", "stop"),
}


def _accuracy_color(accuracy) -> str:
    if accuracy is None:
        return "gray"
    if accuracy < 10:
        return "green"
    if accuracy < 20:
        return "orange"
    return "red"


def create_route_map(route: Route, output_path: str,
                     trace: Optional[list[dict]] = None,
                     return_route: Optional[ReturnRoute] = None) -> folium.Map:
    """Render the route and optional overlays to an HTML map"""
    if not route.polyline:
        raise ValueError("Route has no points to draw")

    lats = [p.lat for p in route.polyline]
    lons = [p.lon for p in route.polyline]
    m = folium.Map(location=[sum(lats) / len(lats), sum(lons) / len(lons)], zoom_start=16)

    folium.TileLayer("OpenStreetMap", name="OpenStreetMap").add_to(m)
    folium.TileLayer("CartoDB positron", name="Light").add_to(m)
    folium.TileLayer("CartoDB dark_matter", name="Dark").add_to(m)

    folium.PolyLine(
        [p.to_list() for p in route.polyline],
        weight=5,
        color="blue",
        opacity=0.7,
        popup=f"Route ({route.total_distance/1000:.2f} km)"
    ).add_to(m)

    waypoint_group = folium.FeatureGroup(name="Waypoints", show=True)
    for wp in route.waypoints:
        color, icon = WAYPOINT_STYLE[type(wp.kind)]
        popup = f"""
            <b>{wp.instruction}</b><br>
            At: {wp.distance_from_start:.0f}m
        """
        folium.Marker(
            wp.coordinate.to_list(),
            popup=folium.Popup(popup, max_width=200),
            icon=folium.Icon(color=color, icon=icon)
        ).add_to(waypoint_group)
    waypoint_group.add_to(m)

    if trace:
        valid_entries = [e for e in trace if e.get("location")]
        trace_group = folium.FeatureGroup(name="Trace", show=True)
        if valid_entries:
            folium.PolyLine(
                [[e["location"]["lat"], e["location"]["lon"]] for e in valid_entries],
                weight=3,
                color="black",
                opacity=0.6,
                dash_array="5, 5",
                popup="Recorded trace"
            ).add_to(trace_group)
        for i, entry in enumerate(valid_entries):
            loc = entry["location"]
            elapsed = entry.get("elapsed", 0)
            folium.CircleMarker(
                location=[loc["lat"], loc["lon"]],
                radius=3,
                color=_accuracy_color(loc.get("accuracy")),
                fill=True,
                popup=f"Point {i + 1}<br>Time: {int(elapsed // 60)}m {int(elapsed % 60)}s"
            ).add_to(trace_group)
        trace_group.add_to(m)

    if return_route:
        folium.PolyLine(
            [c.to_list() for c in return_route.coordinates],
            weight=4,
            color="red",
            opacity=0.8,
            popup=return_route.instruction
        ).add_to(m)

    folium.LayerControl().add_to(m)
    plugins.Fullscreen().add_to(m)

    m.save(output_path)
    print(f"Route map saved to {output_path}")
    return m
