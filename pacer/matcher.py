"""Route matching: find where a position sits on a route polyline."""

from typing import Optional, Sequence

from .config import CONFIG
from .geo import distance_between, project_onto_segment
from .models import Coordinate, MatchResult


def match_position(position: Coordinate, polyline: Sequence[Coordinate],
                   hint_index: Optional[int] = None,
                   mode: Optional[str] = None) -> Optional[MatchResult]:
    """Match a position against a polyline.

    The default "vertex" mode scans every vertex and returns the nearest one.
    This is an approximation: on sparse sections the true distance to the
    path can be much smaller than the distance to the nearest vertex.
    "segment" mode projects onto each segment instead and reports the metres
    past the segment's first vertex as the offset.

    When hint_index (normally the previous match) is given, candidates within
    the tie tolerance of the best distance resolve to the one nearest the
    hint, so a loop's shared start/finish vertex matches by context.

    Returns:
        MatchResult, or None for an empty polyline
    """
    if not polyline:
        return None
    if mode is None:
        mode = CONFIG["route_matching"]

    if mode == "segment" and len(polyline) > 1:
        candidates = _segment_candidates(position, polyline)
    elif mode in ("vertex", "segment"):
        candidates = [MatchResult(i, distance_between(position, point))
                      for i, point in enumerate(polyline)]
    else:
        raise ValueError(f"Unknown route matching mode: {mode}")

    best = candidates[0]
    for candidate in candidates[1:]:
        if candidate.distance < best.distance:
            best = candidate

    if hint_index is None:
        return best

    tolerance = CONFIG["match_tie_tolerance"]
    tied = [c for c in candidates if c.distance <= best.distance + tolerance]
    return min(tied, key=lambda c: (abs(c.index - hint_index), c.distance, c.index))


def _segment_candidates(position: Coordinate,
                        polyline: Sequence[Coordinate]) -> list[MatchResult]:
    candidates = []
    for i in range(len(polyline) - 1):
        a, b = polyline[i], polyline[i + 1]
        distance, fraction = project_onto_segment(position, a, b)
        candidates.append(MatchResult(i, distance, fraction * distance_between(a, b)))
    return candidates
