"""
Unit tests for geographic helpers and spoken formatting.
"""

import pytest

from pacer.geo import (
    bearing_between,
    bearing_to_compass,
    classify_turn,
    cumulative_distances,
    format_distance,
    format_duration,
    format_pace,
    haversine_distance,
    normalize_bearing_delta,
    project_onto_segment,
)
from pacer.models import Coordinate, Direction, UnitSystem


class TestDistanceAndBearing:
    """Tests for haversine distance and initial bearing."""

    @pytest.mark.unit
    def test_same_point_zero_distance(self):
        assert haversine_distance(51.5074, -0.1278, 51.5074, -0.1278) == 0

    @pytest.mark.unit
    def test_thousandth_degree_latitude(self):
        """A thousandth of a degree of latitude is about 111 m."""
        result = haversine_distance(0.0, 0.0, 0.001, 0.0)
        assert 110 < result < 112

    @pytest.mark.unit
    def test_cardinal_bearings(self):
        assert bearing_between(0, 0, 1, 0) == pytest.approx(0.0)
        assert bearing_between(0, 0, 0, 1) == pytest.approx(90.0)
        assert bearing_between(0, 0, -1, 0) == pytest.approx(180.0)
        assert bearing_between(0, 0, 0, -1) == pytest.approx(270.0)

    @pytest.mark.unit
    def test_compass_names(self):
        assert bearing_to_compass(0) == "north"
        assert bearing_to_compass(44) == "northeast"
        assert bearing_to_compass(359) == "north"

    @pytest.mark.unit
    def test_cumulative_distances(self, straight_line):
        totals = cumulative_distances(straight_line)
        assert totals[0] == 0.0
        assert totals[-1] == pytest.approx(400.0, abs=0.1)
        assert totals == sorted(totals)

    @pytest.mark.unit
    def test_cumulative_distances_empty(self):
        assert cumulative_distances([]) == []


class TestTurnClassification:
    """Bearing deltas are wrapped to (-180, 180] and bucketed by magnitude."""

    @pytest.mark.unit
    @pytest.mark.parametrize("delta,expected", [
        (270, -90),
        (-190, 170),
        (180, 180),
        (-180, 180),
        (45, 45),
    ])
    def test_normalize(self, delta, expected):
        assert normalize_bearing_delta(delta) == pytest.approx(expected)

    @pytest.mark.unit
    @pytest.mark.parametrize("delta,expected", [
        (0, None),
        (29.9, None),
        (30, Direction.RIGHT),
        (90, Direction.RIGHT),
        (-90, Direction.LEFT),
        (120, Direction.SHARP_RIGHT),
        (-130, Direction.SHARP_LEFT),
        (150, Direction.SHARP_RIGHT),
        (170, Direction.U_TURN),
        (-170, Direction.U_TURN),
    ])
    def test_classify(self, delta, expected):
        assert classify_turn(delta) == expected


class TestProjection:

    @pytest.mark.unit
    def test_point_beside_segment_midpoint(self):
        a = Coordinate(0.0, 0.0)
        b = Coordinate(0.002, 0.0)
        point = Coordinate(0.001, 0.0001)
        distance, fraction = project_onto_segment(point, a, b)
        assert fraction == pytest.approx(0.5, abs=1e-6)
        assert distance == pytest.approx(11.1, abs=0.2)

    @pytest.mark.unit
    def test_point_past_end_clamps(self):
        a = Coordinate(0.0, 0.0)
        b = Coordinate(0.001, 0.0)
        _, fraction = project_onto_segment(Coordinate(0.005, 0.0), a, b)
        assert fraction == 1.0

    @pytest.mark.unit
    def test_degenerate_segment(self):
        a = Coordinate(0.0, 0.0)
        distance, fraction = project_onto_segment(Coordinate(0.001, 0.0), a, a)
        assert fraction == 0.0
        assert distance == pytest.approx(111.19, abs=0.1)


class TestFormatting:

    @pytest.mark.unit
    @pytest.mark.parametrize("meters,units,expected", [
        (1500, UnitSystem.METRIC, "1.5 km"),
        (250, UnitSystem.METRIC, "250 m"),
        (1609.34, UnitSystem.IMPERIAL, "1.0 mi"),
        (100, UnitSystem.IMPERIAL, "328 ft"),
    ])
    def test_format_distance(self, meters, units, expected):
        assert format_distance(meters, units) == expected

    @pytest.mark.unit
    def test_format_duration(self):
        assert format_duration(270) == "4 minutes 30 seconds"
        assert format_duration(3900) == "1 hour 5 minutes"
        assert format_duration(60) == "1 minute"
        assert format_duration(0) == "0 seconds"

    @pytest.mark.unit
    def test_format_pace(self):
        assert format_pace(330) == "5:30"
        assert format_pace(299.6) == "5:00"
