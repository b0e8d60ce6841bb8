"""
Unit tests for route matching.
"""

import pytest

from pacer.matcher import match_position
from pacer.models import Coordinate

METERS_PER_DEG = 111_194.93


class TestVertexMatching:

    @pytest.mark.unit
    def test_coincident_vertex(self, straight_line):
        for i, point in enumerate(straight_line):
            result = match_position(point, straight_line)
            assert result.index == i
            assert result.distance == 0.0
            assert result.offset == 0.0

    @pytest.mark.unit
    def test_empty_polyline(self, origin):
        assert match_position(origin, []) is None

    @pytest.mark.unit
    def test_nearest_vertex_distance(self, straight_line):
        beside = Coordinate(straight_line[3].lat, 10 / METERS_PER_DEG)
        result = match_position(beside, straight_line)
        assert result.index == 3
        assert result.distance == pytest.approx(10.0, abs=0.05)

    @pytest.mark.unit
    def test_between_vertices_reports_vertex_distance(self, straight_line):
        """Vertex matching measures to the vertex, not to the path."""
        halfway = Coordinate((straight_line[1].lat + straight_line[2].lat) / 2, 0.0)
        result = match_position(halfway, straight_line)
        assert result.index in (1, 2)
        assert result.distance == pytest.approx(50.0, abs=0.1)

    @pytest.mark.unit
    def test_loop_start_without_hint_is_first_vertex(self, right_angle):
        loop = right_angle + [right_angle[0]]
        assert match_position(loop[0], loop).index == 0

    @pytest.mark.unit
    def test_loop_start_resolves_toward_hint(self, right_angle):
        loop = right_angle + [right_angle[0]]
        assert match_position(loop[0], loop, hint_index=2).index == 3
        assert match_position(loop[0], loop, hint_index=0).index == 0

    @pytest.mark.unit
    def test_hint_does_not_override_clear_winner(self, straight_line):
        result = match_position(straight_line[4], straight_line, hint_index=0)
        assert result.index == 4

    @pytest.mark.unit
    def test_unknown_mode(self, straight_line):
        with pytest.raises(ValueError):
            match_position(straight_line[0], straight_line, mode="snap")


class TestSegmentMatching:

    @pytest.mark.unit
    def test_projection_offset(self, straight_line):
        point = Coordinate(150 / METERS_PER_DEG, 10 / METERS_PER_DEG)
        result = match_position(point, straight_line, mode="segment")
        assert result.index == 1
        assert result.offset == pytest.approx(50.0, abs=0.5)
        assert result.distance == pytest.approx(10.0, abs=0.1)

    @pytest.mark.unit
    def test_single_point_falls_back_to_vertex(self, origin):
        result = match_position(origin, [origin], mode="segment")
        assert result.index == 0
        assert result.distance == 0.0
