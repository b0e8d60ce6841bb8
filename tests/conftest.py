"""
Shared pytest fixtures for Pacer tests.
"""

import json
import os
import sys

import pytest

# Add project root to path for imports
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from pacer.models import Coordinate  # noqa: E402
from pacer.logger import Logger  # noqa: E402

# One degree of latitude, in meters, for the haversine radius used by pacer.geo
METERS_PER_DEG_LAT = 111_194.93


def north_of(origin: Coordinate, meters: float) -> Coordinate:
    return Coordinate(origin.lat + meters / METERS_PER_DEG_LAT, origin.lon)


@pytest.fixture
def origin():
    """Equator origin, so a degree of longitude is as long as a degree of latitude."""
    return Coordinate(0.0, 0.0)


@pytest.fixture
def quiet_logger():
    return Logger(echo=False)


@pytest.fixture
def straight_line(origin):
    """Five collinear points heading north, 100 m apart."""
    return [north_of(origin, 100 * i) for i in range(5)]


@pytest.fixture
def right_angle(origin):
    """North 200 m, then east 200 m."""
    step = 200 / METERS_PER_DEG_LAT
    return [
        Coordinate(0.0, 0.0),
        Coordinate(step, 0.0),
        Coordinate(step, step),
    ]


@pytest.fixture
def route_json(tmp_path):
    """A route file with a 90 degree bend."""
    path = tmp_path / "route.json"
    path.write_text(json.dumps({"route": [[0.0, 0.0], [0.002, 0.0], [0.002, 0.002]]}))
    return str(path)
