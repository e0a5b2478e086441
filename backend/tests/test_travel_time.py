import math

import pytest

from ai4h.geo.haversine import haversine_km
from ai4h.geo.travel_time import eta_minutes, get_travel_time_minutes


def test_haversine_zero_for_same_point():
    assert haversine_km(12.9716, 77.5946, 12.9716, 77.5946) == 0.0


def test_haversine_is_symmetric():
    forward = haversine_km(12.9716, 77.5946, 12.9698, 77.75)
    backward = haversine_km(12.9698, 77.75, 12.9716, 77.5946)
    assert forward == pytest.approx(backward)


def test_haversine_one_degree_of_latitude():
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.195, abs=0.01)


def test_eta_rounds_up_to_whole_minutes():
    assert eta_minutes(0.0) == 0
    assert eta_minutes(15.0, 30) == 30
    assert eta_minutes(10.1, 30) == 21
    assert eta_minutes(60.0, 35) == math.ceil(60.0 / 35 * 60)


def test_eta_increases_with_distance():
    assert eta_minutes(10, 40) < eta_minutes(50, 40)


def test_get_travel_time_minutes_payload():
    result = get_travel_time_minutes({"lat": 0.0, "lon": 0.0}, {"lat": 0.1, "lon": 0.0}, 30)
    assert result["source"] == "haversine"
    assert result["distance_km"] == pytest.approx(11.12, abs=0.01)
    assert result["minutes"] == 23
