import dataclasses
import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from qibla.geo_utils import angle_difference, bearing, distance, normalize_angle
from qibla.models import GeoPoint
from qibla.qibla_config import KAABA

NEW_YORK = GeoPoint(40.7128, -74.0060)

points = st.builds(
    GeoPoint,
    lat=st.floats(min_value=-90.0, max_value=90.0, allow_nan=False),
    lon=st.floats(min_value=-180.0, max_value=180.0, allow_nan=False),
)
angles = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)


# ---------------------------------------------------------------------------
# normalize_angle / angle_difference
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("raw, expected", [
    (0.0, 0.0), (360.0, 0.0), (720.0, 0.0), (-30.0, 330.0),
    (370.0, 10.0), (-725.0, 355.0), (359.5, 359.5),
])
def test_normalize_angle(raw, expected):
    assert normalize_angle(raw) == pytest.approx(expected)


def test_normalize_angle_tiny_negative_stays_below_360():
    result = normalize_angle(-1e-15)
    assert 0.0 <= result < 360.0


@given(a=angles, b=angles)
def test_angle_difference_in_half_open_range(a, b):
    assert -180.0 < angle_difference(a, b) <= 180.0


@given(a=angles)
def test_angle_difference_to_itself_is_zero(a):
    assert angle_difference(a, a) == 0.0


@given(a=angles)
def test_normalize_angle_in_range(a):
    assert 0.0 <= normalize_angle(a) < 360.0


def test_angle_difference_sign_and_wraparound():
    assert angle_difference(10.0, 358.0) == pytest.approx(-12.0)
    assert angle_difference(358.0, 10.0) == pytest.approx(12.0)
    assert angle_difference(0.0, 90.0) == pytest.approx(90.0)
    assert angle_difference(0.0, 180.0) == pytest.approx(180.0)
    assert angle_difference(180.0, 0.0) == pytest.approx(180.0)


# ---------------------------------------------------------------------------
# bearing / distance
# ---------------------------------------------------------------------------

def test_new_york_to_kaaba():
    assert 57.5 < bearing(NEW_YORK, KAABA) < 59.5
    # Spherical model, R = 6371 km
    assert 10250.0 < distance(NEW_YORK, KAABA) < 10350.0


def test_at_the_kaaba():
    b = bearing(KAABA, KAABA)
    assert math.isfinite(b)
    assert 0.0 <= b < 360.0
    assert distance(KAABA, KAABA) == pytest.approx(0.0, abs=1e-9)


def test_cardinal_bearings():
    origin = GeoPoint(0.0, 0.0)
    assert bearing(origin, GeoPoint(10.0, 0.0)) == pytest.approx(0.0, abs=1e-9)
    assert bearing(origin, GeoPoint(0.0, 10.0)) == pytest.approx(90.0)
    assert bearing(origin, GeoPoint(-10.0, 0.0)) == pytest.approx(180.0)
    assert bearing(origin, GeoPoint(0.0, -10.0)) == pytest.approx(270.0)


def test_one_degree_of_equator():
    assert distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0)) == pytest.approx(111.195, abs=0.01)


def test_custom_radius_scales_linearly():
    d_km = distance(NEW_YORK, KAABA)
    assert distance(NEW_YORK, KAABA, radius_km=1.0) == pytest.approx(d_km / 6371.0)


@given(a=points, b=points)
def test_distance_symmetric_and_non_negative(a, b):
    d = distance(a, b)
    assert d >= 0.0
    assert d == pytest.approx(distance(b, a), abs=1e-6)


@given(p=points)
def test_distance_to_itself_is_zero(p):
    assert distance(p, p) == pytest.approx(0.0, abs=1e-9)


@given(a=points, b=points)
def test_bearing_in_range_everywhere(a, b):
    result = bearing(a, b)
    assert math.isfinite(result)
    assert 0.0 <= result < 360.0


def test_antipodal_distance_is_half_circumference():
    d = distance(GeoPoint(0.0, 0.0), GeoPoint(0.0, 180.0))
    assert d == pytest.approx(math.pi * 6371.0)


def test_pure_functions_are_deterministic():
    assert bearing(NEW_YORK, KAABA) == bearing(NEW_YORK, KAABA)
    assert distance(NEW_YORK, KAABA) == distance(NEW_YORK, KAABA)


# ---------------------------------------------------------------------------
# GeoPoint
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("lat, lon", [
    (91.0, 0.0), (-90.5, 0.0), (0.0, 180.1), (0.0, -181.0),
    (float("nan"), 0.0), (0.0, float("inf")),
])
def test_geopoint_rejects_invalid(lat, lon):
    with pytest.raises(ValueError):
        GeoPoint(lat, lon)


def test_geopoint_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        KAABA.lat = 0.0
