import pytest

from qibla.formatting import (
    cardinal_direction, cardinal_direction_full, format_coordinates,
    format_degrees, format_distance, is_facing_qibla, relative_direction_instruction,
)


def test_format_degrees():
    assert format_degrees(58.4812) == "58.5°"
    assert format_degrees(58.4812, decimals=0) == "58°"


def test_format_distance():
    assert format_distance(10306.2) == "10,306 km"
    assert format_distance(10306.2, unit="mi") == "6,404 mi"
    assert format_distance(12.345, decimals=1) == "12.3 km"


def test_format_distance_rejects_unknown_unit():
    with pytest.raises(ValueError):
        format_distance(1.0, unit="nm")


def test_format_coordinates():
    assert format_coordinates(40.7128, -74.0060) == "40.7128°N, 74.0060°W"
    assert format_coordinates(-33.8688, 151.2093, decimals=2) == "33.87°S, 151.21°E"


@pytest.mark.parametrize("degrees, short, full", [
    (0.0, "N", "North"),
    (58.5, "ENE", "East-Northeast"),
    (90.0, "E", "East"),
    (118.9, "ESE", "East-Southeast"),
    (348.75, "N", "North"),
    (-45.0, "NW", "Northwest"),
])
def test_cardinal_direction(degrees, short, full):
    assert cardinal_direction(degrees) == short
    assert cardinal_direction_full(degrees) == full


@pytest.mark.parametrize("angle, text", [
    (0.0, "You are facing the Qibla"),
    (-4.9, "You are facing the Qibla"),
    (12.0, "Turn 12° to your right"),
    (-12.0, "Turn 12° to your left"),
    (180.0, "Turn 180° to your right"),
])
def test_relative_direction_instruction(angle, text):
    assert relative_direction_instruction(angle) == text


def test_alignment_threshold():
    assert is_facing_qibla(4.99)
    assert not is_facing_qibla(5.0)
    assert is_facing_qibla(9.0, threshold_deg=10.0)
