# formatting.py
# Human-readable strings for bearings, distances and coordinates.

from .geo_utils import normalize_angle
from .qibla_config import ALIGNMENT_THRESHOLD_DEG, KM_TO_MILES


CARDINALS = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]

CARDINALS_FULL = [
    "North", "North-Northeast", "Northeast", "East-Northeast",
    "East", "East-Southeast", "Southeast", "South-Southeast",
    "South", "South-Southwest", "Southwest", "West-Southwest",
    "West", "West-Northwest", "Northwest", "North-Northwest",
]


def _cardinal_index(degrees: float) -> int:
    # int(x + 0.5) rounds half up like a compass rose, unlike round()
    return int(normalize_angle(degrees) / 22.5 + 0.5) % 16


def format_degrees(degrees: float, decimals: int = 1) -> str:
    return f"{degrees:.{decimals}f}°"


def format_distance(distance_km: float, unit: str = "km", decimals: int = 0) -> str:
    """
    Distance with thousands separators, e.g. "10,306 km" or "6,404 mi".

    Args:
        distance_km: Distance in kilometres.
        unit:        "km" or "mi".
        decimals:    Digits after the decimal point.
    """
    if unit not in ("km", "mi"):
        raise ValueError(f"Unknown distance unit: {unit!r}")
    value = distance_km * KM_TO_MILES if unit == "mi" else distance_km
    return f"{value:,.{decimals}f} {unit}"


def format_coordinates(lat: float, lon: float, decimals: int = 4) -> str:
    lat_dir = "N" if lat >= 0 else "S"
    lon_dir = "E" if lon >= 0 else "W"
    return f"{abs(lat):.{decimals}f}°{lat_dir}, {abs(lon):.{decimals}f}°{lon_dir}"


def cardinal_direction(degrees: float) -> str:
    """16-point compass abbreviation ("N", "NNE", ...)."""
    return CARDINALS[_cardinal_index(degrees)]


def cardinal_direction_full(degrees: float) -> str:
    return CARDINALS_FULL[_cardinal_index(degrees)]


def is_facing_qibla(relative_angle: float, threshold_deg: float = ALIGNMENT_THRESHOLD_DEG) -> bool:
    return abs(relative_angle) < threshold_deg


def relative_direction_instruction(
    relative_angle: float, threshold_deg: float = ALIGNMENT_THRESHOLD_DEG,
) -> str:
    """
    Turn instruction derived from the relative angle.

    Args:
        relative_angle: Degrees in (-180, 180]; positive means turn right.

    Returns:
        Instruction string.
    """
    if is_facing_qibla(relative_angle, threshold_deg):
        return "You are facing the Qibla"
    direction = "right" if relative_angle > 0 else "left"
    return f"Turn {abs(relative_angle):.0f}° to your {direction}"
