"""Qibla compass core: geodesy, location fallback, heading smoothing.

Sensors feed the LocationAcquirer and OrientationReader; QiblaCompass combines
their output into the bearing, distance and on-screen angle toward the Kaaba.
"""

from .compass import CompassState, QiblaCompass
from .geo_utils import angle_difference, bearing, distance, normalize_angle
from .heading_smoother import HeadingSmoother
from .location_acquirer import LocationAcquirer
from .models import GeoPoint, LocationEstimate, QiblaResult
from .orientation_reader import OrientationReader
from .qibla_calculator import QiblaCalculator
from .qibla_config import KAABA, QiblaConfig

__all__ = [
    "CompassState", "QiblaCompass",
    "angle_difference", "bearing", "distance", "normalize_angle",
    "HeadingSmoother", "LocationAcquirer", "OrientationReader", "QiblaCalculator",
    "GeoPoint", "LocationEstimate", "QiblaResult",
    "KAABA", "QiblaConfig",
]
