# qibla_calculator.py
# Bearing and distance to the Kaaba, plus the on-screen angle relative to the heading.

from typing import Optional, Tuple

from .geo_utils import angle_difference, bearing, distance
from .models import GeoPoint, QiblaResult
from .qibla_config import QiblaConfig


class QiblaCalculator:
    """
    Derives a QiblaResult from a user position and an optional heading.

    Bearing and distance depend only on the position, so they are cached
    for the last point seen; heading changes only recompute the relative angle.

    Args:
        config: QiblaConfig with target point and Earth radius.
    """

    def __init__(self, config: Optional[QiblaConfig] = None) -> None:
        self.config = config or QiblaConfig()
        self._cached_point: Optional[GeoPoint] = None
        self._cached: Tuple[float, float] = (0.0, 0.0)

    @property
    def target(self) -> GeoPoint:
        return self.config.target

    def _bearing_and_distance(self, point: GeoPoint) -> Tuple[float, float]:
        if point != self._cached_point:
            self._cached = (
                bearing(point, self.target),
                distance(point, self.target, self.config.earth_radius_km),
            )
            self._cached_point = point
        return self._cached

    def calculate(self, point: GeoPoint, heading: Optional[float] = None) -> QiblaResult:
        """
        Args:
            point:   User position.
            heading: Smoothed device heading in degrees, or None without a compass.

        Returns:
            QiblaResult; relative_angle is positive when the target is clockwise (turn right).
        """
        absolute, dist_km = self._bearing_and_distance(point)
        relative = angle_difference(heading, absolute) if heading is not None else None
        return QiblaResult(absolute_bearing=absolute, distance_km=dist_km, relative_angle=relative)

