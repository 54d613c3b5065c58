# heading_smoother.py
# Two-stage filter for noisy compass headings:
# recency-weighted circular mean over a short window, then exponential smoothing.

from collections import deque
from typing import Optional

import numpy as np

from .geo_utils import angle_difference, normalize_angle
from .qibla_config import SMOOTHING_ALPHA, SMOOTHING_WINDOW


def circular_mean(angles, weights=None) -> float:
    """
    Weighted mean of angles that handles the 0/360 wraparound.

    Args:
        angles:  Sequence of angles in degrees.
        weights: Optional per-angle weights; uniform when omitted.

    Returns:
        Mean angle in [0, 360).
    """
    rad = np.radians(np.asarray(angles, dtype=float))
    w = np.ones_like(rad) if weights is None else np.asarray(weights, dtype=float)
    sin_sum = float(np.sum(np.sin(rad) * w))
    cos_sum = float(np.sum(np.cos(rad) * w))
    return normalize_angle(float(np.degrees(np.arctan2(sin_sum, cos_sum))))


class HeadingSmoother:
    """
    Stateful smoother for a single orientation session.

    Usage:
        smoother = HeadingSmoother()
        for raw in samples:
            heading = smoother.update(raw)

    Args:
        window_size: Number of recent raw samples kept (FIFO).
        alpha:       Exponential smoothing factor in (0, 1].
    """

    def __init__(self, window_size: int = SMOOTHING_WINDOW, alpha: float = SMOOTHING_ALPHA) -> None:
        if window_size < 1:
            raise ValueError("window_size must be at least 1.")
        if not 0.0 < alpha <= 1.0:
            raise ValueError("alpha must be in (0, 1].")
        self.alpha = alpha
        self._window: deque = deque(maxlen=window_size)
        self._value: Optional[float] = None

    @property
    def value(self) -> Optional[float]:
        """Last smoothed heading, or None before the first sample."""
        return self._value

    def reset(self) -> None:
        """Forget all samples; the next update starts fresh."""
        self._window.clear()
        self._value = None

    def update(self, raw: float) -> float:
        """
        Push one raw heading and return the new smoothed heading.

        Args:
            raw: Heading in degrees; any real value, reduced to [0, 360).

        Returns:
            Smoothed heading in [0, 360).
        """
        self._window.append(normalize_angle(raw))
        weights = np.arange(1, len(self._window) + 1)
        mean = circular_mean(self._window, weights)

        if self._value is None:
            self._value = mean
            return mean

        delta = angle_difference(self._value, mean)
        self._value = normalize_angle(self._value + self.alpha * delta)
        return self._value
