# models.py
# Shared data structures, enums and errors used across all modules.

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GeoPoint:
    """Immutable geographic coordinate in decimal degrees."""
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise ValueError(f"Coordinates must be finite, got ({self.lat}, {self.lon}).")
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude {self.lat} outside [-90, 90].")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude {self.lon} outside [-180, 180].")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ErrorCode(Enum):
    PERMISSION_DENIED    = "permission_denied"
    SENSOR_UNAVAILABLE   = "sensor_unavailable"
    TIMEOUT              = "timeout"
    NETWORK_UNREACHABLE  = "network_unreachable"
    UNSUPPORTED_PLATFORM = "unsupported_platform"


class CompassError(Exception):
    """Base error carrying an ErrorCode and a user-facing message."""

    def __init__(self, code: ErrorCode, message: str = "") -> None:
        super().__init__(message or code.value)
        self.code = code
        self.message = message or code.value


class LocationError(CompassError):
    """Raised by location providers and the IP locator."""


@dataclass(frozen=True)
class ErrorInfo:
    """Terminal error surfaced to the consumer."""
    code: ErrorCode
    message: str


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------

class SourceTier(Enum):
    PRECISE_SENSOR      = "precise_sensor"
    DEGRADED_SENSOR     = "degraded_sensor"
    CACHED_SENSOR       = "cached_sensor"
    NETWORK_APPROXIMATE = "network_approximate"


class Tier(Enum):
    """One step of the acquisition fallback sequence."""
    PRECISE           = "precise"
    DEGRADED          = "degraded"
    DEGRADED_DELAYED  = "degraded_delayed"
    NETWORK           = "network"


class AcquirerStatus(Enum):
    IDLE       = "idle"
    ACQUIRING  = "acquiring"
    SUCCEEDED  = "succeeded"
    FAILED     = "failed"


@dataclass(frozen=True)
class PositionOptions:
    """Request parameters handed to a LocationProvider."""
    high_accuracy: bool
    timeout_s: float
    maximum_age_s: float


@dataclass(frozen=True)
class RawFix:
    """Position as delivered by a location provider."""
    latitude: float
    longitude: float
    accuracy: Optional[float]      # metres
    timestamp: float               # Unix timestamp


@dataclass(frozen=True)
class LocationEstimate:
    """Best known user position and where it came from."""
    point: GeoPoint
    accuracy_m: Optional[float]
    source_tier: SourceTier
    captured_at: float

    @property
    def is_approximate(self) -> bool:
        return self.source_tier is SourceTier.NETWORK_APPROXIMATE


# ---------------------------------------------------------------------------
# Orientation
# ---------------------------------------------------------------------------

class PermissionState(Enum):
    UNKNOWN  = "unknown"
    PROMPT   = "prompt"
    GRANTED  = "granted"
    DENIED   = "denied"


class HeadingQuality(Enum):
    COMPASS      = "compass"        # vendor absolute compass field
    ABSOLUTE     = "absolute"       # alpha with confirmed absolute framing
    UNCONFIRMED  = "unconfirmed"    # alpha, framing unknown


@dataclass(frozen=True)
class OrientationEvent:
    """Raw orientation event; any field may be missing depending on platform."""
    alpha: Optional[float] = None
    absolute: Optional[bool] = None
    compass_heading: Optional[float] = None
    timestamp: float = 0.0


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class QiblaResult:
    """Bearing and distance to the target, plus the on-screen angle if a heading exists."""
    absolute_bearing: float             # degrees [0, 360)
    distance_km: float
    relative_angle: Optional[float]     # degrees (-180, 180], positive = turn right

    @property
    def display_angle(self) -> float:
        """Relative angle for a rotating dial, absolute bearing for a north-up one."""
        if self.relative_angle is not None:
            return self.relative_angle
        return self.absolute_bearing
