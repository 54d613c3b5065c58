# qibla_config.py
# All tuneable constants in one place.
# Pass a QiblaConfig instance to every module that needs settings.

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .models import GeoPoint, PositionOptions, Tier


# ---------------------------------------------------------------------------
# Geographic constants
# ---------------------------------------------------------------------------

KAABA: GeoPoint = GeoPoint(21.4225, 39.8262)

EARTH_RADIUS_KM: float = 6371.0
EARTH_RADIUS_MI: float = 3959.0
KM_TO_MILES: float = 0.621371
MILES_TO_KM: float = 1.60934


# ---------------------------------------------------------------------------
# Heading smoothing
# ---------------------------------------------------------------------------

SMOOTHING_WINDOW: int = 5
SMOOTHING_ALPHA: float = 0.25
FRAME_INTERVAL_S: float = 1.0 / 60.0
ALIGNMENT_THRESHOLD_DEG: float = 5.0


# ---------------------------------------------------------------------------
# Location acquisition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TierRequest:
    """How a single sensor tier asks the location provider for a fix."""
    high_accuracy: bool
    timeout_s: float
    maximum_age_s: float
    delay_s: float = 0.0           # wait before issuing the request

    def options(self) -> PositionOptions:
        return PositionOptions(
            high_accuracy=self.high_accuracy,
            timeout_s=self.timeout_s,
            maximum_age_s=self.maximum_age_s,
        )


def default_tier_requests() -> Dict[Tier, TierRequest]:
    return {
        Tier.PRECISE:          TierRequest(high_accuracy=True,  timeout_s=10.0, maximum_age_s=0.0),
        Tier.DEGRADED:         TierRequest(high_accuracy=False, timeout_s=15.0, maximum_age_s=60.0),
        Tier.DEGRADED_DELAYED: TierRequest(high_accuracy=False, timeout_s=20.0, maximum_age_s=300.0, delay_s=1.0),
    }


WATCH_OPTIONS: PositionOptions = PositionOptions(high_accuracy=False, timeout_s=30.0, maximum_age_s=60.0)


@dataclass(frozen=True)
class IPEndpoint:
    """An IP-geolocation service and the JSON keys holding its coordinates."""
    name: str
    url: str
    lat_key: str
    lon_key: str


def default_ip_endpoints() -> List[IPEndpoint]:
    return [
        IPEndpoint("ipapi.co", "https://ipapi.co/json/", "latitude", "longitude"),
        IPEndpoint("ip-api.com", "https://ip-api.com/json/?fields=lat,lon", "lat", "lon"),
    ]


IP_TIMEOUT_S: float = 5.0
IP_ACCURACY_M: float = 5000.0
USER_AGENT: str = "qibla-compass/1.0"


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class QiblaConfig:
    # Target
    target: GeoPoint = KAABA
    earth_radius_km: float = EARTH_RADIUS_KM

    # Heading smoothing
    smoothing_window: int = SMOOTHING_WINDOW
    smoothing_alpha: float = SMOOTHING_ALPHA
    frame_interval_s: float = FRAME_INTERVAL_S
    alignment_threshold_deg: float = ALIGNMENT_THRESHOLD_DEG

    # Location acquisition
    tier_requests: Dict[Tier, TierRequest] = field(default_factory=default_tier_requests)
    watch_options: Optional[PositionOptions] = WATCH_OPTIONS   # None disables the background watch

    # Network fallback
    ip_endpoints: List[IPEndpoint] = field(default_factory=default_ip_endpoints)
    ip_timeout_s: float = IP_TIMEOUT_S
    ip_accuracy_m: float = IP_ACCURACY_M
    user_agent: str = USER_AGENT
