# ip_locator.py
# Last-resort position from IP-geolocation web services.
# Endpoints are tried in fixed order; the first usable coordinate pair wins.

import asyncio
import logging
import math
import time
from typing import List, Optional, Tuple

import requests

from .models import (
    ErrorCode, GeoPoint, LocationError, LocationEstimate, SourceTier,
)
from .qibla_config import IPEndpoint, QiblaConfig

logger = logging.getLogger(__name__)


def make_session(user_agent: str) -> requests.Session:
    """Create a requests.Session carrying the project User-Agent."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
    return session


def parse_coordinates(data, endpoint: IPEndpoint) -> Optional[Tuple[float, float]]:
    """
    Pull a (lat, lon) pair out of an endpoint's JSON body.

    Returns:
        The pair, or None if either value is missing, non-numeric or out of range.
    """
    if not isinstance(data, dict):
        return None
    lat, lon = data.get(endpoint.lat_key), data.get(endpoint.lon_key)
    if isinstance(lat, bool) or isinstance(lon, bool):
        return None
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    return lat, lon


class IPLocator:
    """
    Approximate geolocation from the public IP address.

    Args:
        config:  QiblaConfig with endpoint list, timeout and accuracy.
        session: Optional requests.Session (injected in tests).
    """

    def __init__(self, config: Optional[QiblaConfig] = None, session: Optional[requests.Session] = None) -> None:
        self.config = config or QiblaConfig()
        self._session = session or make_session(self.config.user_agent)

    @property
    def endpoints(self) -> List[IPEndpoint]:
        return self.config.ip_endpoints

    def _fetch(self, endpoint: IPEndpoint) -> Optional[Tuple[float, float]]:
        response = self._session.get(endpoint.url, timeout=self.config.ip_timeout_s)
        response.raise_for_status()
        return parse_coordinates(response.json(), endpoint)

    async def locate(self) -> LocationEstimate:
        """
        Query every endpoint in order until one answers with usable coordinates.

        Returns:
            LocationEstimate flagged NETWORK_APPROXIMATE.

        Raises:
            LocationError(NETWORK_UNREACHABLE) when all endpoints fail.
        """
        for endpoint in self.endpoints:
            try:
                coords = await asyncio.wait_for(
                    asyncio.to_thread(self._fetch, endpoint),
                    timeout=self.config.ip_timeout_s,
                )
            except asyncio.TimeoutError:
                logger.warning(f"IP lookup via {endpoint.name} timed out.")
                continue
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"IP lookup via {endpoint.name} failed: {e}")
                continue

            if coords is None:
                logger.warning(f"IP lookup via {endpoint.name} returned no usable coordinates.")
                continue

            lat, lon = coords
            logger.info(f"Approximate location from {endpoint.name}: ({lat:.4f}, {lon:.4f})")
            return LocationEstimate(
                point=GeoPoint(lat, lon),
                accuracy_m=self.config.ip_accuracy_m,
                source_tier=SourceTier.NETWORK_APPROXIMATE,
                captured_at=time.time(),
            )

        raise LocationError(
            ErrorCode.NETWORK_UNREACHABLE,
            "Unable to determine your location. Please check your location settings and try again.",
        )
