"""
Shared fixtures for the compass tests.

Provides fast configs, scripted sensor providers and a fake HTTP session so
each test module can drive the tier sequence without real sensors or network.
"""

import dataclasses
import time

import pytest
import requests

from qibla.models import Tier
from qibla.qibla_config import QiblaConfig, default_tier_requests
from qibla.simulated import (
    ManualFrameClock, SimulatedLocationProvider, SimulatedOrientationProvider,
)


NEW_YORK = (40.7128, -74.0060)

# ---------------------------------------------------------------------------
# Fake HTTP layer
# ---------------------------------------------------------------------------

BAD_JSON = object()


class FakeResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.payload is BAD_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    """
    Stand-in for requests.Session keyed by URL.

    Each route value is a FakeResponse, an exception instance to raise,
    or a (delay_s, FakeResponse) tuple for a slow server.
    """

    def __init__(self, routes=None) -> None:
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"No route to {url}")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            delay, route = route
            time.sleep(delay)
        return route

    def close(self) -> None:
        pass


IPAPI_URL = "https://ipapi.co/json/"
IPAPI_COM_URL = "https://ip-api.com/json/?fields=lat,lon"


# ---------------------------------------------------------------------------
# Config and providers
# ---------------------------------------------------------------------------

def _no_delay_requests():
    reqs = default_tier_requests()
    reqs[Tier.DEGRADED_DELAYED] = dataclasses.replace(reqs[Tier.DEGRADED_DELAYED], delay_s=0.0)
    return reqs


@pytest.fixture
def fast_config():
    """Default config minus the 1 s retry delay."""
    return QiblaConfig(tier_requests=_no_delay_requests())


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def clock():
    return ManualFrameClock()


@pytest.fixture
def orientation():
    return SimulatedOrientationProvider()


@pytest.fixture
def make_location():
    def _make(outcomes=None, **kwargs):
        return SimulatedLocationProvider(outcomes, **kwargs)
    return _make
