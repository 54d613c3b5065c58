# simulated.py
# In-process sensor stand-ins for the demo loop and for tests.
# Outcomes are scripted up front, so every tier transition is reproducible.

import asyncio
import time
from collections import deque
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from .models import (
    ErrorCode, LocationError, OrientationEvent, PositionOptions, RawFix,
)
from .providers import (
    ErrorCallback, FixCallback, FrameClock, LocationProvider,
    OrientationCallback, OrientationProvider,
)

# Scripted outcome that never resolves, so the caller's timeout fires.
HANG = object()

Outcome = Union[RawFix, LocationError, object]


def make_fix(lat: float, lon: float, accuracy: Optional[float] = 10.0) -> RawFix:
    """Build a RawFix stamped with the current time."""
    return RawFix(latitude=lat, longitude=lon, accuracy=accuracy, timestamp=time.time())


class SimulatedLocationProvider(LocationProvider):
    """
    Location provider that replays scripted outcomes, one per request.

    Args:
        outcomes:  RawFix, LocationError or HANG entries, consumed in order.
                   An exhausted script answers SENSOR_UNAVAILABLE.
        available: False simulates a platform without geolocation.
        latency_s: Delay before each scripted outcome is delivered.
    """

    def __init__(
        self,
        outcomes: Optional[Iterable[Outcome]] = None,
        available: bool = True,
        latency_s: float = 0.0,
    ) -> None:
        self.outcomes: deque = deque(outcomes or [])
        self.available = available
        self.latency_s = latency_s
        self.requests: List[PositionOptions] = []
        self.watches: Dict[int, Tuple[FixCallback, ErrorCallback, PositionOptions]] = {}
        self.cleared_watches: List[int] = []
        self._next_watch_id = 1

    @property
    def is_available(self) -> bool:
        return self.available

    async def get_current_position(self, options: PositionOptions) -> RawFix:
        self.requests.append(options)
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        if not self.outcomes:
            raise LocationError(ErrorCode.SENSOR_UNAVAILABLE, "No position available.")

        outcome = self.outcomes.popleft()
        if outcome is HANG:
            await asyncio.Event().wait()
        if isinstance(outcome, LocationError):
            raise outcome
        return outcome

    def watch_position(self, on_fix: FixCallback, on_error: ErrorCallback, options: PositionOptions) -> int:
        watch_id = self._next_watch_id
        self._next_watch_id += 1
        self.watches[watch_id] = (on_fix, on_error, options)
        return watch_id

    def clear_watch(self, watch_id: int) -> None:
        if self.watches.pop(watch_id, None) is not None:
            self.cleared_watches.append(watch_id)

    def emit_fix(self, fix: RawFix) -> None:
        """Deliver a fix to every active watch."""
        for on_fix, _, _ in list(self.watches.values()):
            on_fix(fix)

    def emit_error(self, error: LocationError) -> None:
        for _, on_error, _ in list(self.watches.values()):
            on_error(error)


class SimulatedOrientationProvider(OrientationProvider):
    """
    Orientation source driven by emit() calls.

    Args:
        supported:           False simulates a platform without orientation events.
        requires_permission: True simulates a platform that needs a user-gesture grant.
        grant:               Answer to request_permission(); an exception instance is raised.
    """

    def __init__(
        self,
        supported: bool = True,
        requires_permission: bool = False,
        grant: Union[bool, Exception] = True,
    ) -> None:
        self.supported = supported
        self._requires_permission = requires_permission
        self.grant = grant
        self.permission_requests = 0
        self.listeners: List[OrientationCallback] = []

    @property
    def is_supported(self) -> bool:
        return self.supported

    @property
    def requires_permission(self) -> bool:
        return self._requires_permission

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        if isinstance(self.grant, Exception):
            raise self.grant
        return self.grant

    def add_listener(self, callback: OrientationCallback) -> None:
        self.listeners.append(callback)

    def remove_listener(self, callback: OrientationCallback) -> None:
        if callback in self.listeners:
            self.listeners.remove(callback)

    def emit(self, event: OrientationEvent) -> None:
        for callback in list(self.listeners):
            callback(event)

    def emit_heading(self, heading: float) -> None:
        """Shortcut for a platform reporting a vendor compass heading."""
        self.emit(OrientationEvent(compass_heading=heading, absolute=True, timestamp=time.time()))


class ManualFrameClock(FrameClock):
    """FrameClock whose frames fire only when advance() is called."""

    def __init__(self) -> None:
        self._pending: Dict[int, Callable[[], None]] = {}
        self._next_handle = 1
        self.frames_run = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def advance(self, frames: int = 1) -> None:
        """Run the callbacks due on each of the next `frames` frames."""
        for _ in range(frames):
            due, self._pending = self._pending, {}
            for callback in due.values():
                callback()
            self.frames_run += 1
