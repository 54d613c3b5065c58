# providers.py
# Interfaces to the outside world: location sensor, orientation sensor, frame clock.
# Concrete platform bindings implement these; see simulated.py for in-process fakes.

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .models import LocationError, OrientationEvent, PositionOptions, RawFix

FixCallback = Callable[[RawFix], None]
ErrorCallback = Callable[[LocationError], None]
OrientationCallback = Callable[[OrientationEvent], None]


class LocationProvider(ABC):
    """Platform geolocation service."""

    @property
    def is_available(self) -> bool:
        return True

    @abstractmethod
    async def get_current_position(self, options: PositionOptions) -> RawFix:
        """Return one fix or raise LocationError."""

    @abstractmethod
    def watch_position(
        self, on_fix: FixCallback, on_error: ErrorCallback, options: PositionOptions,
    ) -> int:
        """Start continuous updates; return a watch id for clear_watch()."""

    @abstractmethod
    def clear_watch(self, watch_id: int) -> None:
        """Stop a watch started by watch_position()."""


class OrientationProvider(ABC):
    """Platform device-orientation event source."""

    @property
    @abstractmethod
    def is_supported(self) -> bool:
        ...

    @property
    def requires_permission(self) -> bool:
        """True when events only flow after an explicit, user-triggered grant."""
        return False

    async def request_permission(self) -> bool:
        return True

    @abstractmethod
    def add_listener(self, callback: OrientationCallback) -> None:
        ...

    @abstractmethod
    def remove_listener(self, callback: OrientationCallback) -> None:
        ...


class FrameClock(ABC):
    """Display-synchronized callback scheduler (one callback per rendered frame)."""

    @abstractmethod
    def request_frame(self, callback: Callable[[], None]) -> Any:
        """Schedule callback for the next frame; return a cancellable handle."""

    @abstractmethod
    def cancel_frame(self, handle: Any) -> None:
        ...


class LoopFrameClock(FrameClock):
    """
    FrameClock backed by the running asyncio loop.

    Args:
        interval_s: Seconds between frames (1/60 for a 60 Hz display).
    """

    def __init__(self, interval_s: float, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self.interval_s = interval_s
        self._loop = loop

    def request_frame(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self.interval_s, callback)

    def cancel_frame(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
