# orientation_reader.py
# Turns raw device-orientation events into one smoothed, clockwise-from-north heading.
# Events only record the newest sample; smoothing runs once per display frame.

import logging
import math
from typing import Any, Callable, List, Optional, Tuple

from .geo_utils import normalize_angle
from .heading_smoother import HeadingSmoother
from .models import (
    ErrorCode, ErrorInfo, HeadingQuality, OrientationEvent, PermissionState,
)
from .providers import FrameClock, LoopFrameClock, OrientationProvider
from .qibla_config import QiblaConfig

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Device orientation is not supported on this device."


def normalize_heading(event: OrientationEvent) -> Tuple[Optional[float], Optional[HeadingQuality]]:
    """
    Map one raw orientation event to a heading clockwise from north.

    Priority:
        1. vendor compass heading, used as is
        2. alpha with absolute framing  -> 360 - alpha
        3. alpha, framing unconfirmed   -> 360 - alpha, lower confidence

    Returns:
        (heading in [0, 360), quality), or (None, None) if the event has no usable
        field or the chosen field is not a finite number.
    """
    if event.compass_heading is not None:
        if not math.isfinite(event.compass_heading):
            return None, None
        return normalize_angle(event.compass_heading), HeadingQuality.COMPASS
    if event.alpha is not None:
        if not math.isfinite(event.alpha):
            return None, None
        quality = HeadingQuality.ABSOLUTE if event.absolute else HeadingQuality.UNCONFIRMED
        return normalize_angle(360.0 - event.alpha), quality
    return None, None


class OrientationReader:
    """
    Orientation session: listener registration, permission state and frame tick.

    Usage:
        reader = OrientationReader(provider)
        reader.start()
        await reader.request_permission()   # on platforms that need a user gesture
        ...
        reader.stop()

    Args:
        provider:    OrientationProvider for raw events.
        config:      QiblaConfig instance.
        frame_clock: FrameClock; defaults to an asyncio-backed 60 Hz clock.
        smoother:    HeadingSmoother; built from config if omitted.
    """

    def __init__(
        self,
        provider: OrientationProvider,
        config: Optional[QiblaConfig] = None,
        frame_clock: Optional[FrameClock] = None,
        smoother: Optional[HeadingSmoother] = None,
    ) -> None:
        self.config = config or QiblaConfig()
        self._provider = provider
        self._clock = frame_clock or LoopFrameClock(self.config.frame_interval_s)
        self._smoother = smoother or HeadingSmoother(
            self.config.smoothing_window, self.config.smoothing_alpha,
        )

        self._latest_raw: Optional[float] = None
        self._heading: Optional[float] = None
        self._quality: Optional[HeadingQuality] = None
        self._is_absolute: bool = False
        self._permission: PermissionState = PermissionState.UNKNOWN
        self._error: Optional[ErrorInfo] = None

        self._listening: bool = False
        self._frame_handle: Any = None
        self._running: bool = False
        self._listeners: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def heading(self) -> Optional[float]:
        """Smoothed heading in [0, 360), None until the first frame with data."""
        return self._heading

    @property
    def quality(self) -> Optional[HeadingQuality]:
        return self._quality

    @property
    def is_absolute(self) -> bool:
        return self._is_absolute

    @property
    def is_supported(self) -> bool:
        return self._provider.is_supported

    @property
    def permission_state(self) -> PermissionState:
        return self._permission

    @property
    def error(self) -> Optional[ErrorInfo]:
        return self._error

    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def frame_pending(self) -> bool:
        return self._frame_handle is not None

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Check support, attach the listener where no grant is needed, start the frame tick."""
        if self._running:
            return
        self._running = True

        if not self._provider.is_supported:
            self._error = ErrorInfo(ErrorCode.UNSUPPORTED_PLATFORM, UNSUPPORTED_MESSAGE)
            logger.warning(self._error.message)
            self._notify()
            return

        if self._provider.requires_permission:
            self._permission = PermissionState.PROMPT
        else:
            self._attach()

        self._frame_handle = self._clock.request_frame(self._tick)
        self._notify()

    def stop(self) -> None:
        """Detach the listener and cancel the pending frame."""
        self._running = False
        self._detach()
        if self._frame_handle is not None:
            self._clock.cancel_frame(self._frame_handle)
            self._frame_handle = None
        logger.debug("Orientation tracking stopped.")

    async def request_permission(self) -> PermissionState:
        """
        Ask for orientation access (user-gesture triggered on some platforms).

        Returns:
            The resulting PermissionState.
        """
        if not self._provider.is_supported:
            self._permission = PermissionState.DENIED
            self._error = ErrorInfo(ErrorCode.UNSUPPORTED_PLATFORM, UNSUPPORTED_MESSAGE)
            logger.warning(self._error.message)
            self._notify()
            return self._permission

        if not self._provider.requires_permission:
            self._grant()
            self._notify()
            return self._permission

        try:
            granted = await self._provider.request_permission()
        except Exception as e:
            self._permission = PermissionState.DENIED
            self._error = ErrorInfo(
                ErrorCode.PERMISSION_DENIED,
                f"Error requesting device orientation permission: {e}",
            )
            logger.warning(self._error.message)
            self._notify()
            return self._permission

        if granted:
            self._grant()
            logger.info("Orientation permission granted.")
        else:
            self._permission = PermissionState.DENIED
            self._error = ErrorInfo(
                ErrorCode.PERMISSION_DENIED,
                "Permission to access device orientation was denied.",
            )
            logger.warning(self._error.message)
        self._notify()
        return self._permission

    def _grant(self) -> None:
        self._permission = PermissionState.GRANTED
        self._error = None
        # New grant starts a new sensor session
        self._smoother.reset()
        self._latest_raw = None
        self._heading = None
        self._attach()

    def _attach(self) -> None:
        if not self._listening:
            self._provider.add_listener(self.handle_event)
            self._listening = True

    def _detach(self) -> None:
        if self._listening:
            self._provider.remove_listener(self.handle_event)
            self._listening = False

    # ------------------------------------------------------------------
    # Event and frame handling
    # ------------------------------------------------------------------

    def handle_event(self, event: OrientationEvent) -> None:
        """Record the newest raw heading; smoothing waits for the next frame."""
        raw, quality = normalize_heading(event)
        if raw is None:
            return
        self._latest_raw = raw
        self._quality = quality
        self._is_absolute = bool(event.absolute) or quality is HeadingQuality.COMPASS

    def _tick(self) -> None:
        self._frame_handle = None
        if not self._running:
            return
        if self._latest_raw is not None:
            self._heading = self._smoother.update(self._latest_raw)
            self._error = None
            self._notify()
        self._frame_handle = self._clock.request_frame(self._tick)
