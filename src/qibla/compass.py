# compass.py
# Public entry point for the Qibla compass.
# Owns no business logic; wires the acquirer, the reader and the calculator together.

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .ip_locator import IPLocator
from .location_acquirer import LocationAcquirer
from .models import (
    AcquirerStatus, HeadingQuality, LocationEstimate, PermissionState,
    QiblaResult, SourceTier,
)
from .orientation_reader import OrientationReader
from .providers import FrameClock, LocationProvider, OrientationProvider
from .qibla_calculator import QiblaCalculator
from .qibla_config import QiblaConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompassState:
    """Everything a presentation layer needs to draw the dial."""
    display_angle: Optional[float]          # relative angle, or absolute bearing without a heading
    heading: Optional[float]
    absolute_bearing: Optional[float]
    distance_km: Optional[float]
    location: Optional[LocationEstimate]
    location_source: Optional[SourceTier]
    location_status: AcquirerStatus
    is_approximate: bool
    has_compass_data: bool
    heading_quality: Optional[HeadingQuality]
    permission_state: PermissionState
    is_supported: bool
    errors: List[str] = field(default_factory=list)

    @property
    def relative_angle(self) -> Optional[float]:
        return self.display_angle if self.has_compass_data else None


class QiblaCompass:
    """
    High-level compass session.

    Typical lifecycle:
        async with QiblaCompass(location_provider, orientation_provider) as compass:
            compass.subscribe(render)
            await compass.request_orientation_permission()   # after a user gesture
            ...

    Args:
        location_provider:    LocationProvider for GPS / network-assisted fixes.
        orientation_provider: OrientationProvider for compass events.
        config:               Optional QiblaConfig; defaults to QiblaConfig().
        frame_clock:          Optional FrameClock for the heading tick.
        ip_locator:           Optional IPLocator for the network fallback.
    """

    def __init__(
        self,
        location_provider: LocationProvider,
        orientation_provider: OrientationProvider,
        config: Optional[QiblaConfig] = None,
        frame_clock: Optional[FrameClock] = None,
        ip_locator: Optional[IPLocator] = None,
    ) -> None:
        self.config = config or QiblaConfig()

        # Specialist modules
        self._acquirer   = LocationAcquirer(location_provider, ip_locator, self.config)
        self._reader     = OrientationReader(orientation_provider, self.config, frame_clock)
        self._calculator = QiblaCalculator(self.config)

        self._subscribers: List[Callable[[CompassState], None]] = []
        self._state: CompassState = self._compute()
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, locate: bool = True) -> None:
        """Begin orientation tracking and, unless told otherwise, location acquisition."""
        if self._started:
            return
        self._started = True
        self._acquirer.subscribe(self._on_input_change)
        self._reader.subscribe(self._on_input_change)
        self._reader.start()
        if locate:
            self._acquirer.request_location()
        logger.info("Compass session started.")

    def stop(self) -> None:
        """Release every watch, timer, listener and frame callback."""
        if not self._started:
            return
        self._started = False
        self._acquirer.stop()
        self._reader.stop()
        self._acquirer.unsubscribe(self._on_input_change)
        self._reader.unsubscribe(self._on_input_change)
        logger.info("Compass session stopped.")

    async def __aenter__(self) -> "QiblaCompass":
        self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Imperative triggers
    # ------------------------------------------------------------------

    def request_location(self):
        """(Re)start acquisition from the first tier; returns the running task."""
        return self._acquirer.request_location()

    async def wait_for_location(self) -> Optional[LocationEstimate]:
        """Wait for the running acquisition to settle; None if it failed."""
        return await self._acquirer.wait()

    async def request_orientation_permission(self) -> PermissionState:
        return await self._reader.request_permission()

    # ------------------------------------------------------------------
    # Reactive output
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[CompassState], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[CompassState], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def snapshot(self) -> CompassState:
        return self._state

    def _on_input_change(self) -> None:
        self._state = self._compute()
        for callback in list(self._subscribers):
            callback(self._state)

    def _compute(self) -> CompassState:
        estimate = self._acquirer.estimate
        heading = self._reader.heading

        result: Optional[QiblaResult] = None
        if estimate is not None:
            result = self._calculator.calculate(estimate.point, heading)

        errors = [e.message for e in (self._acquirer.error, self._reader.error) if e is not None]

        return CompassState(
            display_angle=result.display_angle if result else None,
            heading=heading,
            absolute_bearing=result.absolute_bearing if result else None,
            distance_km=result.distance_km if result else None,
            location=estimate,
            location_source=estimate.source_tier if estimate else None,
            location_status=self._acquirer.status,
            is_approximate=self._acquirer.is_approximate,
            has_compass_data=heading is not None,
            heading_quality=self._reader.quality,
            permission_state=self._reader.permission_state,
            is_supported=self._reader.is_supported,
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Convenience read-only properties
    # ------------------------------------------------------------------

    @property
    def acquirer(self) -> LocationAcquirer:
        return self._acquirer

    @property
    def reader(self) -> OrientationReader:
        return self._reader
