# location_acquirer.py
# State machine that obtains a position through a tiered fallback sequence:
# precise sensor -> degraded sensor -> delayed degraded sensor -> IP lookup.
# Call request_location() to (re)start, stop() to release the watch and timers.

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from .ip_locator import IPLocator
from .models import (
    AcquirerStatus, ErrorCode, ErrorInfo, GeoPoint, LocationError,
    LocationEstimate, RawFix, SourceTier, Tier,
)
from .providers import LocationProvider
from .qibla_config import QiblaConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------

NEXT_TIER: Dict[Tier, Optional[Tier]] = {
    Tier.PRECISE:          Tier.DEGRADED,
    Tier.DEGRADED:         Tier.DEGRADED_DELAYED,
    Tier.DEGRADED_DELAYED: Tier.NETWORK,
    Tier.NETWORK:          None,
}

TIER_SOURCES: Dict[Tier, SourceTier] = {
    Tier.PRECISE:          SourceTier.PRECISE_SENSOR,
    Tier.DEGRADED:         SourceTier.DEGRADED_SENSOR,
    Tier.DEGRADED_DELAYED: SourceTier.CACHED_SENSOR,
    Tier.NETWORK:          SourceTier.NETWORK_APPROXIMATE,
}

PERMISSION_DENIED_MESSAGE = (
    "Location permission denied. Please allow location access in your settings."
)
UNSUPPORTED_MESSAGE = "Geolocation is not supported on this device."


def estimate_from_fix(fix: RawFix, source: SourceTier) -> LocationEstimate:
    """Convert a provider fix into a LocationEstimate; bad coordinates count as no fix."""
    try:
        point = GeoPoint(fix.latitude, fix.longitude)
    except (TypeError, ValueError) as e:
        raise LocationError(ErrorCode.SENSOR_UNAVAILABLE, f"Invalid position: {e}") from e
    return LocationEstimate(
        point=point,
        accuracy_m=fix.accuracy,
        source_tier=source,
        captured_at=fix.timestamp,
    )


class LocationAcquirer:
    """
    Owns the current LocationEstimate for one session.

    Usage:
        acquirer = LocationAcquirer(provider, config=config)
        estimate = await acquirer.acquire()

        # or fire-and-forget, observing changes:
        acquirer.subscribe(on_change)
        acquirer.request_location()

    Args:
        provider:   LocationProvider for the sensor tiers and the background watch.
        ip_locator: IPLocator for the network tier; built from config if omitted.
        config:     QiblaConfig instance.
    """

    def __init__(
        self,
        provider: LocationProvider,
        ip_locator: Optional[IPLocator] = None,
        config: Optional[QiblaConfig] = None,
    ) -> None:
        self.config = config or QiblaConfig()
        self._provider = provider
        self._ip_locator = ip_locator or IPLocator(self.config)

        self._status: AcquirerStatus = AcquirerStatus.IDLE
        self._tier: Optional[Tier] = None
        self._estimate: Optional[LocationEstimate] = None
        self._error: Optional[ErrorInfo] = None

        self._task: Optional[asyncio.Task] = None
        self._watch_id: Optional[int] = None
        self._listeners: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def status(self) -> AcquirerStatus:
        return self._status

    @property
    def tier(self) -> Optional[Tier]:
        """Tier currently being attempted, or the one that produced the estimate."""
        return self._tier

    @property
    def estimate(self) -> Optional[LocationEstimate]:
        return self._estimate

    @property
    def error(self) -> Optional[ErrorInfo]:
        return self._error

    @property
    def is_loading(self) -> bool:
        return self._status is AcquirerStatus.ACQUIRING

    @property
    def is_approximate(self) -> bool:
        return self._estimate is not None and self._estimate.is_approximate

    @property
    def is_watching(self) -> bool:
        return self._watch_id is not None

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
    # Control
    # ------------------------------------------------------------------

    def request_location(self) -> Optional[asyncio.Task]:
        """
        Start (or restart) acquisition from the first tier.

        Must be called from inside a running event loop.

        Returns:
            The task running the tier sequence, or None if geolocation is unsupported.
        """
        loop = asyncio.get_running_loop()
        self._cancel_pending()

        if not self._provider.is_available:
            self._fail(ErrorInfo(ErrorCode.UNSUPPORTED_PLATFORM, UNSUPPORTED_MESSAGE))
            return None

        self._status = AcquirerStatus.ACQUIRING
        self._tier = Tier.PRECISE
        self._error = None
        self._notify()

        self._task = loop.create_task(self._run_sequence())
        self._start_watch()
        return self._task

    def retry(self) -> Optional[asyncio.Task]:
        """Manual retry affordance; identical to request_location()."""
        return self.request_location()

    async def acquire(self) -> Optional[LocationEstimate]:
        """
        Run the full sequence and wait for a terminal state.

        Returns:
            The estimate on success, None on failure (see .error).
        """
        self.request_location()
        return await self.wait()

    async def wait(self) -> Optional[LocationEstimate]:
        """Wait for the sequence already in flight (if any) to settle."""
        task = self._task
        if task is not None:
            # asyncio.wait does not raise if a watch fix cancels the sequence
            await asyncio.wait({task})
        return self._estimate if self._status is AcquirerStatus.SUCCEEDED else None

    def stop(self) -> None:
        """Cancel the sequence, any pending retry timer, and the background watch."""
        self._cancel_pending()
        if self._status is AcquirerStatus.ACQUIRING:
            self._status = AcquirerStatus.IDLE
            self._notify()
        logger.debug("Location acquisition stopped.")

    def _cancel_pending(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._clear_watch()

    # ------------------------------------------------------------------
    # Tier sequence
    # ------------------------------------------------------------------

    async def _run_sequence(self) -> None:
        tier: Optional[Tier] = Tier.PRECISE
        last_error: Optional[LocationError] = None

        while tier is not None:
            if tier is not self._tier:
                self._tier = tier
                self._notify()
            try:
                estimate = await self._attempt(tier)
            except LocationError as e:
                if e.code is ErrorCode.PERMISSION_DENIED:
                    logger.warning(f"Location permission denied at tier {tier.value}; no fallback.")
                    self._clear_watch()
                    self._fail(ErrorInfo(ErrorCode.PERMISSION_DENIED, PERMISSION_DENIED_MESSAGE))
                    return
                last_error = e
                next_tier = NEXT_TIER[tier]
                logger.info(
                    f"Tier {tier.value} failed ({e.code.value}): {e.message} "
                    f"→ {next_tier.value if next_tier else 'giving up'}"
                )
                tier = next_tier
                continue

            self._succeed(estimate)
            return

        self._fail(ErrorInfo(last_error.code, last_error.message))

    async def _attempt(self, tier: Tier) -> LocationEstimate:
        if tier is Tier.NETWORK:
            return await self._ip_locator.locate()

        request = self.config.tier_requests[tier]
        if request.delay_s > 0:
            await asyncio.sleep(request.delay_s)

        try:
            fix = await asyncio.wait_for(
                self._provider.get_current_position(request.options()),
                timeout=request.timeout_s,
            )
        except asyncio.TimeoutError:
            raise LocationError(
                ErrorCode.TIMEOUT, f"No position within {request.timeout_s:g} s."
            ) from None
        return estimate_from_fix(fix, TIER_SOURCES[tier])

    # ------------------------------------------------------------------
    # Background watch
    # ------------------------------------------------------------------

    def _start_watch(self) -> None:
        if self.config.watch_options is None:
            return
        self._watch_id = self._provider.watch_position(
            self._on_watch_fix, self._on_watch_error, self.config.watch_options,
        )

    def _clear_watch(self) -> None:
        if self._watch_id is not None:
            self._provider.clear_watch(self._watch_id)
            self._watch_id = None

    def _on_watch_fix(self, fix: RawFix) -> None:
        try:
            estimate = estimate_from_fix(fix, SourceTier.DEGRADED_SENSOR)
        except LocationError as e:
            logger.debug(f"Ignoring watch fix: {e.message}")
            return

        # A fix from the watch ends the primary sequence.
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._tier = Tier.DEGRADED
        self._succeed(estimate)

    def _on_watch_error(self, error: LocationError) -> None:
        logger.debug(f"Ignoring watch error: {error.code.value}")

    # ------------------------------------------------------------------
    # Terminal transitions
    # ------------------------------------------------------------------

    def _succeed(self, estimate: LocationEstimate) -> None:
        self._estimate = estimate
        self._status = AcquirerStatus.SUCCEEDED
        self._error = None
        logger.info(
            f"Location fix via {estimate.source_tier.value}: "
            f"({estimate.point.lat:.4f}, {estimate.point.lon:.4f}) ±{estimate.accuracy_m} m"
        )
        self._notify()

    def _fail(self, error: ErrorInfo) -> None:
        self._status = AcquirerStatus.FAILED
        self._error = error
        logger.warning(f"Location acquisition failed: {error.message}")
        self._notify()
