# main.py
# Entry point: simulates a phone session feeding location and compass data into QiblaCompass.
# In production, replace the simulated providers with real platform bindings.
#
# Run with: python -m qibla.main

import asyncio
import logging
import random

from qibla.compass import CompassState, QiblaCompass
from qibla.formatting import (
    cardinal_direction, format_coordinates, format_degrees, format_distance,
    relative_direction_instruction,
)
from qibla.models import ErrorCode, LocationError
from qibla.qibla_config import QiblaConfig
from qibla.simulated import (
    ManualFrameClock, SimulatedLocationProvider, SimulatedOrientationProvider, make_fix,
)

# ------------------------------------------------------------------
# Logging setup: configure once here, all modules inherit
# ------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

# ------------------------------------------------------------------
# Config: tweak thresholds here, not inside the modules
# ------------------------------------------------------------------
config = QiblaConfig(
    smoothing_window=5,
    smoothing_alpha=0.25,
    watch_options=None,
)

# ------------------------------------------------------------------
# Simulation data (New York; first fix times out, degraded tier answers)
# ------------------------------------------------------------------
NEW_YORK = make_fix(40.7128, -74.0060, accuracy=65.0)
LOCATION_SCRIPT = [
    LocationError(ErrorCode.TIMEOUT, "Simulated GPS timeout."),
    NEW_YORK,
]

# User slowly turns from north toward east; the sensor jitters by a few degrees
HEADINGS = [float(h) for h in range(350, 360, 2)] + [float(h) for h in range(0, 75, 3)]
JITTER_DEG = 3.0


def render(state: CompassState) -> None:
    if state.absolute_bearing is None:
        return
    line = (
        f"  qibla {format_degrees(state.absolute_bearing)} "
        f"({cardinal_direction(state.absolute_bearing)}), "
        f"{format_distance(state.distance_km)}"
    )
    if state.has_compass_data:
        line += (
            f" | heading {format_degrees(state.heading)}"
            f" → {relative_direction_instruction(state.relative_angle)}"
        )
    print(line)


async def main() -> None:
    location = SimulatedLocationProvider(LOCATION_SCRIPT)
    orientation = SimulatedOrientationProvider(requires_permission=True)
    clock = ManualFrameClock()

    async with QiblaCompass(location, orientation, config=config, frame_clock=clock) as compass:
        # 1. Location: tier sequence runs in the background
        estimate = await compass.wait_for_location()
        if estimate is None:
            print(f"[Main] Could not determine location: {compass.snapshot().errors}")
            return
        print(f"[Main] Located at {format_coordinates(estimate.point.lat, estimate.point.lon)}"
              f" via {estimate.source_tier.value}")
        render(compass.snapshot())

        # 2. Orientation: needs an explicit grant on this platform
        permission = await compass.request_orientation_permission()
        print(f"[Main] Orientation permission: {permission.value}")

        print("\n--- Compass Loop Active ---")
        for raw in HEADINGS:
            orientation.emit_heading(raw + random.uniform(-JITTER_DEG, JITTER_DEG))
            clock.advance(3)                 # three display frames per sensor event
            render(compass.snapshot())
            await asyncio.sleep(0.02)

    print("\n--- Session complete ---")


if __name__ == "__main__":
    asyncio.run(main())
