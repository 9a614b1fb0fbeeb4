"""Simulated device pairing.

A scan resolves the selected device types one after another, each after a
fixed delay, appending one ConnectedDevice per completion. The scan runs as an
asyncio task behind a ``PairingHandle`` so the owner can cancel it; devices
paired before cancellation are kept. The simulation never fails.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from fitkernel.config import settings
from fitkernel.core.models import ConnectedDevice, DeviceStatus, GoalType, new_id, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeviceOption:
    type: str
    name: str
    description: str
    recommended: bool = False
    has_battery: bool = True
    accuracy: str | None = None


DEVICE_CATALOG: dict[GoalType, tuple[DeviceOption, ...]] = {
    GoalType.cardio_endurance: (
        DeviceOption("heart_rate_monitor", "Heart Rate Monitor", "Chest strap or wrist-based HR monitor", True),
        DeviceOption("smartwatch", "Smartwatch", "Apple Watch, Garmin, Fitbit, etc.", True),
        DeviceOption("phone_camera", "Phone Camera", "Use camera for heart rate detection"),
        DeviceOption("smart_scale", "Smart Scale", "Track weight and body composition"),
    ),
    GoalType.sleep_tracking: (
        DeviceOption("smartwatch", "Smartwatch", "Wrist-based sleep stage tracking", True),
        DeviceOption("phone", "Phone Placement", "Phone on the mattress detects movement", has_battery=False),
        DeviceOption("sleep_tracker", "Sleep Tracker", "Dedicated under-mattress or bedside tracker", True),
        DeviceOption("smart_mattress", "Manual Logging", "Log bedtime and wake time yourself"),
    ),
    GoalType.daily_steps: (
        DeviceOption("smartphone", "Smartphone", "Built-in motion sensors", True, has_battery=False, accuracy="high"),
        DeviceOption("fitness_tracker", "Fitness Tracker", "Wrist band step counting", True, accuracy="high"),
        DeviceOption("smartwatch", "Smartwatch", "All-day activity tracking", accuracy="high"),
        DeviceOption("pedometer", "Manual Logging", "Enter your step count yourself", accuracy="medium"),
    ),
}

STRENGTH_EQUIPMENT: tuple[DeviceOption, ...] = (
    DeviceOption("gym_access", "Gym Access", "Full gym with machines and free weights", True, has_battery=False),
    DeviceOption("dumbbells", "Dumbbells", "Adjustable or fixed dumbbells", True, has_battery=False),
    DeviceOption("resistance_bands", "Resistance Bands", "Portable bands of varying resistance", has_battery=False),
    DeviceOption("barbell", "Barbell", "Olympic barbell with plates", has_battery=False),
    DeviceOption("kettlebells", "Kettlebells", "One or more kettlebells", has_battery=False),
    DeviceOption("pull_up_bar", "Pull-up Bar", "Doorway or mounted bar", has_battery=False),
    DeviceOption("bodyweight_only", "Bodyweight Only", "No equipment needed", has_battery=False),
)


def catalog_for(goal_type: GoalType) -> tuple[DeviceOption, ...]:
    goal_type = GoalType(goal_type)
    if goal_type == GoalType.strength_building:
        return STRENGTH_EQUIPMENT
    return DEVICE_CATALOG.get(goal_type, ())


def valid_equipment(selection: Iterable[str]) -> list[str]:
    """Known equipment types from ``selection`` in their given order."""
    known = {option.type for option in STRENGTH_EQUIPMENT}
    return [item for item in dict.fromkeys(selection) if item in known]


def make_device(option: DeviceOption, rng: random.Random | None = None) -> ConnectedDevice:
    rng = rng or random
    return ConnectedDevice(
        id=f"{option.type}_{new_id()[:8]}",
        name=option.name,
        type=option.type,
        status=DeviceStatus.connected,
        battery_level=rng.randint(60, 99) if option.has_battery else None,
        last_sync=utc_now(),
        accuracy=option.accuracy,
    )


class PairingHandle:
    """Cancellation handle for a running scan."""

    def __init__(self, goal_type: GoalType):
        self.goal_type = goal_type
        self._devices: list[ConnectedDevice] = []
        self._task: asyncio.Task | None = None

    @property
    def devices(self) -> list[ConnectedDevice]:
        return list(self._devices)

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task is not None and self._task.cancelled()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.info("pairing for %s cancelled after %d devices", self.goal_type.value, len(self._devices))

    async def wait(self) -> list[ConnectedDevice]:
        """Devices paired once the scan has finished or been cancelled."""
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.devices


async def _scan(
    handle: PairingHandle,
    options: list[DeviceOption],
    delay: float,
    rng: random.Random | None,
    on_device: Callable[[ConnectedDevice], None] | None,
) -> None:
    for option in options:
        await asyncio.sleep(delay)
        device = make_device(option, rng)
        handle._devices.append(device)
        logger.debug("paired %s for %s", device.type, handle.goal_type.value)
        if on_device is not None:
            on_device(device)


def start_pairing(
    goal_type: GoalType,
    device_types: Iterable[str],
    *,
    delay: float | None = None,
    rng: random.Random | None = None,
    on_device: Callable[[ConnectedDevice], None] | None = None,
) -> PairingHandle:
    """Start a sequential scan on the running loop and return its handle.

    Unknown device types are skipped. ``delay`` defaults to
    ``settings.pairing_delay_seconds`` per device.
    """
    goal_type = GoalType(goal_type)
    by_type = {option.type: option for option in catalog_for(goal_type)}
    options = []
    for device_type in dict.fromkeys(device_types):
        option = by_type.get(device_type)
        if option is None:
            logger.warning("unknown device type %r for %s, skipped", device_type, goal_type.value)
            continue
        options.append(option)

    handle = PairingHandle(goal_type)
    wait = settings.pairing_delay_seconds if delay is None else delay
    handle._task = asyncio.get_running_loop().create_task(_scan(handle, options, wait, rng, on_device))
    return handle
