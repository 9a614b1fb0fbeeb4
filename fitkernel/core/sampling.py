"""Live sample generators.

A ``PeriodicSampler`` overwrites a single "current reading" every interval:
last write wins and nothing is queued. ``start()`` returns the sampler itself
as the cancellation handle.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from typing import Generic, TypeVar

from fitkernel.config import settings
from fitkernel.core import derivations
from fitkernel.core.models import CardioProfile, HeartRateReading, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Zone the simulated workout heart rate centres on, by fitness objective.
WORKOUT_ZONE = {"recovery": 1, "fat_burn": 2, "endurance": 3, "performance": 4}


class PeriodicSampler(Generic[T]):
    def __init__(
        self,
        produce: Callable[[], T],
        interval: float | None = None,
        on_sample: Callable[[T], None] | None = None,
    ):
        self._produce = produce
        self.interval = settings.sample_interval_seconds if interval is None else interval
        self._on_sample = on_sample
        self._task: asyncio.Task | None = None
        self.current: T | None = None
        self.samples_taken = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "PeriodicSampler[T]":
        if self.running:
            return self
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug("sampler cancelled after %d samples", self.samples_taken)

    async def wait(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})

    def sample_once(self) -> T:
        self.current = self._produce()
        self.samples_taken += 1
        if self._on_sample is not None:
            self._on_sample(self.current)
        return self.current

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.sample_once()


def heart_rate_producer(
    profile: CardioProfile,
    workout_active: Callable[[], bool] = lambda: False,
    rng: random.Random | None = None,
) -> Callable[[], HeartRateReading]:
    """Resting rate ±5 bpm at rest; during a workout, a value inside the
    objective's zone ±10 bpm."""
    rng = rng or random.Random()
    bands = [(z.name, z.min, z.max) for z in profile.zones]

    def _produce() -> HeartRateReading:
        if workout_active():
            zone = profile.zones[WORKOUT_ZONE.get(profile.fitness_objective, 4) - 1]
            bpm = round(rng.uniform(zone.min, zone.max) + (rng.random() - 0.5) * 20)
            activity = "workout"
        else:
            bpm = round(profile.resting_heart_rate + (rng.random() - 0.5) * 10)
            activity = "rest"
        return HeartRateReading(
            timestamp=utc_now(),
            bpm=bpm,
            zone=derivations.zone_for_bpm(bpm, bands),
            activity=activity,
        )

    return _produce


def steps_producer(start: int = 0, rng: random.Random | None = None) -> Callable[[], int]:
    """Running step count increasing by 0–40 steps per sample."""
    rng = rng or random.Random()
    count = start

    def _produce() -> int:
        nonlocal count
        count += rng.randint(0, 40)
        return count

    return _produce
