"""Tests for simulated pairing, live samplers and the event bus."""

from __future__ import annotations

import asyncio
import random

import pytest

from fitkernel.core.events import DomainConfigured, EventBus, GoalAdded
from fitkernel.core.models import GoalType
from fitkernel.core.pairing import catalog_for, start_pairing, valid_equipment
from fitkernel.core.sampling import PeriodicSampler, heart_rate_producer, steps_producer
from fitkernel.core.wizards import CardioWizard
from tests.conftest import fill_cardio


# ---------------------------------------------------------------------------
# Pairing
# ---------------------------------------------------------------------------

class TestCatalog:
    def test_catalogs(self):
        assert {o.type for o in catalog_for(GoalType.cardio_endurance)} >= {"heart_rate_monitor", "smartwatch"}
        assert catalog_for(GoalType.weight_loss) == ()
        assert "bodyweight_only" in {o.type for o in catalog_for(GoalType.strength_building)}

    def test_valid_equipment(self):
        assert valid_equipment(["barbell", "rocket", "barbell", "dumbbells"]) == ["barbell", "dumbbells"]


class TestPairing:
    @pytest.mark.asyncio
    async def test_pairs_in_order(self):
        handle = start_pairing(
            GoalType.cardio_endurance, ["smartwatch", "heart_rate_monitor"], delay=0, rng=random.Random(1)
        )
        devices = await handle.wait()
        assert [d.type for d in devices] == ["smartwatch", "heart_rate_monitor"]
        assert all(60 <= d.battery_level <= 99 for d in devices)
        assert handle.done and not handle.cancelled

    @pytest.mark.asyncio
    async def test_unknown_types_skipped(self):
        handle = start_pairing(GoalType.daily_steps, ["smartphone", "toaster"], delay=0)
        devices = await handle.wait()
        assert [d.type for d in devices] == ["smartphone"]
        assert devices[0].battery_level is None
        assert devices[0].accuracy == "high"

    @pytest.mark.asyncio
    async def test_cancel_keeps_partial_devices(self):
        paired = []
        handle = None

        def _on_device(device):
            paired.append(device)
            handle.cancel()

        handle = start_pairing(
            GoalType.sleep_tracking, ["smartwatch", "sleep_tracker", "phone"], delay=0, on_device=_on_device
        )
        devices = await handle.wait()
        assert handle.cancelled
        assert [d.type for d in devices] == ["smartwatch"]
        assert devices == paired

    @pytest.mark.asyncio
    async def test_empty_selection_finishes(self):
        handle = start_pairing(GoalType.cardio_endurance, [], delay=0)
        assert await handle.wait() == []


# ---------------------------------------------------------------------------
# Samplers
# ---------------------------------------------------------------------------

class TestSamplers:
    def test_sample_once_overwrites_current(self):
        seen = []
        sampler = PeriodicSampler(steps_producer(100, random.Random(3)), interval=0, on_sample=seen.append)
        first = sampler.sample_once()
        second = sampler.sample_once()
        assert 100 <= first <= second <= 180
        assert sampler.current == second
        assert sampler.samples_taken == 2
        assert seen == [first, second]

    def test_resting_heart_rate(self):
        profile = fill_cardio(CardioWizard()).commit()
        produce = heart_rate_producer(profile, rng=random.Random(7))
        for _ in range(20):
            reading = produce()
            assert 55 <= reading.bpm <= 65
            assert reading.activity == "rest"

    def test_workout_heart_rate_near_target_zone(self):
        profile = fill_cardio(CardioWizard()).commit()
        zone = profile.zones[2]
        produce = heart_rate_producer(profile, workout_active=lambda: True, rng=random.Random(7))
        for _ in range(20):
            reading = produce()
            assert zone.min - 10 <= reading.bpm <= zone.max + 10
            assert reading.activity == "workout"

    def test_recovery_workout_stays_low(self):
        wizard = CardioWizard()
        wizard.set(age=30, resting_hr=60, fitness_objective="recovery")
        assert wizard.next()
        assert wizard.next()
        profile = wizard.commit()
        zone = profile.zones[0]
        produce = heart_rate_producer(profile, workout_active=lambda: True, rng=random.Random(11))
        for _ in range(20):
            reading = produce()
            assert zone.min - 10 <= reading.bpm <= zone.max + 10
            assert reading.bpm < profile.zones[3].min

    @pytest.mark.asyncio
    async def test_start_and_cancel(self):
        sampler = PeriodicSampler(steps_producer(), interval=0).start()
        assert sampler.running
        while sampler.samples_taken < 3:
            await asyncio.sleep(0)
        sampler.cancel()
        await sampler.wait()
        assert not sampler.running
        taken = sampler.samples_taken
        await asyncio.sleep(0)
        assert sampler.samples_taken == taken


# ---------------------------------------------------------------------------
# Event bus
# ---------------------------------------------------------------------------

class TestEventBus:
    def test_publish_to_exact_type(self):
        bus = EventBus()
        added, configured = [], []
        bus.subscribe(GoalAdded, added.append)
        bus.subscribe(DomainConfigured, configured.append)
        assert bus.publish(GoalAdded("g1", GoalType.daily_steps)) == 1
        assert added == [GoalAdded("g1", GoalType.daily_steps)]
        assert configured == []

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = bus.subscribe(GoalAdded, seen.append)
        unsubscribe()
        unsubscribe()
        assert bus.publish(GoalAdded("g1", GoalType.weight_loss)) == 0
        assert seen == []

    def test_handler_errors_propagate(self):
        bus = EventBus()

        def _boom(event):
            raise RuntimeError("handler failed")

        bus.subscribe(DomainConfigured, _boom)
        with pytest.raises(RuntimeError):
            bus.publish(DomainConfigured(GoalType.sleep_tracking))
