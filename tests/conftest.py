"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

import pytest

from fitkernel.core.blob_store import MemoryBlobStore
from fitkernel.core.coach import CoachingService
from fitkernel.core.events import EventBus
from fitkernel.core.models import (
    ConnectedDevice,
    Gender,
    HeightUnit,
    UserProfile,
    WeightUnit,
    WorkoutSession,
)
from fitkernel.core.orchestrator import Orchestrator
from fitkernel.core.stores import StoreSet
from fitkernel.core.wizards import (
    CardioWizard,
    SleepWizard,
    StepsWizard,
    StrengthWizard,
    WeightLossWizard,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def stores(blob_store) -> StoreSet:
    return StoreSet.load(blob_store)


@pytest.fixture()
def user_profile() -> UserProfile:
    return UserProfile(
        weight=70,
        weight_unit=WeightUnit.kg,
        height=165,
        height_unit=HeightUnit.cm,
        age=25,
        gender=Gender.female,
    )


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def orchestrator(stores, bus, user_profile) -> Orchestrator:
    """Orchestrator past the profile screen, coaching on the static fallback."""
    orch = Orchestrator(stores, bus=bus, coach=CoachingService())
    orch.start()
    orch.skip_phone()
    orch.complete_profile(user_profile)
    return orch


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_device(device_type: str = "smartwatch", **overrides: Any) -> ConnectedDevice:
    data = dict(id=f"{device_type}_1", name=device_type.replace("_", " ").title(), type=device_type)
    data.update(overrides)
    return ConnectedDevice(**data)


def make_workout(day: date, duration: int = 30, **overrides: Any) -> WorkoutSession:
    data = dict(
        activity_type="running",
        start_time=datetime(day.year, day.month, day.day, 7, 0, tzinfo=timezone.utc),
        duration=duration,
        average_heart_rate=140,
        calories_burned=300,
    )
    data.update(overrides)
    return WorkoutSession(**data)


def fill_weight_loss(wizard: WeightLossWizard) -> WeightLossWizard:
    wizard.set(
        current_weight=70,
        target_weight=65,
        timeline_weeks=12,
        gender="female",
        activity_level="moderately_active",
    )
    assert wizard.next()
    assert wizard.next()
    return wizard


def fill_cardio(wizard: CardioWizard, resting_hr: int = 60) -> CardioWizard:
    wizard.set(age=30, resting_hr=resting_hr, fitness_objective="endurance")
    assert wizard.next()
    assert wizard.next()
    return wizard


def fill_strength(wizard: StrengthWizard) -> StrengthWizard:
    wizard.set(fitness_level="beginner", primary_goal="muscle_gain", workout_frequency=3, workout_duration=45)
    assert wizard.next()
    assert wizard.next()
    assert wizard.next()
    return wizard


def fill_sleep(wizard: SleepWizard) -> SleepWizard:
    wizard.set(target_sleep_hours=8, target_bedtime="23:00")
    assert wizard.next()
    assert wizard.next()
    return wizard


def fill_steps(wizard: StepsWizard) -> StepsWizard:
    wizard.set(baseline_average=6000)
    assert wizard.next()
    assert wizard.next()
    assert wizard.next()
    return wizard
