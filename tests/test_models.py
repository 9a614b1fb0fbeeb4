"""Tests for the domain models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from fitkernel.core.models import (
    DomainProfile,
    Goal,
    GoalType,
    HeightUnit,
    SleepProfile,
    StepsProfile,
    UserProfile,
    WeightUnit,
)
from fitkernel.core.wizards import SleepWizard, StepsWizard
from tests.conftest import fill_sleep, fill_steps


class TestUserProfile:
    def test_imperial_defaults(self):
        profile = UserProfile()
        assert profile.weight_unit == WeightUnit.pounds
        assert profile.height_unit == HeightUnit.feet
        assert profile.weight_kg() is None
        assert profile.selected_goals == []

    def test_conversions(self):
        profile = UserProfile(weight=220, height=6)
        assert profile.weight_kg() == pytest.approx(99.79, abs=0.01)
        assert profile.height_cm() == pytest.approx(182.88)

    def test_metric_passthrough(self, user_profile):
        assert user_profile.weight_kg() == 70
        assert user_profile.height_cm() == 165

    def test_created_at_utc(self):
        assert UserProfile().created_at.tzinfo is not None


class TestGoal:
    def test_defaults(self):
        goal = Goal(type=GoalType.daily_steps, title="Daily Steps")
        assert goal.id
        assert goal.is_active
        assert goal.current_value == 0.0

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Goal(type="juggling", title="Juggling")


class TestDomainProfileUnion:
    adapter = TypeAdapter(DomainProfile)

    def test_discriminates_on_goal_type(self, user_profile):
        steps = fill_steps(StepsWizard(user_profile)).commit()
        restored = self.adapter.validate_json(steps.model_dump_json())
        assert isinstance(restored, StepsProfile)
        assert restored == steps

    def test_sleep_round_trip(self):
        sleep = fill_sleep(SleepWizard()).commit()
        restored = self.adapter.validate_python(sleep.model_dump())
        assert isinstance(restored, SleepProfile)

    def test_unknown_tag_rejected(self):
        with pytest.raises(ValidationError):
            self.adapter.validate_python({"goal_type": "workout_consistency"})
