"""Tests for the per-domain setup wizards."""

from __future__ import annotations

import pytest

from fitkernel.core.errors import WizardStateError
from fitkernel.core.models import GoalType, HeightUnit, UserProfile, WeightUnit
from fitkernel.core.wizards import (
    CardioWizard,
    SleepWizard,
    StepsWizard,
    StrengthWizard,
    WeightLossWizard,
    create_wizard,
)
from tests.conftest import (
    fill_cardio,
    fill_sleep,
    fill_steps,
    fill_strength,
    fill_weight_loss,
    make_device,
)


class TestNavigation:
    def test_next_blocked_without_required_fields(self):
        wizard = WeightLossWizard()
        assert wizard.current_step == "basic"
        assert wizard.next() is False
        assert wizard.current_step == "basic"
        assert "target_weight" in wizard.missing_fields()

    def test_empty_string_counts_as_missing(self):
        wizard = WeightLossWizard()
        wizard.set(current_weight=80, target_weight="", timeline_weeks=12)
        assert not wizard.can_advance()

    def test_back_keeps_values(self):
        wizard = fill_weight_loss(WeightLossWizard())
        assert wizard.current_step == "review"
        assert wizard.back()
        assert wizard.back()
        assert wizard.current_step == "basic"
        assert wizard.values["target_weight"] == 65
        assert wizard.back() is False

    def test_cannot_advance_past_review(self):
        wizard = fill_sleep(SleepWizard())
        assert wizard.next() is False
        assert wizard.current_step == "review"

    def test_commit_only_on_review(self):
        wizard = WeightLossWizard()
        wizard.set(current_weight=70, target_weight=65, timeline_weeks=12)
        assert wizard.next()
        with pytest.raises(WizardStateError):
            wizard.commit()

    def test_review_with_invalid_inputs_raises(self):
        with pytest.raises(WizardStateError):
            CardioWizard().review()

    def test_step_sequences(self):
        assert WeightLossWizard.STEPS == ("basic", "dietary", "review")
        assert CardioWizard.STEPS == ("basic", "zones", "review")
        assert StrengthWizard.STEPS == ("fitness", "goals", "schedule", "review")
        assert SleepWizard.STEPS == ("goals", "preferences", "review")
        assert StepsWizard.STEPS == ("baseline", "goals", "preferences", "review")


class TestWeightLossWizard:
    def test_commit_derives_targets(self, user_profile):
        profile = fill_weight_loss(WeightLossWizard(user_profile)).commit()
        assert profile.goal_type == "weight_loss"
        assert profile.weight_unit == WeightUnit.kg
        assert profile.daily_calorie_target == 1781
        assert profile.weekly_loss_rate == 0.4
        assert profile.protein_goal_grams == 70
        assert profile.meal_targets.lunch == round(1781 * 0.35)
        assert profile.is_realistic
        assert profile.warnings == []

    def test_target_must_be_below_current(self):
        wizard = WeightLossWizard()
        wizard.set(current_weight=70, target_weight=75)
        assert not wizard.next()

    def test_unrealistic_plan_warns_but_commits(self, user_profile):
        wizard = WeightLossWizard(user_profile)
        wizard.set(current_weight=100, target_weight=60, timeline_weeks=4, activity_level="sedentary")
        assert wizard.next()
        assert wizard.next()
        profile = wizard.commit()
        assert not profile.is_realistic
        assert profile.daily_calorie_target == 1200
        assert profile.warnings

    def test_pounds_user_keeps_pounds(self):
        imperial = UserProfile(weight=154, weight_unit=WeightUnit.pounds, height=5.5, height_unit=HeightUnit.feet, age=25)
        wizard = WeightLossWizard(imperial)
        wizard.set(target_weight=143)
        assert wizard.next()
        assert wizard.next()
        profile = wizard.commit()
        assert profile.weight_unit == WeightUnit.pounds
        assert profile.current_weight == 154
        assert profile.target_weight == 143
        # Protein still comes from body weight in kg
        assert profile.protein_goal_grams == 70

    def test_pounds_user_aggressive_deficit_flagged(self):
        imperial = UserProfile(weight=200, weight_unit=WeightUnit.pounds, height=5.5, height_unit=HeightUnit.feet, age=30)
        wizard = WeightLossWizard(imperial)
        wizard.set(target_weight=180, timeline_weeks=10, gender="male")
        assert wizard.next()
        assert wizard.next()
        profile = wizard.commit()
        assert not profile.is_realistic
        assert profile.weekly_loss_rate == 2.0
        assert profile.warnings

    def test_allergies_from_text(self, user_profile):
        wizard = WeightLossWizard(user_profile)
        wizard.set(current_weight=70, target_weight=65, allergies="peanuts, shellfish")
        assert wizard.next()
        assert wizard.next()
        assert wizard.commit().dietary_preferences.allergies == ["peanuts", "shellfish"]

    def test_identical_inputs_identical_numbers(self, user_profile):
        first = fill_weight_loss(WeightLossWizard(user_profile)).commit()
        second = fill_weight_loss(WeightLossWizard(user_profile)).commit()
        assert first.id != second.id
        assert first.model_dump(exclude={"id", "created_at", "updated_at"}) == second.model_dump(
            exclude={"id", "created_at", "updated_at"}
        )


class TestCardioWizard:
    def test_zones_from_resting_and_age(self):
        profile = fill_cardio(CardioWizard(devices=[make_device("heart_rate_monitor")])).commit()
        assert profile.max_heart_rate == 190
        assert profile.zones[0].min == 60
        assert profile.zones[-1].max == 190
        assert profile.primary_device == "heart_rate_monitor_1"
        assert profile.activity_profiles[0].target_zones == [3, 4]

    def test_resting_must_be_below_max(self):
        wizard = CardioWizard()
        wizard.set(age=30, resting_hr=100, custom_max_hr=100)
        assert not wizard.next()

    def test_zones_preview_on_zones_step(self):
        wizard = CardioWizard()
        wizard.set(age=40, resting_hr=55)
        assert wizard.next()
        assert wizard.current_step == "zones"
        zones = wizard.zones()
        assert len(zones) == 5
        assert zones[-1].max == 180


class TestStrengthWizard:
    def test_skipped_equipment_means_bodyweight(self):
        profile = fill_strength(StrengthWizard()).commit()
        assert profile.available_equipment == ["bodyweight_only"]
        assert profile.bodyweight_preference
        assert profile.workout_split == "upper_lower"
        assert profile.target_muscle_groups == ["chest", "back", "legs", "arms"]

    def test_equipment_and_chosen_split(self):
        wizard = StrengthWizard(equipment=["dumbbells", "barbell"])
        wizard.set(workout_split="push_pull_legs")
        wizard.toggle_muscle_group("core")
        for _ in range(3):
            assert wizard.next()
        profile = wizard.commit()
        assert profile.available_equipment == ["dumbbells", "barbell"]
        assert not profile.bodyweight_preference
        assert profile.workout_split == "push_pull_legs"
        assert profile.target_muscle_groups == ["core"]

    def test_invalid_frequency_blocks(self):
        wizard = StrengthWizard()
        wizard.set(workout_frequency=9)
        assert wizard.next()
        assert wizard.next()
        assert wizard.current_step == "schedule"
        assert not wizard.next()


class TestSleepWizard:
    def test_wake_time_derived(self):
        profile = fill_sleep(SleepWizard()).commit()
        assert profile.target_wake_time == "07:00"
        assert profile.wake_is_next_day
        assert profile.tracking_method == "manual"
        assert not profile.auto_detection_enabled

    def test_device_sets_tracking_method(self):
        profile = fill_sleep(SleepWizard(devices=[make_device("sleep_tracker")])).commit()
        assert profile.tracking_method == "sleep_tracker"
        assert profile.auto_detection_enabled

    def test_bad_bedtime_blocks(self):
        wizard = SleepWizard()
        wizard.set(target_bedtime="late")
        assert not wizard.next()


class TestStepsWizard:
    def test_target_prefilled_from_baseline(self, user_profile):
        wizard = StepsWizard(user_profile)
        wizard.set(baseline_average=6000)
        assert wizard.next()
        assert wizard.values["daily_step_target"] == 10000

    def test_derived_distance_and_calories(self, user_profile):
        profile = fill_steps(StepsWizard(user_profile)).commit()
        assert profile.daily_step_target == 10000
        assert profile.stride_length_cm == 71
        assert profile.target_distance_km == 7.1
        assert profile.target_calories == 400

    def test_stride_override(self, user_profile):
        wizard = StepsWizard(user_profile)
        wizard.set(baseline_average=4000)
        assert wizard.next()
        wizard.set(stride_length_cm=80)
        assert wizard.next()
        assert wizard.next()
        profile = wizard.commit()
        assert profile.daily_step_target == 7500
        assert profile.target_distance_km == 6.0


def test_create_wizard_dispatch():
    assert isinstance(create_wizard(GoalType.daily_steps), StepsWizard)
    with pytest.raises(KeyError):
        create_wizard(GoalType.workout_consistency)
