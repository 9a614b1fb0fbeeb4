"""Tests for pure derivation functions."""

from datetime import date, timedelta

import pytest

from fitkernel.core.derivations import (
    average,
    bmr_mifflin_st_jeor,
    calorie_target,
    detect_plateau,
    distribute_meal_calories,
    exercise_calories,
    heart_rate_zones,
    max_heart_rate,
    parse_hhmm,
    protein_goal,
    recommended_split,
    recommended_step_target,
    sleep_duration_hours,
    steps_calories,
    steps_distance_km,
    streak,
    stride_length_cm,
    target_zones_for,
    wake_time,
    wakes_next_day,
    weekly_cardio_minutes,
    zone_for_bpm,
)
from fitkernel.core.models import POUNDS_TO_KG


class TestBmr:
    def test_female(self):
        assert bmr_mifflin_st_jeor(70, 165, 25, "female") == pytest.approx(1445.25)

    def test_male(self):
        assert bmr_mifflin_st_jeor(80, 180, 30, "male") == pytest.approx(1780.0)

    def test_other_uses_midpoint_offset(self):
        assert bmr_mifflin_st_jeor(80, 180, 30, "other") == pytest.approx(1697.0)


class TestCalorieTarget:
    def test_reference_case(self):
        result = calorie_target(70, 65, 165, 25, "female", "moderately_active", 12)
        assert result.daily_calories >= 1200
        assert result.weekly_loss_rate <= 2
        # 5 kg over 12 weeks is about 0.92 lb/week, a 459 kcal/day deficit
        assert result.daily_deficit == pytest.approx(459.3, abs=0.1)
        assert result.daily_calories == 1781
        assert result.weekly_loss_rate == 0.4
        assert result.is_realistic
        assert not result.clamped
        assert result.warnings == []

    def test_aggressive_plan_is_clamped_and_flagged(self):
        result = calorie_target(100, 60, 165, 25, "female", "sedentary", 4)
        assert result.daily_calories == 1200
        assert result.clamped
        assert not result.is_realistic
        # Achieved rate reflects the clamp, not the requested 10 kg/week
        assert result.weekly_loss_rate == 0.8
        assert len(result.warnings) == 2

    def test_pounds_rate_over_deficit_limit(self):
        # 2 lb/week sits on the rate limit but needs a 1000 kcal/day deficit
        result = calorie_target(200, 180, 170, 30, "male", "moderately_active", 10, weight_unit="pounds")
        assert result.daily_deficit == pytest.approx(1000.0)
        assert result.bmr == pytest.approx(1824.684)
        assert result.daily_calories == 1828
        assert result.weekly_loss_rate == 2.0
        assert not result.is_realistic
        assert not result.clamped
        assert "lb/week" in result.warnings[0]

    def test_units_agree_on_budget(self):
        metric = calorie_target(70, 65, 165, 25, "female", "moderately_active", 12)
        imperial = calorie_target(
            70 / POUNDS_TO_KG, 65 / POUNDS_TO_KG, 165, 25, "female", "moderately_active", 12, weight_unit="pounds"
        )
        assert imperial.daily_calories == metric.daily_calories
        assert imperial.daily_deficit == pytest.approx(metric.daily_deficit)
        assert imperial.weekly_loss_rate == 0.9

    def test_male_floor(self):
        result = calorie_target(100, 60, 165, 25, "male", "sedentary", 2)
        assert result.daily_calories == 1500

    def test_zero_weeks_treated_as_one(self):
        assert calorie_target(70, 69, 165, 25, "female", "sedentary", 0) == calorie_target(
            70, 69, 165, 25, "female", "sedentary", 1
        )

    def test_deterministic(self):
        args = (82.5, 75.0, 178, 41, "male", "very_active", 16)
        assert calorie_target(*args) == calorie_target(*args)


class TestNutrition:
    def test_protein_goal(self):
        assert protein_goal(70, "moderately_active") == 70
        assert protein_goal(70, "extremely_active") == 84

    def test_meal_split(self):
        assert distribute_meal_calories(2000) == {"breakfast": 500, "lunch": 700, "dinner": 600, "snack": 200}

    def test_meal_split_rounding_is_not_reconciled(self):
        meals = distribute_meal_calories(1999)
        assert sum(meals.values()) == 2000

    def test_exercise_calories(self):
        assert exercise_calories("running", 60, 70, 5) == 686

    def test_exercise_calories_unknown_activity(self):
        assert exercise_calories("juggling", 30, 80, 5) == 160


class TestPlateau:
    def _entries(self, weights):
        start = date(2026, 3, 1)
        return [(start + timedelta(days=i), w) for i, w in enumerate(weights)]

    def test_too_few_entries(self):
        assert not detect_plateau(self._entries([80.0] * 5)).is_plateaued

    def test_flat_weight_is_plateau(self):
        check = detect_plateau(self._entries([80.0] * 10))
        assert check.is_plateaued
        assert check.stagnation_days == 9
        assert check.recommendation

    def test_losing_weight_is_not_plateau(self):
        weights = [80.0 - 0.1 * i for i in range(10)]
        assert not detect_plateau(self._entries(weights)).is_plateaued


class TestHeartRateZones:
    def test_max_heart_rate(self):
        assert max_heart_rate(30) == 190
        assert max_heart_rate(30, custom_max=200) == 200

    def test_bounds(self):
        zones = heart_rate_zones(190, 60)
        assert [z[0] for z in zones] == ["Recovery", "Fat Burn", "Aerobic", "Threshold", "Max"]
        assert zones[0][1] == 60
        assert zones[-1][2] == 190
        assert [z[2] for z in zones] == [138, 151, 164, 177, 190]

    @pytest.mark.parametrize(
        "max_hr,resting", [(190, 60), (185, 48), (201, 72), (160, 95), (60.3, 60), (60.04, 60), (61, 60)]
    )
    def test_contiguous_and_increasing(self, max_hr, resting):
        zones = heart_rate_zones(max_hr, resting)
        assert zones[0][1] == resting
        assert zones[-1][2] == max_hr
        for (_, lo, hi), (_, next_lo, _) in zip(zones, zones[1:]):
            assert lo < hi
            assert hi == next_lo
        assert zones[-1][1] < zones[-1][2]

    def test_sub_bpm_reserve_keeps_edges_distinct(self):
        zones = heart_rate_zones(60.3, 60)
        assert zones[-1][1] == pytest.approx(60.27)
        assert zones[-1][1] < zones[-1][2] == 60.3

    def test_resting_at_or_above_max_rejected(self):
        with pytest.raises(ValueError):
            heart_rate_zones(150, 150)

    def test_zone_for_bpm(self):
        zones = heart_rate_zones(190, 60)
        assert zone_for_bpm(60, zones) == 1
        assert zone_for_bpm(140, zones) == 2
        assert zone_for_bpm(190, zones) == 5
        assert zone_for_bpm(40, zones) is None

    def test_objectives(self):
        assert target_zones_for("fat_burn") == [2, 3]
        assert target_zones_for("performance") == [4, 5]
        assert weekly_cardio_minutes("fat_burn") == 150
        assert weekly_cardio_minutes("endurance") == 180
        assert weekly_cardio_minutes("performance") == 200


class TestSleepSchedule:
    def test_wake_time_wraps(self):
        assert wake_time("23:00", 8) == "07:00"
        assert wakes_next_day("23:00", 8)

    def test_same_day(self):
        assert wake_time("01:15", 7.5) == "08:45"
        assert not wakes_next_day("01:15", 7.5)

    def test_duration_over_midnight(self):
        assert sleep_duration_hours("22:30", "06:30") == 8.0

    @pytest.mark.parametrize("value", ["7", "25:00", "12:60", "ab:cd"])
    def test_bad_times(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)


class TestSteps:
    def test_stride_from_height(self):
        assert stride_length_cm(165) == 71

    def test_distance(self):
        assert steps_distance_km(10000, 71) == pytest.approx(7.1)

    def test_calories_scale_with_weight(self):
        assert steps_calories(10000, 70) == 400
        assert steps_calories(10000, 105) == 600

    @pytest.mark.parametrize(
        "baseline,target", [(3000, 7500), (6500, 10000), (9000, 12500), (14000, 15000)]
    )
    def test_recommended_target(self, baseline, target):
        assert recommended_step_target(baseline) == target


class TestMisc:
    def test_recommended_split(self):
        assert recommended_split(2) == "full_body"
        assert recommended_split(4) == "upper_lower"
        assert recommended_split(6) == "push_pull_legs"

    def test_streak(self):
        assert streak([10000, 12000, 9000, 11000], 10000) == 2
        assert streak([], 1) == 0

    def test_average(self):
        assert average([1, 2, 3]) == 2
        assert average([]) == 0.0
