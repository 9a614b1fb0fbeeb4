"""Tests for food lookup, spoken meal parsing and voice logs."""

from __future__ import annotations

from datetime import date

import pytest

from fitkernel.core.errors import ConfirmationRequiredError
from fitkernel.core.food import (
    PendingMeal,
    foods_for_diet,
    get_food,
    parse_spoken_text,
    parse_voice_log,
    requires_confirmation,
    search_by_text,
)
from fitkernel.core.models import MealType


class TestSearch:
    def test_by_name(self):
        assert [f.id for f in search_by_text("RICE")] == ["brown-rice"]

    def test_by_category(self):
        assert {f.id for f in search_by_text("protein")} == {"chicken-breast", "eggs", "paneer"}

    def test_empty_query(self):
        assert search_by_text("   ") == []

    def test_get_food(self):
        assert get_food("apple").name == "Apple"
        assert get_food("pizza") is None

    def test_vegan(self):
        assert {f.id for f in foods_for_diet("vegan")} == {"brown-rice", "broccoli", "apple"}

    def test_scaled(self):
        item = get_food("chicken-breast").scaled(200)
        assert item.calories == 330
        assert item.protein == 62


class TestParseSpokenText:
    def test_name_only_defaults_to_100g(self):
        parsed = parse_spoken_text("I had chicken breast for lunch")
        assert len(parsed.items) == 1
        assert parsed.items[0].quantity == 100
        assert parsed.items[0].calories == 165
        assert parsed.confidence == pytest.approx(0.8)

    def test_quantity_uses_medium_portion(self):
        parsed = parse_spoken_text("I ate 1 apple")
        assert parsed.items[0].quantity == 180
        assert parsed.items[0].calories == 94
        assert parsed.confidence == pytest.approx(0.9)

    def test_unit_selects_portion(self):
        parsed = parse_spoken_text("2 cups of greek yogurt")
        assert parsed.items[0].quantity == 200
        assert parsed.total_calories == 118

    def test_several_foods_average_confidence(self):
        parsed = parse_spoken_text("two eggs and brown rice")
        assert [i.id for i in parsed.items] == ["eggs", "brown-rice"]
        assert parsed.confidence == pytest.approx(0.85)

    def test_nothing_recognised(self):
        parsed = parse_spoken_text("a big slice of pizza")
        assert parsed.items == []
        assert parsed.confidence == 0.0
        assert requires_confirmation(parsed)


class TestPendingMeal:
    def test_confident_parse_logs(self):
        pending = PendingMeal(parse_spoken_text("I ate 1 apple"), MealType.snack)
        assert not pending.needs_confirmation
        log = pending.to_meal_log(date(2026, 3, 10), goal_id="g1")
        assert log.actual_calories == 94
        assert log.logged_date == date(2026, 3, 10)
        assert log.goal_id == "g1"

    def test_low_confidence_requires_confirmation(self):
        pending = PendingMeal(parse_spoken_text("chicken breast"), MealType.dinner, threshold=0.85)
        assert pending.needs_confirmation
        with pytest.raises(ConfirmationRequiredError):
            pending.to_meal_log(date(2026, 3, 10))
        pending.confirm()
        assert pending.to_meal_log(date(2026, 3, 10)).actual_calories == 165


class TestVoiceLog:
    def test_strength_sets(self):
        log = parse_voice_log("Did 3 sets of 12 push-ups")
        assert log.numbers == [3, 12]
        assert log.exercise == "push-ups"
        assert log.workout_type is None

    def test_workout_type(self):
        log = parse_voice_log("Did yoga for 30 minutes")
        assert log.workout_type == "yoga"
        assert log.numbers == [30]
