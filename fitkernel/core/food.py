"""Food lookup and spoken-input parsing.

``parse_spoken_text`` matches database foods by name and scales the nutrient
values to a portion. When a quantity is found next to the food name the match
counts as 0.9 confidence, otherwise 0.8 at a 100 g default; the result carries
the average. Results under ``settings.food_confirmation_threshold`` need an
explicit confirmation before they may be logged (see ``PendingMeal``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date

from pydantic import BaseModel

from fitkernel.config import settings
from fitkernel.core.errors import ConfirmationRequiredError
from fitkernel.core.models import FoodItem, GoalType, MealLog, MealType


class Portion(BaseModel):
    name: str
    grams: float
    description: str


class FoodRecord(BaseModel):
    id: str
    name: str
    calories_per_100g: float
    protein_per_100g: float
    carbs_per_100g: float
    fat_per_100g: float
    category: str
    dietary_tags: list[str]
    portions: list[Portion]

    def scaled(self, grams: float) -> FoodItem:
        return FoodItem(
            id=self.id,
            name=self.name,
            quantity=grams,
            unit="grams",
            calories=round(self.calories_per_100g * grams / 100),
            protein=round(self.protein_per_100g * grams / 100),
            carbs=round(self.carbs_per_100g * grams / 100),
            fat=round(self.fat_per_100g * grams / 100),
        )


def _food(id, name, kcal, protein, carbs, fat, category, tags, portions) -> FoodRecord:
    return FoodRecord(
        id=id,
        name=name,
        calories_per_100g=kcal,
        protein_per_100g=protein,
        carbs_per_100g=carbs,
        fat_per_100g=fat,
        category=category,
        dietary_tags=tags,
        portions=[Portion(name=n, grams=g, description=d) for n, g, d in portions],
    )


FOOD_DATABASE: list[FoodRecord] = [
    _food("chicken-breast", "Chicken Breast", 165, 31, 0, 3.6, "protein", ["non_vegetarian"],
          [("Small piece", 85, "3 oz serving"), ("Medium piece", 113, "4 oz serving"), ("Large piece", 170, "6 oz serving")]),
    _food("eggs", "Eggs", 155, 13, 1.1, 11, "protein", ["eggetarian"],
          [("1 large egg", 50, "One large egg"), ("2 eggs", 100, "Two large eggs"), ("3 eggs", 150, "Three large eggs")]),
    _food("paneer", "Paneer", 265, 18, 1.2, 20, "protein", ["vegetarian"],
          [("Small cube", 30, "1 inch cube"), ("Medium serving", 50, "2-3 cubes"), ("Large serving", 100, "1/2 cup cubes")]),
    _food("brown-rice", "Brown Rice", 111, 2.6, 23, 0.9, "carbs", ["vegetarian", "vegan"],
          [("Small bowl", 75, "1/3 cup cooked"), ("Medium bowl", 150, "2/3 cup cooked"), ("Large bowl", 200, "1 cup cooked")]),
    _food("chapati", "Chapati", 297, 11, 58, 4, "carbs", ["vegetarian"],
          [("1 small chapati", 25, "6 inch diameter"), ("1 medium chapati", 35, "7 inch diameter"), ("1 large chapati", 50, "8 inch diameter")]),
    _food("broccoli", "Broccoli", 34, 2.8, 7, 0.4, "vegetables", ["vegetarian", "vegan"],
          [("Small serving", 75, "1/2 cup"), ("Medium serving", 150, "1 cup"), ("Large serving", 200, "1.5 cups")]),
    _food("apple", "Apple", 52, 0.3, 14, 0.2, "fruits", ["vegetarian", "vegan"],
          [("1 small apple", 150, "Small apple"), ("1 medium apple", 180, "Medium apple"), ("1 large apple", 220, "Large apple")]),
    _food("greek-yogurt", "Greek Yogurt", 59, 10, 3.6, 0.4, "dairy", ["vegetarian"],
          [("Small cup", 100, "1/2 cup"), ("Medium cup", 170, "3/4 cup"), ("Large cup", 225, "1 cup")]),
]

SEARCH_LIMIT = 10
DEFAULT_GRAMS = 100.0
QUANTIFIED_CONFIDENCE = 0.9
NAME_ONLY_CONFIDENCE = 0.8

NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "a": 1, "an": 1,
}

_QUANTITY = re.compile(
    r"\b(\d+|one|two|three|four|five|six|seven|eight|nine|ten|an?)\s+"
    r"(?:(cups?|pieces?|slices?|bowls?|servings?)\s+of\s+)?"
    r"([a-z]+(?:\s[a-z]+)?)"
)


def search_by_text(query: str) -> list[FoodRecord]:
    """Foods whose name or category contains ``query`` (case-insensitive), at most 10."""
    needle = query.strip().lower()
    if not needle:
        return []
    return [f for f in FOOD_DATABASE if needle in f.name.lower() or needle in f.category.lower()][:SEARCH_LIMIT]


def get_food(food_id: str) -> FoodRecord | None:
    return next((f for f in FOOD_DATABASE if f.id == food_id), None)


def foods_for_diet(preference: str) -> list[FoodRecord]:
    return [
        f for f in FOOD_DATABASE
        if preference in f.dietary_tags
        or (preference == "non_vegetarian" and "vegetarian" not in f.dietary_tags)
    ]


def _parse_number(token: str) -> int:
    if token.isdigit():
        return int(token)
    return NUMBER_WORDS.get(token, 1)


def _portion_grams(food: FoodRecord, unit: str | None, count: int) -> float:
    """Portion matching ``unit`` (or the medium portion) scaled by ``count``."""
    if unit:
        stem = unit.rstrip("s")
        for portion in food.portions:
            if stem in portion.name.lower() or stem in portion.description.lower():
                return portion.grams * count
    default = food.portions[1] if len(food.portions) > 1 else food.portions[0]
    return default.grams * count


class ParsedMeal(BaseModel):
    items: list[FoodItem]
    confidence: float
    original_text: str = ""

    @property
    def total_calories(self) -> int:
        return sum(i.calories for i in self.items)


def parse_spoken_text(text: str) -> ParsedMeal:
    lowered = text.lower()
    items: list[FoodItem] = []
    scores: list[float] = []
    for food in FOOD_DATABASE:
        name = food.name.lower()
        if name not in lowered:
            continue
        grams, confidence = DEFAULT_GRAMS, NAME_ONLY_CONFIDENCE
        for match in _QUANTITY.finditer(lowered):
            if name in match.group(0):
                count = _parse_number(match.group(1))
                if count > 0:
                    grams = _portion_grams(food, match.group(2), count)
                    confidence = QUANTIFIED_CONFIDENCE
                    break
        items.append(food.scaled(grams))
        scores.append(confidence)
    confidence = sum(scores) / len(scores) if scores else 0.0
    return ParsedMeal(items=items, confidence=confidence, original_text=text)


def requires_confirmation(parsed: ParsedMeal, threshold: float | None = None) -> bool:
    limit = settings.food_confirmation_threshold if threshold is None else threshold
    return parsed.confidence < limit or not parsed.items


@dataclass
class PendingMeal:
    """A parsed meal waiting to be logged.

    ``to_meal_log`` refuses low-confidence parses until ``confirm()`` was called.
    """

    parsed: ParsedMeal
    meal_type: MealType
    threshold: float | None = None
    confirmed: bool = field(default=False)

    @property
    def needs_confirmation(self) -> bool:
        return requires_confirmation(self.parsed, self.threshold)

    def confirm(self) -> None:
        self.confirmed = True

    def to_meal_log(self, day: date | None = None, goal_id: str | None = None) -> MealLog:
        if self.needs_confirmation and not self.confirmed:
            limit = settings.food_confirmation_threshold if self.threshold is None else self.threshold
            raise ConfirmationRequiredError(self.parsed.confidence, limit)
        return MealLog(
            goal_id=goal_id,
            meal_type=self.meal_type,
            logged_date=day or date.today(),
            actual_calories=self.parsed.total_calories,
            foods_consumed=list(self.parsed.items),
        )


# ---------------------------------------------------------------------------
# Voice logging for other goals
# ---------------------------------------------------------------------------

VOICE_PATTERNS: dict[GoalType, tuple[str, ...]] = {
    GoalType.weight_loss: ("I weigh {number} pounds", "Logged {number} calories", "Exercised for {number} minutes"),
    GoalType.cardio_endurance: ("Ran {number} miles", "Exercised for {number} minutes", "Heart rate was {number}"),
    GoalType.strength_building: ("Did {number} sets of {number} {exercise}", "Bench pressed {number} pounds"),
    GoalType.daily_steps: ("Walked {number} steps", "Walked for {number} minutes"),
    GoalType.workout_consistency: ("Completed workout", "Did {workout_type} for {number} minutes"),
    GoalType.sleep_tracking: ("Slept for {number} hours", "Sleep quality was {rating} out of 10"),
}

WORKOUT_TYPES = ("cardio", "strength", "yoga", "running", "cycling", "swimming")
EXERCISES = ("push-ups", "squats", "bench press", "deadlift", "pull-ups")


@dataclass(frozen=True, slots=True)
class VoiceLog:
    numbers: list[int]
    workout_type: str | None
    exercise: str | None
    original_text: str


def parse_voice_log(text: str) -> VoiceLog:
    """Numbers plus the first known workout type and exercise mentioned."""
    lowered = text.lower()
    return VoiceLog(
        numbers=[int(n) for n in re.findall(r"\d+", lowered)],
        workout_type=next((w for w in WORKOUT_TYPES if w in lowered), None),
        exercise=next((e for e in EXERCISES if e in lowered), None),
        original_text=text,
    )
