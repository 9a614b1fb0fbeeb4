"""Pure stateless derivation functions: math only.

Every function here is deterministic: identical inputs always produce identical
numbers. Inputs are metric (kg, cm) unless stated otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from fitkernel.core.models import POUNDS_TO_KG


# ---------------------------------------------------------------------------
# Energy: BMR / TDEE / calorie target
# ---------------------------------------------------------------------------

ACTIVITY_MULTIPLIERS: dict[str, float] = {
    "sedentary": 1.2,
    "lightly_active": 1.375,
    "moderately_active": 1.55,
    "very_active": 1.725,
    "extremely_active": 1.9,
}

PROTEIN_MULTIPLIERS: dict[str, float] = {
    "sedentary": 0.8,
    "lightly_active": 0.9,
    "moderately_active": 1.0,
    "very_active": 1.1,
    "extremely_active": 1.2,
}

CALORIE_FLOORS: dict[str, float] = {"female": 1200.0, "male": 1500.0, "other": 1350.0}

KCAL_PER_POUND = 3500.0
MAX_WEEKLY_LOSS = 2.0
MAX_DAILY_DEFICIT = 750.0


def _key(value) -> str:
    """Enum members and plain strings both collapse to their string value."""
    return str(getattr(value, "value", value))


def bmr_mifflin_st_jeor(weight_kg: float, height_cm: float, age_years: int, gender: str) -> float:
    """Mifflin-St Jeor BMR formula. Returns kcal/day.

    "other" (and anything unrecognised) uses the male/female midpoint offset.
    """
    base = 10.0 * weight_kg + 6.25 * height_cm - 5.0 * age_years
    g = _key(gender)
    if g == "male":
        return base + 5.0
    if g == "female":
        return base - 161.0
    return base - 78.0


def activity_multiplier(activity_level: str) -> float:
    """Unknown levels fall back to sedentary."""
    return ACTIVITY_MULTIPLIERS.get(_key(activity_level), 1.2)


def tdee(bmr: float, activity_level: str) -> float:
    return bmr * activity_multiplier(activity_level)


def calorie_floor(gender: str) -> float:
    return CALORIE_FLOORS.get(_key(gender), CALORIE_FLOORS["other"])


@dataclass(frozen=True, slots=True)
class CalorieTarget:
    daily_calories: int
    weekly_loss_rate: float  # Achieved rate after the floor clamp, 0.1 precision
    is_realistic: bool
    bmr: float
    tdee: float
    daily_deficit: float  # Requested deficit, before clamping
    clamped: bool

    @property
    def warnings(self) -> list[str]:
        out: list[str] = []
        if not self.is_realistic:
            out.append(
                f"Aggressive timeline: requested deficit of {round(self.daily_deficit)} kcal/day "
                f"exceeds a safe pace (≤ {MAX_WEEKLY_LOSS:g} lb/week, ≤ {MAX_DAILY_DEFICIT:g} kcal/day)"
            )
        if self.clamped:
            out.append(f"Daily target raised to the safe minimum of {self.daily_calories} kcal")
        return out


def calorie_target(
    current_weight: float,
    target_weight: float,
    height: float,
    age: int,
    gender: str,
    activity_level: str,
    timeline_weeks: int,
    weight_unit: str = "kg",
) -> CalorieTarget:
    """Daily calorie budget for a weight-loss timeline.

    Weights are given in ``weight_unit`` ("kg" or "pounds"); BMR always runs
    on kg. The weekly rate and deficit are in pounds, the unit 3500 kcal
    belongs to: rate = (current - target) / weeks; deficit = rate * 3500 / 7.
    The budget is TDEE - deficit, raised to the gender floor when below it.
    ``is_realistic`` is a warning flag only, never a blocker. The returned
    ``weekly_loss_rate`` is converted back to ``weight_unit``.
    """
    weeks = max(int(timeline_weeks), 1)
    kg_per_unit = POUNDS_TO_KG if _key(weight_unit) == "pounds" else 1.0
    pounds_per_unit = kg_per_unit / POUNDS_TO_KG

    bmr = bmr_mifflin_st_jeor(current_weight * kg_per_unit, height, age, gender)
    expenditure = tdee(bmr, activity_level)

    weekly_rate = (current_weight - target_weight) * pounds_per_unit / weeks
    daily_deficit = weekly_rate * KCAL_PER_POUND / 7.0
    daily = expenditure - daily_deficit

    is_realistic = weekly_rate <= MAX_WEEKLY_LOSS and daily_deficit <= MAX_DAILY_DEFICIT

    floor = calorie_floor(gender)
    clamped = daily < floor
    if clamped:
        daily = floor

    achieved_rate = (expenditure - daily) * 7.0 / KCAL_PER_POUND / pounds_per_unit
    return CalorieTarget(
        daily_calories=round(daily),
        weekly_loss_rate=round(achieved_rate * 10) / 10,
        is_realistic=is_realistic,
        bmr=bmr,
        tdee=expenditure,
        daily_deficit=daily_deficit,
        clamped=clamped,
    )


def protein_goal(weight_kg: float, activity_level: str) -> int:
    """Grams/day at 0.8–1.2 g per kg depending on activity."""
    return round(weight_kg * PROTEIN_MULTIPLIERS.get(_key(activity_level), 0.8))


MEAL_SPLIT: dict[str, float] = {"breakfast": 0.25, "lunch": 0.35, "dinner": 0.30, "snack": 0.10}


def distribute_meal_calories(total_calories: float) -> dict[str, int]:
    """Split a daily budget across meals.

    Each bucket is rounded on its own; the buckets are not reconciled and may
    differ from the total by a calorie or two.
    """
    return {meal: round(total_calories * share) for meal, share in MEAL_SPLIT.items()}


MET_VALUES: dict[str, float] = {
    "walking": 3.5,
    "jogging": 7.0,
    "running": 9.8,
    "cycling": 6.8,
    "swimming": 8.0,
    "weightlifting": 3.0,
    "yoga": 2.5,
    "dancing": 4.8,
    "hiking": 6.0,
    "elliptical": 5.0,
}


def exercise_calories(activity_type: str, duration_minutes: float, weight_kg: float, intensity: float) -> int:
    """MET × weight(kg) × hours, MET scaled by intensity/5 on a 1–10 scale."""
    met = MET_VALUES.get(activity_type.lower(), 4.0) * (intensity / 5.0)
    return round(met * weight_kg * (duration_minutes / 60.0))


@dataclass(frozen=True, slots=True)
class PlateauCheck:
    is_plateaued: bool
    stagnation_days: int = 0
    recommendation: str = ""


def _plateau_recommendation(days: int) -> str:
    if days < 14:
        return "Stay consistent! Short-term plateaus are normal. Your body may be retaining water or building muscle."
    if days < 21:
        return "Consider a refeed day with higher carbs, or try changing your exercise routine."
    return "Time for a strategy change! Consider reducing calories by 100-150/day or adding 30 minutes of cardio 3x/week."


def detect_plateau(entries: list[tuple[date, float]], window: int = 10, min_loss: float = 0.5) -> PlateauCheck:
    """Plateau when the last ``window`` weigh-ins lost less than ``min_loss``.

    Fewer than ``window`` entries never count as a plateau.
    """
    if len(entries) < window:
        return PlateauCheck(is_plateaued=False)
    recent = sorted(entries, key=lambda e: e[0])[-window:]
    if recent[0][1] - recent[-1][1] >= min_loss:
        return PlateauCheck(is_plateaued=False)
    days = (recent[-1][0] - recent[0][0]).days
    return PlateauCheck(is_plateaued=True, stagnation_days=days, recommendation=_plateau_recommendation(days))


# ---------------------------------------------------------------------------
# Heart-rate zones (Karvonen)
# ---------------------------------------------------------------------------

ZONE_NAMES: tuple[str, ...] = ("Recovery", "Fat Burn", "Aerobic", "Threshold", "Max")
# Reserve fractions of the band edges. Zone 1 nominally starts at 50% of reserve
# but its floor is pinned to the resting rate so the bands cover the whole range.
ZONE_FRACTIONS: tuple[float, ...] = (0.50, 0.60, 0.70, 0.80, 0.90, 1.00)


def max_heart_rate(age: int, custom_max: int | None = None) -> int:
    """220 - age unless a measured maximum is supplied."""
    if custom_max:
        return int(custom_max)
    return 220 - int(age)


def heart_rate_zones(max_hr: float, resting_hr: float) -> list[tuple[str, float, float]]:
    """Five contiguous (name, min, max) bands over the heart-rate reserve.

    Inner edges are resting + reserve × fraction, rounded to 0.1 bpm unless
    that would make two edges equal (reserve under about 0.5 bpm); each
    band's max is the next band's min. Zone 1 starts at ``resting_hr`` and
    zone 5 ends exactly at ``max_hr``. Raises ValueError when resting >= max.
    """
    if resting_hr >= max_hr:
        raise ValueError(f"resting_hr ({resting_hr}) must be below max_hr ({max_hr})")
    reserve = max_hr - resting_hr
    exact = [resting_hr + reserve * f for f in ZONE_FRACTIONS]
    bounds = [round(b, 1) for b in exact]
    bounds[0] = resting_hr
    bounds[-1] = max_hr
    if any(lo >= hi for lo, hi in zip(bounds, bounds[1:])):
        # Sub-bpm reserve: 0.1 rounding would collapse bands
        bounds = [resting_hr, *exact[1:-1], max_hr]
    return [(ZONE_NAMES[i], bounds[i], bounds[i + 1]) for i in range(5)]


def zone_for_bpm(bpm: float, zones: list[tuple[str, float, float]]) -> int | None:
    """1-based zone index containing ``bpm`` (upper bound inclusive for zone 5)."""
    for i, (_, lo, hi) in enumerate(zones, start=1):
        if lo <= bpm < hi or (i == len(zones) and bpm == hi):
            return i
    return None


def target_zones_for(objective: str) -> list[int]:
    if objective == "fat_burn":
        return [2, 3]
    if objective == "endurance":
        return [3, 4]
    return [4, 5]


def weekly_cardio_minutes(objective: str) -> int:
    if objective == "fat_burn":
        return 150
    if objective == "endurance":
        return 180
    return 200


# ---------------------------------------------------------------------------
# Sleep schedule
# ---------------------------------------------------------------------------

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """'HH:MM' -> minutes after midnight. Raises ValueError on bad input."""
    hours, sep, minutes = value.strip().partition(":")
    if not sep:
        raise ValueError(f"Invalid time (expected HH:MM): {value!r}")
    h, m = int(hours), int(minutes)
    if not (0 <= h < 24 and 0 <= m < 60):
        raise ValueError(f"Invalid time (expected HH:MM): {value!r}")
    return h * 60 + m


def format_hhmm(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def wake_time(bedtime: str, hours: float) -> str:
    """Bedtime plus sleep duration on a 24-hour wheel.

    Crossing midnight wraps silently: the result carries no date, callers use
    ``wakes_next_day`` to know which day it refers to.
    """
    return format_hhmm(parse_hhmm(bedtime) + round(hours * 60))


def wakes_next_day(bedtime: str, hours: float) -> bool:
    return parse_hhmm(bedtime) + round(hours * 60) >= MINUTES_PER_DAY


def sleep_duration_hours(bedtime: str, wake: str) -> float:
    """Hours between bedtime and wake time, assuming wake is the next occurrence."""
    delta = (parse_hhmm(wake) - parse_hhmm(bedtime)) % MINUTES_PER_DAY
    return delta / 60.0


# ---------------------------------------------------------------------------
# Steps / stride
# ---------------------------------------------------------------------------

STRIDE_HEIGHT_RATIO = 0.43
KCAL_PER_STEP = 0.04
REFERENCE_WEIGHT_KG = 70.0


def stride_length_cm(height_cm: float) -> int:
    return round(height_cm * STRIDE_HEIGHT_RATIO)


def steps_distance_km(steps: float, stride_cm: float) -> float:
    return steps * stride_cm / 100000.0


def steps_calories(steps: float, weight_kg: float) -> int:
    return round(steps * KCAL_PER_STEP * (weight_kg / REFERENCE_WEIGHT_KG))


def recommended_step_target(baseline_average: float) -> int:
    if baseline_average < 5000:
        return 7500
    if baseline_average < 8000:
        return 10000
    if baseline_average < 12000:
        return 12500
    return 15000


# ---------------------------------------------------------------------------
# Strength
# ---------------------------------------------------------------------------

DEFAULT_MUSCLE_GROUPS: tuple[str, ...] = ("chest", "back", "legs", "arms")


def recommended_split(workout_frequency: int) -> str:
    if workout_frequency <= 2:
        return "full_body"
    if workout_frequency <= 4:
        return "upper_lower"
    return "push_pull_legs"


# ---------------------------------------------------------------------------
# Streaks / averages
# ---------------------------------------------------------------------------


def streak(values_newest_first: list[float], threshold: float) -> int:
    """Consecutive values meeting ``threshold``, counted from the newest."""
    count = 0
    for v in values_newest_first:
        if v < threshold:
            break
        count += 1
    return count


def average(values: list[float]) -> float:
    """Mean of ``values``; 0.0 when empty."""
    if not values:
        return 0.0
    return sum(values) / len(values)
