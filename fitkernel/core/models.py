"""Domain contract: Pydantic v2 models.

Domain profiles form a tagged union over ``goal_type`` (see ``DomainProfile``);
the presence of a profile in its store is the only "setup completed" signal.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

POUNDS_TO_KG = 0.453592
FEET_TO_CM = 30.48


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GoalType(str, Enum):
    weight_loss = "weight_loss"
    cardio_endurance = "cardio_endurance"
    strength_building = "strength_building"
    daily_steps = "daily_steps"
    sleep_tracking = "sleep_tracking"
    workout_consistency = "workout_consistency"


class WeightUnit(str, Enum):
    kg = "kg"
    pounds = "pounds"


class HeightUnit(str, Enum):
    cm = "cm"
    feet = "feet"


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class ActivityLevel(str, Enum):
    sedentary = "sedentary"
    lightly_active = "lightly_active"
    moderately_active = "moderately_active"
    very_active = "very_active"
    extremely_active = "extremely_active"


class AppScreen(str, Enum):
    welcome = "welcome"
    phone = "phone"
    profile = "profile"
    goals = "goals"
    goal_setup = "goal-setup"
    main = "main"


class MainTab(str, Enum):
    today = "today"
    progress = "progress"
    plan = "plan"
    profile = "profile"


class DeviceStatus(str, Enum):
    connected = "connected"
    disconnected = "disconnected"
    syncing = "syncing"


class MealType(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"


# ---------------------------------------------------------------------------
# User + goals
# ---------------------------------------------------------------------------


class UserProfile(BaseModel):
    id: str = Field(default_factory=new_id)
    phone: str | None = None
    weight: float | None = None
    weight_unit: WeightUnit = WeightUnit.pounds
    height: float | None = None
    height_unit: HeightUnit = HeightUnit.feet
    age: int | None = None
    gender: Gender | None = None
    selected_goals: list[GoalType] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    def weight_kg(self) -> float | None:
        if self.weight is None:
            return None
        if self.weight_unit == WeightUnit.pounds:
            return self.weight * POUNDS_TO_KG
        return self.weight

    def height_cm(self) -> float | None:
        if self.height is None:
            return None
        if self.height_unit == HeightUnit.feet:
            return self.height * FEET_TO_CM
        return self.height


class Goal(BaseModel):
    id: str = Field(default_factory=new_id)
    type: GoalType
    title: str
    description: str = ""
    icon: str = ""
    target_value: float | None = None
    target_timeframe_weeks: int | None = None
    current_value: float | None = 0.0
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)


class ConnectedDevice(BaseModel):
    id: str
    name: str
    type: str  # Vocabulary depends on the domain (see pairing.DEVICE_CATALOG)
    status: DeviceStatus = DeviceStatus.connected
    battery_level: int | None = None
    last_sync: datetime | None = None
    accuracy: str | None = None  # Steps devices only: "high" | "medium" | "low"


# ---------------------------------------------------------------------------
# Domain profiles (tagged by goal_type)
# ---------------------------------------------------------------------------


class MealTargets(BaseModel):
    breakfast: int
    lunch: int
    dinner: int
    snack: int


class DietaryPreferences(BaseModel):
    type: str = "vegetarian"  # "vegetarian" | "non_vegetarian" | "eggetarian"
    allergies: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)
    preferred_foods: list[str] = Field(default_factory=list)


class WeightLossProfile(BaseModel):
    goal_type: Literal["weight_loss"] = "weight_loss"
    id: str = Field(default_factory=new_id)
    current_weight: float  # in weight_unit
    target_weight: float  # in weight_unit
    weight_unit: WeightUnit = WeightUnit.kg
    timeline_weeks: int
    weekly_loss_rate: float
    daily_calorie_target: int
    protein_goal_grams: int
    meal_targets: MealTargets
    is_realistic: bool = True
    warnings: list[str] = Field(default_factory=list)
    dietary_preferences: DietaryPreferences = Field(default_factory=DietaryPreferences)
    gender: Gender
    activity_level: ActivityLevel
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class HeartRateZone(BaseModel):
    name: str
    min: float
    max: float


class ActivityProfile(BaseModel):
    id: str
    name: str
    type: str  # "running" | "cycling" | "walking" | ...
    target_zones: list[int]
    duration: int  # minutes
    intensity: str  # "low" | "moderate" | "high"


class CardioProfile(BaseModel):
    goal_type: Literal["cardio_endurance"] = "cardio_endurance"
    id: str = Field(default_factory=new_id)
    age: int
    resting_heart_rate: int
    max_heart_rate: int
    zones: list[HeartRateZone] = Field(min_length=5, max_length=5)
    activity_profiles: list[ActivityProfile] = Field(default_factory=list)
    fitness_level: str = "intermediate"
    fitness_objective: str = "endurance"  # "fat_burn" | "endurance" | "performance" | "recovery"
    connected_devices: list[ConnectedDevice] = Field(default_factory=list)
    primary_device: str | None = None
    sync_enabled: bool = True
    alerts_enabled: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class StrengthProfile(BaseModel):
    goal_type: Literal["strength_building"] = "strength_building"
    id: str = Field(default_factory=new_id)
    fitness_level: str  # "beginner" | "intermediate" | "advanced"
    primary_goal: str  # "muscle_gain" | "strength_increase" | "endurance" | "toning"
    workout_frequency: int  # days per week
    preferred_workout_duration: int  # minutes
    available_equipment: list[str] = Field(default_factory=list)
    bodyweight_preference: bool = False
    target_muscle_groups: list[str] = Field(default_factory=list)
    workout_split: str = "full_body"
    progression_method: str = "weight"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class SleepPreferences(BaseModel):
    room_temperature: int = 67  # Fahrenheit
    noise_level: str = "silent"
    light_level: str = "complete_darkness"
    caffeine_cutoff_time: str = "14:00"
    screen_time_limit: float = 1.0  # hours before bed
    exercise_time_limit: float = 3.0  # hours before bed


class SleepProfile(BaseModel):
    goal_type: Literal["sleep_tracking"] = "sleep_tracking"
    id: str = Field(default_factory=new_id)
    target_sleep_hours: float
    target_bedtime: str  # HH:MM
    target_wake_time: str  # HH:MM, may refer to the next day
    wake_is_next_day: bool = False
    tracking_method: str = "manual"
    connected_devices: list[ConnectedDevice] = Field(default_factory=list)
    primary_device: str | None = None
    auto_detection_enabled: bool = False
    smart_alarm_enabled: bool = True
    bedtime_reminders_enabled: bool = True
    reminder_minutes: int = 30
    preferences: SleepPreferences = Field(default_factory=SleepPreferences)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class StepsPreferences(BaseModel):
    preferred_walking_times: list[str] = Field(default_factory=lambda: ["07:00", "12:00", "18:00"])
    indoor_alternatives: bool = True
    weather_adaptive: bool = True
    route_discovery: bool = True
    social_features: bool = False
    challenges_enabled: bool = True


class StepsProfile(BaseModel):
    goal_type: Literal["daily_steps"] = "daily_steps"
    id: str = Field(default_factory=new_id)
    daily_step_target: int
    baseline_average: int
    stride_length_cm: float
    weight_kg: float
    target_distance_km: float
    target_calories: int
    tracking_method: str = "manual"
    connected_devices: list[ConnectedDevice] = Field(default_factory=list)
    primary_device: str | None = None
    hourly_reminders_enabled: bool = True
    adaptive_goals: bool = True
    preferences: StepsPreferences = Field(default_factory=StepsPreferences)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


DomainProfile = Annotated[
    Union[WeightLossProfile, CardioProfile, StrengthProfile, SleepProfile, StepsProfile],
    Field(discriminator="goal_type"),
]


# ---------------------------------------------------------------------------
# Event records
# ---------------------------------------------------------------------------


class FoodItem(BaseModel):
    id: str
    name: str
    quantity: float
    unit: str = "grams"
    calories: int
    protein: int = 0
    carbs: int = 0
    fat: int = 0


class MealLog(BaseModel):
    id: str = Field(default_factory=new_id)
    goal_id: str | None = None
    meal_type: MealType
    logged_date: date
    planned_calories: int = 0
    actual_calories: int = 0
    foods_consumed: list[FoodItem] = Field(default_factory=list)
    ai_suggested: bool = False
    user_followed: bool = False
    created_at: datetime = Field(default_factory=utc_now)


class ExerciseLog(BaseModel):
    id: str = Field(default_factory=new_id)
    goal_id: str | None = None
    activity_type: str
    duration_minutes: int
    intensity_level: int = 5  # 1–10
    calories_burned: int = 0
    logged_date: date


class WeightEntry(BaseModel):
    id: str = Field(default_factory=new_id)
    goal_id: str | None = None
    weight: float
    day: date
    notes: str | None = None


class HeartRateReading(BaseModel):
    timestamp: datetime
    bpm: int
    zone: int | None = None
    activity: str | None = None


class WorkoutSession(BaseModel):
    id: str = Field(default_factory=new_id)
    goal_id: str | None = None
    activity_type: str
    start_time: datetime
    end_time: datetime | None = None
    duration: int  # minutes
    average_heart_rate: int = 0
    max_heart_rate: int = 0
    min_heart_rate: int = 0
    calories_burned: int = 0


class StrengthSession(BaseModel):
    id: str = Field(default_factory=new_id)
    goal_id: str | None = None
    name: str
    start_time: datetime
    duration: int  # minutes
    total_volume_kg: float = 0.0
    exercises: list[str] = Field(default_factory=list)


class SleepEntry(BaseModel):
    id: str = Field(default_factory=new_id)
    goal_id: str | None = None
    day: date
    bedtime: datetime
    wake_time: datetime
    total_sleep_minutes: int
    sleep_score: int = 0  # 0–100
    wake_ups: int = 0
    mood: str = "good"
    tracking_method: str = "manual"


class StepsEntry(BaseModel):
    id: str = Field(default_factory=new_id)
    goal_id: str | None = None
    day: date
    total_steps: int
    distance_km: float = 0.0
    calories_burned: int = 0
    active_minutes: int = 0
    tracking_method: str = "manual"


class LogEntry(BaseModel):
    id: str = Field(default_factory=new_id)
    goal_type: GoalType
    value: float
    unit: str
    notes: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    logged_via: str = "manual"  # "voice" | "manual"
    parsed: dict[str, Any] | None = None
