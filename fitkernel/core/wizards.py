"""Per-domain setup wizards.

Each wizard is a strictly linear state machine over named steps ending in
``review``. Step requirements are expressed as Pydantic forms: ``next()`` only
moves forward when the current step's form validates and returns ``False``
otherwise, never raising. ``back()`` keeps every value already entered.

``commit()`` derives the domain profile and hands it back. Wizards never touch
the stores; persisting the profile and creating the goal is the caller's job.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from fitkernel.config import settings
from fitkernel.core import derivations
from fitkernel.core.errors import WizardStateError
from fitkernel.core.models import (
    ActivityLevel,
    ActivityProfile,
    CardioProfile,
    ConnectedDevice,
    DietaryPreferences,
    Gender,
    GoalType,
    HeartRateZone,
    MealTargets,
    SleepPreferences,
    SleepProfile,
    StepsPreferences,
    StepsProfile,
    StrengthProfile,
    UserProfile,
    WeightLossProfile,
    WeightUnit,
    POUNDS_TO_KG,
)

logger = logging.getLogger(__name__)

REVIEW = "review"

FITNESS_LEVELS = {"beginner", "intermediate", "advanced"}
CARDIO_OBJECTIVES = {"fat_burn", "endurance", "performance", "recovery"}
STRENGTH_GOALS = {"muscle_gain", "strength_increase", "endurance", "toning"}
MUSCLE_GROUPS = {"chest", "back", "shoulders", "arms", "legs", "core", "glutes"}
WORKOUT_SPLITS = {"full_body", "upper_lower", "push_pull_legs", "body_part_split"}
DIETARY_TYPES = {"vegetarian", "non_vegetarian", "eggetarian"}


def _one_of(value: str, allowed: set[str], name: str) -> str:
    if value not in allowed:
        raise ValueError(f"{name} must be one of {sorted(allowed)}")
    return value


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def _check_hhmm(value: str) -> str:
    derivations.parse_hhmm(value)
    return value


# =============================================================================
# Step forms
# =============================================================================


class WeightLossBasicForm(BaseModel):
    current_weight: float = Field(gt=0)
    target_weight: float = Field(gt=0)
    timeline_weeks: int = Field(ge=1, le=104)
    gender: Gender
    activity_level: ActivityLevel

    @model_validator(mode="after")
    def _target_below_current(self) -> "WeightLossBasicForm":
        if self.target_weight >= self.current_weight:
            raise ValueError("target_weight must be below current_weight")
        return self


class WeightLossDietaryForm(BaseModel):
    dietary_type: str = "vegetarian"
    allergies: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)

    @field_validator("allergies", "dislikes", mode="before")
    @classmethod
    def _split_lists(cls, v: Any) -> Any:
        return _split_csv(v)

    @field_validator("dietary_type")
    @classmethod
    def _valid_type(cls, v: str) -> str:
        return _one_of(v, DIETARY_TYPES, "dietary_type")


class CardioBasicForm(BaseModel):
    age: int = Field(ge=10, le=100)
    resting_hr: int = Field(ge=30, le=120)
    fitness_level: str = "intermediate"
    fitness_objective: str = "endurance"
    custom_max_hr: int | None = Field(default=None, ge=100, le=230)

    @field_validator("fitness_level")
    @classmethod
    def _valid_level(cls, v: str) -> str:
        return _one_of(v, FITNESS_LEVELS, "fitness_level")

    @field_validator("fitness_objective")
    @classmethod
    def _valid_objective(cls, v: str) -> str:
        return _one_of(v, CARDIO_OBJECTIVES, "fitness_objective")

    @model_validator(mode="after")
    def _resting_below_max(self) -> "CardioBasicForm":
        if self.resting_hr >= derivations.max_heart_rate(self.age, self.custom_max_hr):
            raise ValueError("resting_hr must be below the maximum heart rate")
        return self


class StrengthFitnessForm(BaseModel):
    fitness_level: str

    @field_validator("fitness_level")
    @classmethod
    def _valid_level(cls, v: str) -> str:
        return _one_of(v, FITNESS_LEVELS, "fitness_level")


class StrengthGoalsForm(BaseModel):
    primary_goal: str
    target_muscle_groups: list[str] = Field(default_factory=list)

    @field_validator("primary_goal")
    @classmethod
    def _valid_goal(cls, v: str) -> str:
        return _one_of(v, STRENGTH_GOALS, "primary_goal")

    @field_validator("target_muscle_groups")
    @classmethod
    def _valid_groups(cls, v: list[str]) -> list[str]:
        for group in v:
            _one_of(group, MUSCLE_GROUPS, "target_muscle_groups")
        return v


class StrengthScheduleForm(BaseModel):
    workout_frequency: int = Field(ge=1, le=7)
    workout_duration: int = Field(ge=10, le=180)
    workout_split: str | None = None

    @field_validator("workout_split")
    @classmethod
    def _valid_split(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _one_of(v, WORKOUT_SPLITS, "workout_split")


class SleepGoalsForm(BaseModel):
    target_sleep_hours: float = Field(ge=4, le=12)
    target_bedtime: str

    @field_validator("target_bedtime")
    @classmethod
    def _valid_bedtime(cls, v: str) -> str:
        return _check_hhmm(v)


class SleepPreferencesForm(BaseModel):
    room_temperature: int = Field(default=67, ge=50, le=90)
    caffeine_cutoff_time: str = "14:00"
    screen_time_limit: float = Field(default=1.0, ge=0, le=6)

    @field_validator("caffeine_cutoff_time")
    @classmethod
    def _valid_cutoff(cls, v: str) -> str:
        return _check_hhmm(v)


class StepsBaselineForm(BaseModel):
    baseline_average: int = Field(gt=0, le=60000)


class StepsGoalsForm(BaseModel):
    daily_step_target: int = Field(ge=1000, le=60000)
    stride_length_cm: float | None = Field(default=None, ge=30, le=150)


class StepsPreferencesForm(BaseModel):
    adaptive_goals: bool = True
    hourly_reminders: bool = True
    route_discovery: bool = True
    challenges_enabled: bool = True


# =============================================================================
# Base wizard
# =============================================================================

P = TypeVar("P", bound=BaseModel)


class SetupWizard(Generic[P]):
    goal_type: ClassVar[GoalType]
    STEPS: ClassVar[tuple[str, ...]]
    FORMS: ClassVar[dict[str, type[BaseModel]]]

    def __init__(
        self,
        user_profile: UserProfile | None = None,
        devices: tuple[ConnectedDevice, ...] | list[ConnectedDevice] = (),
        equipment: tuple[str, ...] | list[str] = (),
    ):
        self.user_profile = user_profile
        self.devices = list(devices)
        self.equipment = list(equipment)
        self._values: dict[str, Any] = self.initial_values()
        self._index = 0

    # -- state ---------------------------------------------------------------

    def initial_values(self) -> dict[str, Any]:
        return {}

    @property
    def current_step(self) -> str:
        return self.STEPS[self._index]

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._values)

    def set(self, **fields: Any) -> None:
        self._values.update(fields)

    def _form_input(self, form: type[BaseModel]) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for name in form.model_fields:
            value = self._values.get(name)
            if value is None or value == "":
                continue
            data[name] = value
        return data

    def _validated(self, step: str) -> BaseModel | None:
        form = self.FORMS.get(step)
        if form is None:
            return None
        return form.model_validate(self._form_input(form))

    def can_advance(self) -> bool:
        if self.current_step == REVIEW:
            return False
        try:
            self._validated(self.current_step)
        except ValidationError:
            return False
        return True

    def missing_fields(self) -> list[str]:
        """Field names blocking the current step (empty when it can advance)."""
        try:
            self._validated(self.current_step)
        except ValidationError as exc:
            return sorted({str(err["loc"][0]) if err["loc"] else "__root__" for err in exc.errors()})
        return []

    def next(self) -> bool:
        if not self.can_advance():
            return False
        self._index += 1
        self._on_enter(self.current_step)
        return True

    def back(self) -> bool:
        if self._index == 0:
            return False
        self._index -= 1
        return True

    def _on_enter(self, step: str) -> None:
        """Hook for prefilling derived defaults when a step is entered."""

    # -- output --------------------------------------------------------------

    def _forms(self) -> dict[str, Any]:
        try:
            return {step: self._validated(step) for step in self.STEPS if step in self.FORMS}
        except ValidationError as exc:
            raise WizardStateError(f"{self.goal_type.value} wizard has invalid inputs: {exc}") from exc

    def review(self) -> P:
        """Derived profile preview. Read-only: nothing is persisted."""
        return self._build(self._forms())

    def commit(self) -> P:
        if self.current_step != REVIEW:
            raise WizardStateError(f"commit is only allowed on the review step (current: {self.current_step})")
        profile = self._build(self._forms())
        logger.info("%s setup committed", self.goal_type.value)
        return profile

    def _build(self, forms: dict[str, Any]) -> P:
        raise NotImplementedError

    # -- helpers -------------------------------------------------------------

    def _height_cm(self) -> float:
        if self.user_profile is not None and self.user_profile.height_cm():
            return float(self.user_profile.height_cm())
        return settings.default_height_cm

    def _age(self) -> int:
        if self.user_profile is not None and self.user_profile.age:
            return self.user_profile.age
        return settings.default_age

    def _weight_kg(self) -> float:
        if self.user_profile is not None and self.user_profile.weight_kg():
            return float(self.user_profile.weight_kg())
        return settings.default_weight_kg

    def _primary_device(self) -> str | None:
        return self.devices[0].id if self.devices else None


# =============================================================================
# Domains
# =============================================================================


class WeightLossWizard(SetupWizard[WeightLossProfile]):
    goal_type = GoalType.weight_loss
    STEPS = ("basic", "dietary", REVIEW)
    FORMS = {"basic": WeightLossBasicForm, "dietary": WeightLossDietaryForm}

    def initial_values(self) -> dict[str, Any]:
        gender = self.user_profile.gender if self.user_profile and self.user_profile.gender else Gender.female
        return {
            "current_weight": self.user_profile.weight if self.user_profile else None,
            "timeline_weeks": settings.default_timeframe_weeks,
            "gender": gender,
            "activity_level": ActivityLevel.moderately_active,
            "dietary_type": "vegetarian",
        }

    def _weight_unit(self) -> WeightUnit:
        if self.user_profile is not None:
            return self.user_profile.weight_unit
        return WeightUnit.kg

    def _build(self, forms: dict[str, Any]) -> WeightLossProfile:
        basic: WeightLossBasicForm = forms["basic"]
        dietary: WeightLossDietaryForm = forms["dietary"]
        unit = self._weight_unit()
        current_kg = basic.current_weight * POUNDS_TO_KG if unit == WeightUnit.pounds else basic.current_weight

        target = derivations.calorie_target(
            basic.current_weight,
            basic.target_weight,
            self._height_cm(),
            self._age(),
            basic.gender.value,
            basic.activity_level.value,
            basic.timeline_weeks,
            weight_unit=unit.value,
        )
        return WeightLossProfile(
            current_weight=basic.current_weight,
            target_weight=basic.target_weight,
            weight_unit=unit,
            timeline_weeks=basic.timeline_weeks,
            weekly_loss_rate=target.weekly_loss_rate,
            daily_calorie_target=target.daily_calories,
            protein_goal_grams=derivations.protein_goal(current_kg, basic.activity_level.value),
            meal_targets=MealTargets(**derivations.distribute_meal_calories(target.daily_calories)),
            is_realistic=target.is_realistic,
            warnings=target.warnings,
            dietary_preferences=DietaryPreferences(
                type=dietary.dietary_type,
                allergies=dietary.allergies,
                dislikes=dietary.dislikes,
            ),
            gender=basic.gender,
            activity_level=basic.activity_level,
        )


class CardioWizard(SetupWizard[CardioProfile]):
    goal_type = GoalType.cardio_endurance
    STEPS = ("basic", "zones", REVIEW)
    FORMS = {"basic": CardioBasicForm}

    def initial_values(self) -> dict[str, Any]:
        return {
            "age": self.user_profile.age if self.user_profile else None,
            "fitness_level": "intermediate",
            "fitness_objective": "endurance",
        }

    def zones(self) -> list[HeartRateZone]:
        """Zones for the values entered so far (shown on the ``zones`` step)."""
        basic: CardioBasicForm = self._forms()["basic"]
        max_hr = derivations.max_heart_rate(basic.age, basic.custom_max_hr)
        return [
            HeartRateZone(name=name, min=lo, max=hi)
            for name, lo, hi in derivations.heart_rate_zones(max_hr, basic.resting_hr)
        ]

    def _build(self, forms: dict[str, Any]) -> CardioProfile:
        basic: CardioBasicForm = forms["basic"]
        max_hr = derivations.max_heart_rate(basic.age, basic.custom_max_hr)
        zones = [
            HeartRateZone(name=name, min=lo, max=hi)
            for name, lo, hi in derivations.heart_rate_zones(max_hr, basic.resting_hr)
        ]
        targets = derivations.target_zones_for(basic.fitness_objective)
        activities = [
            ActivityProfile(id="running", name="Running", type="running", target_zones=targets, duration=30, intensity="moderate"),
            ActivityProfile(id="cycling", name="Cycling", type="cycling", target_zones=targets, duration=45, intensity="moderate"),
            ActivityProfile(id="walking", name="Walking", type="walking", target_zones=[1, 2], duration=30, intensity="low"),
        ]
        return CardioProfile(
            age=basic.age,
            resting_heart_rate=basic.resting_hr,
            max_heart_rate=max_hr,
            zones=zones,
            activity_profiles=activities,
            fitness_level=basic.fitness_level,
            fitness_objective=basic.fitness_objective,
            connected_devices=self.devices,
            primary_device=self._primary_device(),
        )


class StrengthWizard(SetupWizard[StrengthProfile]):
    goal_type = GoalType.strength_building
    STEPS = ("fitness", "goals", "schedule", REVIEW)
    FORMS = {
        "fitness": StrengthFitnessForm,
        "goals": StrengthGoalsForm,
        "schedule": StrengthScheduleForm,
    }

    def initial_values(self) -> dict[str, Any]:
        return {
            "fitness_level": "beginner",
            "primary_goal": "muscle_gain",
            "target_muscle_groups": [],
            "workout_frequency": 3,
            "workout_duration": 45,
        }

    def toggle_muscle_group(self, group: str) -> None:
        groups = list(self._values.get("target_muscle_groups") or [])
        if group in groups:
            groups.remove(group)
        else:
            groups.append(group)
        self._values["target_muscle_groups"] = groups

    def _build(self, forms: dict[str, Any]) -> StrengthProfile:
        goals: StrengthGoalsForm = forms["goals"]
        schedule: StrengthScheduleForm = forms["schedule"]
        equipment = self.equipment or ["bodyweight_only"]
        return StrengthProfile(
            fitness_level=forms["fitness"].fitness_level,
            primary_goal=goals.primary_goal,
            workout_frequency=schedule.workout_frequency,
            preferred_workout_duration=schedule.workout_duration,
            available_equipment=equipment,
            bodyweight_preference="bodyweight_only" in equipment,
            target_muscle_groups=goals.target_muscle_groups or list(derivations.DEFAULT_MUSCLE_GROUPS),
            workout_split=schedule.workout_split or derivations.recommended_split(schedule.workout_frequency),
        )


class SleepWizard(SetupWizard[SleepProfile]):
    goal_type = GoalType.sleep_tracking
    STEPS = ("goals", "preferences", REVIEW)
    FORMS = {"goals": SleepGoalsForm, "preferences": SleepPreferencesForm}

    def initial_values(self) -> dict[str, Any]:
        return {"target_sleep_hours": 8.0, "target_bedtime": "22:30"}

    def _build(self, forms: dict[str, Any]) -> SleepProfile:
        goals: SleepGoalsForm = forms["goals"]
        prefs: SleepPreferencesForm = forms["preferences"]
        return SleepProfile(
            target_sleep_hours=goals.target_sleep_hours,
            target_bedtime=goals.target_bedtime,
            target_wake_time=derivations.wake_time(goals.target_bedtime, goals.target_sleep_hours),
            wake_is_next_day=derivations.wakes_next_day(goals.target_bedtime, goals.target_sleep_hours),
            tracking_method=self.devices[0].type if self.devices else "manual",
            connected_devices=self.devices,
            primary_device=self._primary_device(),
            auto_detection_enabled=bool(self.devices),
            preferences=SleepPreferences(
                room_temperature=prefs.room_temperature,
                caffeine_cutoff_time=prefs.caffeine_cutoff_time,
                screen_time_limit=prefs.screen_time_limit,
            ),
        )


class StepsWizard(SetupWizard[StepsProfile]):
    goal_type = GoalType.daily_steps
    STEPS = ("baseline", "goals", "preferences", REVIEW)
    FORMS = {
        "baseline": StepsBaselineForm,
        "goals": StepsGoalsForm,
        "preferences": StepsPreferencesForm,
    }

    def initial_values(self) -> dict[str, Any]:
        return {"baseline_average": 6500}

    def _on_enter(self, step: str) -> None:
        if step == "goals" and not self._values.get("daily_step_target"):
            baseline = int(self._values["baseline_average"])
            self._values["daily_step_target"] = derivations.recommended_step_target(baseline)

    def stride_length(self) -> float:
        override = self._values.get("stride_length_cm")
        if override:
            return float(override)
        return float(derivations.stride_length_cm(self._height_cm()))

    def _build(self, forms: dict[str, Any]) -> StepsProfile:
        goals: StepsGoalsForm = forms["goals"]
        prefs: StepsPreferencesForm = forms["preferences"]
        stride = goals.stride_length_cm or float(derivations.stride_length_cm(self._height_cm()))
        weight = self._weight_kg()
        return StepsProfile(
            daily_step_target=goals.daily_step_target,
            baseline_average=forms["baseline"].baseline_average,
            stride_length_cm=stride,
            weight_kg=round(weight, 1),
            target_distance_km=round(derivations.steps_distance_km(goals.daily_step_target, stride), 2),
            target_calories=derivations.steps_calories(goals.daily_step_target, weight),
            tracking_method=self.devices[0].type if self.devices else "manual",
            connected_devices=self.devices,
            primary_device=self._primary_device(),
            hourly_reminders_enabled=prefs.hourly_reminders,
            adaptive_goals=prefs.adaptive_goals,
            preferences=StepsPreferences(
                route_discovery=prefs.route_discovery,
                challenges_enabled=prefs.challenges_enabled,
            ),
        )


WIZARDS: dict[GoalType, type[SetupWizard]] = {
    GoalType.weight_loss: WeightLossWizard,
    GoalType.cardio_endurance: CardioWizard,
    GoalType.strength_building: StrengthWizard,
    GoalType.sleep_tracking: SleepWizard,
    GoalType.daily_steps: StepsWizard,
}


def create_wizard(
    goal_type: GoalType,
    user_profile: UserProfile | None = None,
    devices: tuple[ConnectedDevice, ...] | list[ConnectedDevice] = (),
    equipment: tuple[str, ...] | list[str] = (),
) -> SetupWizard:
    """Instantiate the wizard for ``goal_type`` (KeyError for types without one)."""
    return WIZARDS[GoalType(goal_type)](user_profile, devices=devices, equipment=equipment)
