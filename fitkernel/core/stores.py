"""Persistent store set: six independent containers over a blob store.

Containers: ``app``, ``weight_loss``, ``cardio``, ``strength``, ``sleep``,
``steps``. Each one is a Pydantic model serialised whole into its own blob.
Every mutation replaces the container value and writes it through; a store
handle only ever reads or writes its own key.

Blobs that fail validation (or carry another ``schema_version``) are logged and
replaced by an empty container.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError

from fitkernel.core import derivations
from fitkernel.core.blob_store import BlobStore
from fitkernel.core.models import (
    AppScreen,
    CardioProfile,
    ConnectedDevice,
    ExerciseLog,
    Goal,
    GoalType,
    HeartRateReading,
    LogEntry,
    MainTab,
    MealLog,
    SleepEntry,
    SleepProfile,
    StepsEntry,
    StepsProfile,
    StrengthProfile,
    StrengthSession,
    UserProfile,
    WeightEntry,
    WeightLossProfile,
    WorkoutSession,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
MAX_HEART_RATE_READINGS = 1000
SLEEP_STREAK_RATIO = 0.9


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


class AppState(BaseModel):
    schema_version: int = SCHEMA_VERSION
    user_profile: UserProfile | None = None
    goals: list[Goal] = Field(default_factory=list)
    current_screen: AppScreen = AppScreen.welcome
    active_tab: MainTab = MainTab.today
    log_entries: list[LogEntry] = Field(default_factory=list)


class WeightLossState(BaseModel):
    schema_version: int = SCHEMA_VERSION
    profile: WeightLossProfile | None = None
    meal_logs: list[MealLog] = Field(default_factory=list)
    exercise_logs: list[ExerciseLog] = Field(default_factory=list)
    weight_entries: list[WeightEntry] = Field(default_factory=list)
    connected_devices: list[ConnectedDevice] = Field(default_factory=list)


class CardioState(BaseModel):
    schema_version: int = SCHEMA_VERSION
    profile: CardioProfile | None = None
    heart_rate_history: list[HeartRateReading] = Field(default_factory=list)
    workout_sessions: list[WorkoutSession] = Field(default_factory=list)
    connected_devices: list[ConnectedDevice] = Field(default_factory=list)


class StrengthState(BaseModel):
    schema_version: int = SCHEMA_VERSION
    profile: StrengthProfile | None = None
    sessions: list[StrengthSession] = Field(default_factory=list)
    connected_devices: list[ConnectedDevice] = Field(default_factory=list)


class SleepState(BaseModel):
    schema_version: int = SCHEMA_VERSION
    profile: SleepProfile | None = None
    entries: list[SleepEntry] = Field(default_factory=list)
    connected_devices: list[ConnectedDevice] = Field(default_factory=list)


class StepsState(BaseModel):
    schema_version: int = SCHEMA_VERSION
    profile: StepsProfile | None = None
    entries: list[StepsEntry] = Field(default_factory=list)
    connected_devices: list[ConnectedDevice] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Handles
# ---------------------------------------------------------------------------

S = TypeVar("S", bound=BaseModel)


class DomainStore(Generic[S]):
    """Typed handle over one container. Holds the only reference to its key."""

    name: ClassVar[str]
    model: ClassVar[type[BaseModel]]

    def __init__(self, blob_store: BlobStore):
        self._blob_store = blob_store
        self._state: S = self._load()

    def _load(self) -> S:
        raw = self._blob_store.get(self.name)
        if raw is None:
            return self.model()
        try:
            state = self.model.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("store %s: unreadable blob, starting empty (%d errors)", self.name, exc.error_count())
            return self.model()
        if state.schema_version != SCHEMA_VERSION:
            logger.warning(
                "store %s: schema_version %s != %s, starting empty",
                self.name, state.schema_version, SCHEMA_VERSION,
            )
            return self.model()
        return state

    @property
    def state(self) -> S:
        return self._state

    def replace(self, state: S) -> S:
        self._state = state
        self._blob_store.put(self.name, state.model_dump_json())
        return state

    def update(self, **changes) -> S:
        return self.replace(self._state.model_copy(update=changes))

    def mutate(self, fn: Callable[[S], None]) -> S:
        """Apply ``fn`` to a deep copy and write the result back as a whole."""
        draft = self._state.model_copy(deep=True)
        fn(draft)
        return self.replace(draft)


class ProfileStore(DomainStore[S]):
    goal_type: ClassVar[GoalType]

    @property
    def profile(self):
        return self._state.profile

    @property
    def is_configured(self) -> bool:
        return self._state.profile is not None

    def set_profile(self, profile, devices: list[ConnectedDevice] | None = None) -> None:
        """Save a committed profile, with the devices paired for it when given."""
        if profile.goal_type != self.goal_type.value:
            raise TypeError(f"{self.name} store cannot hold a {profile.goal_type} profile")
        if devices is None:
            self.update(profile=profile)
        else:
            self.update(profile=profile, connected_devices=list(devices))
        logger.info("store %s: profile saved", self.name)


class AppStore(DomainStore[AppState]):
    name = "app"
    model = AppState

    def set_user_profile(self, profile: UserProfile) -> None:
        self.update(user_profile=profile)

    def set_goals(self, goals: list[Goal]) -> None:
        self.update(goals=list(goals))

    def set_screen(self, screen: AppScreen) -> None:
        self.update(current_screen=screen)

    def set_tab(self, tab: MainTab) -> None:
        self.update(active_tab=tab)

    def add_log_entry(self, entry: LogEntry) -> None:
        self.mutate(lambda s: s.log_entries.append(entry))


class WeightLossStore(ProfileStore[WeightLossState]):
    name = "weight_loss"
    model = WeightLossState
    goal_type = GoalType.weight_loss

    def add_meal(self, meal: MealLog) -> None:
        self.mutate(lambda s: s.meal_logs.append(meal))

    def add_exercise(self, log: ExerciseLog) -> None:
        self.mutate(lambda s: s.exercise_logs.append(log))

    def add_weight_entry(self, entry: WeightEntry) -> None:
        def _apply(s: WeightLossState) -> None:
            s.weight_entries.append(entry)
            s.weight_entries.sort(key=lambda e: e.day)

        self.mutate(_apply)

    def todays_meals(self, today: date | None = None) -> list[MealLog]:
        today = today or date.today()
        return [m for m in self._state.meal_logs if m.logged_date == today]

    def todays_calories(self, today: date | None = None) -> int:
        return sum(m.actual_calories for m in self.todays_meals(today))

    def todays_exercise_calories(self, today: date | None = None) -> int:
        today = today or date.today()
        return sum(e.calories_burned for e in self._state.exercise_logs if e.logged_date == today)

    def latest_weight(self) -> float | None:
        if not self._state.weight_entries:
            return None
        return self._state.weight_entries[-1].weight

    def plateau(self) -> derivations.PlateauCheck:
        return derivations.detect_plateau([(e.day, e.weight) for e in self._state.weight_entries])


@dataclass(frozen=True, slots=True)
class WeeklyStats:
    sessions: int
    total_minutes: int
    calories_burned: int
    average_heart_rate: float = 0.0


def _week_start(today: date) -> date:
    return today - timedelta(days=6)


class CardioStore(ProfileStore[CardioState]):
    name = "cardio"
    model = CardioState
    goal_type = GoalType.cardio_endurance

    def add_heart_rate_reading(self, reading: HeartRateReading) -> None:
        def _apply(s: CardioState) -> None:
            s.heart_rate_history.append(reading)
            del s.heart_rate_history[:-MAX_HEART_RATE_READINGS]

        self.mutate(_apply)

    def add_workout(self, session: WorkoutSession) -> None:
        self.mutate(lambda s: s.workout_sessions.append(session))

    def weekly_stats(self, today: date | None = None) -> WeeklyStats:
        today = today or date.today()
        start = _week_start(today)
        week = [w for w in self._state.workout_sessions if start <= w.start_time.date() <= today]
        return WeeklyStats(
            sessions=len(week),
            total_minutes=sum(w.duration for w in week),
            calories_burned=sum(w.calories_burned for w in week),
            average_heart_rate=round(derivations.average([w.average_heart_rate for w in week]), 1),
        )


class StrengthStore(ProfileStore[StrengthState]):
    name = "strength"
    model = StrengthState
    goal_type = GoalType.strength_building

    def add_session(self, session: StrengthSession) -> None:
        self.mutate(lambda s: s.sessions.append(session))

    def weekly_stats(self, today: date | None = None) -> WeeklyStats:
        today = today or date.today()
        start = _week_start(today)
        week = [w for w in self._state.sessions if start <= w.start_time.date() <= today]
        return WeeklyStats(
            sessions=len(week),
            total_minutes=sum(w.duration for w in week),
            calories_burned=0,
        )


class SleepStore(ProfileStore[SleepState]):
    name = "sleep"
    model = SleepState
    goal_type = GoalType.sleep_tracking

    def add_entry(self, entry: SleepEntry) -> None:
        def _apply(s: SleepState) -> None:
            s.entries = [e for e in s.entries if e.day != entry.day]
            s.entries.append(entry)
            s.entries.sort(key=lambda e: e.day)

        self.mutate(_apply)

    def last_night(self) -> SleepEntry | None:
        return self._state.entries[-1] if self._state.entries else None

    def weekly_average_hours(self) -> float:
        recent = self._state.entries[-7:]
        return round(derivations.average([e.total_sleep_minutes / 60.0 for e in recent]), 1)

    def streak(self) -> int:
        """Nights in a row reaching 90% of the target sleep duration."""
        if self._state.profile is None:
            return 0
        threshold = self._state.profile.target_sleep_hours * 60 * SLEEP_STREAK_RATIO
        newest_first = [e.total_sleep_minutes for e in reversed(self._state.entries)]
        return derivations.streak(newest_first, threshold)


class StepsStore(ProfileStore[StepsState]):
    name = "steps"
    model = StepsState
    goal_type = GoalType.daily_steps

    def add_entry(self, entry: StepsEntry) -> None:
        """Record a day's steps; a later entry for the same day replaces it."""

        def _apply(s: StepsState) -> None:
            s.entries = [e for e in s.entries if e.day != entry.day]
            s.entries.append(entry)
            s.entries.sort(key=lambda e: e.day)

        self.mutate(_apply)

    def todays_steps(self, today: date | None = None) -> StepsEntry | None:
        today = today or date.today()
        for entry in self._state.entries:
            if entry.day == today:
                return entry
        return None

    def weekly_average(self) -> int:
        return round(derivations.average([e.total_steps for e in self._state.entries[-7:]]))

    def streak(self) -> int:
        if self._state.profile is None:
            return 0
        newest_first = [e.total_steps for e in reversed(self._state.entries)]
        return derivations.streak(newest_first, self._state.profile.daily_step_target)


# ---------------------------------------------------------------------------
# Store set
# ---------------------------------------------------------------------------


@dataclass
class StoreSet:
    app: AppStore
    weight_loss: WeightLossStore
    cardio: CardioStore
    strength: StrengthStore
    sleep: SleepStore
    steps: StepsStore

    @classmethod
    def load(cls, blob_store: BlobStore) -> "StoreSet":
        """Read every container once; missing or unreadable blobs start empty."""
        return cls(
            app=AppStore(blob_store),
            weight_loss=WeightLossStore(blob_store),
            cardio=CardioStore(blob_store),
            strength=StrengthStore(blob_store),
            sleep=SleepStore(blob_store),
            steps=StepsStore(blob_store),
        )

    def for_goal(self, goal_type: GoalType) -> ProfileStore | None:
        """Domain store for ``goal_type``; None for types without a domain profile."""
        match GoalType(goal_type):
            case GoalType.weight_loss:
                return self.weight_loss
            case GoalType.cardio_endurance:
                return self.cardio
            case GoalType.strength_building:
                return self.strength
            case GoalType.sleep_tracking:
                return self.sleep
            case GoalType.daily_steps:
                return self.steps
            case GoalType.workout_consistency:
                return None

    def profile_for(self, goal_type: GoalType):
        store = self.for_goal(goal_type)
        return store.profile if store is not None else None

    def is_configured(self, goal_type: GoalType) -> bool:
        return self.profile_for(goal_type) is not None
