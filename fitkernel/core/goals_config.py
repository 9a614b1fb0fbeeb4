"""Static goal configuration: no DB, config only.

Each GoalDefinition carries the display metadata and default target used when a
goal is created without a customised domain profile. ``SETUP_PRIORITY`` is the
fixed order in which pending domains are walked through their wizards.
"""

from __future__ import annotations

from dataclasses import dataclass

from fitkernel.core.models import GoalType


@dataclass(frozen=True, slots=True)
class GoalDefinition:
    goal_type: GoalType
    title: str
    description: str
    icon: str
    default_target: float
    target_unit: str
    has_wizard: bool = True
    needs_pairing: bool = False
    default_timeframe_weeks: int = 12


GOALS_BY_TYPE: dict[GoalType, GoalDefinition] = {
    GoalType.weight_loss: GoalDefinition(
        goal_type=GoalType.weight_loss,
        title="Weight Loss",
        description="Lose weight through calorie tracking and exercise",
        icon="target",
        default_target=10.0,  # pounds; 5 when the user profile is metric
        target_unit="weight",
    ),
    GoalType.cardio_endurance: GoalDefinition(
        goal_type=GoalType.cardio_endurance,
        title="Cardio Endurance",
        description="Build cardiovascular fitness",
        icon="heart",
        default_target=150.0,
        target_unit="minutes/week",
        needs_pairing=True,
    ),
    GoalType.strength_building: GoalDefinition(
        goal_type=GoalType.strength_building,
        title="Strength Building",
        description="Increase muscle strength",
        icon="dumbbell",
        default_target=12.0,
        target_unit="sessions/month",
        needs_pairing=True,  # Equipment selection
    ),
    GoalType.sleep_tracking: GoalDefinition(
        goal_type=GoalType.sleep_tracking,
        title="Sleep Tracking",
        description="Improve sleep quality",
        icon="moon",
        default_target=8.0,
        target_unit="hours",
        needs_pairing=True,
    ),
    GoalType.daily_steps: GoalDefinition(
        goal_type=GoalType.daily_steps,
        title="Daily Steps",
        description="Stay active with daily step goals",
        icon="footprints",
        default_target=10000.0,
        target_unit="steps/day",
        needs_pairing=True,
    ),
    GoalType.workout_consistency: GoalDefinition(
        goal_type=GoalType.workout_consistency,
        title="Workout Consistency",
        description="Build exercise habits",
        icon="calendar",
        default_target=5.0,
        target_unit="days/week",
        has_wizard=False,
    ),
}

SETUP_PRIORITY: tuple[GoalType, ...] = (
    GoalType.weight_loss,
    GoalType.cardio_endurance,
    GoalType.strength_building,
    GoalType.sleep_tracking,
    GoalType.daily_steps,
)


def get_goal_definition(goal_type: GoalType) -> GoalDefinition:
    return GOALS_BY_TYPE[GoalType(goal_type)]


def list_goal_definitions() -> list[GoalDefinition]:
    return list(GOALS_BY_TYPE.values())


def has_wizard(goal_type: GoalType) -> bool:
    return get_goal_definition(goal_type).has_wizard


def needs_pairing(goal_type: GoalType) -> bool:
    return get_goal_definition(goal_type).needs_pairing
