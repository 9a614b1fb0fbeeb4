"""Goal merger: turns ``to_add`` goal types into Goal records.

Targets come from the domain profile when one exists, otherwise from the static
goal table. The merger only appends: it never deactivates or rewrites goals.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from fitkernel.config import settings
from fitkernel.core import derivations
from fitkernel.core.goals_config import get_goal_definition
from fitkernel.core.models import (
    CardioProfile,
    Goal,
    GoalType,
    SleepProfile,
    StepsProfile,
    StrengthProfile,
    UserProfile,
    WeightLossProfile,
    WeightUnit,
)

logger = logging.getLogger(__name__)

METRIC_WEIGHT_LOSS_DEFAULT = 5.0

ProfileLookup = Callable[[GoalType], object | None]


def _no_profile(goal_type: GoalType) -> None:
    return None


def _targets_from_profile(goal_type: GoalType, profile: object) -> tuple[float, float, int | None] | None:
    """(target_value, current_value, timeframe_weeks) derived from a domain profile."""
    if goal_type == GoalType.weight_loss and isinstance(profile, WeightLossProfile):
        return profile.target_weight, profile.current_weight, profile.timeline_weeks
    if goal_type == GoalType.cardio_endurance and isinstance(profile, CardioProfile):
        return float(derivations.weekly_cardio_minutes(profile.fitness_objective)), 0.0, None
    if goal_type == GoalType.strength_building and isinstance(profile, StrengthProfile):
        # Sessions per month
        return float(profile.workout_frequency * 4), 0.0, None
    if goal_type == GoalType.sleep_tracking and isinstance(profile, SleepProfile):
        return float(profile.target_sleep_hours), 0.0, None
    if goal_type == GoalType.daily_steps and isinstance(profile, StepsProfile):
        return float(profile.daily_step_target), 0.0, None
    return None


def default_target(goal_type: GoalType, user_profile: UserProfile | None = None) -> float:
    definition = get_goal_definition(goal_type)
    if (
        goal_type == GoalType.weight_loss
        and user_profile is not None
        and user_profile.weight_unit == WeightUnit.kg
    ):
        return METRIC_WEIGHT_LOSS_DEFAULT
    return definition.default_target


def build_goal(
    goal_type: GoalType,
    profile: object | None = None,
    user_profile: UserProfile | None = None,
) -> Goal:
    goal_type = GoalType(goal_type)
    definition = get_goal_definition(goal_type)
    derived = _targets_from_profile(goal_type, profile) if profile is not None else None
    if derived is not None:
        target, current, weeks = derived
    else:
        target, current, weeks = default_target(goal_type, user_profile), 0.0, None
    return Goal(
        type=goal_type,
        title=definition.title,
        description=definition.description,
        icon=definition.icon,
        target_value=target,
        target_timeframe_weeks=weeks or definition.default_timeframe_weeks or settings.default_timeframe_weeks,
        current_value=current,
        is_active=True,
    )


def merge_goals(
    to_add: Iterable[GoalType],
    goals: list[Goal],
    profile_lookup: ProfileLookup = _no_profile,
    user_profile: UserProfile | None = None,
) -> list[Goal]:
    """Return ``goals`` with one new active goal appended per entry of ``to_add``.

    Existing goals are kept untouched and in order. Every appended goal gets a
    fresh id, so ids stay unique across the list.
    """
    merged = list(goals)
    for goal_type in to_add:
        goal = build_goal(goal_type, profile_lookup(GoalType(goal_type)), user_profile)
        merged.append(goal)
        logger.info("goal added: %s target=%s", goal.type.value, goal.target_value)
    return merged
