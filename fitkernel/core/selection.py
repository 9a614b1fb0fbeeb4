"""Goal selection diff: compares a checkbox state against active goals.

Re-selecting an already active goal is a removal request, so ``to_remove`` is the
*intersection* of the two sets.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from fitkernel.core.models import Goal, GoalType


@dataclass(frozen=True, slots=True)
class SelectionDiff:
    to_add: list[GoalType] = field(default_factory=list)
    to_remove: list[GoalType] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def _dedupe(values: Iterable[GoalType]) -> list[GoalType]:
    seen: set[GoalType] = set()
    out: list[GoalType] = []
    for v in values:
        g = GoalType(v)
        if g not in seen:
            seen.add(g)
            out.append(g)
    return out


def resolve_selection(selected: Iterable[GoalType], existing_active: Iterable[GoalType]) -> SelectionDiff:
    """to_add = selected - existing_active; to_remove = selected ∩ existing_active.

    Both lists keep the caller's selection order. No side effects.
    """
    chosen = _dedupe(selected)
    active = set(_dedupe(existing_active))
    return SelectionDiff(
        to_add=[g for g in chosen if g not in active],
        to_remove=[g for g in chosen if g in active],
    )


def active_goal_types(goals: Iterable[Goal]) -> list[GoalType]:
    return _dedupe(g.type for g in goals if g.is_active)
