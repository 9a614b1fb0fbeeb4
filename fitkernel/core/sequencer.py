"""Setup sequencer: decides which setup screen comes next.

Walks ``SETUP_PRIORITY`` and stops at the first selected goal type whose domain
profile does not exist yet. Domains that need devices or equipment show the
pairing screen once per session before their wizard. Pairing selections live
only as long as the sequencer (session scope) and are never persisted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from fitkernel.core.goals_config import SETUP_PRIORITY, needs_pairing
from fitkernel.core.models import ConnectedDevice, GoalType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PairingStep:
    goal_type: GoalType


@dataclass(frozen=True, slots=True)
class WizardStep:
    goal_type: GoalType
    devices: tuple[ConnectedDevice, ...] = ()
    equipment: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class MainScreenStep:
    pass


SetupStep = PairingStep | WizardStep | MainScreenStep


def pending_domain(
    selected_goals: Iterable[GoalType],
    is_configured: Callable[[GoalType], bool],
    priority: tuple[GoalType, ...] = SETUP_PRIORITY,
) -> GoalType | None:
    """First type in priority order that is selected and has no domain profile."""
    selected = {GoalType(g) for g in selected_goals}
    for goal_type in priority:
        if goal_type in selected and not is_configured(goal_type):
            return goal_type
    return None


@dataclass
class _PairingSelection:
    devices: list[ConnectedDevice] = field(default_factory=list)
    equipment: list[str] = field(default_factory=list)


class SetupSequencer:
    """Priority-chain controller with session-scoped pairing state.

    ``is_configured`` is the only view the sequencer has of the stores: a
    read-only predicate answering "does this domain already have a profile?".
    """

    def __init__(
        self,
        is_configured: Callable[[GoalType], bool],
        priority: tuple[GoalType, ...] = SETUP_PRIORITY,
    ):
        self._is_configured = is_configured
        self._priority = priority
        self._selections: dict[GoalType, _PairingSelection] = {}

    # -- pairing state -------------------------------------------------------

    def has_pairing_selection(self, goal_type: GoalType) -> bool:
        return GoalType(goal_type) in self._selections

    def record_devices(self, goal_type: GoalType, devices: Iterable[ConnectedDevice]) -> None:
        """Store the paired devices; an empty list still counts as "selection made"."""
        goal_type = GoalType(goal_type)
        self._selections[goal_type] = _PairingSelection(devices=list(devices))
        logger.debug("pairing recorded for %s (%d devices)", goal_type.value, len(self._selections[goal_type].devices))

    def record_equipment(self, equipment: Iterable[str]) -> None:
        self._selections[GoalType.strength_building] = _PairingSelection(equipment=list(equipment))

    def skip_pairing(self, goal_type: GoalType) -> None:
        self._selections[GoalType(goal_type)] = _PairingSelection()
        logger.debug("pairing skipped for %s", GoalType(goal_type).value)

    def reset_session(self) -> None:
        self._selections.clear()

    # -- evaluation ----------------------------------------------------------

    def pending_domain(self, selected_goals: Iterable[GoalType]) -> GoalType | None:
        return pending_domain(selected_goals, self._is_configured, self._priority)

    def next_step(self, selected_goals: Iterable[GoalType]) -> SetupStep:
        goal_type = self.pending_domain(selected_goals)
        if goal_type is None:
            return MainScreenStep()
        if needs_pairing(goal_type) and goal_type not in self._selections:
            return PairingStep(goal_type=goal_type)
        selection = self._selections.get(goal_type, _PairingSelection())
        return WizardStep(
            goal_type=goal_type,
            devices=tuple(selection.devices),
            equipment=tuple(selection.equipment),
        )
