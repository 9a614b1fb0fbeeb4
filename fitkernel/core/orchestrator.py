"""Onboarding orchestrator: the only component holding every store handle.

Screens run welcome → phone → profile → goals → goal-setup → main. Goal
selection is diffed against the active goals; added types that already have a
domain profile (or have no wizard) become goals at once, the rest are walked
through pairing and their wizard in priority order by the sequencer.

Live effects (pairing scans, samplers) are registered here and cancelled on
every navigation away from the screen that started them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from fitkernel.config import configure_logging
from fitkernel.core import pairing
from fitkernel.core.blob_store import BlobStore, SqlBlobStore
from fitkernel.core.coach import ChatTurn, CoachingService, CoachRequest, CoachResponse
from fitkernel.core.errors import SetupFlowError
from fitkernel.core.events import DomainConfigured, EventBus, GoalAdded, GoalDeactivated, OpenCoachRequested
from fitkernel.core.food import PendingMeal, parse_voice_log
from fitkernel.core.goals_config import has_wizard
from fitkernel.core.merger import merge_goals
from fitkernel.core.models import (
    AppScreen,
    ConnectedDevice,
    Goal,
    GoalType,
    LogEntry,
    MainTab,
    MealLog,
    UserProfile,
)
from fitkernel.core.sampling import PeriodicSampler, heart_rate_producer, steps_producer
from fitkernel.core.selection import SelectionDiff, active_goal_types, resolve_selection
from fitkernel.core.sequencer import MainScreenStep, PairingStep, SetupSequencer, SetupStep, WizardStep
from fitkernel.core.stores import StoreSet
from fitkernel.core.today import today_snapshot
from fitkernel.core.wizards import SetupWizard, create_wizard
from fitkernel.db import make_engine, make_session_factory

logger = logging.getLogger(__name__)

VOICE_UNITS: dict[GoalType, str] = {
    GoalType.weight_loss: "pounds",
    GoalType.cardio_endurance: "minutes",
    GoalType.strength_building: "sets",
    GoalType.daily_steps: "steps",
    GoalType.workout_consistency: "minutes",
    GoalType.sleep_tracking: "hours",
}


class Orchestrator:
    def __init__(
        self,
        stores: StoreSet,
        bus: EventBus | None = None,
        coach: CoachingService | None = None,
    ):
        self.stores = stores
        self.bus = bus or EventBus()
        self.coach = coach or CoachingService.from_settings()
        self.sequencer = SetupSequencer(stores.is_configured)
        self._handles: list[pairing.PairingHandle | PeriodicSampler] = []
        self._wizard: SetupWizard | None = None

    @classmethod
    def open(cls, blob_store: BlobStore, **kwargs) -> "Orchestrator":
        return cls(StoreSet.load(blob_store), **kwargs)

    @classmethod
    def from_database(cls, database_url: str | None = None, **kwargs) -> "Orchestrator":
        """Application entry point: logging, SQL-backed stores, settings-driven coach."""
        configure_logging()
        engine = make_engine(database_url)
        orchestrator = cls.open(SqlBlobStore(make_session_factory(engine)), **kwargs)
        logger.info("stores opened, resuming on %s", orchestrator.screen.value)
        return orchestrator

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------

    @property
    def screen(self) -> AppScreen:
        return self.stores.app.state.current_screen

    @property
    def tab(self) -> MainTab:
        return self.stores.app.state.active_tab

    @property
    def user_profile(self) -> UserProfile | None:
        return self.stores.app.state.user_profile

    def navigate(self, screen: AppScreen) -> None:
        screen = AppScreen(screen)
        if screen != self.screen:
            self.cancel_live_handles()
            logger.info("screen %s -> %s", self.screen.value, screen.value)
        self.stores.app.set_screen(screen)

    def select_tab(self, tab: MainTab) -> None:
        tab = MainTab(tab)
        if tab != self.tab:
            self.cancel_live_handles()
        self.stores.app.set_tab(tab)

    def start(self) -> None:
        self.navigate(AppScreen.phone)

    def complete_phone(self, phone: str | None = None) -> None:
        """Phone verification is inert: any value (or none) moves on."""
        profile = self.user_profile or UserProfile()
        if phone:
            profile = profile.model_copy(update={"phone": phone})
        self.stores.app.set_user_profile(profile)
        self.navigate(AppScreen.profile)

    def skip_phone(self) -> None:
        self.complete_phone(None)

    def complete_profile(self, profile: UserProfile) -> None:
        current = self.user_profile
        if current is not None:
            profile = profile.model_copy(
                update={
                    "id": current.id,
                    "phone": profile.phone or current.phone,
                    "selected_goals": profile.selected_goals or current.selected_goals,
                }
            )
        self.stores.app.set_user_profile(profile)
        self.navigate(AppScreen.goals)

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    @property
    def goals(self) -> list[Goal]:
        return list(self.stores.app.state.goals)

    @property
    def active_goals(self) -> list[Goal]:
        return [g for g in self.goals if g.is_active]

    def _selected_goals(self) -> list[GoalType]:
        return list(self.user_profile.selected_goals) if self.user_profile else []

    def _add_goals(self, goal_types: Iterable[GoalType]) -> list[Goal]:
        active = set(active_goal_types(self.goals))
        to_add = [g for g in goal_types if g not in active]
        if not to_add:
            return []
        before = len(self.goals)
        merged = merge_goals(to_add, self.goals, self.stores.profile_for, self.user_profile)
        self.stores.app.set_goals(merged)
        added = merged[before:]
        for goal in added:
            self.bus.publish(GoalAdded(goal_id=goal.id, goal_type=goal.type))
        return added

    def select_goals(self, selected: Iterable[GoalType]) -> SelectionDiff:
        """Apply a goal selection.

        Only ``to_add`` is acted on; re-selected active goals are left alone
        (removal goes through ``remove_goal``). Ends on goal-setup when a
        domain still needs configuring, otherwise on main.
        """
        diff = resolve_selection(selected, active_goal_types(self.goals))
        profile = self.user_profile or UserProfile()
        if diff.to_add:
            chosen = list(dict.fromkeys([*profile.selected_goals, *diff.to_add]))
            profile = profile.model_copy(update={"selected_goals": chosen})
            self.stores.app.set_user_profile(profile)

            ready = [g for g in diff.to_add if not has_wizard(g) or self.stores.is_configured(g)]
            self._add_goals(ready)

        if self.sequencer.pending_domain(profile.selected_goals) is not None:
            self.navigate(AppScreen.goal_setup)
        else:
            self.navigate(AppScreen.main)
        return diff

    def remove_goal(self, goal_id: str) -> Goal:
        """Deactivate a goal. History and the domain profile are kept."""
        goals = self.goals
        for i, goal in enumerate(goals):
            if goal.id == goal_id:
                break
        else:
            raise KeyError(goal_id)
        if not goal.is_active:
            return goal

        deactivated = goal.model_copy(update={"is_active": False})
        goals[i] = deactivated
        self.stores.app.set_goals(goals)

        profile = self.user_profile
        if profile is not None and goal.type not in active_goal_types(goals):
            remaining = [g for g in profile.selected_goals if g != goal.type]
            self.stores.app.set_user_profile(profile.model_copy(update={"selected_goals": remaining}))

        self.bus.publish(GoalDeactivated(goal_id=goal.id, goal_type=goal.type))
        logger.info("goal deactivated: %s (%s)", goal.type.value, goal.id)
        return deactivated

    # ------------------------------------------------------------------
    # Setup flow
    # ------------------------------------------------------------------

    def current_setup_step(self) -> SetupStep:
        step = self.sequencer.next_step(self._selected_goals())
        if isinstance(step, MainScreenStep) and self.screen == AppScreen.goal_setup:
            self.sequencer.reset_session()
            self.navigate(AppScreen.main)
        return step

    def _expect_pairing(self, goal_type: GoalType) -> None:
        step = self.sequencer.next_step(self._selected_goals())
        if not isinstance(step, PairingStep) or step.goal_type != goal_type:
            raise SetupFlowError(f"pairing for {goal_type.value} is not the current setup step")

    def pair_devices(
        self,
        goal_type: GoalType,
        device_types: Iterable[str],
        delay: float | None = None,
        rng=None,
    ) -> pairing.PairingHandle:
        """Start a scan; must be called from a running event loop."""
        goal_type = GoalType(goal_type)
        self._expect_pairing(goal_type)
        handle = pairing.start_pairing(goal_type, device_types, delay=delay, rng=rng)
        self._handles.append(handle)
        return handle

    async def run_pairing(
        self,
        goal_type: GoalType,
        device_types: Iterable[str],
        delay: float | None = None,
        rng=None,
    ) -> list[ConnectedDevice]:
        handle = self.pair_devices(goal_type, device_types, delay=delay, rng=rng)
        devices = await handle.wait()
        if handle.cancelled:
            return devices
        self.complete_pairing(goal_type, devices)
        return devices

    def complete_pairing(self, goal_type: GoalType, devices: Iterable[ConnectedDevice]) -> None:
        """Hold the paired devices for the upcoming wizard.

        The selection lives in session state only; it reaches the domain store
        together with the committed profile in ``complete_setup``.
        """
        goal_type = GoalType(goal_type)
        self._expect_pairing(goal_type)
        self.sequencer.record_devices(goal_type, list(devices))

    def select_equipment(self, equipment: Iterable[str]) -> list[str]:
        self._expect_pairing(GoalType.strength_building)
        chosen = pairing.valid_equipment(equipment)
        self.sequencer.record_equipment(chosen)
        return chosen

    def skip_pairing(self, goal_type: GoalType) -> None:
        goal_type = GoalType(goal_type)
        self._expect_pairing(goal_type)
        self.sequencer.skip_pairing(goal_type)

    def wizard_for_current_step(self) -> SetupWizard:
        step = self.sequencer.next_step(self._selected_goals())
        if not isinstance(step, WizardStep):
            raise SetupFlowError(f"no wizard pending (current step: {type(step).__name__})")
        if self._wizard is None or self._wizard.goal_type != step.goal_type:
            self._wizard = create_wizard(step.goal_type, self.user_profile, step.devices, step.equipment)
        return self._wizard

    def complete_setup(self, profile) -> Goal | None:
        """Persist a committed domain profile, create its goal and advance.

        Returns the new goal, or None when an active goal of that type existed.
        """
        goal_type = GoalType(profile.goal_type)
        step = self.sequencer.next_step(self._selected_goals())
        if not isinstance(step, WizardStep) or step.goal_type != goal_type:
            raise SetupFlowError(f"{goal_type.value} setup is not the current setup step")

        store = self.stores.for_goal(goal_type)
        store.set_profile(profile, devices=list(step.devices) if step.devices else None)
        added = self._add_goals([goal_type])
        self.bus.publish(DomainConfigured(goal_type=goal_type))
        self._wizard = None
        self.cancel_live_handles()
        self.current_setup_step()
        return added[0] if added else None

    def commit_wizard(self, wizard: SetupWizard | None = None) -> Goal | None:
        wizard = wizard or self.wizard_for_current_step()
        return self.complete_setup(wizard.commit())

    # ------------------------------------------------------------------
    # Live effects
    # ------------------------------------------------------------------

    def start_heart_rate_monitor(self, workout_active=lambda: False, interval: float | None = None, rng=None):
        profile = self.stores.cardio.profile
        if profile is None:
            raise SetupFlowError("cardio is not configured")
        sampler = PeriodicSampler(
            heart_rate_producer(profile, workout_active, rng),
            interval=interval,
            on_sample=self.stores.cardio.add_heart_rate_reading,
        ).start()
        self._handles.append(sampler)
        return sampler

    def start_step_counter(self, interval: float | None = None, rng=None) -> PeriodicSampler[int]:
        today = self.stores.steps.todays_steps()
        sampler = PeriodicSampler(steps_producer(today.total_steps if today else 0, rng), interval=interval).start()
        self._handles.append(sampler)
        return sampler

    def cancel_live_handles(self) -> None:
        handles, self._handles = self._handles, []
        for handle in handles:
            handle.cancel()

    @property
    def live_handles(self) -> list:
        return list(self._handles)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def _active_goal_id(self, goal_type: GoalType) -> str | None:
        return next((g.id for g in self.active_goals if g.type == goal_type), None)

    def log_meal(self, pending: PendingMeal, day: date | None = None) -> MealLog:
        """Raises ConfirmationRequiredError for unconfirmed low-confidence parses."""
        meal = pending.to_meal_log(day=day, goal_id=self._active_goal_id(GoalType.weight_loss))
        self.stores.weight_loss.add_meal(meal)
        return meal

    def log_voice(self, goal_type: GoalType, text: str) -> LogEntry:
        goal_type = GoalType(goal_type)
        parsed = parse_voice_log(text)
        entry = LogEntry(
            goal_type=goal_type,
            value=float(parsed.numbers[0]) if parsed.numbers else 0.0,
            unit=VOICE_UNITS[goal_type],
            notes=text,
            logged_via="voice",
            parsed={
                "numbers": parsed.numbers,
                "workout_type": parsed.workout_type,
                "exercise": parsed.exercise,
            },
        )
        self.stores.app.add_log_entry(entry)
        return entry

    # ------------------------------------------------------------------
    # Coaching
    # ------------------------------------------------------------------

    def request_coach(self, goal_type: GoalType, message: str | None = None) -> None:
        self.bus.publish(OpenCoachRequested(goal_type=GoalType(goal_type), message=message))

    def coach_request(
        self,
        goal_type: GoalType,
        message: str,
        history: list[ChatTurn] | None = None,
        today: date | None = None,
    ) -> CoachRequest:
        goal_type = GoalType(goal_type)
        profile = self.stores.profile_for(goal_type)
        profile_data: dict[str, Any] | None = profile.model_dump(mode="json") if profile is not None else None
        return CoachRequest(
            goal_type=goal_type,
            user_message=message,
            profile=profile_data,
            today=today_snapshot(self.stores, goal_type, today),
            history=history or [],
        )

    async def ask_coach(
        self,
        goal_type: GoalType,
        message: str,
        history: list[ChatTurn] | None = None,
        today: date | None = None,
    ) -> CoachResponse:
        return await self.coach.respond(self.coach_request(goal_type, message, history, today))
