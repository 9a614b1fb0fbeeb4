"""Today snapshots: per-goal summaries of the current day.

Read-only views over the store set, shaped as plain dicts so they can be handed
to the coach as context.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from fitkernel.core.models import GoalType
from fitkernel.core.stores import StoreSet


def _weight_loss(stores: StoreSet, today: date) -> dict[str, Any]:
    store = stores.weight_loss
    consumed = store.todays_calories(today)
    target = store.profile.daily_calorie_target if store.profile else None
    return {
        "calories": consumed,
        "exercise_calories": store.todays_exercise_calories(today),
        "remaining_calories": target - consumed if target is not None else None,
        "meals_logged": len(store.todays_meals(today)),
        "latest_weight": store.latest_weight(),
        "plateau": store.plateau().is_plateaued,
    }


def _cardio(stores: StoreSet, today: date) -> dict[str, Any]:
    sessions = [w for w in stores.cardio.state.workout_sessions if w.start_time.date() == today]
    weekly = stores.cardio.weekly_stats(today)
    return {
        "sessions_count": len(sessions),
        "total_duration": sum(w.duration for w in sessions),
        "total_calories": sum(w.calories_burned for w in sessions),
        "weekly_minutes": weekly.total_minutes,
    }


def _strength(stores: StoreSet, today: date) -> dict[str, Any]:
    sessions = [s for s in stores.strength.state.sessions if s.start_time.date() == today]
    return {
        "total_sessions": len(sessions),
        "total_volume": round(sum(s.total_volume_kg for s in sessions), 1),
        "weekly_sessions": stores.strength.weekly_stats(today).sessions,
    }


def _sleep(stores: StoreSet, today: date) -> dict[str, Any]:
    last = stores.sleep.last_night()
    return {
        "last_night_sleep": round(last.total_sleep_minutes / 60.0, 1) if last else None,
        "sleep_score": last.sleep_score if last else None,
        "weekly_average": stores.sleep.weekly_average_hours(),
        "streak": stores.sleep.streak(),
    }


def _steps(stores: StoreSet, today: date) -> dict[str, Any]:
    entry = stores.steps.todays_steps(today)
    current = entry.total_steps if entry else 0
    target = stores.steps.profile.daily_step_target if stores.steps.profile else None
    return {
        "current_steps": current,
        "remaining_steps": max(target - current, 0) if target is not None else None,
        "distance": entry.distance_km if entry else 0.0,
        "weekly_average": stores.steps.weekly_average(),
        "streak": stores.steps.streak(),
    }


def workout_days(stores: StoreSet) -> set[date]:
    days = {w.start_time.date() for w in stores.cardio.state.workout_sessions}
    days |= {s.start_time.date() for s in stores.strength.state.sessions}
    days |= {e.logged_date for e in stores.weight_loss.state.exercise_logs}
    return days


def _consistency(stores: StoreSet, today: date) -> dict[str, Any]:
    days = workout_days(stores)
    streak = 0
    day = today
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return {
        "current_streak": streak,
        "weekly_workouts": sum(1 for i in range(7) if today - timedelta(days=i) in days),
    }


def today_snapshot(stores: StoreSet, goal_type: GoalType, today: date | None = None) -> dict[str, Any]:
    today = today or date.today()
    match GoalType(goal_type):
        case GoalType.weight_loss:
            return _weight_loss(stores, today)
        case GoalType.cardio_endurance:
            return _cardio(stores, today)
        case GoalType.strength_building:
            return _strength(stores, today)
        case GoalType.sleep_tracking:
            return _sleep(stores, today)
        case GoalType.daily_steps:
            return _steps(stores, today)
        case GoalType.workout_consistency:
            return _consistency(stores, today)
