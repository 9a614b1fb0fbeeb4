"""Goal-specific coaching.

``CoachingService.respond`` asks an OpenAI-compatible chat-completions endpoint
when an API key is configured and answers from a static, keyword-driven
fallback otherwise. Any transport or payload failure is logged and answered by
the fallback as well; callers never see an exception, only ``using_fallback``.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field

from fitkernel.config import Settings, settings
from fitkernel.core.models import GoalType

logger = logging.getLogger(__name__)

PLACEHOLDER_KEY = "your_openai_api_key_here"
MIN_KEY_LENGTH = 20
MAX_ACTIONS = 3


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class CoachRequest(BaseModel):
    goal_type: GoalType
    user_message: str
    profile: dict[str, Any] | None = None
    today: dict[str, Any] = Field(default_factory=dict)
    history: list[ChatTurn] = Field(default_factory=list)


class CoachResponse(BaseModel):
    message: str
    action_suggestions: list[str] = Field(default_factory=list)
    motivational_tip: str | None = None
    data_updates: dict[str, Any] | None = None
    using_fallback: bool = False


# =============================================================================
# Prompting
# =============================================================================

SYSTEM_PROMPTS: dict[GoalType, str] = {
    GoalType.weight_loss: (
        "You are a certified nutrition coach and weight loss specialist. You help users achieve "
        "sustainable weight loss through calorie tracking and meal planning, healthy food choices and "
        "portion control, exercise recommendations, habit formation and plateau management. "
        "Never recommend extreme diets or unsafe practices."
    ),
    GoalType.cardio_endurance: (
        "You are a cardiovascular fitness expert and endurance coach. You help users improve their "
        "cardio fitness through heart rate zone training, progressive endurance building, recovery "
        "and training load management. Focus on safe progression and injury prevention."
    ),
    GoalType.strength_building: (
        "You are a certified strength and conditioning coach. You help users build strength through "
        "progressive overload, proper form, workout programming and recovery. "
        "Focus on safe progression and sustainable strength building."
    ),
    GoalType.daily_steps: (
        "You are a movement and walking specialist focused on increasing daily activity. You help "
        "users reach step goals through walking habits, route ideas and lifestyle integration. "
        "Focus on making movement enjoyable and sustainable."
    ),
    GoalType.workout_consistency: (
        "You are a fitness habit coach specializing in exercise consistency. You help users build "
        "sustainable workout routines and overcome barriers. "
        "Focus on building habits rather than perfect performance."
    ),
    GoalType.sleep_tracking: (
        "You are a sleep specialist and circadian rhythm expert. You help users improve sleep "
        "quality through sleep hygiene, consistent schedules and a better sleep environment. "
        "Focus on evidence-based sleep improvement strategies."
    ),
}


def _v(data: dict[str, Any] | None, key: str, default: Any = "Not set") -> Any:
    if not data:
        return default
    value = data.get(key)
    return default if value is None or value == "" else value


def format_context(request: CoachRequest) -> str:
    p, t = request.profile, request.today
    match request.goal_type:
        case GoalType.weight_loss:
            diet = (p or {}).get("dietary_preferences") or {}
            unit = "lb" if _v(p, "weight_unit", "kg") == "pounds" else "kg"
            return (
                "Weight Loss Profile:\n"
                f"- Current weight: {_v(p, 'current_weight')}{unit}\n"
                f"- Target weight: {_v(p, 'target_weight')}{unit}\n"
                f"- Daily calorie target: {_v(p, 'daily_calorie_target')} calories\n"
                f"- Today's calories: {_v(t, 'calories', 0)} consumed\n"
                f"- Remaining calories: {_v(t, 'remaining_calories', 'Unknown')}\n"
                f"- Dietary preference: {diet.get('type') or 'Not specified'}"
            )
        case GoalType.cardio_endurance:
            return (
                "Cardio Profile:\n"
                f"- Fitness objective: {_v(p, 'fitness_objective')}\n"
                f"- Resting HR: {_v(p, 'resting_heart_rate')} BPM\n"
                f"- Max HR: {_v(p, 'max_heart_rate')} BPM\n"
                f"- Today's workouts: {_v(t, 'sessions_count', 0)}\n"
                f"- Total duration: {_v(t, 'total_duration', 0)} minutes\n"
                f"- Calories burned: {_v(t, 'total_calories', 0)}"
            )
        case GoalType.strength_building:
            equipment = ", ".join((p or {}).get("available_equipment") or []) or "Not specified"
            return (
                "Strength Profile:\n"
                f"- Fitness level: {_v(p, 'fitness_level')}\n"
                f"- Primary goal: {_v(p, 'primary_goal')}\n"
                f"- Workout frequency: {_v(p, 'workout_frequency')} days/week\n"
                f"- Available equipment: {equipment}\n"
                f"- Today's sessions: {_v(t, 'total_sessions', 0)}\n"
                f"- Total volume: {_v(t, 'total_volume', 0)}kg"
            )
        case GoalType.daily_steps:
            return (
                "Steps Profile:\n"
                f"- Daily target: {_v(p, 'daily_step_target')} steps\n"
                f"- Current steps: {_v(t, 'current_steps', 0)}\n"
                f"- Remaining: {_v(t, 'remaining_steps', 'Unknown')} steps\n"
                f"- Distance today: {_v(t, 'distance', 0)}km\n"
                f"- Tracking method: {_v(p, 'tracking_method')}"
            )
        case GoalType.sleep_tracking:
            return (
                "Sleep Profile:\n"
                f"- Target sleep: {_v(p, 'target_sleep_hours')} hours\n"
                f"- Bedtime: {_v(p, 'target_bedtime')}\n"
                f"- Wake time: {_v(p, 'target_wake_time')}\n"
                f"- Last night's sleep: {_v(t, 'last_night_sleep', 'Not logged')} hours\n"
                f"- Sleep score: {_v(t, 'sleep_score', 'Not available')}"
            )
        case GoalType.workout_consistency:
            return (
                "Consistency Profile:\n"
                f"- Current streak: {_v(t, 'current_streak', 0)} days\n"
                f"- This week's workouts: {_v(t, 'weekly_workouts', 0)}"
            )


def build_prompt(request: CoachRequest) -> str:
    return (
        f"{SYSTEM_PROMPTS[request.goal_type]}\n\n"
        f"CURRENT CONTEXT:\n{format_context(request)}\n\n"
        f'USER MESSAGE: "{request.user_message}"\n\n'
        "Provide a helpful, encouraging response with specific actionable advice. Include:\n"
        "1. Direct response to user's question\n"
        "2. Specific action suggestions for today\n"
        "3. Motivational tip related to their progress\n"
        "4. Any data updates or recommendations\n\n"
        "Keep response conversational and supportive."
    )


_ACTION_LINE = re.compile(r"^(?:[-*•]\s|\d+\.\s)")
MOTIVATIONAL_KEYWORDS = ("remember", "keep", "you can", "great job", "well done")


def parse_ai_response(text: str) -> CoachResponse:
    """Whole text as the message, up to three bullet/numbered lines as actions,
    and the first line carrying a motivational keyword as the tip."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    actions = [_ACTION_LINE.sub("", line).strip() for line in lines if _ACTION_LINE.match(line)]
    tip = next((line for line in lines if any(k in line.lower() for k in MOTIVATIONAL_KEYWORDS)), None)
    return CoachResponse(message=text, action_suggestions=actions[:MAX_ACTIONS], motivational_tip=tip)


# =============================================================================
# Fallback
# =============================================================================


def _has(message: str, *words: str) -> bool:
    return any(w in message for w in words)


class FallbackCoach:
    """Canned, keyword-matched replies per goal type."""

    def respond(self, request: CoachRequest) -> CoachResponse:
        msg = request.user_message.lower()
        p, t = request.profile or {}, request.today
        match request.goal_type:
            case GoalType.weight_loss:
                reply = self._weight_loss(msg, p, t)
            case GoalType.cardio_endurance:
                reply = self._cardio(msg, p, t)
            case GoalType.strength_building:
                reply = self._strength(msg, p, t)
            case GoalType.daily_steps:
                reply = self._steps(msg, p, t)
            case GoalType.sleep_tracking:
                reply = self._sleep(msg, p, t)
            case GoalType.workout_consistency:
                reply = self._consistency(msg, p, t)
        reply.using_fallback = True
        return reply

    def _weight_loss(self, msg: str, p: dict, t: dict) -> CoachResponse:
        remaining = _v(t, "remaining_calories", "some")
        if _has(msg, "hungry", "snack"):
            return CoachResponse(
                message=(
                    f"You have {remaining} calories remaining today. Healthy snack options:\n"
                    "- Baby carrots with hummus (80 cal)\n"
                    "- Apple with almond butter (150 cal)\n"
                    "- Mixed nuts (160 cal)"
                ),
                action_suggestions=["Log your snack choice", "Check meal suggestions", "Review today's progress"],
                motivational_tip="Smart snacking keeps you satisfied and on track!",
            )
        if _has(msg, "exercise", "workout"):
            return CoachResponse(
                message=(
                    "Exercise will help create a calorie deficit. Based on your current intake:\n"
                    "- 30-minute brisk walk (150 cal)\n"
                    "- 20-minute jog (200 cal)\n"
                    "- Strength training (180 cal)"
                ),
                action_suggestions=["Log your workout", "Start a quick walk", "View exercise suggestions"],
                motivational_tip="Every step towards your goal counts!",
            )
        return CoachResponse(
            message=f"You're doing great with your weight loss journey! You have {remaining} calories remaining today.",
            action_suggestions=["Get meal suggestions", "Log your food", "Check progress"],
            motivational_tip="Consistency is the key to lasting weight loss success!",
        )

    def _cardio(self, msg: str, p: dict, t: dict) -> CoachResponse:
        if _has(msg, "heart rate", "zone"):
            return CoachResponse(
                message=(
                    f"Your heart rate zones are personalized for {_v(p, 'fitness_objective', 'fitness')}.\n"
                    "- Zone 1-2: Recovery and fat burning\n"
                    "- Zone 3: Aerobic base building\n"
                    "- Zone 4-5: High intensity intervals"
                ),
                action_suggestions=["Start heart rate workout", "View your zones", "Log today's session"],
                motivational_tip="Training in the right zones maximizes your results!",
            )
        if _has(msg, "tired", "recovery"):
            return CoachResponse(
                message=(
                    "Recovery is crucial for cardiovascular improvement!\n"
                    "- Easy 20-minute walk in Zone 1\n"
                    "- Gentle yoga or stretching\n"
                    "- Focus on quality sleep tonight"
                ),
                action_suggestions=["Log recovery activity", "Check heart rate trends", "Plan tomorrow's workout"],
                motivational_tip="Smart recovery leads to stronger performance!",
            )
        return CoachResponse(
            message=(
                f"Ready to boost your cardiovascular fitness? You've completed "
                f"{_v(t, 'sessions_count', 0)} sessions today."
            ),
            action_suggestions=["Start new workout", "Check heart rate zones", "View progress trends"],
            motivational_tip="Every heartbeat makes you stronger!",
        )

    def _strength(self, msg: str, p: dict, t: dict) -> CoachResponse:
        if _has(msg, "sore", "muscle"):
            return CoachResponse(
                message=(
                    "Muscle soreness is normal after strength training! For recovery:\n"
                    "- Light stretching or yoga\n"
                    "- Protein within 30 minutes post-workout\n"
                    "- 7-9 hours of quality sleep"
                ),
                action_suggestions=["Log recovery activities", "Track protein intake", "Plan next workout"],
                motivational_tip="Muscle growth happens during recovery, embrace the process!",
            )
        if _has(msg, "weight", "heavy"):
            return CoachResponse(
                message=(
                    f"Progressive overload is key to strength gains! At your {_v(p, 'fitness_level', 'current')} level:\n"
                    "- Increase weight by 2.5-5lbs when you complete all sets\n"
                    "- Focus on 6-12 reps for strength\n"
                    "- Rest 2-3 minutes between sets"
                ),
                action_suggestions=["Log your lifts", "Check personal records", "View workout templates"],
                motivational_tip="Strength is built one rep at a time!",
            )
        return CoachResponse(
            message=(
                f"Time to build some strength! You've completed {_v(t, 'total_sessions', 0)} sessions today "
                f"with {round(_v(t, 'total_volume', 0))}kg total volume."
            ),
            action_suggestions=["Start strength workout", "View workout templates", "Check progress charts"],
            motivational_tip="Consistency in the gym creates strength in life!",
        )

    def _steps(self, msg: str, p: dict, t: dict) -> CoachResponse:
        if _has(msg, "tired", "motivation"):
            return CoachResponse(
                message=(
                    "Here are easy ways to add steps:\n"
                    "- Park farther away (+300 steps)\n"
                    "- Take calls while walking (+500 steps)\n"
                    "- Use stairs instead of the elevator (+200 steps)"
                ),
                action_suggestions=["Start a 5-minute walk", "Log current steps", "View step challenges"],
                motivational_tip="Every step counts towards a healthier you!",
            )
        if _has(msg, "weather", "indoor"):
            return CoachResponse(
                message=(
                    "Bad weather? Indoor step options:\n"
                    "- Mall walking\n"
                    "- Walking in place while watching TV\n"
                    "- Stair climbing"
                ),
                action_suggestions=["Find indoor walking spots", "Start indoor workout", "Log indoor steps"],
                motivational_tip="Adaptability is the key to consistent progress!",
            )
        remaining = _v(t, "remaining_steps", None) or _v(p, "daily_step_target", 10000)
        return CoachResponse(
            message=(
                f"You're at {_v(t, 'current_steps', 0):,} steps today! Only {remaining:,} steps to reach your "
                f"goal. A {math.ceil(remaining / 120)}-minute walk will get you there!"
            ),
            action_suggestions=["Start a quick walk", "Log recent steps", "View step suggestions"],
            motivational_tip="One step at a time leads to amazing places!",
        )

    def _sleep(self, msg: str, p: dict, t: dict) -> CoachResponse:
        if _has(msg, "tired", "energy"):
            return CoachResponse(
                message=(
                    "Your sleep quality directly impacts energy levels:\n"
                    "- Get 15 minutes of morning sunlight\n"
                    "- Avoid caffeine after 2 PM\n"
                    f"- Keep a consistent bedtime ({_v(p, 'target_bedtime', '22:30')})"
                ),
                action_suggestions=["Log last night's sleep", "Set bedtime reminder", "Review sleep tips"],
                motivational_tip="Quality sleep is the foundation of all health goals!",
            )
        if _has(msg, "bedtime", "routine"):
            temperature = ((p.get("preferences") or {}).get("room_temperature")) or 67
            return CoachResponse(
                message=(
                    "A consistent bedtime routine improves sleep quality. Try a 1-hour wind-down:\n"
                    "- No screens\n"
                    "- Warm bath or shower\n"
                    f"- Cool room to {temperature}F"
                ),
                action_suggestions=["Set bedtime reminder", "Log sleep quality", "Review sleep environment"],
                motivational_tip="Great days start with great nights!",
            )
        return CoachResponse(
            message=(
                f"Your target is {_v(p, 'target_sleep_hours', 8)} hours of sleep. Last night you got "
                f"{_v(t, 'last_night_sleep', 'unknown')} hours."
            ),
            action_suggestions=["Log sleep quality", "Set bedtime reminder", "Review sleep tips"],
            motivational_tip="Prioritizing sleep is prioritizing your health!",
        )

    def _consistency(self, msg: str, p: dict, t: dict) -> CoachResponse:
        streak = _v(t, "current_streak", 0)
        if _has(msg, "skip", "miss"):
            return CoachResponse(
                message=(
                    "It's okay to miss a day! Consistency isn't about perfection:\n"
                    "- Do a 10-minute mini workout\n"
                    "- Take a short walk\n"
                    "- 5 minutes of stretching"
                ),
                action_suggestions=["Start 10-minute workout", "Log any activity", "Plan tomorrow's session"],
                motivational_tip="Progress, not perfection, builds lasting habits!",
            )
        if _has(msg, "motivation", "hard"):
            return CoachResponse(
                message=f"Building workout consistency is challenging but worth it! You're on a {streak}-day streak.",
                action_suggestions=["Schedule next workout", "Set workout reminder", "View progress streak"],
                motivational_tip="Consistency is the mother of mastery!",
            )
        return CoachResponse(
            message=(
                f"You're building an amazing workout habit! Current streak: {streak} days. "
                f"This week you've completed {_v(t, 'weekly_workouts', 0)} workouts."
            ),
            action_suggestions=["Plan next workout", "View workout options", "Check weekly progress"],
            motivational_tip="Every workout is an investment in your future self!",
        )


# =============================================================================
# Remote
# =============================================================================


def is_usable_key(api_key: str | None) -> bool:
    return bool(api_key) and api_key != PLACEHOLDER_KEY and len(api_key) > MIN_KEY_LENGTH


class RemoteCoach:
    """Chat-completions client (OpenAI wire format)."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        max_tokens: int = 400,
        temperature: float = 0.7,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._transport = transport

    async def complete(self, prompt: str, history: list[ChatTurn] | None = None) -> str:
        messages = [turn.model_dump() for turn in history or []]
        messages.append({"role": "user", "content": prompt})
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": messages,
                    "max_tokens": self.max_tokens,
                    "temperature": self.temperature,
                },
            )
            response.raise_for_status()
            data = response.json()
        return data["choices"][0]["message"]["content"] or ""


class CoachingService:
    def __init__(self, remote: RemoteCoach | None = None, fallback: FallbackCoach | None = None):
        self.remote = remote
        self.fallback = fallback or FallbackCoach()

    @classmethod
    def from_settings(
        cls,
        config: Settings = settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CoachingService":
        remote = None
        if is_usable_key(config.ai_api_key):
            remote = RemoteCoach(
                api_key=config.ai_api_key,
                base_url=config.ai_base_url,
                model=config.ai_model,
                max_tokens=config.ai_max_tokens,
                temperature=config.ai_temperature,
                timeout=config.ai_timeout_seconds,
                transport=transport,
            )
        else:
            logger.warning("AI API key missing or placeholder, coaching uses fallback responses")
        return cls(remote=remote)

    @property
    def is_ready(self) -> bool:
        return self.remote is not None

    async def respond(self, request: CoachRequest) -> CoachResponse:
        if self.remote is None:
            return self.fallback.respond(request)
        try:
            text = await self.remote.complete(build_prompt(request), request.history)
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as exc:
            logger.warning("coach request for %s failed, using fallback: %s", request.goal_type.value, exc)
            return self.fallback.respond(request)
        if not text.strip():
            logger.warning("coach returned an empty reply for %s, using fallback", request.goal_type.value)
            return self.fallback.respond(request)
        return parse_ai_response(text)
