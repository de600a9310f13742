"""Onboarding completion: persist answers and seed a life system."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.api.schemas.onboarding import OnboardingCompleteRequest
from app.db.models.onboarding import LifeSystem, OnboardingProfile
from app.db.models.systems import Goal, Habit
from app.db.models.user import User
from app.services import llm

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_NAME = "My Life System"
MAX_SUGGESTIONS = 5

FREE_TIME_LABELS = {
    "less-1": "less than 1 hour",
    "1-2": "1-2 hours",
    "2-4": "2-4 hours",
    "4-plus": "4+ hours",
}

# Seed habits/goals per wellness focus when no model is available.
FOCUS_LIBRARY: Dict[str, Dict[str, Dict[str, str]]] = {
    "energy": {
        "habit": {"title": "Morning movement", "description": "Ten minutes of walking or stretching after waking", "frequency": "daily"},
        "goal": {"title": "Feel more energized", "description": "Notice steadier energy through the afternoon", "wellnessDimension": "physical"},
    },
    "emotional": {
        "habit": {"title": "Mood check-in", "description": "Name how you feel once a day", "frequency": "daily"},
        "goal": {"title": "Build emotional balance", "description": "Recover faster from hard moments", "wellnessDimension": "emotional"},
    },
    "sleep": {
        "habit": {"title": "Wind-down routine", "description": "Screens off 30 minutes before bed", "frequency": "daily"},
        "goal": {"title": "Sleep more consistently", "description": "Keep a regular bedtime on most nights", "wellnessDimension": "physical"},
    },
    "focus": {
        "habit": {"title": "Single-task block", "description": "One 25-minute distraction-free session", "frequency": "daily"},
        "goal": {"title": "Sharpen focus", "description": "Protect time for deep work each week", "wellnessDimension": "intellectual"},
    },
    "purpose": {
        "habit": {"title": "Weekly intention", "description": "Write one thing that matters this week", "frequency": "weekly"},
        "goal": {"title": "Reconnect with purpose", "description": "Spend time on what feels meaningful", "wellnessDimension": "spiritual"},
    },
    "financial": {
        "habit": {"title": "Spending review", "description": "Glance over the week's spending", "frequency": "weekly"},
        "goal": {"title": "Reduce money stress", "description": "Know where your money goes each month", "wellnessDimension": "financial"},
    },
    "creative": {
        "habit": {"title": "Creative minutes", "description": "Fifteen minutes of making something", "frequency": "daily"},
        "goal": {"title": "Make creative time", "description": "Finish one small creative project", "wellnessDimension": "creative"},
    },
    "connection": {
        "habit": {"title": "Reach out", "description": "Message someone you care about", "frequency": "weekly"},
        "goal": {"title": "Deepen connections", "description": "Spend quality time with people who matter", "wellnessDimension": "social"},
    },
    "myself": {
        "habit": {"title": "Evening reflection", "description": "Journal about your day before bed", "frequency": "daily"},
        "goal": {"title": "Feel like myself again", "description": "Make space for the things that restore you", "wellnessDimension": "emotional"},
    },
}

FALLBACK_HABITS = [
    {"title": "Morning Mindfulness", "description": "Start each day with 5 minutes of breathing exercises", "frequency": "daily"},
    {"title": "Hydration Check", "description": "Drink 8 glasses of water throughout the day", "frequency": "daily"},
    {"title": "Evening Reflection", "description": "Journal about your day before bed", "frequency": "daily"},
]
FALLBACK_GOALS = [
    {"title": "Build a consistent morning routine", "description": "Create a sustainable way to start each day", "wellnessDimension": "mental"},
    {"title": "Improve energy levels", "description": "Feel more energized throughout the day", "wellnessDimension": "physical"},
]
FALLBACK_SCHEDULE_TIPS = [
    "Schedule your most important wellness activities during your peak energy hours",
    "Block off transition time between responsibilities",
    "Include at least one full rest day per week",
]


@dataclass
class Recommendations:
    habits: List[Dict[str, str]] = field(default_factory=list)
    goals: List[Dict[str, str]] = field(default_factory=list)
    schedule_tips: List[str] = field(default_factory=list)
    source: str = "fallback"


@dataclass
class OnboardingResult:
    life_system: LifeSystem
    habits_created: int
    goals_created: int
    source: str


def build_recommendations(answers: OnboardingCompleteRequest, request_id: Optional[str] = None) -> Recommendations:
    """Ask the model for habits, goals and schedule tips; fall back to the focus library."""
    if llm.llm_available():
        payload = llm.request_json(
            "You are a warm wellness coach. Respond with valid JSON only.",
            _recommendation_prompt(answers),
            trace_name="onboarding.recommendations.llm",
            metadata={"focus_count": len(answers.wellness_focus)},
            request_id=request_id,
            temperature=0.6,
        )
        recommendations = _recommendations_from_payload(payload)
        if recommendations is not None:
            return recommendations
    return fallback_recommendations(answers)


def fallback_recommendations(answers: OnboardingCompleteRequest) -> Recommendations:
    habits: List[Dict[str, str]] = []
    goals: List[Dict[str, str]] = []
    for focus in answers.wellness_focus:
        entry = FOCUS_LIBRARY.get(focus)
        if entry:
            habits.append(dict(entry["habit"]))
            goals.append(dict(entry["goal"]))
    if not habits:
        habits = [dict(habit) for habit in FALLBACK_HABITS]
        goals = [dict(goal) for goal in FALLBACK_GOALS]

    tips = list(FALLBACK_SCHEDULE_TIPS)
    if answers.peak_motivation_time in ("morning", "afternoon", "evening"):
        tips[0] = f"Schedule your most important wellness activities in the {answers.peak_motivation_time}"
    if answers.free_time_hours == "less-1":
        tips.append("Keep each habit under ten minutes so it fits a busy day")
    return Recommendations(habits=habits, goals=goals, schedule_tips=tips, source="fallback")


def complete_onboarding(
    db: Session,
    user: User,
    answers: OnboardingCompleteRequest,
    recommendations: Recommendations,
) -> OnboardingResult:
    """Stage the profile, life system, habits and goals; the caller commits."""
    responsibilities = list(answers.responsibilities)
    if answers.other_responsibility.strip():
        responsibilities.append(answers.other_responsibility.strip())
    priorities = list(answers.priorities)
    if answers.other_priority.strip():
        priorities.append(answers.other_priority.strip())

    db.add(
        OnboardingProfile(
            user_id=user.id,
            responsibilities=responsibilities,
            priorities=priorities,
            free_time_hours=answers.free_time_hours or None,
            peak_motivation_time=answers.peak_motivation_time or None,
            wellness_focus=list(answers.wellness_focus),
            wake_time=answers.wake_time or None,
            sleep_time=answers.sleep_time or None,
            conversation_data=[message.model_dump() for message in answers.messages] if answers.messages else None,
        )
    )

    name = answers.system_name.strip() or DEFAULT_SYSTEM_NAME
    life_system = LifeSystem(
        user_id=user.id,
        name=name,
        weekly_schedule=recommendations.schedule_tips,
        suggested_habits=recommendations.habits,
        schedule_blocks=_schedule_blocks(answers),
        meal_suggestions=[],
        source=recommendations.source,
    )
    db.add(life_system)

    for habit in recommendations.habits:
        db.add(
            Habit(
                user_id=user.id,
                title=habit["title"],
                description=habit.get("description"),
                frequency=habit.get("frequency") or "daily",
                is_active=True,
            )
        )
    for goal in recommendations.goals:
        db.add(
            Goal(
                user_id=user.id,
                title=goal["title"],
                description=goal.get("description"),
                wellness_dimension=goal.get("wellnessDimension"),
                is_active=True,
            )
        )

    user.onboarding_completed = True
    user.system_name = name
    return OnboardingResult(
        life_system=life_system,
        habits_created=len(recommendations.habits),
        goals_created=len(recommendations.goals),
        source=recommendations.source,
    )


def _schedule_blocks(answers: OnboardingCompleteRequest) -> List[Dict[str, str]]:
    blocks: List[Dict[str, str]] = []
    if answers.wake_time:
        blocks.append({"label": "Wake up", "time": answers.wake_time})
    if answers.sleep_time:
        blocks.append({"label": "Wind down", "time": answers.sleep_time})
    return blocks


def _recommendation_prompt(answers: OnboardingCompleteRequest) -> str:
    return (
        "Based on this user profile, generate personalized wellness recommendations:\n\n"
        f"Responsibilities: {', '.join(answers.responsibilities) or 'not shared'}\n"
        f"Personal priorities: {', '.join(answers.priorities) or 'not shared'}\n"
        f"Daily free time: {FREE_TIME_LABELS.get(answers.free_time_hours, 'unknown')}\n"
        f"Peak motivation time: {answers.peak_motivation_time or 'unknown'}\n"
        f"Wellness focus areas: {', '.join(answers.wellness_focus) or 'general'}\n\n"
        "Provide JSON with:\n"
        "1. suggestedHabits: 3-5 habits with title, description and frequency (daily/weekly)\n"
        "2. suggestedGoals: 3-5 goals with title, description and wellnessDimension\n"
        "3. weeklyScheduleSuggestions: 3-5 scheduling tips"
    )


def _recommendations_from_payload(payload: Optional[Dict[str, Any]]) -> Optional[Recommendations]:
    if not isinstance(payload, dict):
        return None
    habits = [
        {
            "title": str(item["title"]),
            "description": str(item.get("description") or ""),
            "frequency": "weekly" if item.get("frequency") == "weekly" else "daily",
        }
        for item in payload.get("suggestedHabits") or []
        if isinstance(item, dict) and item.get("title")
    ][:MAX_SUGGESTIONS]
    goals = [
        {
            "title": str(item["title"]),
            "description": str(item.get("description") or ""),
            "wellnessDimension": str(item.get("wellnessDimension") or "general"),
        }
        for item in payload.get("suggestedGoals") or []
        if isinstance(item, dict) and item.get("title")
    ][:MAX_SUGGESTIONS]
    if not habits and not goals:
        return None
    tips = [str(tip) for tip in payload.get("weeklyScheduleSuggestions") or [] if tip][:MAX_SUGGESTIONS]
    return Recommendations(habits=habits, goals=goals, schedule_tips=tips, source="llm")
