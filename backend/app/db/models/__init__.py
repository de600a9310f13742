"""ORM models exposed for metadata discovery."""
from app.db.models.activity_log import ActivityLog
from app.db.models.blueprint import (
    BaselineProfile,
    RecoveryReflection,
    StabilizingAction,
    StressSignals,
    SupportPreferences,
    WellnessBlueprint,
)
from app.db.models.body_scan import BodyScan
from app.db.models.calendar_event import CalendarEvent
from app.db.models.document import DocumentItem, ImportedDocument
from app.db.models.onboarding import LifeSystem, OnboardingProfile
from app.db.models.systems import Goal, Habit, Meal, MealPlan, Routine, WorkoutPlan
from app.db.models.user import User

__all__ = [
    "ActivityLog",
    "BaselineProfile",
    "BodyScan",
    "CalendarEvent",
    "DocumentItem",
    "Goal",
    "Habit",
    "ImportedDocument",
    "LifeSystem",
    "Meal",
    "MealPlan",
    "OnboardingProfile",
    "RecoveryReflection",
    "Routine",
    "StabilizingAction",
    "StressSignals",
    "SupportPreferences",
    "User",
    "WellnessBlueprint",
    "WorkoutPlan",
]
