"""Pydantic schemas for the meal-plan import API."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import Field

from app.api.schemas.common import CamelModel

DEFAULT_ROUTINE_TITLE = "Meal Prep Routine"


class ImportMeal(CamelModel):
    id: str
    title: str = Field(..., min_length=1, max_length=200)
    meal_type: str = Field("other", pattern="^(breakfast|lunch|dinner|snack|other)$")
    day: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    is_selected: bool = True


class ImportRoutineStep(CamelModel):
    id: str
    text: str


class ImportRoutine(CamelModel):
    title: str = DEFAULT_ROUTINE_TITLE
    steps: List[ImportRoutineStep] = Field(default_factory=list)


class ImportRecurrence(CamelModel):
    frequency: str = Field("none", pattern="^(none|daily|weekly)$")


class ImportCalendarSuggestion(CamelModel):
    id: str
    title: str = Field(..., min_length=1, max_length=200)
    day_of_week: Optional[str] = None
    time: Optional[str] = None
    duration_minutes: int = Field(60, ge=5, le=24 * 60)
    recurrence: ImportRecurrence = Field(default_factory=ImportRecurrence)
    is_selected: bool = True


class MealImportUploadResponse(CamelModel):
    document_id: UUID
    file_name: str
    status: str


class MealImportAnalysis(CamelModel):
    document_id: UUID
    plan_title: str
    meals: List[ImportMeal] = Field(default_factory=list)
    routine: ImportRoutine = Field(default_factory=ImportRoutine)
    calendar_suggestions: List[ImportCalendarSuggestion] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)
    source: str = "heuristic"


class MealImportAnalyzeRequest(CamelModel):
    user_id: UUID


class MealImportCommitRequest(CamelModel):
    user_id: UUID
    plan_title: str = Field(..., min_length=1, max_length=200)
    meals: List[ImportMeal] = Field(default_factory=list)
    routine: Optional[ImportRoutine] = None


class SavedRoutine(CamelModel):
    id: UUID
    title: str
    steps: List[str] = Field(default_factory=list)


class MealImportCommitResponse(CamelModel):
    meal_plan_id: UUID
    meals_count: int
    routine: Optional[SavedRoutine] = None


class MealImportCalendarRequest(CamelModel):
    user_id: UUID
    suggestions: List[ImportCalendarSuggestion] = Field(default_factory=list)


class MealImportCalendarResponse(CamelModel):
    events_created: int
    event_ids: List[UUID] = Field(default_factory=list)
