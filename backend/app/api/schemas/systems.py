"""Pydantic schemas for the downstream system listings."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field

from app.api.schemas.common import CamelModel


class RoutinePayload(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    steps: List[str] = Field(default_factory=list)
    time_of_day: Optional[str] = None
    source: str
    created_at: datetime


class WorkoutPlanPayload(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    source: str
    created_at: datetime


class MealPayload(CamelModel):
    id: UUID
    title: str
    meal_type: Optional[str] = None
    day: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    instructions: Optional[str] = None


class MealPlanPayload(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    source: str
    meals: List[MealPayload] = Field(default_factory=list)
    created_at: datetime


class GoalPayload(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    wellness_dimension: Optional[str] = None
    progress: int
    target_value: int
    is_active: bool


class HabitPayload(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    frequency: str
    reminder_time: Optional[str] = None
    is_active: bool
    streak: int
