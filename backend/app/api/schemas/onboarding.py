"""Pydantic schemas for onboarding completion."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.api.schemas.common import CamelModel

MAX_WELLNESS_FOCUS = 3


class ChatMessage(CamelModel):
    role: str = Field(..., pattern="^(assistant|user)$")
    content: str


class OnboardingCompleteRequest(CamelModel):
    user_id: UUID
    responsibilities: List[str] = Field(default_factory=list)
    other_responsibility: str = ""
    priorities: List[str] = Field(default_factory=list)
    other_priority: str = ""
    free_time_hours: str = Field("", pattern="^(less-1|1-2|2-4|4-plus)?$")
    peak_motivation_time: str = ""
    wellness_focus: List[str] = Field(default_factory=list)
    system_name: str = Field("", max_length=120)
    wake_time: str = ""
    sleep_time: str = ""
    messages: Optional[List[ChatMessage]] = None

    @field_validator("wellness_focus")
    @classmethod
    def limit_focus(cls, value: List[str]) -> List[str]:
        if len(value) > MAX_WELLNESS_FOCUS:
            raise ValueError(f"choose at most {MAX_WELLNESS_FOCUS} wellness focus areas")
        return value


class OnboardingCompleteResponse(CamelModel):
    success: bool
    life_system_id: UUID
    system_name: str
    habits_created: int
    goals_created: int
    source: str


class OnboardingStatus(CamelModel):
    user_id: UUID
    onboarding_completed: bool
    system_name: Optional[str] = None
