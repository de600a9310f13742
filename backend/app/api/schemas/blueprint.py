"""Pydantic schemas for the wellness blueprint."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from app.api.schemas.common import CamelModel


class BlueprintUpdate(CamelModel):
    user_id: UUID
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    current_section: Optional[str] = Field(default=None, max_length=30)
    is_complete: Optional[bool] = None


class BaselineInput(CamelModel):
    user_id: UUID
    energy_baseline: Optional[int] = Field(default=None, ge=1, le=10)
    sleep_hours: Optional[int] = Field(default=None, ge=0, le=24)
    stress_baseline: Optional[int] = Field(default=None, ge=1, le=10)
    feels_like_myself: Optional[str] = Field(default=None, max_length=2000)


class BaselinePayload(CamelModel):
    energy_baseline: Optional[int] = None
    sleep_hours: Optional[int] = None
    stress_baseline: Optional[int] = None
    feels_like_myself: Optional[str] = None


class SignalsInput(CamelModel):
    user_id: UUID
    physical: List[str] = Field(default_factory=list)
    emotional: List[str] = Field(default_factory=list)
    behavioral: List[str] = Field(default_factory=list)
    early_warning: Optional[str] = Field(default=None, max_length=2000)


class SignalsPayload(CamelModel):
    physical: List[str] = Field(default_factory=list)
    emotional: List[str] = Field(default_factory=list)
    behavioral: List[str] = Field(default_factory=list)
    early_warning: Optional[str] = None


class SupportInput(CamelModel):
    user_id: UUID
    preferred_support: List[str] = Field(default_factory=list)
    trusted_contacts: List[str] = Field(default_factory=list)
    avoid: Optional[str] = Field(default=None, max_length=2000)


class SupportPayload(CamelModel):
    preferred_support: List[str] = Field(default_factory=list)
    trusted_contacts: List[str] = Field(default_factory=list)
    avoid: Optional[str] = None


class ActionCreate(CamelModel):
    user_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=30)
    duration_min: Optional[int] = Field(default=None, ge=1, le=240)
    is_favorite: bool = False


class ActionUpdate(CamelModel):
    user_id: UUID
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=30)
    duration_min: Optional[int] = Field(default=None, ge=1, le=240)
    is_favorite: Optional[bool] = None


class ActionPayload(CamelModel):
    id: UUID
    title: str
    category: Optional[str] = None
    duration_min: Optional[int] = None
    is_favorite: bool
    created_at: datetime


class ReflectionCreate(CamelModel):
    user_id: UUID
    prompt: Optional[str] = Field(default=None, max_length=500)
    response: str = Field(..., min_length=1, max_length=5000)
    what_helped: Optional[str] = Field(default=None, max_length=2000)


class ReflectionUpdate(CamelModel):
    user_id: UUID
    prompt: Optional[str] = Field(default=None, max_length=500)
    response: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    what_helped: Optional[str] = Field(default=None, max_length=2000)


class ReflectionPayload(CamelModel):
    id: UUID
    prompt: Optional[str] = None
    response: str
    what_helped: Optional[str] = None
    created_at: datetime


class BlueprintPayload(CamelModel):
    id: UUID
    title: str
    current_section: Optional[str] = None
    is_complete: bool
    baseline: Optional[BaselinePayload] = None
    signals: Optional[SignalsPayload] = None
    support: Optional[SupportPayload] = None
    actions: List[ActionPayload] = Field(default_factory=list)
    reflections: List[ReflectionPayload] = Field(default_factory=list)
    updated_at: datetime
