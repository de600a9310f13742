"""Pydantic schemas for body scans."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from app.api.schemas.common import CamelModel


class BodyScanCreate(CamelModel):
    user_id: UUID
    current_state: Optional[str] = Field(default=None, max_length=500)
    body_goal: Optional[str] = Field(default=None, pattern="^(slim_fit|build_muscle|tone|maintain|endurance|custom)$")
    focus_areas: List[str] = Field(default_factory=list)
    energy_level: Optional[str] = Field(default=None, pattern="^(low|fluctuating|stable|high)?$")
    height_cm: Optional[int] = Field(default=None, ge=0, le=300)
    weight_kg: Optional[int] = Field(default=None, ge=0, le=500)
    notes: Optional[str] = Field(default=None, max_length=2000)
    photo_poses: List[str] = Field(default_factory=list)


class BodyScanPayload(CamelModel):
    id: UUID
    current_state: Optional[str] = None
    body_goal: Optional[str] = None
    focus_areas: List[str] = Field(default_factory=list)
    energy_level: Optional[str] = None
    height_cm: Optional[int] = None
    weight_kg: Optional[int] = None
    notes: Optional[str] = None
    photo_poses: List[str] = Field(default_factory=list)
    created_at: datetime
