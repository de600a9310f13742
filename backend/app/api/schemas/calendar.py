"""Pydantic schemas for calendar events."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.api.schemas.common import CamelModel
from app.services.dates import parse_clock


def _clock(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    parsed = parse_clock(value)
    if parsed is None:
        raise ValueError("time must look like HH:MM or 7:30 PM")
    return parsed


class CalendarEventCreate(CamelModel):
    user_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    event_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool = False
    category: Optional[str] = Field(default=None, max_length=30)
    recurrence: Optional[str] = Field(default=None, pattern="^(none|daily|weekly|monthly)$")
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalise_time(cls, value: Optional[str]) -> Optional[str]:
        return _clock(value)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be empty")
        return stripped


class CalendarEventUpdate(CamelModel):
    user_id: UUID
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    event_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: Optional[bool] = None
    category: Optional[str] = Field(default=None, max_length=30)
    recurrence: Optional[str] = Field(default=None, pattern="^(none|daily|weekly|monthly)$")

    @field_validator("start_time", "end_time")
    @classmethod
    def normalise_time(cls, value: Optional[str]) -> Optional[str]:
        return _clock(value)


class CalendarEventPayload(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    event_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool
    category: Optional[str] = None
    recurrence: Optional[str] = None
    source: str
    created_at: datetime
    updated_at: datetime
