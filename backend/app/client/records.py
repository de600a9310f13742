"""Records kept in the local draft store, serialised with camelCase keys."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import Field, field_validator

from app.api.schemas.common import CamelModel

BODY_GOALS = ("slim_fit", "build_muscle", "tone", "maintain", "endurance", "custom")
ENERGY_LEVELS = ("low", "fluctuating", "stable", "high")
PHOTO_POSES = ("front", "side", "back")
FREE_TIME_BUCKETS = ("less-1", "1-2", "2-4", "4-plus")
RESOURCE_TYPES = ("workout", "meal_plan", "routine", "resource")


class StoredRecord(CamelModel):
    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)


class Measurements(StoredRecord):
    height_cm: Optional[int] = None
    weight_kg: Optional[int] = None

    @field_validator("height_cm", "weight_kg", mode="before")
    @classmethod
    def _whole_numbers(cls, value: Any) -> Optional[int]:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return int(value)


class BodyPhoto(StoredRecord):
    pose: str
    image: str = ""
    captured_at: int = 0


class BodyProfile(StoredRecord):
    current_state: str = ""
    body_goal: Optional[str] = None
    focus_areas: List[str] = Field(default_factory=list)
    measurements: Measurements = Field(default_factory=Measurements)
    energy_level: str = ""
    notes: str = ""
    photos: List[BodyPhoto] = Field(default_factory=list)
    updated_at: int = 0

    @field_validator("body_goal", mode="before")
    @classmethod
    def _known_goal(cls, value: Any) -> Optional[str]:
        return value if value in BODY_GOALS else None


class BodyProfileDraft(StoredRecord):
    profile: BodyProfile
    saved_at: int


class OnboardingData(StoredRecord):
    responsibilities: List[str] = Field(default_factory=list)
    other_responsibility: str = ""
    priorities: List[str] = Field(default_factory=list)
    other_priority: str = ""
    free_time_hours: str = ""
    peak_motivation_time: str = ""
    wellness_focus: List[str] = Field(default_factory=list)
    system_name: str = ""
    wake_time: str = ""
    sleep_time: str = ""

    @field_validator("free_time_hours", mode="before")
    @classmethod
    def _known_bucket(cls, value: Any) -> str:
        return value if value in FREE_TIME_BUCKETS else ""


class ChatMessage(StoredRecord):
    role: str
    content: str = ""


class OnboardingDraft(StoredRecord):
    data: OnboardingData
    messages: List[ChatMessage] = Field(default_factory=list)
    step: int = 0
    saved_at: int


class MoodCheckIn(StoredRecord):
    id: str
    mood: str = ""
    energy: Optional[int] = None
    note: str = ""
    timestamp: int = 0


class UserResource(StoredRecord):
    id: str
    resource_type: str = "resource"
    variant: str = ""
    title: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    created_at: int = 0


class SavedRoutine(StoredRecord):
    id: str
    title: str = ""
    steps: List[str] = Field(default_factory=list)
    created_at: int = 0


class LocalEvent(StoredRecord):
    id: str
    title: str
    event_date: str  # ISO date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool = False
    category: Optional[str] = None
    description: Optional[str] = None
    created_at: int = 0
