"""Onboarding profile and generated life-system ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, utcnow


class OnboardingProfile(Base):
    __tablename__ = "onboarding_profiles"
    __table_args__ = (Index("ix_onboarding_profiles_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    responsibilities = Column(JSONBCompat, nullable=False, default=list)
    priorities = Column(JSONBCompat, nullable=False, default=list)
    free_time_hours = Column(String(length=10), nullable=True)
    peak_motivation_time = Column(String(length=20), nullable=True)
    wellness_focus = Column(JSONBCompat, nullable=False, default=list)
    wake_time = Column(String(length=10), nullable=True)
    sleep_time = Column(String(length=10), nullable=True)
    conversation_data = Column(JSONBCompat, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class LifeSystem(Base):
    __tablename__ = "life_systems"
    __table_args__ = (Index("ix_life_systems_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    weekly_schedule = Column(JSONBCompat, nullable=True)
    suggested_habits = Column(JSONBCompat, nullable=True)
    schedule_blocks = Column(JSONBCompat, nullable=True)
    meal_suggestions = Column(JSONBCompat, nullable=True)
    source = Column(String(length=20), nullable=False, default="fallback")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
