"""Downstream life-system ORM models fed by imports and onboarding."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, text as sa_text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.types import JSONBCompat, utcnow


class Routine(Base):
    __tablename__ = "routines"
    __table_args__ = (Index("ix_routines_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    steps = Column(JSONBCompat, nullable=False, default=list)
    time_of_day = Column(String(length=20), nullable=True)
    source = Column(String(length=30), nullable=False, server_default=sa_text("'manual'"))
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class WorkoutPlan(Base):
    __tablename__ = "workout_plans"
    __table_args__ = (Index("ix_workout_plans_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    details = Column(JSONBCompat, nullable=True)
    source = Column(String(length=30), nullable=False, server_default=sa_text("'manual'"))
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class MealPlan(Base):
    __tablename__ = "meal_plans"
    __table_args__ = (Index("ix_meal_plans_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    source = Column(String(length=30), nullable=False, server_default=sa_text("'manual'"))
    source_document_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    meals = relationship("Meal", back_populates="meal_plan", cascade="all, delete-orphan", order_by="Meal.position")


class Meal(Base):
    __tablename__ = "meals"
    __table_args__ = (Index("ix_meals_meal_plan_id", "meal_plan_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    meal_plan_id = Column(UUID(as_uuid=True), ForeignKey("meal_plans.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    title = Column(Text, nullable=False)
    meal_type = Column(String(length=20), nullable=True)
    day = Column(String(length=12), nullable=True)
    ingredients = Column(JSONBCompat, nullable=False, default=list)
    instructions = Column(Text, nullable=True)
    details = Column(JSONBCompat, nullable=True)

    meal_plan = relationship("MealPlan", back_populates="meals")


class Goal(Base):
    __tablename__ = "goals"
    __table_args__ = (Index("ix_goals_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    wellness_dimension = Column(String(length=30), nullable=True)
    progress = Column(Integer, nullable=False, default=0)
    target_value = Column(Integer, nullable=False, default=100)
    is_active = Column(Boolean, nullable=False, server_default=sa_text("true"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Habit(Base):
    __tablename__ = "habits"
    __table_args__ = (Index("ix_habits_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(String(length=20), nullable=False, server_default=sa_text("'daily'"))
    reminder_time = Column(String(length=10), nullable=True)
    is_active = Column(Boolean, nullable=False, server_default=sa_text("true"))
    streak = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
