"""Wellness blueprint ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, utcnow


class WellnessBlueprint(Base):
    __tablename__ = "wellness_blueprints"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    title = Column(Text, nullable=False, default="My Wellness Blueprint")
    current_section = Column(String(length=30), nullable=True)
    is_complete = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class BaselineProfile(Base):
    __tablename__ = "baseline_profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    blueprint_id = Column(UUID(as_uuid=True), ForeignKey("wellness_blueprints.id", ondelete="CASCADE"), nullable=False, unique=True)
    energy_baseline = Column(Integer, nullable=True)
    sleep_hours = Column(Integer, nullable=True)
    stress_baseline = Column(Integer, nullable=True)
    feels_like_myself = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class StressSignals(Base):
    __tablename__ = "stress_signals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    blueprint_id = Column(UUID(as_uuid=True), ForeignKey("wellness_blueprints.id", ondelete="CASCADE"), nullable=False, unique=True)
    physical = Column(JSONBCompat, nullable=False, default=list)
    emotional = Column(JSONBCompat, nullable=False, default=list)
    behavioral = Column(JSONBCompat, nullable=False, default=list)
    early_warning = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class StabilizingAction(Base):
    __tablename__ = "stabilizing_actions"
    __table_args__ = (Index("ix_stabilizing_actions_blueprint_id", "blueprint_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    blueprint_id = Column(UUID(as_uuid=True), ForeignKey("wellness_blueprints.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    category = Column(String(length=30), nullable=True)
    duration_min = Column(Integer, nullable=True)
    is_favorite = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class SupportPreferences(Base):
    __tablename__ = "support_preferences"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    blueprint_id = Column(UUID(as_uuid=True), ForeignKey("wellness_blueprints.id", ondelete="CASCADE"), nullable=False, unique=True)
    preferred_support = Column(JSONBCompat, nullable=False, default=list)
    trusted_contacts = Column(JSONBCompat, nullable=False, default=list)
    avoid = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class RecoveryReflection(Base):
    __tablename__ = "recovery_reflections"
    __table_args__ = (Index("ix_recovery_reflections_blueprint_id", "blueprint_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    blueprint_id = Column(UUID(as_uuid=True), ForeignKey("wellness_blueprints.id", ondelete="CASCADE"), nullable=False)
    prompt = Column(Text, nullable=True)
    response = Column(Text, nullable=False)
    what_helped = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
