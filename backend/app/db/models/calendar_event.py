"""Calendar event ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, String, Text, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, utcnow


class CalendarEvent(Base):
    __tablename__ = "calendar_events"
    __table_args__ = (
        Index("ix_calendar_events_user_id", "user_id"),
        Index("ix_calendar_events_event_date", "event_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(Date, nullable=False)
    # Wall-clock "HH:MM" strings; the UI has no timezone model.
    start_time = Column(String(length=5), nullable=True)
    end_time = Column(String(length=5), nullable=True)
    all_day = Column(Boolean, nullable=False, server_default=sa_text("false"))
    category = Column(String(length=30), nullable=True)
    recurrence = Column(String(length=30), nullable=True)
    source = Column(String(length=30), nullable=False, server_default=sa_text("'manual'"))
    metadata_json = Column("metadata", JSONBCompat, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
