"""Body scan ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, utcnow


class BodyScan(Base):
    __tablename__ = "body_scans"
    __table_args__ = (Index("ix_body_scans_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    current_state = Column(Text, nullable=True)
    body_goal = Column(String(length=20), nullable=True)
    focus_areas = Column(JSONBCompat, nullable=False, default=list)
    energy_level = Column(String(length=20), nullable=True)
    height_cm = Column(Integer, nullable=True)
    weight_kg = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    # Pose names only; image payloads stay on the device.
    photo_poses = Column(JSONBCompat, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
