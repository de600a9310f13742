"""Imported document and extracted item ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, LargeBinary, String, Text, text as sa_text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.types import JSONBCompat, utcnow


class ImportedDocument(Base):
    __tablename__ = "imported_documents"
    __table_args__ = (
        Index("ix_imported_documents_user_id", "user_id"),
        Index("ix_imported_documents_status", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # "document" for the general import flow, "meal_plan" for the meal-plan importer.
    kind = Column(String(length=20), nullable=False, server_default=sa_text("'document'"))
    file_name = Column(Text, nullable=False)
    mime_type = Column(String(length=120), nullable=False)
    size_bytes = Column(Integer, nullable=False)
    context = Column(String(length=20), nullable=True)
    status = Column(String(length=20), nullable=False, server_default=sa_text("'uploaded'"))
    extracted_text = Column(Text, nullable=True)
    content = Column(LargeBinary, nullable=True)
    document_title = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    analysis_json = Column(JSONBCompat, nullable=True)
    error_code = Column(String(length=50), nullable=True)
    metadata_json = Column("metadata", JSONBCompat, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "DocumentItem",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentItem.position",
    )


class DocumentItem(Base):
    __tablename__ = "document_items"
    __table_args__ = (Index("ix_document_items_document_id", "document_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    document_id = Column(UUID(as_uuid=True), ForeignKey("imported_documents.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    item_type = Column(String(length=30), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    details = Column(JSONBCompat, nullable=True)
    confidence = Column(Float, nullable=False, default=0.5)
    destination_system = Column(String(length=30), nullable=False)
    is_selected = Column(Boolean, nullable=False, server_default=sa_text("true"))
    linked_entity_id = Column(UUID(as_uuid=True), nullable=True)
    linked_entity_type = Column(String(length=30), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    document = relationship("ImportedDocument", back_populates="items")
