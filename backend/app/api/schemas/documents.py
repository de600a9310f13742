"""Pydantic schemas for the document import API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field

from app.api.schemas.common import CamelModel


class DocumentUploadResponse(CamelModel):
    document_id: UUID
    file_name: str
    status: str


class DocumentSummary(CamelModel):
    id: UUID
    file_name: str
    mime_type: str
    size_bytes: int
    context: Optional[str] = None
    status: str
    document_title: Optional[str] = None
    summary: Optional[str] = None
    item_count: int = 0
    error_code: Optional[str] = None
    created_at: datetime


class DocumentItemPayload(CamelModel):
    id: UUID
    document_id: UUID
    item_type: str
    title: str
    description: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    confidence: float
    destination_system: str
    is_selected: bool
    linked_entity_id: Optional[UUID] = None
    linked_entity_type: Optional[str] = None


class AnalyzeRequest(CamelModel):
    user_id: UUID
    regenerate: bool = False


class AnalysisResponse(CamelModel):
    document_id: UUID
    document_title: str
    summary: str
    confidence: float
    items: List[DocumentItemPayload] = Field(default_factory=list)
    clarifying_questions: List[str] = Field(default_factory=list)
    source: str


class CommitRequest(CamelModel):
    user_id: UUID
    item_ids: List[UUID] = Field(default_factory=list)


class CommitResponse(CamelModel):
    message: str
    committed: Dict[str, int] = Field(default_factory=dict)
    already_linked: int = 0
    skipped: int = 0
