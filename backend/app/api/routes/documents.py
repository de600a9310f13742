"""Document import API routes: upload, analyze, commit."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.schemas.documents import (
    AnalysisResponse,
    AnalyzeRequest,
    CommitRequest,
    CommitResponse,
    DocumentItemPayload,
    DocumentSummary,
    DocumentUploadResponse,
)
from app.core.errors import UserFacingError
from app.db.deps import get_db
from app.db.models.document import DocumentItem, ImportedDocument
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services.document_analyzer import CONTEXTS, analyze_document
from app.services.document_commit import commit_document_items
from app.services.document_parser import extract_text
from app.services.upload_rules import DOCUMENT_RULES, is_image, validate_upload
from app.services.user_service import get_or_create_user, record_activity

router = APIRouter(prefix="/api/documents", tags=["documents"])

ANALYZED_STATUSES = {"analyzed", "committed"}


@router.post("/upload", response_model=DocumentUploadResponse)
def upload_document(
    http_request: Request,
    file: UploadFile = File(...),
    user_id: UUID = Form(...),
    context: Optional[str] = Form(default=None),
    db: Session = Depends(get_db),
) -> DocumentUploadResponse:
    """Validate and store an upload, extracting its text for analysis."""
    request_id = getattr(http_request.state, "request_id", None)
    file_name = file.filename or "upload"
    content = file.file.read()

    metadata: Dict[str, Any] = {
        "route": "/api/documents/upload",
        "user_id": str(user_id),
        "size_bytes": len(content),
        "context": context,
    }

    with trace("documents.upload", metadata=metadata, user_id=str(user_id), request_id=request_id) as span:
        mime_type = validate_upload(file_name, file.content_type, len(content), DOCUMENT_RULES)
        normalized_context = _normalize_context(context)
        parsed = extract_text(content, mime_type, file_name)
        annotate(span, mime_type=mime_type, text_length=len(parsed.text))

        user = get_or_create_user(db, user_id)
        document = ImportedDocument(
            user_id=user.id,
            kind="document",
            file_name=file_name,
            mime_type=mime_type,
            size_bytes=len(content),
            context=normalized_context,
            status="uploaded",
            extracted_text=parsed.text or None,
            content=content if is_image(mime_type) else None,
            metadata_json=parsed.metadata or None,
        )
        db.add(document)
        db.flush()

        record_activity(
            db,
            user.id,
            "document_uploaded",
            {"document_id": str(document.id), "file_name": file_name, "mime_type": mime_type},
            reason="Document uploaded for import",
            request_id=request_id,
        )
        _commit(db, "Failed to save document")
        db.refresh(document)

    log_metric("documents.upload.size_bytes", len(content), metadata={"mime_type": mime_type})
    return DocumentUploadResponse(document_id=document.id, file_name=document.file_name, status=document.status)


@router.get("", response_model=List[DocumentSummary])
def list_documents(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the documents"),
    db: Session = Depends(get_db),
) -> List[DocumentSummary]:
    """List a user's imported documents, newest first."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("documents.list", metadata={"route": "/api/documents"}, user_id=str(user_id), request_id=request_id):
        documents = (
            db.query(ImportedDocument)
            .filter(ImportedDocument.user_id == user_id, ImportedDocument.kind == "document")
            .order_by(ImportedDocument.created_at.desc())
            .all()
        )
        return [_serialize_summary(document) for document in documents]


@router.post("/{document_id}/analyze", response_model=AnalysisResponse)
def analyze(
    document_id: UUID,
    http_request: Request,
    payload: AnalyzeRequest,
    db: Session = Depends(get_db),
) -> AnalysisResponse:
    """Extract items from an uploaded document. Repeat calls return the stored analysis."""
    request_id = getattr(http_request.state, "request_id", None)
    document = _get_document(db, document_id, payload.user_id)

    metadata: Dict[str, Any] = {
        "route": "/api/documents/{id}/analyze",
        "document_id": str(document_id),
        "regenerate": payload.regenerate,
    }
    with trace("documents.analyze", metadata=metadata, user_id=str(document.user_id), request_id=request_id) as span:
        if document.status in ANALYZED_STATUSES and not payload.regenerate:
            annotate(span, cached=True)
            return _serialize_analysis(document)

        document.status = "analyzing"
        document.error_code = None
        _commit(db, "Failed to update document")

        try:
            outcome = analyze_document(
                text=document.extracted_text or "",
                file_name=document.file_name,
                context=document.context,
                image=document.content if is_image(document.mime_type) else None,
                mime_type=document.mime_type,
                request_id=request_id,
            )
        except UserFacingError as exc:
            document.status = "error"
            document.error_code = exc.code
            _commit(db, "Failed to update document")
            raise

        for item in list(document.items):
            if item.linked_entity_id is None:
                document.items.remove(item)
        offset = len(document.items)
        for position, analyzed in enumerate(outcome.items, start=offset):
            document.items.append(
                DocumentItem(
                    position=position,
                    item_type=analyzed.item_type,
                    title=analyzed.title,
                    description=analyzed.description or None,
                    details=analyzed.details or None,
                    confidence=analyzed.confidence,
                    destination_system=analyzed.destination_system,
                    is_selected=analyzed.is_selected,
                )
            )

        document.status = "analyzed"
        document.document_title = outcome.document_title
        document.summary = outcome.summary
        document.analysis_json = {
            "confidence": outcome.confidence,
            "clarifyingQuestions": outcome.clarifying_questions,
            "source": outcome.source,
        }
        record_activity(
            db,
            document.user_id,
            "document_analyzed",
            {"document_id": str(document.id), "items": len(outcome.items), "source": outcome.source},
            reason="Document analyzed",
            request_id=request_id,
        )
        _commit(db, "Failed to save analysis")
        db.refresh(document)
        annotate(span, items=len(outcome.items), source=outcome.source)

    log_metric("documents.analyze.items", len(outcome.items), metadata={"source": outcome.source})
    log_metric("documents.analyze.llm", 1 if outcome.source == "llm" else 0)
    return _serialize_analysis(document)


@router.post("/{document_id}/commit", response_model=CommitResponse)
def commit(
    document_id: UUID,
    payload: CommitRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> CommitResponse:
    """Save the selected items into calendar, meals, workouts and routines."""
    request_id = getattr(http_request.state, "request_id", None)
    document = _get_document(db, document_id, payload.user_id)

    metadata: Dict[str, Any] = {
        "route": "/api/documents/{id}/commit",
        "document_id": str(document_id),
        "selected": len(payload.item_ids),
    }
    with trace("documents.commit", metadata=metadata, user_id=str(payload.user_id), request_id=request_id) as span:
        if document.status not in ANALYZED_STATUSES:
            raise UserFacingError(
                "NOT_ANALYZED",
                "This document hasn't been analyzed yet.",
                ["Analyze the document first"],
                status_code=status.HTTP_409_CONFLICT,
            )

        outcome = commit_document_items(db, document, payload.item_ids)
        record_activity(
            db,
            document.user_id,
            "document_committed",
            {
                "document_id": str(document.id),
                "committed": outcome.committed,
                "already_linked": outcome.already_linked,
                "skipped": outcome.skipped,
            },
            reason="Document items saved",
            request_id=request_id,
        )
        _commit(db, "Failed to save items")
        annotate(span, committed=outcome.total)

    log_metric("documents.commit.items", outcome.total, metadata={"user_id": str(payload.user_id)})
    return CommitResponse(
        message=outcome.message,
        committed=outcome.committed,
        already_linked=outcome.already_linked,
        skipped=outcome.skipped,
    )


def _normalize_context(context: Optional[str]) -> Optional[str]:
    if context is None or context == "":
        return None
    if context not in CONTEXTS:
        raise UserFacingError(
            "INVALID_CONTEXT",
            "That import area isn't recognised.",
            [f"Use one of: {', '.join(CONTEXTS)}"],
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    return None if context == "general" else context


def _get_document(db: Session, document_id: UUID, user_id: UUID) -> ImportedDocument:
    document = db.get(ImportedDocument, document_id)
    if not document or document.kind != "document":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    if document.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Document does not belong to user")
    return document


def _commit(db: Session, detail: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:  # pragma: no cover - DB constraint guard
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc


def _serialize_summary(document: ImportedDocument) -> DocumentSummary:
    return DocumentSummary(
        id=document.id,
        file_name=document.file_name,
        mime_type=document.mime_type,
        size_bytes=document.size_bytes,
        context=document.context,
        status=document.status,
        document_title=document.document_title,
        summary=document.summary,
        item_count=len(document.items),
        error_code=document.error_code,
        created_at=document.created_at,
    )


def _serialize_analysis(document: ImportedDocument) -> AnalysisResponse:
    analysis = document.analysis_json if isinstance(document.analysis_json, dict) else {}
    return AnalysisResponse(
        document_id=document.id,
        document_title=document.document_title or document.file_name,
        summary=document.summary or "",
        confidence=float(analysis.get("confidence") or 0.0),
        items=[DocumentItemPayload.model_validate(item) for item in document.items],
        clarifying_questions=list(analysis.get("clarifyingQuestions") or []),
        source=str(analysis.get("source") or "heuristic"),
    )
