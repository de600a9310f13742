"""Meal-plan import API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.schemas.meal_import import (
    MealImportAnalysis,
    MealImportAnalyzeRequest,
    MealImportCalendarRequest,
    MealImportCalendarResponse,
    MealImportCommitRequest,
    MealImportCommitResponse,
    MealImportUploadResponse,
    SavedRoutine,
)
from app.core.errors import UserFacingError
from app.db.deps import get_db
from app.db.models.document import ImportedDocument
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services.document_parser import extract_text
from app.services.meal_plan_import import (
    commit_meal_plan,
    scan_meal_plan,
    schedule_suggestions,
)
from app.services.upload_rules import MEAL_PLAN_RULES, is_image, validate_upload
from app.services.user_service import get_or_create_user, record_activity

router = APIRouter(prefix="/api/import", tags=["meal-import"])


@router.post("/upload", response_model=MealImportUploadResponse)
def upload_meal_plan(
    http_request: Request,
    file: UploadFile = File(...),
    user_id: UUID = Form(...),
    db: Session = Depends(get_db),
) -> MealImportUploadResponse:
    """Accept a single PDF or photo of a meal plan."""
    request_id = getattr(http_request.state, "request_id", None)
    file_name = file.filename or "meal-plan"
    content = file.file.read()

    with trace(
        "meal_import.upload",
        metadata={"route": "/api/import/upload", "size_bytes": len(content)},
        user_id=str(user_id),
        request_id=request_id,
    ):
        mime_type = validate_upload(file_name, file.content_type, len(content), MEAL_PLAN_RULES)
        parsed = extract_text(content, mime_type, file_name)

        user = get_or_create_user(db, user_id)
        document = ImportedDocument(
            user_id=user.id,
            kind="meal_plan",
            file_name=file_name,
            mime_type=mime_type,
            size_bytes=len(content),
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
            "meal_plan_uploaded",
            {"document_id": str(document.id), "file_name": file_name},
            reason="Meal plan uploaded",
            request_id=request_id,
        )
        _commit(db, "Failed to save meal plan upload")
        db.refresh(document)

    return MealImportUploadResponse(document_id=document.id, file_name=document.file_name, status=document.status)


@router.post("/analyze/{document_id}", response_model=MealImportAnalysis)
def analyze_meal_plan(
    document_id: UUID,
    http_request: Request,
    payload: MealImportAnalyzeRequest,
    db: Session = Depends(get_db),
) -> MealImportAnalysis:
    """Scan the upload into editable meals, prep steps and calendar suggestions."""
    request_id = getattr(http_request.state, "request_id", None)
    document = _get_meal_plan_document(db, document_id, payload.user_id)

    with trace(
        "meal_import.analyze",
        metadata={"route": "/api/import/analyze/{id}", "document_id": str(document_id)},
        user_id=str(document.user_id),
        request_id=request_id,
    ) as span:
        if isinstance(document.analysis_json, dict) and document.status in ("analyzed", "committed"):
            annotate(span, cached=True)
            return MealImportAnalysis.model_validate({**document.analysis_json, "documentId": document.id})

        document.status = "analyzing"
        _commit(db, "Failed to update meal plan")
        try:
            scan = scan_meal_plan(
                text=document.extracted_text or "",
                file_name=document.file_name,
                image=document.content if is_image(document.mime_type) else None,
                mime_type=document.mime_type,
                request_id=request_id,
            )
        except UserFacingError as exc:
            document.status = "error"
            document.error_code = exc.code
            _commit(db, "Failed to update meal plan")
            raise

        result = MealImportAnalysis(
            document_id=document.id,
            plan_title=scan.plan_title,
            meals=scan.meals,
            routine=scan.routine,
            calendar_suggestions=scan.calendar_suggestions,
            questions=scan.questions,
            source=scan.source,
        )
        document.status = "analyzed"
        document.document_title = scan.plan_title
        document.analysis_json = result.model_dump(mode="json", by_alias=True, exclude={"document_id"})
        _commit(db, "Failed to save meal plan analysis")
        annotate(span, meals=len(scan.meals), steps=len(scan.routine.steps), source=scan.source)

    log_metric("meal_import.analyze.meals", len(scan.meals), metadata={"source": scan.source})
    return result


@router.post("/commit/{document_id}", response_model=MealImportCommitResponse)
def commit_meal_plan_import(
    document_id: UUID,
    payload: MealImportCommitRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> MealImportCommitResponse:
    """Save the selected meals and the prep routine."""
    request_id = getattr(http_request.state, "request_id", None)
    document = _get_meal_plan_document(db, document_id, payload.user_id)

    with trace(
        "meal_import.commit",
        metadata={"route": "/api/import/commit/{id}", "meals": len(payload.meals)},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        plan, meals_count, routine = commit_meal_plan(db, document, payload.plan_title, payload.meals, payload.routine)
        record_activity(
            db,
            document.user_id,
            "meal_plan_committed",
            {"document_id": str(document.id), "meal_plan_id": str(plan.id), "meals": meals_count},
            reason="Meal plan saved",
            request_id=request_id,
        )
        _commit(db, "Failed to save meal plan")

    log_metric("meal_import.commit.meals", meals_count)
    return MealImportCommitResponse(
        meal_plan_id=plan.id,
        meals_count=meals_count,
        routine=SavedRoutine(id=routine.id, title=routine.title, steps=list(routine.steps)) if routine else None,
    )


@router.post("/calendar/{document_id}", response_model=MealImportCalendarResponse)
def add_meal_plan_to_calendar(
    document_id: UUID,
    payload: MealImportCalendarRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> MealImportCalendarResponse:
    """Create calendar events for the selected prep and shopping suggestions."""
    request_id = getattr(http_request.state, "request_id", None)
    document = _get_meal_plan_document(db, document_id, payload.user_id)

    with trace(
        "meal_import.calendar",
        metadata={"route": "/api/import/calendar/{id}", "suggestions": len(payload.suggestions)},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        events = schedule_suggestions(db, document, payload.suggestions)
        event_ids = [event.id for event in events]
        record_activity(
            db,
            document.user_id,
            "meal_plan_scheduled",
            {"document_id": str(document.id), "events": len(events)},
            reason="Meal prep added to calendar",
            request_id=request_id,
        )
        _commit(db, "Failed to create calendar events")

    return MealImportCalendarResponse(events_created=len(event_ids), event_ids=event_ids)


def _get_meal_plan_document(db: Session, document_id: UUID, user_id: UUID) -> ImportedDocument:
    document = db.get(ImportedDocument, document_id)
    if not document or document.kind != "meal_plan":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meal plan upload not found")
    if document.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Meal plan does not belong to user")
    return document


def _commit(db: Session, detail: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:  # pragma: no cover - DB constraint guard
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc
