"""Calendar event CRUD routes."""
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.schemas.calendar import CalendarEventCreate, CalendarEventPayload, CalendarEventUpdate
from app.api.schemas.common import DeleteResponse
from app.db.deps import get_db
from app.db.models.calendar_event import CalendarEvent
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.user_service import get_or_create_user, record_activity

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get("", response_model=List[CalendarEventPayload])
def list_events(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the events"),
    from_: Optional[date] = Query(default=None, alias="from"),
    to: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[CalendarEventPayload]:
    """List events for a user, optionally bounded by an inclusive date range."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("calendar.list", metadata={"route": "/api/calendar"}, user_id=str(user_id), request_id=request_id):
        query = db.query(CalendarEvent).filter(CalendarEvent.user_id == user_id)
        if from_:
            query = query.filter(CalendarEvent.event_date >= from_)
        if to:
            query = query.filter(CalendarEvent.event_date <= to)
        events = query.order_by(CalendarEvent.event_date.asc(), CalendarEvent.start_time.asc()).all()
        return [CalendarEventPayload.model_validate(event) for event in events]


@router.post("", response_model=CalendarEventPayload, status_code=status.HTTP_201_CREATED)
def create_event(payload: CalendarEventCreate, http_request: Request, db: Session = Depends(get_db)) -> CalendarEventPayload:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("calendar.create", metadata={"route": "/api/calendar"}, user_id=str(payload.user_id), request_id=request_id):
        _check_time_order(payload.start_time, payload.end_time)
        user = get_or_create_user(db, payload.user_id)
        event = CalendarEvent(
            user_id=user.id,
            title=payload.title,
            description=payload.description,
            event_date=payload.event_date,
            start_time=None if payload.all_day else payload.start_time,
            end_time=None if payload.all_day else payload.end_time,
            all_day=payload.all_day or payload.start_time is None,
            category=payload.category,
            recurrence=None if payload.recurrence == "none" else payload.recurrence,
            source="manual",
            metadata_json=payload.metadata,
        )
        db.add(event)
        db.flush()
        record_activity(
            db,
            user.id,
            "calendar_event_created",
            {"event_id": str(event.id)},
            reason="Calendar event created",
            request_id=request_id,
        )
        _commit(db)
        db.refresh(event)

    log_metric("calendar.event_created", 1, metadata={"source": "manual"})
    return CalendarEventPayload.model_validate(event)


@router.get("/{event_id}", response_model=CalendarEventPayload)
def get_event(
    event_id: UUID,
    user_id: UUID = Query(..., description="User ID owning the event"),
    db: Session = Depends(get_db),
) -> CalendarEventPayload:
    return CalendarEventPayload.model_validate(_get_event(db, event_id, user_id))


@router.patch("/{event_id}", response_model=CalendarEventPayload)
def update_event(
    event_id: UUID,
    payload: CalendarEventUpdate,
    http_request: Request,
    db: Session = Depends(get_db),
) -> CalendarEventPayload:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("calendar.update", metadata={"route": "/api/calendar/{id}"}, user_id=str(payload.user_id), request_id=request_id):
        event = _get_event(db, event_id, payload.user_id)
        changes = payload.model_dump(exclude_unset=True, exclude={"user_id"})
        if "title" in changes and changes["title"] is None:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="title must not be empty")
        if changes.get("recurrence") == "none":
            changes["recurrence"] = None
        for field, value in changes.items():
            setattr(event, field, value)
        if event.all_day:
            event.start_time = None
            event.end_time = None
        _check_time_order(event.start_time, event.end_time)
        record_activity(
            db,
            event.user_id,
            "calendar_event_updated",
            {"event_id": str(event.id), "fields": sorted(changes)},
            reason="Calendar event updated",
            request_id=request_id,
        )
        _commit(db)
        db.refresh(event)
    return CalendarEventPayload.model_validate(event)


@router.delete("/{event_id}", response_model=DeleteResponse)
def delete_event(
    event_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the event"),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("calendar.delete", metadata={"route": "/api/calendar/{id}"}, user_id=str(user_id), request_id=request_id):
        event = _get_event(db, event_id, user_id)
        db.delete(event)
        record_activity(
            db,
            user_id,
            "calendar_event_deleted",
            {"event_id": str(event_id)},
            reason="Calendar event deleted",
            request_id=request_id,
        )
        _commit(db)
    return DeleteResponse(id=str(event_id))


def _get_event(db: Session, event_id: UUID, user_id: UUID) -> CalendarEvent:
    event = db.get(CalendarEvent, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Calendar event not found")
    if event.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Calendar event does not belong to user")
    return event


def _check_time_order(start: Optional[str], end: Optional[str]) -> None:
    if start and end and end < start:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="end_time must not be before start_time")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:  # pragma: no cover - DB constraint guard
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save calendar event") from exc
