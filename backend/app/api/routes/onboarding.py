"""Onboarding completion routes."""
from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.schemas.onboarding import OnboardingCompleteRequest, OnboardingCompleteResponse, OnboardingStatus
from app.db.deps import get_db
from app.db.models.user import User
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services.onboarding_service import build_recommendations, complete_onboarding
from app.services.user_service import get_or_create_user, record_activity

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])


@router.post("/complete", response_model=OnboardingCompleteResponse)
def complete(payload: OnboardingCompleteRequest, http_request: Request, db: Session = Depends(get_db)) -> OnboardingCompleteResponse:
    """Persist onboarding answers and seed the user's life system, habits and goals."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/api/onboarding/complete",
        "focus": payload.wellness_focus,
        "free_time": payload.free_time_hours or None,
    }

    with trace("onboarding.complete", metadata=metadata, user_id=str(payload.user_id), request_id=request_id) as span:
        user = get_or_create_user(db, payload.user_id)
        recommendations = build_recommendations(payload, request_id=request_id)
        result = complete_onboarding(db, user, payload, recommendations)
        db.flush()
        record_activity(
            db,
            user.id,
            "onboarding_completed",
            {
                "life_system_id": str(result.life_system.id),
                "habits": result.habits_created,
                "goals": result.goals_created,
                "source": result.source,
            },
            reason="Onboarding completed",
            request_id=request_id,
        )
        try:
            db.commit()
        except IntegrityError as exc:  # pragma: no cover - DB constraint guard
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to complete onboarding") from exc
        db.refresh(result.life_system)
        annotate(span, habits=result.habits_created, goals=result.goals_created, source=result.source)

    log_metric("onboarding.completed", 1, metadata={"source": result.source})
    return OnboardingCompleteResponse(
        success=True,
        life_system_id=result.life_system.id,
        system_name=result.life_system.name,
        habits_created=result.habits_created,
        goals_created=result.goals_created,
        source=result.source,
    )


@router.get("/status", response_model=OnboardingStatus)
def onboarding_status(
    user_id: UUID = Query(..., description="User ID to check"),
    db: Session = Depends(get_db),
) -> OnboardingStatus:
    user = db.get(User, user_id)
    if not user:
        return OnboardingStatus(user_id=user_id, onboarding_completed=False)
    return OnboardingStatus(user_id=user.id, onboarding_completed=bool(user.onboarding_completed), system_name=user.system_name)
