"""Helpers for working with users and their activity trail."""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.context import bind_user_id
from app.db.models.activity_log import ActivityLog
from app.db.models.user import User


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    bind_user_id(str(user_id))
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id, onboarding_completed=False)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def record_activity(
    db: Session,
    user_id: UUID,
    action_type: str,
    payload: Dict[str, Any],
    *,
    reason: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ActivityLog:
    """Stage an activity log row; the caller owns the commit."""
    body = dict(payload)
    if request_id:
        body.setdefault("request_id", request_id)
    entry = ActivityLog(user_id=user_id, action_type=action_type, action_payload=body, reason=reason)
    db.add(entry)
    return entry
