"""Wellness blueprint persistence helpers."""
from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.base import Base
from app.db.models.blueprint import RecoveryReflection, StabilizingAction, WellnessBlueprint
from app.db.types import utcnow

SectionT = TypeVar("SectionT", bound=Base)


def get_blueprint(db: Session, user_id: UUID) -> Optional[WellnessBlueprint]:
    return db.query(WellnessBlueprint).filter(WellnessBlueprint.user_id == user_id).one_or_none()


def get_or_create_blueprint(db: Session, user_id: UUID) -> tuple[WellnessBlueprint, bool]:
    """Return the user's blueprint, staging a new one on first access."""
    blueprint = get_blueprint(db, user_id)
    if blueprint:
        return blueprint, False
    blueprint = WellnessBlueprint(user_id=user_id, is_complete=False)
    db.add(blueprint)
    db.flush()
    return blueprint, True


def get_section(db: Session, model: Type[SectionT], blueprint: WellnessBlueprint) -> Optional[SectionT]:
    return db.query(model).filter(model.blueprint_id == blueprint.id).one_or_none()


def upsert_section(db: Session, model: Type[SectionT], blueprint: WellnessBlueprint, values: Dict[str, Any]) -> SectionT:
    """Create or overwrite the single row for a one-per-blueprint section."""
    section = get_section(db, model, blueprint)
    if section is None:
        section = model(blueprint_id=blueprint.id, **values)
        db.add(section)
    else:
        for key, value in values.items():
            setattr(section, key, value)
    blueprint.updated_at = utcnow()
    db.flush()
    return section


def list_actions(db: Session, blueprint: WellnessBlueprint) -> list[StabilizingAction]:
    return (
        db.query(StabilizingAction)
        .filter(StabilizingAction.blueprint_id == blueprint.id)
        .order_by(StabilizingAction.is_favorite.desc(), StabilizingAction.created_at.asc())
        .all()
    )


def list_reflections(db: Session, blueprint: WellnessBlueprint) -> list[RecoveryReflection]:
    return (
        db.query(RecoveryReflection)
        .filter(RecoveryReflection.blueprint_id == blueprint.id)
        .order_by(RecoveryReflection.created_at.desc())
        .all()
    )
