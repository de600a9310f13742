"""Wellness blueprint routes."""
from __future__ import annotations

from typing import List, Type, Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.schemas.blueprint import (
    ActionCreate,
    ActionPayload,
    ActionUpdate,
    BaselineInput,
    BaselinePayload,
    BlueprintPayload,
    BlueprintUpdate,
    ReflectionCreate,
    ReflectionPayload,
    ReflectionUpdate,
    SignalsInput,
    SignalsPayload,
    SupportInput,
    SupportPayload,
)
from app.api.schemas.common import DeleteResponse
from app.db.deps import get_db
from app.db.models.blueprint import (
    BaselineProfile,
    RecoveryReflection,
    StabilizingAction,
    StressSignals,
    SupportPreferences,
    WellnessBlueprint,
)
from app.db.types import utcnow
from app.observability.tracing import trace
from app.services.blueprint_service import (
    get_blueprint,
    get_or_create_blueprint,
    get_section,
    list_actions,
    list_reflections,
    upsert_section,
)
from app.services.user_service import get_or_create_user, record_activity

router = APIRouter(prefix="/api/blueprint", tags=["blueprint"])


@router.get("", response_model=BlueprintPayload)
def read_blueprint(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the blueprint"),
    db: Session = Depends(get_db),
) -> BlueprintPayload:
    """Return the user's blueprint, creating an empty one on first visit."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("blueprint.read", metadata={"route": "/api/blueprint"}, user_id=str(user_id), request_id=request_id):
        get_or_create_user(db, user_id)
        blueprint, created = get_or_create_blueprint(db, user_id)
        if created:
            record_activity(db, user_id, "blueprint_created", {"blueprint_id": str(blueprint.id)}, request_id=request_id)
            _commit(db)
            db.refresh(blueprint)
        return _serialize_blueprint(db, blueprint)


@router.patch("", response_model=BlueprintPayload)
def update_blueprint(payload: BlueprintUpdate, db: Session = Depends(get_db)) -> BlueprintPayload:
    blueprint = _require_blueprint(db, payload.user_id)
    for field, value in payload.model_dump(exclude_unset=True, exclude={"user_id"}).items():
        if value is None and field in ("title", "is_complete"):
            continue
        setattr(blueprint, field, value)
    blueprint.updated_at = utcnow()
    _commit(db)
    db.refresh(blueprint)
    return _serialize_blueprint(db, blueprint)


@router.post("/baseline", response_model=BaselinePayload)
def save_baseline(payload: BaselineInput, db: Session = Depends(get_db)) -> BaselinePayload:
    return _save_section(db, BaselineProfile, payload, BaselinePayload)


@router.post("/signals", response_model=SignalsPayload)
def save_signals(payload: SignalsInput, db: Session = Depends(get_db)) -> SignalsPayload:
    return _save_section(db, StressSignals, payload, SignalsPayload)


@router.post("/support", response_model=SupportPayload)
def save_support(payload: SupportInput, db: Session = Depends(get_db)) -> SupportPayload:
    return _save_section(db, SupportPreferences, payload, SupportPayload)


@router.get("/actions", response_model=List[ActionPayload])
def read_actions(user_id: UUID = Query(...), db: Session = Depends(get_db)) -> List[ActionPayload]:
    blueprint = get_blueprint(db, user_id)
    if not blueprint:
        return []
    return [ActionPayload.model_validate(action) for action in list_actions(db, blueprint)]


@router.post("/actions", response_model=ActionPayload, status_code=status.HTTP_201_CREATED)
def create_action(payload: ActionCreate, db: Session = Depends(get_db)) -> ActionPayload:
    blueprint = _require_blueprint(db, payload.user_id)
    action = StabilizingAction(blueprint_id=blueprint.id, **payload.model_dump(exclude={"user_id"}))
    db.add(action)
    _commit(db)
    db.refresh(action)
    return ActionPayload.model_validate(action)


@router.patch("/actions/{action_id}", response_model=ActionPayload)
def update_action(action_id: UUID, payload: ActionUpdate, db: Session = Depends(get_db)) -> ActionPayload:
    action = _get_owned(db, StabilizingAction, action_id, payload.user_id, "Action")
    for field, value in payload.model_dump(exclude_unset=True, exclude={"user_id"}).items():
        if value is None and field in ("title", "is_favorite"):
            continue
        setattr(action, field, value)
    _commit(db)
    db.refresh(action)
    return ActionPayload.model_validate(action)


@router.delete("/actions/{action_id}", response_model=DeleteResponse)
def delete_action(action_id: UUID, user_id: UUID = Query(...), db: Session = Depends(get_db)) -> DeleteResponse:
    action = _get_owned(db, StabilizingAction, action_id, user_id, "Action")
    db.delete(action)
    _commit(db)
    return DeleteResponse(id=str(action_id))


@router.get("/reflections", response_model=List[ReflectionPayload])
def read_reflections(user_id: UUID = Query(...), db: Session = Depends(get_db)) -> List[ReflectionPayload]:
    blueprint = get_blueprint(db, user_id)
    if not blueprint:
        return []
    return [ReflectionPayload.model_validate(reflection) for reflection in list_reflections(db, blueprint)]


@router.post("/reflections", response_model=ReflectionPayload, status_code=status.HTTP_201_CREATED)
def create_reflection(payload: ReflectionCreate, db: Session = Depends(get_db)) -> ReflectionPayload:
    blueprint = _require_blueprint(db, payload.user_id)
    reflection = RecoveryReflection(blueprint_id=blueprint.id, **payload.model_dump(exclude={"user_id"}))
    db.add(reflection)
    _commit(db)
    db.refresh(reflection)
    return ReflectionPayload.model_validate(reflection)


@router.patch("/reflections/{reflection_id}", response_model=ReflectionPayload)
def update_reflection(reflection_id: UUID, payload: ReflectionUpdate, db: Session = Depends(get_db)) -> ReflectionPayload:
    reflection = _get_owned(db, RecoveryReflection, reflection_id, payload.user_id, "Reflection")
    for field, value in payload.model_dump(exclude_unset=True, exclude={"user_id"}).items():
        if value is None and field == "response":
            continue
        setattr(reflection, field, value)
    _commit(db)
    db.refresh(reflection)
    return ReflectionPayload.model_validate(reflection)


@router.delete("/reflections/{reflection_id}", response_model=DeleteResponse)
def delete_reflection(reflection_id: UUID, user_id: UUID = Query(...), db: Session = Depends(get_db)) -> DeleteResponse:
    reflection = _get_owned(db, RecoveryReflection, reflection_id, user_id, "Reflection")
    db.delete(reflection)
    _commit(db)
    return DeleteResponse(id=str(reflection_id))


SectionInput = Union[BaselineInput, SignalsInput, SupportInput]


def _save_section(db: Session, model: Type, payload: SectionInput, response_model: Type):
    get_or_create_user(db, payload.user_id)
    blueprint, _ = get_or_create_blueprint(db, payload.user_id)
    section = upsert_section(db, model, blueprint, payload.model_dump(exclude={"user_id"}))
    _commit(db)
    db.refresh(section)
    return response_model.model_validate(section)


def _require_blueprint(db: Session, user_id: UUID) -> WellnessBlueprint:
    blueprint = get_blueprint(db, user_id)
    if not blueprint:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blueprint not found")
    return blueprint


def _get_owned(db: Session, model: Type, entity_id: UUID, user_id: UUID, label: str):
    entity = db.get(model, entity_id)
    if not entity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    blueprint = db.get(WellnessBlueprint, entity.blueprint_id)
    if not blueprint or blueprint.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"{label} does not belong to user")
    return entity


def _serialize_blueprint(db: Session, blueprint: WellnessBlueprint) -> BlueprintPayload:
    baseline = get_section(db, BaselineProfile, blueprint)
    signals = get_section(db, StressSignals, blueprint)
    support = get_section(db, SupportPreferences, blueprint)
    return BlueprintPayload(
        id=blueprint.id,
        title=blueprint.title,
        current_section=blueprint.current_section,
        is_complete=bool(blueprint.is_complete),
        baseline=BaselinePayload.model_validate(baseline) if baseline else None,
        signals=SignalsPayload.model_validate(signals) if signals else None,
        support=SupportPayload.model_validate(support) if support else None,
        actions=[ActionPayload.model_validate(action) for action in list_actions(db, blueprint)],
        reflections=[ReflectionPayload.model_validate(reflection) for reflection in list_reflections(db, blueprint)],
        updated_at=blueprint.updated_at,
    )


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:  # pragma: no cover - DB constraint guard
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save blueprint") from exc
