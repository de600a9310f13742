"""Body scan routes."""
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.schemas.body_scans import BodyScanCreate, BodyScanPayload
from app.api.schemas.common import DeleteResponse
from app.db.deps import get_db
from app.db.models.body_scan import BodyScan
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.user_service import get_or_create_user, record_activity

router = APIRouter(prefix="/api/body-scans", tags=["body-scans"])

PHOTO_POSES = ("front", "side", "back")


@router.get("", response_model=List[BodyScanPayload])
def list_body_scans(
    user_id: UUID = Query(..., description="User ID owning the scans"),
    db: Session = Depends(get_db),
) -> List[BodyScanPayload]:
    scans = db.query(BodyScan).filter(BodyScan.user_id == user_id).order_by(BodyScan.created_at.desc()).all()
    return [BodyScanPayload.model_validate(scan) for scan in scans]


@router.post("", response_model=BodyScanPayload, status_code=status.HTTP_201_CREATED)
def create_body_scan(payload: BodyScanCreate, http_request: Request, db: Session = Depends(get_db)) -> BodyScanPayload:
    """Record a body scan snapshot; photos stay on the device and only pose names are kept."""
    request_id = getattr(http_request.state, "request_id", None)
    invalid = [pose for pose in payload.photo_poses if pose not in PHOTO_POSES]
    if invalid:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown photo poses: {', '.join(invalid)}")

    with trace("body_scans.create", metadata={"route": "/api/body-scans"}, user_id=str(payload.user_id), request_id=request_id):
        user = get_or_create_user(db, payload.user_id)
        scan = BodyScan(
            user_id=user.id,
            current_state=payload.current_state,
            body_goal=payload.body_goal,
            focus_areas=list(payload.focus_areas),
            energy_level=payload.energy_level or None,
            height_cm=payload.height_cm,
            weight_kg=payload.weight_kg,
            notes=payload.notes,
            photo_poses=list(dict.fromkeys(payload.photo_poses)),
        )
        db.add(scan)
        db.flush()
        record_activity(db, user.id, "body_scan_recorded", {"body_scan_id": str(scan.id)}, reason="Body scan saved", request_id=request_id)
        try:
            db.commit()
        except IntegrityError as exc:  # pragma: no cover - DB constraint guard
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save body scan") from exc
        db.refresh(scan)

    log_metric("body_scans.photos", len(scan.photo_poses or []))
    return BodyScanPayload.model_validate(scan)


@router.delete("/{scan_id}", response_model=DeleteResponse)
def delete_body_scan(
    scan_id: UUID,
    user_id: UUID = Query(..., description="User ID owning the scan"),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    scan = db.get(BodyScan, scan_id)
    if not scan:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Body scan not found")
    if scan.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Body scan does not belong to user")
    db.delete(scan)
    db.commit()
    return DeleteResponse(id=str(scan_id))
