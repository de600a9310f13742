"""Periodic housekeeping for imported documents."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models.document import ImportedDocument
from app.db.types import as_utc, utcnow

logger = logging.getLogger(__name__)

RETAINED_STATUSES = {"committed"}


@dataclass
class MaintenanceResult:
    expired_analyses: int
    purged_documents: int


def expire_stale_analyses(db: Session, *, now: Optional[datetime] = None, stale_minutes: Optional[int] = None) -> int:
    """Mark analyses stuck in ``analyzing`` past the window as failed."""
    now = now or utcnow()
    cutoff = now - timedelta(minutes=stale_minutes if stale_minutes is not None else settings.stale_analysis_minutes)
    expired = 0
    for document in db.query(ImportedDocument).filter(ImportedDocument.status == "analyzing").all():
        if as_utc(document.updated_at) < cutoff:
            document.status = "error"
            document.error_code = "ANALYSIS_TIMEOUT"
            expired += 1
    return expired


def purge_abandoned_documents(db: Session, *, now: Optional[datetime] = None, retention_days: Optional[int] = None) -> int:
    """Delete uncommitted uploads older than the retention window."""
    now = now or utcnow()
    cutoff = now - timedelta(days=retention_days if retention_days is not None else settings.document_retention_days)
    purged = 0
    candidates = db.query(ImportedDocument).filter(ImportedDocument.status.notin_(RETAINED_STATUSES)).all()
    for document in candidates:
        if as_utc(document.created_at) < cutoff:
            db.delete(document)
            purged += 1
    return purged


def run_maintenance(db: Session, *, now: Optional[datetime] = None) -> MaintenanceResult:
    """Run both housekeeping passes in one transaction."""
    expired = expire_stale_analyses(db, now=now)
    purged = purge_abandoned_documents(db, now=now)
    db.commit()
    if expired or purged:
        logger.info("Maintenance expired=%s purged=%s", expired, purged)
    return MaintenanceResult(expired_analyses=expired, purged_documents=purged)
