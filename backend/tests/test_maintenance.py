from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import models  # noqa: F401  ensure models are loaded
from app.db.base import Base
from app.db.models.document import DocumentItem, ImportedDocument
from app.db.models.user import User
from app.services.maintenance import expire_stale_analyses, purge_abandoned_documents, run_maintenance
from app.worker import scheduler_main

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def _document(db, *, status: str, age: timedelta, idle: timedelta | None = None) -> ImportedDocument:
    user = User(id=uuid4())
    db.add(user)
    db.flush()
    document = ImportedDocument(
        user_id=user.id,
        file_name="plan.txt",
        mime_type="text/plain",
        size_bytes=10,
        status=status,
        created_at=NOW - age,
        updated_at=NOW - (idle if idle is not None else age),
    )
    db.add(document)
    db.commit()
    return document


def test_only_stale_analyses_are_expired(session):
    stuck = _document(session, status="analyzing", age=timedelta(hours=1), idle=timedelta(minutes=20))
    running = _document(session, status="analyzing", age=timedelta(hours=1), idle=timedelta(minutes=5))
    finished = _document(session, status="analyzed", age=timedelta(hours=1))

    expired = expire_stale_analyses(session, now=NOW, stale_minutes=15)

    assert expired == 1
    assert (stuck.status, stuck.error_code) == ("error", "ANALYSIS_TIMEOUT")
    assert running.status == "analyzing"
    assert finished.status == "analyzed"


def test_purge_keeps_committed_and_recent_documents(session):
    old_upload = _document(session, status="uploaded", age=timedelta(days=20))
    old_committed = _document(session, status="committed", age=timedelta(days=20))
    recent = _document(session, status="analyzed", age=timedelta(days=2))
    session.add(DocumentItem(document_id=old_upload.id, item_type="meal", title="Oats", destination_system="nutrition"))
    session.commit()
    kept_ids = {old_committed.id, recent.id}

    purged = purge_abandoned_documents(session, now=NOW, retention_days=14)
    session.commit()

    assert purged == 1
    assert {document.id for document in session.query(ImportedDocument).all()} == kept_ids
    assert session.query(DocumentItem).count() == 0


def test_run_maintenance_commits_both_passes(session):
    _document(session, status="analyzing", age=timedelta(days=30))
    _document(session, status="analyzing", age=timedelta(hours=2))

    result = run_maintenance(session, now=NOW)

    assert (result.expired_analyses, result.purged_documents) == (2, 1)
    session.expire_all()
    remaining = session.query(ImportedDocument).one()
    assert remaining.status == "error"


def test_worker_registers_maintenance_job():
    scheduler = BackgroundScheduler()

    scheduler_main.register_jobs(scheduler)

    job = scheduler.get_job("document_maintenance_job")
    assert job is not None
    assert job.func is scheduler_main.run_maintenance_job
