from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.client.api import ApiClient, ApiError
from app.client.guest_storage import GuestStorage, MemoryStorage
from app.client.notifier import LoggingNotifier
from app.client.query_cache import QueryCache
from app.db import models  # noqa: F401  ensure models are loaded
from app.db.base import Base
from app.db.deps import get_db
from app.db.models.calendar_event import CalendarEvent
from app.db.models.document import ImportedDocument
from app.db.models.systems import Routine
from app.main import app
from app.services import llm
from app.wizards.document_import import UPLOAD_FALLBACK_SUGGESTIONS, DocumentImportWizard, ImportStep, QueuedFile

PLAN_TEXT = b"""Weekly Wellness Plan
- Breakfast: oats with berries and eggs
- Squat 3 sets of 10 reps
- Morning routine: meditate and journal
- Dentist appointment 2026-11-03 at 9:30 am
- Pack a salad
"""
SECOND_TEXT = b"""Dinner: chicken and rice
Evening stretch and journal
"""


@pytest.fixture(autouse=True)
def no_llm(monkeypatch):
    monkeypatch.setattr(llm, "llm_available", lambda: False)


@pytest.fixture()
def client():
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

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _wizard(api: Any, **kwargs: Any) -> DocumentImportWizard:
    return DocumentImportWizard(api, GuestStorage(MemoryStorage()), QueryCache(), notifier=LoggingNotifier(), **kwargs)


def test_files_are_processed_one_after_another(client) -> None:
    test_client, session_factory = client
    api = ApiClient(client=test_client, user_id=uuid4())
    finished: List[List[Dict[str, Any]]] = []
    wizard = _wizard(api, on_complete=finished.append)
    wizard.cache.set(("/api/documents", str(api.user_id)), ["stale"])
    wizard.add_files([QueuedFile("plan.txt", PLAN_TEXT, "text/plain"), QueuedFile("second.txt", SECOND_TEXT, "text/plain")])

    assert wizard.start() == ImportStep.PREVIEW
    assert len(wizard.items) == 5
    preselected = {item["id"] for item in wizard.items if item["confidence"] >= 0.7}
    assert wizard.selected == preselected
    assert len(preselected) == 4

    assert wizard.commit() is True
    assert wizard.cursor == 1
    assert wizard.step == ImportStep.PREVIEW
    assert wizard.queue[0].status == "done"
    assert [item["destinationSystem"] for item in wizard.items] == ["nutrition", "routines"]
    assert not wizard.cache.contains(("/api/documents", str(api.user_id)))

    assert wizard.commit() is True
    assert wizard.step == ImportStep.COMPLETE
    assert len(finished) == 1 and len(finished[0]) == 2
    assert [resource.title for resource in wizard.storage.get_user_resources("workout")] == ["Squat 3 sets of 10 reps"]
    assert len(wizard.storage.get_user_resources("meal_plan")) == 2

    with session_factory() as db:
        assert db.query(CalendarEvent).count() == 1
        assert db.query(Routine).count() == 2
        assert {document.status for document in db.query(ImportedDocument).all()} == {"committed"}


def test_skipping_a_file_moves_on_without_saving(client) -> None:
    test_client, session_factory = client
    api = ApiClient(client=test_client, user_id=uuid4())
    wizard = _wizard(api)
    wizard.add_files([QueuedFile("plan.txt", PLAN_TEXT, "text/plain"), QueuedFile("second.txt", SECOND_TEXT, "text/plain")])
    wizard.start()

    assert wizard.skip_file() == ImportStep.PREVIEW
    assert wizard.queue[0].status == "skipped"
    assert wizard.skip_file() == ImportStep.COMPLETE

    with session_factory() as db:
        assert {document.status for document in db.query(ImportedDocument).all()} == {"analyzed"}


def test_context_is_sent_with_each_upload(client) -> None:
    test_client, session_factory = client
    api = ApiClient(client=test_client, user_id=uuid4())
    wizard = _wizard(api, context="nutrition")
    wizard.add_files([QueuedFile("plan.txt", PLAN_TEXT, "text/plain")])

    wizard.start()

    with session_factory() as db:
        assert db.query(ImportedDocument).one().context == "nutrition"
    assert wizard.items[-1]["confidence"] >= 0.6


def test_rejected_files_never_reach_the_queue() -> None:
    wizard = _wizard(_FakeApi())

    rejected = wizard.add_files([QueuedFile("archive.zip", b"PK", "application/zip"), QueuedFile("ok.txt", b"Lunch: soup", "text/plain")])

    assert [error.code for error in rejected] == ["UNSUPPORTED_FILE_TYPE"]
    assert [entry.file.file_name for entry in wizard.queue] == ["ok.txt"]
    assert wizard.notifier.last.variant == "destructive"


class _FakeApi:
    def __init__(self, fail_on: Optional[str] = None, error: Optional[ApiError] = None):
        self.user_id = uuid4()
        self.fail_on = fail_on
        self.error = error or ApiError("ANALYSIS_FAILED", "We couldn't analyze that file.", ["Try again"], status_code=500)
        self.calls: List[tuple] = []
        self.during_call: Optional[Callable[[str], None]] = None

    def api_request(self, method: str, path: str, **kwargs: Any) -> Any:
        self.calls.append((method, path))
        if self.during_call:
            self.during_call(path)
        if self.fail_on and path.endswith(self.fail_on):
            raise self.error
        if path.endswith("/upload"):
            return {"documentId": f"doc-{len(self.calls)}"}
        if path.endswith("/analyze"):
            return {"items": [{"id": "i-1", "confidence": 0.9, "destinationSystem": "workout"}]}
        return {"message": "Saved 1 items"}


def test_analysis_failure_returns_to_upload_and_retry_reuses_the_upload() -> None:
    api = _FakeApi(fail_on="/analyze")
    wizard = _wizard(api)
    wizard.add_files([QueuedFile("a.txt", b"Squat day", "text/plain")])

    assert wizard.start() == ImportStep.UPLOAD
    assert wizard.cursor == 0
    assert wizard.queue[0].status == "error"
    assert wizard.error.code == "ANALYSIS_FAILED"
    assert wizard.notifier.last.title == "Analysis failed"

    api.fail_on = None
    assert wizard.retry() == ImportStep.PREVIEW
    assert [path for _, path in api.calls].count("/api/documents/upload") == 1


def test_upload_failure_without_hints_gets_fallback_suggestions() -> None:
    api = _FakeApi(fail_on="/upload", error=ApiError("HTTP_500", "Something went wrong. Please try again.", [], status_code=500))
    wizard = _wizard(api)
    wizard.add_files([QueuedFile("a.txt", b"Squat day", "text/plain")])

    wizard.start()

    assert wizard.error.suggestions == UPLOAD_FALLBACK_SUGGESTIONS
    assert wizard.notifier.last.title == "Couldn't process that file"


def test_commit_failure_keeps_the_selection() -> None:
    api = _FakeApi()
    wizard = _wizard(api)
    wizard.add_files([QueuedFile("a.txt", b"Squat day", "text/plain")])
    wizard.start()
    api.fail_on = "/commit"

    assert wizard.commit() is False
    assert wizard.step == ImportStep.PREVIEW
    assert wizard.selected == {"i-1"}


def test_commit_requires_a_selection() -> None:
    wizard = _wizard(_FakeApi())
    wizard.add_files([QueuedFile("a.txt", b"Squat day", "text/plain")])
    wizard.start()
    wizard.select_none()

    assert wizard.commit() is False
    assert wizard.error.code == "NO_ITEMS_SELECTED"


def test_responses_after_close_are_ignored() -> None:
    api = _FakeApi()
    wizard = _wizard(api)
    wizard.add_files([QueuedFile("a.txt", b"Squat day", "text/plain")])

    def close_during_analysis(path: str) -> None:
        if path.endswith("/analyze"):
            wizard.close()

    api.during_call = close_during_analysis
    wizard.start()

    assert wizard.step == ImportStep.UPLOAD
    assert wizard.queue == []
    assert wizard.analysis is None


def _paths(api: _FakeApi, suffix: str) -> List[str]:
    return [path for _, path in api.calls if path.endswith(suffix)]


def test_each_commit_starts_exactly_the_next_analysis() -> None:
    api = _FakeApi()
    wizard = _wizard(api)
    wizard.add_files([QueuedFile("a.txt", b"Squat day", "text/plain"), QueuedFile("b.txt", b"Leg day", "text/plain")])

    wizard.start()
    assert len(_paths(api, "/analyze")) == 1

    assert wizard.commit() is True
    assert wizard.cursor == 1
    assert len(_paths(api, "/analyze")) == 2
    assert len(_paths(api, "/commit")) == 1

    assert wizard.commit() is True
    assert wizard.step == ImportStep.COMPLETE
    assert len(_paths(api, "/analyze")) == 2
    assert len(_paths(api, "/upload")) == 2
    assert len(_paths(api, "/commit")) == 2
