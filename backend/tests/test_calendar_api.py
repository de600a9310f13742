from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import models  # noqa: F401  ensure models are loaded
from app.db.base import Base
from app.db.deps import get_db
from app.db.models.activity_log import ActivityLog
from app.main import app


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


def _create(test_client, user_id, **fields):
    body = {"userId": str(user_id), "title": "Yoga", "eventDate": "2026-10-21", **fields}
    return test_client.post("/api/calendar", json=body)


def test_create_normalises_times_and_logs_activity(client):
    test_client, session_factory = client
    user_id = uuid4()

    response = _create(test_client, user_id, startTime="6:30 PM", endTime="19:15", category="fitness")

    assert response.status_code == 201
    data = response.json()
    assert data["startTime"] == "18:30"
    assert data["endTime"] == "19:15"
    assert data["allDay"] is False
    assert data["source"] == "manual"
    with session_factory() as db:
        assert db.query(ActivityLog).filter(ActivityLog.action_type == "calendar_event_created").count() == 1


def test_event_without_start_time_is_all_day(client):
    test_client, _ = client

    data = _create(test_client, uuid4()).json()

    assert data["allDay"] is True
    assert data["startTime"] is None


def test_create_rejects_bad_times(client):
    test_client, _ = client
    user_id = uuid4()

    unreadable = _create(test_client, user_id, startTime="half past")
    backwards = _create(test_client, user_id, startTime="10:00", endTime="09:00")

    assert unreadable.status_code == 422
    assert backwards.status_code == 422
    assert backwards.json()["detail"] == "end_time must not be before start_time"


def test_list_filters_by_user_and_range(client):
    test_client, _ = client
    user_id = uuid4()
    _create(test_client, user_id, title="Early", eventDate="2026-10-01")
    _create(test_client, user_id, title="Late", eventDate="2026-10-30", startTime="08:00")
    _create(test_client, user_id, title="Middle", eventDate="2026-10-15")
    _create(test_client, uuid4(), title="Someone else", eventDate="2026-10-15")

    everything = test_client.get("/api/calendar", params={"user_id": str(user_id)}).json()
    ranged = test_client.get(
        "/api/calendar",
        params={"user_id": str(user_id), "from": "2026-10-10", "to": "2026-10-30"},
    ).json()

    assert [row["title"] for row in everything] == ["Early", "Middle", "Late"]
    assert [row["title"] for row in ranged] == ["Middle", "Late"]


def test_patch_updates_fields_and_checks_order(client):
    test_client, _ = client
    user_id = uuid4()
    event_id = _create(test_client, user_id, startTime="09:00", endTime="10:00").json()["id"]

    updated = test_client.patch(
        f"/api/calendar/{event_id}",
        json={"userId": str(user_id), "title": "Evening yoga", "startTime": "7 pm", "endTime": "8:00 PM"},
    )
    backwards = test_client.patch(f"/api/calendar/{event_id}", json={"userId": str(user_id), "endTime": "06:00"})

    assert updated.status_code == 200
    assert updated.json()["title"] == "Evening yoga"
    assert (updated.json()["startTime"], updated.json()["endTime"]) == ("19:00", "20:00")
    assert backwards.status_code == 422


def test_switching_to_all_day_clears_times(client):
    test_client, _ = client
    user_id = uuid4()
    event_id = _create(test_client, user_id, startTime="09:00").json()["id"]

    data = test_client.patch(f"/api/calendar/{event_id}", json={"userId": str(user_id), "allDay": True}).json()

    assert data["allDay"] is True
    assert data["startTime"] is None


def test_get_and_delete_check_ownership(client):
    test_client, _ = client
    user_id = uuid4()
    event_id = _create(test_client, user_id).json()["id"]

    assert test_client.get(f"/api/calendar/{event_id}", params={"user_id": str(uuid4())}).status_code == 403
    assert test_client.delete(f"/api/calendar/{event_id}", params={"user_id": str(uuid4())}).status_code == 403
    assert test_client.get(f"/api/calendar/{uuid4()}", params={"user_id": str(user_id)}).status_code == 404

    deleted = test_client.delete(f"/api/calendar/{event_id}", params={"user_id": str(user_id)})
    assert deleted.status_code == 200
    assert deleted.json() == {"id": event_id, "deleted": True}
    assert test_client.get(f"/api/calendar/{event_id}", params={"user_id": str(user_id)}).status_code == 404
