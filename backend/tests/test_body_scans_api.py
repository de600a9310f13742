from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.client.api import ApiClient
from app.client.debounce import Debouncer
from app.client.guest_storage import GuestStorage, MemoryStorage
from app.db import models  # noqa: F401  ensure models are loaded
from app.db.base import Base
from app.db.deps import get_db
from app.main import app
from app.wizards.body_scan import BodyScanStep, BodyScanWizard


class _NoopTimer:
    def __init__(self, delay, callback):
        pass

    def start(self):
        pass

    def cancel(self):
        pass


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


def test_create_and_list_scans(client):
    test_client, _ = client
    user_id = uuid4()

    created = test_client.post(
        "/api/body-scans",
        json={
            "userId": str(user_id),
            "bodyGoal": "tone",
            "focusAreas": ["Core"],
            "energyLevel": "stable",
            "heightCm": 165,
            "weightKg": 60,
            "photoPoses": ["front", "front", "side"],
        },
    )

    assert created.status_code == 201
    assert created.json()["photoPoses"] == ["front", "side"]
    listed = test_client.get("/api/body-scans", params={"user_id": str(user_id)}).json()
    assert [scan["bodyGoal"] for scan in listed] == ["tone"]
    assert test_client.get("/api/body-scans", params={"user_id": str(uuid4())}).json() == []


@pytest.mark.parametrize(
    "fields",
    [
        {"photoPoses": ["top"]},
        {"bodyGoal": "bulk"},
        {"energyLevel": "sleepy"},
        {"heightCm": 400},
    ],
)
def test_invalid_scans_are_rejected(client, fields):
    test_client, _ = client

    response = test_client.post("/api/body-scans", json={"userId": str(uuid4()), **fields})

    assert response.status_code == 422


def test_delete_checks_ownership(client):
    test_client, _ = client
    user_id = uuid4()
    scan_id = test_client.post("/api/body-scans", json={"userId": str(user_id)}).json()["id"]

    assert test_client.delete(f"/api/body-scans/{scan_id}", params={"user_id": str(uuid4())}).status_code == 403
    assert test_client.delete(f"/api/body-scans/{scan_id}", params={"user_id": str(user_id)}).status_code == 200
    assert test_client.delete(f"/api/body-scans/{scan_id}", params={"user_id": str(user_id)}).status_code == 404


def test_wizard_finish_lands_on_the_server(client):
    test_client, _ = client
    api = ApiClient(client=test_client, user_id=uuid4())
    wizard = BodyScanWizard(GuestStorage(MemoryStorage()), api=api, debouncer=Debouncer(timer_factory=_NoopTimer))
    wizard.open()
    wizard.set_body_goal("endurance")
    wizard.set_height(70)
    wizard.add_photo("side", "data:image/png;base64,AA==")

    assert wizard.finish() is True
    assert wizard.step == BodyScanStep.COMPLETE

    scans = test_client.get("/api/body-scans", params={"user_id": str(api.user_id)}).json()
    assert len(scans) == 1
    assert scans[0]["bodyGoal"] == "endurance"
    assert scans[0]["heightCm"] == 178
    assert scans[0]["photoPoses"] == ["side"]
