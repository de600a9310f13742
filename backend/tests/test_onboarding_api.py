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
from app.db.models.onboarding import LifeSystem, OnboardingProfile
from app.db.models.user import User
from app.main import app
from app.services import llm
from app.services.onboarding_service import FALLBACK_GOALS, FALLBACK_HABITS


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


def test_completion_seeds_focus_habits_and_goals(client):
    test_client, session_factory = client
    user_id = uuid4()

    response = test_client.post(
        "/api/onboarding/complete",
        json={
            "userId": str(user_id),
            "responsibilities": ["work", "family"],
            "otherResponsibility": "Caring for my dad",
            "priorities": ["health"],
            "freeTimeHours": "1-2",
            "peakMotivationTime": "morning",
            "wellnessFocus": ["sleep", "energy"],
            "systemName": "  Steady Weeks ",
            "wakeTime": "6:30 AM",
            "messages": [{"role": "assistant", "content": "Hi"}, {"role": "user", "content": "Hello"}],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["systemName"] == "Steady Weeks"
    assert (data["habitsCreated"], data["goalsCreated"], data["source"]) == (2, 2, "fallback")

    habits = test_client.get("/api/habits", params={"user_id": str(user_id)}).json()
    goals = test_client.get("/api/goals", params={"user_id": str(user_id)}).json()
    assert {habit["title"] for habit in habits} == {"Wind-down routine", "Morning movement"}
    assert {goal["title"] for goal in goals} == {"Sleep more consistently", "Feel more energized"}

    with session_factory() as db:
        user = db.get(User, user_id)
        assert user.onboarding_completed is True
        profile = db.query(OnboardingProfile).one()
        assert profile.responsibilities == ["work", "family", "Caring for my dad"]
        assert len(profile.conversation_data) == 2
        life_system = db.query(LifeSystem).one()
        assert life_system.schedule_blocks == [{"label": "Wake up", "time": "6:30 AM"}]
        assert life_system.weekly_schedule[0].endswith("in the morning")


def test_completion_without_focus_uses_general_defaults(client):
    test_client, _ = client
    user_id = uuid4()

    data = test_client.post("/api/onboarding/complete", json={"userId": str(user_id)}).json()

    assert data["systemName"] == "My Life System"
    assert data["habitsCreated"] == len(FALLBACK_HABITS)
    assert data["goalsCreated"] == len(FALLBACK_GOALS)


def test_completion_uses_model_suggestions_when_available(client, monkeypatch):
    test_client, _ = client
    monkeypatch.setattr(llm, "llm_available", lambda: True)
    monkeypatch.setattr(
        llm,
        "request_json",
        lambda *args, **kwargs: {
            "suggestedHabits": [{"title": "Walk after lunch", "frequency": "daily"}, {"description": "untitled"}],
            "suggestedGoals": [{"title": "Move every day"}],
            "weeklyScheduleSuggestions": ["Walk at noon"],
        },
    )

    data = test_client.post("/api/onboarding/complete", json={"userId": str(uuid4())}).json()

    assert (data["habitsCreated"], data["goalsCreated"], data["source"]) == (1, 1, "llm")


def test_completion_rejects_more_than_three_focus_areas(client):
    test_client, _ = client

    response = test_client.post(
        "/api/onboarding/complete",
        json={"userId": str(uuid4()), "wellnessFocus": ["sleep", "energy", "focus", "creative"]},
    )

    assert response.status_code == 422


def test_status_reports_completion(client):
    test_client, _ = client
    user_id = uuid4()

    before = test_client.get("/api/onboarding/status", params={"user_id": str(user_id)}).json()
    test_client.post("/api/onboarding/complete", json={"userId": str(user_id), "systemName": "Calm"})
    after = test_client.get("/api/onboarding/status", params={"user_id": str(user_id)}).json()

    assert before["onboardingCompleted"] is False
    assert after["onboardingCompleted"] is True
    assert after["systemName"] == "Calm"
