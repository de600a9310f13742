"""Runs the app with Opik switched on, using a recording stand-in for the SDK client."""
from __future__ import annotations

import importlib
import os
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import models  # noqa: F401  ensure models are loaded
from app.db.base import Base
from app.db.deps import get_db
from app.observability import client as client_module

pytestmark = pytest.mark.skipif(
    "OPIK_API_KEY" not in os.environ, reason="OPIK_API_KEY env var required for Opik tests"
)


class _RecordedSpan:
    def __init__(self, name, metadata):
        self.name = name
        self.metadata = dict(metadata or {})
        self.closed = False

    def update(self, metadata=None, **_):
        self.metadata.update(metadata or {})

    def end(self):
        self.closed = True


class _RecordingOpik:
    def __init__(self, *args, **kwargs):
        self.spans = []

    def trace(self, name=None, metadata=None, **_):
        span = _RecordedSpan(name, metadata)
        self.spans.append(span)
        return span


def _reload_app(monkeypatch, enabled: bool):
    monkeypatch.setenv("OPIK_ENABLED", "true" if enabled else "false")
    import app.core.config as config_module
    import app.main as main_module

    importlib.reload(config_module)
    importlib.reload(client_module)
    if enabled:
        monkeypatch.setattr(client_module, "Opik", _RecordingOpik)
    client_module.reset_opik_client()
    return importlib.reload(main_module).app


@pytest.fixture()
def traced_app(monkeypatch):
    monkeypatch.setenv("OPIK_PROJECT", "lifesystem-test")
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool, future=True)
    Base.metadata.create_all(bind=engine)
    SessionForTest = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    def override_get_db():
        with SessionForTest() as db:
            yield db

    fastapi_app = _reload_app(monkeypatch, enabled=True)
    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    _reload_app(monkeypatch, enabled=False)


def test_calendar_create_is_traced_end_to_end(traced_app):
    with TestClient(traced_app) as test_client:
        created = test_client.post(
            "/api/calendar",
            json={"userId": str(uuid4()), "title": "Traced yoga", "eventDate": "2026-10-21", "startTime": "7:00 AM"},
        )

    assert created.status_code == 201
    spans = client_module.get_opik_client().spans
    assert {"calendar.create", "metric:calendar.event_created"} <= {span.name for span in spans}
    assert all(span.closed for span in spans)
