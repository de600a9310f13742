from __future__ import annotations

from uuid import uuid4

import httpx
import pytest

from app.client.api import ApiClient, ApiError
from app.client.query_cache import DOCUMENT_COMMIT_KEYS, MEAL_IMPORT_COMMIT_KEYS, QueryCache
from app.main import app


def _client(handler) -> ApiClient:
    transport = httpx.MockTransport(handler)
    return ApiClient(client=httpx.Client(transport=transport, base_url="http://test"), user_id=uuid4())


def test_successful_json_is_returned():
    api = _client(lambda request: httpx.Response(200, json={"ok": True, "path": request.url.path}))

    assert api.post("/api/things", {"a": 1}) == {"ok": True, "path": "/api/things"}


def test_empty_body_returns_none():
    api = _client(lambda request: httpx.Response(204))

    assert api.api_request("DELETE", "/api/things/1") is None


def test_get_drops_empty_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(dict(request.url.params))
        return httpx.Response(200, json=[])

    _client(handler).get("/api/calendar", user_id="u1", to=None)

    assert seen == {"user_id": "u1"}


def test_user_facing_payload_is_preserved():
    payload = {
        "error": "FILE_TOO_LARGE",
        "userMessage": "Please upload a file smaller than 5MB.",
        "suggestions": ["Compress the file"],
        "isRecoverable": True,
    }
    api = _client(lambda request: httpx.Response(413, json=payload))

    with pytest.raises(ApiError) as excinfo:
        api.post("/api/documents/upload")

    error = excinfo.value
    assert error.code == "FILE_TOO_LARGE"
    assert error.user_message == "Please upload a file smaller than 5MB."
    assert error.suggestions == ["Compress the file"]
    assert error.status_code == 413


@pytest.mark.parametrize(
    ("status_code", "body", "message", "recoverable"),
    [
        (404, {"detail": "Document not found"}, "Document not found", True),
        (403, {"detail": "Document does not belong to user"}, "Document does not belong to user", False),
        (422, {"detail": [{"loc": ["body"], "msg": "field required"}]}, "Please check the details and try again.", True),
        (500, None, "Something went wrong. Please try again.", True),
    ],
)
def test_other_errors_get_a_readable_message(status_code, body, message, recoverable):
    def handler(request: httpx.Request) -> httpx.Response:
        if body is None:
            return httpx.Response(status_code, text="Internal Server Error")
        return httpx.Response(status_code, json=body)

    with pytest.raises(ApiError) as excinfo:
        _client(handler).post("/api/x")

    assert excinfo.value.code == f"HTTP_{status_code}"
    assert excinfo.value.user_message == message
    assert excinfo.value.is_recoverable is recoverable


def test_network_failure_is_reported_as_recoverable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError) as excinfo:
        _client(handler).post("/api/x")

    assert excinfo.value.code == "NETWORK_ERROR"
    assert excinfo.value.is_recoverable is True


def test_query_cache_fetches_once_and_invalidates_by_path():
    cache = QueryCache()
    calls = []
    key = ("/api/routines", "user-1")

    first = cache.fetch(key, lambda: calls.append(1) or ["routine"])
    second = cache.fetch(key, lambda: calls.append(1) or ["other"])

    assert first == second == ["routine"]
    assert len(calls) == 1

    notified = []
    unsubscribe = cache.subscribe("/api/routines", notified.append)
    cache.set(("/api/habits", "user-1"), ["habit"])

    assert cache.invalidate(*DOCUMENT_COMMIT_KEYS) == 1
    assert notified == ["/api/routines"]
    assert cache.contains(("/api/habits", "user-1"))

    unsubscribe()
    cache.invalidate("/api/routines")
    assert notified == ["/api/routines"]


def test_invalidated_queries_are_served_by_the_backend() -> None:
    listings = {route.path for route in app.routes if "GET" in getattr(route, "methods", set())}

    assert set(DOCUMENT_COMMIT_KEYS) <= listings
    assert set(MEAL_IMPORT_COMMIT_KEYS) <= listings
