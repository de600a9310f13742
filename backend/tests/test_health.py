from uuid import uuid4

from fastapi.testclient import TestClient


def _get_client() -> TestClient:
    from app.main import app

    return TestClient(app)


def test_health_endpoint_returns_ok() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_request_id_generated_and_returned() -> None:
    client = _get_client()
    response = client.get("/health")

    assert response.headers.get("X-Request-Id")


def test_request_id_echoed_from_header() -> None:
    client = _get_client()
    req_id = "import-request-7"
    response = client.get("/health", headers={"X-Request-Id": req_id})

    assert response.headers.get("X-Request-Id") == req_id


def test_user_facing_errors_keep_request_id() -> None:
    client = _get_client()
    req_id = "upload-check-1"

    response = client.post(
        "/api/documents/upload",
        files={"file": ("archive.zip", b"PK", "application/zip")},
        data={"user_id": str(uuid4())},
        headers={"X-Request-Id": req_id},
    )

    assert response.status_code == 415
    assert response.headers.get("X-Request-Id") == req_id
    assert set(response.json()) == {"error", "userMessage", "suggestions", "isRecoverable"}
