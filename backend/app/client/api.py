"""HTTP mutation layer used by the wizards."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

import httpx

from app.core.errors import UserFacingError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
NETWORK_SUGGESTIONS = ["Check your connection", "Try again"]


class ApiError(UserFacingError):
    """A failed API call, carrying the server's user-facing error when it sent one."""


class ApiClient:
    """Thin wrapper around ``httpx.Client`` that raises ``ApiError`` on failure.

    Pass ``client`` to reuse an existing transport, e.g. a FastAPI ``TestClient``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        user_id: Optional[UUID] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(base_url=base_url, timeout=timeout)
        self.user_id = user_id

    def api_request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Any = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = self._client.request(method, path, json=json, params=params, files=files, data=data)
        except httpx.HTTPError as exc:
            logger.warning("API request failed", extra={"method": method, "path": path, "error": str(exc)})
            raise ApiError(
                "NETWORK_ERROR",
                "We couldn't reach the server.",
                NETWORK_SUGGESTIONS,
                status_code=0,
            ) from exc

        if response.is_error:
            raise _error_from_response(response)
        if not response.content:
            return None
        return response.json()

    def get(self, path: str, **params: Any) -> Any:
        return self.api_request("GET", path, params={key: value for key, value in params.items() if value is not None})

    def post(self, path: str, payload: Any = None) -> Any:
        return self.api_request("POST", path, json=payload)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _error_from_response(response: httpx.Response) -> ApiError:
    status_code = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and "error" in body and "userMessage" in body:
        return ApiError.from_payload(body, status_code=status_code)

    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str) and detail:
        message = detail
    elif status_code == 422:
        message = "Please check the details and try again."
    else:
        message = "Something went wrong. Please try again."
    return ApiError(
        f"HTTP_{status_code}",
        message,
        ["Try again"],
        is_recoverable=status_code not in (401, 403),
        status_code=status_code,
    )
