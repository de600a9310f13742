"""User-facing error type shared by the API and the wizard client."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

DEFAULT_SUGGESTIONS = ["Try again", "Try a different file"]


class UserFacingError(Exception):
    """An error that carries a message and remediation steps meant for the user."""

    def __init__(
        self,
        code: str,
        user_message: str,
        suggestions: Optional[List[str]] = None,
        *,
        is_recoverable: bool = True,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ) -> None:
        super().__init__(user_message)
        self.code = code
        self.user_message = user_message
        self.suggestions = list(suggestions) if suggestions is not None else list(DEFAULT_SUGGESTIONS)
        self.is_recoverable = is_recoverable
        self.status_code = status_code

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "userMessage": self.user_message,
            "suggestions": self.suggestions,
            "isRecoverable": self.is_recoverable,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], *, status_code: int = status.HTTP_400_BAD_REQUEST) -> "UserFacingError":
        code = str(payload.get("error") or "UNKNOWN")
        message = payload.get("userMessage") or payload.get("error") or "Something went wrong"
        suggestions = payload.get("suggestions")
        return cls(
            code,
            str(message),
            [str(item) for item in suggestions] if isinstance(suggestions, list) else None,
            is_recoverable=payload.get("isRecoverable") is not False,
            status_code=status_code,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, user_message={self.user_message!r})"


class UploadRejected(UserFacingError):
    """Raised when a file fails type or size validation."""


async def user_facing_error_handler(request: Request, exc: UserFacingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())
