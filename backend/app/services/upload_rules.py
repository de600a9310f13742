"""File type and size rules shared by the upload endpoints and the import wizards."""
from __future__ import annotations

from dataclasses import dataclass
import mimetypes
from typing import FrozenSet, Optional

from fastapi import status

from app.core.config import settings
from app.core.errors import UploadRejected

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT = "text/plain"
IMAGE_TYPES: FrozenSet[str] = frozenset({"image/png", "image/jpg", "image/jpeg", "image/gif", "image/webp"})

DOCUMENT_TYPES: FrozenSet[str] = frozenset({PDF, DOCX, TEXT}) | IMAGE_TYPES
MEAL_PLAN_TYPES: FrozenSet[str] = frozenset({PDF}) | IMAGE_TYPES

# Browsers and multipart clients often send these for files they cannot classify.
_GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}
# Stored and parsed as plain text.
_TEXT_ALIASES = {"text/markdown", "text/x-markdown"}


@dataclass(frozen=True)
class UploadRules:
    allowed_types: FrozenSet[str]
    description: str
    max_bytes: Optional[int] = None

    def limit(self) -> int:
        return self.max_bytes if self.max_bytes is not None else settings.max_upload_bytes


DOCUMENT_RULES = UploadRules(
    allowed_types=DOCUMENT_TYPES,
    description="a PDF, Word document, image (PNG, JPG, GIF, WEBP), or text file",
)
MEAL_PLAN_RULES = UploadRules(
    allowed_types=MEAL_PLAN_TYPES,
    description="a PDF or an image of your meal plan",
)


def normalize_mime_type(mime_type: Optional[str], file_name: str = "") -> str:
    """Lower-case the type, drop parameters and guess from the name when it is generic."""
    value = (mime_type or "").split(";", 1)[0].strip().lower()
    if value in _GENERIC_TYPES and file_name:
        guessed, _ = mimetypes.guess_type(file_name)
        if guessed:
            value = guessed.lower()
        elif file_name.lower().endswith((".txt", ".md")):
            value = TEXT
    if value in _TEXT_ALIASES:
        value = TEXT
    return value


def is_image(mime_type: str) -> bool:
    return mime_type in IMAGE_TYPES


def validate_upload(
    file_name: str,
    mime_type: Optional[str],
    size_bytes: int,
    rules: UploadRules = DOCUMENT_RULES,
) -> str:
    """
    Check a candidate upload and return its normalised MIME type.

    Raises ``UploadRejected`` for unsupported types, empty files, and files over
    the size limit. The limit is inclusive: a file of exactly ``limit()`` bytes passes.
    """
    normalized = normalize_mime_type(mime_type, file_name)
    if normalized not in rules.allowed_types:
        raise UploadRejected(
            "UNSUPPORTED_FILE_TYPE",
            f"That file type isn't supported. Please upload {rules.description}.",
            ["Try a different file", "Export the document as a PDF"],
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        )

    if size_bytes <= 0:
        raise UploadRejected(
            "EMPTY_FILE",
            "That file looks empty.",
            ["Check the file opens on your device", "Try a different file"],
        )

    limit = rules.limit()
    if size_bytes > limit:
        megabytes = limit // (1024 * 1024)
        raise UploadRejected(
            "FILE_TOO_LARGE",
            f"Please upload a file smaller than {megabytes}MB.",
            ["Compress the file", "Split the document into smaller parts"],
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    return normalized
