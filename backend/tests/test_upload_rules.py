from __future__ import annotations

import pytest

from app.core.errors import UploadRejected
from app.services import upload_rules
from app.services.upload_rules import (
    DOCUMENT_RULES,
    DOCX,
    MEAL_PLAN_RULES,
    PDF,
    TEXT,
    normalize_mime_type,
    validate_upload,
)

FIVE_MB = 5 * 1024 * 1024


def test_pdf_at_exact_limit_is_accepted() -> None:
    assert validate_upload("plan.pdf", PDF, FIVE_MB) == PDF


def test_pdf_one_byte_over_limit_is_rejected() -> None:
    with pytest.raises(UploadRejected) as excinfo:
        validate_upload("plan.pdf", PDF, FIVE_MB + 1)

    error = excinfo.value
    assert error.code == "FILE_TOO_LARGE"
    assert error.status_code == 413
    assert "5MB" in error.user_message
    assert error.suggestions


@pytest.mark.parametrize("mime_type", ["application/zip", "video/mp4", "application/vnd.ms-excel"])
def test_unsupported_type_is_rejected_even_when_small(mime_type: str) -> None:
    with pytest.raises(UploadRejected) as excinfo:
        validate_upload("thing.bin", mime_type, 1024)

    assert excinfo.value.code == "UNSUPPORTED_FILE_TYPE"
    assert excinfo.value.status_code == 415


def test_empty_file_is_rejected() -> None:
    with pytest.raises(UploadRejected) as excinfo:
        validate_upload("notes.txt", TEXT, 0)

    assert excinfo.value.code == "EMPTY_FILE"


def test_document_rules_accept_word_images_and_text() -> None:
    assert validate_upload("plan.docx", DOCX, 10) == DOCX
    assert validate_upload("photo.webp", "image/webp", 10) == "image/webp"
    assert validate_upload("notes.txt", "text/plain; charset=utf-8", 10) == TEXT


def test_meal_plan_rules_reject_word_documents() -> None:
    with pytest.raises(UploadRejected):
        validate_upload("plan.docx", DOCX, 10, MEAL_PLAN_RULES)

    assert validate_upload("plan.jpg", "image/jpeg", 10, MEAL_PLAN_RULES) == "image/jpeg"


def test_generic_type_is_guessed_from_file_name() -> None:
    assert normalize_mime_type("application/octet-stream", "plan.pdf") == PDF
    assert normalize_mime_type("", "notes.txt") == TEXT
    assert normalize_mime_type(None, "") == ""


def test_limit_follows_settings(monkeypatch) -> None:
    monkeypatch.setattr(upload_rules.settings, "max_upload_bytes", 10)

    assert DOCUMENT_RULES.limit() == 10
    with pytest.raises(UploadRejected):
        validate_upload("plan.pdf", PDF, 11)


@pytest.mark.parametrize("mime_type", ["application/octet-stream", "text/markdown", "text/x-markdown; charset=utf-8"])
def test_markdown_notes_are_stored_as_text(mime_type: str) -> None:
    assert validate_upload("notes.md", mime_type, 10) == TEXT
