from __future__ import annotations

import io

import docx
import pytest
from pypdf import PdfWriter

from app.core.errors import UserFacingError
from app.services.document_parser import extract_text
from app.services.upload_rules import DOCX, PDF, TEXT


def _docx_bytes() -> bytes:
    document = docx.Document()
    document.add_paragraph("Breakfast: oats")
    document.add_paragraph("Squat 3 sets of 10 reps")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Monday"
    table.rows[0].cells[1].text = "Yoga"
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _pdf_bytes(title: str) -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    writer.add_metadata({"/Title": title})
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def test_plain_text_is_decoded():
    parsed = extract_text("Café lunch".encode("utf-8"), TEXT)

    assert parsed.text == "Café lunch"


def test_markdown_is_read_as_text():
    parsed = extract_text(b"# Plan\n- Walk", "text/markdown", "plan.md")

    assert parsed.text.startswith("# Plan")


def test_word_paragraphs_and_tables_are_extracted():
    parsed = extract_text(_docx_bytes(), DOCX, "plan.docx")

    lines = parsed.text.splitlines()
    assert lines.index("Breakfast: oats") < lines.index("Squat 3 sets of 10 reps")
    assert lines[-1] == "Monday | Yoga"
    assert parsed.metadata["paragraphs"] >= 2


def test_pdf_metadata_is_kept():
    parsed = extract_text(_pdf_bytes("Weekly Plan"), PDF, "plan.pdf")

    assert parsed.metadata == {"pages": 1, "title": "Weekly Plan"}
    assert parsed.text.strip() == ""


@pytest.mark.parametrize(
    ("content", "mime_type", "code"),
    [
        (b"definitely not a pdf", PDF, "PDF_UNREADABLE"),
        (b"definitely not a zip", DOCX, "DOCX_UNREADABLE"),
    ],
)
def test_broken_files_raise_readable_errors(content, mime_type, code):
    with pytest.raises(UserFacingError) as excinfo:
        extract_text(content, mime_type)

    assert excinfo.value.code == code
    assert excinfo.value.suggestions


def test_images_have_no_text():
    parsed = extract_text(b"\x89PNG", "image/png", "photo.png")

    assert parsed.text == ""
    assert parsed.metadata == {"image": True}
