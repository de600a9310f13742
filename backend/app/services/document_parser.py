"""Text extraction for uploaded documents."""
from __future__ import annotations

from dataclasses import dataclass, field
import io
import logging
from typing import Any, Dict

import docx
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from app.core.errors import UserFacingError
from app.services.upload_rules import DOCX, PDF, TEXT, is_image

logger = logging.getLogger(__name__)


@dataclass
class ParsedDocument:
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def extract_text(content: bytes, mime_type: str, file_name: str = "") -> ParsedDocument:
    """Return the plain text of a PDF, Word or text upload; images yield no text."""
    if mime_type == PDF:
        return _extract_pdf(content)
    if mime_type == DOCX:
        return _extract_docx(content)
    if mime_type == TEXT or file_name.lower().endswith((".txt", ".md")):
        return ParsedDocument(text=content.decode("utf-8", errors="replace"))
    if is_image(mime_type):
        # Images are analysed directly by the vision model.
        return ParsedDocument(text="", metadata={"image": True})
    raise UserFacingError(
        "UNSUPPORTED_FILE_TYPE",
        f"We can't read {mime_type or 'this type of'} files yet.",
        ["Try a different file"],
    )


def _extract_pdf(content: bytes) -> ParsedDocument:
    try:
        reader = PdfReader(io.BytesIO(content))
        text = "\n".join(page.extract_text() or "" for page in reader.pages)
    except (PdfReadError, ValueError, OSError) as exc:
        logger.warning("PDF extraction failed: %s", exc)
        raise UserFacingError(
            "PDF_UNREADABLE",
            "We couldn't read that PDF.",
            ["Check the PDF isn't password protected", "Try exporting it again", "Try a different file"],
        ) from exc

    metadata: Dict[str, Any] = {"pages": len(reader.pages)}
    info = reader.metadata
    if info:
        if info.title:
            metadata["title"] = str(info.title)
        if info.author:
            metadata["author"] = str(info.author)
    return ParsedDocument(text=text, metadata=metadata)


def _extract_docx(content: bytes) -> ParsedDocument:
    try:
        document = docx.Document(io.BytesIO(content))
    except Exception as exc:  # python-docx raises a mix of zipfile/lxml errors
        logger.warning("DOCX extraction failed: %s", exc)
        raise UserFacingError(
            "DOCX_UNREADABLE",
            "We couldn't read that Word document.",
            ["Save it again as .docx", "Export it as a PDF", "Try a different file"],
        ) from exc

    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.append(" | ".join(cell.text.strip() for cell in row.cells))
    return ParsedDocument(text="\n".join(lines), metadata={"paragraphs": len(document.paragraphs)})
