from __future__ import annotations

import logging
from io import BytesIO
from zipfile import BadZipFile, ZipFile

import defusedxml.ElementTree as ET

from app.services.errors import ExtractionError

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
SUPPORTED_MIME_TYPES = frozenset({PDF_MIME_TYPE, DOCX_MIME_TYPE})

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")


def is_supported_mime_type(mime_type: str | None) -> bool:
    return (mime_type or "").split(";")[0].strip().lower() in SUPPORTED_MIME_TYPES


def clean_extracted_text(text: str) -> str:
    """Replace characters UTF-8 cannot encode, such as lone surrogates from broken PDF font maps."""
    return text.encode("utf-8", errors="replace").decode("utf-8")


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
        return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)
    except BadZipFile:
        return False


def _parse_pdf(content: bytes) -> str:
    if not content.startswith(PDF_MAGIC):
        raise ExtractionError("File content does not match the PDF format.")

    from pypdf import PdfReader

    try:
        reader = PdfReader(BytesIO(content))
        page_chunks: list[str] = []
        for page in reader.pages:
            page_text = page.extract_text() or ""
            if page_text.strip():
                page_chunks.append(page_text)
    except Exception as exc:
        raise ExtractionError("Failed to extract text from PDF document.") from exc
    return "\n\n".join(page_chunks)


def _parse_docx_fallback(content: bytes) -> str:
    with ZipFile(BytesIO(content)) as archive:
        raw = archive.read("word/document.xml")
    root = ET.fromstring(raw)
    paragraphs: list[str] = []
    for paragraph in root.iter():
        if not paragraph.tag.endswith("}p"):
            continue
        texts = [node.text for node in paragraph.iter() if node.tag.endswith("}t") and node.text]
        joined = "".join(texts).strip()
        if joined:
            paragraphs.append(joined)
    return "\n".join(paragraphs)


def _parse_docx(content: bytes) -> str:
    if not any(content.startswith(magic) for magic in ZIP_MAGICS) or not _zip_has_paths(content, ("word/",)):
        raise ExtractionError("File content does not match the DOCX format.")

    try:
        from docx import Document

        document = Document(BytesIO(content))
        return "\n".join(p.text for p in document.paragraphs if p.text and p.text.strip())
    except Exception as exc:
        logger.info("docx_parser_fallback reason=%s", exc)

    try:
        return _parse_docx_fallback(content)
    except Exception as exc:
        raise ExtractionError("Failed to extract text from DOCX document.") from exc


def extract_text(content: bytes, mime_type: str) -> str:
    """Turn an uploaded PDF or DOCX buffer into plain text or raise ExtractionError."""
    normalized = (mime_type or "").split(";")[0].strip().lower()
    if not content:
        raise ExtractionError("Uploaded file is empty.")
    if normalized == PDF_MIME_TYPE:
        return clean_extracted_text(_parse_pdf(content))
    if normalized == DOCX_MIME_TYPE:
        return clean_extracted_text(_parse_docx(content))
    raise ExtractionError(f"Unsupported document type '{mime_type}'.")
