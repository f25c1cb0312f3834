import sys
import unittest
from io import BytesIO
from pathlib import Path
from zipfile import ZipFile

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.parsing.parse import (  # noqa: E402
    DOCX_MIME_TYPE,
    PDF_MIME_TYPE,
    clean_extracted_text,
    extract_text,
    is_supported_mime_type,
)
from app.services.errors import ExtractionError  # noqa: E402


def _docx_bytes(paragraphs: list[str]) -> bytes:
    from docx import Document

    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _minimal_docx_zip(paragraphs: list[str]) -> bytes:
    body = "".join(f"<w:p><w:r><w:t>{text}</w:t></w:r></w:p>" for text in paragraphs)
    xml = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
        f"<w:body>{body}</w:body></w:document>"
    )
    buffer = BytesIO()
    with ZipFile(buffer, "w") as archive:
        archive.writestr("word/document.xml", xml)
    return buffer.getvalue()


class MimeTypeTests(unittest.TestCase):
    def test_only_pdf_and_docx_are_supported(self):
        self.assertTrue(is_supported_mime_type(PDF_MIME_TYPE))
        self.assertTrue(is_supported_mime_type(DOCX_MIME_TYPE))
        self.assertTrue(is_supported_mime_type("Application/PDF; charset=binary"))
        self.assertFalse(is_supported_mime_type("application/msword"))
        self.assertFalse(is_supported_mime_type("text/plain"))
        self.assertFalse(is_supported_mime_type(None))


class CleanExtractedTextTests(unittest.TestCase):
    def test_lone_surrogates_are_replaced(self):
        cleaned = clean_extracted_text("Jane \ud835 Doe")
        self.assertEqual(cleaned, "Jane ? Doe")
        cleaned.encode("utf-8")

    def test_regular_unicode_is_untouched(self):
        self.assertEqual(clean_extracted_text("Zoë Müller, 東京"), "Zoë Müller, 東京")


class ExtractTextTests(unittest.TestCase):
    def test_docx_paragraphs_are_joined(self):
        content = _docx_bytes(["Jane Doe", "", "Backend Engineer"])
        self.assertEqual(extract_text(content, DOCX_MIME_TYPE), "Jane Doe\nBackend Engineer")

    def test_docx_without_package_parts_uses_xml_fallback(self):
        content = _minimal_docx_zip(["Jane Doe", "Python, SQL"])
        self.assertEqual(extract_text(content, DOCX_MIME_TYPE), "Jane Doe\nPython, SQL")

    def test_blank_pdf_yields_empty_text(self):
        from pypdf import PdfWriter

        writer = PdfWriter()
        writer.add_blank_page(width=200, height=200)
        buffer = BytesIO()
        writer.write(buffer)
        self.assertEqual(extract_text(buffer.getvalue(), PDF_MIME_TYPE).strip(), "")

    def test_pdf_label_on_non_pdf_bytes_is_rejected(self):
        with self.assertRaises(ExtractionError):
            extract_text(b"PK\x03\x04 not really a pdf", PDF_MIME_TYPE)

    def test_docx_label_on_non_zip_bytes_is_rejected(self):
        with self.assertRaises(ExtractionError):
            extract_text(b"%PDF-1.7 not a docx", DOCX_MIME_TYPE)

    def test_empty_upload_is_an_extraction_error(self):
        with self.assertRaises(ExtractionError):
            extract_text(b"", PDF_MIME_TYPE)

    def test_unsupported_type_is_an_extraction_error(self):
        with self.assertRaises(ExtractionError):
            extract_text(b"hello", "text/plain")


if __name__ == "__main__":
    unittest.main()
