import base64
import io

import pytest
from docx import Document

from cvmatch.helpers.parsing import decode_base64_document, extract_document
from cvmatch.utils.exceptions import ExtractionFailed


def make_docx(*paragraphs):
    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


class TestExtractDocument:
    """Test cases for document text extraction"""

    def test_txt(self):
        doc = extract_document(b"Senior Python developer with Docker", "cv.txt")
        assert doc.text == "Senior Python developer with Docker"
        assert doc.language == "English"

    def test_extension_is_case_insensitive(self):
        assert extract_document(b"hello", "CV.TXT").text == "hello"

    def test_docx(self):
        content = make_docx("Développeur Python", "Je suis expert en Django et Docker")

        doc = extract_document(content, "cv.docx")

        assert "Développeur Python" in doc.text
        assert "Django" in doc.text
        assert doc.language == "French"

    def test_corrupt_pdf(self):
        with pytest.raises(ExtractionFailed) as exc_info:
            extract_document(b"not really a pdf", "cv.pdf")
        assert exc_info.value.details["filename"] == "cv.pdf"

    def test_unsupported_extension(self):
        with pytest.raises(ExtractionFailed) as exc_info:
            extract_document(b"data", "cv.odt")
        assert "Unsupported document type" in exc_info.value.message

    def test_empty_text(self):
        with pytest.raises(ExtractionFailed) as exc_info:
            extract_document(b"   \n  ", "cv.txt")
        assert "No text content" in exc_info.value.message


class TestDecodeBase64Document:
    """Test cases for base64 payload decoding"""

    def test_decode_success(self):
        encoded = base64.b64encode(b"This is a test CV content").decode()
        assert decode_base64_document(encoded, "cv.txt") == b"This is a test CV content"

    def test_decode_invalid(self):
        with pytest.raises(ExtractionFailed) as exc_info:
            decode_base64_document("invalid_base64!", "cv.txt")
        assert exc_info.value.error_code == "EXTRACTION_FAILED"
        assert "Invalid base64" in exc_info.value.message
