import base64
import binascii
import io
import logging
from pathlib import Path

from docx import Document
from pdfminer.high_level import extract_text as pdf_extract

from cvmatch.models.models import TextDocument
from cvmatch.utils.exceptions import ExtractionFailed
from cvmatch.utils.logging_config import get_logger

logging.getLogger("pdfminer").setLevel(logging.ERROR)
logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")


def read_txt(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def read_docx(content: bytes) -> str:
    doc = Document(io.BytesIO(content))
    return "\n".join([p.text for p in doc.paragraphs])


def read_pdf(content: bytes) -> str:
    return pdf_extract(io.BytesIO(content))


def decode_base64_document(b64_string: str, filename: str = None) -> bytes:
    try:
        return base64.b64decode(b64_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ExtractionFailed(f"Invalid base64 document: {e}", filename=filename, cause=e) from e


def extract_document(content: bytes, filename: str) -> TextDocument:
    """Turn an uploaded PDF, DOCX or TXT file into a TextDocument."""
    ext = Path(filename).suffix.lower()
    readers = {".pdf": read_pdf, ".docx": read_docx, ".txt": read_txt}
    reader = readers.get(ext)
    if reader is None:
        raise ExtractionFailed(
            f"Unsupported document type '{ext or filename}'. Supported: {', '.join(SUPPORTED_EXTENSIONS)}",
            filename=filename,
        )

    try:
        text = reader(content)
    except Exception as e:
        logger.error(f"Error extracting text from {filename}: {e}")
        raise ExtractionFailed(f"Failed to extract text from {filename}: {e}", filename=filename, cause=e) from e

    if not text or not text.strip():
        raise ExtractionFailed(f"No text content found in {filename}", filename=filename)

    logger.debug(f"Extracted {len(text)} characters from {filename}")
    return TextDocument.from_text(text)
