from fastapi import APIRouter

from cvmatch.helpers.parsing import decode_base64_document, extract_document
from cvmatch.models.response import ExtractedDocument
from cvmatch.models.schemas import DocumentInput
from cvmatch.models.settings import load_settings, load_vocabulary
from cvmatch.services.features import extract_skills
from cvmatch.utils.exceptions import CVMatchBaseException, map_to_http_exception

router = APIRouter()


@router.post("/extract", response_model=ExtractedDocument)
def extract(payload: DocumentInput):
    """Extract plain text, language and known skills from a base64 document"""
    try:
        content = decode_base64_document(payload.base64_content, payload.filename)
        doc = extract_document(content, payload.filename)
        vocabulary = load_vocabulary(load_settings())
    except CVMatchBaseException as exc:
        raise map_to_http_exception(exc)

    skills = extract_skills(doc.text, vocabulary)
    return ExtractedDocument(
        filename=payload.filename,
        text=doc.text,
        language=doc.language,
        skills=[term for term in vocabulary.terms if term in skills],
    )
