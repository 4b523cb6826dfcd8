# routers/matching.py
from enum import Enum
from typing import List, Optional, Sequence

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from cvmatch.helpers.parsing import decode_base64_document, extract_document
from cvmatch.models.models import MatchResult, TextDocument
from cvmatch.models.response import RankedCandidate, RankingResponse
from cvmatch.models.schemas import DocumentRankRequest, RankRequest
from cvmatch.services.factory import build_ranker
from cvmatch.services.ranker import failed_result, sort_results
from cvmatch.services.reports import render_csv_report, render_markdown_report
from cvmatch.utils.exceptions import CVMatchBaseException, ExtractionFailed, map_to_http_exception
from cvmatch.utils.logging_config import get_logger

router = APIRouter()
logger = get_logger(__name__)


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"


def _build_response(
    job: TextDocument,
    results: Sequence[MatchResult],
    names: List[Optional[str]],
    report_format: ReportFormat,
):
    if report_format == ReportFormat.CSV:
        return PlainTextResponse(render_csv_report(results, names), media_type="text/csv")
    if report_format == ReportFormat.MARKDOWN:
        return PlainTextResponse(
            render_markdown_report(results, names, job_language=job.language), media_type="text/markdown"
        )

    return RankingResponse(
        job_language=job.language,
        count=len(results),
        results=[
            RankedCandidate(
                candidate_index=r.candidate_index,
                name=names[r.candidate_index],
                match_percentage=r.match_percentage,
                analysis=r.analysis,
                failure=r.failure,
            )
            for r in results
        ],
    )


@router.post("/rank", response_model=RankingResponse)
async def rank_candidates(
    payload: RankRequest,
    format: ReportFormat = Query(ReportFormat.JSON, description="Response format: json, csv or markdown"),
):
    """Rank candidate CV texts against a job description using lexical scoring."""
    try:
        ranker = build_ranker()
        results = ranker.rank(payload.job_description, [c.text for c in payload.candidates])
    except CVMatchBaseException as exc:
        raise map_to_http_exception(exc)

    logger.info(f"Ranked {len(results)} CVs, top score {results[0].match_percentage:.2f}%")
    job = TextDocument.from_text(payload.job_description)
    return _build_response(job, results, [c.name for c in payload.candidates], format)


@router.post("/analyze", response_model=RankingResponse)
async def analyze_candidates(
    payload: RankRequest,
    format: ReportFormat = Query(ReportFormat.JSON, description="Response format: json, csv or markdown"),
):
    """Rank candidate CV texts through the language-model analysis service."""
    try:
        ranker = build_ranker(with_analysis=True)
        results = await ranker.rank_with_analysis(payload.job_description, [c.text for c in payload.candidates])
    except CVMatchBaseException as exc:
        raise map_to_http_exception(exc)

    job = TextDocument.from_text(payload.job_description)
    return _build_response(job, results, [c.name for c in payload.candidates], format)


@router.post("/documents", response_model=RankingResponse)
def rank_documents(
    payload: DocumentRankRequest,
    format: ReportFormat = Query(ReportFormat.JSON, description="Response format: json, csv or markdown"),
):
    """Extract text from base64 JD/CV files, then rank the CVs lexically.

    A CV whose text cannot be extracted keeps its slot in the ranking as a
    zero-score result carrying the EXTRACTION_FAILED reason.
    """
    try:
        jd = payload.job_description
        job = extract_document(decode_base64_document(jd.base64_content, jd.filename), jd.filename)

        cvs = []
        failures = {}
        for index, cv in enumerate(payload.cvs):
            try:
                cvs.append(extract_document(decode_base64_document(cv.base64_content, cv.filename), cv.filename))
            except ExtractionFailed as e:
                logger.warning(f"Error processing CV {cv.filename}: {e.message}")
                failures[index] = e
                cvs.append(TextDocument(text=""))

        results = build_ranker().rank(job, cvs)
        if failures:
            results = sort_results([
                failed_result(r.candidate_index, failures[r.candidate_index])
                if r.candidate_index in failures else r
                for r in results
            ])
    except CVMatchBaseException as exc:
        raise map_to_http_exception(exc)

    return _build_response(job, results, [cv.filename for cv in payload.cvs], format)
