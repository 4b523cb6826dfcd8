"""
Batch ranking of candidate CVs against one job description.

Only an empty job description or an empty candidate list aborts a batch.
Any other failure is confined to its candidate, which then scores 0 and
carries a MatchFailure, so a batch always returns one result per input.
"""
import asyncio
from typing import List, Sequence, Union

from cvmatch.helpers.vocabulary import DEFAULT_VOCABULARY
from cvmatch.models.models import ControlledVocabulary, MatchAnalysis, MatchFailure, MatchResult, TextDocument
from cvmatch.services.analysis import AnalysisServiceClient
from cvmatch.services.matching import aggregate
from cvmatch.utils.exceptions import (
    CVMatchBaseException,
    ConfigurationError,
    EmptyJobDescription,
    NoCandidates,
    ProcessingError,
)
from cvmatch.utils.logging_config import PerformanceMonitor, get_logger, log_function_call

logger = get_logger(__name__)

DocumentLike = Union[TextDocument, str]


def as_document(value: DocumentLike, document_type: str = "cv", document_id: str = None) -> TextDocument:
    if isinstance(value, TextDocument):
        return value
    if isinstance(value, str):
        return TextDocument.from_text(value)
    raise ProcessingError(
        f"Unsupported {document_type} input of type {type(value).__name__}",
        document_id=document_id,
        document_type=document_type,
    )


def failed_result(index: int, exc: Exception) -> MatchResult:
    """Zero-score result that records why the candidate could not be scored."""
    if isinstance(exc, CVMatchBaseException):
        code, message = exc.error_code, exc.message
    else:
        code, message = "PROCESSING_ERROR", str(exc) or exc.__class__.__name__
    return MatchResult(
        candidate_index=index,
        match_percentage=0.0,
        analysis=MatchAnalysis.placeholder(f"Analysis failed: {message}"),
        failure=MatchFailure(error_code=code, message=message),
    )


def sort_results(results: Sequence[MatchResult]) -> List[MatchResult]:
    return sorted(results, key=lambda r: r.match_percentage, reverse=True)


class BatchRanker:
    def __init__(
        self,
        vocabulary: ControlledVocabulary = DEFAULT_VOCABULARY,
        analysis_client: AnalysisServiceClient = None,
        max_concurrent: int = 5,
    ):
        self.vocabulary = vocabulary
        self.analysis_client = analysis_client
        self.max_concurrent = max(1, max_concurrent)

    @staticmethod
    def _check_batch(job: DocumentLike, candidates: Sequence[DocumentLike]) -> TextDocument:
        job_text = job.text if isinstance(job, TextDocument) else job
        if not isinstance(job_text, str) or not job_text.strip():
            raise EmptyJobDescription()
        if not candidates:
            raise NoCandidates()
        return as_document(job, document_type="jd")

    @log_function_call
    def rank(self, job: DocumentLike, candidates: Sequence[DocumentLike]) -> List[MatchResult]:
        """Score every candidate lexically and return results best first."""
        job = self._check_batch(job, candidates)

        results = []
        with PerformanceMonitor(f"Lexical ranking of {len(candidates)} CVs", logger):
            for index, candidate in enumerate(candidates):
                try:
                    cv = as_document(candidate, document_id=str(index))
                    score = aggregate(job, cv, self.vocabulary)
                    results.append(MatchResult(candidate_index=index, match_percentage=score))
                except Exception as e:
                    logger.error(f"Error processing CV {index}: {e}")
                    results.append(failed_result(index, e))

        return sort_results(results)

    @log_function_call
    async def rank_with_analysis(self, job: DocumentLike, candidates: Sequence[DocumentLike]) -> List[MatchResult]:
        """Score every candidate through the analysis service, concurrently."""
        if self.analysis_client is None:
            raise ConfigurationError("No analysis service client configured", config_key="OPENAI_API_KEY")
        job = self._check_batch(job, candidates)

        loop = asyncio.get_running_loop()
        sem = asyncio.Semaphore(self.max_concurrent)

        async def analyze_one(index: int, candidate: DocumentLike) -> MatchResult:
            async with sem:
                try:
                    cv = as_document(candidate, document_id=str(index))
                    analysis = await loop.run_in_executor(
                        None, self.analysis_client.analyze, job.text, cv.text
                    )
                    return MatchResult(
                        candidate_index=index,
                        match_percentage=analysis.match_percentage,
                        analysis=analysis,
                    )
                except Exception as e:
                    logger.error(f"Analysis failed for CV {index}: {e}")
                    return failed_result(index, e)

        with PerformanceMonitor(f"Analysis ranking of {len(candidates)} CVs", logger, threshold_ms=30000):
            results = await asyncio.gather(*[analyze_one(i, c) for i, c in enumerate(candidates)])

        failed = sum(1 for r in results if r.failed)
        if failed:
            logger.warning(f"{failed}/{len(results)} CVs could not be analyzed")
        return sort_results(results)
