"""
Custom Exception Classes for the CV Match Engine
"""
import functools
import time
from typing import Dict, Any

from fastapi import HTTPException


class CVMatchBaseException(Exception):
    """Base exception for the CV Match Engine"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


# -------- Batch-level preconditions --------

class EmptyJobDescription(CVMatchBaseException):
    """Raised when the job description is blank after trimming"""

    def __init__(self, message: str = "Job description is empty", **kwargs):
        super().__init__(message, error_code="EMPTY_JOB_DESCRIPTION", **kwargs)


class NoCandidates(CVMatchBaseException):
    """Raised when a ranking run receives no candidate CVs"""

    def __init__(self, message: str = "No candidate CVs provided", **kwargs):
        super().__init__(message, error_code="NO_CANDIDATES", **kwargs)


# -------- Per-document / per-candidate errors --------

class ExtractionFailed(CVMatchBaseException):
    """Raised when a document cannot be turned into text"""

    def __init__(self, message: str, filename: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if filename:
            details['filename'] = filename
        super().__init__(message, error_code="EXTRACTION_FAILED", details=details, **kwargs)


class ResponseParseFailed(CVMatchBaseException):
    """Raised when the analysis service reply holds no usable JSON object"""

    def __init__(self, message: str, raw_response: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if raw_response is not None:
            details['raw_response'] = raw_response[:500]
        super().__init__(message, error_code="RESPONSE_PARSE_FAILED", details=details, **kwargs)


class AnalysisServiceError(CVMatchBaseException):
    """Base class for analysis service failures"""

    def __init__(self, message: str, error_code: str, status_code: int = None, reason: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if status_code:
            details['status_code'] = status_code
        if reason:
            details['reason'] = reason
        super().__init__(message, error_code=error_code, details=details, **kwargs)


class AnalysisServiceUnauthorized(AnalysisServiceError):
    """Raised when the analysis service rejects the API key"""

    def __init__(self, message: str = "Invalid analysis service API key. Please check your configuration.", **kwargs):
        super().__init__(message, error_code="ANALYSIS_SERVICE_UNAUTHORIZED", **kwargs)


class AnalysisServiceRateLimited(AnalysisServiceError):
    """Raised when the analysis service rate limit is exceeded"""

    def __init__(self, message: str = "Analysis service rate limit exceeded. Please try again later.", **kwargs):
        super().__init__(message, error_code="ANALYSIS_SERVICE_RATE_LIMITED", **kwargs)


class AnalysisServiceUnavailable(AnalysisServiceError):
    """Raised on network failures, timeouts and unexpected service replies"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="ANALYSIS_SERVICE_UNAVAILABLE", **kwargs)


# -------- Generic --------

class ConfigurationError(CVMatchBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class ProcessingError(CVMatchBaseException):
    """Raised when CV/JD processing fails unexpectedly"""

    def __init__(self, message: str, document_id: str = None, document_type: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if document_id:
            details['document_id'] = document_id
        if document_type:
            details['document_type'] = document_type
        super().__init__(message, error_code="PROCESSING_ERROR", details=details, **kwargs)


# HTTP Exception Mapping
def map_to_http_exception(exc: CVMatchBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        EmptyJobDescription: 400,
        NoCandidates: 400,
        ConfigurationError: 400,
        AnalysisServiceUnauthorized: 401,
        ExtractionFailed: 422,
        AnalysisServiceRateLimited: 429,
        ProcessingError: 500,
        ResponseParseFailed: 502,
        AnalysisServiceUnavailable: 503,
    }

    status_code = status_code_mapping.get(type(exc), 500)
    if isinstance(exc, AnalysisServiceUnavailable) and exc.details.get("reason") == "timeout":
        status_code = 504

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


def retry_with_logging(
    max_attempts: int = 3,
    backoff_factor: float = 1.0,
    exceptions: tuple = (Exception,),
    logger=None
):
    """Retry a function on ``exceptions`` with exponential backoff.

    Sleeps ``backoff_factor * 2 ** attempt`` seconds between attempts (1s, 2s
    for the defaults). Other exceptions propagate on the first occurrence and
    the last retryable one is re-raised once attempts run out.
    """

    def decorator(func):
        def should_retry(attempt: int, exc: Exception) -> bool:
            last = attempt == max_attempts - 1
            if logger:
                logger.warning(f"{func.__name__} attempt {attempt + 1}/{max_attempts} failed: {exc}")
                if last:
                    logger.error(f"{func.__name__} gave up after {max_attempts} attempts")
            return not last

        def delay(attempt: int) -> float:
            return backoff_factor * (2 ** attempt)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if not should_retry(attempt, e):
                        raise
                time.sleep(delay(attempt))

        return wrapper

    return decorator
