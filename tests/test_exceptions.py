from unittest.mock import patch

import pytest

from cvmatch.utils.exceptions import (
    AnalysisServiceRateLimited,
    AnalysisServiceUnauthorized,
    AnalysisServiceUnavailable,
    ConfigurationError,
    EmptyJobDescription,
    ExtractionFailed,
    NoCandidates,
    ProcessingError,
    ResponseParseFailed,
    map_to_http_exception,
    retry_with_logging,
)


class TestHttpMapping:
    """Test cases for mapping matcher errors to HTTP responses"""

    @pytest.mark.parametrize("exc, status", [
        (EmptyJobDescription(), 400),
        (NoCandidates(), 400),
        (ConfigurationError("missing key", config_key="OPENAI_API_KEY"), 400),
        (AnalysisServiceUnauthorized(status_code=401), 401),
        (ExtractionFailed("bad file", filename="cv.pdf"), 422),
        (AnalysisServiceRateLimited(status_code=429), 429),
        (ProcessingError("boom"), 500),
        (ResponseParseFailed("no json", raw_response="hello"), 502),
        (AnalysisServiceUnavailable("down", status_code=503, reason="status"), 503),
        (AnalysisServiceUnavailable("slow", reason="timeout"), 504),
    ])
    def test_status_codes(self, exc, status):
        assert map_to_http_exception(exc).status_code == status

    def test_detail_carries_error_dict(self):
        http_exc = map_to_http_exception(ExtractionFailed("bad file", filename="cv.pdf"))

        assert http_exc.detail["message"] == "bad file"
        assert http_exc.detail["error"]["error_code"] == "EXTRACTION_FAILED"
        assert http_exc.detail["error"]["details"] == {"filename": "cv.pdf"}

    def test_to_dict_includes_cause(self):
        exc = ProcessingError("wrapped", cause=ValueError("inner"))
        assert exc.to_dict()["cause"] == "inner"

    def test_raw_response_is_truncated(self):
        exc = ResponseParseFailed("no json", raw_response="x" * 1000)
        assert len(exc.details["raw_response"]) == 500


class TestRetryWithLogging:
    """Test cases for the retry decorator"""

    @patch('cvmatch.utils.exceptions.time.sleep')
    def test_sync_retries_then_succeeds(self, mock_sleep):
        outcomes = [AnalysisServiceRateLimited(), "ok"]
        calls = []

        @retry_with_logging(exceptions=(AnalysisServiceRateLimited,))
        def call():
            calls.append(1)
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        assert call() == "ok"
        assert len(calls) == 2
        mock_sleep.assert_called_once_with(1.0)

    @patch('cvmatch.utils.exceptions.time.sleep')
    def test_other_errors_are_not_retried(self, mock_sleep):
        calls = []

        @retry_with_logging(exceptions=(AnalysisServiceRateLimited,))
        def call():
            calls.append(1)
            raise AnalysisServiceUnauthorized()

        with pytest.raises(AnalysisServiceUnauthorized):
            call()
        assert len(calls) == 1
        mock_sleep.assert_not_called()

    @patch('cvmatch.utils.exceptions.time.sleep')
    def test_gives_up_after_max_attempts(self, mock_sleep):
        calls = []

        @retry_with_logging(max_attempts=2, backoff_factor=0.5, exceptions=(AnalysisServiceRateLimited,))
        def call():
            calls.append(1)
            raise AnalysisServiceRateLimited()

        with pytest.raises(AnalysisServiceRateLimited):
            call()
        assert len(calls) == 2
        mock_sleep.assert_called_once_with(0.5)
