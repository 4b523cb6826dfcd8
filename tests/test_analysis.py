import json
from unittest.mock import MagicMock, call, patch

import pytest
import requests

from cvmatch.models.settings import AnalysisServiceSettings, MatcherSettings, ProcessingSettings
from cvmatch.services.analysis import AnalysisServiceClient, decode_analysis_response
from cvmatch.utils.exceptions import (
    AnalysisServiceRateLimited,
    AnalysisServiceUnauthorized,
    AnalysisServiceUnavailable,
    ConfigurationError,
    ResponseParseFailed,
)

ANALYSIS = {
    "matchPercentage": 72,
    "technicalSkillsMatch": {"matching": ["python", "docker"], "missing": ["aws"], "score": 66},
    "experienceMatch": {"relevantExperience": ["5 years backend"], "score": 80},
    "overallAnalysis": "Strong backend profile, no cloud experience.",
}


def make_response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    resp.text = json.dumps(payload) if payload is not None else ""
    return resp


def completion(content, model="gpt-3.5-turbo"):
    return {
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
    }


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return AnalysisServiceClient(api_key="test-key-123456", retry_delay=0, session=session)


class TestDecodeAnalysisResponse:
    """Test cases for isolating and validating the JSON reply"""

    def test_plain_json(self):
        analysis = decode_analysis_response(json.dumps(ANALYSIS))
        assert analysis.match_percentage == 72
        assert analysis.technical_skills_match.missing == ["aws"]
        assert analysis.experience_match.relevant_experience == ["5 years backend"]

    def test_code_fenced_json_with_commentary(self):
        text = "Here is the analysis:\n```json\n" + json.dumps(ANALYSIS) + "\n```\nLet me know!"
        assert decode_analysis_response(text).overall_analysis.startswith("Strong backend")

    def test_no_json_object(self):
        with pytest.raises(ResponseParseFailed) as exc_info:
            decode_analysis_response("I cannot help with that.")
        assert "No valid JSON object" in exc_info.value.message

    def test_invalid_json(self):
        with pytest.raises(ResponseParseFailed):
            decode_analysis_response("{matchPercentage: seventy}")

    def test_missing_required_field(self):
        with pytest.raises(ResponseParseFailed):
            decode_analysis_response('{"overallAnalysis": "no score"}')

    @pytest.mark.parametrize("missing", ["technicalSkillsMatch", "experienceMatch", "overallAnalysis"])
    def test_partial_analysis_is_rejected(self, missing):
        reply = {k: v for k, v in ANALYSIS.items() if k != missing}
        with pytest.raises(ResponseParseFailed):
            decode_analysis_response(json.dumps(reply))

    def test_scores_are_clamped(self):
        reply = dict(ANALYSIS, matchPercentage=140, experienceMatch={"relevantExperience": [], "score": -5})
        analysis = decode_analysis_response(json.dumps(reply))
        assert analysis.match_percentage == 100
        assert analysis.experience_match.score == 0

    def test_serializes_with_wire_names(self):
        dumped = decode_analysis_response(json.dumps(ANALYSIS)).model_dump(by_alias=True)
        assert dumped["matchPercentage"] == 72
        assert dumped["experienceMatch"]["relevantExperience"] == ["5 years backend"]


class TestAnalysisServiceClient:
    """Test cases for the HTTP client and its error taxonomy"""

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError):
            AnalysisServiceClient(api_key="")

    def test_analyze_success(self, client, session):
        session.post.return_value = make_response(200, completion(json.dumps(ANALYSIS)))

        analysis = client.analyze("Python job", "Python CV")

        assert analysis.match_percentage == 72
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.openai.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer test-key-123456"
        assert kwargs["json"]["model"] == "gpt-3.5-turbo"
        assert kwargs["json"]["max_tokens"] == 1000
        assert "Python CV" in kwargs["json"]["messages"][1]["content"]
        assert kwargs["timeout"] == 30

    def test_unauthorized_is_not_retried(self, client, session):
        session.post.return_value = make_response(401, {"error": {"message": "bad key"}})

        with pytest.raises(AnalysisServiceUnauthorized):
            client.analyze("job", "cv")
        assert session.post.call_count == 1

    def test_rate_limit_retried_three_times(self, client, session):
        session.post.return_value = make_response(429, {"error": {"message": "slow down"}})

        with pytest.raises(AnalysisServiceRateLimited):
            client.analyze("job", "cv")
        assert session.post.call_count == 3

    def test_rate_limit_recovers(self, client, session):
        session.post.side_effect = [
            make_response(429),
            make_response(200, completion(json.dumps(ANALYSIS))),
        ]

        assert client.analyze("job", "cv").match_percentage == 72
        assert session.post.call_count == 2

    @patch('cvmatch.utils.exceptions.time.sleep')
    def test_backoff_doubles(self, mock_sleep, session):
        client = AnalysisServiceClient(api_key="test-key-123456", retry_delay=1.0, session=session)
        session.post.return_value = make_response(429)

        with pytest.raises(AnalysisServiceRateLimited):
            client.analyze("job", "cv")
        assert mock_sleep.call_args_list == [call(1.0), call(2.0)]

    def test_timeout(self, client, session):
        session.post.side_effect = requests.Timeout("timed out")

        with pytest.raises(AnalysisServiceUnavailable) as exc_info:
            client.analyze("job", "cv")
        assert exc_info.value.details["reason"] == "timeout"

    def test_connection_error(self, client, session):
        session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(AnalysisServiceUnavailable) as exc_info:
            client.analyze("job", "cv")
        assert exc_info.value.details["reason"] == "connection"

    def test_server_error(self, client, session):
        session.post.return_value = make_response(500, {"error": {"message": "overloaded"}})

        with pytest.raises(AnalysisServiceUnavailable) as exc_info:
            client.analyze("job", "cv")
        assert exc_info.value.details["status_code"] == 500
        assert "overloaded" in exc_info.value.message

    def test_missing_content(self, client, session):
        session.post.return_value = make_response(200, {"choices": []})

        with pytest.raises(AnalysisServiceUnavailable) as exc_info:
            client.analyze("job", "cv")
        assert exc_info.value.details["reason"] == "invalid_payload"

    def test_unparseable_content(self, client, session):
        session.post.return_value = make_response(200, completion("Sorry, no JSON today"))

        with pytest.raises(ResponseParseFailed):
            client.analyze("job", "cv")

    def test_verify_key(self, client, session):
        session.post.return_value = make_response(200, completion("ok"))

        details = client.verify_key()

        assert details["model"] == "gpt-3.5-turbo"
        assert details["usage"]["total_tokens"] == 15
        assert session.post.call_args.kwargs["json"]["max_tokens"] == 10

    def test_test_completion(self, client, session):
        session.post.return_value = make_response(200, completion("Keep it simple."))

        details = client.test_completion()

        assert details["content"] == "Keep it simple."
        assert details["finish_reason"] == "stop"

    def test_from_settings(self, session):
        settings = MatcherSettings(
            analysis=AnalysisServiceSettings(api_key="k" * 20, base_url="http://localhost:8080/v1/", model_name="local"),
            processing=ProcessingSettings(retry_attempts=5, retry_delay=0.5),
        )

        client = AnalysisServiceClient.from_settings(settings, session=session)

        assert client.base_url == "http://localhost:8080/v1"
        assert client.model_name == "local"
        assert client.max_attempts == 5
        assert "kkkk...kkkk" in repr(client)
