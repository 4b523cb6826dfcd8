"""
Client for the optional language-model analysis service.

The service is any OpenAI-compatible chat completions endpoint. Credentials
and endpoint are constructor parameters; ``from_settings`` wires them from
configuration.
"""
from typing import Any, Dict, List

import requests
from pydantic import ValidationError

from cvmatch.helpers.prompts import ANALYSIS_PROMPT, SYSTEM_PROMPT, TEST_PROMPT, VERIFY_PROMPT
from cvmatch.models.models import MatchAnalysis
from cvmatch.models.settings import MatcherSettings
from cvmatch.utils.exceptions import (
    AnalysisServiceRateLimited,
    AnalysisServiceUnauthorized,
    AnalysisServiceUnavailable,
    ConfigurationError,
    ResponseParseFailed,
    retry_with_logging,
)
from cvmatch.utils.logging_config import get_logger
from cvmatch.utils.utils import extract_json_object, mask_secret

logger = get_logger(__name__)


def decode_analysis_response(text: str) -> MatchAnalysis:
    """Turn a raw model reply into a MatchAnalysis or raise ResponseParseFailed."""
    data = extract_json_object(text)
    try:
        return MatchAnalysis.model_validate(data)
    except ValidationError as e:
        raise ResponseParseFailed(
            "Analysis service response does not match the expected structure",
            raw_response=text,
            cause=e,
        ) from e


class AnalysisServiceClient:
    """Blocking HTTP client; safe to share across worker threads."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model_name: str = "gpt-3.5-turbo",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        session: requests.Session = None,
    ):
        if not api_key:
            raise ConfigurationError("Analysis service API key is not configured", config_key="OPENAI_API_KEY")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: MatcherSettings, session: requests.Session = None) -> "AnalysisServiceClient":
        return cls(
            api_key=settings.analysis.api_key,
            base_url=settings.analysis.base_url,
            model_name=settings.analysis.model_name,
            temperature=settings.analysis.temperature,
            max_tokens=settings.analysis.max_tokens,
            timeout=settings.analysis.timeout,
            max_attempts=settings.processing.retry_attempts,
            retry_delay=settings.processing.retry_delay,
            session=session,
        )

    def __repr__(self):
        return f"AnalysisServiceClient(base_url={self.base_url!r}, model={self.model_name!r}, key={mask_secret(self.api_key)})"

    # ---------- transport ----------

    def _post_chat(self, messages: List[Dict[str, str]], max_tokens: int) -> Dict[str, Any]:
        url = f"{self.base_url}/chat/completions"
        payload = {
            "model": self.model_name,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            resp = self.session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise AnalysisServiceUnavailable(
                "The request to the analysis service timed out", reason="timeout", cause=e
            ) from e
        except requests.ConnectionError as e:
            raise AnalysisServiceUnavailable(
                "Could not connect to the analysis service", reason="connection", cause=e
            ) from e
        except requests.RequestException as e:
            raise AnalysisServiceUnavailable(
                f"Analysis service request failed: {e}", reason="network", cause=e
            ) from e

        if resp.status_code in (401, 403):
            raise AnalysisServiceUnauthorized(status_code=resp.status_code)
        if resp.status_code == 429:
            raise AnalysisServiceRateLimited(status_code=429)
        if resp.status_code >= 400:
            raise AnalysisServiceUnavailable(
                f"Analysis service returned HTTP {resp.status_code}: {self._error_message(resp)}",
                status_code=resp.status_code,
                reason="status",
            )

        try:
            return resp.json()
        except ValueError as e:
            raise AnalysisServiceUnavailable(
                "Analysis service returned a non-JSON payload", reason="invalid_payload", cause=e
            ) from e

    @staticmethod
    def _error_message(resp) -> str:
        try:
            return resp.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return resp.text[:200] if resp.text else "Unknown error occurred"

    def _complete(self, messages: List[Dict[str, str]], max_tokens: int) -> Dict[str, Any]:
        post = retry_with_logging(
            max_attempts=self.max_attempts,
            backoff_factor=self.retry_delay,
            exceptions=(AnalysisServiceRateLimited,),
            logger=logger,
        )(self._post_chat)
        return post(messages, max_tokens)

    @staticmethod
    def _message_content(data: Dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise AnalysisServiceUnavailable(
                "Invalid response format from analysis service", reason="invalid_payload"
            )
        return content

    # ---------- operations ----------

    def analyze(self, job_description: str, cv_text: str) -> MatchAnalysis:
        """Ask the service for a structured match assessment of one CV."""
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": ANALYSIS_PROMPT.format(job_description=job_description, cv_text=cv_text)},
        ]
        logger.debug(f"Requesting match analysis from {self.model_name}")
        content = self._message_content(self._complete(messages, self.max_tokens))
        logger.debug(f"Analysis service raw response: {content[:500]}")
        return decode_analysis_response(content)

    def verify_key(self) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": VERIFY_PROMPT},
        ]
        logger.info(f"Verifying analysis service key {mask_secret(self.api_key)}")
        data = self._complete(messages, 10)
        return {"model": data.get("model"), "usage": data.get("usage")}

    def test_completion(self) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": "You are a helpful assistant. Please provide a brief response."},
            {"role": "user", "content": TEST_PROMPT},
        ]
        data = self._complete(messages, 150)
        choice = (data.get("choices") or [{}])[0]
        return {
            "model": data.get("model"),
            "content": self._message_content(data),
            "usage": data.get("usage"),
            "finish_reason": choice.get("finish_reason"),
        }
