"""
Settings Models for the matcher and its analysis service
"""
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from cvmatch.helpers.vocabulary import DEFAULT_VOCABULARY, load_vocabulary_file
from cvmatch.models.models import ControlledVocabulary


class AnalysisServiceSettings(BaseModel):
    """Language-model analysis service configuration"""
    api_key: Optional[str] = Field(default=None, description="API key sent as a bearer token")
    base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI-compatible API base URL")
    model_name: str = Field(default="gpt-3.5-turbo", description="Chat completion model name")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Generation temperature")
    max_tokens: int = Field(default=1000, ge=1, description="Maximum tokens to generate")
    timeout: int = Field(default=30, ge=1, le=300, description="Request timeout in seconds")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")


class ProcessingSettings(BaseModel):
    """Concurrency and retry configuration for the enrichment path"""
    max_concurrent: int = Field(default=5, ge=1, le=20, description="Maximum concurrent analysis requests")
    retry_attempts: int = Field(default=3, ge=1, le=10, description="Attempts per request when rate limited")
    retry_delay: float = Field(default=1.0, ge=0.0, le=60.0, description="Base backoff delay in seconds")


class MatcherSettings(BaseModel):
    """Complete matcher configuration"""
    analysis: AnalysisServiceSettings = Field(default_factory=AnalysisServiceSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    vocabulary_path: Optional[str] = Field(default=None, description="JSON vocabulary file; built-in list when unset")


def load_settings() -> MatcherSettings:
    """Build settings from the process environment (and a .env file if present)."""
    load_dotenv()

    analysis = {
        "api_key": os.getenv("OPENAI_API_KEY") or None,
        "base_url": os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        "model_name": os.getenv("ANALYSIS_MODEL", "gpt-3.5-turbo"),
        "temperature": float(os.getenv("ANALYSIS_TEMPERATURE", "0.7")),
        "max_tokens": int(os.getenv("ANALYSIS_MAX_TOKENS", "1000")),
        "timeout": int(os.getenv("ANALYSIS_TIMEOUT", "30")),
    }
    processing = {
        "max_concurrent": int(os.getenv("ANALYSIS_MAX_CONCURRENT", "5")),
        "retry_attempts": int(os.getenv("ANALYSIS_RETRY_ATTEMPTS", "3")),
        "retry_delay": float(os.getenv("ANALYSIS_RETRY_DELAY", "1.0")),
    }

    return MatcherSettings(
        analysis=AnalysisServiceSettings(**analysis),
        processing=ProcessingSettings(**processing),
        vocabulary_path=os.getenv("VOCABULARY_PATH") or None,
    )


def load_vocabulary(settings: MatcherSettings) -> ControlledVocabulary:
    if settings.vocabulary_path:
        return load_vocabulary_file(settings.vocabulary_path)
    return DEFAULT_VOCABULARY
