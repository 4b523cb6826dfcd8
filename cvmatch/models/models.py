import math
from typing import List, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

Language = Literal["English", "French"]


def clamp_percentage(value) -> float:
    """Coerce a score into a finite float within [0, 100]; NaN becomes 0."""
    value = float(value)
    if math.isnan(value):
        return 0.0
    return max(0.0, min(100.0, value))


class TextDocument(BaseModel):
    """Plain text of a JD or CV; its language is always read off the text."""
    model_config = ConfigDict(frozen=True)

    text: str

    @computed_field
    @property
    def language(self) -> Language:
        from cvmatch.services.features import detect_language
        return detect_language(self.text)

    @classmethod
    def from_text(cls, text: str) -> "TextDocument":
        return cls(text=text)


class ControlledVocabulary(BaseModel):
    """Named, versioned list of skill terms recognised by the extractor."""
    model_config = ConfigDict(frozen=True)

    name: str = "default"
    version: str = "1.0"
    terms: List[str] = Field(default_factory=list)

    @field_validator("terms")
    @classmethod
    def normalize_terms(cls, v):
        seen = []
        for term in v:
            term = str(term).strip().lower()
            if term and term not in seen:
                seen.append(term)
        return seen


class TechnicalSkillsMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    matching: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    score: float = 0.0

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v):
        return clamp_percentage(v)


class ExperienceMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    relevant_experience: List[str] = Field(default_factory=list, alias="relevantExperience")
    score: float = 0.0

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v):
        return clamp_percentage(v)


class MatchAnalysis(BaseModel):
    """Structured assessment returned by the analysis service."""
    model_config = ConfigDict(populate_by_name=True)

    match_percentage: float = Field(alias="matchPercentage")
    technical_skills_match: TechnicalSkillsMatch = Field(alias="technicalSkillsMatch")
    experience_match: ExperienceMatch = Field(alias="experienceMatch")
    overall_analysis: str = Field(alias="overallAnalysis")

    @field_validator("match_percentage")
    @classmethod
    def clamp_match_percentage(cls, v):
        return clamp_percentage(v)

    @classmethod
    def placeholder(cls, message: str) -> "MatchAnalysis":
        """Zeroed analysis used when a candidate could not be assessed."""
        return cls(
            match_percentage=0.0,
            technical_skills_match=TechnicalSkillsMatch(),
            experience_match=ExperienceMatch(),
            overall_analysis=message,
        )


class MatchFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    error_code: str
    message: str


class MatchResult(BaseModel):
    """Score for one candidate; candidate_index is its input position."""
    model_config = ConfigDict(frozen=True)

    candidate_index: int = Field(ge=0)
    match_percentage: float
    analysis: Optional[MatchAnalysis] = None
    failure: Optional[MatchFailure] = None

    @field_validator("match_percentage")
    @classmethod
    def clamp_match_percentage(cls, v):
        return clamp_percentage(v)

    @property
    def failed(self) -> bool:
        return self.failure is not None
