# models/response.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from cvmatch.models.models import MatchAnalysis, MatchFailure


class RankedCandidate(BaseModel):
    candidate_index: int
    name: Optional[str] = None
    match_percentage: float
    analysis: Optional[MatchAnalysis] = None
    failure: Optional[MatchFailure] = None


class RankingResponse(BaseModel):
    job_language: str
    count: int
    results: List[RankedCandidate]
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ExtractedDocument(BaseModel):
    filename: str
    text: str
    language: str
    skills: List[str]


class ServiceCheckResponse(BaseModel):
    success: bool = True
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
