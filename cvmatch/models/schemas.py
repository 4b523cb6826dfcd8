from pydantic import BaseModel, Field
from typing import List, Optional

# -------- Text input --------
class CandidateInput(BaseModel):
    name: Optional[str] = None
    text: str

class RankRequest(BaseModel):
    job_description: str
    candidates: List[CandidateInput] = []

# -------- Document input --------
class DocumentInput(BaseModel):
    """Uploaded file as base64, the way upload middleware forwards it"""
    filename: str
    base64_content: str

class DocumentRankRequest(BaseModel):
    job_description: DocumentInput
    cvs: List[DocumentInput] = Field(default_factory=list)
