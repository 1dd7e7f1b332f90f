from typing import Optional

from pydantic import Field

from chunking.models import CamelModel
from retrieval.models import RetrievalMode


class Keyword(CamelModel):
    term: str = Field(..., min_length=1)
    variations: list[str] = Field(default_factory=list)


class KeywordExtraction(CamelModel):
    keywords: list[Keyword] = Field(default_factory=list)
    error: Optional[str] = None
    fallback: bool = Field(False, description="Keywords came from the stop-word fallback")


class AskRequest(CamelModel):
    project: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    top_k: Optional[int] = None
    mode: Optional[RetrievalMode] = None


class SourceChunk(CamelModel):
    number: int
    document_id: str
    chunk_id: str
    file_name: str
    text: str
    score: float
    match_type: str
    page_start: Optional[int] = None
    page_end: Optional[int] = None


class AskResponse(CamelModel):
    question: str
    answer: str
    sources_used: int
    sources: list[SourceChunk] = Field(default_factory=list)
