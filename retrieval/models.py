from typing import Literal, Optional

from pydantic import Field

from chunking.models import CamelModel, Chunk

MatchType = Literal["semantic", "keyword"]
RetrievalMode = Literal["semantic", "keyword", "hybrid"]


class KeywordMatch(CamelModel):
    term: str
    count: int = Field(..., ge=1)


class RetrievalResult(CamelModel):
    chunk: Chunk
    document_id: str
    source_file: str = ""
    score: float = Field(..., description="Cosine similarity (semantic) or matched-term count (keyword)")
    match_type: MatchType
    keyword_matches: list[KeywordMatch] = Field(default_factory=list)

    @property
    def identity(self) -> tuple[str, str]:
        return (self.document_id, self.chunk.id)


class KeywordCount(CamelModel):
    term: str
    count: int


class KeywordSearchStats(CamelModel):
    total_matches: int = 0
    unique_keywords: int = 0
    top_keywords: list[KeywordCount] = Field(default_factory=list)


class RetrievalStats(CamelModel):
    search_type: RetrievalMode
    total_chunks: int = 0
    deduplicated_chunks: Optional[int] = None
    semantic_results: int = 0
    keyword_results: int = 0
    retrieved_chunks: int = 0
    average_score: Optional[float] = None
    max_score: Optional[float] = None
    min_score: Optional[float] = None


class DeviceInfo(CamelModel):
    backend: str = "ollama"
    host: str
    model: str
    model_available: bool
    available_models: list[str] = Field(default_factory=list)
    dimensions: Optional[int] = None


class QueryRequest(CamelModel):
    project: str = Field(..., min_length=1)
    query: str = Field(..., description="The question to retrieve chunks for")
    top_k: int = Field(5, description="Results to return (1-50)")
    mode: RetrievalMode = "hybrid"
    keywords: Optional[list[str]] = Field(None, description="Search terms; extracted from the query when omitted")


class RetrievalResponse(CamelModel):
    query: str
    mode: RetrievalMode
    results: list[RetrievalResult] = Field(default_factory=list)
    context_text: str = ""
    stats: Optional[RetrievalStats] = None


class DocumentSummary(CamelModel):
    document_id: str
    original_name: str
    chunk_count: int
    embedded_chunks: int
