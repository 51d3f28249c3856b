"""
Skin Analysis API Models
"""
from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional


class SummarizeRequest(BaseModel):
    """Score an already-fetched provider payload."""
    tier: str = Field(default="pro", description="basic, advanced or pro")
    payload: Dict[str, Any] = Field(..., description="Full provider response body")
    member_id: Optional[str] = None


class RecommendationResponse(BaseModel):
    """One skincare recommendation."""
    issue: str
    suggestion: str
    ingredients: List[str] = []
    routine: str = ""


class ComponentScoresResponse(BaseModel):
    """The seven composite metrics."""
    hydration: int
    radiance: int
    firmness: int
    texture: int
    wrinkles: int
    pores: int
    pigmentation: int


class SummaryResponse(BaseModel):
    """Scored analysis summary."""
    overall_score: int
    skin_age: Optional[float] = None
    scores: ComponentScoresResponse
    key_concerns: List[str]
    recommendations: List[RecommendationResponse]
    warnings: List[str] = []
    tier: str


class FengShuiResponse(BaseModel):
    """Element and blessing for the analysis hour."""
    element: str
    blessing: str
    key: str
    hour: int


class AnalysisResponse(BaseModel):
    """Stored analysis record."""
    record_id: str
    member_id: Optional[str] = None
    tier: str
    analyzed_at: str
    summary: SummaryResponse
    breakdown: Dict[str, Any]
    feng_shui: FengShuiResponse
    request_id: Optional[str] = None
    status: str = "success"


class HistoryResponse(BaseModel):
    """One page of stored analyses, newest first."""
    records: List[AnalysisResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str
    components: Dict[str, str]
