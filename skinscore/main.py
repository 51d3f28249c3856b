"""
Skin Analysis API - FastAPI Application

Main application entry point with API endpoints for:
- Image analysis through the vision provider
- Scoring of already-fetched provider payloads
- Record lookup and history
"""
from fastapi import FastAPI, HTTPException, UploadFile, File, Query
from fastapi.middleware.cors import CORSMiddleware
from typing import Optional
from datetime import datetime
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from skinscore.config import settings
from skinscore.core.errors import (
    InvalidImageError,
    MissingResultError,
    ProviderError,
    ProviderUnavailableError,
    SkinScoreError,
    UnsupportedTierError,
)
from skinscore.models.analysis import AnalysisResponse, HealthResponse, HistoryResponse, SummarizeRequest
from skinscore.services.analysis import SkinAnalysisService
from skinscore.utils import get_logger, setup_logging

setup_logging(settings.log_level)
logger = get_logger(__name__)


# ---- FastAPI Application ----

app = FastAPI(
    title=settings.app_name,
    description="Skin metric normalization and scoring on top of the AILabTools vision API",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_service = SkinAnalysisService()


def get_service() -> SkinAnalysisService:
    return _service


def _to_http_error(error: SkinScoreError) -> HTTPException:
    """Translate pipeline errors to HTTP responses."""
    if isinstance(error, (UnsupportedTierError, InvalidImageError)):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, ProviderUnavailableError):
        return HTTPException(status_code=503, detail=str(error))
    if isinstance(error, ProviderError):
        return HTTPException(status_code=502, detail=error.to_dict())
    if isinstance(error, MissingResultError):
        return HTTPException(status_code=502, detail={"message": str(error), "request_id": error.request_id})
    return HTTPException(status_code=500, detail=str(error))


# ---- API Endpoints ----

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    service = get_service()
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        timestamp=datetime.now().isoformat(),
        components={
            "api": "healthy",
            "scoring": "ready",
            "provider": "configured" if service.client.is_configured else "missing_api_key",
        }
    )


@app.post(f"{settings.api_prefix}/analysis/analyze", response_model=AnalysisResponse, tags=["Analysis"])
async def analyze_image(
    image: UploadFile = File(...),
    tier: Optional[str] = Query(default=None, description="basic, advanced or pro"),
    member_id: Optional[str] = Query(default=None),
):
    """
    Analyze an uploaded JPEG.

    Returns the scored summary, grouped features and feng shui info.
    """
    data = await image.read()
    try:
        record = await get_service().analyze_image(
            data, filename=image.filename or "image.jpg", tier=tier, member_id=member_id
        )
    except SkinScoreError as e:
        logger.warning(f"Analysis failed: {type(e).__name__}: {e}")
        raise _to_http_error(e)
    return record.to_dict()


@app.post(f"{settings.api_prefix}/analysis/summarize", response_model=AnalysisResponse, tags=["Analysis"])
async def summarize_payload(request: SummarizeRequest):
    """Score a provider payload fetched elsewhere."""
    try:
        record = get_service().summarize_payload(request.payload, request.tier, member_id=request.member_id)
    except SkinScoreError as e:
        logger.warning(f"Summarize failed: {type(e).__name__}: {e}")
        raise _to_http_error(e)
    return record.to_dict()


@app.get(f"{settings.api_prefix}/analysis/history", response_model=HistoryResponse, tags=["Analysis"])
async def get_history(
    member_id: Optional[str] = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    """List stored analyses, newest first."""
    records, total = get_service().list_records(member_id=member_id, limit=limit, offset=offset)
    return {
        "records": [r.to_dict() for r in records],
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + len(records) < total,
    }


@app.get(f"{settings.api_prefix}/analysis/{{record_id}}", response_model=AnalysisResponse, tags=["Analysis"])
async def get_analysis(record_id: str):
    """Get a stored analysis record."""
    record = get_service().get_record(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return record.to_dict()


# ---- Application Lifecycle ----

@app.on_event("startup")
async def startup_event():
    """Initialize on startup."""
    logger.info(f"{settings.app_name} v{settings.app_version} starting up...")
    if not get_service().client.is_configured:
        logger.warning("AILAB_API_KEY not set - /analysis/analyze will return 503")
    logger.info("API ready to accept requests")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Skin Analysis API shutting down...")


# ---- Run with uvicorn ----
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
