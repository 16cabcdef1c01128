"""
Analysis API Routes
===================

POST /api/analysis/{app_id}           - analyze an app (?force=true to refresh)
GET  /api/analysis/{app_id}           - cached analysis
GET  /api/analysis/cached/list        - cached analyses
POST /api/analysis/compare            - side-by-side comparison
POST /api/analysis/market-gaps        - cross-app market gaps
POST /api/analysis/mvp-opportunity    - analyze missing apps, then market gaps
POST /api/reviews/{app_id}/fetch      - fetch and store reviews
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from .models import APP_ID_PATTERN, ApiResponse, AppIdsRequest, FetchReviewsRequest, FetchReviewsResponse
from ..cache.analysis_store import StorageError
from ..data.app_store_client import AppStoreError
from ..orchestrator.analysis_pipeline import (
    AnalysisPipeline,
    InsufficientDataError,
    NoReviewsError,
    build_pipeline,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analysis", tags=["Analysis"])
reviews_router = APIRouter(prefix="/api/reviews", tags=["Reviews"])

_pipeline: Optional[AnalysisPipeline] = None


def get_pipeline() -> AnalysisPipeline:
    """Shared pipeline, built from the environment on first use."""
    global _pipeline
    if _pipeline is None:
        _pipeline = build_pipeline()
    return _pipeline


def to_http_error(e: Exception, context: str) -> HTTPException:
    """Map a pipeline error to an HTTP error."""
    if isinstance(e, NoReviewsError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InsufficientDataError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, AppStoreError):
        logger.error(f"{context}: App Store request failed: {e}")
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, StorageError):
        logger.error(f"{context}: storage failed: {e}")
        return HTTPException(status_code=500, detail=str(e))
    logger.exception(f"{context} failed")
    return HTTPException(status_code=500, detail=str(e))


# ============================================================================
# MULTI-APP ENDPOINTS (declared before /{app_id})
# ============================================================================

@router.get("/cached/list", response_model=ApiResponse, response_model_exclude_none=True)
def list_cached(pipeline: AnalysisPipeline = Depends(get_pipeline)):
    """Cached analyses, newest first."""
    return ApiResponse(data=pipeline.list_cached())


@router.post("/compare", response_model=ApiResponse, response_model_exclude_none=True)
def compare_apps(
    request: AppIdsRequest,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Compare the cached analyses of at least two apps."""
    try:
        return ApiResponse(data=pipeline.compare(request.appIds))
    except Exception as e:
        raise to_http_error(e, "Comparison")


@router.post("/market-gaps", response_model=ApiResponse, response_model_exclude_none=True)
def market_gaps(
    request: AppIdsRequest,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Cross-app market gaps of cached analyses."""
    try:
        report = pipeline.market_gaps(request.appIds)
        return ApiResponse(data=report.to_dict())
    except Exception as e:
        raise to_http_error(e, "Market gap analysis")


@router.post("/mvp-opportunity", response_model=ApiResponse, response_model_exclude_none=True)
async def mvp_opportunity(
    request: AppIdsRequest,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Analyze apps lacking an analysis, then score the MVP opportunity."""
    try:
        report = await pipeline.mvp_opportunity(request.appIds)
        return ApiResponse(data=report.to_dict())
    except Exception as e:
        raise to_http_error(e, "MVP opportunity")


# ============================================================================
# SINGLE-APP ENDPOINTS
# ============================================================================

@router.post("/{app_id}", response_model=ApiResponse, response_model_exclude_none=True)
async def analyze_app(
    app_id: str = Path(..., pattern=APP_ID_PATTERN, description="App Store id"),
    force: bool = Query(False, description="Re-analyze even if cached"),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Analyze an app, from cache unless forced."""
    try:
        result, source = await pipeline.analyze_app(app_id, force=force)
        return ApiResponse(data=result.to_dict(), source=source)
    except Exception as e:
        raise to_http_error(e, f"Analysis of app {app_id}")


@router.get("/{app_id}", response_model=ApiResponse, response_model_exclude_none=True)
def get_analysis(
    app_id: str = Path(..., pattern=APP_ID_PATTERN, description="App Store id"),
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Cached analysis of an app."""
    result = pipeline.get_analysis(app_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No analysis found for app {app_id}")
    return ApiResponse(data=result.to_dict(), source="cache")


@reviews_router.post("/{app_id}/fetch", response_model=FetchReviewsResponse)
def fetch_reviews(
    app_id: str = Path(..., pattern=APP_ID_PATTERN, description="App Store id"),
    request: Optional[FetchReviewsRequest] = None,
    pipeline: AnalysisPipeline = Depends(get_pipeline),
):
    """Fetch reviews from the App Store and store them."""
    limit = request.limit if request else None
    try:
        reviews = pipeline.fetch_reviews(app_id, limit)
    except Exception as e:
        raise to_http_error(e, f"Review fetch for app {app_id}")
    return FetchReviewsResponse(appId=app_id, reviewsFetched=len(reviews))
