"""
GapScope FastAPI Application
============================

REST API over the review analysis pipeline.

Endpoints:
    GET  /api/health      - Health check
    /api/analysis/...     - Per-app and cross-app analysis (see analysis_routes)
    /api/reviews/...      - Review fetching

Usage:
    uvicorn gapscope.api.main:app --reload --port 8000

    Or with CLI:
    python -m gapscope.api.main
"""

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os

from .models import HealthResponse
from .analysis_routes import get_pipeline, reviews_router, router as analysis_router
from ..orchestrator.analysis_pipeline import AnalysisPipeline
from ..data.config import get_env_bool
from ..orchestrator.logging_config import setup_logging

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting GapScope API...")
    yield
    logger.info("Shutting down GapScope API...")


app = FastAPI(
    title="GapScope API",
    description="App Store review analysis and market gap discovery",
    version=VERSION,
    lifespan=lifespan,
)

# Extra origins come from CORS_ORIGINS (comma-separated)
_default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra_origins = os.getenv("CORS_ORIGINS", "")
if _extra_origins:
    _default_origins.extend([o.strip() for o in _extra_origins.split(",") if o.strip()])

app.add_middleware(
    CORSMiddleware,
    allow_origins=_default_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analysis_router)
app.include_router(reviews_router)


# ============================================================================
# HEALTH ENDPOINT
# ============================================================================

@app.get("/api/health", response_model=HealthResponse)
async def health_check(pipeline: AnalysisPipeline = Depends(get_pipeline)):
    """Store location, cache size and whether AI insights are active."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        dataDir=str(pipeline.store.data_dir),
        cachedAnalyses=len(pipeline.list_cached()),
        aiInsights=pipeline.analyzer.enricher is not None,
    )


if __name__ == "__main__":
    import uvicorn

    setup_logging(
        os.getenv("LOG_LEVEL", "INFO"),
        json_output=get_env_bool("LOG_JSON", False),
        log_file=os.getenv("LOG_FILE") or None,
    )
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
