"""
GapScope API Models
===================

Pydantic models for API request/response serialization.
Payloads keep the camelCase keys of the stored analyses.
"""

from pydantic import BaseModel, Field, StringConstraints
from typing import Annotated, Any, List, Optional

# Numeric App Store track id; also keeps ids safe to use as file names
APP_ID_PATTERN = r"^\d+$"

AppId = Annotated[str, StringConstraints(pattern=APP_ID_PATTERN)]


class AppIdsRequest(BaseModel):
    """Body of the multi-app endpoints."""
    appIds: List[AppId] = Field(..., min_length=1, description="App Store ids")


class FetchReviewsRequest(BaseModel):
    """Body of the review fetch endpoint."""
    limit: Optional[int] = Field(None, ge=1, le=500, description="Maximum reviews to fetch")


class ApiResponse(BaseModel):
    """Envelope of every analysis endpoint."""
    success: bool = True
    data: Any = None
    source: Optional[str] = None


class FetchReviewsResponse(BaseModel):
    appId: str
    reviewsFetched: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    dataDir: str
    cachedAnalyses: int
    aiInsights: bool
